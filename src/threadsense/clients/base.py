"""Abstract interface for the forum data collaborator.

The insight engine and dashboard read forum content through this seam only;
tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod

from threadsense.models.forum import Post, Thread, ThreadPage


class AbstractForumClient(ABC):
    """Read access to forum threads and posts."""

    @abstractmethod
    async def list_threads(self, limit: int = 20, cursor: str | None = None) -> ThreadPage: ...

    @abstractmethod
    async def get_thread(self, thread_id: str) -> Thread | None: ...

    @abstractmethod
    async def list_posts(self, thread_id: str) -> list[Post]: ...

    @abstractmethod
    async def close(self) -> None: ...
