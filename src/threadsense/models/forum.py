"""Pydantic models for forum API thread/post payloads."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AuthorInfo(BaseModel):
    """Nested user object returned by the forum API."""

    id: str
    username: str | None = None
    avatar: str | None = None


class Tag(BaseModel):
    id: str
    name: str
    description: str | None = None
    color: str | None = None


class Thread(BaseModel):
    """Forum thread.

    The API is inconsistent about casing (``replyCount`` vs ``reply_count``)
    and sometimes nests the author under ``user``. Both spellings are accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    body: str | None = None
    slug: str | None = None
    pinned: bool = False
    locked: bool = False
    author: AuthorInfo | None = None
    tags: list[Tag] = Field(default_factory=list)
    reply_count: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def author_id(self) -> str | None:
        return self.author.id if self.author else None

    @property
    def author_name(self) -> str:
        if self.author and self.author.username:
            return self.author.username
        return "Unknown"

    @model_validator(mode="before")
    @classmethod
    def _normalize_api_response(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        _rename(data, "replyCount", "reply_count")
        _rename(data, "viewCount", "view_count")
        _rename(data, "createdAt", "created_at")
        _rename(data, "updatedAt", "updated_at")

        # user -> author
        if "user" in data and "author" not in data:
            data["author"] = data.pop("user")
        if isinstance(data.get("author"), str):
            data["author"] = {"id": data["author"]}

        # null counters are common on fresh threads
        for key in ("reply_count", "view_count"):
            if data.get(key) is None:
                data.pop(key, None)

        return data


class Post(BaseModel):
    """A reply within a thread."""

    id: str
    body: str = ""
    thread_id: str | None = None
    author: AuthorInfo | None = None
    upvotes: int = 0
    is_solution: bool = False
    created_at: datetime | None = None

    @property
    def author_name(self) -> str:
        if self.author and self.author.username:
            return self.author.username
        return "User"

    @model_validator(mode="before")
    @classmethod
    def _normalize_api_response(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        # content -> body
        if "content" in data and "body" not in data:
            data["body"] = data.pop("content")
        if data.get("body") is None:
            data["body"] = ""
        _rename(data, "threadId", "thread_id")
        _rename(data, "isSolution", "is_solution")
        _rename(data, "createdAt", "created_at")

        if "user" in data and "author" not in data:
            data["author"] = data.pop("user")
        if isinstance(data.get("author"), str):
            data["author"] = {"id": data["author"]}

        return data


class ThreadPage(BaseModel):
    """One page of ``GET /threads``."""

    threads: list[Thread] = Field(default_factory=list)
    next_cursor: str | None = None
    count: int = 0


def _rename(data: dict[str, Any], old: str, new: str) -> None:
    if old in data and new not in data:
        data[new] = data.pop(old)
