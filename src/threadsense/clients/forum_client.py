"""Async HTTP client for the forum REST API.

Implements AbstractForumClient.
Rate limiting handled via httpx event hooks, transparent to all request methods.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import SecretStr, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from threadsense.clients.base import AbstractForumClient
from threadsense.logger import get_logger
from threadsense.models.forum import Post, Thread, ThreadPage

logger = get_logger(__name__)


class ForumClientError(Exception):
    """Raised when the forum API returns an error response."""

    def __init__(self, message: str, status: int | None = None, hint: str | None = None) -> None:
        self.status = status
        self.hint = hint
        super().__init__(message)


def _build_rate_limit_hook(
    max_requests: int = 90, window_seconds: float = 60.0
) -> Callable[[httpx.Request], Any]:
    """Create an httpx request hook enforcing a sliding-window request limit."""
    timestamps: deque[float] = deque()
    lock = asyncio.Lock()

    async def hook(request: httpx.Request) -> None:
        async with lock:
            now = time.monotonic()
            while timestamps and timestamps[0] <= now - window_seconds:
                timestamps.popleft()

            if len(timestamps) >= max_requests:
                wait = timestamps[0] + window_seconds - now
                if wait > 0:
                    logger.debug("rate_limit_wait", seconds=round(wait, 2))
                    await asyncio.sleep(wait)

            timestamps.append(time.monotonic())

    return hook


def _build_logging_hook() -> Callable[[httpx.Response], Any]:
    """Create an httpx response hook that logs all API responses."""

    async def hook(response: httpx.Response) -> None:
        logger.debug(
            "forum_api_response",
            method=response.request.method,
            path=response.request.url.path,
            status=response.status_code,
        )

    return hook


def _is_bad_id(thread_id: str | None) -> bool:
    return not thread_id or thread_id in ("undefined", "null")


def _records(data: dict[str, Any], key: str) -> list[Any]:
    raw = data.get(key, data.get("data"))
    return raw if isinstance(raw, list) else []


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class ForumClient(AbstractForumClient):
    """Concrete forum API client."""

    def __init__(
        self,
        base_url: str,
        api_key: SecretStr,
        bearer_token: SecretStr | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._bearer_token = bearer_token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "x-api-key": self._api_key.get_secret_value(),
        }
        if self._bearer_token is not None:
            headers["Authorization"] = f"Bearer {self._bearer_token.get_secret_value()}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(),
                timeout=30.0,
                transport=self._transport,
                event_hooks={
                    "request": [_build_rate_limit_hook()],
                    "response": [_build_logging_hook()],
                },
            )
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _request(
        self, method: str, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        client = await self._get_client()
        response = await client.request(method, path, params=params)

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            if not isinstance(payload, dict):
                payload = {}
            message = str(payload.get("error") or response.reason_phrase or "request failed")
            logger.warning(
                "forum_api_error",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            raise ForumClientError(message, status=response.status_code, hint=_text(payload.get("hint")))

        try:
            data = response.json()
        except ValueError as e:
            raise ForumClientError(f"Non-JSON response from {path}", status=response.status_code) from e
        return data if isinstance(data, dict) else {"data": data}

    # --- Threads ---

    async def list_threads(self, limit: int = 20, cursor: str | None = None) -> ThreadPage:
        params: dict[str, Any] = {"limit": limit}
        if cursor:
            params["cursor"] = cursor
        data = await self._request("GET", "/threads", params=params)

        threads: list[Thread] = []
        for item in _records(data, "threads"):
            try:
                threads.append(Thread.model_validate(item))
            except ValidationError as e:
                logger.warning("thread_skipped", error_count=e.error_count())
        count = data.get("count")
        return ThreadPage(
            threads=threads,
            next_cursor=_text(data.get("nextCursor")),
            count=count if isinstance(count, int) and count > 0 else len(threads),
        )

    async def get_thread(self, thread_id: str) -> Thread | None:
        if _is_bad_id(thread_id):
            logger.warning("invalid_thread_id", thread_id=thread_id)
            return None
        try:
            data = await self._request("GET", f"/thread/{thread_id}")
        except ForumClientError as e:
            if e.status == 404:
                return None
            raise
        try:
            return Thread.model_validate(data.get("thread", data.get("data", data)))
        except ValidationError as e:
            raise ForumClientError(f"Malformed thread {thread_id}: {e.error_count()} error(s)") from e

    async def list_posts(self, thread_id: str) -> list[Post]:
        if _is_bad_id(thread_id):
            logger.warning("invalid_thread_id", thread_id=thread_id)
            return []
        data = await self._request("GET", f"/thread/{thread_id}/posts")
        posts: list[Post] = []
        for item in _records(data, "posts"):
            try:
                posts.append(Post.model_validate(item))
            except ValidationError as e:
                logger.warning("post_skipped", thread_id=thread_id, error_count=e.error_count())
        return posts

    # --- Lifecycle ---

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
