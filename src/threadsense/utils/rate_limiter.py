"""Sliding-window limiter for outbound generative calls."""

import asyncio
import time
from collections import deque


class RateLimiter:
    """Allows at most ``max_requests`` acquisitions per ``window_seconds``."""

    def __init__(self, max_requests: int, window_seconds: float = 60.0) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self._max_requests = max_requests
        self._window = window_seconds
        self._timestamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        cutoff = now - self._window
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()

    async def acquire(self) -> float:
        """Wait for a free slot. Returns the number of seconds spent waiting."""
        async with self._lock:
            now = time.monotonic()
            self._evict(now)

            waited = 0.0
            if len(self._timestamps) >= self._max_requests:
                waited = self._timestamps[0] + self._window - now
                if waited > 0:
                    await asyncio.sleep(waited)
                self._evict(time.monotonic())

            self._timestamps.append(time.monotonic())
            return max(0.0, waited)

    @property
    def remaining(self) -> int:
        """Number of requests available in the current window."""
        self._evict(time.monotonic())
        return max(0, self._max_requests - len(self._timestamps))
