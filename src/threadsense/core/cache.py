"""Time-bounded memoization of thread analyses.

Keyed by ``(thread_id, post_count)``: a new reply changes the key, so a
stale analysis is never served for a thread whose content grew. Entries are
immutable, so concurrent writers race harmlessly (last writer wins).
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from threadsense.logger import get_logger
from threadsense.models.insights import ThreadAnalysis

logger = get_logger(__name__)

CacheKey = tuple[str, int]

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class CacheEntry:
    analysis: ThreadAnalysis
    inserted_at: float


class AnalysisCache:
    """In-process TTL map. Expired entries are dropped lazily on read or by ``sweep``."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @staticmethod
    def key(thread_id: str, post_count: int) -> CacheKey:
        return (thread_id, post_count)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at >= self._ttl

    def get(self, key: CacheKey) -> ThreadAnalysis | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            self._entries.pop(key, None)
            logger.debug("analysis_cache_expired", thread_id=key[0], post_count=key[1])
            return None
        return entry.analysis

    def put(self, key: CacheKey, analysis: ThreadAnalysis) -> None:
        self._entries[key] = CacheEntry(analysis=analysis, inserted_at=self._clock())

    def latest_for(self, thread_id: str) -> ThreadAnalysis | None:
        """Freshest unexpired analysis of a thread, whatever its post count."""
        now = self._clock()
        fresh = [
            e for (tid, _), e in self._entries.items() if tid == thread_id and not self._expired(e, now)
        ]
        if not fresh:
            return None
        return max(fresh, key=lambda e: e.inserted_at).analysis

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        now = self._clock()
        stale = [k for k, e in self._entries.items() if self._expired(e, now)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
