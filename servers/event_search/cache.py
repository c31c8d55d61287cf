"""
Search result caching.

SearchCache is a small in-memory TTL cache; CachedEventSearch wraps a
pipeline so repeated identical searches are answered from it. The pipeline
itself knows nothing about caching.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog

from .models import SearchParams, SearchResult

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry(Generic[T]):
    value: T
    expires_at: float


class SearchCache(Generic[T]):
    """In-memory TTL cache with a size cap.

    When full, the entry closest to expiry is evicted first.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = 100,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry[T]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        """Return the live entry for key, or None."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expires_at <= self.clock():
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            return
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self.evict_expired()
            if len(self._entries) >= self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
                del self._entries[oldest]
        self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + ttl)

    def evict_expired(self) -> int:
        """Drop expired entries, returning how many were removed."""
        now = self.clock()
        expired = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
        }


class CachedEventSearch:
    """Serve searches from a SearchCache, delegating misses to a pipeline."""

    def __init__(self, pipeline: Any, cache: Optional[SearchCache[SearchResult]] = None, ttl: Optional[float] = None):
        self.pipeline = pipeline
        self.cache = cache or SearchCache()
        self.ttl = ttl

    async def search(self, raw_params: SearchParams | dict[str, Any] | None) -> SearchResult:
        """Search with caching; validation errors are raised before any lookup."""
        params = self.pipeline.parse_params(raw_params)
        key = params.cache_key()

        entry = self.cache.get(key)
        if entry is not None:
            logger.info("search_cache_hit", page=params.page)
            meta = entry.value.meta.model_copy(update={"cached": True})
            return entry.value.model_copy(update={"meta": meta})

        result = await self.pipeline.search(params)
        # Results with failed providers are not cached
        if not result.failed_sources:
            self.cache.set(key, result, self.ttl)
        return result
