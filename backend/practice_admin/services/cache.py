# query cache: explicit key -> value store with tag invalidation
# keys are tuples whose first element is the tag, e.g. ("incomeData", "2024-05-01", "2024-07-31")
# mutations invalidate by tag so the next read refetches from the backend

import logging
import time
from typing import Any, Awaitable, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, ...]


class QueryCache:
    """process-wide cache of backend reads.
    no single-flight: two concurrent misses for one key both run the fetcher."""

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        # bumped on every invalidation of a tag, a fetch started before the bump is not stored
        self._generations: dict[Hashable, int] = {}
        self._epoch = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self._lookup(key) is not _MISS

    def get(self, key: CacheKey, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISS else value

    def set(self, key: CacheKey, value: Any):
        if not key:
            raise ValueError("cache key must not be empty")
        self._entries[key] = (time.monotonic(), value)

    async def get_or_fetch(self, key: CacheKey, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """cached value for key, or await fetcher and store its result.
        failures propagate and are not cached."""
        value = self._lookup(key)
        if value is not _MISS:
            logger.debug(f"Cache hit: {key}")
            return value

        logger.debug(f"Cache miss: {key}")
        started = self._generation(key[0])
        value = await fetcher()
        if self._generation(key[0]) == started:
            self.set(key, value)
        else:
            logger.debug(f"Discarding fetch for {key}, invalidated while in flight")
        return value

    def invalidate(self, tag: Hashable) -> int:
        """drop every entry whose key starts with tag, returns the number dropped"""
        self._generations[tag] = self._generations.get(tag, 0) + 1
        stale = [key for key in self._entries if key[0] == tag]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries for {tag}")
        return len(stale)

    def invalidate_many(self, *tags: Hashable) -> int:
        return sum(self.invalidate(tag) for tag in tags)

    def clear(self):
        self._entries.clear()
        self._epoch += 1

    def _generation(self, tag: Hashable) -> tuple[int, int]:
        return (self._epoch, self._generations.get(tag, 0))

    def _lookup(self, key: CacheKey):
        entry = self._entries.get(key)
        if entry is None:
            return _MISS
        stored_at, value = entry
        if self.ttl_seconds is not None and time.monotonic() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return _MISS
        return value


_MISS = object()

# singleton instance
query_cache = QueryCache()


async def get_cache() -> QueryCache:
    """dependency injection for the query cache"""
    return query_cache
