"""In-memory result cache with TTL expiry and access-count eviction."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from infrastructure.caching.cache import ResultCache
from infrastructure.logging import get_module_logger

logger = get_module_logger()


@dataclass
class CacheEntry:
    """A cached value with its insertion time and hit counter.

    Attributes:
        key: Cache key
        value: Cached value
        inserted_at: Clock reading when the entry was written
        ttl_seconds: Lifetime of the entry
        access_count: Number of hits served by this entry
    """

    key: str
    value: Any
    inserted_at: float
    ttl_seconds: float
    access_count: int = 0

    def is_fresh(self, now: float) -> bool:
        return now - self.inserted_at < self.ttl_seconds


class InMemoryResultCache(ResultCache):
    """Bounded in-memory cache.

    ``get`` only hits while ``now - inserted_at < ttl``; every hit increments
    the entry's access count. After each write, expired entries are removed
    first, then entries other than the one just written in ascending
    (access_count, inserted_at) order until the cache is back within capacity.

    Attributes:
        capacity: Maximum number of entries kept after a write
        ttl_seconds: Default time-to-live for entries
    """

    def __init__(
        self,
        capacity: int = 50,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings, clock: Callable[[], float] = time.monotonic):
        """Build a cache from CacheSettings."""
        return cls(
            capacity=settings.capacity,
            ttl_seconds=settings.ttl_seconds,
            clock=clock,
        )

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                self._misses += 1
                logger.debug("cache_entry_expired", key=key)
                return None

            entry.access_count += 1
            self._hits += 1
            return entry.value

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry for ``key`` without counting a hit."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                inserted_at=self._clock(),
                ttl_seconds=ttl_seconds or self.ttl_seconds,
            )
            self._evict(keep=key)

    def _evict(self, keep: Optional[str] = None) -> None:
        """Drop expired entries, then the least accessed ones other than ``keep``."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if not e.is_fresh(now)]
        for key in expired:
            del self._entries[key]

        overflow = len(self._entries) - self.capacity
        if overflow > 0:
            victims = sorted(
                (e for e in self._entries.values() if e.key != keep),
                key=lambda e: (e.access_count, e.inserted_at),
            )[:overflow]
            for entry in victims:
                del self._entries[entry.key]
        else:
            victims = []

        evicted = len(expired) + len(victims)
        if evicted:
            self._evictions += evicted
            logger.debug(
                "cache_evicted",
                expired=len(expired),
                evicted=len(victims),
                size=len(self._entries),
            )

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.is_fresh(self._clock())

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._entries),
                "capacity": self.capacity,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
