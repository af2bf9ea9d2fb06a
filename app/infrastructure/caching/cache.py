"""Result cache abstract base class."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class ResultCache(ABC):
    """Abstract base class for result cache implementations.

    Defines the interface for caching the results of idempotent read
    operations (e.g. repeated search queries) so they are not re-issued
    while still fresh.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get the cached value for ``key``.

        Args:
            key: Cache key (see CacheKeyBuilder).

        Returns:
            Cached value or None if not found/expired.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Cache a value for the given key.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl_seconds: Optional time-to-live overriding the cache default.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key`` from the cache.

        Returns:
            True if an entry was removed.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all cached entries."""
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with cache statistics (implementation-specific).
        """
        pass
