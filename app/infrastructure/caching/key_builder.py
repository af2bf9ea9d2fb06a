"""Cache key builder for consistent key generation."""

import hashlib
from typing import Any


class CacheKeyBuilder:
    """Build deterministic cache keys.

    Provides a consistent key format with namespace isolation and
    collision prevention.

    Example:
        >>> builder = CacheKeyBuilder(namespace="search")
        >>> key = builder.build(operation="videos", query="cats", limit=10)
        >>> key
        'search:videos:9f2c51b03a6e7d44'
    """

    def __init__(self, namespace: str):
        """Initialize key builder.

        Args:
            namespace: Namespace for key isolation (e.g., "search")
        """
        self.namespace = namespace

    def build(self, operation: str, **components: Any) -> str:
        """Build a cache key from components.

        Args:
            operation: Operation type (e.g., "videos")
            **components: Key components (query, filters, limit, etc.)

        Returns:
            Cache key string
        """
        sorted_components = sorted(components.items())

        key_parts = [self.namespace, operation]
        key_parts.extend(f"{k}={v}" for k, v in sorted_components)
        key_string = "|".join(str(part) for part in key_parts)

        key_hash = hashlib.sha256(key_string.encode()).hexdigest()[:16]

        return f"{self.namespace}:{operation}:{key_hash}"
