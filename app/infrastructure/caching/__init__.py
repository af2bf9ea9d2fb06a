"""Result caching for idempotent read operations.

Public API:
    - ResultCache: Abstract cache interface
    - InMemoryResultCache: TTL + access-count eviction implementation
    - CacheEntry: Stored entry
    - CacheKeyBuilder: Deterministic key generation
"""

from infrastructure.caching.cache import ResultCache
from infrastructure.caching.key_builder import CacheKeyBuilder
from infrastructure.caching.memory import CacheEntry, InMemoryResultCache

__all__ = [
    "ResultCache",
    "InMemoryResultCache",
    "CacheEntry",
    "CacheKeyBuilder",
]
