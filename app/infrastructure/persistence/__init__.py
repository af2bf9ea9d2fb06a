"""Persistence layer for durable client-side state.

Provides quota-bounded key-value stores used by the offline queue and
auto-save pipeline to survive a restart.
"""

from infrastructure.persistence.kv import (
    FileKeyValueStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    StorageQuota,
    serialized_size,
)

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "FileKeyValueStore",
    "StorageQuota",
    "serialized_size",
]
