"""Quota-bounded key-value persistence.

Stores JSON-serializable values under string keys and reports the quota
consumed, so offline mutations and auto-save state survive a restart and
callers can check a write fits before attempting it.
"""

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote, unquote

from infrastructure.logging import get_module_logger
from infrastructure.operations.exceptions import StorageQuotaExceededError

logger = get_module_logger()

DEFAULT_CAPACITY_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class StorageQuota:
    """Quota reported by a key-value store.

    Attributes:
        used_bytes: Bytes currently occupied
        available_bytes: Bytes still free
    """

    used_bytes: int
    available_bytes: int

    def fits(self, size_bytes: int) -> bool:
        return size_bytes <= self.available_bytes


def serialized_size(value: Any) -> int:
    """Size in bytes of ``value`` once serialized for storage."""
    return len(json.dumps(value, sort_keys=True, default=str).encode("utf-8"))


class KeyValueStore(Protocol):
    """Storage interface for durable client-side state.

    Methods:
        get: Return the stored value or None
        set: Store a value, raising StorageQuotaExceededError when it does not fit
        delete: Remove a key
        quota: Report used and available bytes
    """

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def quota(self) -> StorageQuota: ...


class InMemoryKeyValueStore:
    """In-memory implementation of KeyValueStore with a byte capacity.

    Values are kept serialized so that readers never share mutable state
    with writers.
    """

    def __init__(self, capacity_bytes: int = DEFAULT_CAPACITY_BYTES) -> None:
        if capacity_bytes < 1:
            raise ValueError("capacity_bytes must be at least 1")
        self.capacity_bytes = capacity_bytes
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _used(self) -> int:
        return sum(len(k.encode()) + len(v.encode()) for k, v in self._data.items())

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value, sort_keys=True, default=str)
        with self._lock:
            previous = self._data.get(key)
            used = self._used()
            if previous is not None:
                used -= len(key.encode()) + len(previous.encode())
            required = len(key.encode()) + len(raw.encode())
            available = self.capacity_bytes - used
            if required > available:
                logger.warning(
                    "storage_quota_exceeded",
                    key=key,
                    required_bytes=required,
                    available_bytes=available,
                )
                raise StorageQuotaExceededError(required, available)
            self._data[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def quota(self) -> StorageQuota:
        with self._lock:
            used = self._used()
        return StorageQuota(used_bytes=used, available_bytes=self.capacity_bytes - used)

    def keys(self):
        with self._lock:
            return list(self._data)


class FileKeyValueStore:
    """KeyValueStore backed by one JSON file per key in a directory."""

    def __init__(
        self, directory: str | Path, capacity_bytes: int = DEFAULT_CAPACITY_BYTES
    ) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.capacity_bytes = capacity_bytes
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def _used(self) -> int:
        return sum(path.stat().st_size for path in self.directory.glob("*.json"))

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        with self._lock:
            if not path.exists():
                return None
            return json.loads(path.read_text(encoding="utf-8"))

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value, sort_keys=True, default=str).encode("utf-8")
        path = self._path(key)
        with self._lock:
            used = self._used()
            if path.exists():
                used -= path.stat().st_size
            available = self.capacity_bytes - used
            if len(raw) > available:
                logger.warning(
                    "storage_quota_exceeded",
                    key=key,
                    required_bytes=len(raw),
                    available_bytes=available,
                )
                raise StorageQuotaExceededError(len(raw), available)
            tmp = path.with_suffix(".tmp")
            tmp.write_bytes(raw)
            tmp.replace(path)

    def delete(self, key: str) -> None:
        with self._lock:
            self._path(key).unlink(missing_ok=True)

    def quota(self) -> StorageQuota:
        with self._lock:
            used = self._used()
        return StorageQuota(used_bytes=used, available_bytes=self.capacity_bytes - used)

    def keys(self):
        with self._lock:
            return [unquote(path.stem) for path in self.directory.glob("*.json")]
