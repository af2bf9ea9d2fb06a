"""Bounded log of classified operation errors for display."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


@dataclass(frozen=True)
class ErrorLogEntry:
    """A classified error together with where it happened."""

    result: OperationResult
    context: Dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> OperationStatus:
        return self.result.status

    @property
    def message(self) -> str:
        return self.result.message


class OperationErrorLog:
    """Keeps the most recent classified errors, newest last."""

    def __init__(self, max_entries: int = 50) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._entries: Deque[ErrorLogEntry] = deque(maxlen=max_entries)

    def record(self, result: OperationResult, **context: Any) -> ErrorLogEntry:
        entry = ErrorLogEntry(result=result, context=context)
        self._entries.append(entry)
        return entry

    @property
    def last(self) -> Optional[ErrorLogEntry]:
        return self._entries[-1] if self._entries else None

    def entries(self, status: Optional[OperationStatus] = None) -> List[ErrorLogEntry]:
        """Return logged entries, optionally only those with ``status``."""
        if status is None:
            return list(self._entries)
        return [entry for entry in self._entries if entry.status == status]

    def clear(self, status: Optional[OperationStatus] = None) -> None:
        if status is None:
            self._entries.clear()
            return
        kept = [entry for entry in self._entries if entry.status != status]
        self._entries.clear()
        self._entries.extend(kept)

    def __len__(self) -> int:
        return len(self._entries)
