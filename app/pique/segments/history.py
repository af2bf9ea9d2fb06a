"""Bounded undo/redo history of segment collections.

Each committed segment change records the collection it produced. Recording
after an undo drops the states that could have been redone, and only the
newest ``max_size`` states are kept.
"""

from typing import List, Mapping, Optional

from infrastructure.operations.exceptions import InvalidArgumentError
from pique.segments.algebra import SegmentCollection

MAX_HISTORY_SIZE = 20


class SegmentHistory:
    """Undo/redo log over successive segment collections.

    Attributes:
        max_size: Most states held, the current one included
    """

    def __init__(
        self, initial: SegmentCollection, max_size: int = MAX_HISTORY_SIZE
    ) -> None:
        if max_size < 1:
            raise InvalidArgumentError("history size must be at least 1")
        self.max_size = max_size
        self._states: List[SegmentCollection] = [initial]
        self._index = 0

    @property
    def current(self) -> SegmentCollection:
        return self._states[self._index]

    @property
    def position(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._states) - 1

    def __len__(self) -> int:
        return len(self._states)

    def record(self, collection: SegmentCollection) -> None:
        """Make ``collection`` the newest state, discarding any redo states."""
        if collection == self.current:
            return
        del self._states[self._index + 1 :]
        self._states.append(collection)
        if len(self._states) > self.max_size:
            del self._states[: len(self._states) - self.max_size]
        self._index = len(self._states) - 1

    def peek_undo(self) -> Optional[SegmentCollection]:
        return self._states[self._index - 1] if self.can_undo else None

    def peek_redo(self) -> Optional[SegmentCollection]:
        return self._states[self._index + 1] if self.can_redo else None

    def undo(self) -> SegmentCollection:
        if not self.can_undo:
            raise InvalidArgumentError("nothing to undo")
        self._index -= 1
        return self.current

    def redo(self) -> SegmentCollection:
        if not self.can_redo:
            raise InvalidArgumentError("nothing to redo")
        self._index += 1
        return self.current

    def remap_ids(self, mapping: Mapping[str, str]) -> None:
        """Rewrite segment ids in every held state."""
        if mapping:
            self._states = [state.remap_ids(mapping) for state in self._states]
