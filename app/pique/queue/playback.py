"""Playback cursor over the queue.

Tracks which queue item is current and walks the queue according to the
repeat mode. The cursor holds no items itself; callers pass the current
collection, so it follows optimistic changes and rollbacks.
"""

from enum import Enum
from typing import Optional

from pique.domain.models import QueueItem
from pique.ordering import OrderedCollection


class RepeatMode(Enum):
    NONE = "none"
    ONE = "one"
    ALL = "all"


class PlaybackCursor:
    """Current position and repeat mode of queue playback.

    Attributes:
        current_item_id: Item being played, or None
        is_playing: Whether playback is running
        repeat_mode: How next/previous behave at the ends of the queue
    """

    def __init__(self, repeat_mode: RepeatMode = RepeatMode.NONE) -> None:
        self.current_item_id: Optional[str] = None
        self.is_playing = False
        self.repeat_mode = repeat_mode

    def current(self, collection: OrderedCollection[QueueItem]) -> Optional[QueueItem]:
        if self.current_item_id is None:
            return None
        return collection.find(self.current_item_id)

    def play(
        self, collection: OrderedCollection[QueueItem], item_id: Optional[str] = None
    ) -> Optional[QueueItem]:
        """Start playing ``item_id``, the current item, or the first item."""
        if item_id is not None:
            item = collection.get(item_id)
        else:
            item = self.current(collection) or (collection[0] if len(collection) else None)

        if item is None:
            self.stop()
            return None

        self.current_item_id = item.id
        self.is_playing = True
        return item

    def pause(self) -> None:
        self.is_playing = False

    def stop(self) -> None:
        self.current_item_id = None
        self.is_playing = False

    def _step(
        self, collection: OrderedCollection[QueueItem], delta: int
    ) -> Optional[QueueItem]:
        if not len(collection):
            self.stop()
            return None

        current = self.current(collection)
        if current is None:
            target = 0 if delta > 0 else len(collection) - 1
        elif self.repeat_mode is RepeatMode.ONE:
            target = current.order
        else:
            target = current.order + delta
            if not 0 <= target < len(collection):
                if self.repeat_mode is not RepeatMode.ALL:
                    self.is_playing = False
                    return None
                target %= len(collection)

        item = collection[target]
        self.current_item_id = item.id
        self.is_playing = True
        return item

    def next_item(self, collection: OrderedCollection[QueueItem]) -> Optional[QueueItem]:
        """Advance; returns None at the end unless repeating."""
        return self._step(collection, 1)

    def previous_item(
        self, collection: OrderedCollection[QueueItem]
    ) -> Optional[QueueItem]:
        """Step back; returns None at the start unless repeating."""
        return self._step(collection, -1)

    def remap_ids(self, mapping) -> None:
        if self.current_item_id in mapping:
            self.current_item_id = mapping[self.current_item_id]
