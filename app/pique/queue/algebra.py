"""Queue algebra: pure operations over a queue item collection."""

import dataclasses
from datetime import datetime
from typing import Optional, Sequence

from pique.domain.ids import new_temp_id, utc_now
from pique.domain.models import QueueItem, Segment
from pique.ordering import OrderedCollection

QueueCollection = OrderedCollection[QueueItem]


def build_queue_item(segment: Segment, now: Optional[datetime] = None) -> QueueItem:
    """New queue item (placeholder id) with a display copy of ``segment``."""
    return QueueItem(
        id=new_temp_id(),
        project_id=segment.project_id,
        segment_id=segment.id,
        segment=segment,
        added_at=now or utc_now(),
    )


def add_item(
    collection: QueueCollection, item: QueueItem, position: Optional[int] = None
) -> QueueCollection:
    """Insert ``item`` at ``position`` (0..N), appending when omitted."""
    if position is None:
        position = len(collection)
    return collection.insert_at(item, position)


def remove_item(collection: QueueCollection, item_id: str) -> QueueCollection:
    return collection.remove_by_id(item_id)


def move_item(collection: QueueCollection, item_id: str, new_index: int) -> QueueCollection:
    return collection.move_by_id(item_id, new_index)


def reorder(collection: QueueCollection, ordered_ids: Sequence[str]) -> QueueCollection:
    return collection.reindex(ordered_ids)


def clear(collection: QueueCollection) -> QueueCollection:
    return OrderedCollection((), kind=collection.kind)


def record_play(
    collection: QueueCollection, item_id: str, now: Optional[datetime] = None
) -> QueueCollection:
    """Increment the item's play count and stamp ``last_played_at``."""
    item = collection.get(item_id)
    played = dataclasses.replace(
        item, play_count=item.play_count + 1, last_played_at=now or utc_now()
    )
    return collection.replace(played)


def refresh_segment(collection: QueueCollection, segment: Segment) -> QueueCollection:
    """Update the display copy of ``segment`` on every item referencing it."""
    return collection.map(
        lambda item: dataclasses.replace(item, segment=segment)
        if item.segment_id == segment.id
        else item
    )

