"""Playback queue algebra and cursor."""

from pique.queue.algebra import (
    add_item,
    build_queue_item,
    clear,
    move_item,
    record_play,
    refresh_segment,
    remove_item,
    reorder,
)
from pique.queue.playback import PlaybackCursor, RepeatMode

__all__ = [
    "add_item",
    "build_queue_item",
    "clear",
    "move_item",
    "record_play",
    "refresh_segment",
    "remove_item",
    "reorder",
    "PlaybackCursor",
    "RepeatMode",
]
