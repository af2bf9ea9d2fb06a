"""Segment algebra and search over segment collections."""

from pique.segments.algebra import (
    DuplicateResult,
    MergeResult,
    SplitResult,
    create_segment,
    duplicate,
    merge,
    reorder,
    replace_segments,
    split,
    update_segment,
    validate_segment,
)
from pique.segments.history import MAX_HISTORY_SIZE, SegmentHistory
from pique.segments.search import filter_segments, sort_segments

__all__ = [
    "DuplicateResult",
    "MergeResult",
    "SplitResult",
    "create_segment",
    "duplicate",
    "merge",
    "reorder",
    "replace_segments",
    "split",
    "update_segment",
    "validate_segment",
    "MAX_HISTORY_SIZE",
    "SegmentHistory",
    "filter_segments",
    "sort_segments",
]
