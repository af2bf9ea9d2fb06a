"""Filtering and sorting of segment collections."""

from typing import Iterable, List, Optional, Sequence

from infrastructure.operations.exceptions import InvalidArgumentError
from pique.domain.models import Segment

SORT_KEYS = {
    "title": lambda s: s.title.lower(),
    "start_time": lambda s: s.start_time,
    "duration": lambda s: s.duration,
    "order": lambda s: s.order,
}


def filter_segments(
    segments: Iterable[Segment],
    query: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
) -> List[Segment]:
    """Segments matching ``query`` and carrying every tag in ``tags``.

    The query matches case-insensitively against title, description and tags.
    """
    needle = (query or "").strip().lower()
    required = {tag.lower() for tag in tags or ()}

    matches = []
    for segment in segments:
        segment_tags = {tag.lower() for tag in segment.tags}
        if required and not required <= segment_tags:
            continue
        if needle and not (
            needle in segment.title.lower()
            or needle in segment.description.lower()
            or any(needle in tag for tag in segment_tags)
        ):
            continue
        matches.append(segment)
    return matches


def sort_segments(
    segments: Iterable[Segment], key: str = "order", descending: bool = False
) -> List[Segment]:
    if key not in SORT_KEYS:
        raise InvalidArgumentError(
            f"unknown sort key {key!r}; expected one of {', '.join(SORT_KEYS)}"
        )
    return sorted(segments, key=SORT_KEYS[key], reverse=descending)
