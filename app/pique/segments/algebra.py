"""Segment algebra: create, update, split, merge, duplicate and reorder.

Every function is synchronous and pure: it takes the current segment
collection and returns the next one (plus the segments it produced) without
talking to remote storage. Invalid input raises ``InvalidArgumentError`` or
``EntityNotFoundError`` before anything is applied.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from infrastructure.operations.exceptions import InvalidArgumentError
from pique.domain.ids import new_temp_id, utc_now
from pique.domain.models import Segment, SegmentSettings
from pique.ordering import OrderedCollection

SegmentCollection = OrderedCollection[Segment]

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "start_time", "end_time", "tags", "settings"}
)


@dataclass(frozen=True)
class SplitResult:
    collection: SegmentCollection
    first: Segment
    second: Segment


@dataclass(frozen=True)
class MergeResult:
    collection: SegmentCollection
    merged: Segment
    removed_ids: Tuple[str, ...]


@dataclass(frozen=True)
class DuplicateResult:
    collection: SegmentCollection
    copy: Segment


def validate_segment(title: str, start_time: float, end_time: float) -> None:
    """Check the fields every segment must satisfy.

    Raises:
        InvalidArgumentError: If the title is blank, start_time is negative or
            end_time does not come after start_time
    """
    errors = []
    if not title or not title.strip():
        errors.append("title is required")
    if start_time < 0:
        errors.append("start_time must be non-negative")
    if end_time <= start_time:
        errors.append("end_time must be greater than start_time")
    if errors:
        raise InvalidArgumentError("; ".join(errors))


def create_segment(
    project_id: str,
    title: str,
    start_time: float,
    end_time: float,
    description: str = "",
    tags: Iterable[str] = (),
    settings: Optional[SegmentSettings] = None,
    now: Optional[datetime] = None,
) -> Segment:
    """Build a new validated segment with a placeholder id."""
    validate_segment(title, start_time, end_time)
    now = now or utc_now()
    return Segment(
        id=new_temp_id(),
        project_id=project_id,
        title=title.strip(),
        description=description,
        start_time=start_time,
        end_time=end_time,
        tags=frozenset(tags),
        settings=settings or SegmentSettings(),
        created_at=now,
        updated_at=now,
    )


def update_segment(
    segment: Segment, now: Optional[datetime] = None, **changes
) -> Segment:
    """Return ``segment`` with ``changes`` applied and re-validated."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidArgumentError(
            f"cannot update segment fields: {', '.join(sorted(unknown))}"
        )
    if "tags" in changes:
        changes["tags"] = frozenset(changes["tags"])
    updated = dataclasses.replace(segment, updated_at=now or utc_now(), **changes)
    validate_segment(updated.title, updated.start_time, updated.end_time)
    return updated


def split(
    collection: SegmentCollection,
    segment_id: str,
    at_time: float,
    now: Optional[datetime] = None,
) -> SplitResult:
    """Split a segment in two at ``at_time``.

    The parts replace the original at its position and the one after it.

    Raises:
        InvalidArgumentError: Unless start_time < at_time < end_time
        EntityNotFoundError: If the segment is not in the collection
    """
    segment = collection.get(segment_id)
    if not segment.start_time < at_time < segment.end_time:
        raise InvalidArgumentError(
            f"split point {at_time} must lie strictly between "
            f"{segment.start_time} and {segment.end_time}"
        )
    now = now or utc_now()
    first = dataclasses.replace(
        segment,
        id=new_temp_id(),
        title=f"{segment.title} (Part 1)",
        end_time=at_time,
        created_at=now,
        updated_at=now,
    )
    second = dataclasses.replace(
        segment,
        id=new_temp_id(),
        title=f"{segment.title} (Part 2)",
        start_time=at_time,
        created_at=now,
        updated_at=now,
    )
    updated = replace_segments(collection, [segment_id], [first, second])
    return SplitResult(updated, updated.get(first.id), updated.get(second.id))


def merge(
    collection: SegmentCollection,
    segment_ids: Sequence[str],
    now: Optional[datetime] = None,
) -> MergeResult:
    """Merge two or more segments of the same project into one.

    The merged segment spans from the earliest start to the end of the
    latest-starting input and takes the smallest order index of the inputs.

    Raises:
        InvalidArgumentError: Fewer than two distinct segments, or segments
            from different projects
        EntityNotFoundError: If a segment is not in the collection
    """
    unique_ids = list(dict.fromkeys(segment_ids))
    if len(unique_ids) < 2:
        raise InvalidArgumentError("merge requires at least two segments")

    segments = sorted(
        (collection.get(segment_id) for segment_id in unique_ids),
        key=lambda s: s.start_time,
    )
    if len({s.project_id for s in segments}) != 1:
        raise InvalidArgumentError("merged segments must belong to the same project")

    first, last = segments[0], segments[-1]
    tags = frozenset().union(*(s.tags for s in segments))
    now = now or utc_now()
    merged = Segment(
        id=new_temp_id(),
        project_id=first.project_id,
        title=" + ".join(s.title for s in segments),
        description=" | ".join(s.description for s in segments if s.description),
        start_time=first.start_time,
        end_time=last.end_time,
        tags=tags,
        settings=first.settings,
        created_at=now,
        updated_at=now,
    )
    updated = replace_segments(collection, unique_ids, [merged])
    return MergeResult(updated, updated.get(merged.id), tuple(unique_ids))


def duplicate(
    collection: SegmentCollection,
    segment_id: str,
    now: Optional[datetime] = None,
) -> DuplicateResult:
    """Copy a segment to the end of the collection."""
    segment = collection.get(segment_id)
    now = now or utc_now()
    copy = dataclasses.replace(
        segment,
        id=new_temp_id(),
        title=f"{segment.title} (Copy)",
        order=len(collection),
        created_at=now,
        updated_at=now,
    )
    updated = collection.append(copy)
    return DuplicateResult(updated, updated.get(copy.id))


def reorder(collection: SegmentCollection, ordered_ids: Sequence[str]) -> SegmentCollection:
    return collection.reindex(ordered_ids)


def replace_segments(
    collection: SegmentCollection,
    remove_ids: Sequence[str],
    inserts: Sequence[Segment],
) -> SegmentCollection:
    """Swap ``remove_ids`` for ``inserts`` at the first removed position."""
    return collection.replace_many(remove_ids, inserts)

