"""Domain models for projects, segments and queue items.

Lightweight frozen dataclasses (not Pydantic). They are immutable so that a
collection captured before an optimistic mutation can be restored verbatim
on rollback. Business rules live in ``pique.segments.algebra`` and
``pique.queue.algebra``; these classes only carry data and serialize it.

Key distinctions:
  - Segment: a titled time range of a video, ordered within its project
  - QueueItem: a playback entry referencing a segment, ordered separately
  - Project: metadata for the owner of both collections
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from pique.domain.ids import format_timestamp, parse_timestamp, utc_now


class EntityKind(Enum):
    """Kinds of remotely persisted entities."""

    SEGMENT = "segment"
    QUEUE_ITEM = "queue_item"
    PROJECT = "project"


class Visibility(Enum):
    PRIVATE = "private"
    UNLISTED = "unlisted"
    PUBLIC = "public"


@dataclass(frozen=True)
class SegmentSettings:
    """Playback settings attached to a segment.

    Attributes:
        auto_play: Start playing when selected
        loop: Repeat the segment until stopped
        volume: Volume percentage (0-100)
        playback_rate: Playback speed multiplier
        fade_in: Fade-in duration in seconds
        fade_out: Fade-out duration in seconds
    """

    auto_play: bool = False
    loop: bool = False
    volume: int = 100
    playback_rate: float = 1.0
    fade_in: float = 0.0
    fade_out: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "auto_play": self.auto_play,
            "loop": self.loop,
            "volume": self.volume,
            "playback_rate": self.playback_rate,
            "fade_in": self.fade_in,
            "fade_out": self.fade_out,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SegmentSettings":
        if not data:
            return cls()
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass(frozen=True)
class Segment:
    """A bookmarked time range of a video.

    Attributes:
        id: Authoritative id, or a placeholder until created remotely
        project_id: Owning project
        title: Display title
        start_time: Start of the range in seconds
        end_time: End of the range in seconds (greater than start_time)
        description: Free text
        tags: Set of tags
        order: Position within the project's segment collection
        settings: Playback settings
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    id: str
    project_id: str
    title: str
    start_time: float
    end_time: float
    description: str = ""
    tags: FrozenSet[str] = frozenset()
    order: int = 0
    settings: SegmentSettings = field(default_factory=SegmentSettings)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def remap_ids(self, mapping: Mapping[str, str]) -> "Segment":
        if self.id in mapping:
            return replace(self, id=mapping[self.id])
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "tags": sorted(self.tags),
            "order": self.order,
            "settings": self.settings.to_dict(),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Segment":
        return cls(
            id=data["id"],
            project_id=data["project_id"],
            title=data["title"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            description=data.get("description") or "",
            tags=frozenset(data.get("tags") or ()),
            order=data.get("order", 0),
            settings=SegmentSettings.from_dict(data.get("settings")),
            created_at=parse_timestamp(data.get("created_at")) or utc_now(),
            updated_at=parse_timestamp(data.get("updated_at")) or utc_now(),
        )


@dataclass(frozen=True)
class QueueItem:
    """A playback queue entry referencing a segment.

    Attributes:
        id: Authoritative id, or a placeholder until created remotely
        project_id: Owning project
        segment_id: Referenced segment
        segment: Denormalized copy of the segment for display
        order: Position within the queue (separate namespace from segments)
        play_count: Number of times the item was played (never decreases)
        added_at: When the item was added to the queue
        last_played_at: When the item was last played, if ever
    """

    id: str
    project_id: str
    segment_id: str
    segment: Optional[Segment] = None
    order: int = 0
    play_count: int = 0
    added_at: datetime = field(default_factory=utc_now)
    last_played_at: Optional[datetime] = None

    def remap_ids(self, mapping: Mapping[str, str]) -> "QueueItem":
        changes: Dict[str, Any] = {}
        if self.id in mapping:
            changes["id"] = mapping[self.id]
        if self.segment_id in mapping:
            changes["segment_id"] = mapping[self.segment_id]
        if self.segment is not None:
            segment = self.segment.remap_ids(mapping)
            if segment is not self.segment:
                changes["segment"] = segment
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "segment_id": self.segment_id,
            "segment": self.segment.to_dict() if self.segment else None,
            "order": self.order,
            "play_count": self.play_count,
            "added_at": format_timestamp(self.added_at),
            "last_played_at": format_timestamp(self.last_played_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueueItem":
        segment = data.get("segment")
        return cls(
            id=data["id"],
            project_id=data["project_id"],
            segment_id=data["segment_id"],
            segment=Segment.from_dict(segment) if segment else None,
            order=data.get("order", 0),
            play_count=data.get("play_count", 0),
            added_at=parse_timestamp(data.get("added_at")) or utc_now(),
            last_played_at=parse_timestamp(data.get("last_played_at")),
        )


@dataclass(frozen=True)
class Project:
    """Project metadata. The project owns one segment and one queue collection."""

    id: str
    name: str
    owner_id: str
    visibility: Visibility = Visibility.PRIVATE
    description: str = ""
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "visibility": self.visibility.value,
            "description": self.description,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data["name"],
            owner_id=data["owner_id"],
            visibility=Visibility(data.get("visibility", Visibility.PRIVATE.value)),
            description=data.get("description") or "",
            created_at=parse_timestamp(data.get("created_at")) or utc_now(),
            updated_at=parse_timestamp(data.get("updated_at")) or utc_now(),
        )


def project_snapshot(
    project: Project,
    segments: Iterable[Segment],
    queue_items: Iterable[QueueItem],
) -> Dict[str, Any]:
    """Serialize a whole project state for auto-save."""
    return {
        "project": project.to_dict(),
        "segments": [segment.to_dict() for segment in segments],
        "queue": [item.to_dict() for item in queue_items],
    }
