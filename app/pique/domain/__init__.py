"""Domain models, identifiers and remote interfaces."""

from pique.domain.ids import is_temp_id, new_id, new_temp_id, utc_now
from pique.domain.models import (
    EntityKind,
    Project,
    QueueItem,
    Segment,
    SegmentSettings,
    Visibility,
    project_snapshot,
)
from pique.domain.protocols import RemoteEntityService

__all__ = [
    "EntityKind",
    "Project",
    "QueueItem",
    "Segment",
    "SegmentSettings",
    "Visibility",
    "project_snapshot",
    "RemoteEntityService",
    "is_temp_id",
    "new_id",
    "new_temp_id",
    "utc_now",
]
