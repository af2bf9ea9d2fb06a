"""Offline queue entry model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pique.domain.ids import format_timestamp, parse_timestamp, utc_now
from pique.domain.models import EntityKind
from pique.mutations.models import Mutation, RemoteCall


@dataclass
class PendingMutation:
    """A mutation waiting for connectivity to be replayed.

    Fields:
        id: Id of the mutation that was queued (one entry per mutation)
        entity_kind: Kind of the entity the mutation targets
        entity_id: Entity the first remote call targets
        calls: Remote calls still to issue (completed ones are kept but skipped)
        label: Short description of the mutation
        enqueued_at: When the entry was queued
        attempts: Replay attempts made so far
        sequence: Monotonic enqueue position
        last_error: Message of the last failed replay

    Example:
        record = PendingMutation.from_mutation(mutation, sequence=3)
        record.to_dict()["payload"]["calls"][0]["operation"]  # "update"
    """

    id: str
    entity_kind: EntityKind
    entity_id: str
    calls: List[RemoteCall]
    label: str = ""
    enqueued_at: datetime = field(default_factory=utc_now)
    attempts: int = 0
    sequence: int = 0
    last_error: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.id:
            raise ValueError("id is required")
        if not self.calls:
            raise ValueError("calls must not be empty")

    @property
    def payload(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "calls": [call.to_dict() for call in self.calls],
        }

    @classmethod
    def from_mutation(
        cls,
        mutation: Mutation,
        sequence: int = 0,
        last_error: Optional[str] = None,
    ) -> "PendingMutation":
        return cls(
            id=mutation.id,
            entity_kind=mutation.entity_kind,
            entity_id=mutation.primary_entity_id or "",
            calls=mutation.calls,
            label=mutation.label,
            sequence=sequence,
            last_error=last_error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entity_kind": self.entity_kind.value,
            "entity_id": self.entity_id,
            "payload": self.payload,
            "enqueued_at": format_timestamp(self.enqueued_at),
            "attempts": self.attempts,
            "sequence": self.sequence,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PendingMutation":
        payload = data.get("payload") or {}
        return cls(
            id=data["id"],
            entity_kind=EntityKind(data["entity_kind"]),
            entity_id=data.get("entity_id", ""),
            calls=[RemoteCall.from_dict(call) for call in payload.get("calls", [])],
            label=payload.get("label", ""),
            enqueued_at=parse_timestamp(data.get("enqueued_at")) or utc_now(),
            attempts=data.get("attempts", 0),
            sequence=data.get("sequence", 0),
            last_error=data.get("last_error"),
        )
