"""Mutation models.

A mutation pairs an optimistic local delta with the remote calls that
persist it. Remote calls record their own completion so a retried or
replayed mutation never re-issues a call that already succeeded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from infrastructure.operations.result import OperationResult
from pique.domain.ids import new_id, utc_now
from pique.domain.models import EntityKind
from pique.ordering import OrderedCollection

LocalDelta = Callable[[OrderedCollection], OrderedCollection]


class MutationState(Enum):
    """Lifecycle of a mutation.

    Values:
        IDLE: Created, nothing applied yet
        OPTIMISTICALLY_APPLIED: Local delta visible, remote call pending or retrying
        COMMITTED: Remote confirmed, placeholder ids replaced
        ROLLED_BACK: Remote rejected, local delta reverted
        QUEUED: Remote unreachable, local delta kept and queued for replay
    """

    IDLE = "idle"
    OPTIMISTICALLY_APPLIED = "optimistically_applied"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    QUEUED = "queued"

    @property
    def is_settled(self) -> bool:
        return self in (
            MutationState.COMMITTED,
            MutationState.ROLLED_BACK,
            MutationState.QUEUED,
        )


class RemoteOperation(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class RemoteCall:
    """One call against a remote entity service.

    Attributes:
        entity_kind: Service the call goes to
        operation: create, update or delete
        entity_id: Target entity (placeholder id for creates)
        payload: Entity for creates, patch for updates, empty for deletes
        completed: Whether the call already succeeded
        response: Response of the successful call
    """

    entity_kind: EntityKind
    operation: RemoteOperation
    entity_id: str
    payload: Dict[str, Any] = field(default_factory=dict)
    completed: bool = False
    response: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_kind": self.entity_kind.value,
            "operation": self.operation.value,
            "entity_id": self.entity_id,
            "payload": self.payload,
            "completed": self.completed,
            "response": self.response,
        }

    def remap_ids(self, mapping: Mapping[str, str]) -> bool:
        """Substitute authoritative ids for placeholders; returns True if changed."""
        entity_id = mapping.get(self.entity_id, self.entity_id)
        payload = _remap_value(self.payload, mapping)
        changed = entity_id != self.entity_id or payload != self.payload
        self.entity_id = entity_id
        self.payload = payload
        return changed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RemoteCall":
        return cls(
            entity_kind=EntityKind(data["entity_kind"]),
            operation=RemoteOperation(data["operation"]),
            entity_id=data["entity_id"],
            payload=dict(data.get("payload") or {}),
            completed=bool(data.get("completed", False)),
            response=data.get("response"),
        )

    @classmethod
    def create(cls, entity_kind: EntityKind, entity: Mapping[str, Any]) -> "RemoteCall":
        return cls(entity_kind, RemoteOperation.CREATE, entity["id"], dict(entity))

    @classmethod
    def update(
        cls, entity_kind: EntityKind, entity_id: str, patch: Mapping[str, Any]
    ) -> "RemoteCall":
        return cls(entity_kind, RemoteOperation.UPDATE, entity_id, dict(patch))

    @classmethod
    def delete(cls, entity_kind: EntityKind, entity_id: str) -> "RemoteCall":
        return cls(entity_kind, RemoteOperation.DELETE, entity_id)


@dataclass
class Mutation:
    """An optimistic change and the remote calls that persist it.

    Attributes:
        entity_kind: Kind whose collection ``apply_local`` transforms
        calls: Remote calls, issued sequentially
        apply_local: Pure function from the current collection to the next;
            None for mutations with no local collection (e.g. auto-save)
        label: Short description for logs and display
        project_id: Owning project
        id: Mutation id
        state: Current MutationState
        created_at: When the mutation was created
    """

    entity_kind: EntityKind
    calls: List[RemoteCall]
    apply_local: Optional[LocalDelta] = None
    label: str = ""
    project_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    state: MutationState = MutationState.IDLE
    created_at: datetime = field(default_factory=utc_now)

    @property
    def primary_entity_id(self) -> Optional[str]:
        return self.calls[0].entity_id if self.calls else None

    @property
    def pending_calls(self) -> List[RemoteCall]:
        return [call for call in self.calls if not call.completed]


@dataclass(frozen=True)
class MutationOutcome:
    """How a mutation settled when it did not raise.

    Attributes:
        mutation_id: Mutation the outcome belongs to
        state: COMMITTED or QUEUED
        result: SUCCESS, or the classified connectivity error for QUEUED
        id_map: Placeholder ids replaced by authoritative ones
    """

    mutation_id: str
    state: MutationState
    result: OperationResult
    id_map: Dict[str, str] = field(default_factory=dict)

    @property
    def is_committed(self) -> bool:
        return self.state is MutationState.COMMITTED

    @property
    def is_queued(self) -> bool:
        return self.state is MutationState.QUEUED


def _remap_value(value: Any, mapping: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return mapping.get(value, value)
    if isinstance(value, dict):
        return {k: _remap_value(v, mapping) for k, v in value.items()}
    if isinstance(value, list):
        return [_remap_value(v, mapping) for v in value]
    return value
