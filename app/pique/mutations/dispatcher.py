"""Issues remote calls against per-kind entity services.

Keeps the registry of placeholder ids that the remote has replaced with
authoritative ones, and substitutes known ids into every call before it is
issued, so a call queued while its referenced entity was still a
placeholder reaches the remote with the real id.
"""

from typing import Any, Dict, Mapping, MutableMapping, Optional, Sequence

from infrastructure.logging import get_module_logger
from infrastructure.operations.exceptions import PiqueError
from pique.domain.ids import is_temp_id
from pique.domain.models import EntityKind
from pique.domain.protocols import RemoteEntityService
from pique.mutations.models import RemoteCall, RemoteOperation

logger = get_module_logger()


class IdRegistry:
    """Placeholder id -> authoritative id mapping."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        self._mapping: Dict[str, str] = dict(mapping or {})

    def record(self, placeholder: str, authoritative: str) -> None:
        self._mapping[placeholder] = authoritative

    def resolve(self, entity_id: str) -> str:
        return self._mapping.get(entity_id, entity_id)

    def resolve_value(self, value: Any) -> Any:
        """Substitute known placeholders anywhere inside ``value``."""
        if isinstance(value, str):
            return self._mapping.get(value, value)
        if isinstance(value, dict):
            return {k: self.resolve_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self.resolve_value(v) for v in value]
        return value

    def as_dict(self) -> Dict[str, str]:
        return dict(self._mapping)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)


class RemoteDispatcher:
    """Sends remote calls to the entity service of their kind.

    Attributes:
        services: Entity service per entity kind
        ids: Shared placeholder id registry
    """

    def __init__(
        self,
        services: Mapping[EntityKind, RemoteEntityService],
        ids: Optional[IdRegistry] = None,
    ) -> None:
        self.services: MutableMapping[EntityKind, RemoteEntityService] = dict(services)
        self.ids = ids or IdRegistry()

    def _service(self, entity_kind: EntityKind) -> RemoteEntityService:
        try:
            return self.services[entity_kind]
        except KeyError:
            raise PiqueError(
                f"no remote service registered for {entity_kind.value}"
            ) from None

    async def dispatch(self, calls: Sequence[RemoteCall]) -> Dict[str, str]:
        """Issue every not-yet-completed call, in order.

        Completed calls are skipped, so dispatching the same list again after
        a failure resumes where it stopped.

        Returns:
            Placeholder ids replaced by this dispatch
        """
        replaced: Dict[str, str] = {}
        for call in calls:
            if call.completed:
                continue

            service = self._service(call.entity_kind)
            entity_id = self.ids.resolve(call.entity_id)
            payload = self.ids.resolve_value(call.payload)

            if call.operation is RemoteOperation.CREATE:
                if is_temp_id(payload.get("id")):
                    payload = {k: v for k, v in payload.items() if k != "id"}
                response = await service.create(payload)
                authoritative = response.get("id") if isinstance(response, dict) else None
                if authoritative and is_temp_id(call.entity_id):
                    self.ids.record(call.entity_id, authoritative)
                    replaced[call.entity_id] = authoritative
            elif call.operation is RemoteOperation.UPDATE:
                response = await service.update(entity_id, payload)
            else:
                response = await service.delete(entity_id)

            call.completed = True
            call.response = response
            logger.debug(
                "remote_call_completed",
                entity_kind=call.entity_kind.value,
                operation=call.operation.value,
                entity_id=entity_id,
            )
        return replaced
