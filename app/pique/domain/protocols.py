"""Interfaces of the remote backend consumed by the mutation core."""

from typing import Any, Dict, Protocol


class RemoteEntityService(Protocol):
    """CRUD service for one entity kind.

    Each call may raise ``RemoteServiceError`` (or a connection/timeout
    error) that the ErrorClassifier can categorize.

    Example:
        class HttpSegmentService:
            async def create(self, entity):
                response = await client.post("/segments", json=entity)
                return response.json()
    """

    async def create(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        """Create the entity and return it with its authoritative ``id``."""
        ...

    async def update(self, entity_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Apply ``patch`` to the entity and return the updated entity."""
        ...

    async def delete(self, entity_id: str) -> None:
        """Delete the entity."""
        ...
