"""Shared fixtures for pique tests."""

from typing import Any, Dict, List
from unittest.mock import AsyncMock

import pytest

from infrastructure.configuration import AutoSaveSettings, Settings
from infrastructure.connectivity import ConnectivityMonitor
from infrastructure.persistence import InMemoryKeyValueStore
from pique.domain.models import EntityKind
from pique.ordering import OrderedCollection
from tests.factories.pique import (
    make_project,
    make_queue_item,
    make_segment,
    make_segments,
)


class FakeEntityService:
    """In-memory remote entity service with AsyncMock call recording.

    Creates return the entity with an authoritative id ``<prefix>-<n>``.
    Override ``create.side_effect`` (or update/delete) to inject failures.
    """

    def __init__(self, prefix: str):
        self.prefix = prefix
        self.entities: Dict[str, Dict[str, Any]] = {}
        self._counter = 0
        self.create = AsyncMock(side_effect=self._create)
        self.update = AsyncMock(side_effect=self._update)
        self.delete = AsyncMock(side_effect=self._delete)

    def _create(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        self._counter += 1
        created = {**entity, "id": f"{self.prefix}-{self._counter}"}
        self.entities[created["id"]] = created
        return created

    def _update(self, entity_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        updated = {**self.entities.get(entity_id, {"id": entity_id}), **patch}
        self.entities[entity_id] = updated
        return updated

    def _delete(self, entity_id: str) -> None:
        self.entities.pop(entity_id, None)


@pytest.fixture
def remote_service_factory():
    """Factory for FakeEntityService instances."""

    def _factory(prefix: str = "remote") -> FakeEntityService:
        return FakeEntityService(prefix)

    return _factory


@pytest.fixture
def remote_services(remote_service_factory):
    """One fake remote service per entity kind."""
    return {
        EntityKind.SEGMENT: remote_service_factory("seg"),
        EntityKind.QUEUE_ITEM: remote_service_factory("item"),
        EntityKind.PROJECT: remote_service_factory("project"),
    }


@pytest.fixture
def no_sleep():
    """Awaitable sleep replacement that returns immediately and records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def connectivity():
    return ConnectivityMonitor(online=True)


@pytest.fixture
def settings_factory():
    """Factory for Settings with auto-save off unless requested."""

    def _factory(autosave_enabled: bool = False, **overrides) -> Settings:
        overrides.setdefault(
            "autosave", AutoSaveSettings(AUTOSAVE_ENABLED=autosave_enabled)
        )
        return Settings(**overrides)

    return _factory


@pytest.fixture
def project():
    return make_project()


@pytest.fixture
def segment_factory():
    """Factory for Segment instances."""

    def _factory(**kwargs):
        return make_segment(**kwargs)

    return _factory


@pytest.fixture
def segment_collection_factory():
    """Factory for ordered segment collections built from ids."""

    def _factory(ids: List[str] = ("A", "B", "C"), **kwargs) -> OrderedCollection:
        return OrderedCollection(make_segments(ids, **kwargs), kind="segment")

    return _factory


@pytest.fixture
def queue_item_factory():
    """Factory for QueueItem instances."""

    def _factory(**kwargs):
        return make_queue_item(**kwargs)

    return _factory
