"""Fixtures for pique mutation core tests."""

import pytest

from infrastructure.resilience.retry import RetryConfig, RetryScheduler
from pique.domain.models import EntityKind
from pique.mutations import IdRegistry, MutationExecutor, RemoteDispatcher
from pique.offline import OfflineConfig, OfflineQueue
from pique.ordering import OrderedCollectionStore
from tests.factories import make_segments


@pytest.fixture
def offline_queue_factory(kv_store, connectivity, no_sleep):
    """Factory for OfflineQueue instances on the shared kv store."""

    def _factory(store=None, max_replay_attempts: int = 5, **kwargs) -> OfflineQueue:
        return OfflineQueue(
            store if store is not None else kv_store,
            "project-1",
            config=OfflineConfig(max_replay_attempts=max_replay_attempts),
            connectivity=kwargs.pop("connectivity", connectivity),
            sleep=no_sleep,
            **kwargs,
        )

    return _factory


@pytest.fixture
def executor_factory(remote_services, connectivity, no_sleep, offline_queue_factory):
    """Factory for MutationExecutor over segment and queue item stores.

    The segment store starts with segments A, B and C unless told otherwise.
    """

    def _factory(
        segment_ids=("A", "B", "C"),
        exhausted_policy: str = "queue",
        offline: bool = True,
        store=None,
    ) -> MutationExecutor:
        stores = {
            EntityKind.SEGMENT: OrderedCollectionStore(
                "segment", make_segments(segment_ids)
            ),
            EntityKind.QUEUE_ITEM: OrderedCollectionStore("queue_item"),
        }
        dispatcher = RemoteDispatcher(remote_services, IdRegistry())
        scheduler = RetryScheduler(
            RetryConfig(exhausted_policy=exhausted_policy), sleep=no_sleep
        )
        return MutationExecutor(
            stores,
            dispatcher,
            scheduler=scheduler,
            offline_queue=offline_queue_factory(store=store) if offline else None,
            connectivity=connectivity,
            project_id="project-1",
        )

    return _factory
