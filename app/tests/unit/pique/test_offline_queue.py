"""Unit tests for OfflineQueue.

Tests cover:
- Enqueue, persistence and restore
- Sequential replay in enqueue order
- Halting on failure, dead-lettering and clearing the halt
- Reconnect-triggered replay
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from infrastructure.operations.exceptions import (
    OperationFailedError,
    PiqueError,
    RemoteServiceError,
    StorageQuotaExceededError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.persistence import InMemoryKeyValueStore
from pique.domain.models import EntityKind
from pique.mutations import Mutation, RemoteCall
from pique.offline import OfflineConfig, PendingMutation

SEGMENT = EntityKind.SEGMENT


def make_mutation(segment_id="A", title="Renamed", label="rename"):
    return Mutation(
        SEGMENT,
        [RemoteCall.update(SEGMENT, segment_id, {"title": title})],
        label=label,
    )


@pytest.mark.unit
class TestOfflineQueueStorage:
    """Test suite for enqueue and persistence."""

    def test_enqueue_persists(self, offline_queue_factory, kv_store):
        queue = offline_queue_factory()
        mutation = make_mutation()

        record = queue.enqueue(mutation, last_error="Client is offline")

        assert len(queue) == 1
        assert record.id == mutation.id
        assert record.entity_id == "A"
        assert record.last_error == "Client is offline"
        stored = kv_store.get(queue.storage_key)
        assert [entry["id"] for entry in stored] == [mutation.id]

    def test_enqueue_same_mutation_once(self, offline_queue_factory):
        queue = offline_queue_factory()
        mutation = make_mutation()

        first = queue.enqueue(mutation)
        second = queue.enqueue(mutation)

        assert first is second
        assert len(queue) == 1

    def test_restore_after_restart(self, offline_queue_factory, kv_store):
        queue = offline_queue_factory()
        first, second = make_mutation("A"), make_mutation("B")
        queue.enqueue(first)
        queue.enqueue(second)

        restored = offline_queue_factory()

        assert [e.id for e in restored.entries] == [first.id, second.id]
        assert [e.sequence for e in restored.entries] == [0, 1]
        assert restored.entries[0].calls[0].payload == {"title": "Renamed"}
        third = restored.enqueue(make_mutation("C"))
        assert third.sequence == 2

    def test_enqueue_over_quota_leaves_queue_unchanged(self, offline_queue_factory):
        queue = offline_queue_factory(store=InMemoryKeyValueStore(capacity_bytes=16))

        with pytest.raises(StorageQuotaExceededError):
            queue.enqueue(make_mutation())

        assert len(queue) == 0

    def test_remap_ids_rewrites_and_persists(self, offline_queue_factory, kv_store):
        queue = offline_queue_factory()
        mutation = Mutation(
            EntityKind.QUEUE_ITEM,
            [RemoteCall.create(EntityKind.QUEUE_ITEM, {"id": "temp_i", "segment_id": "temp_a"})],
        )
        queue.enqueue(mutation)

        changed = queue.remap_ids({"temp_a": "seg-1"})

        assert changed == 1
        stored = kv_store.get(queue.storage_key)[0]
        assert stored["payload"]["calls"][0]["payload"]["segment_id"] == "seg-1"

    def test_clear(self, offline_queue_factory, kv_store):
        queue = offline_queue_factory()
        queue.enqueue(make_mutation())

        queue.clear()

        assert len(queue) == 0
        assert kv_store.get(queue.storage_key) == []


@pytest.mark.unit
class TestOfflineQueueReplay:
    """Test suite for replay."""

    @pytest.mark.asyncio
    async def test_replays_in_enqueue_order(self, offline_queue_factory):
        queue = offline_queue_factory()
        mutations = [make_mutation(s) for s in ("A", "B", "C")]
        for mutation in mutations:
            queue.enqueue(mutation)
        processor = AsyncMock()

        stats = await queue.replay(processor)

        assert [c.args[0].id for c in processor.await_args_list] == [m.id for m in mutations]
        assert stats == {"replayed": 3, "remaining": 0, "halted": 0, "dead_lettered": 0}
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_transient_failure_halts_and_keeps_entries(
        self, offline_queue_factory, kv_store
    ):
        queue = offline_queue_factory()
        for segment_id in ("A", "B", "C"):
            queue.enqueue(make_mutation(segment_id))
        processor = AsyncMock(
            side_effect=[None, RemoteServiceError("busy", status_code=503), None]
        )

        stats = await queue.replay(processor)

        assert stats == {"replayed": 1, "remaining": 2, "halted": 1, "dead_lettered": 0}
        assert processor.await_count == 2
        assert [e.entity_id for e in queue.entries] == ["B", "C"]
        assert queue.entries[0].attempts == 1
        assert kv_store.get(queue.storage_key)[0]["attempts"] == 1

    @pytest.mark.asyncio
    async def test_terminal_failure_dead_letters(self, offline_queue_factory, kv_store):
        on_dead_letter = MagicMock()
        queue = offline_queue_factory(on_dead_letter=on_dead_letter)
        doomed = make_mutation("A")
        queue.enqueue(doomed)
        queue.enqueue(make_mutation("B"))
        processor = AsyncMock(
            side_effect=[RemoteServiceError("gone", status_code=404), None]
        )

        stats = await queue.replay(processor)

        assert stats["dead_lettered"] == 1
        assert stats["halted"] == 1
        assert [e.id for e in queue.dead_letters] == [doomed.id]
        assert len(queue) == 1
        on_dead_letter.assert_called_once()
        assert kv_store.get(queue.dead_letter_key)[0]["id"] == doomed.id

    @pytest.mark.asyncio
    async def test_repeated_transient_failures_dead_letter(self, offline_queue_factory):
        queue = offline_queue_factory(max_replay_attempts=2)
        queue.enqueue(make_mutation())
        processor = AsyncMock(
            side_effect=OperationFailedError(
                "busy", OperationResult.transient_error("busy")
            )
        )

        first = await queue.replay(processor)
        second = await queue.replay(processor)

        assert first["dead_lettered"] == 0
        assert second["dead_lettered"] == 1
        assert len(queue.dead_letters) == 1
        assert queue.dead_letters[0].attempts == 2

    @pytest.mark.asyncio
    async def test_unreachable_remote_never_dead_letters(
        self, offline_queue_factory, kv_store
    ):
        """Test lost connectivity keeps the entry however often replay fails."""
        queue = offline_queue_factory(max_replay_attempts=2)
        mutation = make_mutation()
        queue.enqueue(mutation)
        processor = AsyncMock(side_effect=ConnectionError("unreachable"))

        runs = [await queue.replay(processor) for _ in range(5)]

        assert [run["halted"] for run in runs] == [1] * 5
        assert sum(run["dead_lettered"] for run in runs) == 0
        assert queue.dead_letters == ()
        assert [e.id for e in queue.entries] == [mutation.id]
        assert queue.entries[0].attempts == 0
        assert queue.entries[0].last_error.startswith("Network unreachable")
        assert kv_store.get(queue.dead_letter_key) is None

    @pytest.mark.asyncio
    async def test_failed_replay_halts_until_reconnect(
        self, offline_queue_factory, connectivity, no_sleep
    ):
        processor = AsyncMock(
            side_effect=[RemoteServiceError("busy", status_code=503), None]
        )
        queue = offline_queue_factory(processor=processor)
        queue.enqueue(make_mutation())

        await queue.replay()
        assert queue.is_halted is True

        connectivity.set_online(False)
        assert queue.is_halted is True
        (task,) = connectivity.set_online(True)
        assert queue.is_halted is False
        stats = await task

        assert stats["replayed"] == 1
        assert queue.is_halted is False
        assert processor.await_count == 2

    @pytest.mark.asyncio
    async def test_explicit_replay_clears_halt(self, offline_queue_factory):
        queue = offline_queue_factory()
        queue.enqueue(make_mutation())
        processor = AsyncMock(
            side_effect=[RemoteServiceError("busy", status_code=503), None]
        )

        await queue.replay(processor)
        assert queue.is_halted is True
        stats = await queue.replay(processor)

        assert stats["replayed"] == 1
        assert queue.is_halted is False

    @pytest.mark.asyncio
    async def test_replay_stops_when_connectivity_drops(
        self, offline_queue_factory, connectivity
    ):
        queue = offline_queue_factory()
        queue.enqueue(make_mutation("A"))
        queue.enqueue(make_mutation("B"))

        async def drop_connection(record):
            connectivity.set_online(False)

        stats = await queue.replay(AsyncMock(side_effect=drop_connection))

        assert stats == {"replayed": 1, "remaining": 1, "halted": 1, "dead_lettered": 0}

    @pytest.mark.asyncio
    async def test_replay_without_processor(self, offline_queue_factory):
        queue = offline_queue_factory()

        with pytest.raises(PiqueError, match="no replay processor"):
            await queue.replay()

    @pytest.mark.asyncio
    async def test_reconnect_triggers_replay(self, offline_queue_factory, connectivity, no_sleep):
        processor = AsyncMock()
        queue = offline_queue_factory(processor=processor)
        connectivity.set_online(False)
        queue.enqueue(make_mutation())

        (task,) = connectivity.set_online(True)
        stats = await task

        assert stats["replayed"] == 1
        no_sleep.assert_awaited_once_with(OfflineConfig().replay_delay_seconds)

    @pytest.mark.asyncio
    async def test_reconnect_with_empty_queue_does_nothing(
        self, offline_queue_factory, connectivity
    ):
        offline_queue_factory(processor=AsyncMock())
        connectivity.set_online(False)

        assert connectivity.set_online(True) == [None]

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, offline_queue_factory, connectivity):
        queue = offline_queue_factory(processor=AsyncMock())
        queue.close()
        connectivity.set_online(False)
        queue.enqueue(make_mutation())

        assert connectivity.set_online(True) == []


@pytest.mark.unit
class TestPendingMutation:
    """Test suite for the queue entry model."""

    def test_requires_calls(self):
        with pytest.raises(ValueError, match="calls"):
            PendingMutation(id="m-1", entity_kind=SEGMENT, entity_id="A", calls=[])

    def test_serialized_shape(self):
        record = PendingMutation.from_mutation(make_mutation(), sequence=3)

        data = record.to_dict()

        assert data["entity_kind"] == "segment"
        assert data["sequence"] == 3
        assert data["payload"]["label"] == "rename"
        assert data["payload"]["calls"][0]["operation"] == "update"
        assert PendingMutation.from_dict(data).calls[0].payload == {"title": "Renamed"}
