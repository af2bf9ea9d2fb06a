"""Per-project composition root.

``ProjectSession`` wires the collection stores, error classification,
retry scheduling, offline queue, mutation executor, auto-save and search of
one project from explicit dependencies, and exposes the segment and queue
operations as optimistic mutations.

Ids passed to the operations may be placeholder ids returned by an earlier
call; they are resolved to authoritative ids at the time each delta is
computed, so a caller holding a placeholder keeps working after commit.

Usage:
    session = ProjectSession(project, services, InMemoryKeyValueStore())
    segment = await session.add_segment("Intro", 0, 30)
    first, second = await session.split_segment(segment.id, 20)
"""

import asyncio
import dataclasses
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from infrastructure.caching import InMemoryResultCache
from infrastructure.configuration import Settings
from infrastructure.connectivity import ConnectivityMonitor
from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import ErrorClassifier
from infrastructure.operations.error_log import OperationErrorLog
from infrastructure.operations.result import OperationResult
from infrastructure.persistence import KeyValueStore
from infrastructure.resilience.retry import RetryConfig, RetryScheduler
from infrastructure.resilience.timers import TimerRegistry
from infrastructure.services import get_settings
from pique.autosave import AutoSaveConfig, AutoSavePipeline
from pique.domain.ids import new_temp_id, utc_now
from pique.domain.models import (
    EntityKind,
    Project,
    QueueItem,
    Segment,
    SegmentSettings,
    project_snapshot,
)
from pique.domain.protocols import RemoteEntityService
from pique.mutations import (
    IdRegistry,
    LocalDelta,
    Mutation,
    MutationExecutor,
    MutationOutcome,
    RemoteCall,
    RemoteDispatcher,
)
from pique.offline import OfflineConfig, OfflineQueue, PendingMutation
from pique.ordering import OrderedCollection, OrderedCollectionStore, order_changes
from pique.queue import algebra as queue_algebra
from pique.queue.playback import PlaybackCursor
from pique.search import SearchFunction, SearchService
from pique.segments import algebra as segment_algebra
from pique.segments.history import SegmentHistory

logger = get_module_logger()

SEGMENT = EntityKind.SEGMENT
QUEUE_ITEM = EntityKind.QUEUE_ITEM


def _order_updates(
    kind: EntityKind,
    before: OrderedCollection,
    after: OrderedCollection,
    exclude: Iterable[str] = (),
) -> List[RemoteCall]:
    skip = set(exclude)
    return [
        RemoteCall.update(kind, item_id, {"order": order})
        for item_id, order in order_changes(before, after)
        if item_id not in skip
    ]


def _restore_updates(
    before: OrderedCollection[Segment], after: OrderedCollection[Segment]
) -> List[RemoteCall]:
    calls = []
    for segment in after:
        previous = before.find(segment.id)
        if previous is None:
            continue
        old, new = previous.to_dict(), segment.to_dict()
        patch = {k: v for k, v in new.items() if k != "id" and old.get(k) != v}
        if patch:
            calls.append(RemoteCall.update(SEGMENT, segment.id, patch))
    return calls


class ProjectSession:
    """Segments, queue and persistence machinery of one open project.

    Attributes:
        project: Project metadata
        connectivity: ConnectivityMonitor driving offline behavior
        executor: MutationExecutor, the only writer of the stores
        offline_queue: Durable queue of mutations awaiting connectivity
        autosave: Debounced whole-project save pipeline
        search: SearchService, when a search function was supplied
        cursor: Playback position in the queue
        segment_history: Undo/redo states of the segment collection
    """

    def __init__(
        self,
        project: Project,
        services: Mapping[EntityKind, RemoteEntityService],
        store: KeyValueStore,
        segments: Iterable[Segment] = (),
        queue_items: Iterable[QueueItem] = (),
        connectivity: ConnectivityMonitor | None = None,
        settings: Settings | None = None,
        search_fn: SearchFunction | None = None,
        snapshot_validator: Callable[[dict], bool] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        settings = settings or get_settings()
        self.project = project
        self.connectivity = connectivity or ConnectivityMonitor()
        self.error_log = OperationErrorLog()
        self.ids = IdRegistry()

        self.segment_store: OrderedCollectionStore[Segment] = OrderedCollectionStore(
            SEGMENT.value, segments
        )
        self.queue_store: OrderedCollectionStore[QueueItem] = OrderedCollectionStore(
            QUEUE_ITEM.value, queue_items
        )
        self.segment_history = SegmentHistory(
            self.segment_store.collection, max_size=settings.history.max_size
        )

        self.classifier = ErrorClassifier(is_online=lambda: self.connectivity.is_online)
        self.scheduler = RetryScheduler(
            RetryConfig.from_settings(settings.retry), self.classifier, sleep=sleep
        )
        self.offline_queue = OfflineQueue(
            store,
            project.id,
            config=OfflineConfig.from_settings(settings.offline),
            connectivity=self.connectivity,
            classifier=self.classifier,
            on_dead_letter=self._on_dead_letter,
            sleep=sleep,
        )
        self.dispatcher = RemoteDispatcher(services, self.ids)
        self.executor = MutationExecutor(
            {SEGMENT: self.segment_store, QUEUE_ITEM: self.queue_store},
            self.dispatcher,
            scheduler=self.scheduler,
            offline_queue=self.offline_queue,
            connectivity=self.connectivity,
            error_log=self.error_log,
            project_id=project.id,
        )
        self.autosave = AutoSavePipeline(
            self.executor,
            project.id,
            config=AutoSaveConfig.from_settings(settings.autosave),
            store=store,
            timers=TimerRegistry(sleep=sleep),
            validator=snapshot_validator,
            error_log=self.error_log,
        )
        self.search: Optional[SearchService] = None
        if search_fn is not None:
            self.search = SearchService(
                search_fn,
                cache=InMemoryResultCache.from_settings(settings.cache),
                scheduler=self.scheduler,
            )
        self.cursor = PlaybackCursor()

        self._unsubscribers = [
            self.queue_store.subscribe(
                lambda _: self.cursor.remap_ids(self.ids.as_dict())
            ),
            self.segment_store.subscribe(self._on_collection_change),
            self.queue_store.subscribe(self._on_collection_change),
        ]
        self.log = logger.bind(project_id=project.id)

    # Exposed state

    @property
    def segments(self) -> OrderedCollection[Segment]:
        return self.segment_store.collection

    @property
    def queue(self) -> OrderedCollection[QueueItem]:
        return self.queue_store.collection

    @property
    def pending_change_count(self) -> int:
        return self.executor.pending_change_count

    @property
    def is_saving(self) -> bool:
        return self.autosave.is_saving

    @property
    def last_saved_at(self) -> Optional[datetime]:
        return self.autosave.last_saved_at

    @property
    def has_unsaved_changes(self) -> bool:
        return self.autosave.has_unsaved_changes

    @property
    def last_error(self) -> Optional[OperationResult]:
        entry = self.error_log.last
        return entry.result if entry is not None else None

    def resolve(self, entity_id: str) -> str:
        """Authoritative id for ``entity_id`` if it was a committed placeholder."""
        return self.ids.resolve(entity_id)

    # Plumbing

    async def _apply(
        self,
        kind: EntityKind,
        calls: List[RemoteCall],
        apply_local: LocalDelta,
        label: str,
        record_history: bool = True,
    ) -> MutationOutcome:
        mutation = Mutation(
            entity_kind=kind,
            calls=calls,
            apply_local=apply_local,
            label=label,
            project_id=self.project.id,
        )
        outcome = await self.executor.apply(mutation)
        if kind is SEGMENT and record_history:
            self.segment_history.record(self.segments)
        return outcome

    def _on_collection_change(self, _collection: OrderedCollection) -> None:
        if self.autosave.enabled:
            self.request_autosave()

    def _on_dead_letter(self, record: PendingMutation) -> None:
        self.error_log.record(
            OperationResult.unknown_error(
                record.last_error or "Queued change was discarded",
                error_code="DEAD_LETTERED",
            ),
            mutation_id=record.id,
            label=record.label,
        )

    # Segments

    async def add_segment(
        self,
        title: str,
        start_time: float,
        end_time: float,
        description: str = "",
        tags: Iterable[str] = (),
        settings: Optional[SegmentSettings] = None,
    ) -> Segment:
        """Append a new segment; returns it as currently stored."""
        segment = segment_algebra.create_segment(
            self.project.id,
            title,
            start_time,
            end_time,
            description=description,
            tags=tags,
            settings=settings,
        )
        segment = dataclasses.replace(segment, order=len(self.segments))
        await self._apply(
            SEGMENT,
            [RemoteCall.create(SEGMENT, segment.to_dict())],
            lambda c: c.append(segment),
            "add_segment",
        )
        return self.segments.find(self.resolve(segment.id)) or segment

    async def update_segment(self, segment_id: str, **changes) -> Segment:
        """Update fields of a segment and refresh queue items showing it."""
        now = utc_now()
        current = self.segments.get(self.resolve(segment_id))
        updated = segment_algebra.update_segment(current, now=now, **changes)
        data = updated.to_dict()
        patch = {name: data[name] for name in changes}
        patch["updated_at"] = data["updated_at"]

        def delta(c):
            target = c.get(self.resolve(segment_id))
            return c.replace(segment_algebra.update_segment(target, now=now, **changes))

        await self._apply(
            SEGMENT,
            [RemoteCall.update(SEGMENT, current.id, patch)],
            delta,
            "update_segment",
        )
        refreshed = self.segments.find(self.resolve(segment_id))
        if refreshed is not None and any(
            item.segment_id == refreshed.id for item in self.queue
        ):
            await self._apply(
                QUEUE_ITEM,
                [],
                lambda c: queue_algebra.refresh_segment(c, refreshed),
                "refresh_queue_segment",
            )
        return refreshed or updated

    async def delete_segment(self, segment_id: str) -> None:
        """Delete a segment together with the queue items that play it."""
        target_id = self.resolve(segment_id)
        before = self.segments
        before.get(target_id)

        queued = [item.id for item in self.queue if item.segment_id == target_id]
        if queued:
            await self._remove_queue_items(queued, "remove_deleted_segment_from_queue")

        after = before.remove_by_id(target_id)
        await self._apply(
            SEGMENT,
            [RemoteCall.delete(SEGMENT, target_id)]
            + _order_updates(SEGMENT, before, after),
            lambda c: c.remove_by_id(self.resolve(segment_id)),
            "delete_segment",
        )

    async def split_segment(self, segment_id: str, at_time: float) -> Tuple[Segment, Segment]:
        """Split a segment at ``at_time``; returns the two parts as stored."""
        target_id = self.resolve(segment_id)
        before = self.segments
        result = segment_algebra.split(before, target_id, at_time)
        new_ids = (result.first.id, result.second.id)

        calls = [
            RemoteCall.create(SEGMENT, result.first.to_dict()),
            RemoteCall.create(SEGMENT, result.second.to_dict()),
            RemoteCall.delete(SEGMENT, target_id),
        ] + _order_updates(SEGMENT, before, result.collection, exclude=new_ids)

        await self._apply(
            SEGMENT,
            calls,
            lambda c: segment_algebra.replace_segments(
                c, [self.resolve(segment_id)], [result.first, result.second]
            ),
            "split_segment",
        )
        first = self.segments.find(self.resolve(result.first.id)) or result.first
        second = self.segments.find(self.resolve(result.second.id)) or result.second
        return first, second

    async def merge_segments(self, segment_ids: Sequence[str]) -> Segment:
        """Merge two or more segments; returns the merged segment as stored."""
        before = self.segments
        result = segment_algebra.merge(before, [self.resolve(i) for i in segment_ids])
        removed = list(result.removed_ids)

        calls = [RemoteCall.create(SEGMENT, result.merged.to_dict())]
        calls += [RemoteCall.delete(SEGMENT, removed_id) for removed_id in removed]
        calls += _order_updates(
            SEGMENT, before, result.collection, exclude=[result.merged.id]
        )

        await self._apply(
            SEGMENT,
            calls,
            lambda c: segment_algebra.replace_segments(
                c, [self.resolve(i) for i in removed], [result.merged]
            ),
            "merge_segments",
        )
        return self.segments.find(self.resolve(result.merged.id)) or result.merged

    async def duplicate_segment(self, segment_id: str) -> Segment:
        result = segment_algebra.duplicate(self.segments, self.resolve(segment_id))
        await self._apply(
            SEGMENT,
            [RemoteCall.create(SEGMENT, result.copy.to_dict())],
            lambda c: c.append(result.copy),
            "duplicate_segment",
        )
        return self.segments.find(self.resolve(result.copy.id)) or result.copy

    async def move_segment(self, segment_id: str, new_index: int) -> None:
        before = self.segments
        after = before.move_by_id(self.resolve(segment_id), new_index)
        await self._apply(
            SEGMENT,
            _order_updates(SEGMENT, before, after),
            lambda c: c.move_by_id(self.resolve(segment_id), new_index),
            "move_segment",
        )

    async def reorder_segments(self, ordered_ids: Sequence[str]) -> None:
        before = self.segments
        after = segment_algebra.reorder(before, [self.resolve(i) for i in ordered_ids])
        await self._apply(
            SEGMENT,
            _order_updates(SEGMENT, before, after),
            lambda c: segment_algebra.reorder(c, [self.resolve(i) for i in ordered_ids]),
            "reorder_segments",
        )

    # Segment history

    @property
    def can_undo(self) -> bool:
        return self.segment_history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.segment_history.can_redo

    async def undo_segments(self) -> bool:
        """Restore the segments as they were before the latest change.

        Returns:
            False when there is nothing to undo
        """
        target = self.segment_history.peek_undo()
        if target is None:
            return False
        await self._restore_segments(target, "undo_segments")
        self.segment_history.undo()
        return True

    async def redo_segments(self) -> bool:
        """Reapply the change most recently undone.

        Returns:
            False when there is nothing to redo
        """
        target = self.segment_history.peek_redo()
        if target is None:
            return False
        await self._restore_segments(target, "redo_segments")
        self.segment_history.redo()
        return True

    async def _restore_segments(
        self, target: OrderedCollection[Segment], label: str
    ) -> None:
        """Turn the segment collection into ``target`` as one mutation.

        Segments missing from the current collection are created again under
        fresh placeholder ids, since the remote assigns new ids on create.
        """
        current = self.segments
        target = target.remap_ids(self.ids.as_dict())
        recreated = {s.id: new_temp_id() for s in target if s.id not in current}
        if recreated:
            self.segment_history.remap_ids(recreated)
            target = target.remap_ids(recreated)
        removed = {s.id for s in current if s.id not in target}

        queued = [item.id for item in self.queue if item.segment_id in removed]
        if queued:
            await self._remove_queue_items(queued, "remove_restored_segment_from_queue")

        updates = _restore_updates(current, target)
        calls = [RemoteCall.create(SEGMENT, target.get(i).to_dict()) for i in recreated.values()]
        calls += [RemoteCall.delete(SEGMENT, i) for i in current.ids if i in removed]
        calls += updates
        if not calls:
            return

        await self._apply(
            SEGMENT,
            calls,
            lambda _c: target.remap_ids(self.ids.as_dict()),
            label,
            record_history=False,
        )

        for call in updates:
            refreshed = self.segments.find(self.resolve(call.entity_id))
            if refreshed is not None and any(
                item.segment_id == refreshed.id for item in self.queue
            ):
                await self._apply(
                    QUEUE_ITEM,
                    [],
                    lambda c, s=refreshed: queue_algebra.refresh_segment(c, s),
                    "refresh_queue_segment",
                )

    # Queue

    async def add_to_queue(
        self, segment_id: str, position: Optional[int] = None
    ) -> QueueItem:
        """Queue a segment at ``position`` (default: the end)."""
        segment = self.segments.get(self.resolve(segment_id))
        before = self.queue
        if position is None:
            position = len(before)
        item = queue_algebra.build_queue_item(segment)
        after = queue_algebra.add_item(before, item, position)
        item = after.get(item.id)

        calls = [RemoteCall.create(QUEUE_ITEM, item.to_dict())]
        calls += _order_updates(QUEUE_ITEM, before, after, exclude=[item.id])

        await self._apply(
            QUEUE_ITEM,
            calls,
            lambda c: queue_algebra.add_item(c, item, min(position, len(c))),
            "add_to_queue",
        )
        return self.queue.find(self.resolve(item.id)) or item

    async def remove_from_queue(self, item_id: str) -> None:
        await self._remove_queue_items([item_id], "remove_from_queue")

    async def _remove_queue_items(self, item_ids: Sequence[str], label: str) -> None:
        before = self.queue
        after = before
        for item_id in item_ids:
            after = queue_algebra.remove_item(after, self.resolve(item_id))
        if self.cursor.current_item_id in {self.resolve(i) for i in item_ids}:
            self.cursor.stop()

        def delta(c):
            for item_id in item_ids:
                c = queue_algebra.remove_item(c, self.resolve(item_id))
            return c

        calls = [RemoteCall.delete(QUEUE_ITEM, self.resolve(i)) for i in item_ids]
        calls += _order_updates(QUEUE_ITEM, before, after)
        await self._apply(QUEUE_ITEM, calls, delta, label)

    async def move_queue_item(self, item_id: str, new_index: int) -> None:
        before = self.queue
        after = queue_algebra.move_item(before, self.resolve(item_id), new_index)
        await self._apply(
            QUEUE_ITEM,
            _order_updates(QUEUE_ITEM, before, after),
            lambda c: queue_algebra.move_item(c, self.resolve(item_id), new_index),
            "move_queue_item",
        )

    async def reorder_queue(self, ordered_ids: Sequence[str]) -> None:
        before = self.queue
        after = queue_algebra.reorder(before, [self.resolve(i) for i in ordered_ids])
        await self._apply(
            QUEUE_ITEM,
            _order_updates(QUEUE_ITEM, before, after),
            lambda c: queue_algebra.reorder(c, [self.resolve(i) for i in ordered_ids]),
            "reorder_queue",
        )

    async def clear_queue(self) -> None:
        if not len(self.queue):
            return
        self.cursor.stop()
        await self._apply(
            QUEUE_ITEM,
            [RemoteCall.delete(QUEUE_ITEM, item.id) for item in self.queue],
            queue_algebra.clear,
            "clear_queue",
        )

    # Playback

    async def play(self, item_id: Optional[str] = None) -> Optional[QueueItem]:
        """Start playing an item (default: current or first) and count the play."""
        item = self.cursor.play(
            self.queue, self.resolve(item_id) if item_id is not None else None
        )
        return await self._record_play(item)

    async def play_next(self) -> Optional[QueueItem]:
        return await self._record_play(self.cursor.next_item(self.queue))

    async def play_previous(self) -> Optional[QueueItem]:
        return await self._record_play(self.cursor.previous_item(self.queue))

    def pause(self) -> None:
        self.cursor.pause()

    async def _record_play(self, item: Optional[QueueItem]) -> Optional[QueueItem]:
        if item is None:
            return None
        now = utc_now()
        played = queue_algebra.record_play(self.queue, item.id, now).get(item.id)
        data = played.to_dict()
        await self._apply(
            QUEUE_ITEM,
            [
                RemoteCall.update(
                    QUEUE_ITEM,
                    item.id,
                    {
                        "play_count": data["play_count"],
                        "last_played_at": data["last_played_at"],
                    },
                )
            ],
            lambda c: queue_algebra.record_play(c, self.resolve(item.id), now),
            "record_play",
        )
        return self.queue.find(self.resolve(item.id)) or played

    # Saving

    def snapshot(self) -> dict:
        return project_snapshot(self.project, self.segments, self.queue)

    def request_autosave(self) -> None:
        self.autosave.submit(self.snapshot())

    async def save_now(self) -> Optional[MutationOutcome]:
        return await self.autosave.save(self.snapshot())

    async def replay_offline(self) -> dict:
        """Replay queued changes now instead of waiting for a reconnect."""
        return await self.offline_queue.replay()

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.autosave.close()
        self.offline_queue.close()
        self.scheduler.cancel_all()
        if self.search is not None:
            self.search.cancel()
        self.log.info("project_session_closed", pending=self.pending_change_count)
