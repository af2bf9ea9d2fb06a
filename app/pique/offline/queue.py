"""Durable queue of mutations waiting for connectivity.

Entries are persisted through a key-value store after every change so they
survive a restart. Replay is strictly sequential in enqueue order: each
entry's remote calls are awaited before the next entry starts, so a
dependent mutation (e.g. adding a new segment to the queue) never reaches
the remote before the mutation it depends on.

A failed replay leaves the queue halted. Only a reconnect or an explicit
``replay()`` clears the halt; until then callers queue new mutations behind
the pending ones without asking for another replay.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from infrastructure.connectivity import ConnectivityChange, ConnectivityMonitor
from infrastructure.logging import get_module_logger
from infrastructure.operations.classifiers import ErrorClassifier
from infrastructure.operations.exceptions import OperationCancelledError, PiqueError
from infrastructure.persistence import KeyValueStore
from pique.mutations.models import Mutation
from pique.offline.config import OfflineConfig
from pique.offline.models import PendingMutation

logger = get_module_logger()


class ReplayProcessor(Protocol):
    """Replays one queued mutation against the remote.

    Implementations raise on failure; the queue classifies the failure to
    decide whether to keep the entry or dead-letter it.
    """

    async def __call__(self, record: PendingMutation) -> Any: ...


DeadLetterCallback = Callable[[PendingMutation], Any]


class OfflineQueue:
    """Append-only, persisted log of mutations that failed for connectivity.

    Attributes:
        project_id: Project whose mutations are queued
        config: OfflineConfig controlling storage keys and replay behavior
    """

    def __init__(
        self,
        store: KeyValueStore,
        project_id: str,
        config: OfflineConfig | None = None,
        connectivity: ConnectivityMonitor | None = None,
        classifier: ErrorClassifier | None = None,
        processor: ReplayProcessor | None = None,
        on_dead_letter: DeadLetterCallback | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.project_id = project_id
        self.config = config or OfflineConfig()
        self._store = store
        self._classifier = classifier or ErrorClassifier()
        self._processor = processor
        self._on_dead_letter = on_dead_letter
        self._sleep = sleep
        self._connectivity = connectivity
        self._replaying = False
        self._halted = False
        self._replay_task: Optional["asyncio.Task[Dict[str, int]]"] = None

        self._entries: List[PendingMutation] = self._load(self.storage_key)
        self._dead_letters: List[PendingMutation] = self._load(self.dead_letter_key)
        self._next_sequence = max((e.sequence for e in self._entries), default=-1) + 1

        self._unsubscribe = None
        if connectivity is not None:
            self._unsubscribe = connectivity.subscribe(self._on_connectivity_change)

        self.log = logger.bind(project_id=project_id)
        if self._entries:
            self.log.info("offline_queue_restored", pending=len(self._entries))

    @property
    def storage_key(self) -> str:
        return f"{self.config.storage_prefix}:offline:{self.project_id}"

    @property
    def dead_letter_key(self) -> str:
        return f"{self.config.storage_prefix}:offline_dlq:{self.project_id}"

    def _load(self, key: str) -> List[PendingMutation]:
        raw = self._store.get(key) or []
        entries = [PendingMutation.from_dict(item) for item in raw]
        return sorted(entries, key=lambda e: (e.sequence, e.enqueued_at))

    def _persist(self) -> None:
        self._store.set(self.storage_key, [e.to_dict() for e in self._entries])

    def _persist_dead_letters(self) -> None:
        self._store.set(self.dead_letter_key, [e.to_dict() for e in self._dead_letters])

    # Read access

    @property
    def entries(self) -> Tuple[PendingMutation, ...]:
        return tuple(self._entries)

    @property
    def dead_letters(self) -> Tuple[PendingMutation, ...]:
        return tuple(self._dead_letters)

    @property
    def is_replaying(self) -> bool:
        return self._replaying

    @property
    def is_halted(self) -> bool:
        return self._halted

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, mutation_id: object) -> bool:
        return any(entry.id == mutation_id for entry in self._entries)

    # Mutation

    def bind_processor(self, processor: ReplayProcessor) -> None:
        self._processor = processor

    def enqueue(
        self, mutation: Mutation, last_error: Optional[str] = None
    ) -> PendingMutation:
        """Append ``mutation``; a mutation already queued is not added twice.

        Raises:
            StorageQuotaExceededError: If the entry cannot be persisted
        """
        for entry in self._entries:
            if entry.id == mutation.id:
                return entry

        record = PendingMutation.from_mutation(
            mutation, sequence=self._next_sequence, last_error=last_error
        )
        self._entries.append(record)
        try:
            self._persist()
        except Exception:
            self._entries.remove(record)
            raise
        self._next_sequence += 1

        self.log.info(
            "mutation_queued_offline",
            mutation_id=record.id,
            entity_kind=record.entity_kind.value,
            entity_id=record.entity_id,
            pending=len(self._entries),
        )
        return record

    def remap_ids(self, mapping: Mapping[str, str]) -> int:
        """Rewrite placeholder ids in queued calls; returns entries changed."""
        changed = 0
        for entry in self._entries:
            touched = [call.remap_ids(mapping) for call in entry.calls]
            entry.entity_id = mapping.get(entry.entity_id, entry.entity_id)
            if any(touched):
                changed += 1
        if changed:
            self._persist()
        return changed

    def clear(self) -> None:
        self._entries.clear()
        self._persist()

    def clear_dead_letters(self) -> None:
        self._dead_letters.clear()
        self._persist_dead_letters()

    # Replay

    def _on_connectivity_change(
        self, change: ConnectivityChange
    ) -> Optional["asyncio.Task[Dict[str, int]]"]:
        if not change.online:
            return None
        self._halted = False
        if self._entries:
            return self.request_replay(delay=self.config.replay_delay_seconds)
        return None

    def request_replay(
        self, delay: float = 0.0
    ) -> Optional["asyncio.Task[Dict[str, int]]"]:
        """Start a background replay unless one is already running.

        Returns:
            The replay task, or None when no event loop is running
        """
        if self._replay_task is not None and not self._replay_task.done():
            return self._replay_task
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.log.warning("offline_replay_no_event_loop")
            return None
        self._replay_task = loop.create_task(self._delayed_replay(delay))
        return self._replay_task

    async def _delayed_replay(self, delay: float) -> Dict[str, int]:
        if delay:
            await self._sleep(delay)
        return await self.replay()

    async def replay(self, processor: ReplayProcessor | None = None) -> Dict[str, int]:
        """Replay queued entries in enqueue order.

        Each entry is removed once its remote calls succeed. The first
        failure halts replay; the failed entry and everything after it stay
        queued and the queue is halted until the next reconnect or explicit
        replay. Entries failing permanently, or failing against the remote
        ``max_replay_attempts`` times, move to the dead-letter list. Lost
        connectivity never counts as an attempt and never dead-letters.

        Returns:
            Dictionary with replay statistics:
                - replayed: Entries replayed and removed
                - remaining: Entries still queued
                - halted: 1 if replay stopped on a failure or lost connectivity
                - dead_lettered: Entries moved to the dead-letter list
        """
        processor = processor or self._processor
        if processor is None:
            raise PiqueError("offline queue has no replay processor")

        stats = {"replayed": 0, "remaining": len(self._entries), "halted": 0, "dead_lettered": 0}
        if self._replaying:
            self.log.debug("offline_replay_already_running")
            return stats

        self._replaying = True
        self._halted = False
        self.log.info("offline_replay_start", pending=len(self._entries))
        try:
            while self._entries:
                if self._connectivity is not None and not self._connectivity.is_online:
                    stats["halted"] = 1
                    break

                entry = self._entries[0]
                try:
                    await processor(entry)
                except OperationCancelledError:
                    raise
                except Exception as exc:
                    stats["halted"] = 1
                    if self._record_failure(entry, exc):
                        stats["dead_lettered"] += 1
                    break

                self._entries.pop(0)
                self._persist()
                stats["replayed"] += 1
                self.log.info(
                    "offline_entry_replayed",
                    mutation_id=entry.id,
                    entity_kind=entry.entity_kind.value,
                )
        finally:
            self._replaying = False

        stats["remaining"] = len(self._entries)
        self._halted = bool(stats["halted"]) and bool(self._entries)
        self.log.info("offline_replay_complete", **stats)
        return stats

    def _record_failure(self, entry: PendingMutation, exc: Exception) -> bool:
        """Record a failed replay; returns True if the entry was dead-lettered."""
        result = self._classifier.classify(exc)
        entry.last_error = result.message
        if not result.is_connectivity_error:
            entry.attempts += 1

        if result.is_connectivity_error or (
            result.retryable and entry.attempts < self.config.max_replay_attempts
        ):
            self._persist()
            self.log.warning(
                "offline_replay_halted",
                mutation_id=entry.id,
                status=result.status.value,
                error=result.message,
                attempts=entry.attempts,
            )
            return False

        self._entries.remove(entry)
        self._dead_letters.append(entry)
        self._persist()
        self._persist_dead_letters()
        self.log.error(
            "offline_entry_dead_lettered",
            mutation_id=entry.id,
            status=result.status.value,
            error=result.message,
            attempts=entry.attempts,
        )
        if self._on_dead_letter is not None:
            try:
                self._on_dead_letter(entry)
            except Exception as e:
                self.log.error("dead_letter_callback_failed", error=str(e))
        return True

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._replay_task is not None and not self._replay_task.done():
            self._replay_task.cancel()
