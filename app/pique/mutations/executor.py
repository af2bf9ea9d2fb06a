"""Optimistic mutation executor.

Applies a mutation's local delta to its collection store immediately, then
persists it through the remote dispatcher:

    IDLE -> OPTIMISTICALLY_APPLIED -> COMMITTED | ROLLED_BACK | QUEUED

- Success: placeholder ids are replaced by authoritative ids in every store.
- Connectivity failure: the delta stays visible and the mutation is queued
  in the offline queue.
- Service unavailable: retried by the RetryScheduler; once retries run out
  the configured exhausted-retry policy applies ('queue' or 'rollback').
- Any other failure: the pre-mutation snapshot is restored and the
  classified error is raised.

Each applied mutation keeps its own snapshot in a journal. Rolling one back
restores its snapshot and re-applies the deltas of the live mutations
applied after it, so only its own delta is reverted.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, TYPE_CHECKING

from infrastructure.connectivity import ConnectivityMonitor
from infrastructure.logging import bind_mutation_context, get_module_logger
from infrastructure.operations.error_log import OperationErrorLog
from infrastructure.operations.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
    OperationCancelledError,
    OperationFailedError,
    StorageQuotaExceededError,
)
from infrastructure.operations.classifiers import classify_failure
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.resilience.retry import EXHAUSTED_QUEUE, RetryScheduler
from pique.domain.models import EntityKind
from pique.mutations.dispatcher import RemoteDispatcher
from pique.mutations.models import Mutation, MutationOutcome, MutationState
from pique.ordering import OrderedCollection, OrderedCollectionStore

if TYPE_CHECKING:
    from pique.offline.models import PendingMutation
    from pique.offline.queue import OfflineQueue

logger = get_module_logger()


@dataclass
class _JournalEntry:
    mutation: Mutation
    snapshot: OrderedCollection
    detached: bool = False

    @property
    def live(self) -> bool:
        return not self.detached and self.mutation.state is not MutationState.ROLLED_BACK


class MutationExecutor:
    """Single writer of the collection stores of one project.

    Attributes:
        stores: Collection store per entity kind
        dispatcher: RemoteDispatcher issuing remote calls
        scheduler: RetryScheduler wrapping every remote dispatch
        offline_queue: Queue receiving mutations that cannot reach the remote
        error_log: Recent classified errors
    """

    def __init__(
        self,
        stores: Mapping[EntityKind, OrderedCollectionStore],
        dispatcher: RemoteDispatcher,
        scheduler: RetryScheduler | None = None,
        offline_queue: Optional["OfflineQueue"] = None,
        connectivity: ConnectivityMonitor | None = None,
        error_log: OperationErrorLog | None = None,
        project_id: Optional[str] = None,
    ) -> None:
        self.stores = dict(stores)
        self.dispatcher = dispatcher
        self.scheduler = scheduler or RetryScheduler()
        self.offline_queue = offline_queue
        self.connectivity = connectivity
        self.error_log = error_log or OperationErrorLog()
        self.project_id = project_id
        self._journal: List[_JournalEntry] = []
        self._in_flight: Dict[str, Mutation] = {}

        if offline_queue is not None:
            offline_queue.bind_processor(self.replay)

    # Exposed state

    @property
    def pending_change_count(self) -> int:
        """Mutations awaiting remote confirmation, in flight or queued offline."""
        queued = len(self.offline_queue) if self.offline_queue is not None else 0
        return len(self._in_flight) + queued

    @property
    def last_error(self) -> Optional[OperationResult]:
        entry = self.error_log.last
        return entry.result if entry is not None else None

    @property
    def in_flight(self) -> List[Mutation]:
        return list(self._in_flight.values())

    def _is_online(self) -> bool:
        return self.connectivity is None or self.connectivity.is_online

    # Apply

    async def apply(self, mutation: Mutation) -> MutationOutcome:
        """Apply ``mutation`` optimistically and persist it.

        Returns:
            MutationOutcome with state COMMITTED or QUEUED

        Raises:
            InvalidArgumentError, EntityNotFoundError: If the local delta is
                invalid; nothing is applied
            OperationFailedError: If the remote rejected the mutation (state
                ROLLED_BACK) or retries ran out (state per exhausted policy)
        """
        if mutation.state is not MutationState.IDLE:
            raise InvalidArgumentError(
                f"mutation {mutation.id} was already applied ({mutation.state.value})"
            )
        if mutation.project_id is None:
            mutation.project_id = self.project_id

        with bind_mutation_context(
            project_id=mutation.project_id,
            mutation_id=mutation.id,
            entity_kind=mutation.entity_kind.value,
        ):
            entry = self._apply_local(mutation)
            mutation.state = MutationState.OPTIMISTICALLY_APPLIED
            self._in_flight[mutation.id] = mutation
            logger.info("mutation_applied", label=mutation.label, calls=len(mutation.calls))

            if not mutation.pending_calls:
                return self._commit(mutation)

            if self.offline_queue is not None:
                if not self._is_online():
                    return self._queue(mutation, entry, OperationResult.offline())
                if len(self.offline_queue):
                    result = OperationResult.offline(
                        f"Queued behind {len(self.offline_queue)} pending changes",
                        error_code="QUEUED_BEHIND_PENDING",
                    )
                    outcome = self._queue(mutation, entry, result, record_error=False)
                    if not self.offline_queue.is_halted:
                        self.offline_queue.request_replay()
                    return outcome

            try:
                await self.scheduler.run(
                    lambda: self.dispatcher.dispatch(mutation.calls), key=mutation.id
                )
            except OperationFailedError as exc:
                return self._handle_failure(mutation, entry, exc.result)
            except OperationCancelledError as exc:
                self._rollback(mutation, entry)
                raise OperationFailedError(
                    str(exc),
                    OperationResult.unknown_error(str(exc), error_code="CANCELLED"),
                    mutation_state=mutation.state,
                ) from exc
            except asyncio.CancelledError:
                self._preserve_on_cancel(mutation, entry)
                raise
            except Exception as exc:
                # Dispatcher misconfiguration and other non-remote failures
                return self._handle_failure(mutation, entry, classify_failure(exc))

            return self._commit(mutation)

    def _apply_local(self, mutation: Mutation) -> Optional[_JournalEntry]:
        if mutation.apply_local is None:
            return None
        store = self._store(mutation.entity_kind)
        snapshot = store.collection
        updated = mutation.apply_local(snapshot)
        entry = _JournalEntry(mutation=mutation, snapshot=snapshot)
        self._journal.append(entry)
        store.replace_collection(updated)
        return entry

    def _store(self, entity_kind: EntityKind) -> OrderedCollectionStore:
        try:
            return self.stores[entity_kind]
        except KeyError:
            raise InvalidArgumentError(
                f"no collection store for {entity_kind.value}"
            ) from None

    # Settle

    def _commit(self, mutation: Mutation) -> MutationOutcome:
        id_map = self._apply_id_map()
        mutation.state = MutationState.COMMITTED
        self._in_flight.pop(mutation.id, None)
        self._prune_journal()
        logger.info("mutation_committed", label=mutation.label, replaced_ids=len(id_map))
        return MutationOutcome(
            mutation_id=mutation.id,
            state=MutationState.COMMITTED,
            result=OperationResult.success(),
            id_map=id_map,
        )

    def _apply_id_map(self) -> Dict[str, str]:
        """Replace known placeholder ids in every store, snapshot and queued call."""
        id_map = self.dispatcher.ids.as_dict()
        if not id_map:
            return {}
        for store in self.stores.values():
            store.replace_collection(store.collection.remap_ids(id_map))
        for entry in self._journal:
            entry.snapshot = entry.snapshot.remap_ids(id_map)
        if self.offline_queue is not None:
            self.offline_queue.remap_ids(id_map)
        return id_map

    def _handle_failure(
        self,
        mutation: Mutation,
        entry: Optional[_JournalEntry],
        result: OperationResult,
    ) -> MutationOutcome:
        if result.is_connectivity_error and self.offline_queue is not None:
            return self._queue(mutation, entry, result)

        self.error_log.record(result, mutation_id=mutation.id, label=mutation.label)

        exhausted = (
            result.status is OperationStatus.SERVICE_UNAVAILABLE
            and isinstance(result.data, dict)
            and result.data.get("retries_exhausted")
        )
        if (
            exhausted
            and self.scheduler.config.exhausted_policy == EXHAUSTED_QUEUE
            and self.offline_queue is not None
        ):
            self._queue(mutation, entry, result, record_error=False)
            raise OperationFailedError(result.message, result, mutation_state=mutation.state)

        self._rollback(mutation, entry)
        if any(call.completed for call in mutation.calls):
            logger.warning(
                "mutation_partially_applied",
                label=mutation.label,
                completed_calls=sum(call.completed for call in mutation.calls),
            )
        raise OperationFailedError(result.message, result, mutation_state=mutation.state)

    def _queue(
        self,
        mutation: Mutation,
        entry: Optional[_JournalEntry],
        result: OperationResult,
        record_error: bool = True,
    ) -> MutationOutcome:
        try:
            self.offline_queue.enqueue(mutation, last_error=result.message)
        except StorageQuotaExceededError as exc:
            quota = OperationResult.quota_exceeded(str(exc))
            self.error_log.record(quota, mutation_id=mutation.id, label=mutation.label)
            self._rollback(mutation, entry)
            raise OperationFailedError(
                str(exc), quota, mutation_state=mutation.state
            ) from exc

        if record_error:
            self.error_log.record(result, mutation_id=mutation.id, label=mutation.label)
        mutation.state = MutationState.QUEUED
        self._in_flight.pop(mutation.id, None)
        self._prune_journal()
        logger.info("mutation_queued", label=mutation.label, status=result.status.value)
        return MutationOutcome(
            mutation_id=mutation.id, state=MutationState.QUEUED, result=result
        )

    def _preserve_on_cancel(
        self, mutation: Mutation, entry: Optional[_JournalEntry]
    ) -> None:
        if self.offline_queue is not None:
            try:
                self._queue(
                    mutation, entry, OperationResult.offline("Interrupted"), record_error=False
                )
                return
            except OperationFailedError as e:
                # _queue already rolled back and recorded the quota error
                logger.warning("mutation_lost_on_cancel", label=mutation.label, error=str(e))
                return
        self._rollback(mutation, entry)

    def _rollback(self, mutation: Mutation, entry: Optional[_JournalEntry]) -> None:
        mutation.state = MutationState.ROLLED_BACK
        self._in_flight.pop(mutation.id, None)
        if entry is None:
            logger.info("mutation_rolled_back", label=mutation.label)
            return

        store = self._store(mutation.entity_kind)
        id_map = self.dispatcher.ids.as_dict()
        base = entry.snapshot.remap_ids(id_map)

        position = self._journal.index(entry)
        reapplied = 0
        for later in self._journal[position + 1 :]:
            if later.mutation.entity_kind is not mutation.entity_kind or not later.live:
                continue
            later.snapshot = base
            try:
                base = later.mutation.apply_local(base).remap_ids(id_map)
                reapplied += 1
            except (InvalidArgumentError, EntityNotFoundError) as e:
                later.detached = True
                logger.warning(
                    "dependent_mutation_detached",
                    mutation_id=later.mutation.id,
                    label=later.mutation.label,
                    error=str(e),
                )

        store.replace_collection(base)
        self._prune_journal()
        logger.info("mutation_rolled_back", label=mutation.label, reapplied=reapplied)

    def _prune_journal(self) -> None:
        while self._journal and (
            self._journal[0].mutation.state.is_settled or self._journal[0].detached
        ):
            self._journal.pop(0)

    # Replay

    async def replay(self, record: "PendingMutation") -> Dict[str, str]:
        """Replay a queued mutation's remaining remote calls.

        Used as the offline queue's processor. On success placeholder ids are
        replaced in every store; failures propagate to the queue.
        """
        with bind_mutation_context(
            project_id=self.project_id,
            mutation_id=record.id,
            entity_kind=record.entity_kind.value,
        ):
            await self.scheduler.run(
                lambda: self.dispatcher.dispatch(record.calls),
                key=f"replay:{record.id}",
            )
            id_map = self._apply_id_map()
            logger.info("mutation_replayed", label=record.label)
            return id_map
