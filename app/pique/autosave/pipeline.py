"""Debounced whole-project auto-save.

Snapshots submitted in quick succession collapse into a single save once
the debounce period passes without a new submission. A snapshot is checked
before it is sent:

- identical (canonically) to the last committed snapshot: skipped
- rejected by the validation predicate: VALIDATION_ERROR
- larger than ``max_snapshot_bytes`` or beyond the key-value store quota:
  QUOTA_EXCEEDED

Saves run through the MutationExecutor as a project ``update`` mutation, so
a save attempted while offline is queued and replayed like any other change.
"""

import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from infrastructure.logging import get_module_logger
from infrastructure.operations.error_log import OperationErrorLog
from infrastructure.operations.exceptions import OperationFailedError
from infrastructure.operations.result import OperationResult
from infrastructure.persistence import KeyValueStore
from infrastructure.resilience.timers import TimerRegistry
from pique.autosave.config import AutoSaveConfig
from pique.domain.ids import utc_now
from pique.domain.models import EntityKind
from pique.mutations.executor import MutationExecutor
from pique.mutations.models import Mutation, MutationOutcome, RemoteCall

logger = get_module_logger()

Snapshot = Dict[str, Any]
SnapshotValidator = Callable[[Snapshot], bool]
ErrorCallback = Callable[[OperationResult], Any]


def canonical_json(snapshot: Snapshot) -> str:
    return json.dumps(snapshot, sort_keys=True, separators=(",", ":"), default=str)


class AutoSavePipeline:
    """Debounced producer of whole-project save mutations.

    Attributes:
        project_id: Project being saved
        config: AutoSaveConfig
        is_saving: A save is in flight
        last_saved_at: When the last save committed
        has_unsaved_changes: A submitted snapshot has not been committed yet
        last_error: Classified error of the last failed save
    """

    def __init__(
        self,
        executor: MutationExecutor,
        project_id: str,
        config: AutoSaveConfig | None = None,
        store: KeyValueStore | None = None,
        timers: TimerRegistry | None = None,
        validator: SnapshotValidator | None = None,
        on_error: ErrorCallback | None = None,
        error_log: OperationErrorLog | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.executor = executor
        self.project_id = project_id
        self.config = config or AutoSaveConfig()
        self._store = store
        self._timers = timers or TimerRegistry()
        self._validator = validator
        self._on_error = on_error
        self._error_log = error_log or executor.error_log
        self._clock = clock

        self.is_saving = False
        self.last_saved_at: Optional[datetime] = None
        self.has_unsaved_changes = False
        self.last_error: Optional[OperationResult] = None

        self._pending: Optional[Snapshot] = None
        self._last_saved: Optional[str] = None
        self.log = logger.bind(project_id=project_id)

    @property
    def timer_key(self) -> str:
        return f"autosave:{self.project_id}"

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def is_scheduled(self) -> bool:
        return self._timers.is_pending(self.timer_key)

    def set_enabled(self, enabled: bool) -> None:
        self.config.enabled = enabled
        if not enabled:
            self._timers.cancel(self.timer_key)
        elif self._pending is not None:
            self._schedule()

    def submit(self, snapshot: Snapshot) -> None:
        """Record the latest snapshot and (re)start the debounce timer."""
        self._pending = snapshot
        self.has_unsaved_changes = canonical_json(snapshot) != self._last_saved
        if not self.has_unsaved_changes:
            self._timers.cancel(self.timer_key)
            return
        if self.config.enabled:
            self._schedule()

    def _schedule(self) -> None:
        self._timers.start(self.timer_key, self.config.debounce_seconds, self._on_timer)

    async def _on_timer(self) -> Optional[MutationOutcome]:
        try:
            return await self.save()
        except OperationFailedError as e:
            self.log.warning(
                "autosave_failed",
                status=e.result.status.value,
                error=e.result.message,
            )
            if self._on_error is not None:
                try:
                    self._on_error(e.result)
                except Exception as callback_error:
                    self.log.error("autosave_error_callback_failed", error=str(callback_error))
            return None

    async def flush(self) -> Optional[MutationOutcome]:
        """Save the pending snapshot now if one is waiting for its timer."""
        if not self._timers.cancel(self.timer_key):
            return None
        return await self._on_timer()

    def cancel(self) -> None:
        self._timers.cancel(self.timer_key)

    async def save(self, snapshot: Optional[Snapshot] = None) -> Optional[MutationOutcome]:
        """Save ``snapshot`` (default: the pending one) immediately.

        Returns:
            The mutation outcome, or None when there was nothing new to save

        Raises:
            OperationFailedError: If the snapshot is invalid, too large, or the
                save failed terminally
        """
        self._timers.cancel(self.timer_key)
        if snapshot is None:
            snapshot = self._pending
        if snapshot is None:
            return None

        serialized = canonical_json(snapshot)
        if serialized == self._last_saved:
            self.log.debug("autosave_skipped_unchanged")
            if snapshot is self._pending:
                self.has_unsaved_changes = False
            return None

        self._check(snapshot, serialized)

        mutation = Mutation(
            entity_kind=EntityKind.PROJECT,
            calls=[
                RemoteCall.update(
                    EntityKind.PROJECT, self.project_id, {"snapshot": snapshot}
                )
            ],
            label="autosave",
            project_id=self.project_id,
        )

        self.is_saving = True
        try:
            outcome = await self.executor.apply(mutation)
        except OperationFailedError as e:
            self.last_error = e.result
            raise
        finally:
            self.is_saving = False

        if outcome.is_committed:
            self._last_saved = serialized
            self.last_saved_at = self._clock()
            self.last_error = None
            self.has_unsaved_changes = (
                self._pending is not None and canonical_json(self._pending) != serialized
            )
            self.log.info("autosave_committed", size_bytes=len(serialized))
        else:
            # Stays unsaved until the queued save replays
            self.last_error = outcome.result
            self.log.info("autosave_queued", status=outcome.result.status.value)
        return outcome

    def _check(self, snapshot: Snapshot, serialized: str) -> None:
        if self._validator is not None and not self._validator(snapshot):
            self._fail(OperationResult.validation_error("Snapshot failed validation"))

        size = len(serialized.encode("utf-8"))
        if size > self.config.max_snapshot_bytes:
            self._fail(
                OperationResult.quota_exceeded(
                    f"Snapshot is {size} bytes, limit is {self.config.max_snapshot_bytes}"
                )
            )

        if self._store is not None:
            quota = self._store.quota()
            if not quota.fits(size):
                self._fail(
                    OperationResult.quota_exceeded(
                        f"Snapshot of {size} bytes exceeds storage quota "
                        f"({quota.used_bytes} used, {quota.available_bytes} available)"
                    )
                )

    def _fail(self, result: OperationResult) -> None:
        self.last_error = result
        self._error_log.record(result, label="autosave")
        raise OperationFailedError(result.message, result)

    def close(self) -> None:
        self._timers.cancel(self.timer_key)
