"""Retry scheduler for transient remote failures.

Re-invokes a failed async operation after an exponential backoff delay,
re-classifying every new failure. Only SERVICE_UNAVAILABLE failures are
retried in-line; connectivity failures are surfaced immediately so the
caller can queue the operation for replay, and every other failure is
terminal.
"""

import asyncio
import dataclasses
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import structlog
from infrastructure.operations.classifiers import ErrorClassifier
from infrastructure.operations.exceptions import (
    OperationCancelledError,
    OperationFailedError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.resilience.retry.config import RetryConfig

logger = structlog.get_logger()

Operation = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class RetryScheduler:
    """Runs async operations with bounded, classified retries.

    Retry delays are single-owner per key: starting a new delay for a key
    cancels the pending one, and the superseded run raises
    OperationCancelledError.

    Attributes:
        config: RetryConfig controlling attempts and backoff
        classifier: ErrorClassifier applied to every failure
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        classifier: ErrorClassifier | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self.classifier = classifier or ErrorClassifier()
        self._sleep = sleep
        self._timers: Dict[str, "asyncio.Future[Any]"] = {}
        self._superseded: Set["asyncio.Future[Any]"] = set()
        self.log = logger.bind(component="retry_scheduler")

    def pending_keys(self) -> Set[str]:
        """Keys with a retry delay currently pending."""
        return set(self._timers)

    def cancel(self, key: str) -> bool:
        """Cancel the pending retry delay for ``key``, if any."""
        timer = self._timers.pop(key, None)
        if timer is None or timer.done():
            return False
        self._superseded.add(timer)
        timer.cancel()
        return True

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    async def schedule(
        self,
        operation: Operation,
        attempt: int,
        retry_after: Optional[float] = None,
        key: Optional[str] = None,
    ) -> Any:
        """Wait for the backoff of ``attempt`` and re-invoke ``operation``.

        Args:
            operation: Zero-argument coroutine function to invoke
            attempt: 0-based retry attempt number
            retry_after: Optional backoff seed from the classified failure
            key: Optional logical operation key owning the delay

        Returns:
            Whatever ``operation`` returns

        Raises:
            OperationCancelledError: If a newer delay for ``key`` superseded this one
        """
        delay = self.config.calculate_delay(attempt, retry_after)
        self.log.info(
            "retry_scheduled",
            key=key,
            attempt=attempt + 1,
            delay_seconds=delay,
        )
        await self._wait(delay, key)
        return await operation()

    async def _wait(self, delay: float, key: Optional[str]) -> None:
        if key is None:
            await self._sleep(delay)
            return

        self.cancel(key)
        timer = asyncio.ensure_future(self._sleep(delay))
        self._timers[key] = timer
        try:
            await timer
        except asyncio.CancelledError:
            if timer in self._superseded:
                self._superseded.discard(timer)
                raise OperationCancelledError(
                    f"Retry for {key} superseded by a newer request"
                ) from None
            raise
        finally:
            if self._timers.get(key) is timer:
                del self._timers[key]

    async def run(
        self,
        operation: Operation,
        key: Optional[str] = None,
        classifier: ErrorClassifier | None = None,
    ) -> Any:
        """Invoke ``operation``, retrying SERVICE_UNAVAILABLE failures.

        Args:
            operation: Zero-argument coroutine function to invoke
            key: Optional logical operation key owning retry delays
            classifier: Optional classifier overriding the scheduler's own

        Returns:
            Whatever ``operation`` returns on its first successful call

        Raises:
            OperationFailedError: Carrying the final classified result when the
                failure is not retryable in-line or retries are exhausted
            OperationCancelledError: If the run was superseded
        """
        classifier = classifier or self.classifier
        attempt = 0
        retry_after: Optional[float] = None

        while True:
            try:
                if attempt == 0:
                    return await operation()
                return await self.schedule(
                    operation, attempt - 1, retry_after=retry_after, key=key
                )
            except OperationCancelledError:
                raise
            except Exception as exc:
                result = classifier.classify(exc)
                calls = attempt + 1

                if result.status != OperationStatus.SERVICE_UNAVAILABLE:
                    self.log.warning(
                        "operation_failed",
                        key=key,
                        status=result.status.value,
                        error=result.message,
                        attempts=calls,
                    )
                    raise OperationFailedError(
                        result.message, _with_attempts(result, calls)
                    ) from exc

                if attempt >= self.config.max_attempts:
                    self.log.error(
                        "retry_exhausted",
                        key=key,
                        error=result.message,
                        attempts=calls,
                    )
                    exhausted = _with_attempts(result, calls, exhausted=True)
                    raise OperationFailedError(
                        f"{result.message} (gave up after {calls} attempts)",
                        exhausted,
                    ) from exc

                retry_after = result.retry_after
                attempt += 1


def _with_attempts(
    result: OperationResult, attempts: int, exhausted: bool = False
) -> OperationResult:
    data = dict(result.data) if isinstance(result.data, dict) else {}
    data["attempts"] = attempts
    if exhausted:
        data["retries_exhausted"] = True
    return dataclasses.replace(result, data=data)
