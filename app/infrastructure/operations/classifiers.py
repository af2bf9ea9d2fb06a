"""Error classifiers for local and remote failures.

Converts raised failures (remote entity service errors, local validation
errors, connectivity errors) into standardized OperationResult objects.
Centralizes error classification so call sites only supply domain-specific
mapping rules, never timing or retry logic.

Key API:
- classify_remote_error(): RemoteServiceError -> OperationResult
- classify_failure(): any exception -> OperationResult
- ErrorClassifier: classify() with optional domain rules and connectivity probe

Usage:
    from infrastructure.operations.classifiers import ErrorClassifier

    classifier = ErrorClassifier(is_online=lambda: monitor.is_online)

    try:
        await service.update(segment_id, patch)
    except Exception as exc:
        result = classifier.classify(exc)
"""

import asyncio
from typing import Callable, Iterable, List, Optional

from infrastructure.operations.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
    OperationFailedError,
    RemoteServiceError,
    StorageQuotaExceededError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

DEFAULT_BACKOFF_SEED_SECONDS = 1.0

ClassificationRule = Callable[[BaseException], Optional[OperationResult]]

_CATEGORY_STATUS = {
    "validation": OperationStatus.VALIDATION_ERROR,
    "invalid_argument": OperationStatus.VALIDATION_ERROR,
    "not_found": OperationStatus.NOT_FOUND,
    "conflict": OperationStatus.CONFLICT,
    "duplicate": OperationStatus.CONFLICT,
    "quota_exceeded": OperationStatus.QUOTA_EXCEEDED,
    "service_unavailable": OperationStatus.SERVICE_UNAVAILABLE,
    "rate_limited": OperationStatus.SERVICE_UNAVAILABLE,
    "network": OperationStatus.NETWORK_UNREACHABLE,
    "network_unreachable": OperationStatus.NETWORK_UNREACHABLE,
    "offline": OperationStatus.OFFLINE,
}


def _status_from_code(status_code: Optional[int]) -> OperationStatus:
    if status_code is None:
        return OperationStatus.UNKNOWN_ERROR
    if status_code == 0:
        # Transport never produced a response
        return OperationStatus.NETWORK_UNREACHABLE
    if status_code in (400, 422):
        return OperationStatus.VALIDATION_ERROR
    if status_code == 404:
        return OperationStatus.NOT_FOUND
    if status_code == 409:
        return OperationStatus.CONFLICT
    if status_code in (413, 507):
        return OperationStatus.QUOTA_EXCEEDED
    if status_code in (408, 429) or 500 <= status_code < 600:
        return OperationStatus.SERVICE_UNAVAILABLE
    return OperationStatus.UNKNOWN_ERROR


def classify_remote_error(exc: RemoteServiceError) -> OperationResult:
    """Classify a remote entity service failure into OperationResult.

    The reported category wins over the status code when both are present.

    Status Code Mapping:
    - 0: No response → NETWORK_UNREACHABLE
    - 400, 422: Bad input → VALIDATION_ERROR
    - 404: Not found → NOT_FOUND
    - 409: Duplicate or conflicting write → CONFLICT
    - 413, 507: Payload or storage too large → QUOTA_EXCEEDED
    - 408, 429, 5xx: Temporarily unavailable → SERVICE_UNAVAILABLE with retry_after
    - Other: UNKNOWN_ERROR

    Args:
        exc: RemoteServiceError raised by a remote entity service

    Returns:
        OperationResult with the classified status, message and error code
    """
    status = None
    if exc.category:
        status = _CATEGORY_STATUS.get(exc.category.lower())
    if status is None:
        status = _status_from_code(exc.status_code)

    message = str(exc) or "Remote service error"
    error_code = (exc.category or status.value).upper()

    if status == OperationStatus.SERVICE_UNAVAILABLE:
        return OperationResult.transient_error(
            message,
            error_code=error_code,
            retry_after=exc.retry_after or DEFAULT_BACKOFF_SEED_SECONDS,
        )

    if status == OperationStatus.UNKNOWN_ERROR and exc.status_code is not None:
        return OperationResult.unknown_error(
            f"Remote service error ({exc.status_code}): {message}",
            error_code="HTTP_ERROR",
        )

    return OperationResult.error(status, message, error_code=error_code)


def classify_failure(exc: BaseException) -> OperationResult:
    """Classify any raised failure into OperationResult.

    Exception Mapping:
    - OperationFailedError: its carried result
    - RemoteServiceError: see classify_remote_error()
    - InvalidArgumentError, ValueError: VALIDATION_ERROR
    - EntityNotFoundError: NOT_FOUND
    - StorageQuotaExceededError: QUOTA_EXCEEDED
    - ConnectionError: NETWORK_UNREACHABLE
    - TimeoutError: SERVICE_UNAVAILABLE
    - Other: UNKNOWN_ERROR

    Args:
        exc: Exception raised by an operation

    Returns:
        OperationResult describing the failure
    """
    if isinstance(exc, OperationFailedError):
        return exc.result

    if isinstance(exc, RemoteServiceError):
        return classify_remote_error(exc)

    if isinstance(exc, EntityNotFoundError):
        return OperationResult.error(
            OperationStatus.NOT_FOUND, str(exc), error_code="NOT_FOUND"
        )

    if isinstance(exc, StorageQuotaExceededError):
        return OperationResult.quota_exceeded(str(exc))

    if isinstance(exc, (InvalidArgumentError, ValueError)):
        return OperationResult.validation_error(str(exc))

    if isinstance(exc, ConnectionError):
        return OperationResult.error(
            OperationStatus.NETWORK_UNREACHABLE,
            f"Network unreachable: {type(exc).__name__}: {str(exc)}",
            error_code="NETWORK_UNREACHABLE",
        )

    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return OperationResult.transient_error(
            f"Operation timed out: {str(exc)}", error_code="TIMEOUT"
        )

    return OperationResult.unknown_error(f"{type(exc).__name__}: {str(exc)}")


class ErrorClassifier:
    """Maps raised failures into classified OperationResults.

    Domain rules are consulted first, in order; the first rule returning a
    result wins. When the connectivity probe reports offline, failures that
    would otherwise be network errors are reported as OFFLINE. Unknown
    errors are surfaced unchanged.

    Attributes:
        rules: Domain-specific classification rules
    """

    def __init__(
        self,
        rules: Optional[Iterable[ClassificationRule]] = None,
        is_online: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.rules: List[ClassificationRule] = list(rules or [])
        self._is_online = is_online

    def with_rules(self, *rules: ClassificationRule) -> "ErrorClassifier":
        """Return a classifier with extra rules evaluated before existing ones."""
        return ErrorClassifier(
            rules=[*rules, *self.rules],
            is_online=self._is_online,
        )

    def classify(self, exc: BaseException) -> OperationResult:
        """Classify a failure.

        Args:
            exc: Exception raised by a local or remote operation

        Returns:
            OperationResult with an error status
        """
        result = None
        for rule in self.rules:
            result = rule(exc)
            if result is not None:
                break

        if result is None:
            result = classify_failure(exc)

        if self._is_online is not None and not self._is_online():
            if result.status is OperationStatus.NETWORK_UNREACHABLE:
                return OperationResult.offline(result.message)

        return result
