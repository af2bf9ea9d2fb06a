"""Classified outcome of an operation.

An ``OperationResult`` carries a status kind, a human-readable message and,
for failures, whether a later attempt may succeed and a suggested backoff
seed. Failed results are what the executor records in its error log and
what callers show to the user.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Outcome of a local or remote operation.

    Attributes:
        status: Outcome kind
        message: Human-readable message
        data: Optional payload (e.g. retry counters of an exhausted run)
        error_code: Machine-readable code, e.g. ``QUEUED_BEHIND_PENDING``
        retry_after: Backoff seed in seconds for retryable failures
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[float] = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def retryable(self) -> bool:
        """Whether the failure may succeed on a later attempt."""
        return self.status.is_retryable

    @property
    def is_connectivity_error(self) -> bool:
        """Whether the failure should be queued for replay on reconnect."""
        return self.status.is_connectivity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "error_code": self.error_code,
            "retry_after": self.retry_after,
            "retryable": self.retryable,
        }

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok") -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[float] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        """Build a failed result of any status."""
        return cls(
            status=status,
            message=message,
            error_code=error_code,
            retry_after=retry_after,
            data=data,
        )

    @classmethod
    def validation_error(
        cls, message: str, error_code: str = "VALIDATION_ERROR"
    ) -> "OperationResult":
        return cls.error(OperationStatus.VALIDATION_ERROR, message, error_code)

    @classmethod
    def quota_exceeded(
        cls, message: str, error_code: str = "QUOTA_EXCEEDED"
    ) -> "OperationResult":
        return cls.error(OperationStatus.QUOTA_EXCEEDED, message, error_code)

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = "SERVICE_UNAVAILABLE",
        retry_after: Optional[float] = 1.0,
    ) -> "OperationResult":
        """SERVICE_UNAVAILABLE result, retried in-line by the RetryScheduler.

        Covers timeouts, rate limiting (429) and 5xx responses.
        """
        return cls.error(
            OperationStatus.SERVICE_UNAVAILABLE, message, error_code, retry_after
        )

    @classmethod
    def offline(
        cls, message: str = "Client is offline", error_code: str = "OFFLINE"
    ) -> "OperationResult":
        """OFFLINE result; the operation is queued, not failed."""
        return cls.error(OperationStatus.OFFLINE, message, error_code)

    @classmethod
    def unknown_error(
        cls, message: str, error_code: str = "UNKNOWN_ERROR"
    ) -> "OperationResult":
        return cls.error(OperationStatus.UNKNOWN_ERROR, message, error_code)
