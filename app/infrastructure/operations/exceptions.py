"""Exception hierarchy for local validation and remote failures.

Local failures (bad arguments, unknown ids, storage quota) are raised
synchronously before any optimistic change is applied. Remote failures are
raised by remote entity services as ``RemoteServiceError`` and converted into
``OperationResult`` objects by the error classifier. ``OperationFailedError``
carries a classified result back to the caller.
"""

from typing import Any, Optional

from infrastructure.operations.result import OperationResult


class PiqueError(Exception):
    """Base exception for all application errors."""

    pass


class InvalidArgumentError(PiqueError, ValueError):
    """Raised when caller input is structurally wrong.

    Example:
        raise InvalidArgumentError("split point must lie inside the segment")
    """

    pass


class EntityNotFoundError(PiqueError, LookupError):
    """Raised when an operation references an unknown entity id.

    Example:
        raise EntityNotFoundError("segment", "seg-123")
    """

    def __init__(self, entity_kind: str, entity_id: str):
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        super().__init__(f"{entity_kind} not found: {entity_id}")


class StorageQuotaExceededError(PiqueError):
    """Raised when a key-value write would exceed the available quota.

    Example:
        raise StorageQuotaExceededError(required_bytes=2048, available_bytes=1024)
    """

    def __init__(self, required_bytes: int, available_bytes: int):
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes
        super().__init__(
            f"Storage quota exceeded: {required_bytes} bytes required, "
            f"{available_bytes} bytes available"
        )


class RemoteServiceError(PiqueError):
    """Raw failure signal raised by a remote entity service.

    Attributes:
        status_code: Optional HTTP-style status code
        category: Optional failure category reported by the service
            (e.g. "validation", "not_found", "conflict", "service_unavailable")
        retry_after: Optional seconds suggested by the service before retrying

    Example:
        raise RemoteServiceError("segment already exists", status_code=409)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        category: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        self.status_code = status_code
        self.category = category
        self.retry_after = retry_after
        super().__init__(message)


class OperationFailedError(PiqueError):
    """Raised when an operation fails with a classified, terminal result."""

    def __init__(
        self,
        message: str,
        result: OperationResult,
        mutation_state: Optional[Any] = None,
    ):
        super().__init__(message)
        self.result = result
        self.mutation_state = mutation_state

    @property
    def status(self):
        return self.result.status


class OperationCancelledError(PiqueError):
    """Raised when an in-flight operation was superseded by a newer one."""

    pass
