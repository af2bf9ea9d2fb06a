"""Operation status enumeration.

Status codes for operation results, used to classify outcomes of local and
remote operations for rollback, retry and offline queuing decisions.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        VALIDATION_ERROR: Caller input is structurally wrong (terminal)
        NOT_FOUND: Target entity does not exist (terminal)
        CONFLICT: Operation conflicts with existing state, e.g. duplicate insert (terminal)
        QUOTA_EXCEEDED: Storage or size bound exceeded (terminal)
        SERVICE_UNAVAILABLE: Remote temporarily unavailable (retried with backoff)
        NETWORK_UNREACHABLE: Remote could not be reached (queued for replay)
        OFFLINE: Client is offline (queued for replay)
        UNKNOWN_ERROR: Unrecognised failure (terminal)
    """

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    QUOTA_EXCEEDED = "quota_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_UNREACHABLE = "network_unreachable"
    OFFLINE = "offline"
    UNKNOWN_ERROR = "unknown_error"

    @property
    def is_retryable(self) -> bool:
        """True for statuses that may succeed when attempted again."""
        return self in RETRYABLE_STATUSES

    @property
    def is_connectivity(self) -> bool:
        """True for statuses that route a mutation to the offline queue."""
        return self in CONNECTIVITY_STATUSES


RETRYABLE_STATUSES = frozenset(
    {
        OperationStatus.SERVICE_UNAVAILABLE,
        OperationStatus.NETWORK_UNREACHABLE,
        OperationStatus.OFFLINE,
    }
)

CONNECTIVITY_STATUSES = frozenset(
    {
        OperationStatus.NETWORK_UNREACHABLE,
        OperationStatus.OFFLINE,
    }
)
