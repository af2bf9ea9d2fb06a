"""Operation result types, status enums and error classification.

This module contains standardized result types for operations across
the application, including status enums, result dataclasses, the exception
hierarchy, and the error classifier for local and remote failures.
"""

from infrastructure.operations.classifiers import (
    ErrorClassifier,
    classify_failure,
    classify_remote_error,
)
from infrastructure.operations.error_log import ErrorLogEntry, OperationErrorLog
from infrastructure.operations.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
    OperationCancelledError,
    OperationFailedError,
    PiqueError,
    RemoteServiceError,
    StorageQuotaExceededError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "ErrorClassifier",
    "classify_failure",
    "classify_remote_error",
    "ErrorLogEntry",
    "OperationErrorLog",
    "PiqueError",
    "InvalidArgumentError",
    "EntityNotFoundError",
    "StorageQuotaExceededError",
    "RemoteServiceError",
    "OperationFailedError",
    "OperationCancelledError",
]
