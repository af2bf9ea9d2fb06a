"""Infrastructure modules for pique.

Centralized, domain-agnostic infrastructure components:
- configuration: Settings management (Settings, RetrySettings, ...)
- logging: Structured logging (get_module_logger, bind_mutation_context)
- operations: Operation results, exceptions and error classification
- resilience: Retry scheduling, cancellation tokens and keyed timers
- caching: Bounded TTL result cache
- persistence: Quota-bounded key-value stores
- connectivity: Online/offline signal
- services: Dependency injection providers (get_settings)
"""

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus
from infrastructure.services import get_settings

__all__ = [
    "OperationResult",
    "OperationStatus",
    "get_settings",
]
