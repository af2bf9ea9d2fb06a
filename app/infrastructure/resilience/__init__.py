"""Resilience patterns and implementations.

This module contains resilience-related infrastructure components: retry
scheduling, cooperative cancellation and keyed single-owner timers.
"""

from infrastructure.resilience.cancellation import (
    CancellationScope,
    CancellationToken,
)
from infrastructure.resilience.retry import (
    RetryConfig,
    RetryScheduler,
)
from infrastructure.resilience.timers import TimerRegistry

__all__ = [
    # Cancellation
    "CancellationScope",
    "CancellationToken",
    # Retry
    "RetryConfig",
    "RetryScheduler",
    # Timers
    "TimerRegistry",
]
