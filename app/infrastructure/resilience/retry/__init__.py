"""Retry scheduling for transient failures.

Architecture:
- RetryConfig: Attempts, backoff and exhausted-retry policy
- RetryScheduler: Runs async operations with classified, bounded retries

Usage:
    from infrastructure.resilience.retry import RetryConfig, RetryScheduler

    scheduler = RetryScheduler(RetryConfig(max_attempts=3, base_delay_seconds=1))
    entity = await scheduler.run(lambda: service.update(entity_id, patch))
"""

from infrastructure.resilience.retry.config import (
    EXHAUSTED_QUEUE,
    EXHAUSTED_ROLLBACK,
    RetryConfig,
)
from infrastructure.resilience.retry.scheduler import RetryScheduler

__all__ = [
    "EXHAUSTED_QUEUE",
    "EXHAUSTED_ROLLBACK",
    "RetryConfig",
    "RetryScheduler",
]
