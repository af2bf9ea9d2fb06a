"""Shared fixtures for retry scheduler tests."""

from typing import Any, List
from unittest.mock import AsyncMock

import pytest

from infrastructure.operations.exceptions import RemoteServiceError
from infrastructure.resilience.retry import RetryConfig, RetryScheduler


@pytest.fixture
def retry_config_factory():
    """Factory for creating RetryConfig instances."""

    def _factory(
        max_attempts: int = 3,
        base_delay_seconds: float = 1.0,
        max_delay_seconds: float = 30.0,
        exhausted_policy: str = "queue",
    ) -> RetryConfig:
        return RetryConfig(
            max_attempts=max_attempts,
            base_delay_seconds=base_delay_seconds,
            max_delay_seconds=max_delay_seconds,
            exhausted_policy=exhausted_policy,
        )

    return _factory


@pytest.fixture
def scheduler_factory(retry_config_factory, no_sleep):
    """Factory for RetryScheduler instances that never actually sleep."""

    def _factory(sleep=None, **config_kwargs) -> RetryScheduler:
        return RetryScheduler(
            retry_config_factory(**config_kwargs),
            sleep=sleep or no_sleep,
        )

    return _factory


@pytest.fixture
def flaky_operation_factory():
    """Factory for AsyncMock operations failing a number of times first.

    Each failure is a 503 RemoteServiceError unless ``errors`` is given.
    """

    def _factory(
        failures: int = 0,
        result: Any = "ok",
        errors: List[BaseException] | None = None,
    ) -> AsyncMock:
        side_effects: List[Any] = list(errors or [])
        side_effects.extend(
            RemoteServiceError("unavailable", status_code=503)
            for _ in range(failures)
        )
        side_effects.append(result)
        return AsyncMock(side_effect=side_effects)

    return _factory
