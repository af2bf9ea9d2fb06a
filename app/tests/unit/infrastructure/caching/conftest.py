"""Fixtures for result cache tests."""

import pytest

from infrastructure.caching import InMemoryResultCache


class FakeClock:
    """Monotonic clock advanced manually."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def result_cache_factory(clock):
    """Factory for InMemoryResultCache instances on the fake clock."""

    def _factory(capacity: int = 50, ttl_seconds: float = 300.0) -> InMemoryResultCache:
        return InMemoryResultCache(capacity=capacity, ttl_seconds=ttl_seconds, clock=clock)

    return _factory
