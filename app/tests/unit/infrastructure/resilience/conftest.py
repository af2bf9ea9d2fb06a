"""Fixtures for infrastructure resilience tests.

Level: Component-level fixtures for resilience module
"""

import asyncio

import pytest


class GatedSleep:
    """Sleep replacement that blocks until released and records delays."""

    def __init__(self):
        self.delays = []
        self._gate = asyncio.Event()

    async def __call__(self, delay):
        self.delays.append(delay)
        await self._gate.wait()

    def release(self):
        self._gate.set()


@pytest.fixture
def gated_sleep():
    """Sleep that waits until ``release()`` is called."""
    return GatedSleep()
