"""Keyed single-owner timers for debounced async callbacks."""

import asyncio
from typing import Any, Awaitable, Callable, Dict

import structlog

logger = structlog.get_logger()


class TimerRegistry:
    """Runs a callback after a delay, at most one pending timer per key.

    Starting a timer for a key that already has one pending cancels the
    pending timer. Must be used from within a running event loop.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> None:
        self._sleep = sleep
        self._timers: Dict[str, "asyncio.Task[Any]"] = {}
        self.log = logger.bind(component="timer_registry")

    def start(
        self,
        key: str,
        delay: float,
        callback: Callable[[], Awaitable[Any]],
    ) -> "asyncio.Task[Any]":
        """(Re)start the timer for ``key``.

        Args:
            key: Logical operation key owning the timer
            delay: Seconds to wait before invoking ``callback``
            callback: Zero-argument coroutine function

        Returns:
            The task running the timer
        """
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, delay, callback))
        self._timers[key] = task
        return task

    async def _run(
        self, key: str, delay: float, callback: Callable[[], Awaitable[Any]]
    ) -> Any:
        await self._sleep(delay)
        # Past this point the timer has fired and can no longer be superseded
        if self._timers.get(key) is asyncio.current_task():
            del self._timers[key]
        return await callback()

    def cancel(self, key: str) -> bool:
        task = self._timers.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        self.log.debug("timer_cancelled", key=key)
        return True

    def cancel_all(self) -> None:
        for key in list(self._timers):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        task = self._timers.get(key)
        return task is not None and not task.done()
