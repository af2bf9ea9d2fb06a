"""Online/offline connectivity signal.

Holds the current connectivity state and notifies subscribers on every
transition. Handlers are called synchronously in subscription order; a
failing handler is logged and the remaining handlers still run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List

from infrastructure.logging import get_module_logger

logger = get_module_logger()


@dataclass(frozen=True)
class ConnectivityChange:
    """A transition of the connectivity state."""

    online: bool
    """Connectivity after the transition."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    """When the transition was observed."""

    @property
    def reconnected(self) -> bool:
        return self.online


ConnectivityHandler = Callable[[ConnectivityChange], Any]


class ConnectivityMonitor:
    """Observable boolean connectivity signal.

    Example:
        monitor = ConnectivityMonitor(online=True)
        unsubscribe = monitor.subscribe(lambda change: print(change.online))
        monitor.set_online(False)
        unsubscribe()
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._handlers: List[ConnectivityHandler] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, handler: ConnectivityHandler) -> Callable[[], None]:
        """Register a handler for connectivity transitions.

        Returns:
            Callable that removes the handler.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def set_online(self, online: bool) -> List[Any]:
        """Update connectivity, notifying handlers if it changed.

        Returns:
            List of return values from all handlers (empty when unchanged).
        """
        if online == self._online:
            return []

        self._online = online
        change = ConnectivityChange(online=online)
        logger.info(
            "connectivity_changed",
            online=online,
            handler_count=len(self._handlers),
        )

        results = []
        for handler in list(self._handlers):
            try:
                results.append(handler(change))
            except Exception as e:
                handler_name = getattr(handler, "__name__", "unknown")
                logger.error(
                    "connectivity_handler_failed",
                    handler=handler_name,
                    online=online,
                    error=str(e),
                )
        return results
