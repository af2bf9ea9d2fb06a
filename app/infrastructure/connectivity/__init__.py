"""Connectivity signal used to trigger offline replay."""

from infrastructure.connectivity.monitor import (
    ConnectivityChange,
    ConnectivityHandler,
    ConnectivityMonitor,
)

__all__ = [
    "ConnectivityChange",
    "ConnectivityHandler",
    "ConnectivityMonitor",
]
