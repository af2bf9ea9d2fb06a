"""Durable offline mutation queue."""

from pique.offline.config import OfflineConfig
from pique.offline.models import PendingMutation
from pique.offline.queue import OfflineQueue, ReplayProcessor

__all__ = [
    "OfflineConfig",
    "OfflineQueue",
    "PendingMutation",
    "ReplayProcessor",
]
