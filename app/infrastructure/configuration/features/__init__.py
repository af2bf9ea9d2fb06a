"""Feature settings __init__ - exports all feature settings."""

from infrastructure.configuration.features.autosave import AutoSaveSettings
from infrastructure.configuration.features.history import HistorySettings
from infrastructure.configuration.features.offline import OfflineSettings

__all__ = [
    "AutoSaveSettings",
    "HistorySettings",
    "OfflineSettings",
]
