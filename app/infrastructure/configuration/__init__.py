"""Infrastructure configuration module - public API.

This module provides centralized configuration management for pique
using Pydantic BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)
    RetrySettings, CacheSettings, OfflineSettings, AutoSaveSettings,
    HistorySettings:
        Section settings classes

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    retry_delay = settings.retry.base_delay_seconds
    cache_ttl = settings.cache.ttl_seconds

    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure import CacheSettings, RetrySettings
from infrastructure.configuration.features import (
    AutoSaveSettings,
    HistorySettings,
    OfflineSettings,
)

__all__ = [
    "Settings",
    "RetrySettings",
    "CacheSettings",
    "OfflineSettings",
    "AutoSaveSettings",
    "HistorySettings",
]
