"""Pique configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Feature settings
from infrastructure.configuration.features import (
    AutoSaveSettings,
    HistorySettings,
    OfflineSettings,
)

# Infrastructure settings
from infrastructure.configuration.infrastructure import (
    CacheSettings,
    RetrySettings,
)


class Settings(BaseSettings):
    """Pique configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Features**: Offline queue, auto-save and segment history behavior
    - **Infrastructure**: Core system configurations (retry, result cache)

    Environment Variables:
        PREFIX: Environment prefix; empty in production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        if settings.autosave.enabled:
            delay = settings.autosave.debounce_seconds

        max_attempts = settings.retry.max_attempts
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    # Feature settings
    offline: OfflineSettings
    autosave: AutoSaveSettings
    history: HistorySettings

    # Infrastructure settings
    retry: RetrySettings
    cache: CacheSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Features
            "offline": OfflineSettings,
            "autosave": AutoSaveSettings,
            "history": HistorySettings,
            # Infrastructure
            "retry": RetrySettings,
            "cache": CacheSettings,
        }

        for key, settings_class in settings_map.items():
            if key not in kwargs:
                kwargs[key] = settings_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
