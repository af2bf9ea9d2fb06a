"""Unit tests for infrastructure.configuration.settings module.

Tests cover:
- Section settings defaults and environment overrides
- Settings aggregator initialization
- Settings provider caching
"""

import pytest
from pydantic import ValidationError

from infrastructure.configuration import (
    AutoSaveSettings,
    CacheSettings,
    HistorySettings,
    OfflineSettings,
    RetrySettings,
    Settings,
)
from infrastructure.services.providers import get_settings


@pytest.mark.unit
class TestRetrySettings:
    """Test suite for RetrySettings configuration."""

    def test_retry_settings_defaults(self):
        """Test RetrySettings uses correct default values."""
        retry = RetrySettings()

        assert retry.max_attempts == 3
        assert retry.base_delay_seconds == 1.0
        assert retry.max_delay_seconds == 30.0
        assert retry.exhausted_policy == "queue"

    def test_retry_settings_custom_values(self, monkeypatch):
        """Test RetrySettings accepts custom configuration."""
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("RETRY_BASE_DELAY_SECONDS", "0.5")
        monkeypatch.setenv("RETRY_MAX_DELAY_SECONDS", "10")
        monkeypatch.setenv("RETRY_EXHAUSTED_POLICY", "ROLLBACK")

        retry = RetrySettings()

        assert retry.max_attempts == 5
        assert retry.base_delay_seconds == 0.5
        assert retry.max_delay_seconds == 10
        assert retry.exhausted_policy == "rollback"

    def test_retry_settings_rejects_unknown_policy(self, monkeypatch):
        monkeypatch.setenv("RETRY_EXHAUSTED_POLICY", "ignore")

        with pytest.raises(ValidationError, match="RETRY_EXHAUSTED_POLICY"):
            RetrySettings()


@pytest.mark.unit
class TestFeatureSettings:
    """Test suite for offline, auto-save and history settings."""

    def test_offline_defaults(self):
        offline = OfflineSettings()

        assert offline.storage_prefix == "pique"
        assert offline.max_replay_attempts == 5
        assert offline.replay_delay_seconds == 1.0

    def test_autosave_defaults(self):
        autosave = AutoSaveSettings()

        assert autosave.enabled is True
        assert autosave.debounce_seconds == 2.0
        assert autosave.max_snapshot_bytes == 50 * 1024 * 1024

    def test_autosave_env_override(self, monkeypatch):
        monkeypatch.setenv("AUTOSAVE_ENABLED", "false")
        monkeypatch.setenv("AUTOSAVE_DEBOUNCE_SECONDS", "0.5")

        autosave = AutoSaveSettings()

        assert autosave.enabled is False
        assert autosave.debounce_seconds == 0.5

    def test_history_defaults_and_env_override(self, monkeypatch):
        assert HistorySettings().max_size == 20

        monkeypatch.setenv("SEGMENT_HISTORY_SIZE", "5")

        assert HistorySettings().max_size == 5

    def test_cache_defaults(self):
        cache = CacheSettings()

        assert cache.capacity == 50
        assert cache.ttl_seconds == 300.0


@pytest.mark.unit
class TestSettings:
    """Test suite for the Settings aggregator."""

    def test_sections_are_instantiated(self):
        settings = Settings()

        assert isinstance(settings.retry, RetrySettings)
        assert isinstance(settings.cache, CacheSettings)
        assert isinstance(settings.offline, OfflineSettings)
        assert isinstance(settings.autosave, AutoSaveSettings)
        assert isinstance(settings.history, HistorySettings)

    def test_section_override(self):
        settings = Settings(autosave=AutoSaveSettings(AUTOSAVE_ENABLED=False))

        assert settings.autosave.enabled is False
        assert settings.retry.max_attempts == 3

    def test_is_production(self, monkeypatch):
        monkeypatch.setenv("PREFIX", "")
        assert Settings().is_production is True

        monkeypatch.setenv("PREFIX", "dev-")
        assert Settings().is_production is False


@pytest.mark.unit
class TestGetSettings:
    """Test suite for the settings provider."""

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
