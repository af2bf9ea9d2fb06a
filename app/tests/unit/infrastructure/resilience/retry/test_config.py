"""Unit tests for retry configuration."""

from types import SimpleNamespace

import pytest

from infrastructure.configuration import RetrySettings
from infrastructure.resilience.retry.config import RetryConfig


@pytest.mark.unit
class TestRetryConfig:
    """Tests for RetryConfig dataclass."""

    def test_create_config_with_defaults(self):
        """Test creating RetryConfig with default values."""
        config = RetryConfig()

        assert config.max_attempts == 3
        assert config.base_delay_seconds == 1.0
        assert config.max_delay_seconds == 30.0
        assert config.exhausted_policy == "queue"

    def test_config_validates_max_attempts(self):
        """Test that max_attempts must be at least 1."""
        with pytest.raises(ValueError, match="max_attempts must be at least 1"):
            RetryConfig(max_attempts=0)

    def test_config_validates_base_delay(self):
        with pytest.raises(ValueError, match="base_delay_seconds must be positive"):
            RetryConfig(base_delay_seconds=0)

    def test_config_validates_max_delay(self):
        with pytest.raises(ValueError, match="max_delay_seconds"):
            RetryConfig(base_delay_seconds=10, max_delay_seconds=5)

    def test_config_validates_exhausted_policy(self):
        with pytest.raises(ValueError, match="exhausted_policy"):
            RetryConfig(exhausted_policy="drop")

    def test_calculate_delay_doubles_per_attempt(self):
        """Test the default schedule is 1s, 2s, 4s."""
        config = RetryConfig()

        delays = [config.calculate_delay(attempt) for attempt in range(3)]

        assert delays == [1.0, 2.0, 4.0]

    def test_calculate_delay_uses_seed(self):
        config = RetryConfig()

        assert config.calculate_delay(0, seed=5) == 5
        assert config.calculate_delay(2, seed=5) == 20

    def test_calculate_delay_is_capped(self, retry_config_factory):
        config = retry_config_factory(max_delay_seconds=3)

        assert config.calculate_delay(5) == 3

    def test_from_settings(self):
        settings = RetrySettings(
            RETRY_MAX_ATTEMPTS=5,
            RETRY_BASE_DELAY_SECONDS=0.5,
            RETRY_MAX_DELAY_SECONDS=10,
            RETRY_EXHAUSTED_POLICY="Rollback",
        )

        config = RetryConfig.from_settings(settings)

        assert config.max_attempts == 5
        assert config.base_delay_seconds == 0.5
        assert config.max_delay_seconds == 10
        assert config.exhausted_policy == "rollback"

    def test_from_settings_accepts_any_settings_shape(self):
        settings = SimpleNamespace(
            max_attempts=1,
            base_delay_seconds=2.0,
            max_delay_seconds=2.0,
            exhausted_policy="queue",
        )

        config = RetryConfig.from_settings(settings)

        assert config.calculate_delay(3) == 2.0
