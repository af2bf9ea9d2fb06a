"""Offline queue configuration."""

from dataclasses import dataclass


@dataclass
class OfflineConfig:
    """Configuration for the offline mutation queue.

    Attributes:
        storage_prefix: Key prefix in the key-value store
        max_replay_attempts: Failed replays before an entry is dead-lettered
        replay_delay_seconds: Pause between a reconnect signal and replay
    """

    storage_prefix: str = "pique"
    max_replay_attempts: int = 5
    replay_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.storage_prefix:
            raise ValueError("storage_prefix is required")
        if self.max_replay_attempts < 1:
            raise ValueError("max_replay_attempts must be at least 1")
        if self.replay_delay_seconds < 0:
            raise ValueError("replay_delay_seconds must be >= 0")

    @classmethod
    def from_settings(cls, settings) -> "OfflineConfig":
        """Build an OfflineConfig from OfflineSettings."""
        return cls(
            storage_prefix=settings.storage_prefix,
            max_replay_attempts=settings.max_replay_attempts,
            replay_delay_seconds=settings.replay_delay_seconds,
        )
