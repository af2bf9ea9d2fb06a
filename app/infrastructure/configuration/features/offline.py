"""Offline queue feature settings."""

from pydantic import Field

from infrastructure.configuration.base import FeatureSettings


class OfflineSettings(FeatureSettings):
    """Configuration for the durable offline mutation queue.

    Environment Variables:
        OFFLINE_STORAGE_PREFIX: Key prefix used in the key-value store (default: pique)
        OFFLINE_MAX_REPLAY_ATTEMPTS: Failed replays against the remote before an
            entry is dead-lettered; lost connectivity is not counted (default: 5)
        OFFLINE_REPLAY_DELAY_SECONDS: Pause after a reconnect signal before
            replay starts, letting the connection settle (default: 1s)
    """

    storage_prefix: str = Field(
        default="pique",
        alias="OFFLINE_STORAGE_PREFIX",
        description="Key prefix used in the key-value store",
    )
    max_replay_attempts: int = Field(
        default=5,
        alias="OFFLINE_MAX_REPLAY_ATTEMPTS",
        description="Replay attempts before an entry is dead-lettered",
    )
    replay_delay_seconds: float = Field(
        default=1.0,
        alias="OFFLINE_REPLAY_DELAY_SECONDS",
        description="Pause after reconnect before replay starts (seconds)",
    )
