"""Auto-save configuration."""

from dataclasses import dataclass


@dataclass
class AutoSaveConfig:
    """Configuration for the auto-save pipeline.

    Attributes:
        enabled: Whether submitted snapshots are saved automatically
        debounce_seconds: Quiet period after the last submission before saving
        max_snapshot_bytes: Largest serialized snapshot accepted
    """

    enabled: bool = True
    debounce_seconds: float = 2.0
    max_snapshot_bytes: int = 50 * 1024 * 1024

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if self.max_snapshot_bytes <= 0:
            raise ValueError("max_snapshot_bytes must be positive")

    @classmethod
    def from_settings(cls, settings) -> "AutoSaveConfig":
        """Build an AutoSaveConfig from AutoSaveSettings."""
        return cls(
            enabled=settings.enabled,
            debounce_seconds=settings.debounce_seconds,
            max_snapshot_bytes=settings.max_snapshot_bytes,
        )
