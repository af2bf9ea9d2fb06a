"""Auto-save feature settings."""

from pydantic import Field

from infrastructure.configuration.base import FeatureSettings


class AutoSaveSettings(FeatureSettings):
    """Configuration for debounced whole-project auto-save.

    Environment Variables:
        AUTOSAVE_ENABLED: Save automatically after changes (default: True)
        AUTOSAVE_DEBOUNCE_SECONDS: Quiet period before a save (default: 2s)
        AUTOSAVE_MAX_SNAPSHOT_BYTES: Largest serialized snapshot accepted
            (default: 52428800 = 50MB)
    """

    enabled: bool = Field(
        default=True,
        alias="AUTOSAVE_ENABLED",
        description="Save automatically after changes",
    )
    debounce_seconds: float = Field(
        default=2.0,
        alias="AUTOSAVE_DEBOUNCE_SECONDS",
        description="Quiet period before a save (seconds)",
    )
    max_snapshot_bytes: int = Field(
        default=50 * 1024 * 1024,
        alias="AUTOSAVE_MAX_SNAPSHOT_BYTES",
        description="Largest serialized snapshot accepted (bytes)",
    )
