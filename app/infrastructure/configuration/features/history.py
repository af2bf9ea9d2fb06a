"""Segment undo/redo history settings."""

from pydantic import Field

from infrastructure.configuration.base import FeatureSettings


class HistorySettings(FeatureSettings):
    """Configuration for segment undo/redo.

    Environment Variables:
        SEGMENT_HISTORY_SIZE: Segment states kept for undo, the current one
            included (default: 20)
    """

    max_size: int = Field(
        default=20,
        alias="SEGMENT_HISTORY_SIZE",
        description="Segment states kept for undo",
    )
