"""Retry scheduling configuration.

This module defines configuration for retry behavior.
"""

from dataclasses import dataclass

EXHAUSTED_QUEUE = "queue"
EXHAUSTED_ROLLBACK = "rollback"


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Retries allowed after the first call before the failure is terminal
        base_delay_seconds: Base delay for exponential backoff (first retry)
        max_delay_seconds: Maximum delay between retries (cap for exponential backoff)
        exhausted_policy: 'queue' keeps an optimistic mutation and queues it for
            replay once retries run out; 'rollback' reverts it

    Example:
        # Default configuration
        config = RetryConfig()

        # Custom configuration
        config = RetryConfig(
            max_attempts=5,
            base_delay_seconds=0.5,
            exhausted_policy="rollback",
        )
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    exhausted_policy: str = EXHAUSTED_QUEUE

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds <= 0:
            raise ValueError("base_delay_seconds must be positive")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if self.exhausted_policy not in (EXHAUSTED_QUEUE, EXHAUSTED_ROLLBACK):
            raise ValueError("exhausted_policy must be 'queue' or 'rollback'")

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        """Build a RetryConfig from RetrySettings."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_seconds=settings.base_delay_seconds,
            max_delay_seconds=settings.max_delay_seconds,
            exhausted_policy=settings.exhausted_policy,
        )

    def calculate_delay(self, attempt: int, seed: float | None = None) -> float:
        """Backoff before retry ``attempt`` (0-based).

        Delay calculation: min(seed * (2 ^ attempt), max_delay), where seed
        defaults to base_delay_seconds.
        """
        seed = seed or self.base_delay_seconds
        return min(seed * (2**attempt), self.max_delay_seconds)
