"""Retry system infrastructure settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import InfrastructureSettings

EXHAUSTED_POLICIES = ("queue", "rollback")


class RetrySettings(InfrastructureSettings):
    """Retry configuration for remote calls issued by mutations and searches.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Retries after the first call before a failure is terminal (default: 3)
        RETRY_BASE_DELAY_SECONDS: Base exponential backoff delay (default: 1s)
        RETRY_MAX_DELAY_SECONDS: Maximum backoff delay (default: 30s)
        RETRY_EXHAUSTED_POLICY: What happens to an optimistic mutation whose
            service-unavailable retries ran out: 'queue' keeps it and queues it
            for replay, 'rollback' restores the pre-mutation snapshot (default: queue)

    Exponential Backoff:
        Delay calculation: min(base_delay * (2 ^ attempt), max_delay)

        Example with defaults (base=1s, max=30s):
            Attempt 0: 1s
            Attempt 1: 2s
            Attempt 2: 4s

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        max_attempts = settings.retry.max_attempts
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="RETRY_MAX_ATTEMPTS",
        description="Retries after the first call before a failure is terminal",
    )
    base_delay_seconds: float = Field(
        default=1.0,
        alias="RETRY_BASE_DELAY_SECONDS",
        description="Base delay for exponential backoff (seconds)",
    )
    max_delay_seconds: float = Field(
        default=30.0,
        alias="RETRY_MAX_DELAY_SECONDS",
        description="Maximum delay for exponential backoff (seconds)",
    )
    exhausted_policy: str = Field(
        default="queue",
        alias="RETRY_EXHAUSTED_POLICY",
        description="'queue' or 'rollback' once service-unavailable retries run out",
    )

    @field_validator("exhausted_policy", mode="before")
    @classmethod
    def _validate_exhausted_policy(cls, v: str) -> str:
        """Normalize and validate RETRY_EXHAUSTED_POLICY."""
        value = str(v).strip().lower()
        if value not in EXHAUSTED_POLICIES:
            raise ValueError(
                f"RETRY_EXHAUSTED_POLICY must be one of {', '.join(EXHAUSTED_POLICIES)}"
            )
        return value
