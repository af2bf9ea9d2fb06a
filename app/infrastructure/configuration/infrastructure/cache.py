"""Result cache infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class CacheSettings(InfrastructureSettings):
    """Configuration for the in-memory result cache used by searches.

    Environment Variables:
        CACHE_CAPACITY: Maximum number of cached entries (default: 50)
        CACHE_TTL_SECONDS: Time-to-live for cached entries (default: 300s = 5min)
    """

    capacity: int = Field(
        default=50,
        alias="CACHE_CAPACITY",
        description="Maximum number of cached entries",
    )
    ttl_seconds: float = Field(
        default=300.0,
        alias="CACHE_TTL_SECONDS",
        description="Time-to-live for cached entries (seconds)",
    )
