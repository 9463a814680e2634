"""Cache configuration settings."""

from pydantic import BaseModel
from pydantic import Field


class CacheSettings(BaseModel):
    """Response cache configuration settings."""

    not_found_ttl: int = Field(
        default=60,
        gt=0,
        description="Time-to-live in seconds forced on not-found pages (default: 1 minute)",
    )
    tag_revalidation_window: int = Field(
        default=60,
        gt=0,
        description="Seconds a revalidated tag keeps invalidating entries that carry it",
    )
    cleanup_interval: int = Field(
        default=60,
        gt=0,
        description="Seconds between background sweeps of expired entries",
    )
    admin_secret: str | None = Field(
        default=None,
        description="Shared secret required by the admin routes (None = open)",
    )
