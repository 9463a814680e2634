"""Type definitions and type aliases for page-cachex."""

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Literal
from typing import Optional

from pydantic import BaseModel
from pydantic import Field

# Cache key separator - using ||| to avoid conflicts with port numbers in host (e.g., 127.0.0.1:8000)
CACHE_KEY_SEPARATOR = "|||"


@dataclass
class CacheEntry:
    """Cache entry with optional expiry time and invalidation tags.

    Args:
        value: The cached payload, never inspected by the cache
        tags: Tags used for group invalidation
        expires_at: Epoch timestamp when this entry expires (None = never expires)
        last_modified: Epoch timestamp of the write
    """

    value: Any
    tags: frozenset[str] = frozenset()
    expires_at: float | None = None
    last_modified: float = 0.0

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


@dataclass
class CachedPage:
    """Rendered page as stored by the route decorator."""

    status_code: int
    body: bytes
    etag: str
    media_type: Optional[str] = None
    headers: list[tuple[str, str]] = field(default_factory=list)


class CacheContext(BaseModel):
    """Options recognized by ``ResponseCache.set``."""

    revalidate: float | Literal[False] | None = Field(
        default=None,
        description="Seconds until expiry (None, False or 0 = no time-based expiry)",
    )
    tags: Optional[list[str]] = Field(
        default=None,
        description="Tags attached to the entry for later invalidation (None = no tags)",
    )
    not_found: bool = Field(
        default=False,
        description="Whether the payload is a page-not-found response",
    )
