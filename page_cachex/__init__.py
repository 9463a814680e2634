"""page-cachex: an in-process page cache with TTL and tag revalidation for FastAPI."""

from .cache import cache as cache
from .cache import default_key_builder as default_key_builder
from .config import CacheSettings as CacheSettings
from .handler import ResponseCache as ResponseCache
from .routes import add_routes as add_routes
from .types import CacheContext as CacheContext

__all__ = [
    "CacheContext",
    "CacheSettings",
    "ResponseCache",
    "add_routes",
    "cache",
    "default_key_builder",
]
