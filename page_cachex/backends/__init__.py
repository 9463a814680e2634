"""Cache backend implementations for page-cachex."""

from .base import BaseCacheBackend
from .memory import MemoryBackend

__all__ = [
    "BaseCacheBackend",
    "MemoryBackend",
]
