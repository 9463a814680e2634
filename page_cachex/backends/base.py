from abc import ABC
from abc import abstractmethod
from collections.abc import Iterable
from typing import Any
from typing import Optional


class BaseCacheBackend(ABC):
    """Base class for all cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Retrieve a cached payload, or None when missing or stale."""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        tags: Iterable[str] = (),
    ) -> None:
        """Store a payload in the cache."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a payload from the cache."""

    @abstractmethod
    async def revalidate_tag(self, tag: str, window: float) -> int:
        """Invalidate every entry carrying ``tag`` and keep it invalid for ``window`` seconds."""

    @abstractmethod
    async def clear(self) -> None:
        """Clear all cached payloads."""
