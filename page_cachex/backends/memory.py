import asyncio
import time
from collections.abc import Callable
from collections.abc import Iterable
from logging import getLogger
from typing import Any
from typing import Optional

from page_cachex.types import CacheEntry

from .base import BaseCacheBackend

logger = getLogger(__name__)


class MemoryBackend(BaseCacheBackend):
    """In-memory cache backend with tag invalidation."""

    def __init__(
        self,
        cleanup_interval: float = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache: dict[str, CacheEntry] = {}
        # tag -> epoch timestamp until which the tag stays revalidated
        self.revalidated_tags: dict[str, float] = {}
        self.lock = asyncio.Lock()
        self.cleanup_interval = cleanup_interval
        self.clock = clock
        self._cleanup_task: Optional[asyncio.Task[None]] = None

    def _is_revalidated(self, tag: str, now: float) -> bool:
        until = self.revalidated_tags.get(tag)
        if until is None:
            return False
        if now >= until:
            del self.revalidated_tags[tag]
            return False
        return True

    def _is_stale(self, entry: CacheEntry, now: float) -> bool:
        if entry.is_expired(now):
            return True
        return any(self._is_revalidated(tag, now) for tag in entry.tags)

    async def get(self, key: str) -> Optional[Any]:
        async with self.lock:
            entry = self.cache.get(key)
            if entry is None:
                return None

            if self._is_stale(entry, self.clock()):
                logger.debug("Evicting stale entry: %s", key)
                del self.cache[key]
                return None

            return entry.value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        tags: Iterable[str] = (),
    ) -> None:
        async with self.lock:
            now = self.clock()
            expires_at = now + ttl if ttl is not None else None
            self.cache[key] = CacheEntry(
                value=value,
                tags=frozenset(tags),
                expires_at=expires_at,
                last_modified=now,
            )

    async def delete(self, key: str) -> None:
        async with self.lock:
            self.cache.pop(key, None)

    async def revalidate_tag(self, tag: str, window: float) -> int:
        async with self.lock:
            until = self.clock() + window
            self.revalidated_tags[tag] = max(
                until, self.revalidated_tags.get(tag, until)
            )

            tagged_keys = [k for k, v in self.cache.items() if tag in v.tags]
            for key in tagged_keys:
                del self.cache[key]
            return len(tagged_keys)

    async def clear(self) -> None:
        async with self.lock:
            self.cache.clear()
            self.revalidated_tags.clear()

    def start_cleanup(self) -> None:
        """Start the periodic cleanup task on the running event loop."""
        if self._cleanup_task is None:
            logger.info(
                "Starting cache cleanup every %s seconds", self.cleanup_interval
            )
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    def stop_cleanup(self) -> None:
        """Cancel the periodic cleanup task if it is running."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            await self.cleanup()

    async def cleanup(self) -> int:
        """Remove expired entries, tag-invalidated entries and elapsed tag windows.

        Returns:
            The number of entries removed
        """
        async with self.lock:
            now = self.clock()
            stale_keys = [
                k for k, v in self.cache.items() if self._is_stale(v, now)
            ]
            for key in stale_keys:
                self.cache.pop(key, None)

            elapsed_tags = [
                t for t, until in self.revalidated_tags.items() if now >= until
            ]
            for tag in elapsed_tags:
                del self.revalidated_tags[tag]

        if stale_keys or elapsed_tags:
            logger.info(
                "Cache cleanup removed %d entries and %d revalidated tags",
                len(stale_keys),
                len(elapsed_tags),
            )
        return len(stale_keys)

    async def get_all_keys(self) -> list[str]:
        """Return every stored key, stale ones included."""
        async with self.lock:
            return list(self.cache.keys())

    async def get_cache_data(self) -> dict[str, CacheEntry]:
        """Return a snapshot of the raw entries, stale ones included."""
        async with self.lock:
            return dict(self.cache)

    async def get_revalidated_tags(self) -> dict[str, float]:
        """Return the tags still inside their revalidation window."""
        async with self.lock:
            now = self.clock()
            return {
                t: until for t, until in self.revalidated_tags.items() if now < until
            }
