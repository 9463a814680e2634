"""Host-facing response cache with TTL policy and tag revalidation."""

from collections.abc import Mapping
from collections.abc import Sequence
from logging import getLogger
from typing import Any
from typing import Optional
from typing import Union

from pydantic import ValidationError

from .backends import BaseCacheBackend
from .backends import MemoryBackend
from .config import CacheSettings
from .exceptions import CacheConfigError
from .types import CacheContext

logger = getLogger(__name__)


class ResponseCache:
    """Cache for rendered responses, keyed by opaque strings.

    Entries expire after their ``revalidate`` seconds, are dropped when one of
    their tags is revalidated, and not-found pages are never kept longer than
    ``settings.not_found_ttl``. Stale entries are evicted lazily on read.

    Args:
        options: Host options, stored as-is and never interpreted
        backend: Storage backend (default: a new MemoryBackend)
        settings: Cache settings (default: CacheSettings())
    """

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        *,
        backend: Optional[BaseCacheBackend] = None,
        settings: Optional[CacheSettings] = None,
    ) -> None:
        self.options = dict(options or {})
        self.settings = settings or CacheSettings()
        self.backend = backend or MemoryBackend(
            cleanup_interval=self.settings.cleanup_interval
        )

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached payload for ``key``, or None on a miss."""
        value = await self.backend.get(key)
        logger.debug("Cache %s: %s", "hit" if value is not None else "miss", key)
        return value

    async def set(
        self,
        key: str,
        payload: Any,
        context: Union[CacheContext, Mapping[str, Any], None] = None,
    ) -> None:
        """Store ``payload`` under ``key``, replacing any previous entry.

        Raises:
            CacheConfigError: If ``context`` is not a valid CacheContext
        """
        ctx = self._make_context(context)

        if ctx.not_found:
            ttl: Optional[float] = self.settings.not_found_ttl
        elif ctx.revalidate:
            ttl = ctx.revalidate
        else:
            ttl = None

        await self.backend.set(key, payload, ttl=ttl, tags=ctx.tags or [])

    async def revalidate_tag(self, tag: Union[str, Sequence[str]]) -> None:
        """Invalidate every entry carrying ``tag`` (or each of a list of tags)."""
        tags = [tag] if isinstance(tag, str) else list(tag)
        window = self.settings.tag_revalidation_window
        for item in tags:
            removed = await self.backend.revalidate_tag(item, window)
            logger.info("Revalidated tag <%s>, removed %d entries", item, removed)

    async def delete(self, key: str) -> None:
        await self.backend.delete(key)

    async def clear(self) -> None:
        await self.backend.clear()

    @staticmethod
    def _make_context(
        context: Union[CacheContext, Mapping[str, Any], None],
    ) -> CacheContext:
        if context is None:
            return CacheContext()
        if isinstance(context, CacheContext):
            return context
        try:
            return CacheContext.model_validate(dict(context))
        except ValidationError as exc:
            msg = f"Invalid cache context: {exc}"
            raise CacheConfigError(msg) from exc
