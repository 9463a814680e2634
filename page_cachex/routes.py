"""Administrative routes for revalidating and inspecting the response cache."""

import secrets
import time
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import FastAPI
from fastapi import Header
from fastapi import HTTPException
from fastapi import Query
from pydantic import BaseModel
from starlette.status import HTTP_401_UNAUTHORIZED

from .backends import MemoryBackend
from .handler import ResponseCache
from .types import CACHE_KEY_SEPARATOR
from .types import CacheEntry
from .types import CachedPage


class RevalidateResult(BaseModel):
    revalidated: bool
    tags: list[str]
    now_ms: int


class DeleteResult(BaseModel):
    deleted: str


class CachedHit(BaseModel):
    cache_key: str
    method: str
    host: str
    path: str
    query_params: str
    etag: Optional[str]
    tags: list[str]
    is_expired: bool
    is_revalidated: bool
    ttl_remaining: Optional[float]


class CachedHitsResult(BaseModel):
    cached_hits: list[CachedHit]
    total_hits: int
    valid_hits: int
    expired_hits: int
    unique_routes: int
    # tag -> epoch seconds until which it stays revalidated
    revalidated_tags: dict[str, float]


def _parse_cache_key(cache_key: str) -> tuple[str, str, str, str]:
    """Split a default cache key into method, host, path and query params.

    Keys that were not built by the default key builder are returned whole
    as the path.
    """
    parts = cache_key.split(CACHE_KEY_SEPARATOR, 3)
    if len(parts) < 3:
        return "", "", cache_key, ""
    method, host, path = parts[:3]
    query_params = parts[3] if len(parts) == 4 else ""
    return method, host, path, query_params


def _describe(
    key: str,
    entry: CacheEntry,
    now: float,
    revalidated_tags: dict[str, float],
) -> CachedHit:
    method, host, path, query_params = _parse_cache_key(key)
    is_expired = entry.is_expired(now)
    ttl_remaining = (
        max(entry.expires_at - now, 0.0) if entry.expires_at is not None else None
    )
    return CachedHit(
        cache_key=key,
        method=method,
        host=host,
        path=path,
        query_params=query_params,
        etag=entry.value.etag if isinstance(entry.value, CachedPage) else None,
        tags=sorted(entry.tags),
        is_expired=is_expired,
        is_revalidated=any(tag in revalidated_tags for tag in entry.tags),
        ttl_remaining=ttl_remaining,
    )


def add_routes(app: FastAPI, handler: ResponseCache, prefix: str = "") -> None:
    """Mount the cache administration routes on ``app``.

    Args:
        app: The FastAPI application
        handler: The response cache to administer
        prefix: Path prefix for the routes
    """

    async def verify_secret(
        x_revalidate_secret: Optional[str] = Header(default=None),
    ) -> None:
        expected = handler.settings.admin_secret
        if expected is None:
            return
        if x_revalidate_secret is None or not secrets.compare_digest(
            x_revalidate_secret, expected
        ):
            raise HTTPException(
                status_code=HTTP_401_UNAUTHORIZED, detail="Invalid revalidate secret"
            )

    router = APIRouter(prefix=prefix, dependencies=[Depends(verify_secret)])

    @router.post("/revalidate", response_model=RevalidateResult)
    async def revalidate(tag: list[str] = Query(...)) -> RevalidateResult:
        await handler.revalidate_tag(tag)
        return RevalidateResult(
            revalidated=True, tags=tag, now_ms=int(time.time() * 1000)
        )

    @router.delete("/cached-pages", response_model=DeleteResult)
    async def delete_cached_page(key: str = Query(..., min_length=1)) -> DeleteResult:
        await handler.delete(key)
        return DeleteResult(deleted=key)

    @router.get("/cached-hits", response_model=CachedHitsResult)
    async def cached_hits() -> CachedHitsResult:
        backend = handler.backend
        if not isinstance(backend, MemoryBackend):
            return CachedHitsResult(
                cached_hits=[],
                total_hits=0,
                valid_hits=0,
                expired_hits=0,
                unique_routes=0,
                revalidated_tags={},
            )

        cache_data = await backend.get_cache_data()
        revalidated_tags = await backend.get_revalidated_tags()
        now = backend.clock()

        hits = [
            _describe(key, entry, now, revalidated_tags)
            for key, entry in cache_data.items()
        ]
        expired = sum(1 for hit in hits if hit.is_expired or hit.is_revalidated)
        return CachedHitsResult(
            cached_hits=hits,
            total_hits=len(hits),
            valid_hits=len(hits) - expired,
            expired_hits=expired,
            unique_routes=len({hit.path for hit in hits}),
            revalidated_tags=revalidated_tags,
        )

    app.include_router(router)
