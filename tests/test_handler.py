"""Tests for the host-facing ResponseCache."""

import pytest

from page_cachex import CacheContext
from page_cachex import CacheSettings
from page_cachex import ResponseCache
from page_cachex.backends.memory import MemoryBackend
from page_cachex.exceptions import CacheConfigError


@pytest.fixture
def handler(memory_backend: MemoryBackend) -> ResponseCache:
    return ResponseCache({"dev": True}, backend=memory_backend)


@pytest.mark.asyncio
async def test_options_are_kept_but_not_interpreted(handler: ResponseCache):
    assert handler.options == {"dev": True}
    assert isinstance(ResponseCache().backend, MemoryBackend)


@pytest.mark.asyncio
async def test_miss_returns_none(handler: ResponseCache):
    assert await handler.get("/pitches") is None


@pytest.mark.asyncio
async def test_miss_after_expiry(handler: ResponseCache, memory_backend, clock):
    payload = {"html": "<p>pitch</p>"}
    await handler.set("/pitches/1", payload, {"revalidate": 10})

    clock.advance(9)
    assert await handler.get("/pitches/1") is payload

    clock.advance(2)
    assert await handler.get("/pitches/1") is None
    assert "/pitches/1" not in memory_backend.cache


@pytest.mark.asyncio
@pytest.mark.parametrize("context", [None, {}, {"revalidate": 0}, {"revalidate": False}])
async def test_no_ttl_persists(handler: ResponseCache, clock, context):
    payload = {"html": "<p>home</p>"}
    await handler.set("/", payload, context)

    clock.advance(10 * 365 * 24 * 3600)

    assert await handler.get("/") is payload


@pytest.mark.asyncio
async def test_tag_invalidation_is_immediate_and_sticky(handler: ResponseCache):
    await handler.set("/pitches", "v1", {"tags": ["pitches"]})

    await handler.revalidate_tag("pitches")
    assert await handler.get("/pitches") is None

    await handler.set("/pitches", "v2", {"tags": ["pitches"]})
    assert await handler.get("/pitches") is None


@pytest.mark.asyncio
async def test_tag_window_expires(handler: ResponseCache, clock):
    await handler.revalidate_tag("pitches")

    clock.advance(60)
    await handler.set("/pitches", "v1", {"tags": ["pitches"]})

    assert await handler.get("/pitches") == "v1"


@pytest.mark.asyncio
async def test_revalidate_multiple_tags(handler: ResponseCache):
    await handler.set("/pitches/1", "one", {"tags": ["pitch:1"]})
    await handler.set("/pitches/2", "two", {"tags": ["pitch:2"]})
    await handler.set("/about", "about", {"tags": ["static"]})

    await handler.revalidate_tag(["pitch:1", "pitch:2"])

    assert await handler.get("/pitches/1") is None
    assert await handler.get("/pitches/2") is None
    assert await handler.get("/about") == "about"


@pytest.mark.asyncio
async def test_not_found_ttl_overrides_revalidate(handler: ResponseCache, clock):
    await handler.set(
        "/pitches/404", "missing", CacheContext(revalidate=3600, not_found=True)
    )

    clock.advance(60)
    assert await handler.get("/pitches/404") == "missing"

    clock.advance(1)
    assert await handler.get("/pitches/404") is None


@pytest.mark.asyncio
async def test_not_found_ttl_applies_without_revalidate(clock):
    handler = ResponseCache(
        backend=MemoryBackend(clock=clock),
        settings=CacheSettings(not_found_ttl=5),
    )
    await handler.set("/missing", "missing", {"not_found": True})

    clock.advance(6)

    assert await handler.get("/missing") is None


@pytest.mark.asyncio
async def test_custom_tag_window(clock):
    handler = ResponseCache(
        backend=MemoryBackend(clock=clock),
        settings=CacheSettings(tag_revalidation_window=5),
    )
    await handler.revalidate_tag("pitches")

    clock.advance(5)
    await handler.set("/pitches", "v1", {"tags": ["pitches"]})

    assert await handler.get("/pitches") == "v1"


@pytest.mark.asyncio
async def test_delete_is_unconditional(handler: ResponseCache):
    await handler.delete("/never-set")

    await handler.set("/pitches", "v1")
    await handler.delete("/pitches")

    assert await handler.get("/pitches") is None


@pytest.mark.asyncio
async def test_overwrite_uses_latest_entry(handler: ResponseCache, clock):
    await handler.set("/pitches", "v1", {"tags": ["old"], "revalidate": 1})
    await handler.set("/pitches", "v2", {"tags": ["new"]})

    await handler.revalidate_tag("old")
    clock.advance(5)

    assert await handler.get("/pitches") == "v2"


@pytest.mark.asyncio
async def test_clear(handler: ResponseCache):
    await handler.set("/pitches", "v1", {"tags": ["pitches"]})
    await handler.revalidate_tag("other")

    await handler.clear()

    assert await handler.get("/pitches") is None
    await handler.set("/other", "v1", {"tags": ["other"]})
    assert await handler.get("/other") == "v1"


@pytest.mark.asyncio
async def test_null_tags_and_revalidate_mean_defaults(handler: ResponseCache, clock):
    await handler.set("/pitches", "v1", {"tags": None, "revalidate": 60})
    await handler.set("/about", "about", {"tags": None, "revalidate": None})

    assert await handler.get("/pitches") == "v1"

    clock.advance(61)
    assert await handler.get("/pitches") is None
    assert await handler.get("/about") == "about"


@pytest.mark.asyncio
async def test_caller_tags_list_is_not_shared(handler: ResponseCache, memory_backend):
    tags = ["pitches"]
    await handler.set("/pitches", "v1", {"tags": tags})

    tags.append("comments")
    await handler.revalidate_tag("comments")

    assert await handler.get("/pitches") == "v1"
    assert memory_backend.cache["/pitches"].tags == frozenset({"pitches"})


@pytest.mark.asyncio
async def test_invalid_context_raises(handler: ResponseCache):
    with pytest.raises(CacheConfigError):
        await handler.set("/pitches", "v1", {"tags": "not-a-list"})
