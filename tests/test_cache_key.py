"""Tests for cache key generation."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from page_cachex import ResponseCache
from page_cachex import cache
from page_cachex.backends import MemoryBackend
from page_cachex.routes import _parse_cache_key
from page_cachex.types import CACHE_KEY_SEPARATOR


def make_app() -> tuple[FastAPI, MemoryBackend]:
    app = FastAPI()
    backend = MemoryBackend()
    handler = ResponseCache(backend=backend)

    @app.get("/api/search")
    @cache(handler, revalidate=60)
    async def search_endpoint():
        return {"results": []}

    return app, backend


def test_cache_key_with_host_and_port():
    app, backend = make_app()

    client = TestClient(app, base_url="http://127.0.0.1:8000")
    client.get("/api/search?q=test")

    (cache_key,) = backend.cache
    assert CACHE_KEY_SEPARATOR in cache_key
    assert _parse_cache_key(cache_key) == ("GET", "127.0.0.1:8000", "/api/search", "q=test")


def test_cache_key_with_ipv6_host():
    app, backend = make_app()

    client = TestClient(app, base_url="http://[::1]:8000")
    client.get("/api/search")

    (cache_key,) = backend.cache
    assert _parse_cache_key(cache_key) == ("GET", "[::1]:8000", "/api/search", "")


def test_different_ports_generate_different_keys():
    app, backend = make_app()

    TestClient(app, base_url="http://localhost:8000").get("/api/search")
    TestClient(app, base_url="http://localhost:9000").get("/api/search")

    hosts = sorted(_parse_cache_key(key)[1] for key in backend.cache)
    assert hosts == ["localhost:8000", "localhost:9000"]


def test_different_query_params_generate_different_keys():
    app, backend = make_app()
    client = TestClient(app)

    client.get("/api/search?q=noir")
    client.get("/api/search?q=western")
    client.get("/api/search?q=noir")

    assert len(backend.cache) == 2
