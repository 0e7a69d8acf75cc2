import pytest
from aiohttp import web
from aiohttp import test_utils

from config.settings import ClientSettings
from client.errors import FetchError
from client.http_client import HttpClient
from client.memory_cache import MemoryCache


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestMemoryCache:
    """Test the in-memory response cache."""

    def test_get_and_set(self):
        cache = MemoryCache(max_size=10, ttl=60)
        cache.set("key", {"a": 1})

        assert cache.get("key") == {"a": 1}
        assert cache.get("missing") is None
        assert cache.stats()["hits"] == 1
        assert cache.stats()["misses"] == 1
        assert cache.stats()["hit_rate"] == 0.5

    def test_expiry(self):
        clock = FakeClock()
        cache = MemoryCache(ttl=10, clock=clock)
        cache.set("short", 1, ttl=1)
        cache.set("long", 2)

        clock.now += 5

        assert cache.get("short") is None
        assert cache.get("long") == 2

        clock.now += 10
        assert cache.cleanup_expired() == 1
        assert cache.size() == 0

    def test_least_recently_used_is_evicted(self):
        cache = MemoryCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_delete_and_clear(self):
        cache = MemoryCache()
        cache.set("a", 1)

        assert cache.delete("a")
        assert not cache.delete("a")

        cache.set("b", 2)
        cache.clear()
        assert cache.size() == 0


def build_app(requests):
    async def documentation(request):
        requests.append(request)
        tail = request.match_info["tail"]
        if tail == "swiftui.json":
            return web.json_response({"abstract": [], "metadata": {"title": "SwiftUI"}})
        if tail == "broken.json":
            return web.Response(text="<html>not json</html>", content_type="text/html")
        if tail == "technologies.json":
            return web.json_response({"references": {}})
        return web.json_response({"message": "not found"}, status=404)

    app = web.Application()
    app.router.add_get("/documentation/{tail:.*}", documentation)
    return app


class TestHttpClient:
    """Test the HTTP transport against a local server."""

    @pytest.mark.asyncio
    async def test_fetches_and_memoizes(self):
        requests = []
        async with test_utils.TestServer(build_app(requests)) as server:
            settings = ClientSettings(base_url=str(server.make_url("")).rstrip("/"))
            async with HttpClient(settings) as client:
                first = await client.get_documentation("documentation/swiftui")
                second = await client.get_documentation("/documentation/swiftui/")

        assert first == {"abstract": [], "metadata": {"title": "SwiftUI"}}
        assert second == first
        assert len(requests) == 1
        assert requests[0].headers["Accept"] == "application/json"
        assert requests[0].headers["Referer"] == settings.referer

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with test_utils.TestServer(build_app([])) as server:
            settings = ClientSettings(base_url=str(server.make_url("")).rstrip("/"))
            async with HttpClient(settings) as client:
                with pytest.raises(FetchError) as excinfo:
                    await client.get_documentation("documentation/missing")

        assert excinfo.value.status == 404
        assert excinfo.value.path == "documentation/missing"

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with test_utils.TestServer(build_app([])) as server:
            settings = ClientSettings(base_url=str(server.make_url("")).rstrip("/"))
            async with HttpClient(settings) as client:
                with pytest.raises(FetchError):
                    await client.get_documentation("documentation/broken")

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        client = HttpClient(ClientSettings(base_url="http://127.0.0.1:9", request_timeout=2))
        try:
            with pytest.raises(FetchError):
                await client.get_documentation("documentation/swiftui")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_health_check_bypasses_memoization(self):
        requests = []
        async with test_utils.TestServer(build_app(requests)) as server:
            settings = ClientSettings(base_url=str(server.make_url("")).rstrip("/"))
            async with HttpClient(settings) as client:
                await client.get_documentation("documentation/technologies")
                health = await client.check_health()

        assert health["ok"]
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        requests = []
        async with test_utils.TestServer(build_app(requests)) as server:
            settings = ClientSettings(base_url=str(server.make_url("")).rstrip("/"))
            async with HttpClient(settings) as client:
                await client.get_documentation("documentation/swiftui")
                client.clear_cache()
                await client.get_documentation("documentation/swiftui")

        assert len(requests) == 2

    def test_build_url(self):
        client = HttpClient(ClientSettings(base_url="https://example.com/data/"))

        assert client.build_url("/documentation/swiftui/") == "https://example.com/data/documentation/swiftui.json"
