"""Tests for the credential-scoped client cache."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from gemproxy.client_cache import ClientCache, _mask_key, close_client, create_gemini_client
from gemproxy.testing import FakeClientFactory, FakeGeminiClient


class TestClientCache:
    """Tests for ClientCache.get."""

    def test_builds_once_per_key(self):
        factory = FakeClientFactory()
        cache = ClientCache(factory)

        first = cache.get("key-a")
        assert cache.get("key-a") is first
        assert len(factory.created) == 1
        assert "key-a" in cache
        assert len(cache) == 1

    def test_distinct_keys(self):
        factory = FakeClientFactory()
        cache = ClientCache(factory)
        assert cache.get("key-a") is not cache.get("key-b")
        assert len(cache) == 2
        assert {client.api_key for client in factory.created} == {"key-a", "key-b"}

    def test_factory_error_leaves_no_entry(self):
        def factory(api_key):
            raise ValueError("Missing key inputs argument!")

        cache = ClientCache(factory)
        with pytest.raises(ValueError):
            cache.get("")
        assert "" not in cache
        assert len(cache) == 0

    def test_concurrent_first_use_keeps_one_client(self):
        """Racing callers all get the same client; the redundant ones are closed."""
        workers = 8
        barrier = threading.Barrier(workers, timeout=5)
        created = []
        lock = threading.Lock()

        def factory(api_key):
            client = FakeGeminiClient(api_key)
            with lock:
                created.append(client)
            barrier.wait()
            return client

        cache = ClientCache(factory)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: cache.get("shared"), range(workers)))

        winner = results[0]
        assert all(result is winner for result in results)
        assert len(created) == workers
        assert len(cache) == 1
        assert not winner.closed
        losers = [client for client in created if client is not winner]
        assert len(losers) == workers - 1
        assert all(client.closed for client in losers)
        assert all(client.aio.closed for client in losers)
        assert not winner.aio.closed


class TestCreateGeminiClient:
    """The default factory never falls back to a server-side key."""

    @pytest.fixture(autouse=True)
    def server_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "operator-secret-key")
        monkeypatch.setenv("GOOGLE_API_KEY", "operator-secret-key")

    @pytest.mark.parametrize("api_key", ["", "   "])
    def test_blank_key_refused(self, api_key):
        with pytest.raises(ValueError, match="missing API key"):
            create_gemini_client(api_key)

    def test_cache_keeps_no_entry_for_blank_key(self):
        cache = ClientCache()
        with pytest.raises(ValueError):
            cache.get("")
        assert "" not in cache
        assert len(cache) == 0


class TestClientCacheClose:
    @pytest.mark.asyncio
    async def test_redundant_client_closed_inside_event_loop(self):
        """A client that loses the install race has both transports released."""
        created = []

        def factory(api_key):
            client = FakeGeminiClient(api_key)
            created.append(client)
            if len(created) == 1:
                # another caller installs its client while this one is built
                cache.get(api_key)
            return client

        cache = ClientCache(factory)
        winner = cache.get("shared")
        loser = created[0]

        assert winner is created[1]
        for _ in range(3):
            await asyncio.sleep(0)
        assert loser.closed
        assert loser.aio.closed
        assert not winner.closed

        await cache.aclose()
        assert winner.aio.closed

    @pytest.mark.asyncio
    async def test_aclose_releases_all(self):
        factory = FakeClientFactory()
        cache = ClientCache(factory)
        cache.get("key-a")
        cache.get("key-b")

        await cache.aclose()

        assert len(cache) == 0
        for client in factory.created:
            assert client.aio.closed
            assert client.closed

    @pytest.mark.asyncio
    async def test_aclose_empty(self):
        await ClientCache(FakeClientFactory()).aclose()

    @pytest.mark.asyncio
    async def test_close_client_without_aio(self):
        class SyncOnly:
            closed = False

            def close(self):
                self.closed = True

        client = SyncOnly()
        await close_client(client)
        assert client.closed


def test_mask_key():
    assert _mask_key("short") == "***"
    assert _mask_key("AIzaSyA-1234567890") == "AIza...7890"
