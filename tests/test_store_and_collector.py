import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dhunx.core.config import Settings
from dhunx.history.collector import HttpHistoryCollector, StoreHistoryCollector, build_collector
from dhunx.store.client import MemoryStore, RedisStore, connect_store


@pytest.mark.asyncio
async def test_memory_store_roundtrip():
    store = MemoryStore()

    assert await store.get("k") is None
    assert await store.set("k", "v") is True
    assert await store.get("k") == "v"
    assert await store.delete("k") is True
    assert await store.delete("k") is False


@pytest.mark.asyncio
async def test_connect_store_falls_back_to_memory():
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
    client.aclose = AsyncMock()

    with patch("dhunx.store.client.build_redis_client", return_value=client):
        store = await connect_store(Settings())

    assert isinstance(store, MemoryStore)
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_connect_store_uses_redis_when_reachable():
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value="cached")

    with patch("dhunx.store.client.build_redis_client", return_value=client):
        store = await connect_store(Settings())

    assert isinstance(store, RedisStore)
    assert store.backend == "redis"
    assert await store.get("k") == "cached"


@pytest.mark.asyncio
async def test_http_collector_posts_history_with_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    collector = HttpHistoryCollector("https://collector.test/sync", token="secret", client=client)

    await collector.sync("u1", {"plays": [], "likes": [], "skips": [], "searches": [], "session_start": 1})
    await collector.close()

    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["user_id"] == "u1"
    assert seen["body"]["history"]["session_start"] == 1


@pytest.mark.asyncio
async def test_http_collector_raises_on_server_error():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    collector = HttpHistoryCollector("https://collector.test/sync", token="secret", client=client)

    with pytest.raises(httpx.HTTPStatusError):
        await collector.sync("u1", {})
    await collector.close()


@pytest.mark.asyncio
async def test_store_collector_keeps_last_sync():
    store = MemoryStore()
    collector = StoreHistoryCollector(store)

    await collector.sync("u1", {"plays": [1]})
    await collector.sync("u1", {"plays": [1, 2]})

    assert json.loads(store.data["history_sync:u1"]) == {"plays": [1, 2]}


@pytest.mark.asyncio
async def test_build_collector_picks_http_when_url_configured():
    store = MemoryStore()

    assert isinstance(build_collector(Settings(history_sync_url=None), store), StoreHistoryCollector)

    http = build_collector(Settings(history_sync_url="https://collector.test/sync"), store)
    assert isinstance(http, HttpHistoryCollector)
    await http.close()


@pytest.mark.asyncio
async def test_http_collector_without_token_sends_nothing():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(204)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    collector = HttpHistoryCollector("https://collector.test/sync", token=None, client=client)

    await collector.sync("u1", {"plays": []})
    await collector.close()

    assert requests == []
