"""
Test Redis Cache Module
"""
import pytest
from unittest.mock import AsyncMock, patch
from stbg.core.cache import RedisCache, analysis_cache_key


@pytest.fixture
def mock_redis():
    with patch("redis.asyncio.from_url") as mock:
        yield mock


@pytest.mark.asyncio
async def test_redis_connection(mock_redis):
    cache = RedisCache()

    # Mock client
    mock_client = AsyncMock()
    mock_redis.return_value = mock_client

    await cache.connect()

    mock_redis.assert_called_once()
    mock_client.ping.assert_awaited_once()
    assert cache.client == mock_client

    await cache.close()
    mock_client.close.assert_awaited_once()
    cache.client = None


@pytest.mark.asyncio
async def test_redis_unavailable(mock_redis):
    cache = RedisCache()
    mock_client = AsyncMock()
    mock_client.ping.side_effect = ConnectionError("refused")
    mock_redis.return_value = mock_client

    await cache.connect()

    assert cache.client is None
    assert await cache.get("anything") is None


@pytest.mark.asyncio
async def test_redis_get_set(mock_redis):
    cache = RedisCache()
    cache.client = AsyncMock()

    # Test Set
    await cache.set("test_key", {"projects": [], "summary": {"total_projects": 0}}, ttl=60)
    cache.client.setex.assert_awaited_once()
    assert cache.client.setex.await_args.args[:2] == ("test_key", 60)

    # Test Get
    cache.client.get.return_value = '{"foo": "bar"}'
    result = await cache.get("test_key")
    assert result == {"foo": "bar"}

    # Test Miss
    cache.client.get.return_value = None
    result = await cache.get("missing")
    assert result is None

    cache.client = None


def test_cache_key_is_deterministic():
    payloads = {"projects": b'{"features": []}', "crashes": b"{}"}
    reordered = {"crashes": b"{}", "projects": b'{"features": []}'}

    assert analysis_cache_key(payloads) == analysis_cache_key(reordered)
    assert analysis_cache_key(payloads).startswith("api:analyze:")


def test_cache_key_depends_on_content_and_crs():
    payloads = {"projects": b'{"features": []}'}

    assert analysis_cache_key(payloads) != analysis_cache_key({"projects": b'{"features": [1]}'})
    assert analysis_cache_key(payloads, "EPSG:4326") != analysis_cache_key(payloads, "EPSG:2283")
    assert analysis_cache_key({"projects": b"ab", "t6": b""}) != analysis_cache_key({"projects": b"a", "t6": b"b"})
