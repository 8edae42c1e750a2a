"""Tests for snapshot caches."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

from solrcloud_topology.cache import MemoryCache, RedisCache, SnapshotCache


class TestMemoryCache:

    @pytest.mark.asyncio
    async def test_miss(self, clock):
        cache = MemoryCache(clock=clock)

        assert await cache.get("key") == (None, False)

    @pytest.mark.asyncio
    async def test_hit_until_expiry(self, clock):
        cache = MemoryCache(clock=clock)
        await cache.set("key", "value", ttl=10)

        clock.advance(9)
        assert await cache.get("key") == ("value", True)

        clock.advance(1)
        assert await cache.get("key") == (None, False)

    @pytest.mark.asyncio
    async def test_empty_string_is_a_hit(self, clock):
        cache = MemoryCache(clock=clock)
        await cache.set("key", "", ttl=10)

        assert await cache.get("key") == ("", True)

    def test_satisfies_protocol(self):
        assert isinstance(MemoryCache(), SnapshotCache)


@pytest.fixture
def mock_redis():
    """Create mock redis.asyncio client."""
    client = MagicMock(spec=redis.Redis)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    return client


class TestRedisCache:

    @pytest.mark.asyncio
    async def test_miss(self, mock_redis):
        cache = RedisCache(redis=mock_redis)

        assert await cache.get("key") == (None, False)
        mock_redis.get.assert_awaited_once_with("key")

    @pytest.mark.asyncio
    async def test_decodes_bytes(self, mock_redis):
        """Clients without decode_responses return bytes."""
        mock_redis.get.return_value = b'{"a": 1}'
        cache = RedisCache(redis=mock_redis)

        assert await cache.get("key") == ('{"a": 1}', True)

    @pytest.mark.asyncio
    async def test_set_uses_millisecond_expiry(self, mock_redis):
        cache = RedisCache(redis=mock_redis)

        await cache.set("key", "value", ttl=1.5)

        mock_redis.set.assert_awaited_once_with("key", "value", px=1500)

    @pytest.mark.asyncio
    async def test_sub_millisecond_ttl_rounds_up(self, mock_redis):
        cache = RedisCache(redis=mock_redis)

        await cache.set("key", "value", ttl=0.0001)

        mock_redis.set.assert_awaited_once_with("key", "value", px=1)

    @pytest.mark.asyncio
    async def test_errors_propagate(self, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("refused")
        cache = RedisCache(redis=mock_redis)

        with pytest.raises(RedisConnectionError):
            await cache.get("key")

    def test_satisfies_protocol(self, mock_redis):
        assert isinstance(RedisCache(redis=mock_redis), SnapshotCache)

    @pytest.mark.asyncio
    async def test_injected_client_stays_open(self, mock_redis):
        mock_redis.aclose = AsyncMock()
        cache = RedisCache(redis=mock_redis)

        await cache.aclose()

        mock_redis.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, mock_redis):
        mock_redis.aclose = AsyncMock()
        cache = RedisCache(redis=mock_redis, close_client=True)

        await cache.aclose()

        mock_redis.aclose.assert_awaited_once()
