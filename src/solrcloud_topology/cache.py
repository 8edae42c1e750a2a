"""
Cache capability for sharing topology snapshots.

The snapshot reader can mirror the raw topology document into a cache
so that several client processes share one backend read. Two
implementations are provided:
- MemoryCache: in-process dict with expiration instants
- RedisCache: redis.asyncio client, entries expire through SET ... PX

Values are opaque strings to the cache; the reader stores JSON.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import redis.asyncio as redis

logger = logging.getLogger(__name__)


@runtime_checkable
class SnapshotCache(Protocol):
    """
    Protocol for snapshot caches.

    get() returns a (value, found) pair so that a cached empty string is
    distinguishable from a miss.
    """

    async def get(self, key: str) -> tuple[str | None, bool]:
        ...

    async def set(self, key: str, value: str, ttl: float) -> None:
        ...

    async def aclose(self) -> None:
        ...


@dataclass
class MemoryCache:
    """
    In-process cache with per-entry expiration.

    Attributes:
        clock: Wall-clock source, injectable for tests.
    """

    clock: Callable[[], float] = field(default=time.time)
    _entries: dict[str, tuple[str, float]] = field(default_factory=dict, init=False)

    async def get(self, key: str) -> tuple[str | None, bool]:
        entry = self._entries.get(key)
        if entry is None:
            return None, False

        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None, False
        return value, True

    async def set(self, key: str, value: str, ttl: float) -> None:
        self._entries[key] = (value, self.clock() + ttl)

    async def aclose(self) -> None:
        self._entries.clear()


@dataclass
class RedisCache:
    """
    Redis-backed snapshot cache.

    Attributes:
        redis: Pre-configured redis.asyncio.Redis client. Responses are
            expected to be decoded (decode_responses=True); raw bytes are
            decoded as UTF-8.
        close_client: Whether aclose() closes the client. Set by the
            factory for clients it creates; injected clients stay open.

    Example:
        import redis.asyncio as redis

        async with redis.Redis.from_url(
            "redis://localhost:6379", decode_responses=True
        ) as r:
            cache = RedisCache(redis=r)
            await cache.set("solrcloud-topology.cluster-state", payload, ttl=60)
    """

    redis: redis.Redis
    close_client: bool = False

    async def get(self, key: str) -> tuple[str | None, bool]:
        """
        Raises:
            redis.RedisError: On Redis errors.
        """
        value = await self.redis.get(key)
        if value is None:
            return None, False
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value, True

    async def set(self, key: str, value: str, ttl: float) -> None:
        """
        Store a value with a TTL.

        Redis expiries are whole milliseconds; sub-millisecond TTLs are
        rounded up so the entry is never stored without expiry.

        Raises:
            redis.RedisError: On Redis errors.
        """
        ttl_ms = max(1, math.ceil(ttl * 1000))
        await self.redis.set(key, value, px=ttl_ms)
        logger.debug(f"Stored {key} in Redis with TTL {ttl_ms}ms")

    async def aclose(self) -> None:
        if self.close_client:
            await self.redis.aclose()
