"""Test doubles for backends, caches and clocks."""

import asyncio
import copy
from typing import Any

from solrcloud_topology.cache import MemoryCache


class FakeBackend:
    """In-memory TopologyBackend that counts fetches."""

    def __init__(
        self,
        document: dict[str, Any] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.document = document
        self.error = error
        self.delay = delay
        self.calls = 0
        self.closed = False

    async def fetch_raw_topology(self) -> dict[str, Any]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.document)

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class YieldingCache(MemoryCache):
    """MemoryCache whose reads suspend, like a networked cache."""

    async def get(self, key: str) -> tuple[str | None, bool]:
        await asyncio.sleep(0)
        return await super().get(key)
