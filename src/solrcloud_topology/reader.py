"""
Snapshot reader: fetches, caches and publishes ClusterState snapshots.

SnapshotReader owns the only shared mutable state of the package: the
currently published Snapshot, swapped by a single attribute assignment
so readers never block and never see a half-built snapshot.

Fetch order on fetch_cluster_state():
1. The published snapshot, while FRESH
2. The shared cache (if configured), when it holds a newer snapshot
   written by this or another process
3. The backend, through a single in-flight fetch that every concurrent
   caller awaits

A failed refresh never replaces the published snapshot. While a stale
snapshot exists, fetch_cluster_state() serves it (marked STALE_SERVED)
instead of failing; refresh() always reports the failure.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from solrcloud_topology.backends.base import TopologyBackend
from solrcloud_topology.cache import SnapshotCache
from solrcloud_topology.decode import decode_cluster_state
from solrcloud_topology.exceptions import BackendUnavailable, MalformedSnapshot
from solrcloud_topology.staleness import Freshness, Snapshot, StalenessPolicy
from solrcloud_topology.types import ClusterState

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "solrcloud-topology.cluster-state"


@dataclass
class SnapshotReader:
    """
    Reads and publishes cluster state snapshots.

    Attributes:
        backend: Topology source.
        policy: Staleness policy deciding when to refresh.
        fetch_timeout: Upper bound in seconds for one backend fetch.
        cache: Optional shared cache mirroring the raw topology document.
        cache_key: Key of the snapshot entry in the shared cache.
        background_refresh: When True, a stale snapshot is returned right
            away and the refresh runs as a background task.

    Example:
        reader = SnapshotReader(
            backend=ClusterStatusBackend(http=http, solr_urls=urls),
            policy=StalenessPolicy(ttl_seconds=60),
        )
        state = await reader.fetch_cluster_state()
    """

    backend: TopologyBackend
    policy: StalenessPolicy
    fetch_timeout: float = 10.0
    cache: SnapshotCache | None = None
    cache_key: str = DEFAULT_CACHE_KEY
    background_refresh: bool = False

    _snapshot: Snapshot | None = field(default=None, init=False, repr=False)
    _generation: int = field(default=0, init=False, repr=False)
    _inflight: asyncio.Task | None = field(default=None, init=False, repr=False)

    # -------------------------------------------------------------------------
    # Published state
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    @property
    def current(self) -> ClusterState | None:
        """The published ClusterState, or None before the first fetch."""
        snapshot = self._snapshot
        return snapshot.state if snapshot is not None else None

    @property
    def freshness(self) -> Freshness | None:
        snapshot = self._snapshot
        return self.policy.classify(snapshot) if snapshot is not None else None

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def fetch_cluster_state(self) -> ClusterState:
        """
        Return a ClusterState, refreshing it when the policy requires.

        Returns:
            The published snapshot if FRESH, otherwise a newer one from the
            shared cache or the backend. If the refresh fails while a
            stale snapshot exists, the stale snapshot.

        Raises:
            BackendUnavailable: If the backend failed and there is no
                snapshot to fall back to.
            MalformedSnapshot: If the backend returned an invalid document
                and there is no snapshot to fall back to.
        """
        snapshot = self._snapshot
        if not self.policy.needs_refresh(snapshot):
            return snapshot.state

        cached = await self._load_from_cache()
        if cached is not None:
            return cached.state

        # Another caller may have published while the cache read was
        # suspended.
        snapshot = self._snapshot
        if not self.policy.needs_refresh(snapshot):
            return snapshot.state

        if snapshot is not None and self.background_refresh:
            self._start_fetch()
            return snapshot.state

        try:
            return (await self._join_fetch()).state
        except (BackendUnavailable, MalformedSnapshot) as e:
            stale = self._mark_stale_served()
            if stale is None:
                raise
            logger.warning(
                f"Serving stale cluster state (generation {stale.generation}) "
                f"after failed refresh: {e}"
            )
            return stale.state

    async def refresh(self) -> ClusterState:
        """
        Force a full fetch from the backend, bypassing both caches.

        The published snapshot is only replaced on success.

        Raises:
            BackendUnavailable: On transport failure or timeout.
            MalformedSnapshot: If the backend returned an invalid document.
        """
        return (await self._join_fetch()).state

    async def aclose(self) -> None:
        """Cancel an in-flight fetch, then close the backend and the cache."""
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self.backend.aclose()
        if self.cache is not None:
            await self.cache.aclose()

    # -------------------------------------------------------------------------
    # Single-flight backend fetch
    # -------------------------------------------------------------------------

    def _start_fetch(self) -> asyncio.Task:
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._fetch_from_backend())
            task.add_done_callback(self._on_fetch_done)
            self._inflight = task
        return task

    async def _join_fetch(self) -> Snapshot:
        # Shielded so that one cancelled caller does not cancel the fetch
        # the other callers are waiting on.
        return await asyncio.shield(self._start_fetch())

    def _on_fetch_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Cluster state refresh failed: {error}")
            self._mark_stale_served()

    async def _fetch_from_backend(self) -> Snapshot:
        try:
            raw = await asyncio.wait_for(
                self.backend.fetch_raw_topology(), timeout=self.fetch_timeout
            )
        except asyncio.TimeoutError as e:
            raise BackendUnavailable(
                type(self.backend).__name__,
                f"fetch timed out after {self.fetch_timeout}s",
            ) from e

        state = decode_cluster_state(raw)
        fetched_at = self.policy.clock()
        snapshot = self._publish(state, fetched_at)
        await self._store_in_cache(raw, fetched_at)
        return snapshot

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    def _publish(self, state: ClusterState, fetched_at: float) -> Snapshot:
        self._generation += 1
        snapshot = Snapshot(
            state=state,
            generation=self._generation,
            fetched_at=fetched_at,
            expires_at=self.policy.expiry_for(fetched_at),
        )
        self._snapshot = snapshot
        logger.debug(
            f"Published cluster state generation {snapshot.generation} "
            f"({len(state.collections)} collections)"
        )
        return snapshot

    def _mark_stale_served(self) -> Snapshot | None:
        snapshot = self._snapshot
        if snapshot is None or self.policy.classify(snapshot) == Freshness.FRESH:
            return snapshot
        marked = self.policy.mark_stale_served(snapshot)
        self._snapshot = marked
        return marked

    # -------------------------------------------------------------------------
    # Shared cache
    # -------------------------------------------------------------------------

    async def _load_from_cache(self) -> Snapshot | None:
        """Publish the shared cache entry if it is unexpired and newer."""
        if self.cache is None:
            return None

        try:
            value, found = await self.cache.get(self.cache_key)
        except Exception as e:
            logger.warning(f"Snapshot cache read failed for {self.cache_key}: {e}")
            return None
        if not found:
            return None

        try:
            entry = json.loads(value)
            fetched_at = float(entry["fetched_at"])
            raw = entry["topology"]
            if self.policy.clock() >= self.policy.expiry_for(fetched_at):
                return None
            current = self._snapshot
            if current is not None and fetched_at <= current.fetched_at:
                return None
            state = decode_cluster_state(raw)
        except (ValueError, KeyError, TypeError, MalformedSnapshot) as e:
            logger.warning(f"Ignoring unusable cache entry {self.cache_key}: {e}")
            return None

        logger.debug(f"Loaded cluster state from cache key {self.cache_key}")
        return self._publish(state, fetched_at)

    async def _store_in_cache(self, raw: dict[str, Any], fetched_at: float) -> None:
        if self.cache is None or self.policy.ttl_seconds <= 0:
            return

        payload = json.dumps({"fetched_at": fetched_at, "topology": raw})
        try:
            await self.cache.set(self.cache_key, payload, ttl=self.policy.ttl_seconds)
        except Exception as e:
            logger.warning(f"Snapshot cache write failed for {self.cache_key}: {e}")
