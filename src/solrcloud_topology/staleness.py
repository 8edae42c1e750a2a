"""
Snapshot freshness tracking and refresh policy.

A published snapshot moves through:
- FRESH: age below the TTL, reused as-is
- STALE: age at or above the TTL, a refresh is due
- STALE_SERVED: a refresh failed and the stale snapshot was served
  instead of failing the caller

A successful refresh publishes a new FRESH snapshot. Snapshots are
immutable; marking one as served-while-stale produces a copy.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from solrcloud_topology.types import ClusterState


class Freshness(str, Enum):
    """Freshness of a published snapshot."""

    FRESH = "fresh"
    STALE = "stale"
    STALE_SERVED = "stale_served"


@dataclass(frozen=True)
class Snapshot:
    """
    A published ClusterState with its bookkeeping.

    Attributes:
        state: The decoded cluster state.
        generation: Monotonically increasing publish counter of the reader.
        fetched_at: Wall-clock time the topology was read from the backend.
        expires_at: Wall-clock time after which the snapshot is stale.
        stale_served: Set once a refresh failed and this snapshot was
            served past its expiry.
    """

    state: ClusterState
    generation: int
    fetched_at: float
    expires_at: float
    stale_served: bool = False


@dataclass
class StalenessPolicy:
    """
    Decides whether a snapshot may be reused.

    Attributes:
        ttl_seconds: Snapshot time-to-live. Zero forces a fetch on every use.
        clock: Wall-clock source, injectable for tests.
    """

    ttl_seconds: float
    clock: Callable[[], float] = field(default=time.time)

    def expiry_for(self, fetched_at: float) -> float:
        return fetched_at + self.ttl_seconds

    def classify(self, snapshot: Snapshot) -> Freshness:
        if self.clock() < snapshot.expires_at:
            return Freshness.FRESH
        if snapshot.stale_served:
            return Freshness.STALE_SERVED
        return Freshness.STALE

    def needs_refresh(self, snapshot: Snapshot | None) -> bool:
        return snapshot is None or self.classify(snapshot) != Freshness.FRESH

    def mark_stale_served(self, snapshot: Snapshot) -> Snapshot:
        """Copy of the snapshot flagged as served after a failed refresh."""
        if snapshot.stale_served:
            return snapshot
        return replace(snapshot, stale_served=True)
