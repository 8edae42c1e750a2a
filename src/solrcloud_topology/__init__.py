"""
Client-side topology awareness for SolrCloud clusters.

This package turns a cluster state snapshot into an immutable model and
resolves collection names to serving endpoints. It includes:

- CloudTopology: Resolution API (resolve, per-shard URIs, refresh)
- SnapshotReader: Fetching, caching and single-flight refresh
- Backends for ZooKeeper and the Collections API CLUSTERSTATUS action
- EndpointResolver and alias resolution over a ClusterState
- TopologySettings and create_cloud_topology for wiring
"""

from solrcloud_topology.aliases import resolve_name, resolve_names
from solrcloud_topology.backends import (
    ClusterStatusBackend,
    TopologyBackend,
    ZkStateBackend,
    build_zk_host_string,
)
from solrcloud_topology.cache import MemoryCache, RedisCache, SnapshotCache
from solrcloud_topology.client import CloudTopology
from solrcloud_topology.config import TopologySettings
from solrcloud_topology.decode import decode_cluster_state
from solrcloud_topology.exceptions import (
    BackendUnavailable,
    CollectionNotFound,
    LeaderUnavailable,
    MalformedSnapshot,
    TopologyError,
)
from solrcloud_topology.factory import create_backend, create_cloud_topology
from solrcloud_topology.reader import SnapshotReader
from solrcloud_topology.resolver import EndpointResolver, endpoint_for
from solrcloud_topology.staleness import Freshness, Snapshot, StalenessPolicy
from solrcloud_topology.types import (
    ClusterState,
    CollectionState,
    Endpoint,
    ReplicaState,
    ReplicaStatus,
    RoutingPolicy,
    ShardState,
    ShardStatus,
)

__all__ = [
    # Resolution API
    "CloudTopology",
    "create_cloud_topology",
    "create_backend",
    "TopologySettings",
    # Snapshot reading
    "SnapshotReader",
    "StalenessPolicy",
    "Snapshot",
    "Freshness",
    "decode_cluster_state",
    # Backends
    "TopologyBackend",
    "ClusterStatusBackend",
    "ZkStateBackend",
    "build_zk_host_string",
    # Caches
    "SnapshotCache",
    "MemoryCache",
    "RedisCache",
    # Resolution
    "EndpointResolver",
    "endpoint_for",
    "resolve_name",
    "resolve_names",
    # Types
    "ClusterState",
    "CollectionState",
    "ShardState",
    "ReplicaState",
    "ReplicaStatus",
    "ShardStatus",
    "RoutingPolicy",
    "Endpoint",
    # Errors
    "TopologyError",
    "BackendUnavailable",
    "MalformedSnapshot",
    "CollectionNotFound",
    "LeaderUnavailable",
]
