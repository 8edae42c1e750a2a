"""
Cluster topology data types.

This module defines the immutable value objects decoded from a cluster
state snapshot: replicas, shards, collections and the cluster itself,
plus the Endpoint produced by resolution. These are internal types used
by the resolvers - not API models. Raw documents are validated by the
Pydantic models in solrcloud_topology.schema before they get here.

All entities are frozen dataclasses. Mappings are read-only views and
node sets are frozensets, so a ClusterState can be shared between
concurrent resolutions without locking.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from solrcloud_topology.exceptions import CollectionNotFound, LeaderUnavailable

# Type aliases for common patterns
NodeName = str
"""Live node identity, e.g. "localhost:8983_solr"."""

ShardName = str
"""Shard name within a collection, e.g. "shard1"."""


class ReplicaStatus(str, Enum):
    """State of a single replica as published by the cluster."""

    ACTIVE = "active"
    DOWN = "down"
    RECOVERING = "recovering"
    RECOVERY_FAILED = "recovery_failed"


class ShardStatus(str, Enum):
    """
    State of a shard.

    Only ACTIVE is the steady state; the others appear around shard
    splits and are reported as-is.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    CONSTRUCTION = "construction"
    RECOVERY = "recovery"
    RECOVERY_FAILED = "recovery_failed"


class RoutingPolicy(str, Enum):
    """
    How the endpoint resolver picks a replica.

    ANY_ACTIVE balances across every active replica of the collection.
    LEADER_ONLY picks among shard leaders, for updates.
    """

    ANY_ACTIVE = "any_active"
    LEADER_ONLY = "leader_only"


def _frozen(mapping: Mapping | None = None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class ReplicaState:
    """
    One copy of a shard hosted on a node.

    Attributes:
        id: Replica identifier, unique within its shard (e.g. "core_node1").
        core_name: Name of the core backing the replica.
        base_url: Node base URL, e.g. "http://localhost:8983/solr".
        node_name: Live node identity of the hosting node.
        is_leader: Whether this replica is the shard leader.
        status: Replica state.
    """

    id: str
    core_name: str
    base_url: str
    node_name: NodeName
    is_leader: bool
    status: ReplicaStatus

    @property
    def is_active(self) -> bool:
        return self.status == ReplicaStatus.ACTIVE


@dataclass(frozen=True)
class ShardState:
    """
    One hash-range partition of a collection.

    Attributes:
        collection: Name of the owning collection (used in error messages).
        name: Shard name.
        hash_range: Hash range as published, opaque to this layer. None
            for collections using the implicit router.
        status: Shard state.
        replicas: Replica id to ReplicaState, in document order.
    """

    collection: str
    name: ShardName
    hash_range: str | None
    status: ShardStatus
    replicas: Mapping[str, ReplicaState] = field(default_factory=_frozen)

    def leader(self) -> ReplicaState:
        """
        Return the shard leader.

        Raises:
            LeaderUnavailable: If no replica is marked leader, e.g. while
                an election is in progress.
        """
        for replica in self.replicas.values():
            if replica.is_leader:
                return replica
        raise LeaderUnavailable(self.collection, self.name)

    def active_replicas(self) -> list[ReplicaState]:
        return [r for r in self.replicas.values() if r.is_active]

    def node_base_urls(self) -> dict[NodeName, str]:
        """Node name to base URL for every replica of the shard."""
        return {r.node_name: r.base_url for r in self.replicas.values()}


@dataclass(frozen=True)
class CollectionState:
    """
    One logical collection and its shards.

    Attributes:
        name: Canonical collection name.
        replication_factor: Replicas per shard requested at creation.
        max_shards_per_node: Placement limit as published.
        auto_add_replicas: Whether the cluster re-creates lost replicas.
        router_name: Document routing algorithm, e.g. "compositeId".
        shards: Shard name to ShardState, in document order.
    """

    name: str
    replication_factor: int
    max_shards_per_node: int
    auto_add_replicas: bool
    router_name: str
    shards: Mapping[ShardName, ShardState] = field(default_factory=_frozen)

    def active_replica_urls(self) -> list[str]:
        """Base URLs of every active replica, across all shards."""
        return [
            replica.base_url
            for shard in self.shards.values()
            for replica in shard.active_replicas()
        ]

    def leader_urls(self) -> dict[ShardName, str]:
        """
        Base URL of each shard's leader.

        Raises:
            LeaderUnavailable: If any shard lacks a leader.
        """
        return {name: shard.leader().base_url for name, shard in self.shards.items()}

    def all_node_urls(self) -> dict[NodeName, str]:
        """Node name to base URL for every node hosting a replica."""
        urls: dict[NodeName, str] = {}
        for shard in self.shards.values():
            urls.update(shard.node_base_urls())
        return urls

    def replicas_off_live_nodes(
        self, live_nodes: frozenset[NodeName]
    ) -> list[tuple[ShardName, ReplicaState]]:
        """
        Replicas whose node is not in the live node set.

        A non-empty result means the snapshot is stale relative to the
        cluster; it is not an error.
        """
        return [
            (shard.name, replica)
            for shard in self.shards.values()
            for replica in shard.replicas.values()
            if replica.node_name not in live_nodes
        ]


@dataclass(frozen=True)
class ClusterState:
    """
    Full point-in-time topology snapshot.

    Attributes:
        aliases: Alias name to target. The target is a collection name or
            a comma separated list of collection names.
        collections: Collection name to CollectionState.
        live_nodes: Node names currently registered as reachable.
    """

    aliases: Mapping[str, str] = field(default_factory=_frozen)
    collections: Mapping[str, CollectionState] = field(default_factory=_frozen)
    live_nodes: frozenset[NodeName] = frozenset()

    def collection(self, name: str) -> CollectionState:
        """
        Look up a collection by canonical name.

        Raises:
            CollectionNotFound: If the snapshot has no such collection.
        """
        try:
            return self.collections[name]
        except KeyError:
            raise CollectionNotFound(name) from None

    def stale_replicas(self) -> dict[str, list[tuple[ShardName, ReplicaState]]]:
        """Per collection, the replicas hosted on nodes that are not live."""
        stale = {}
        for name, collection in self.collections.items():
            off = collection.replicas_off_live_nodes(self.live_nodes)
            if off:
                stale[name] = off
        return stale


@dataclass(frozen=True)
class Endpoint:
    """
    A concrete serving endpoint for one collection.

    Recomputed on every resolution; never cached.

    Attributes:
        scheme: URL scheme, "http" or "https".
        host: Host name.
        port: Port, or None when the base URL does not name one.
        path: Path of the node base URL without trailing slash, e.g. "/solr".
        collection: Canonical collection name.
    """

    scheme: str
    host: str
    port: int | None
    path: str
    collection: str

    @property
    def base_url(self) -> str:
        authority = self.host if self.port is None else f"{self.host}:{self.port}"
        return f"{self.scheme}://{authority}{self.path}"

    @property
    def uri(self) -> str:
        """Collection URI, e.g. "http://localhost:8983/solr/collection1/"."""
        return f"{self.base_url}/{self.collection}/"
