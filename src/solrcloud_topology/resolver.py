"""
Endpoint resolution over a cluster state snapshot.

EndpointResolver picks one concrete Endpoint for a canonical collection
under a RoutingPolicy:
- ANY_ACTIVE: uniform choice among active replicas of all shards
- LEADER_ONLY: uniform choice among shard leaders; every shard must
  have one

It also exposes per-shard primitives (all_shard_leader_uris,
all_active_uris_by_shard) for callers that need to cover every shard.

The resolver performs no I/O and holds no state besides its random
source, so one instance can serve concurrent callers.
"""

import random
from dataclasses import dataclass, field

import httpx

from solrcloud_topology.exceptions import CollectionNotFound, MalformedSnapshot
from solrcloud_topology.types import (
    ClusterState,
    CollectionState,
    Endpoint,
    ReplicaState,
    RoutingPolicy,
    ShardName,
)


def endpoint_for(base_url: str, collection: str) -> Endpoint:
    """
    Parse a node base URL into an Endpoint for a collection.

    Args:
        base_url: Node base URL, e.g. "http://localhost:8983/solr".
        collection: Canonical collection name.

    Raises:
        MalformedSnapshot: If the base URL cannot be parsed.
    """
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise MalformedSnapshot(f"invalid base_url {base_url!r}", collection) from e

    return Endpoint(
        scheme=url.scheme,
        host=url.host,
        port=url.port,
        path=url.path.rstrip("/"),
        collection=collection,
    )


@dataclass
class EndpointResolver:
    """
    Stateless endpoint selection.

    Attributes:
        rng: Random source used for the uniform choice. Inject a seeded
            random.Random for deterministic tests.

    Example:
        resolver = EndpointResolver()
        endpoint = resolver.resolve(state, "collection1", RoutingPolicy.LEADER_ONLY)
        print(endpoint.uri)  # http://localhost:8983/solr/collection1/
    """

    rng: random.Random = field(default_factory=random.Random)

    def resolve(
        self,
        state: ClusterState,
        collection: str,
        policy: RoutingPolicy = RoutingPolicy.ANY_ACTIVE,
    ) -> Endpoint:
        """
        Select one serving endpoint for a canonical collection.

        Args:
            state: Snapshot to resolve against.
            collection: Canonical collection name (resolve aliases first).
            policy: Routing policy.

        Returns:
            Endpoint of the selected replica.

        Raises:
            CollectionNotFound: If the collection is absent, has no shards,
                or (ANY_ACTIVE) has no active replica at all.
            LeaderUnavailable: Under LEADER_ONLY, if any shard lacks a leader.
        """
        coll = self._collection(state, collection)
        candidates = self._candidates(coll, policy)
        if not candidates:
            raise CollectionNotFound(collection, "no active replicas")

        replica = self.rng.choice(candidates)
        return endpoint_for(replica.base_url, coll.name)

    def all_shard_leader_uris(
        self, state: ClusterState, collection: str
    ) -> dict[ShardName, str]:
        """
        Collection URI of every shard leader.

        Raises:
            CollectionNotFound: If the collection is absent or has no shards.
            LeaderUnavailable: If any shard lacks a leader.
        """
        coll = self._collection(state, collection)
        return {
            name: endpoint_for(url, coll.name).uri
            for name, url in coll.leader_urls().items()
        }

    def all_active_uris_by_shard(
        self, state: ClusterState, collection: str
    ) -> dict[ShardName, list[str]]:
        """
        Collection URIs of the active replicas, grouped by shard.

        Every shard of the collection has a key; shards without an
        active replica map to an empty list.

        Raises:
            CollectionNotFound: If the collection is absent or has no shards.
        """
        coll = self._collection(state, collection)
        return {
            name: [
                endpoint_for(r.base_url, coll.name).uri
                for r in shard.active_replicas()
            ]
            for name, shard in coll.shards.items()
        }

    def _collection(self, state: ClusterState, collection: str) -> CollectionState:
        coll = state.collection(collection)
        if not coll.shards:
            raise CollectionNotFound(collection, "collection has no shards")
        return coll

    def _candidates(
        self, coll: CollectionState, policy: RoutingPolicy
    ) -> list[ReplicaState]:
        if policy == RoutingPolicy.LEADER_ONLY:
            # leader() raises for the first shard without one; no partial
            # candidate set is returned.
            return [shard.leader() for shard in coll.shards.values()]

        return [
            replica
            for shard in coll.shards.values()
            for replica in shard.active_replicas()
        ]
