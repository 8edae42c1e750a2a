"""
CloudTopology - resolution API for the request-execution layer.

Each call takes exactly one ClusterState from the SnapshotReader and
runs the pure alias and endpoint resolvers over it, so a call never
mixes data from two snapshot generations.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from solrcloud_topology.aliases import resolve_name, resolve_names
from solrcloud_topology.exceptions import CollectionNotFound
from solrcloud_topology.reader import SnapshotReader
from solrcloud_topology.resolver import EndpointResolver
from solrcloud_topology.types import Endpoint, RoutingPolicy, ShardName


@contextmanager
def _naming_alias(name: str, collection: str) -> Iterator[None]:
    """Add the requested alias to CollectionNotFound raised for its target."""
    try:
        yield
    except CollectionNotFound as e:
        if collection == name:
            raise
        detail = f"target of alias '{name}'"
        if e.detail:
            detail += f", {e.detail}"
        raise CollectionNotFound(e.name, detail) from e


@dataclass
class CloudTopology:
    """
    Topology-aware endpoint resolution for a SolrCloud cluster.

    Attributes:
        reader: Snapshot reader providing ClusterState snapshots.
        resolver: Endpoint resolver.

    Example:
        topology = create_cloud_topology(TopologySettings(solr_urls=[...]))
        endpoint = await topology.resolve("products", RoutingPolicy.LEADER_ONLY)
        response = await http.post(f"{endpoint.uri}update", json=docs)
    """

    reader: SnapshotReader
    resolver: EndpointResolver = field(default_factory=EndpointResolver)

    async def resolve(
        self, name: str, policy: RoutingPolicy = RoutingPolicy.ANY_ACTIVE
    ) -> Endpoint:
        """
        Resolve a collection or alias name to one serving endpoint.

        Args:
            name: Collection or alias name.
            policy: ANY_ACTIVE for queries, LEADER_ONLY for updates.

        Raises:
            CollectionNotFound: If the name resolves to no usable collection.
            LeaderUnavailable: Under LEADER_ONLY, if a shard lacks a leader.
            BackendUnavailable: If no snapshot could be obtained at all.
        """
        state = await self.reader.fetch_cluster_state()
        collection = resolve_name(state, name)
        with _naming_alias(name, collection):
            return self.resolver.resolve(state, collection, policy)

    async def resolve_name(self, name: str) -> str:
        """Canonical collection name for a collection or alias name."""
        state = await self.reader.fetch_cluster_state()
        return resolve_name(state, name)

    async def resolve_names(self, name: str) -> list[str]:
        """Every collection a name designates (multi-collection aliases)."""
        state = await self.reader.fetch_cluster_state()
        return resolve_names(state, name)

    async def all_shard_leader_uris(self, name: str) -> dict[ShardName, str]:
        """Shard name to leader collection URI."""
        state = await self.reader.fetch_cluster_state()
        collection = resolve_name(state, name)
        with _naming_alias(name, collection):
            return self.resolver.all_shard_leader_uris(state, collection)

    async def all_active_uris_by_shard(self, name: str) -> dict[ShardName, list[str]]:
        """Shard name to active replica collection URIs, one key per shard."""
        state = await self.reader.fetch_cluster_state()
        collection = resolve_name(state, name)
        with _naming_alias(name, collection):
            return self.resolver.all_active_uris_by_shard(state, collection)

    async def refresh(self) -> None:
        """
        Force a fresh snapshot, e.g. before retrying after
        LeaderUnavailable or CollectionNotFound.
        """
        await self.reader.refresh()

    async def aclose(self) -> None:
        await self.reader.aclose()
