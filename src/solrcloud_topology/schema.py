"""
Pydantic models for the raw cluster topology documents.

This module provides models for validating:
- The backend-neutral topology document every backend produces
- Per-collection state documents (ZooKeeper state.json / CLUSTERSTATUS)
- The Collections API CLUSTERSTATUS response envelope
- The ZooKeeper aliases.json document

These are wire types for external data validation. Internal types
(ReplicaState, ShardState, ...) are dataclasses in solrcloud_topology.types.

Notes:
- The cluster publishes numbers and booleans as strings ("1", "true");
  Pydantic's lax mode converts them.
- Collection documents stay as raw dicts at the envelope level so that
  decode can validate them one by one and name the offending collection.
"""

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from solrcloud_topology.types import ReplicaStatus, ShardStatus


# =============================================================================
# Per-collection state document
# =============================================================================
# Shape: {"replicationFactor": "1", "router": {"name": "compositeId"},
#         "shards": {"shard1": {"range": ..., "state": ..., "replicas": {...}}}}


class ReplicaDocument(BaseModel):
    """
    One replica entry inside a shard's "replicas" object.

    Example:
        {"core": "collection1_shard1_replica1",
         "base_url": "http://localhost:8983/solr",
         "node_name": "localhost:8983_solr",
         "state": "active",
         "leader": "true"}
    """

    core: str
    base_url: str
    node_name: str
    state: ReplicaStatus
    leader: bool = False  # Only the leader carries the key

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid base_url {value!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"base_url {value!r} is not an http(s) URL")
        return value


class ShardDocument(BaseModel):
    """A shard entry inside a collection's "shards" object."""

    range: str | None = None  # None for the implicit router
    state: ShardStatus
    replicas: dict[str, ReplicaDocument]


class RouterDocument(BaseModel):
    """Document router of a collection."""

    name: str


class CollectionDocument(BaseModel):
    """
    State document of a single collection.

    Only "shards" is structurally required; the placement settings fall
    back to the cluster defaults when a cluster version omits them.
    """

    model_config = ConfigDict(populate_by_name=True)

    replication_factor: int = Field(default=1, alias="replicationFactor")
    max_shards_per_node: int = Field(default=1, alias="maxShardsPerNode")
    auto_add_replicas: bool = Field(default=False, alias="autoAddReplicas")
    router: RouterDocument = Field(
        default_factory=lambda: RouterDocument(name="compositeId")
    )
    shards: dict[str, ShardDocument]


# =============================================================================
# Backend-neutral topology document
# =============================================================================


class TopologyDocument(BaseModel):
    """
    The document every backend adapts its source to.

    Example:
        {
            "aliases": {"alias1": "collection1"},
            "collections": {"collection1": {...}},
            "live_nodes": ["localhost:8983_solr"]
        }
    """

    aliases: dict[str, str] = Field(default_factory=dict)
    collections: dict[str, dict[str, Any]]
    live_nodes: list[str] = Field(default_factory=list)


# =============================================================================
# Source-specific envelopes
# =============================================================================


class ClusterStatusCluster(BaseModel):
    """The "cluster" object of a CLUSTERSTATUS response."""

    collections: dict[str, dict[str, Any]] = Field(default_factory=dict)
    aliases: dict[str, str] = Field(default_factory=dict)
    live_nodes: list[str] = Field(default_factory=list)


class ClusterStatusResponse(BaseModel):
    """
    Response from GET /admin/collections?action=CLUSTERSTATUS.

    Example response:
    {
        "responseHeader": {"status": 0, "QTime": 3},
        "cluster": {
            "collections": {"collection1": {...}},
            "aliases": {"alias1": "collection1"},
            "live_nodes": ["localhost:8983_solr"]
        }
    }
    """

    cluster: ClusterStatusCluster


class ZkAliasesDocument(BaseModel):
    """
    Contents of /aliases.json in ZooKeeper.

    Collection aliases live under the "collection" key:
        {"collection": {"alias1": "collection1"}}
    """

    collection: dict[str, str] = Field(default_factory=dict)
