"""
Decode raw topology documents into a ClusterState.

decode_cluster_state() is all-or-nothing: any collection that fails to
validate aborts the whole decode with MalformedSnapshot, so a partially
valid ClusterState is never built.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from solrcloud_topology.exceptions import MalformedSnapshot
from solrcloud_topology.schema import (
    CollectionDocument,
    ShardDocument,
    TopologyDocument,
)
from solrcloud_topology.types import (
    ClusterState,
    CollectionState,
    ReplicaState,
    ShardState,
)

logger = logging.getLogger(__name__)


def _describe(error: ValidationError) -> str:
    """Flatten a ValidationError into "loc: msg; loc: msg"."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def decode_shard(collection: str, name: str, doc: ShardDocument) -> ShardState:
    """
    Build a ShardState from a validated shard document.

    Raises:
        MalformedSnapshot: If the shard has no replicas or more than one
            replica claims leadership.
    """
    if not doc.replicas:
        raise MalformedSnapshot("shard has no replicas", collection, name)

    leaders = [rid for rid, r in doc.replicas.items() if r.leader]
    if len(leaders) > 1:
        raise MalformedSnapshot(
            f"multiple leaders: {', '.join(leaders)}", collection, name
        )

    replicas = {
        rid: ReplicaState(
            id=rid,
            core_name=r.core,
            base_url=r.base_url,
            node_name=r.node_name,
            is_leader=r.leader,
            status=r.state,
        )
        for rid, r in doc.replicas.items()
    }
    return ShardState(
        collection=collection,
        name=name,
        hash_range=doc.range,
        status=doc.state,
        replicas=MappingProxyType(replicas),
    )


def decode_collection(name: str, raw: Mapping[str, Any]) -> CollectionState:
    """
    Validate and decode one collection state document.

    Raises:
        MalformedSnapshot: On missing required fields or broken shard
            invariants. The error names the collection.
    """
    try:
        doc = CollectionDocument.model_validate(raw)
    except ValidationError as e:
        raise MalformedSnapshot(_describe(e), collection=name) from e

    shards = {
        shard_name: decode_shard(name, shard_name, shard_doc)
        for shard_name, shard_doc in doc.shards.items()
    }
    return CollectionState(
        name=name,
        replication_factor=doc.replication_factor,
        max_shards_per_node=doc.max_shards_per_node,
        auto_add_replicas=doc.auto_add_replicas,
        router_name=doc.router.name,
        shards=MappingProxyType(shards),
    )


def decode_cluster_state(raw: Mapping[str, Any]) -> ClusterState:
    """
    Decode a backend topology document into a ClusterState.

    Args:
        raw: Document in the backend-neutral shape
            {"aliases": {...}, "collections": {...}, "live_nodes": [...]}.

    Returns:
        A fully populated, immutable ClusterState.

    Raises:
        MalformedSnapshot: If the envelope or any collection is invalid.
    """
    try:
        doc = TopologyDocument.model_validate(raw)
    except ValidationError as e:
        raise MalformedSnapshot(_describe(e)) from e

    collections = {
        name: decode_collection(name, coll_doc)
        for name, coll_doc in doc.collections.items()
    }
    state = ClusterState(
        aliases=MappingProxyType(dict(doc.aliases)),
        collections=MappingProxyType(collections),
        live_nodes=frozenset(doc.live_nodes),
    )

    # Replicas on dead nodes mean the snapshot lags the cluster, not that
    # it is invalid.
    for name, replicas in state.stale_replicas().items():
        for shard_name, replica in replicas:
            logger.warning(
                f"Replica {replica.id} of {name}/{shard_name} is on node "
                f"{replica.node_name} which is not live"
            )

    logger.debug(
        f"Decoded cluster state: {len(collections)} collections, "
        f"{len(doc.aliases)} aliases, {len(doc.live_nodes)} live nodes"
    )
    return state
