"""
Topology backend protocol definition.

A backend reads the cluster topology from its source and adapts it to
the backend-neutral document decoded by solrcloud_topology.decode:

    {
        "aliases": {"alias1": "collection1"},
        "collections": {
            "collection1": {
                "replicationFactor": "1",
                "maxShardsPerNode": "1",
                "autoAddReplicas": "false",
                "router": {"name": "compositeId"},
                "shards": {
                    "shard1": {
                        "range": "80000000-ffffffff",
                        "state": "active",
                        "replicas": {
                            "core_node1": {
                                "core": "collection1_shard1_replica1",
                                "base_url": "http://localhost:8983/solr",
                                "node_name": "localhost:8983_solr",
                                "state": "active",
                                "leader": "true"
                            }
                        }
                    }
                }
            }
        },
        "live_nodes": ["localhost:8983_solr"]
    }
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TopologyBackend(Protocol):
    """
    Protocol for topology sources.

    Implementations: ZkStateBackend (ZooKeeper) and ClusterStatusBackend
    (Collections API over HTTP).
    """

    async def fetch_raw_topology(self) -> dict[str, Any]:
        """
        Read the full topology.

        Returns:
            Document in the backend-neutral shape above.

        Raises:
            BackendUnavailable: On transport failures.
            MalformedSnapshot: If the source returned unusable data.
        """
        ...

    async def aclose(self) -> None:
        """Release connections held by the backend."""
        ...
