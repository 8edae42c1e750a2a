"""
Topology backends.

- ZkStateBackend: reads the coordination service (ZooKeeper) directly
- ClusterStatusBackend: reads the Collections API CLUSTERSTATUS action
"""

from solrcloud_topology.backends.base import TopologyBackend
from solrcloud_topology.backends.cluster_status import ClusterStatusBackend
from solrcloud_topology.backends.zookeeper import ZkStateBackend, build_zk_host_string

__all__ = [
    "TopologyBackend",
    "ClusterStatusBackend",
    "ZkStateBackend",
    "build_zk_host_string",
]
