"""
Factory function for creating a wired CloudTopology.

Builds the backend, optional shared cache, snapshot reader and resolver
from TopologySettings, so callers need no direct imports of the
individual components.
"""

import httpx
import redis.asyncio as redis
from kazoo.client import KazooClient

from solrcloud_topology.backends import ClusterStatusBackend, ZkStateBackend
from solrcloud_topology.backends.base import TopologyBackend
from solrcloud_topology.cache import RedisCache, SnapshotCache
from solrcloud_topology.client import CloudTopology
from solrcloud_topology.config import TopologySettings
from solrcloud_topology.reader import SnapshotReader
from solrcloud_topology.staleness import StalenessPolicy


def create_backend(
    settings: TopologySettings,
    http: httpx.AsyncClient | None = None,
    zk: KazooClient | None = None,
) -> TopologyBackend:
    """
    Create the topology backend selected by the settings.

    Args:
        settings: Topology configuration.
        http: Optional pre-configured httpx client for CLUSTERSTATUS.
            If None, a new client is created with the fetch timeout.
        zk: Optional pre-configured kazoo client. If None, one is created
            from zk_hosts and zk_chroot.

    Returns:
        ZkStateBackend when zk_hosts is set, otherwise ClusterStatusBackend.
        Only clients created here are closed by the backend's aclose().
    """
    if settings.uses_zookeeper:
        owned = zk is None
        if owned:
            zk = KazooClient(
                hosts=settings.zk_host_string,
                timeout=settings.zk_timeout_seconds,
                read_only=True,
            )
        return ZkStateBackend(
            zk=zk,
            connect_timeout=settings.zk_timeout_seconds,
            close_client=owned,
        )

    owned = http is None
    if owned:
        http = httpx.AsyncClient(timeout=settings.fetch_timeout_seconds)
    return ClusterStatusBackend(
        http=http,
        solr_urls=list(settings.solr_urls),
        close_client=owned,
    )


def create_cloud_topology(
    settings: TopologySettings,
    http: httpx.AsyncClient | None = None,
    zk: KazooClient | None = None,
    redis_client: redis.Redis | None = None,
) -> CloudTopology:
    """
    Create a CloudTopology from settings.

    Args:
        settings: Topology configuration.
        http: Optional pre-configured httpx client (CLUSTERSTATUS backend).
        zk: Optional pre-configured kazoo client (ZooKeeper backend).
        redis_client: Optional pre-configured redis.asyncio client for the
            shared snapshot cache. If None and redis_url is set, a client
            is created from the URL and closed by CloudTopology.aclose().

    Returns:
        CloudTopology ready for use.

    Example:
        topology = create_cloud_topology(
            TopologySettings(zk_hosts=["zk1:2181"], zk_chroot="/solr")
        )
        endpoint = await topology.resolve("collection1")
    """
    cache: SnapshotCache | None = None
    if redis_client is not None:
        cache = RedisCache(redis=redis_client)
    elif settings.redis_url:
        cache = RedisCache(
            redis=redis.Redis.from_url(settings.redis_url, decode_responses=True),
            close_client=True,
        )

    reader = SnapshotReader(
        backend=create_backend(settings, http=http, zk=zk),
        policy=StalenessPolicy(ttl_seconds=settings.cache_ttl_seconds),
        fetch_timeout=settings.fetch_timeout_seconds,
        cache=cache,
        cache_key=settings.cache_key,
        background_refresh=settings.background_refresh,
    )
    return CloudTopology(reader=reader)
