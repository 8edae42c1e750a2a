"""
ZooKeeper backend for cluster topology.

ZkStateBackend reads the cluster state straight from the coordination
service, in order:
1. /aliases.json - collection aliases
2. /collections - collection names
3. /collections/<name>/state.json per collection, falling back to the
   shared legacy /clusterstate.json for older clusters
4. /live_nodes - live node registry

The kazoo client is blocking; reads run in a worker thread.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException, NoNodeError
from kazoo.handlers.threading import KazooTimeoutError
from pydantic import ValidationError

from solrcloud_topology.exceptions import BackendUnavailable, MalformedSnapshot
from solrcloud_topology.schema import ZkAliasesDocument

logger = logging.getLogger(__name__)

ALIASES_ZKNODE = "/aliases.json"
COLLECTIONS_ZKNODE = "/collections"
CLUSTER_STATE_ZKNODE = "/clusterstate.json"
LIVE_NODES_ZKNODE = "/live_nodes"
COLLECTION_STATE = "state.json"


def build_zk_host_string(zk_hosts: list[str], chroot: str = "") -> str:
    """
    Build a kazoo connection string from hosts and an optional chroot.

    Args:
        zk_hosts: "host:port" entries, e.g. ["zk1:2181", "zk2:2181"].
        chroot: Optional chroot path; must start with "/".

    Returns:
        Connection string, e.g. "zk1:2181,zk2:2181/solr".

    Raises:
        ValueError: If no host is given or the chroot is not absolute.
    """
    if not zk_hosts:
        raise ValueError("No ZooKeeper host specified")
    if chroot and not chroot.startswith("/"):
        raise ValueError(f"The chroot must start with a forward slash: {chroot!r}")
    return ",".join(zk_hosts) + chroot


@dataclass
class ZkStateBackend:
    """
    Coordination-service backend with injected kazoo client.

    The client is started lazily on the first fetch if it is not
    connected yet. It is only stopped by aclose() when close_client is
    set, as the factory does for clients it creates.

    Attributes:
        zk: KazooClient for the cluster's ZooKeeper ensemble (with chroot).
        connect_timeout: Seconds to wait for the session on start.
        close_client: Whether aclose() stops and closes the client.

    Example:
        zk = KazooClient(hosts="zk1:2181,zk2:2181/solr")
        backend = ZkStateBackend(zk=zk)
        raw = await backend.fetch_raw_topology()
    """

    zk: KazooClient
    connect_timeout: float = 10.0
    close_client: bool = False

    async def fetch_raw_topology(self) -> dict[str, Any]:
        """
        Read aliases, collections, collection states and live nodes.

        Raises:
            BackendUnavailable: On connection loss, session expiry or
                connect timeout.
            MalformedSnapshot: If a required znode is missing or holds
                invalid JSON.
        """
        return await asyncio.to_thread(self._read_topology)

    async def aclose(self) -> None:
        if self.close_client:
            await asyncio.to_thread(self._close)

    def _close(self) -> None:
        self.zk.stop()
        self.zk.close()

    def _read_topology(self) -> dict[str, Any]:
        try:
            if not self.zk.connected:
                self.zk.start(timeout=self.connect_timeout)

            aliases = self._read_aliases()
            names = self._get_children(COLLECTIONS_ZKNODE)
            collections = self._read_collection_states(names)
            live_nodes = self._get_children(LIVE_NODES_ZKNODE)
        except (KazooException, KazooTimeoutError) as e:
            raise BackendUnavailable("zookeeper", f"{type(e).__name__}: {e}") from e

        logger.debug(
            f"Read {len(collections)} collections and {len(live_nodes)} "
            f"live nodes from ZooKeeper"
        )
        return {
            "aliases": aliases,
            "collections": collections,
            "live_nodes": live_nodes,
        }

    def _read_aliases(self) -> dict[str, str]:
        # The cluster creates aliases.json lazily, with the first alias.
        data = self._read_json(ALIASES_ZKNODE, missing_ok=True)
        if not data:
            return {}
        try:
            return ZkAliasesDocument.model_validate(data).collection
        except ValidationError as e:
            raise MalformedSnapshot(f"{ALIASES_ZKNODE}: {e}") from e

    def _read_collection_states(self, names: list[str]) -> dict[str, Any]:
        legacy = self._read_json(CLUSTER_STATE_ZKNODE, missing_ok=True) or {}

        collections: dict[str, Any] = {}
        for name in names:
            path = f"{COLLECTIONS_ZKNODE}/{name}/{COLLECTION_STATE}"
            state = self._read_json(path, missing_ok=True)
            if state is not None:
                if not isinstance(state, dict) or name not in state:
                    raise MalformedSnapshot(f"{path} does not describe {name}", name)
                collections[name] = state[name]
            elif name in legacy:
                collections[name] = legacy[name]
            else:
                # Collection being created or deleted; it has no state yet.
                logger.warning(f"Collection {name} has no state document, skipping")
        return collections

    def _get_children(self, path: str) -> list[str]:
        try:
            return sorted(self.zk.get_children(path))
        except NoNodeError as e:
            raise MalformedSnapshot(f"missing znode {path}") from e

    def _read_json(self, path: str, missing_ok: bool = False) -> Any:
        try:
            data, _stat = self.zk.get(path)
        except NoNodeError as e:
            if missing_ok:
                return None
            raise MalformedSnapshot(f"missing znode {path}") from e

        if not data:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            raise MalformedSnapshot(f"invalid JSON in {path}: {e}") from e
