"""
Tests for the ZooKeeper backend.

These tests verify the ZkStateBackend correctly:
- Reads aliases, per-collection state.json and live nodes
- Falls back to the legacy shared clusterstate.json
- Maps kazoo connection failures to BackendUnavailable
- Maps missing or corrupt znodes to MalformedSnapshot
"""

import json
from unittest.mock import MagicMock

import pytest
from kazoo.client import KazooClient
from kazoo.exceptions import ConnectionLoss, NoNodeError, SessionExpiredError

from solrcloud_topology.backends import ZkStateBackend, build_zk_host_string
from solrcloud_topology.decode import decode_cluster_state
from solrcloud_topology.exceptions import BackendUnavailable, MalformedSnapshot

from topology_data import LIVE_NODES, replicated_collection, two_leader_collection


def make_zk(nodes: dict[str, object], children: dict[str, list[str]], connected=True):
    """
    Create a mock KazooClient over an in-memory znode tree.

    Args:
        nodes: Znode path to data; dicts are JSON encoded, bytes kept as-is.
        children: Znode path to child names.
    """
    zk = MagicMock(spec=KazooClient)
    zk.connected = connected

    def get(path):
        if path not in nodes:
            raise NoNodeError(path)
        data = nodes[path]
        if not isinstance(data, bytes):
            data = json.dumps(data).encode()
        return data, MagicMock()

    def get_children(path):
        if path not in children:
            raise NoNodeError(path)
        return list(children[path])

    zk.get.side_effect = get
    zk.get_children.side_effect = get_children
    return zk


@pytest.fixture
def zk_tree():
    """Znodes of a cluster with collection1, collection2 and one alias."""
    nodes = {
        "/aliases.json": {"collection": {"alias1": "collection1"}},
        "/collections/collection1/state.json": {
            "collection1": two_leader_collection()
        },
        "/collections/collection2/state.json": {
            "collection2": replicated_collection()
        },
    }
    children = {
        "/collections": ["collection2", "collection1"],
        "/live_nodes": list(LIVE_NODES),
    }
    return nodes, children


class TestFetchRawTopology:
    """Tests for reading a well-formed znode tree."""

    @pytest.mark.asyncio
    async def test_reads_all_sections(self, zk_tree):
        backend = ZkStateBackend(zk=make_zk(*zk_tree))

        raw = await backend.fetch_raw_topology()

        assert raw["aliases"] == {"alias1": "collection1"}
        assert list(raw["collections"]) == ["collection1", "collection2"]
        assert sorted(raw["live_nodes"]) == sorted(LIVE_NODES)

    @pytest.mark.asyncio
    async def test_document_decodes(self, zk_tree):
        backend = ZkStateBackend(zk=make_zk(*zk_tree))

        state = decode_cluster_state(await backend.fetch_raw_topology())

        assert state.collections["collection2"].shards["shard1"].leader().id == "core_node1"

    @pytest.mark.asyncio
    async def test_missing_aliases_znode(self, zk_tree):
        """aliases.json is absent until the first alias is created."""
        nodes, children = zk_tree
        del nodes["/aliases.json"]
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        raw = await backend.fetch_raw_topology()

        assert raw["aliases"] == {}

    @pytest.mark.asyncio
    async def test_empty_aliases_znode(self, zk_tree):
        nodes, children = zk_tree
        nodes["/aliases.json"] = b""
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        raw = await backend.fetch_raw_topology()

        assert raw["aliases"] == {}

    @pytest.mark.asyncio
    async def test_legacy_cluster_state_fallback(self, zk_tree):
        """Collections without state.json are read from clusterstate.json."""
        nodes, children = zk_tree
        del nodes["/collections/collection2/state.json"]
        nodes["/clusterstate.json"] = {"collection2": replicated_collection()}
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        raw = await backend.fetch_raw_topology()

        assert raw["collections"]["collection2"] == replicated_collection()

    @pytest.mark.asyncio
    async def test_collection_without_state_is_skipped(self, zk_tree):
        nodes, children = zk_tree
        children["/collections"].append("creating")
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        raw = await backend.fetch_raw_topology()

        assert "creating" not in raw["collections"]

    @pytest.mark.asyncio
    async def test_starts_disconnected_client(self, zk_tree):
        zk = make_zk(*zk_tree, connected=False)
        backend = ZkStateBackend(zk=zk, connect_timeout=3.0)

        await backend.fetch_raw_topology()

        zk.start.assert_called_once_with(timeout=3.0)

    @pytest.mark.asyncio
    async def test_connected_client_is_not_restarted(self, zk_tree):
        zk = make_zk(*zk_tree)
        backend = ZkStateBackend(zk=zk)

        await backend.fetch_raw_topology()

        zk.start.assert_not_called()


class TestFailures:
    """Tests for unreachable ensembles and broken znodes."""

    @pytest.mark.asyncio
    async def test_connection_loss(self, zk_tree):
        zk = make_zk(*zk_tree)
        zk.get_children.side_effect = ConnectionLoss()
        backend = ZkStateBackend(zk=zk)

        with pytest.raises(BackendUnavailable) as exc_info:
            await backend.fetch_raw_topology()

        assert exc_info.value.source == "zookeeper"
        assert "ConnectionLoss" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_session_expired(self, zk_tree):
        zk = make_zk(*zk_tree)
        zk.get.side_effect = SessionExpiredError()
        backend = ZkStateBackend(zk=zk)

        with pytest.raises(BackendUnavailable):
            await backend.fetch_raw_topology()

    @pytest.mark.asyncio
    async def test_missing_collections_znode(self, zk_tree):
        nodes, children = zk_tree
        del children["/collections"]
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        with pytest.raises(MalformedSnapshot) as exc_info:
            await backend.fetch_raw_topology()

        assert "/collections" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_state_json(self, zk_tree):
        nodes, children = zk_tree
        nodes["/collections/collection1/state.json"] = b"{not json"
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        with pytest.raises(MalformedSnapshot) as exc_info:
            await backend.fetch_raw_topology()

        assert "invalid JSON" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_state_json_for_other_collection(self, zk_tree):
        nodes, children = zk_tree
        nodes["/collections/collection1/state.json"] = {"other": two_leader_collection()}
        backend = ZkStateBackend(zk=make_zk(nodes, children))

        with pytest.raises(MalformedSnapshot) as exc_info:
            await backend.fetch_raw_topology()

        assert exc_info.value.collection == "collection1"


class TestClose:

    @pytest.mark.asyncio
    async def test_aclose_stops_and_closes_owned_client(self, zk_tree):
        zk = make_zk(*zk_tree)
        backend = ZkStateBackend(zk=zk, close_client=True)

        await backend.aclose()

        zk.stop.assert_called_once()
        zk.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_injected_client_stays_open(self, zk_tree):
        zk = make_zk(*zk_tree)
        backend = ZkStateBackend(zk=zk)

        await backend.aclose()

        zk.stop.assert_not_called()
        zk.close.assert_not_called()


class TestBuildZkHostString:

    def test_hosts_with_chroot(self):
        assert (
            build_zk_host_string(["zk1:2181", "zk2:2181"], "/solr")
            == "zk1:2181,zk2:2181/solr"
        )

    def test_hosts_without_chroot(self):
        assert build_zk_host_string(["zk1:2181"]) == "zk1:2181"

    def test_no_hosts(self):
        with pytest.raises(ValueError):
            build_zk_host_string([])

    def test_relative_chroot(self):
        with pytest.raises(ValueError):
            build_zk_host_string(["zk1:2181"], "solr")
