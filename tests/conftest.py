"""Shared fixtures for topology tests."""

import pytest

from solrcloud_topology.decode import decode_cluster_state
from solrcloud_topology.staleness import StalenessPolicy

from fakes import FakeBackend, FakeClock
from topology_data import sample_topology


@pytest.fixture
def topology_document():
    """Raw topology with collection1, collection2 and two aliases."""
    return sample_topology()


@pytest.fixture
def cluster_state(topology_document):
    return decode_cluster_state(topology_document)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def policy(clock):
    """60 second TTL on the fake clock."""
    return StalenessPolicy(ttl_seconds=60, clock=clock)


@pytest.fixture
def backend(topology_document):
    return FakeBackend(document=topology_document)
