"""Tests for per-index port derivation."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from beacon_e2e.cluster import NodePorts
from beacon_e2e.cluster.config import MAX_BEACON_NODES


def test_node_zero_uses_base_ports() -> None:
    """Node 0 listens on the category bases."""
    assert NodePorts.for_index(0) == NodePorts(
        rpc=4000,
        p2p_udp=12000,
        p2p_tcp=13000,
        monitoring=8080,
        grpc_gateway=3200,
    )


def test_three_node_ports() -> None:
    """The first three nodes step every category by one."""
    ports = [NodePorts.for_index(i) for i in range(3)]
    assert [p.rpc for p in ports] == [4000, 4001, 4002]
    assert [p.p2p_udp for p in ports] == [12000, 12001, 12002]
    assert [p.p2p_tcp for p in ports] == [13000, 13001, 13002]
    assert [p.monitoring for p in ports] == [8080, 8081, 8082]
    assert [p.grpc_gateway for p in ports] == [3200, 3201, 3202]


def test_negative_index_rejected() -> None:
    """Indices start at zero."""
    with pytest.raises(ValueError, match="non-negative"):
        NodePorts.for_index(-1)


@given(index=st.integers(min_value=0, max_value=MAX_BEACON_NODES - 1))
def test_derivation_is_reproducible(index: int) -> None:
    """The same index always yields the same ports."""
    assert NodePorts.for_index(index) == NodePorts.for_index(index)


@given(count=st.integers(min_value=1, max_value=MAX_BEACON_NODES))
def test_ports_pairwise_distinct(count: int) -> None:
    """No port is used twice across a whole cluster of any allowed size."""
    all_ports = [port for i in range(count) for port in NodePorts.for_index(i).as_tuple()]
    assert len(all_ports) == len(set(all_ports)) == 5 * count
