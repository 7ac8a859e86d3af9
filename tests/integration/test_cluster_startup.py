"""
Cluster startup against a fake node executable.

The fake node prints its flags and the readiness line into its log, so these
tests cover the whole path: spawn, log capture, polling, address extraction,
registration and peer wiring.
"""

from __future__ import annotations

import logging
import signal
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from beacon_e2e.cluster import (
    AddressParseError,
    BeaconCluster,
    BinaryNotFound,
    NodeState,
    ReadinessTimeout,
    get_multiaddr_from_log_file,
    start_beacon_nodes,
)
from tests.beacon_e2e.helpers import FAKE_NODE_MODE_ENV, make_cluster_config

pytestmark = [pytest.mark.integration, pytest.mark.timeout(60)]


def _fake_multiaddr(tcp_port: int) -> str:
    return f"/ip4/127.0.0.1/tcp/{tcp_port}/p2p/16Uiu2Fake{tcp_port}"


async def test_single_node(make_cluster: Callable[..., BeaconCluster]) -> None:
    """One node starts alone and is registered with its address."""
    cluster = make_cluster(num_beacon_nodes=1)

    registry = await cluster.start_all()

    assert len(registry) == 1
    record = registry[0]
    assert record.index == 0
    assert record.multiaddr == _fake_multiaddr(13000)
    assert not any(a.startswith("--peer=") for a in record.args)
    assert record.pid == record.process.pid
    assert cluster.states == {0: NodeState.READY}


async def test_three_nodes_wired_in_order(make_cluster: Callable[..., BeaconCluster]) -> None:
    """Each node dials every earlier node, and ports follow the index."""
    cluster = make_cluster(num_beacon_nodes=3)

    registry = await cluster.start_all()

    assert [r.index for r in registry] == [0, 1, 2]
    assert [r.ports.rpc for r in registry] == [4000, 4001, 4002]
    assert [r.ports.p2p_udp for r in registry] == [12000, 12001, 12002]
    assert [r.ports.p2p_tcp for r in registry] == [13000, 13001, 13002]

    peers = [[a.removeprefix("--peer=") for a in r.args if a.startswith("--peer=")] for r in registry]
    assert peers == [
        [],
        [_fake_multiaddr(13000)],
        [_fake_multiaddr(13000), _fake_multiaddr(13001)],
    ]

    # The node itself saw the peer flags, not just the record.
    log = registry[2].log_path.read_text(encoding="utf-8")
    assert f'value="--peer={_fake_multiaddr(13000)}"' in log
    assert f'value="--peer={_fake_multiaddr(13001)}"' in log

    assert all(state is NodeState.READY for state in cluster.states.values())


async def test_log_files_per_node(make_cluster: Callable[..., BeaconCluster]) -> None:
    """Every node writes to its own log file named by index."""
    cluster = make_cluster(num_beacon_nodes=2)

    registry = await cluster.start_all()

    for record in registry:
        assert record.log_path.name == f"beacon-{record.index}.log"
        assert get_multiaddr_from_log_file(record.log_path) == record.multiaddr


async def test_marker_on_stderr(
    make_cluster: Callable[..., BeaconCluster],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Stderr lands in the same log as stdout."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "stderr")
    cluster = make_cluster(num_beacon_nodes=1)

    registry = await cluster.start_all()

    assert registry[0].multiaddr == _fake_multiaddr(13000)


async def test_start_new_node_joins_cluster(make_cluster: Callable[..., BeaconCluster]) -> None:
    """A late node dials everything already running."""
    cluster = make_cluster(num_beacon_nodes=2)
    await cluster.start_all()

    record = await cluster.start_new_node()

    assert record.index == 2
    assert [a for a in record.args if a.startswith("--peer=")] == [
        f"--peer={_fake_multiaddr(13000)}",
        f"--peer={_fake_multiaddr(13001)}",
    ]
    assert len(cluster.registry) == 3


async def test_readiness_timeout(
    make_cluster: Callable[..., BeaconCluster],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A node that never logs the marker fails the run within the budget."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "silent")
    cluster = make_cluster(num_beacon_nodes=3, poll_interval=0.25, max_wait=1.0)

    start = time.monotonic()
    with pytest.raises(ReadinessTimeout) as exc_info:
        await cluster.start_all()
    elapsed = time.monotonic() - start

    err = exc_info.value
    assert err.node_index == 0
    assert err.waited == pytest.approx(1.0)
    assert 0.9 <= elapsed < 3.0
    assert 'msg="Starting beacon node"' in err.contents
    assert "--p2p-tcp-port=13000" in err.contents

    # Nodes after the failed one are never launched.
    assert len(cluster.registry) == 0
    assert cluster.states == {
        0: NodeState.FAILED_TIMEOUT,
        1: NodeState.NOT_STARTED,
        2: NodeState.NOT_STARTED,
    }
    assert not (cluster.config.tmp_path / "beacon-1.log").exists()


async def test_crashed_node_times_out_with_its_output(
    make_cluster: Callable[..., BeaconCluster],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A node that exits early is only noticed through the missing marker."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "crash")
    cluster = make_cluster(num_beacon_nodes=1, poll_interval=0.1, max_wait=0.5)

    with pytest.raises(ReadinessTimeout) as exc_info:
        await cluster.start_all()

    assert "could not open database" in exc_info.value.contents


async def test_malformed_address(
    make_cluster: Callable[..., BeaconCluster],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A ready node without a parsable address is a distinct failure."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "malformed")
    cluster = make_cluster(num_beacon_nodes=2)

    with pytest.raises(AddressParseError) as exc_info:
        await cluster.start_all()

    assert exc_info.value.node_index == 0
    assert len(cluster.registry) == 0
    assert cluster.states[0] is NodeState.FAILED_ADDRESS
    assert cluster.states[1] is NodeState.NOT_STARTED


async def test_binary_not_found(
    make_cluster: Callable[..., BeaconCluster],
    tmp_path: Path,
) -> None:
    """A missing executable fails before anything is spawned."""
    cluster = make_cluster(num_beacon_nodes=2)
    cluster.binary = tmp_path / "no-such-binary"

    with pytest.raises(BinaryNotFound):
        await cluster.start_all()

    assert cluster.states[0] is NodeState.FAILED_SPAWN
    assert not (cluster.config.tmp_path / "beacon-0.log").exists()


async def test_stop_all_terminates_processes(make_cluster: Callable[..., BeaconCluster]) -> None:
    """Teardown stops every node process."""
    cluster = make_cluster(num_beacon_nodes=2)
    registry = await cluster.start_all()

    await cluster.stop_all()

    assert all(record.process.returncode is not None for record in registry)


async def test_stop_all_kills_processes_ignoring_sigterm(
    make_cluster: Callable[..., BeaconCluster],
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Nodes that ignore SIGTERM are killed once the timeout expires."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "stubborn")
    cluster = make_cluster(num_beacon_nodes=2)
    registry = await cluster.start_all()

    with caplog.at_level(logging.WARNING, logger="beacon_e2e.cluster.orchestrator"):
        await cluster.stop_all(timeout=0.2)

    assert [record.process.returncode for record in registry] == [-signal.SIGKILL] * 2
    assert caplog.text.count("forcing kill") == 2


async def test_start_beacon_nodes(fake_node: Path, tmp_path: Path) -> None:
    """The convenience entry point returns a running cluster."""
    config = make_cluster_config(tmp_path, num_beacon_nodes=2)

    cluster = await start_beacon_nodes(config, binary=fake_node)
    try:
        assert cluster.registry.multiaddrs() == [_fake_multiaddr(13000), _fake_multiaddr(13001)]
    finally:
        await cluster.stop_all()


async def test_start_beacon_nodes_stops_on_failure(
    fake_node: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """When startup fails, processes already spawned are not left behind."""
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "malformed")
    config = make_cluster_config(tmp_path, num_beacon_nodes=1)

    stopped: list[BeaconCluster] = []
    original_stop_all = BeaconCluster.stop_all

    async def recording_stop_all(self: BeaconCluster, timeout: float = 5.0) -> None:
        stopped.append(self)
        await original_stop_all(self, timeout)

    monkeypatch.setattr(BeaconCluster, "stop_all", recording_stop_all)

    with pytest.raises(AddressParseError):
        await start_beacon_nodes(config, binary=fake_node)

    assert len(stopped) == 1
    assert stopped[0].states[0] is NodeState.FAILED_ADDRESS
    assert stopped[0]._processes == []
