"""
Sequential cluster startup.

Node i is told the addresses of nodes 0..i-1, so nodes come up one at a time:
launch, wait for readiness, extract the address, register, then move on.
Total startup time is the sum of the per-node readiness latencies.

Any failure aborts the run. There is no degraded mode with fewer nodes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .binary import resolve_binary
from .config import READINESS_MARKER, ClusterConfig
from .errors import AddressParseError, BinaryNotFound, ReadinessTimeout, SpawnError
from .launcher import launch_node
from .multiaddr import extract_multiaddr
from .readiness import wait_for_text_in_file
from .registry import NodeRecord, NodeRegistry, RegistryView
from .states import NodeState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BeaconCluster:
    """
    Starts and tracks the nodes of one orchestration run.

    The cluster never stops its own processes. Teardown belongs to the caller,
    usually a pytest fixture, through stop_all().
    """

    config: ClusterConfig
    """Run configuration, shared by every launch."""

    binary: str | Path | None = None
    """Explicit executable path. Looked up from config.binary when unset."""

    states: dict[int, NodeState] = field(default_factory=dict)
    """Startup phase of every node index of the run."""

    _registry: NodeRegistry = field(default_factory=NodeRegistry, init=False)
    """Ready nodes, in start order. Only this class appends."""

    _processes: list[asyncio.subprocess.Process] = field(
        default_factory=list, init=False, repr=False
    )
    """Every process spawned, including one that failed to become ready."""

    def __post_init__(self) -> None:
        for index in range(self.config.num_beacon_nodes):
            self.states[index] = NodeState.NOT_STARTED

    @property
    def registry(self) -> RegistryView:
        """Ready nodes, in start order, read-only."""
        return self._registry.view()

    def _transition(self, index: int, state: NodeState) -> None:
        current = self.states.get(index, NodeState.NOT_STARTED)
        if current.is_terminal:
            raise RuntimeError(f"Node {index} is already {current.name}")
        self.states[index] = state
        logger.debug("Node %d: %s -> %s", index, current.name, state.name)

    async def start_all(self) -> RegistryView:
        """
        Start every configured node, strictly one after another.

        Returns:
            The registry holding all num_beacon_nodes records.

        Raises:
            BinaryNotFound: If the node executable cannot be found.
            SpawnError: If a process cannot be created.
            ReadinessTimeout: If a node never logs the readiness marker.
            AddressParseError: If a ready node's address cannot be parsed.
        """
        binary = self._resolve_binary()

        while len(self.registry) < self.config.num_beacon_nodes:
            await self._start_node(binary)

        logger.info(
            "All %d beacon nodes ready: %s",
            len(self.registry),
            ", ".join(self.registry.multiaddrs()),
        )
        return self.registry

    async def start_new_node(self) -> NodeRecord:
        """Start the next node, dialing every node already registered."""
        return await self._start_node(self._resolve_binary())

    def _resolve_binary(self) -> Path:
        try:
            return resolve_binary(self.config.binary, self.binary)
        except BinaryNotFound:
            self._transition(len(self.registry), NodeState.FAILED_SPAWN)
            raise

    async def _start_node(self, binary: Path) -> NodeRecord:
        index = len(self.registry)
        config = self.config

        try:
            launched = await launch_node(config, index, self._registry, binary=binary)
        except SpawnError:
            self._transition(index, NodeState.FAILED_SPAWN)
            raise

        self._processes.append(launched.process)
        self._transition(index, NodeState.SPAWNED)

        self._transition(index, NodeState.POLLING)
        try:
            result = await wait_for_text_in_file(
                launched.log_sink,
                READINESS_MARKER,
                poll_interval=config.poll_interval,
                max_wait=config.max_wait,
                node_index=index,
            )
            multiaddr = extract_multiaddr(launched.log_sink.read_text(), node_index=index)
        except ReadinessTimeout:
            self._transition(index, NodeState.FAILED_TIMEOUT)
            raise
        except AddressParseError:
            self._transition(index, NodeState.FAILED_ADDRESS)
            raise

        record = launched.to_record(multiaddr)
        self._registry.append(record)
        self._transition(index, NodeState.READY)

        logger.info(
            "Beacon node %d ready after %.1fs (%d polls) at %s",
            index,
            result.waited,
            result.polls,
            multiaddr,
        )
        return record

    async def stop_all(self, timeout: float = 5.0) -> None:
        """
        Terminate every spawned process, killing those that do not exit in time.

        Args:
            timeout: Seconds to wait for each process after SIGTERM.
        """
        try:
            for process in self._processes:
                await _stop_process(process, timeout)
        finally:
            self._processes.clear()
        logger.info("All beacon nodes stopped")


async def start_beacon_nodes(
    config: ClusterConfig,
    *,
    binary: str | Path | None = None,
) -> BeaconCluster:
    """
    Start config.num_beacon_nodes nodes and return the running cluster.

    The caller owns the returned cluster and must call stop_all() on it.
    If startup fails, the caller never gets a handle, so processes spawned
    so far are stopped here before the error propagates.
    """
    cluster = BeaconCluster(config=config, binary=binary)
    try:
        await cluster.start_all()
    except BaseException:
        await cluster.stop_all()
        raise
    return cluster


async def _stop_process(process: asyncio.subprocess.Process, timeout: float) -> None:
    """SIGTERM, then SIGKILL after `timeout`. A process that already exited is skipped."""
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
        return
    except asyncio.TimeoutError:
        logger.warning("Process %d did not terminate, forcing kill", process.pid)

    # It may have exited between the timeout and here.
    try:
        process.kill()
    except ProcessLookupError:
        return
    await process.wait()
