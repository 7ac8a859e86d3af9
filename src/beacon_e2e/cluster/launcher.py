"""
Node process launcher.

Builds the command line of node `index` from the cluster config and the
nodes already running, then spawns it with its output captured in a log file.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import ClusterConfig
from .errors import SpawnError
from .log_sink import LogSink
from .ports import NodePorts
from .registry import NodeRecord, NodeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LaunchedNode:
    """
    A spawned node whose peer address is not known yet.

    Must not enter the registry until readiness and address extraction succeed.
    """

    index: int
    """0-based launch ordinal."""

    process: asyncio.subprocess.Process = field(repr=False)
    """Handle of the child process."""

    log_sink: LogSink
    """Log file receiving the child's stdout and stderr."""

    datadir: Path
    """Data directory passed to the node."""

    ports: NodePorts
    """Ports passed to the node."""

    args: tuple[str, ...]
    """Flags the node was launched with."""

    def to_record(self, multiaddr: str) -> NodeRecord:
        """Promote to a registry record once the peer address is known."""
        return NodeRecord(
            index=self.index,
            pid=self.process.pid,
            datadir=self.datadir,
            ports=self.ports,
            log_path=self.log_sink.path,
            args=self.args,
            multiaddr=multiaddr,
            process=self.process,
        )


def node_args(config: ClusterConfig, index: int, registry: NodeRegistry) -> list[str]:
    """
    Build the flags of node `index`.

    Every node gets the same feature flags and chain anchor. Ports and the
    data directory vary by index. Each node is told to dial every node that
    is already running; the p2p layer makes those links bidirectional.

    Args:
        config: Cluster configuration.
        index: Index of the node to start.
        registry: Nodes started so far, indices 0..index-1.

    Returns:
        The command line flags, without the executable.
    """
    if index != len(registry):
        raise ValueError(f"Node {index} cannot start with {len(registry)} nodes registered")

    ports = NodePorts.for_index(index)
    args = [
        "--no-genesis-delay",
        "--verbosity=debug",
        "--force-clear-db",
        "--no-discovery",
        "--new-cache",
        "--enable-shuffled-index-cache",
        "--enable-skip-slots-cache",
        "--enable-attestation-cache",
        f"--http-web3provider={config.http_web3_provider}",
        f"--web3provider={config.web3_provider}",
        f"--datadir={config.datadir(index)}",
        f"--deposit-contract={config.contract_addr}",
        f"--rpc-port={ports.rpc}",
        f"--p2p-udp-port={ports.p2p_udp}",
        f"--p2p-tcp-port={ports.p2p_tcp}",
        f"--monitoring-port={ports.monitoring}",
        f"--grpc-gateway-port={ports.grpc_gateway}",
        f"--contract-deployment-block={config.contract_deployment_block}",
    ]

    if config.minimal_config:
        args.append("--minimal-config")
    if config.enable_ssz_cache:
        args.append("--enable-ssz-cache")

    args.extend(f"--peer={multiaddr}" for multiaddr in registry.multiaddrs())
    return args


async def launch_node(
    config: ClusterConfig,
    index: int,
    registry: NodeRegistry,
    *,
    binary: Path,
) -> LaunchedNode:
    """
    Spawn node `index` with its output redirected into its log file.

    Args:
        config: Cluster configuration.
        index: Index of the node to start.
        registry: Nodes started so far.
        binary: Resolved node executable.

    Returns:
        The running node, without a peer address.

    Raises:
        SpawnError: If the log file or the process cannot be created.
    """
    args = node_args(config, index, registry)
    sink = LogSink.for_node(config.tmp_path, index)

    logger.info("Starting beacon node %d with flags: %s", index, " ".join(args))

    # The child keeps its own copy of the descriptor after spawn.
    try:
        with sink.open_for_writing() as log_file:
            process = await asyncio.create_subprocess_exec(
                str(binary),
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=log_file,
                stderr=log_file,
            )
    except OSError as e:
        raise SpawnError(index, binary, e) from e

    logger.debug("Beacon node %d running as pid %d", index, process.pid)

    return LaunchedNode(
        index=index,
        process=process,
        log_sink=sink,
        datadir=config.datadir(index),
        ports=NodePorts.for_index(index),
        args=tuple(args),
    )
