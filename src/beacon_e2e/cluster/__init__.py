"""Launch, wire and wait for a local cluster of beacon nodes."""

from .binary import resolve_binary
from .config import READINESS_MARKER, ClusterConfig
from .errors import (
    AddressParseError,
    BinaryNotFound,
    E2EError,
    ReadinessTimeout,
    SpawnError,
)
from .launcher import LaunchedNode, launch_node, node_args
from .log_sink import LogSink
from .multiaddr import extract_multiaddr, get_multiaddr_from_log_file
from .orchestrator import BeaconCluster, start_beacon_nodes
from .ports import NodePorts
from .readiness import ReadinessResult, wait_for_marker, wait_for_text_in_file
from .registry import NodeRecord, NodeRegistry, RegistryView
from .states import NodeState

__all__ = [
    # Configuration
    "ClusterConfig",
    "READINESS_MARKER",
    # Errors
    "E2EError",
    "BinaryNotFound",
    "SpawnError",
    "ReadinessTimeout",
    "AddressParseError",
    # Launching
    "resolve_binary",
    "LogSink",
    "NodePorts",
    "LaunchedNode",
    "launch_node",
    "node_args",
    # Readiness
    "ReadinessResult",
    "wait_for_marker",
    "wait_for_text_in_file",
    "extract_multiaddr",
    "get_multiaddr_from_log_file",
    # Orchestration
    "BeaconCluster",
    "NodeRecord",
    "NodeRegistry",
    "RegistryView",
    "NodeState",
    "start_beacon_nodes",
]
