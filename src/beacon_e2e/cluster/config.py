"""
Cluster configuration and harness constants.

A ClusterConfig is built once per test run and shared, unchanged, by every node
launch. YAML files may spell keys in snake_case or camelCase:

    numBeaconNodes: 3
    numValidators: 64
    epochsToRun: 4
    contractAddr: "0x4242424242424242424242424242424242424242"
    tmpPath: /tmp/e2e
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Final

import yaml
from pydantic import Field, field_validator, model_validator

from beacon_e2e.types import StrictBaseModel

READINESS_MARKER: Final[str] = "Node started p2p server"
"""Log message a node emits once its p2p stack is listening."""

DEFAULT_POLL_INTERVAL: Final[float] = 2.0
"""Seconds between two reads of a node's log."""

DEFAULT_MAX_WAIT: Final[float] = 36.0
"""Total seconds of polling before a node is declared not ready."""

BEACON_NODE_LOG_FILE_NAME: Final[str] = "beacon-{index}.log"
"""Per-node log file name inside the run temp directory."""

BEACON_NODE_DATADIR_NAME: Final[str] = "node-{index}"
"""Per-node data directory name inside the run temp directory."""

BASE_RPC_PORT: Final[int] = 4000
"""Control-plane RPC port of node 0."""

BASE_P2P_UDP_PORT: Final[int] = 12000
"""Peer-discovery datagram port of node 0."""

BASE_P2P_TCP_PORT: Final[int] = 13000
"""Peer-discovery stream port of node 0."""

BASE_MONITORING_PORT: Final[int] = 8080
"""Monitoring port of node 0."""

BASE_GRPC_GATEWAY_PORT: Final[int] = 3200
"""Gateway port of node 0."""

_BASE_PORTS: Final[tuple[int, ...]] = tuple(
    sorted(
        (
            BASE_RPC_PORT,
            BASE_P2P_UDP_PORT,
            BASE_P2P_TCP_PORT,
            BASE_MONITORING_PORT,
            BASE_GRPC_GATEWAY_PORT,
        )
    )
)

MAX_BEACON_NODES: Final[int] = min(b - a for a, b in zip(_BASE_PORTS, _BASE_PORTS[1:]))
"""
Largest cluster whose port ranges cannot overlap.

Node i uses BASE + i in every category, so the ranges stay disjoint
as long as the count is below the smallest gap between two bases.
"""

_CONTRACT_ADDR_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ClusterConfig(StrictBaseModel):
    """
    Parameters of one orchestration run.

    Every node receives the same feature flags and chain anchor.
    Only the node index differs between launches.
    """

    num_beacon_nodes: int = Field(ge=1)
    """Number of nodes to start, one after another."""

    num_validators: int = Field(ge=1)
    """Number of simulated validators in the genesis set."""

    epochs_to_run: int = Field(ge=1)
    """How long evaluators keep watching the cluster once it is up."""

    contract_addr: str
    """Deposit contract address anchoring every node to the same chain."""

    tmp_path: Path
    """Run temp root holding every log file and data directory."""

    minimal_config: bool = True
    """Start nodes with the minimal network parameter profile."""

    enable_ssz_cache: bool = False
    """Turn on the SSZ hashing cache in every node."""

    binary: str = "beacon-chain"
    """Executable name looked up on PATH."""

    http_web3_provider: str = "http://127.0.0.1:8545"
    """HTTP endpoint of the execution chain holding the deposit contract."""

    web3_provider: str = "ws://127.0.0.1:8546"
    """Websocket endpoint of the execution chain holding the deposit contract."""

    contract_deployment_block: int = Field(default=0, ge=0)
    """Block the deposit contract was deployed at."""

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    """Seconds between readiness polls."""

    max_wait: float = Field(default=DEFAULT_MAX_WAIT, gt=0)
    """Readiness budget per node in seconds."""

    @field_validator("tmp_path", mode="before")
    @classmethod
    def parse_path(cls, v: Any) -> Path:
        """Accept plain strings, as YAML files produce them."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("poll_interval", "max_wait", mode="before")
    @classmethod
    def parse_seconds(cls, v: Any) -> Any:
        """
        Widen integer durations to float.

        YAML parses `max_wait: 36` as an integer, which strict mode would reject.
        """
        if isinstance(v, int) and not isinstance(v, bool):
            return float(v)
        return v

    @field_validator("contract_addr", mode="before")
    @classmethod
    def parse_contract_addr(cls, v: Any) -> Any:
        """
        Convert an integer address back to hex.

        YAML parsers read an unquoted 0x-prefixed value as an integer.
        """
        if isinstance(v, int) and not isinstance(v, bool):
            return f"0x{v:040x}"
        return v

    @field_validator("contract_addr")
    @classmethod
    def validate_contract_addr(cls, v: str) -> str:
        """Require a 0x-prefixed, 20 byte hex address."""
        if not _CONTRACT_ADDR_RE.match(v):
            raise ValueError(f"contract_addr must be 0x followed by 40 hex digits, got {v!r}")
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> ClusterConfig:
        """Keep port ranges disjoint and the poll budget meaningful."""
        if self.num_beacon_nodes > MAX_BEACON_NODES:
            raise ValueError(
                f"num_beacon_nodes ({self.num_beacon_nodes}) exceeds {MAX_BEACON_NODES}, "
                "port ranges would overlap"
            )
        if self.max_wait < self.poll_interval:
            raise ValueError(
                f"max_wait ({self.max_wait}) must be at least poll_interval ({self.poll_interval})"
            )
        return self

    def datadir(self, index: int) -> Path:
        """Data directory of node `index`."""
        return self.tmp_path / BEACON_NODE_DATADIR_NAME.format(index=index)

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> ClusterConfig:
        """
        Load configuration from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
            pydantic.ValidationError: If the data fails validation.
        """
        path = Path(path)
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, content: str) -> ClusterConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(content)
        return cls.model_validate(data)
