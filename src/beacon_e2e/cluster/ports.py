"""
Port derivation for cluster nodes.

Every port is a pure function of the node index, so a run is reproducible
and no two nodes of one run ever compete for the same port.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import (
    BASE_GRPC_GATEWAY_PORT,
    BASE_MONITORING_PORT,
    BASE_P2P_TCP_PORT,
    BASE_P2P_UDP_PORT,
    BASE_RPC_PORT,
)


@dataclass(frozen=True, slots=True)
class NodePorts:
    """The five ports a single node listens on."""

    rpc: int
    """Control-plane RPC port."""

    p2p_udp: int
    """Peer-discovery datagram port."""

    p2p_tcp: int
    """Peer-discovery stream port."""

    monitoring: int
    """Metrics and health port."""

    grpc_gateway: int
    """JSON gateway in front of the RPC server."""

    @classmethod
    def for_index(cls, index: int) -> NodePorts:
        """
        Derive the ports of node `index`.

        Args:
            index: 0-based node index.

        Returns:
            Ports offset from each category base by `index`.
        """
        if index < 0:
            raise ValueError(f"Node index must be non-negative, got {index}")
        return cls(
            rpc=BASE_RPC_PORT + index,
            p2p_udp=BASE_P2P_UDP_PORT + index,
            p2p_tcp=BASE_P2P_TCP_PORT + index,
            monitoring=BASE_MONITORING_PORT + index,
            grpc_gateway=BASE_GRPC_GATEWAY_PORT + index,
        )

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        """All five ports in declaration order."""
        return (self.rpc, self.p2p_udp, self.p2p_tcp, self.monitoring, self.grpc_gateway)
