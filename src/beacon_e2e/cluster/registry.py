"""
Records of started nodes.

A NodeRecord only exists once its node is ready and its peer address is known.
The NodeRegistry keeps them in start order and is never rewritten. Collaborators
only ever see it through a RegistryView.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, overload

from .ports import NodePorts


@dataclass(frozen=True, slots=True)
class NodeRecord:
    """A node that has started and advertised its peer address."""

    index: int
    """0-based launch ordinal."""

    pid: int
    """Operating system process id."""

    datadir: Path
    """Data directory owned by this node."""

    ports: NodePorts
    """Ports derived from the index."""

    log_path: Path
    """File holding the node's merged stdout and stderr."""

    args: tuple[str, ...]
    """Command line flags the node was launched with."""

    multiaddr: str
    """Dialable address other nodes use to reach this one."""

    process: Any = field(default=None, repr=False, compare=False)
    """Handle of the child process. Only used by teardown."""

    def __post_init__(self) -> None:
        if not self.multiaddr:
            raise ValueError(f"Node {self.index} has no peer address")


@dataclass(slots=True)
class NodeRegistry:
    """
    Ordered, append-only collection of ready nodes.

    Insertion order equals start order equals index order.
    """

    _records: list[NodeRecord] = field(default_factory=list)

    def append(self, record: NodeRecord) -> None:
        """
        Add the next ready node.

        Raises:
            ValueError: If the index is out of sequence or a port is already taken.
        """
        if record.index != len(self._records):
            raise ValueError(
                f"Expected node index {len(self._records)}, got {record.index}"
            )

        taken = {port for existing in self._records for port in existing.ports.as_tuple()}
        clashes = taken.intersection(record.ports.as_tuple())
        if clashes:
            raise ValueError(f"Node {record.index} reuses ports {sorted(clashes)}")

        self._records.append(record)

    def multiaddrs(self) -> list[str]:
        """Peer addresses of all registered nodes, in start order."""
        return [record.multiaddr for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[NodeRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> NodeRecord:
        return self._records[index]

    def view(self) -> RegistryView:
        """Live, read-only view of this registry."""
        return RegistryView(self._records)


class RegistryView(Sequence[NodeRecord]):
    """Read-only window on a NodeRegistry. Reflects later appends."""

    __slots__ = ("_records",)

    def __init__(self, records: list[NodeRecord]) -> None:
        self._records = records

    def multiaddrs(self) -> list[str]:
        """Peer addresses of all registered nodes, in start order."""
        return [record.multiaddr for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    @overload
    def __getitem__(self, index: int) -> NodeRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[NodeRecord]: ...

    def __getitem__(self, index: int | slice) -> NodeRecord | Sequence[NodeRecord]:
        if isinstance(index, slice):
            return tuple(self._records[index])
        return self._records[index]

    def __repr__(self) -> str:
        return f"RegistryView({self._records!r})"
