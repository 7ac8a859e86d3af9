"""Per-node startup state machine."""

from __future__ import annotations

from enum import Enum, auto


class NodeState(Enum):
    """
    Startup phase of a single node.

    State Machine Diagram
    ---------------------
    ::

        NOT_STARTED --> SPAWNED --> POLLING --> READY
             |                         |
             v                         +--> FAILED_TIMEOUT
        FAILED_SPAWN                   +--> FAILED_ADDRESS

    Every FAILED_* state is terminal and aborts the whole run.
    Nodes after the failed one stay NOT_STARTED.
    """

    NOT_STARTED = auto()
    """No process exists yet."""

    SPAWNED = auto()
    """Process created, log file attached."""

    POLLING = auto()
    """Waiting for the readiness marker in the log."""

    READY = auto()
    """Marker seen and peer address extracted. The node is in the registry."""

    FAILED_SPAWN = auto()
    """Executable missing or process creation refused by the OS."""

    FAILED_TIMEOUT = auto()
    """Marker never appeared within the wait budget."""

    FAILED_ADDRESS = auto()
    """Marker appeared but the address field could not be parsed."""

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition can happen."""
        return self in (
            NodeState.READY,
            NodeState.FAILED_SPAWN,
            NodeState.FAILED_TIMEOUT,
            NodeState.FAILED_ADDRESS,
        )
