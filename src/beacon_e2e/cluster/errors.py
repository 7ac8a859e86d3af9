"""
Exception hierarchy for cluster startup.

Every error here is fatal to the whole run. The only retry in the harness
is the readiness poll loop, which raises ReadinessTimeout once its budget is spent.
"""

from __future__ import annotations

from pathlib import Path


class E2EError(Exception):
    """
    Base exception for all harness errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class BinaryNotFound(E2EError):
    """
    Raised when the node executable cannot be located.

    Attributes:
        name: The executable name that was searched for on PATH.
        override: The explicit path that was rejected (if one was given).
    """

    def __init__(self, name: str, *, override: str | Path | None = None) -> None:
        self.name = name
        self.override = override

        if override is not None:
            msg = f"{name} binary not found: {override} is not an executable file"
        else:
            msg = f"{name} binary not found on PATH"

        super().__init__(msg)


class SpawnError(E2EError):
    """
    Raised when the operating system refuses to create the node process.

    Attributes:
        node_index: Index of the node being launched.
        binary: Path of the executable.
        cause: The underlying OS error.
    """

    def __init__(self, node_index: int, binary: Path, cause: OSError) -> None:
        self.node_index = node_index
        self.binary = binary
        self.cause = cause

        super().__init__(f"Failed to start beacon node {node_index} ({binary}): {cause}")


class ReadinessTimeout(E2EError):
    """
    Raised when the readiness marker never shows up in a node's log.

    Attributes:
        marker: The text that was searched for.
        waited: Accumulated wait in seconds when the budget ran out.
        contents: The full log contents read after the final poll.
        node_index: Index of the node (if known).
    """

    def __init__(
        self,
        marker: str,
        waited: float,
        contents: str,
        *,
        node_index: int | None = None,
    ) -> None:
        self.marker = marker
        self.waited = waited
        self.contents = contents
        self.node_index = node_index

        prefix = f"node {node_index}: " if node_index is not None else ""
        super().__init__(
            f"{prefix}could not find requested text \"{marker}\" "
            f"after {waited:.1f}s in logs:\n{contents}"
        )


class AddressParseError(E2EError):
    """
    Raised when the readiness line is present but the address field is not.

    This points at a log format mismatch rather than a slow node.

    Attributes:
        detail: What was missing or malformed.
        contents: The log text that was parsed.
        node_index: Index of the node (if known).
    """

    def __init__(
        self,
        detail: str,
        contents: str,
        *,
        node_index: int | None = None,
    ) -> None:
        self.detail = detail
        self.contents = contents
        self.node_index = node_index

        prefix = f"node {node_index}: " if node_index is not None else ""
        super().__init__(f"{prefix}could not get multiaddr: {detail} in:\n{contents}")
