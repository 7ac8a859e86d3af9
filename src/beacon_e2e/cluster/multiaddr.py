"""
Peer address extraction from node logs.

The readiness line carries the node's dialable address as a quoted field:

    level=info msg="Node started p2p server" multiAddr="/ip4/127.0.0.1/tcp/13000/p2p/16Uiu2..."
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

from .config import READINESS_MARKER
from .errors import AddressParseError

MULTIADDR_PREFIX: Final[str] = f'"{READINESS_MARKER}" multiAddr="'
"""Text immediately preceding the address value."""


def extract_multiaddr(contents: str, *, node_index: int | None = None) -> str:
    """
    Pull the advertised multiaddr out of a node's log text.

    Args:
        contents: Full log text.
        node_index: Node the log belongs to, for error context.

    Returns:
        The address between the quotes following the readiness message.

    Raises:
        AddressParseError: If the prefix, the closing quote, or the value is missing.
    """
    start = contents.find(MULTIADDR_PREFIX)
    if start == -1:
        raise AddressParseError("did not find peer text", contents, node_index=node_index)

    start += len(MULTIADDR_PREFIX)
    end = contents.find('"', start)
    line_end = contents.find("\n", start)
    if end == -1 or (line_end != -1 and line_end < end):
        raise AddressParseError("unterminated multiAddr field", contents, node_index=node_index)

    multiaddr = contents[start:end]
    if not multiaddr:
        raise AddressParseError("empty multiAddr field", contents, node_index=node_index)

    return multiaddr


def get_multiaddr_from_log_file(path: Path, *, node_index: int | None = None) -> str:
    """Read a log file and extract its multiaddr. See extract_multiaddr."""
    contents = path.read_bytes().decode("utf-8", errors="replace")
    return extract_multiaddr(contents, node_index=node_index)
