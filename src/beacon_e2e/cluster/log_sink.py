"""
Per-node log file.

The child process is the only writer. The readiness watcher is the only reader,
and it always reads the whole file from the start.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .config import BEACON_NODE_LOG_FILE_NAME


@dataclass(frozen=True, slots=True)
class LogSink:
    """Append-only text file receiving a node's merged stdout and stderr."""

    path: Path
    """Location of the log file."""

    @classmethod
    def for_node(cls, tmp_path: Path, index: int) -> LogSink:
        """Name the log file of node `index` inside the run temp directory."""
        return cls(tmp_path / BEACON_NODE_LOG_FILE_NAME.format(index=index))

    def open_for_writing(self) -> BinaryIO:
        """
        Create (or truncate) the file and return a handle for the child process.

        The same handle is passed as both stdout and stderr, so interleaving
        between the two streams is whatever the child's buffering produces.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return self.path.open("wb")

    def read_text(self) -> str:
        """
        Read the whole file from the beginning.

        A file that does not exist yet reads as empty.
        Bytes that are not valid UTF-8 are replaced rather than rejected.
        """
        try:
            return self.path.read_bytes().decode("utf-8", errors="replace")
        except FileNotFoundError:
            return ""
