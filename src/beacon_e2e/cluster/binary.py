"""Locate the node executable."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from beacon_e2e.config import binary_override

from .errors import BinaryNotFound

logger = logging.getLogger(__name__)


def resolve_binary(name: str, override: str | Path | None = None) -> Path:
    """
    Find the executable to launch for every node.

    An explicit override wins over PATH lookup. It comes from the argument
    or, failing that, from the BEACON_CHAIN_BINARY environment variable.

    Args:
        name: Executable name to look up on PATH.
        override: Explicit path to the executable.

    Returns:
        Path of an existing executable file.

    Raises:
        BinaryNotFound: If the override is not executable or PATH has no match.
    """
    if override is None:
        override = binary_override()

    if override is not None:
        path = Path(override)
        if not (path.is_file() and os.access(path, os.X_OK)):
            raise BinaryNotFound(name, override=override)
        return path

    found = shutil.which(name)
    if found is None:
        raise BinaryNotFound(name)

    logger.debug("Resolved %s to %s", name, found)
    return Path(found)
