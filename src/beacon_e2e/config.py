"""
Global settings for the end-to-end harness.

This module contains environment-specific settings that apply to every cluster run.
"""

import os

BINARY_OVERRIDE_ENV = "BEACON_CHAIN_BINARY"
"""Environment variable holding an explicit path to the node executable."""

_SUPPORTED_LOG_LEVELS: list[str] = ["DEBUG", "INFO", "WARNING", "ERROR"]

LOG_LEVEL = os.environ.get("BEACON_E2E_LOG_LEVEL", "INFO").upper()
"""Default log level for the command line entry point. Defaults to 'INFO'."""

if LOG_LEVEL not in _SUPPORTED_LOG_LEVELS:
    raise ValueError(
        f"Invalid BEACON_E2E_LOG_LEVEL environment variable: '{LOG_LEVEL}'. "
        f"Supported values: {_SUPPORTED_LOG_LEVELS}"
    )


def binary_override() -> str | None:
    """Return the explicit node executable path from the environment, if any."""
    value = os.environ.get(BINARY_OVERRIDE_ENV, "").strip()
    return value or None
