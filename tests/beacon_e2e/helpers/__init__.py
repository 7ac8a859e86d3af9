"""Test helpers for beacon_e2e unit and integration tests."""

from .builders import make_cluster_config, make_record, marker_line
from .fake_node import FAKE_NODE_MODE_ENV, write_fake_node
from .mocks import FakeSleep, ScriptedLog

__all__ = [
    "FAKE_NODE_MODE_ENV",
    "FakeSleep",
    "ScriptedLog",
    "make_cluster_config",
    "make_record",
    "marker_line",
    "write_fake_node",
]
