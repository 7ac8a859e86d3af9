"""
Shared fixtures for cluster startup tests against a fake node executable.

Every test gets its own run directory. Clusters are torn down after the test,
whatever the outcome of startup.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest

from beacon_e2e.cluster import BeaconCluster, ClusterConfig
from beacon_e2e.config import BINARY_OVERRIDE_ENV
from tests.beacon_e2e.helpers import FAKE_NODE_MODE_ENV, make_cluster_config, write_fake_node

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def fake_node(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Executable that behaves like a beacon node as far as its log goes."""
    return write_fake_node(tmp_path_factory.mktemp("bin"))


@pytest.fixture(autouse=True)
def _fake_node_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(BINARY_OVERRIDE_ENV, raising=False)
    monkeypatch.setenv(FAKE_NODE_MODE_ENV, "ready")


@pytest.fixture
async def make_cluster(
    tmp_path: Path,
    fake_node: Path,
) -> AsyncGenerator[Callable[..., BeaconCluster], None]:
    """
    Factory for clusters running the fake node, stopped at teardown.

    Keyword arguments override fields of the default test config.
    """
    clusters: list[BeaconCluster] = []

    def _make(**overrides: object) -> BeaconCluster:
        config: ClusterConfig = make_cluster_config(tmp_path / "run", **overrides)
        cluster = BeaconCluster(config=config, binary=fake_node)
        clusters.append(cluster)
        return cluster

    try:
        yield _make
    finally:
        for cluster in clusters:
            try:
                await asyncio.wait_for(cluster.stop_all(), timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Cluster teardown timed out")
