"""
Beacon cluster CLI entry point.

Start a local cluster of beacon nodes and keep it running until interrupted.

Usage::

    python -m beacon_e2e --config cluster.yaml
    python -m beacon_e2e --config cluster.yaml --nodes 3 --binary ./beacon-chain
    python -m beacon_e2e --config cluster.yaml --tmp-dir /tmp/e2e --exit-after-start

Options:
    --config            Path to cluster YAML file (required)
    --nodes             Override the number of beacon nodes
    --binary            Explicit path to the beacon node executable
    --tmp-dir           Override the run temp directory
    --exit-after-start  Stop the cluster as soon as every node is ready
    -v, --verbose       Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from beacon_e2e.cluster import BeaconCluster, ClusterConfig, E2EError
from beacon_e2e.config import LOG_LEVEL

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> ClusterConfig:
    """
    Load the cluster config and apply command line overrides.

    Overrides go through the model constructor, so they are validated
    exactly like values from the file.
    """
    config = ClusterConfig.from_yaml_file(args.config)

    overrides: dict[str, object] = {}
    if args.nodes is not None:
        overrides["num_beacon_nodes"] = args.nodes
    if args.tmp_dir is not None:
        overrides["tmp_path"] = args.tmp_dir

    return config.copy(**overrides) if overrides else config


def format_node_lines(cluster: BeaconCluster) -> list[str]:
    """One summary line per registered node."""
    return [
        (
            f"node {record.index}: pid={record.pid} rpc={record.ports.rpc} "
            f"p2p-tcp={record.ports.p2p_tcp} multiaddr={record.multiaddr} log={record.log_path}"
        )
        for record in cluster.registry
    ]


async def run(config: ClusterConfig, binary: Path | None, exit_after_start: bool) -> None:
    """
    Start the cluster, report it, and tear it down on exit.

    Args:
        config: Cluster configuration.
        binary: Explicit node executable, if any.
        exit_after_start: Stop right after startup instead of waiting for an interrupt.
    """
    cluster = BeaconCluster(config=config, binary=binary)
    try:
        await cluster.start_all()
        for line in format_node_lines(cluster):
            logger.info("%s", line)

        if not exit_after_start:
            logger.info("Cluster running, press Ctrl+C to stop")
            await asyncio.Event().wait()
    finally:
        await cluster.stop_all()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the cluster."""
    parser = argparse.ArgumentParser(
        prog="beacon_e2e",
        description="Start a local cluster of beacon nodes wired to each other",
    )
    parser.add_argument("--config", type=Path, required=True, help="Path to cluster YAML file")
    parser.add_argument("--nodes", type=int, help="Override the number of beacon nodes")
    parser.add_argument("--binary", type=Path, help="Explicit path to the node executable")
    parser.add_argument("--tmp-dir", type=Path, help="Override the run temp directory")
    parser.add_argument(
        "--exit-after-start",
        action="store_true",
        help="Stop the cluster as soon as every node is ready",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error("Invalid cluster config %s: %s", args.config, e)
        return 1

    try:
        asyncio.run(run(config, args.binary, args.exit_after_start))
    except E2EError as e:
        logger.error("%s", e.message)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
