"""
Log-based readiness detection.

A node gives no signal other than its log output, so readiness is a bounded
poll: sleep, re-read the whole log, look for the marker, repeat until the
budget is spent.

The poll loop takes the log reader and the sleep function as arguments.
Tests drive it with in-memory snapshots and a fake sleep.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .config import DEFAULT_MAX_WAIT, DEFAULT_POLL_INTERVAL
from .errors import ReadinessTimeout
from .log_sink import LogSink

logger = logging.getLogger(__name__)

_POLL_COUNT_TOLERANCE = 1e-9
"""Absorbs float error in max_wait / poll_interval, e.g. 0.9 / 0.3."""


@dataclass(frozen=True, slots=True)
class ReadinessResult:
    """Outcome of a successful readiness wait."""

    waited: float
    """Accumulated wait in seconds up to the poll that saw the marker."""

    polls: int
    """Number of log reads performed."""


def max_polls(poll_interval: float, max_wait: float) -> int:
    """Number of whole poll intervals that fit in the wait budget."""
    return math.floor(max_wait / poll_interval + _POLL_COUNT_TOLERANCE)


def contains_marker(contents: str, marker: str) -> bool:
    """
    Check whether any complete line of `contents` contains `marker`.

    A trailing line without a newline may still be mid-write and is ignored
    until the node finishes it.
    """
    complete = contents[: contents.rfind("\n") + 1]
    return any(marker in line for line in complete.splitlines())


async def wait_for_marker(
    read_log: Callable[[], str],
    marker: str,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_wait: float = DEFAULT_MAX_WAIT,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    node_index: int | None = None,
) -> ReadinessResult:
    """
    Block until `marker` appears in the log or the wait budget runs out.

    Each tick re-reads the log from its beginning. Only newline-terminated
    lines count, so a readiness line caught half-written is picked up on the
    next tick instead.

    Args:
        read_log: Returns the full current log text.
        marker: Substring to look for on any line.
        poll_interval: Seconds to sleep before each read.
        max_wait: Total seconds of sleeping allowed.
        sleep: Awaitable sleep, replaceable in tests.
        node_index: Node being waited on, for error context.

    Returns:
        How long it took and how many reads were needed.

    Raises:
        ReadinessTimeout: If the marker is still absent after `max_wait`.
    """
    budget = max_polls(poll_interval, max_wait)

    for polls in range(1, budget + 1):
        await sleep(poll_interval)
        waited = polls * poll_interval

        if contains_marker(read_log(), marker):
            return ReadinessResult(waited=waited, polls=polls)

        logger.debug(
            "Node %s: no %r after %.1fs (poll %d/%d)", node_index, marker, waited, polls, budget
        )

    # Read once more so the error carries everything the node managed to write.
    raise ReadinessTimeout(marker, budget * poll_interval, read_log(), node_index=node_index)


async def wait_for_text_in_file(
    sink: LogSink,
    marker: str,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_wait: float = DEFAULT_MAX_WAIT,
    node_index: int | None = None,
) -> ReadinessResult:
    """Wait for `marker` in a node's log file. See wait_for_marker."""
    return await wait_for_marker(
        sink.read_text,
        marker,
        poll_interval=poll_interval,
        max_wait=max_wait,
        node_index=node_index,
    )
