"""Metric queries and "reaches state within" assertions for PTP clocks."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from ptp_leap.errors import MetricAssertionError, MetricsError

logger = logging.getLogger(__name__)

CLOCK_STATE_METRIC = "openshift_ptp_clock_state"


class ClockState(IntEnum):
    """Values reported by the clock state gauge."""

    FREERUN = 0
    LOCKED = 1
    HOLDOVER = 2


@dataclass(frozen=True)
class ClockStateQuery:
    """PromQL selector for the clock state gauge, optionally narrowed by label."""

    node: str | None = None
    process: str | None = None
    iface: str | None = None

    def promql(self) -> str:
        matchers = [
            f'{label}="{value}"'
            for label, value in (("node", self.node), ("process", self.process), ("iface", self.iface))
            if value
        ]
        if not matchers:
            return CLOCK_STATE_METRIC
        return CLOCK_STATE_METRIC + "{" + ",".join(matchers) + "}"


def assert_query(
    api,
    query: ClockStateQuery,
    expected: float,
    *,
    stable_duration: float = 10.0,
    timeout: float = 300.0,
    poll_interval: float = 5.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Wait until every sample of ``query`` equals ``expected`` for ``stable_duration``.

    Empty results and mismatching samples reset the stability window. Query
    errors are treated as transient.

    Raises:
        MetricAssertionError: when the state is not held stably before ``timeout``.
    """
    promql = query.promql()
    deadline = clock() + timeout
    stable_since: float | None = None
    last_seen = "no samples"

    while True:
        now = clock()
        try:
            samples = api.query(promql)
        except MetricsError as e:
            logger.debug("query %s failed: %s", promql, e)
            samples = []
            last_seen = str(e)
        else:
            last_seen = ", ".join(f"{s.labels}={s.value:g}" for s in samples) or "no samples"

        if samples and all(s.value == float(expected) for s in samples):
            if stable_since is None:
                stable_since = now
            if now - stable_since >= stable_duration:
                return
        else:
            stable_since = None

        if clock() >= deadline:
            raise MetricAssertionError(
                f"{promql} did not hold {float(expected):g} for {stable_duration}s "
                f"within {timeout}s; last: {last_seen}"
            )
        sleep(poll_interval)
