"""PTP leap file scenario.

Removes the last leap announcement from every node's entry in the leap
ConfigMap, restarts the linuxptp daemon and checks that the daemon writes
back an announcement dated today.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from ptp_leap.config import AppConfig, config as default_config
from ptp_leap.leap.parsers import (
    find_leap_announcements,
    get_last_announcement,
    remove_last_leap_announcement,
)
from ptp_leap.leap.waiter import today_marker, wait_until_updated
from ptp_leap.metrics.assertions import ClockState, ClockStateQuery, assert_query
from ptp_leap.metrics.querier import create_prometheus_api_for_cluster
from ptp_leap.report import StepReporter

logger = logging.getLogger(__name__)

TEST_ID = "75325"
LABEL_LEAP_FILE = "leapfile"


class LeapFileScenario:
    """Setup, run and teardown for the leap file test case.

    ``cluster`` is a ClusterClient (or anything with the same methods).
    ``metrics_factory`` builds a fresh metrics client; it is called again
    after the daemon restarts.
    """

    def __init__(
        self,
        cluster,
        *,
        metrics_factory: Callable[[], object] | None = None,
        cfg: AppConfig | None = None,
        reporter: StepReporter | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cluster = cluster
        self.cfg = cfg or default_config
        self.metrics_factory = metrics_factory or (
            lambda: create_prometheus_api_for_cluster(self.cluster, self.cfg.prometheus)
        )
        self.reporter = reporter or StepReporter(
            path=Path(self.cfg.report.path),
            enabled=self.cfg.report.enabled,
            test_id=TEST_ID,
            labels=[LABEL_LEAP_FILE],
        )
        self._clock = clock
        self._sleep = sleep
        self.metrics = None

    @property
    def namespace(self) -> str:
        return self.cfg.cluster.ptp_namespace

    def _pull_leap_configmap(self):
        return self.cluster.pull_configmap(self.cfg.cluster.leap_configmap, self.namespace)

    def ensure_clocks_locked(self) -> None:
        timing = self.cfg.leap
        assert_query(
            self.metrics,
            ClockStateQuery(),
            ClockState.LOCKED,
            stable_duration=timing.clock_stable_duration,
            timeout=timing.clock_timeout,
            poll_interval=timing.clock_poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )

    def setup(self) -> None:
        self.reporter.by("creating a Prometheus API client")
        self.metrics = self.metrics_factory()

        self.reporter.by("ensuring clocks are locked before testing")
        self.ensure_clocks_locked()

    def teardown(self) -> None:
        self.reporter.by("restoring the original leap configmap")
        leap_cm = self._pull_leap_configmap()
        self.cluster.update_configmap(leap_cm, {}, replace=True)

        for pod in self.cluster.list_pods(self.namespace):
            self.cluster.delete_pod_and_wait(pod, self.namespace, self.cfg.leap.pod_timeout)

        self.metrics = self.metrics_factory()

        self.reporter.by("ensuring clocks are locked after testing")
        self.ensure_clocks_locked()

    def run(self) -> dict[str, tuple[str, str]]:
        """Execute the test body.

        Returns:
            Per node, the (before, after) announcement pair that was compared.
        """
        self.reporter.by("pulling leap configmap")
        leap_cm = self._pull_leap_configmap()
        nodes = self.cluster.get_ptp_node_names(self.namespace, self.cfg.cluster.daemon_selector)

        stripped: dict[str, str] = {}
        for node in nodes:
            original = leap_cm.data.get(node, "")
            stripped[node] = remove_last_leap_announcement(original)
            self.reporter.by(
                f"removing the last leap announcement from the leap configmap for node {node}",
                metadata={
                    "announcements_before": len(find_leap_announcements(original)),
                    "announcements_after": len(find_leap_announcements(stripped[node])),
                },
            )
            leap_cm = self.cluster.update_configmap(leap_cm, {node: stripped[node]})

        self.reporter.by("deleting all linuxptp-daemon pods")
        for pod in self.cluster.list_pods(self.namespace):
            self.cluster.delete_pod(pod, self.namespace)

        self.metrics = self.metrics_factory()

        self.reporter.by("waiting for all linuxptp-daemon pods on nodes to be healthy")
        self.cluster.wait_for_pods_healthy([self.namespace], self.cfg.leap.pod_timeout)

        self.reporter.by("waiting for configmap to be updated with today's date leap announcement")
        updated = wait_until_updated(
            lambda: self._pull_leap_configmap().data,
            today_marker,
            self.cfg.leap.update_interval,
            self.cfg.leap.update_timeout,
            clock=self._clock,
            sleep=self._sleep,
        )

        self.reporter.by("ensuring new last announcement is different from the original last announcement")
        compared: dict[str, tuple[str, str]] = {}
        for node in nodes:
            before = get_last_announcement(stripped[node])
            after = get_last_announcement(updated.get(node, ""))
            if after == before:
                raise AssertionError(
                    f"last announcement for node {node} should be different, still {before!r}"
                )
            compared[node] = (before, after)
        return compared

    def execute(self) -> dict[str, tuple[str, str]]:
        """Run setup and body; teardown always runs, even when setup fails.

        A teardown failure is logged rather than raised when setup or the
        body already failed, so the first error is the one reported.
        """
        try:
            self.setup()
            result = self.run()
        except BaseException:
            try:
                self.teardown()
            except Exception:
                logger.exception("teardown failed after an earlier error")
            raise
        self.teardown()
        return result
