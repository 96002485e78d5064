"""Leap file scenario CLI.

Usage:
    python -m ptp_leap                          # Run against $KUBECONFIG
    python -m ptp_leap --kubeconfig spoke.yaml  # Explicit kubeconfig
    python -m ptp_leap --skip-teardown          # Leave the configmap as modified
"""

from __future__ import annotations

import argparse
import sys

from ptp_leap.config import config
from ptp_leap.errors import (
    AnnouncementNotFoundError,
    ClusterError,
    MetricsError,
    WaitTimeoutError,
)
from ptp_leap.report import configure_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="PTP leap file end-to-end check")
    parser.add_argument(
        "--kubeconfig",
        default=config.cluster.kubeconfig,
        help="Path to the spoke cluster kubeconfig (default: $KUBECONFIG)",
    )
    parser.add_argument(
        "--namespace",
        default=config.cluster.ptp_namespace,
        help=f"PTP operator namespace (default: {config.cluster.ptp_namespace})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.leap.update_timeout,
        help="Seconds to wait for the daemon to rewrite the leap configmap",
    )
    parser.add_argument(
        "--skip-teardown",
        action="store_true",
        help="Do not restore the leap configmap after the run",
    )
    parser.add_argument("--log-level", default=config.log_level, help="Logging level")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    from ptp_leap.cluster.client import ClusterClient
    from ptp_leap.scenario import LeapFileScenario

    config.cluster.kubeconfig = args.kubeconfig
    config.cluster.ptp_namespace = args.namespace
    config.leap.update_timeout = args.timeout

    print("🕒 PTP Leap File")
    print(f"   Namespace: {args.namespace}")
    print(f"   ConfigMap: {config.cluster.leap_configmap}")
    print()

    try:
        cluster = ClusterClient.from_config(config.cluster)
        scenario = LeapFileScenario(cluster, cfg=config)
        if args.skip_teardown:
            scenario.setup()
            compared = scenario.run()
        else:
            compared = scenario.execute()
    except (
        AnnouncementNotFoundError,
        AssertionError,
        ClusterError,
        MetricsError,
        WaitTimeoutError,
    ) as e:
        print(f"❌ FAILED: {e}")
        return 1

    for node, (before, after) in sorted(compared.items()):
        print(f"  {node}: {before or '<empty>'} → {after}")
    print("✅ PASSED")
    return 0


if __name__ == "__main__":
    sys.exit(main())
