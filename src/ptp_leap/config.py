"""Centralized configuration for the PTP leap file suite.

All settings are loaded from environment variables (or .env file).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")


def _env_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ClusterConfig:
    """Spoke cluster access and PTP operator resources."""

    kubeconfig: str = field(default_factory=lambda: os.getenv("KUBECONFIG", ""))
    ptp_namespace: str = field(
        default_factory=lambda: os.getenv("PTP_OPERATOR_NAMESPACE", "openshift-ptp")
    )
    leap_configmap: str = field(
        default_factory=lambda: os.getenv("PTP_LEAP_CONFIGMAP", "leap-configmap")
    )
    daemon_selector: str = field(
        default_factory=lambda: os.getenv("PTP_DAEMON_SELECTOR", "app=linuxptp-daemon")
    )


@dataclass
class PrometheusConfig:
    """Cluster monitoring (Thanos querier) configuration."""

    url: str = field(default_factory=lambda: os.getenv("PROMETHEUS_URL", ""))
    token: str = field(default_factory=lambda: os.getenv("PROMETHEUS_TOKEN", ""))
    verify_tls: bool = field(default_factory=lambda: _env_bool("PROMETHEUS_VERIFY_TLS", False))
    ca_bundle: str = field(default_factory=lambda: os.getenv("PROMETHEUS_CA_BUNDLE", ""))
    timeout: int = field(default_factory=lambda: int(os.getenv("PROMETHEUS_TIMEOUT", "30")))
    retries: int = field(default_factory=lambda: int(os.getenv("PROMETHEUS_RETRIES", "2")))

    monitoring_namespace: str = field(
        default_factory=lambda: os.getenv("MONITORING_NAMESPACE", "openshift-monitoring")
    )
    querier_route: str = field(
        default_factory=lambda: os.getenv("PROMETHEUS_ROUTE", "thanos-querier")
    )
    service_account: str = field(
        default_factory=lambda: os.getenv("PROMETHEUS_SERVICE_ACCOUNT", "prometheus-k8s")
    )


@dataclass
class LeapTestConfig:
    """Timing knobs for the leap file scenario, in seconds."""

    update_interval: float = field(
        default_factory=lambda: float(os.getenv("LEAP_UPDATE_INTERVAL", "5"))
    )
    update_timeout: float = field(
        default_factory=lambda: float(os.getenv("LEAP_UPDATE_TIMEOUT", "600"))
    )
    pod_timeout: float = field(default_factory=lambda: float(os.getenv("PTP_POD_TIMEOUT", "300")))
    clock_stable_duration: float = field(
        default_factory=lambda: float(os.getenv("CLOCK_STABLE_DURATION", "10"))
    )
    clock_timeout: float = field(default_factory=lambda: float(os.getenv("CLOCK_TIMEOUT", "300")))
    clock_poll_interval: float = field(
        default_factory=lambda: float(os.getenv("CLOCK_POLL_INTERVAL", "5"))
    )


@dataclass
class ReportConfig:
    """Step report configuration."""

    enabled: bool = field(default_factory=lambda: _env_bool("STEP_REPORT_ENABLED", True))
    path: str = field(
        default_factory=lambda: os.getenv(
            "STEP_REPORT_PATH",
            str(_PROJECT_ROOT / "data" / "reports" / "steps.jsonl"),
        )
    )


@dataclass
class AppConfig:
    """Top-level configuration."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    prometheus: PrometheusConfig = field(default_factory=PrometheusConfig)
    leap: LeapTestConfig = field(default_factory=LeapTestConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


# Singleton config instance
config = AppConfig()
