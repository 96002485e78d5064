from __future__ import annotations

from ptp_leap.config import AppConfig


def test_leap_defaults(monkeypatch):
    for name in ("PTP_OPERATOR_NAMESPACE", "PTP_LEAP_CONFIGMAP", "LEAP_UPDATE_INTERVAL", "LEAP_UPDATE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    cfg = AppConfig()
    assert cfg.cluster.ptp_namespace == "openshift-ptp"
    assert cfg.cluster.leap_configmap == "leap-configmap"
    assert cfg.leap.update_interval == 5
    assert cfg.leap.update_timeout == 600
    assert cfg.report.path.endswith("steps.jsonl")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PROMETHEUS_VERIFY_TLS", "yes")
    monkeypatch.setenv("CLOCK_TIMEOUT", "42")
    cfg = AppConfig()
    assert cfg.prometheus.verify_tls is True
    assert cfg.leap.clock_timeout == 42.0
