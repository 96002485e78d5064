from __future__ import annotations

import pytest
import requests

from ptp_leap.config import PrometheusConfig
from ptp_leap.errors import MetricsError
from ptp_leap.metrics.querier import PrometheusAPI, create_prometheus_api_for_cluster, parse_vector


class _Resp:
    def __init__(self, payload: dict, status: int = 200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class _ClusterStub:
    def __init__(self):
        self.calls = []

    def get_route_host(self, name, namespace):
        self.calls.append(("route", name, namespace))
        return "thanos-querier.apps.example.com"

    def create_service_account_token(self, name, namespace):
        self.calls.append(("token", name, namespace))
        return "sa-token"


VECTOR = {
    "status": "success",
    "data": {
        "resultType": "vector",
        "result": [
            {"metric": {"node": "worker-0", "process": "phc2sys"}, "value": [1700000000.1, "1"]},
            {"metric": {"node": "worker-0", "process": "ptp4l"}, "value": [1700000000.1, "2"]},
        ],
    },
}


def test_parse_vector_reads_labels_and_values():
    samples = parse_vector(VECTOR)
    assert [s.value for s in samples] == [1.0, 2.0]
    assert samples[0].labels["process"] == "phc2sys"


def test_parse_vector_rejects_error_payload():
    with pytest.raises(MetricsError, match="bad_data"):
        parse_vector({"status": "error", "errorType": "bad_data", "error": "parse error"})


def test_query_sends_bearer_token_and_promql(monkeypatch):
    api = PrometheusAPI("https://prom.example.com/", "tok", verify_tls=False)
    seen = {}

    def _fake_get(url, headers=None, params=None, verify=None, timeout=None):
        seen.update(url=url, headers=headers, params=params, verify=verify)
        return _Resp(VECTOR)

    monkeypatch.setattr(api.session, "get", _fake_get)
    samples = api.query("openshift_ptp_clock_state")

    assert len(samples) == 2
    assert seen["url"] == "https://prom.example.com/api/v1/query"
    assert seen["headers"]["Authorization"] == "Bearer tok"
    assert seen["params"] == {"query": "openshift_ptp_clock_state"}
    assert seen["verify"] is False


def test_query_wraps_http_errors(monkeypatch):
    api = PrometheusAPI("https://prom.example.com", "tok")
    monkeypatch.setattr(api.session, "get", lambda *a, **kw: _Resp({}, status=503))

    with pytest.raises(MetricsError):
        api.query("up")


def test_ca_bundle_used_only_when_verifying():
    assert PrometheusAPI("https://p", verify_tls=True, ca_bundle="/ca.pem").verify == "/ca.pem"
    assert PrometheusAPI("https://p", verify_tls=False, ca_bundle="/ca.pem").verify is False


def test_cluster_api_discovers_route_and_token():
    cluster = _ClusterStub()
    api = create_prometheus_api_for_cluster(cluster, PrometheusConfig(url="", token=""))

    assert api.base_url == "https://thanos-querier.apps.example.com"
    assert api.headers["Authorization"] == "Bearer sa-token"
    assert ("route", "thanos-querier", "openshift-monitoring") in cluster.calls
    assert ("token", "prometheus-k8s", "openshift-monitoring") in cluster.calls


def test_cluster_api_prefers_configured_url_and_token():
    cluster = _ClusterStub()
    api = create_prometheus_api_for_cluster(
        cluster, PrometheusConfig(url="https://prom.local", token="static")
    )

    assert api.base_url == "https://prom.local"
    assert api.headers["Authorization"] == "Bearer static"
    assert cluster.calls == []
