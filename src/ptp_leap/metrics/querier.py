"""Prometheus HTTP API wrapper for the cluster monitoring stack."""

from __future__ import annotations

from dataclasses import dataclass

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ptp_leap.config import PrometheusConfig
from ptp_leap.errors import MetricsError


@dataclass
class Sample:
    """One instant-vector sample."""

    labels: dict[str, str]
    value: float


class PrometheusAPI:
    """Wrapper for the Prometheus instant query API."""

    def __init__(
        self,
        url: str,
        token: str = "",
        *,
        verify_tls: bool = True,
        ca_bundle: str = "",
        timeout: int = 30,
        retries: int = 2,
    ):
        self.base_url = url.rstrip("/")
        self.headers = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.ca_bundle = ca_bundle.strip()

        self.session = requests.Session()
        retry = Retry(
            total=retries,
            connect=retries,
            read=retries,
            backoff_factor=0.3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=frozenset(["GET", "POST"]),
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        # Cluster routes usually carry the ingress self-signed cert.
        if not self.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def verify(self) -> bool | str:
        """Return requests-compatible TLS verify value."""
        if self.verify_tls and self.ca_bundle:
            return self.ca_bundle
        return self.verify_tls

    def _get(self, path: str, params: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(
                url,
                headers=self.headers,
                params=params,
                verify=self.verify,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise MetricsError(f"GET {url} failed: {e}") from e

    def query(self, promql: str) -> list[Sample]:
        """Run an instant query and return its vector samples."""
        payload = self._get("/api/v1/query", params={"query": promql})
        return parse_vector(payload)


def parse_vector(payload: dict) -> list[Sample]:
    """Normalize a ``/api/v1/query`` response into samples."""
    if payload.get("status") != "success":
        raise MetricsError(
            f"query failed: {payload.get('errorType', 'unknown')}: {payload.get('error', '')}"
        )

    data = payload.get("data", {})
    if data.get("resultType") != "vector":
        raise MetricsError(f"unexpected result type {data.get('resultType')!r}")

    samples = []
    for item in data.get("result", []):
        _, raw = item.get("value", [0, "NaN"])
        samples.append(Sample(labels=dict(item.get("metric", {})), value=float(raw)))
    return samples


def create_prometheus_api_for_cluster(cluster, prom_cfg: PrometheusConfig) -> PrometheusAPI:
    """Build a PrometheusAPI for the cluster's Thanos querier.

    Configured URL and token win; otherwise the querier route and a
    monitoring service-account token are looked up through ``cluster``.
    """
    url = prom_cfg.url
    if not url:
        host = cluster.get_route_host(prom_cfg.querier_route, prom_cfg.monitoring_namespace)
        url = f"https://{host}"

    token = prom_cfg.token
    if not token:
        token = cluster.create_service_account_token(
            prom_cfg.service_account, prom_cfg.monitoring_namespace
        )

    return PrometheusAPI(
        url,
        token,
        verify_tls=prom_cfg.verify_tls,
        ca_bundle=prom_cfg.ca_bundle,
        timeout=prom_cfg.timeout,
        retries=prom_cfg.retries,
    )
