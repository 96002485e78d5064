"""Kubernetes API wrapper for the PTP operator resources the suite touches."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Sequence

from kubernetes import client, config as k8s_config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ptp_leap.config import ClusterConfig
from ptp_leap.errors import ClusterError, WaitTimeoutError

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 3.0


@dataclass
class LeapConfigMap:
    """Snapshot of a ConfigMap's per-node data."""

    name: str
    namespace: str
    data: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""


def _reason(exc: Exception) -> str:
    return str(getattr(exc, "reason", None) or exc)


def _pod_is_healthy(pod) -> bool:
    if pod.metadata.deletion_timestamp:
        return False
    phase = pod.status.phase if pod.status else None
    if phase == "Succeeded":
        return True
    if phase != "Running":
        return False
    statuses = pod.status.container_statuses or []
    return bool(statuses) and all(cs.ready for cs in statuses)


class ClusterClient:
    """Thin wrapper over the CoreV1 and CustomObjects APIs."""

    def __init__(
        self,
        api_client: client.ApiClient,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_client = api_client
        self.core = client.CoreV1Api(api_client)
        self.custom = client.CustomObjectsApi(api_client)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, cluster_cfg: ClusterConfig) -> "ClusterClient":
        """Build a client from in-cluster config, falling back to kubeconfig."""
        try:
            k8s_config.load_incluster_config()
        except k8s_config.ConfigException:
            k8s_config.load_kube_config(config_file=cluster_cfg.kubeconfig or None)
        return cls(client.ApiClient())

    # ─── ConfigMaps ───

    def pull_configmap(self, name: str, namespace: str) -> LeapConfigMap:
        """Read a ConfigMap and return its data."""
        try:
            obj = self.core.read_namespaced_config_map(name, namespace)
        except (ApiException, HTTPError) as e:
            raise ClusterError(f"failed to pull configmap {namespace}/{name}: {_reason(e)}") from e
        return LeapConfigMap(
            name=name,
            namespace=namespace,
            data=dict(obj.data or {}),
            resource_version=obj.metadata.resource_version or "",
        )

    def update_configmap(
        self,
        cm: LeapConfigMap,
        data: dict[str, str],
        replace: bool = False,
    ) -> LeapConfigMap:
        """Write ``data`` into the ConfigMap.

        With ``replace=False`` keys are merged into the existing data;
        otherwise the whole data mapping is replaced (``{}`` clears it).
        """
        new_data = dict(data) if replace else {**cm.data, **data}
        body = client.V1ConfigMap(
            metadata=client.V1ObjectMeta(name=cm.name, namespace=cm.namespace),
            data=new_data,
        )
        try:
            obj = self.core.replace_namespaced_config_map(cm.name, cm.namespace, body)
        except (ApiException, HTTPError) as e:
            raise ClusterError(
                f"failed to update configmap {cm.namespace}/{cm.name}: {_reason(e)}"
            ) from e
        return LeapConfigMap(
            name=cm.name,
            namespace=cm.namespace,
            data=dict(obj.data or {}),
            resource_version=obj.metadata.resource_version or "",
        )

    # ─── Pods ───

    def _list_pod_objects(self, namespace: str, label_selector: str | None = None) -> list:
        try:
            kwargs = {"label_selector": label_selector} if label_selector else {}
            return self.core.list_namespaced_pod(namespace, **kwargs).items
        except (ApiException, HTTPError) as e:
            raise ClusterError(f"failed to list pods in {namespace}: {_reason(e)}") from e

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[str]:
        """Return pod names in a namespace."""
        return [p.metadata.name for p in self._list_pod_objects(namespace, label_selector)]

    def get_ptp_node_names(self, namespace: str, label_selector: str) -> list[str]:
        """Return the nodes running a linuxptp daemon pod, sorted and unique."""
        pods = self._list_pod_objects(namespace, label_selector)
        return sorted({p.spec.node_name for p in pods if p.spec and p.spec.node_name})

    def delete_pod(self, name: str, namespace: str) -> None:
        try:
            self.core.delete_namespaced_pod(name, namespace)
        except (ApiException, HTTPError) as e:
            raise ClusterError(f"failed to delete pod {namespace}/{name}: {_reason(e)}") from e

    def delete_pod_and_wait(self, name: str, namespace: str, timeout: float) -> None:
        """Delete a pod and block until the API no longer returns it."""
        self.delete_pod(name, namespace)
        deadline = self._clock() + timeout
        while True:
            try:
                self.core.read_namespaced_pod(name, namespace)
            except ApiException as e:
                if e.status == 404:
                    return
                logger.debug("pod %s/%s lookup failed: %s", namespace, name, e.reason)
            except HTTPError as e:
                logger.debug("pod %s/%s lookup failed: %s", namespace, name, _reason(e))
            if self._clock() >= deadline:
                raise WaitTimeoutError(f"pod {namespace}/{name} still present after {timeout}s")
            self._sleep(_POLL_INTERVAL)

    def wait_for_pods_healthy(self, namespaces: Sequence[str], timeout: float) -> None:
        """Wait until every pod in ``namespaces`` is running and ready."""
        deadline = self._clock() + timeout
        while True:
            unhealthy: list[str] = []
            try:
                for ns in namespaces:
                    for pod in self._list_pod_objects(ns):
                        if not _pod_is_healthy(pod):
                            unhealthy.append(f"{ns}/{pod.metadata.name}")
            except ClusterError as e:
                unhealthy.append(str(e))

            if not unhealthy:
                return
            if self._clock() >= deadline:
                raise WaitTimeoutError(
                    f"pods not healthy after {timeout}s: {', '.join(unhealthy)}"
                )
            logger.debug("waiting on %d unhealthy pods", len(unhealthy))
            self._sleep(_POLL_INTERVAL)

    # ─── Routes and tokens ───

    def get_route_host(self, name: str, namespace: str) -> str:
        """Return ``spec.host`` of an OpenShift route."""
        try:
            route = self.custom.get_namespaced_custom_object(
                "route.openshift.io", "v1", namespace, "routes", name
            )
        except (ApiException, HTTPError) as e:
            raise ClusterError(f"failed to get route {namespace}/{name}: {_reason(e)}") from e
        host = (route.get("spec") or {}).get("host", "")
        if not host:
            raise ClusterError(f"route {namespace}/{name} has no host")
        return host

    def create_service_account_token(
        self, name: str, namespace: str, expiration_seconds: int = 3600
    ) -> str:
        """Request a bound token for a service account."""
        body = client.AuthenticationV1TokenRequest(
            spec=client.V1TokenRequestSpec(
                audiences=[],
                expiration_seconds=expiration_seconds,
            )
        )
        try:
            resp = self.core.create_namespaced_service_account_token(name, namespace, body)
        except (ApiException, HTTPError) as e:
            raise ClusterError(
                f"failed to create token for serviceaccount {namespace}/{name}: {_reason(e)}"
            ) from e
        return resp.status.token
