"""Cluster-side executors: scaling stateful sets and restarting pods."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from kubernetes import client, config

RESTARTED_AT_ANNOTATION = "restarter.fleetbot.io/restartedAt"

_logger = logging.getLogger("fleetbot.kubernetes")


def load_api_client(*, in_cluster: bool = True) -> client.ApiClient:
    """Build an API client from the pod's service account or the local kubeconfig."""
    if in_cluster:
        config.load_incluster_config()
    else:
        config.load_kube_config()
    return client.ApiClient()


def apps_api(*, in_cluster: bool = True) -> client.AppsV1Api:
    return client.AppsV1Api(load_api_client(in_cluster=in_cluster))


def core_api(*, in_cluster: bool = True) -> client.CoreV1Api:
    return client.CoreV1Api(load_api_client(in_cluster=in_cluster))


@dataclass(slots=True)
class StatefulSetScaler:
    """Winds a stateful set down to zero replicas and wakes it back up."""

    namespace: str
    name: str
    apps: Any
    wakeup_replicas: int = 1
    field_manager: str = "fleetbot"

    def scale_to(self, replicas: int) -> None:
        self.apps.patch_namespaced_stateful_set_scale(
            self.name,
            self.namespace,
            {"spec": {"replicas": replicas}},
            field_manager=self.field_manager,
        )
        _logger.info(
            "statefulset_scaled",
            extra={"namespace": self.namespace, "statefulset": self.name, "replicas": replicas},
        )

    def scale_down(self) -> None:
        self.scale_to(0)

    def scale_up(self) -> None:
        self.scale_to(self.wakeup_replicas)


@dataclass(slots=True)
class StatefulSetRestarter:
    """Triggers a rolling restart by stamping the pod template with the current time."""

    namespace: str
    name: str
    apps: Any
    field_manager: str = "fleetbot"
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    def restart(self) -> None:
        stamp = self.clock().strftime("%Y-%m-%dT%H:%M:%SZ")
        patch = {"spec": {"template": {"metadata": {"annotations": {RESTARTED_AT_ANNOTATION: stamp}}}}}
        self.apps.patch_namespaced_stateful_set(
            self.name,
            self.namespace,
            patch,
            field_manager=self.field_manager,
        )
        _logger.info("statefulset_restarted", extra={"namespace": self.namespace, "statefulset": self.name})


@dataclass(slots=True)
class PodRestarter:
    """Restarts a workload by deleting its pods and letting the controller recreate them."""

    namespace: str
    label_key: str
    label_value: str
    core: Any

    @property
    def label_selector(self) -> str:
        return f"{self.label_key}={self.label_value}"

    def delete_pods_matching(self, label_selector: str) -> None:
        self.core.delete_collection_namespaced_pod(self.namespace, label_selector=label_selector)
        _logger.info("pods_deleted", extra={"namespace": self.namespace, "selector": label_selector})

    def restart(self) -> None:
        self.delete_pods_matching(self.label_selector)
