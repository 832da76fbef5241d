from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fleetbot.adapters.kubernetes import (
    RESTARTED_AT_ANNOTATION,
    PodRestarter,
    StatefulSetRestarter,
    StatefulSetScaler,
)


class FakeAppsApi:
    def __init__(self) -> None:
        self.scale_patches: list[tuple] = []
        self.set_patches: list[tuple] = []

    def patch_namespaced_stateful_set_scale(self, name, namespace, body, **kwargs) -> None:
        self.scale_patches.append((name, namespace, body, kwargs))

    def patch_namespaced_stateful_set(self, name, namespace, body, **kwargs) -> None:
        self.set_patches.append((name, namespace, body, kwargs))


class FakeCoreApi:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.deletions: list[tuple[str, str]] = []

    def delete_collection_namespaced_pod(self, namespace, label_selector=None, **kwargs) -> None:
        if self.fail:
            raise RuntimeError("forbidden")
        self.deletions.append((namespace, label_selector))


def test_scaler_winds_down_and_wakes_up() -> None:
    apps = FakeAppsApi()
    scaler = StatefulSetScaler(namespace="games", name="minecraft", apps=apps, wakeup_replicas=2)

    scaler.scale_down()
    scaler.scale_up()

    assert [patch[2] for patch in apps.scale_patches] == [{"spec": {"replicas": 0}}, {"spec": {"replicas": 2}}]
    assert apps.scale_patches[0][:2] == ("minecraft", "games")
    assert apps.scale_patches[0][3] == {"field_manager": "fleetbot"}


def test_statefulset_restart_stamps_pod_template() -> None:
    apps = FakeAppsApi()
    moment = datetime(2024, 5, 1, 20, 0, 0, tzinfo=timezone.utc)
    restarter = StatefulSetRestarter(namespace="games", name="minecraft", apps=apps, clock=lambda: moment)

    restarter.restart()

    name, namespace, body, _ = apps.set_patches[0]
    assert (name, namespace) == ("minecraft", "games")
    assert body["spec"]["template"]["metadata"]["annotations"] == {RESTARTED_AT_ANNOTATION: "2024-05-01T20:00:00Z"}


def test_pod_restarter_deletes_by_label() -> None:
    core = FakeCoreApi()
    restarter = PodRestarter(namespace="games", label_key="app", label_value="valheim", core=core)

    restarter.restart()

    assert restarter.label_selector == "app=valheim"
    assert core.deletions == [("games", "app=valheim")]


def test_pod_restarter_propagates_api_errors() -> None:
    restarter = PodRestarter(namespace="games", label_key="app", label_value="valheim", core=FakeCoreApi(fail=True))

    with pytest.raises(RuntimeError, match="forbidden"):
        restarter.restart()
