"""Unit tests for the resource kind registry and per-kind summaries."""

from __future__ import annotations

from typing import Any

import pytest

from kubemonitor.collector.resources import (
    RESOURCE_KINDS,
    UNKNOWN_DETAILS,
    UnknownResourceTypeError,
    describe,
    get_resource_kind,
)


def _obj(kind: str, **sections: Any) -> dict[str, Any]:
    return {"kind": kind, "metadata": {"name": "x", "namespace": "ns", "resourceVersion": "1"}, **sections}


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("resource_type", "obj", "expected"),
    [
        (
            "pods",
            _obj("Pod", status={"phase": "Running", "conditions": [{"type": "Ready", "status": "True"}]}),
            "Phase: Running, Ready: true",
        ),
        ("deployments", _obj("Deployment", status={"replicas": 3, "readyReplicas": 1}), "Replicas: 1/3, Available: 0"),
        ("replicasets", _obj("ReplicaSet", status={"replicas": 2, "readyReplicas": 2}), "Replicas: 2/2"),
        ("daemonsets", _obj("DaemonSet", status={"desiredNumberScheduled": 4, "numberReady": 3}), "Desired: 4, Ready: 3"),
        ("statefulsets", _obj("StatefulSet", status={"replicas": 1}), "Replicas: 0/1"),
        ("services", _obj("Service", spec={"type": "ClusterIP", "ports": [{"port": 80}]}), "Type: ClusterIP, Ports: 1"),
        ("configmaps", _obj("ConfigMap", data={"a": "1", "b": "2"}), "Data keys: 2"),
        ("secrets", _obj("Secret", type="Opaque", data={"k": "dg=="}), "Type: Opaque, Data keys: 1"),
        ("jobs", _obj("Job", status={"active": 1, "failed": 2}), "Active: 1, Succeeded: 0, Failed: 2"),
        ("cronjobs", _obj("CronJob", spec={"schedule": "*/5 * * * *", "suspend": True}), "Schedule: */5 * * * *, Suspend: true"),
        (
            "persistentvolumes",
            _obj("PersistentVolume", spec={"capacity": {"storage": "10Gi"}}, status={"phase": "Bound"}),
            "Phase: Bound, Capacity: 10Gi",
        ),
        (
            "persistentvolumeclaims",
            _obj(
                "PersistentVolumeClaim",
                spec={"resources": {"requests": {"storage": "1Gi"}}},
                status={"phase": "Pending"},
            ),
            "Phase: Pending, Storage: 1Gi",
        ),
        ("ingresses", _obj("Ingress", spec={"rules": [{}, {}]}), "Rules: 2"),
        (
            "networkpolicies",
            _obj("NetworkPolicy", spec={"podSelector": {"matchLabels": {"app": "web"}}}),
            'Pod selector: {"matchLabels":{"app":"web"}}',
        ),
    ],
)
def test_kind_specific_details(resource_type: str, obj: dict[str, Any], expected: str) -> None:
    identity = describe(resource_type, obj)
    assert identity is not None
    assert identity.details == expected


def test_pod_not_ready_without_conditions() -> None:
    identity = describe("pods", _obj("Pod", status={"phase": "Pending"}))
    assert identity is not None
    assert identity.details == "Phase: Pending, Ready: false"


def test_cronjob_without_suspend_field() -> None:
    identity = describe("cronjobs", _obj("CronJob", spec={"schedule": "@daily"}))
    assert identity is not None
    assert identity.details == "Schedule: @daily, Suspend: false"


# ---------------------------------------------------------------------------
# Dispatch and identity
# ---------------------------------------------------------------------------


class TestDescribe:
    def test_missing_kind_dispatches_on_resource_type(self) -> None:
        """List items usually carry no ``kind`` field."""
        obj = {"metadata": {"name": "web", "namespace": "ns", "resourceVersion": "9"}, "data": {"a": "b"}}
        identity = describe("configmaps", obj)
        assert identity is not None
        assert identity.details == "Data keys: 1"
        assert (identity.namespace, identity.name, identity.resource_version) == ("ns", "web", "9")

    def test_cluster_scoped_object_has_empty_namespace(self) -> None:
        obj = {"kind": "PersistentVolume", "metadata": {"name": "pv-1", "resourceVersion": "3"}}
        identity = describe("persistentvolumes", obj)
        assert identity is not None
        assert identity.namespace == ""

    def test_unrecognised_kind_falls_back(self) -> None:
        identity = describe("pods", _obj("Widget"))
        assert identity is not None
        assert identity.details == UNKNOWN_DETAILS

    def test_missing_version_is_empty(self) -> None:
        identity = describe("pods", {"kind": "Pod", "metadata": {"name": "a", "namespace": "ns"}})
        assert identity is not None
        assert identity.resource_version == ""

    def test_no_name_returns_none(self) -> None:
        assert describe("pods", {"kind": "Pod", "metadata": {"namespace": "ns"}}) is None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_all_kinds_registered(self) -> None:
        assert set(RESOURCE_KINDS) == {
            "pods",
            "deployments",
            "services",
            "configmaps",
            "secrets",
            "replicasets",
            "daemonsets",
            "statefulsets",
            "jobs",
            "cronjobs",
            "persistentvolumes",
            "persistentvolumeclaims",
            "ingresses",
            "networkpolicies",
        }

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(UnknownResourceTypeError):
            get_resource_kind("widgets")

    @pytest.mark.parametrize(
        ("resource_type", "namespace", "method", "kwargs"),
        [
            ("pods", "", "list_pod_for_all_namespaces", {}),
            ("pods", "prod", "list_namespaced_pod", {"namespace": "prod"}),
            ("configmaps", "", "list_config_map_for_all_namespaces", {}),
            ("persistentvolumes", "prod", "list_persistent_volume", {}),
            ("cronjobs", "ops", "list_namespaced_cron_job", {"namespace": "ops"}),
        ],
    )
    def test_list_method(self, resource_type: str, namespace: str, method: str, kwargs: dict[str, str]) -> None:
        assert get_resource_kind(resource_type).list_method(namespace) == (method, kwargs)
