"""Registry of watchable resource kinds.

Each supported kind is one ``ResourceKind`` entry: where its list/watch
endpoints live in the kubernetes-asyncio client, whether it is
cluster-scoped, and how to summarise an object of that kind in one line.
Objects are handled in their raw (camelCase JSON) form as delivered by the
API server.

Kinds outside the registry still get their identity extracted from the
generic ``metadata`` block that every Kubernetes object carries.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

UNKNOWN_DETAILS = "Unknown resource type"


class UnknownResourceTypeError(ValueError):
    """Raised when a resource type name has no registry entry."""


@dataclass(frozen=True)
class ResourceIdentity:
    """Identity and summary extracted from one object."""

    namespace: str
    name: str
    resource_version: str
    details: str


@dataclass(frozen=True)
class ResourceKind:
    """Static description of one watchable resource type."""

    resource_type: str  # config name, e.g. "pods"
    kind: str  # API kind, e.g. "Pod"
    api_class: str  # kubernetes_asyncio.client attribute, e.g. "CoreV1Api"
    method_suffix: str  # e.g. "pod" -> list_namespaced_pod
    summarize: Callable[[dict[str, Any]], str]
    cluster_scoped: bool = False

    def list_method(self, namespace: str) -> tuple[str, dict[str, Any]]:
        """Return the client method name and kwargs for a list/watch call."""
        if self.cluster_scoped:
            return f"list_{self.method_suffix}", {}
        if namespace:
            return f"list_namespaced_{self.method_suffix}", {"namespace": namespace}
        return f"list_{self.method_suffix}_for_all_namespaces", {}


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _section(obj: dict[str, Any], key: str) -> dict[str, Any]:
    value = obj.get(key)
    return value if isinstance(value, dict) else {}


def _int(section: dict[str, Any], key: str) -> int:
    value = section.get(key)
    return value if isinstance(value, int) else 0


def _len(value: object) -> int:
    return len(value) if isinstance(value, (dict, list)) else 0


def _bool(value: object) -> str:
    return "true" if value is True else "false"


# ---------------------------------------------------------------------------
# Per-kind summaries
# ---------------------------------------------------------------------------


def _pod_ready(status: dict[str, Any]) -> bool:
    for condition in status.get("conditions") or []:
        if isinstance(condition, dict) and condition.get("type") == "Ready":
            return condition.get("status") == "True"
    return False


def summarize_pod(obj: dict[str, Any]) -> str:
    status = _section(obj, "status")
    return f"Phase: {status.get('phase', '')}, Ready: {_bool(_pod_ready(status))}"


def summarize_deployment(obj: dict[str, Any]) -> str:
    status = _section(obj, "status")
    return (
        f"Replicas: {_int(status, 'readyReplicas')}/{_int(status, 'replicas')}, "
        f"Available: {_int(status, 'availableReplicas')}"
    )


def summarize_replicas(obj: dict[str, Any]) -> str:
    status = _section(obj, "status")
    return f"Replicas: {_int(status, 'readyReplicas')}/{_int(status, 'replicas')}"


def summarize_daemonset(obj: dict[str, Any]) -> str:
    status = _section(obj, "status")
    return f"Desired: {_int(status, 'desiredNumberScheduled')}, Ready: {_int(status, 'numberReady')}"


def summarize_service(obj: dict[str, Any]) -> str:
    spec = _section(obj, "spec")
    return f"Type: {spec.get('type', '')}, Ports: {_len(spec.get('ports'))}"


def summarize_configmap(obj: dict[str, Any]) -> str:
    return f"Data keys: {_len(obj.get('data'))}"


def summarize_secret(obj: dict[str, Any]) -> str:
    return f"Type: {obj.get('type', '')}, Data keys: {_len(obj.get('data'))}"


def summarize_job(obj: dict[str, Any]) -> str:
    status = _section(obj, "status")
    return (
        f"Active: {_int(status, 'active')}, Succeeded: {_int(status, 'succeeded')}, "
        f"Failed: {_int(status, 'failed')}"
    )


def summarize_cronjob(obj: dict[str, Any]) -> str:
    spec = _section(obj, "spec")
    return f"Schedule: {spec.get('schedule', '')}, Suspend: {_bool(spec.get('suspend'))}"


def summarize_persistent_volume(obj: dict[str, Any]) -> str:
    capacity = _section(_section(obj, "spec"), "capacity")
    phase = _section(obj, "status").get("phase", "")
    return f"Phase: {phase}, Capacity: {capacity.get('storage', '0')}"


def summarize_persistent_volume_claim(obj: dict[str, Any]) -> str:
    requests = _section(_section(_section(obj, "spec"), "resources"), "requests")
    phase = _section(obj, "status").get("phase", "")
    return f"Phase: {phase}, Storage: {requests.get('storage', '0')}"


def summarize_ingress(obj: dict[str, Any]) -> str:
    return f"Rules: {_len(_section(obj, 'spec').get('rules'))}"


def summarize_network_policy(obj: dict[str, Any]) -> str:
    selector = _section(_section(obj, "spec"), "podSelector")
    return f"Pod selector: {json.dumps(selector, sort_keys=True, separators=(',', ':'))}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_KINDS = [
    ResourceKind("pods", "Pod", "CoreV1Api", "pod", summarize_pod),
    ResourceKind("deployments", "Deployment", "AppsV1Api", "deployment", summarize_deployment),
    ResourceKind("services", "Service", "CoreV1Api", "service", summarize_service),
    ResourceKind("configmaps", "ConfigMap", "CoreV1Api", "config_map", summarize_configmap),
    ResourceKind("secrets", "Secret", "CoreV1Api", "secret", summarize_secret),
    ResourceKind("replicasets", "ReplicaSet", "AppsV1Api", "replica_set", summarize_replicas),
    ResourceKind("daemonsets", "DaemonSet", "AppsV1Api", "daemon_set", summarize_daemonset),
    ResourceKind("statefulsets", "StatefulSet", "AppsV1Api", "stateful_set", summarize_replicas),
    ResourceKind("jobs", "Job", "BatchV1Api", "job", summarize_job),
    ResourceKind("cronjobs", "CronJob", "BatchV1Api", "cron_job", summarize_cronjob),
    ResourceKind(
        "persistentvolumes",
        "PersistentVolume",
        "CoreV1Api",
        "persistent_volume",
        summarize_persistent_volume,
        cluster_scoped=True,
    ),
    ResourceKind(
        "persistentvolumeclaims",
        "PersistentVolumeClaim",
        "CoreV1Api",
        "persistent_volume_claim",
        summarize_persistent_volume_claim,
    ),
    ResourceKind("ingresses", "Ingress", "NetworkingV1Api", "ingress", summarize_ingress),
    ResourceKind("networkpolicies", "NetworkPolicy", "NetworkingV1Api", "network_policy", summarize_network_policy),
]

RESOURCE_KINDS: dict[str, ResourceKind] = {k.resource_type: k for k in _KINDS}
_BY_API_KIND: dict[str, ResourceKind] = {k.kind: k for k in _KINDS}


def get_resource_kind(resource_type: str) -> ResourceKind:
    """Look up a registry entry by its config name (e.g. ``"pods"``)."""
    try:
        return RESOURCE_KINDS[resource_type]
    except KeyError:
        raise UnknownResourceTypeError(f"Unknown resource type: {resource_type}") from None


def is_supported(resource_type: str) -> bool:
    return resource_type in RESOURCE_KINDS


def _generic_identity(obj: object) -> tuple[str, str, str] | None:
    """Pull namespace/name/resourceVersion from any object's metadata.

    Accepts raw dicts and typed client models (``obj.metadata.name``).
    """
    if isinstance(obj, dict):
        metadata = obj.get("metadata")
        if not isinstance(metadata, dict):
            return None
        name = metadata.get("name")
        namespace = metadata.get("namespace") or ""
        version = metadata.get("resourceVersion") or ""
    else:
        metadata = getattr(obj, "metadata", None)
        if metadata is None:
            return None
        name = getattr(metadata, "name", None)
        namespace = getattr(metadata, "namespace", None) or ""
        version = getattr(metadata, "resource_version", None) or ""
    if not isinstance(name, str) or not name:
        return None
    return str(namespace), name, str(version)


def describe(resource_type: str, obj: object) -> ResourceIdentity | None:
    """Extract identity and a kind-specific summary from *obj*.

    The kind is taken from the object's own ``kind`` field when present,
    otherwise from *resource_type*. Unrecognised kinds (and typed objects)
    get the generic placeholder summary. Returns None when the object has no
    usable identity.
    """
    identity = _generic_identity(obj)
    if identity is None:
        return None
    namespace, name, version = identity

    entry: ResourceKind | None = None
    if isinstance(obj, dict):
        api_kind = obj.get("kind")
        if isinstance(api_kind, str) and api_kind:
            entry = _BY_API_KIND.get(api_kind)
        else:
            entry = RESOURCE_KINDS.get(resource_type)

    details = entry.summarize(obj) if entry is not None and isinstance(obj, dict) else UNKNOWN_DETAILS
    return ResourceIdentity(namespace=namespace, name=name, resource_version=version, details=details)
