"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResourceConfig:
    """A watchable resource kind and its optional namespace scope.

    An empty ``namespace`` means all namespaces.
    """

    name: str
    enabled: bool = False
    namespace: str = ""
    description: str = ""


@dataclass
class PersistenceConfig:
    """Change log persistence configuration."""

    enabled: bool = True
    file_path: str = "changes.json"
    auto_save: bool = True
    save_interval: int = 30


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


def _default_resources() -> list[ResourceConfig]:
    enabled = {"pods", "deployments", "services", "configmaps", "secrets"}
    names = [
        ("pods", "Pods"),
        ("deployments", "Deployments"),
        ("services", "Services"),
        ("configmaps", "ConfigMaps"),
        ("secrets", "Secrets"),
        ("replicasets", "ReplicaSets"),
        ("daemonsets", "DaemonSets"),
        ("statefulsets", "StatefulSets"),
        ("jobs", "Jobs"),
        ("cronjobs", "CronJobs"),
        ("persistentvolumes", "PersistentVolumes"),
        ("persistentvolumeclaims", "PersistentVolumeClaims"),
        ("ingresses", "Ingresses"),
        ("networkpolicies", "NetworkPolicies"),
    ]
    return [
        ResourceConfig(name=name, enabled=name in enabled, description=f"Kubernetes {label}")
        for name, label in names
    ]


@dataclass
class MonitorConfig:
    """Top-level kubemonitor configuration."""

    resources: list[ResourceConfig] = field(default_factory=_default_resources)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def enabled_resources(self) -> list[ResourceConfig]:
        """Return the resources with ``enabled=True``, in configured order."""
        return [r for r in self.resources if r.enabled]

    def is_resource_enabled(self, name: str) -> bool:
        return any(r.name == name and r.enabled for r in self.resources)

    def to_dict(self) -> dict[str, object]:
        """Serialise to the camelCase layout used by the JSON config file."""
        return {
            "webPort": self.api.port,
            "resources": [
                {
                    "name": r.name,
                    "enabled": r.enabled,
                    "namespace": r.namespace,
                    "description": r.description,
                }
                for r in self.resources
            ],
            "persistence": {
                "enabled": self.persistence.enabled,
                "filePath": self.persistence.file_path,
                "autoSave": self.persistence.auto_save,
                "saveInterval": self.persistence.save_interval,
            },
        }
