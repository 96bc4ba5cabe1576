"""Configuration loading from a JSON file and environment variables.

Precedence, lowest first: built-in defaults, the JSON config file (if one is
named and exists), ``KUBEMONITOR_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from kubemonitor.collector.resources import is_supported
from kubemonitor.models.config import (
    APIConfig,
    LogConfig,
    MonitorConfig,
    PersistenceConfig,
    ResourceConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEMONITOR_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_resource_name(name: str) -> str:
    if not is_supported(name):
        raise ValueError(f"Unknown resource type: {name}")
    return name


def _parse_resources_env(value: str, base: list[ResourceConfig]) -> list[ResourceConfig]:
    """Apply ``pods,deployments:prod`` style overrides to *base*.

    Listed kinds are enabled (with an optional namespace scope); every other
    kind is disabled.
    """
    wanted: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        name, _, namespace = item.partition(":")
        wanted[_validate_resource_name(name.strip())] = namespace.strip()

    result: list[ResourceConfig] = []
    seen: set[str] = set()
    for resource in base:
        seen.add(resource.name)
        result.append(
            ResourceConfig(
                name=resource.name,
                enabled=resource.name in wanted,
                namespace=wanted.get(resource.name, resource.namespace),
                description=resource.description,
            )
        )
    for name, namespace in wanted.items():
        if name not in seen:
            result.append(ResourceConfig(name=name, enabled=True, namespace=namespace))
    return result


def _resources_from_file(raw: Any) -> list[ResourceConfig]:
    if not isinstance(raw, list):
        raise ValueError("'resources' must be a list")
    resources = []
    for entry in raw:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ValueError(f"Invalid resource entry: {entry!r}")
        resources.append(
            ResourceConfig(
                name=entry["name"],
                enabled=bool(entry.get("enabled", False)),
                namespace=str(entry.get("namespace") or ""),
                description=str(entry.get("description") or ""),
            )
        )
    return resources


def load_config_file(path: str | Path, base: MonitorConfig | None = None) -> MonitorConfig:
    """Overlay the camelCase JSON config file at *path* onto *base*.

    Raises:
        ValueError: the file is not valid JSON or has an invalid layout.
    """
    config = base or MonitorConfig()
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    if "resources" in data:
        config.resources = _resources_from_file(data["resources"])
    if "webPort" in data:
        config.api = APIConfig(port=int(data["webPort"]))
    persistence = data.get("persistence")
    if isinstance(persistence, dict):
        config.persistence = PersistenceConfig(
            enabled=bool(persistence.get("enabled", config.persistence.enabled)),
            file_path=str(persistence.get("filePath") or config.persistence.file_path),
            auto_save=bool(persistence.get("autoSave", config.persistence.auto_save)),
            save_interval=int(persistence.get("saveInterval", config.persistence.save_interval)),
        )
    return config


def load_config(path: str | Path | None = None) -> MonitorConfig:
    """Load configuration from defaults, an optional file and KUBEMONITOR_* variables."""
    config = MonitorConfig()

    config_file = path or _env("CONFIG_FILE", "")
    if config_file and Path(config_file).exists():
        config = load_config_file(config_file, config)

    resources_env = _env("RESOURCES", "")
    resources = _parse_resources_env(resources_env, config.resources) if resources_env else config.resources

    return MonitorConfig(
        resources=resources,
        persistence=PersistenceConfig(
            enabled=_env_bool("PERSISTENCE_ENABLED", config.persistence.enabled),
            file_path=_env("PERSISTENCE_FILE_PATH", config.persistence.file_path),
            auto_save=_env_bool("AUTO_SAVE", config.persistence.auto_save),
            save_interval=_env_int("SAVE_INTERVAL", config.persistence.save_interval, min_val=1),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", config.api.port, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", config.log.level)),
        ),
    )
