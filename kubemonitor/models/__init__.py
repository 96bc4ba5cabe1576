"""Core data structures for kubemonitor."""

from kubemonitor.models.changes import (
    ChangeRecord,
    ChangeStats,
    EventType,
    PersistedSnapshot,
    generate_change_id,
)
from kubemonitor.models.config import (
    APIConfig,
    LogConfig,
    MonitorConfig,
    PersistenceConfig,
    ResourceConfig,
)

__all__ = [
    "APIConfig",
    "ChangeRecord",
    "ChangeStats",
    "EventType",
    "LogConfig",
    "MonitorConfig",
    "PersistedSnapshot",
    "PersistenceConfig",
    "ResourceConfig",
    "generate_change_id",
]
