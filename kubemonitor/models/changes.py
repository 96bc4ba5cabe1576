"""Change record data structures and their JSON wire form."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Kind of transition observed on a watch stream."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


def generate_change_id() -> str:
    """Return a fresh opaque id: 16 hex characters from 8 random bytes."""
    return secrets.token_hex(8)


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _parse_timestamp(value: object) -> datetime:
    # Missing or unparseable timestamps fall back to "now", matching the
    # lenient rehydration of older snapshot files.
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return _now()
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    return _now()


@dataclass
class ChangeRecord:
    """One observed add/modify/delete transition.

    Produced by the EventReconciler. ``is_read`` is the only field that may
    change after creation; everything else is treated as immutable.
    """

    event_type: EventType
    resource_type: str
    namespace: str
    name: str
    details: str
    id: str = field(default_factory=generate_change_id)
    timestamp: datetime = field(default_factory=_now)
    is_read: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase layout of the persisted snapshot."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "eventType": str(self.event_type),
            "resourceType": self.resource_type,
            "namespace": self.namespace,
            "name": self.name,
            "details": self.details,
            "isRead": self.is_read,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeRecord:
        """Rehydrate a record from its serialised form.

        Missing string fields become ``""``, a missing ``isRead`` becomes
        False. Event types outside the known set are kept as plain strings.
        """

        def _str(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        raw_type = _str("eventType")
        event_type: EventType | str
        try:
            event_type = EventType(raw_type)
        except ValueError:
            event_type = raw_type

        is_read = data.get("isRead")
        return cls(
            id=_str("id") or generate_change_id(),
            timestamp=_parse_timestamp(data.get("timestamp")),
            event_type=event_type,  # type: ignore[arg-type]
            resource_type=_str("resourceType"),
            namespace=_str("namespace"),
            name=_str("name"),
            details=_str("details"),
            is_read=is_read if isinstance(is_read, bool) else False,
        )


@dataclass
class PersistedSnapshot:
    """The whole-file persisted form of the change log."""

    saved_at: datetime
    changes: list[ChangeRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "savedAt": self.saved_at.isoformat(),
            "changes": [c.to_dict() for c in self.changes],
        }


@dataclass
class ChangeStats:
    """Aggregate view over the change log, computed in a single pass."""

    total: int
    unread: int
    loaded_before_start: int
    current_session: int
    event_type_counts: dict[str, int]
    resource_type_counts: dict[str, int]
    start_time: datetime
    uptime_seconds: float

    @property
    def uptime(self) -> str:
        """Human-readable uptime, e.g. ``2h3m4s``."""
        total = int(self.uptime_seconds)
        hours, rem = divmod(total, 3600)
        minutes, seconds = divmod(rem, 60)
        if hours:
            return f"{hours}h{minutes}m{seconds}s"
        if minutes:
            return f"{minutes}m{seconds}s"
        return f"{seconds}s"

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "unread": self.unread,
            "loadedBeforeStart": self.loaded_before_start,
            "currentSession": self.current_session,
            "eventTypeCounts": dict(self.event_type_counts),
            "resourceTypeCounts": dict(self.resource_type_counts),
            "startTime": self.start_time.isoformat(),
            "uptime": self.uptime,
        }
