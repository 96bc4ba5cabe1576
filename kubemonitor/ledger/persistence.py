"""Whole-file JSON persistence for the change log.

The snapshot is rewritten wholesale on every save. All saves and loads go
through one lock so a concurrent load never reads a half-written file; a
crash in the middle of a write can still leave a truncated file behind.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

import structlog

from kubemonitor.models.changes import ChangeRecord, PersistedSnapshot
from kubemonitor.observability.metrics import snapshot_saves_total

_log = structlog.get_logger(component="ledger.persistence")


class PersistenceError(Exception):
    """Base class for snapshot save/load failures."""


class SnapshotDecodeError(PersistenceError):
    """The snapshot file exists but does not hold a valid snapshot."""


class SnapshotIOError(PersistenceError):
    """The snapshot file could not be read or written."""


class SnapshotStore:
    """Reads and writes the ``{savedAt, changes}`` snapshot document.

    Args:
        file_path: Location of the snapshot file. Parent directories are
                   created on first save.
    """

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, records: Sequence[ChangeRecord]) -> PersistedSnapshot:
        """Serialise *records* with the current time and overwrite the file.

        Raises:
            SnapshotIOError: the file or its directory could not be written.
        """
        snapshot = PersistedSnapshot(saved_at=datetime.now(tz=UTC), changes=list(records))
        payload = json.dumps(snapshot.to_dict(), indent=2)
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text(payload, encoding="utf-8")
            except OSError as exc:
                snapshot_saves_total.labels(success="false").inc()
                raise SnapshotIOError(f"failed to write {self._path}: {exc}") from exc
        snapshot_saves_total.labels(success="true").inc()
        _log.debug("snapshot_saved", path=str(self._path), changes=len(snapshot.changes))
        return snapshot

    def load(self) -> list[ChangeRecord]:
        """Read every record from the snapshot file.

        Returns an empty list when the file does not exist yet.

        Raises:
            SnapshotDecodeError: the file is not a valid snapshot document.
            SnapshotIOError: the file exists but could not be read.
        """
        with self._lock:
            if not self._path.exists():
                return []
            try:
                raw = self._path.read_text(encoding="utf-8")
            except OSError as exc:
                raise SnapshotIOError(f"failed to read {self._path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SnapshotDecodeError(f"failed to decode {self._path}: {exc}") from exc

        if not isinstance(data, dict):
            raise SnapshotDecodeError(f"{self._path}: top-level value must be an object")
        changes = data.get("changes")
        if changes is None:
            return []
        if not isinstance(changes, list):
            raise SnapshotDecodeError(f"{self._path}: 'changes' must be a list")

        # Entries that are not objects are skipped.
        return [ChangeRecord.from_dict(item) for item in changes if isinstance(item, dict)]
