"""Bounded, concurrency-safe change log.

The log is the single source of truth for read-side consumers. Records are
kept in arrival order; once the cap is reached the oldest records are evicted
first. Every accessor returns copies so callers can never mutate the stored
records or observe a half-applied update.
"""

from __future__ import annotations

import dataclasses
from collections import deque
from collections.abc import Iterable
from datetime import UTC, datetime

from kubemonitor.ledger.locks import ReadWriteLock
from kubemonitor.models.changes import ChangeRecord, ChangeStats
from kubemonitor.observability.metrics import change_log_size

MAX_CHANGES = 1000


class ChangeLog:
    """Ordered FIFO of ChangeRecords capped at ``max_changes``."""

    def __init__(self, max_changes: int = MAX_CHANGES) -> None:
        if max_changes < 1:
            raise ValueError("max_changes must be at least 1")
        self._max_changes = max_changes
        self._records: deque[ChangeRecord] = deque(maxlen=max_changes)
        self._lock = ReadWriteLock()

    @property
    def max_changes(self) -> int:
        return self._max_changes

    def append(self, record: ChangeRecord) -> None:
        """Append *record*, evicting the oldest record when full."""
        with self._lock.write():
            self._records.append(record)
            size = len(self._records)
        change_log_size.set(size)

    def extend(self, records: Iterable[ChangeRecord]) -> None:
        """Bulk append, used when rehydrating from a snapshot."""
        with self._lock.write():
            self._records.extend(records)
            size = len(self._records)
        change_log_size.set(size)

    def list(self) -> list[ChangeRecord]:
        """Return an independent copy of every record, oldest first."""
        with self._lock.read():
            return [dataclasses.replace(r) for r in self._records]

    def mark_read(self, change_id: str) -> bool:
        """Flag the record with *change_id* as read.

        Returns True whenever the record exists, including when it was
        already read.
        """
        with self._lock.write():
            for record in self._records:
                if record.id == change_id:
                    record.is_read = True
                    return True
        return False

    def mark_all_read(self) -> int:
        """Flag every unread record as read and return how many changed."""
        count = 0
        with self._lock.write():
            for record in self._records:
                if not record.is_read:
                    record.is_read = True
                    count += 1
        return count

    def stats(self, start_time: datetime) -> ChangeStats:
        """Aggregate counts over the log relative to the engine start instant.

        Records stamped before *start_time* are attributed to a previous
        session. This is best-effort: it relies on timestamps alone.
        """
        unread = 0
        loaded = 0
        event_counts: dict[str, int] = {}
        resource_counts: dict[str, int] = {}
        with self._lock.read():
            total = len(self._records)
            for record in self._records:
                if not record.is_read:
                    unread += 1
                if record.timestamp < start_time:
                    loaded += 1
                event_key = str(record.event_type)
                event_counts[event_key] = event_counts.get(event_key, 0) + 1
                resource_counts[record.resource_type] = resource_counts.get(record.resource_type, 0) + 1

        return ChangeStats(
            total=total,
            unread=unread,
            loaded_before_start=loaded,
            current_session=total - loaded,
            event_type_counts=event_counts,
            resource_type_counts=resource_counts,
            start_time=start_time,
            uptime_seconds=(datetime.now(tz=UTC) - start_time).total_seconds(),
        )

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)
