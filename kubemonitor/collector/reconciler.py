"""Turns raw watch events into change records, or suppresses them.

A restarted watch stream (and the first stream after a process restart)
re-announces objects that already exist as ADDED. The reconciler keeps the
KnownResourceIndex up to date and drops an ADDED event when the object was
already known with a non-empty version. MODIFIED and DELETED events are
always recorded, even when replayed.
"""

from __future__ import annotations

from collections.abc import Callable

from kubemonitor.collector.client import WatchEvent
from kubemonitor.collector.resources import describe
from kubemonitor.ledger.change_log import ChangeLog
from kubemonitor.ledger.known_resources import KnownResourceIndex, resource_key
from kubemonitor.models.changes import ChangeRecord, EventType
from kubemonitor.observability.logging import get_logger
from kubemonitor.observability.metrics import changes_recorded_total, duplicates_suppressed_total

_logger = get_logger("collector.reconciler")


class EventReconciler:
    """Classifies watch events and appends accepted ones to the change log.

    Args:
        change_log: Destination for accepted records.
        index:      Shared index of already-seen objects.
        on_accept:  Optional callback run after every accepted record; must
                    not block.
    """

    def __init__(
        self,
        change_log: ChangeLog,
        index: KnownResourceIndex,
        on_accept: Callable[[ChangeRecord], None] | None = None,
    ) -> None:
        self._change_log = change_log
        self._index = index
        self._on_accept = on_accept

    def reconcile(self, resource_type: str, event: WatchEvent) -> ChangeRecord | None:
        """Process one event; return the new record or None if dropped."""
        try:
            event_type = EventType(event.type)
        except ValueError:
            # BOOKMARK / ERROR notifications carry no object transition.
            _logger.debug("watch_event_ignored", resource_type=resource_type, event_type=event.type)
            return None

        if event.object is None:
            return None
        identity = describe(resource_type, event.object)
        if identity is None:
            return None

        key = resource_key(identity.namespace, identity.name)
        prior_version, existed = self._index.observe(resource_type, key, identity.resource_version)

        if event_type is EventType.ADDED and existed and prior_version:
            duplicates_suppressed_total.labels(resource_type=resource_type).inc()
            _logger.debug("duplicate_added_skipped", resource_type=resource_type, key=key)
            return None

        record = ChangeRecord(
            event_type=event_type,
            resource_type=resource_type,
            namespace=identity.namespace,
            name=identity.name,
            details=identity.details,
        )
        self._change_log.append(record)
        changes_recorded_total.labels(resource_type=resource_type, event_type=event_type.value).inc()
        _logger.info(
            "change_detected",
            event_type=event_type.value,
            resource_type=resource_type,
            namespace=identity.namespace,
            name=identity.name,
        )

        if self._on_accept is not None:
            self._on_accept(record)
        return record
