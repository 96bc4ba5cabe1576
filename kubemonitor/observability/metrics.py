"""Prometheus metrics for the change monitor.

All collectors are module-level singletons registered with the default
registry; the REST layer exposes them at ``/metrics``.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

changes_recorded_total = Counter(
    "kubemonitor_changes_recorded_total",
    "Change records accepted into the change log.",
    ["resource_type", "event_type"],
)

duplicates_suppressed_total = Counter(
    "kubemonitor_duplicates_suppressed_total",
    "ADDED events discarded because the resource was already known.",
    ["resource_type"],
)

watch_restarts_total = Counter(
    "kubemonitor_watch_restarts_total",
    "Watch stream restarts, by cause.",
    ["resource_type", "reason"],
)

snapshot_saves_total = Counter(
    "kubemonitor_snapshot_saves_total",
    "Snapshot writes to the persistence file.",
    ["success"],
)

change_log_size = Gauge(
    "kubemonitor_change_log_size",
    "Number of records currently held in the change log.",
)
