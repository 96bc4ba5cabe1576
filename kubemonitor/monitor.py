"""The change monitor engine.

``ChangeMonitor`` owns the change log, the known-resource index, the
snapshot store, the event reconciler, the watch supervisor and the auto-save
scheduler. It is constructed once at startup and handed to every consumer;
nothing here lives in module-level state.

Lifecycle::

    monitor = ChangeMonitor(client, config)
    await monitor.start()   # load snapshot, list current objects, start watches
    ...
    await monitor.stop()    # stop watches and auto-save, final flush
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from kubemonitor.collector.client import ClusterClient
from kubemonitor.collector.reconciler import EventReconciler
from kubemonitor.collector.resources import describe, is_supported
from kubemonitor.collector.supervisor import OPEN_RETRY_DELAY, RESTART_DELAY, WatchSupervisor
from kubemonitor.ledger.autosave import AutoSaveScheduler
from kubemonitor.ledger.change_log import ChangeLog
from kubemonitor.ledger.known_resources import KnownResourceIndex, resource_key
from kubemonitor.ledger.persistence import PersistenceError, SnapshotStore
from kubemonitor.models.changes import ChangeRecord, ChangeStats
from kubemonitor.models.config import MonitorConfig

_log = structlog.get_logger(component="monitor")


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a manual save."""

    success: bool
    error: str = ""


class ChangeMonitor:
    """Watch-reconciliation and change-log engine.

    Args:
        client:            Cluster API client (subscribe / list_current).
        config:            Monitor configuration.
        change_log:        Optional pre-built log (tests).
        open_retry_delay:  Seconds to wait after a failed subscription.
        restart_delay:     Seconds to wait after a stream ends.
    """

    def __init__(
        self,
        client: ClusterClient,
        config: MonitorConfig,
        change_log: ChangeLog | None = None,
        open_retry_delay: float = OPEN_RETRY_DELAY,
        restart_delay: float = RESTART_DELAY,
    ) -> None:
        self._client = client
        self._config = config
        self._start_time = datetime.now(tz=UTC)
        self._change_log = change_log or ChangeLog()
        self._index = KnownResourceIndex(r.name for r in config.enabled_resources())

        persistence = config.persistence
        self._store: SnapshotStore | None = None
        self._autosave: AutoSaveScheduler | None = None
        if persistence.enabled:
            self._store = SnapshotStore(persistence.file_path)
            self._autosave = AutoSaveScheduler(self._change_log, self._store, persistence.save_interval)

        self._reconciler = EventReconciler(self._change_log, self._index, on_accept=self._on_accept)
        self._supervisor = WatchSupervisor(
            client,
            self._reconciler,
            config.enabled_resources(),
            open_retry_delay=open_retry_delay,
            restart_delay=restart_delay,
        )
        self._flush_task: asyncio.Task[None] | None = None
        self._flush_requested = False
        self._started = False

    # ------------------------------------------------------------------
    # Accessors used by tests and the API layer
    # ------------------------------------------------------------------

    @property
    def config(self) -> MonitorConfig:
        return self._config

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def change_log(self) -> ChangeLog:
        return self._change_log

    @property
    def index(self) -> KnownResourceIndex:
        return self._index

    @property
    def reconciler(self) -> EventReconciler:
        return self._reconciler

    @property
    def supervisor(self) -> WatchSupervisor:
        return self._supervisor

    @property
    def running(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Populate state, then start the watch loops and auto-save.

        Both population steps complete (or fail and are logged) before any
        watch is opened, so pre-existing objects are known before the first
        replayed ADDED event reaches the reconciler.
        """
        if self._started:
            return
        await self._load_persisted()
        await self._populate_current_state()

        self._supervisor.start()
        if self._autosave is not None and self._config.persistence.auto_save:
            self._autosave.start()
        self._started = True
        _log.info("monitoring_started", resources=len(self._config.enabled_resources()))

    async def stop(self) -> None:
        """Stop auto-save and the watches, then flush one last time."""
        if self._autosave is not None:
            await self._autosave.stop()
        await self._supervisor.stop()
        if self._flush_task is not None:
            await asyncio.gather(self._flush_task, return_exceptions=True)
            self._flush_task = None
        if self._autosave is not None:
            await self._autosave.flush()
            _log.info("final_save_completed")
        self._started = False

    async def _load_persisted(self) -> None:
        if self._store is None:
            return
        try:
            records = await asyncio.to_thread(self._store.load)
        except PersistenceError as exc:
            _log.warning("snapshot_load_failed", path=str(self._store.path), error=str(exc))
            records = []
        else:
            self._change_log.extend(records)
            _log.info("changes_loaded", count=len(records), path=str(self._store.path))

        populated = self._index.populate_from_changes(self._change_log.list())
        _log.info("known_resources_populated_from_changes", count=populated)

        # Writes the file on first run so it exists from startup onwards.
        if self._autosave is not None:
            await self._autosave.flush()

    async def _populate_current_state(self) -> None:
        for resource in self._config.enabled_resources():
            if not is_supported(resource.name):
                continue
            try:
                objects = await self._client.list_current(resource.name, resource.namespace)
            except Exception as exc:  # noqa: BLE001
                _log.warning("populate_current_state_failed", resource_type=resource.name, error=str(exc))
                continue

            versions: dict[str, str] = {}
            for obj in objects:
                identity = describe(resource.name, obj)
                if identity is not None:
                    versions[resource_key(identity.namespace, identity.name)] = identity.resource_version
            self._index.populate_from_listing(resource.name, versions)
            _log.info("existing_resources_populated", resource_type=resource.name, count=len(versions))

    # ------------------------------------------------------------------
    # Event acceptance hook
    # ------------------------------------------------------------------

    def _on_accept(self, _record: ChangeRecord) -> None:
        persistence = self._config.persistence
        if self._autosave is None or persistence.auto_save:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called outside the event loop (e.g. from a worker thread).
            self._save_sync()
            return
        # Bursts collapse into one writer task; a record accepted while a save
        # is in flight triggers exactly one more save with a fresh copy.
        self._flush_requested = True
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = loop.create_task(self._drain_flushes(), name="save-on-change")

    async def _drain_flushes(self) -> None:
        autosave = self._autosave
        if autosave is None:
            return
        while self._flush_requested:
            self._flush_requested = False
            await autosave.flush()

    def _save_sync(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._change_log.list())
        except PersistenceError as exc:
            _log.error("save_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Outbound contract
    # ------------------------------------------------------------------

    def list_changes(self) -> list[ChangeRecord]:
        return self._change_log.list()

    def stats(self) -> ChangeStats:
        return self._change_log.stats(self._start_time)

    def mark_read(self, change_id: str) -> bool:
        return self._change_log.mark_read(change_id)

    def mark_all_read(self) -> int:
        count = self._change_log.mark_all_read()
        _log.info("changes_marked_read", count=count)
        return count

    async def save_now(self) -> SaveResult:
        """Save the change log immediately and report the outcome."""
        if self._store is None:
            return SaveResult(success=False, error="persistence is not enabled")
        records = self._change_log.list()
        try:
            await asyncio.to_thread(self._store.save, records)
        except PersistenceError as exc:
            _log.error("manual_save_failed", error=str(exc))
            return SaveResult(success=False, error=str(exc))
        _log.info("changes_saved", count=len(records), path=str(self._store.path), manual=True)
        return SaveResult(success=True)
