"""Periodic flush of the change log to the snapshot file."""

from __future__ import annotations

import asyncio

import structlog

from kubemonitor.ledger.change_log import ChangeLog
from kubemonitor.ledger.persistence import PersistenceError, SnapshotStore

_log = structlog.get_logger(component="ledger.autosave")


class AutoSaveScheduler:
    """Saves a full copy of the change log every ``interval`` seconds.

    Save failures are logged and the loop carries on; nothing here raises
    into the event loop.
    """

    def __init__(self, change_log: ChangeLog, store: SnapshotStore, interval: float) -> None:
        if interval <= 0:
            raise ValueError("auto-save interval must be positive")
        self._change_log = change_log
        self._store = store
        self._interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="auto-save")
        _log.info("auto_save_started", interval_seconds=self._interval, path=str(self._store.path))

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        _log.info("auto_save_stopped")

    async def flush(self) -> bool:
        """Save once now. Returns False (after logging) if the save failed."""
        records = self._change_log.list()
        try:
            await asyncio.to_thread(self._store.save, records)
        except PersistenceError as exc:
            _log.error("auto_save_failed", error=str(exc))
            return False
        _log.info("changes_saved", count=len(records), path=str(self._store.path))
        return True

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.flush()
