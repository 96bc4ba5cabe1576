"""Per-resource watch loops with unconditional reconnect.

Every enabled resource type gets its own asyncio task. A task never gives up:
when a subscription cannot be opened it waits ``open_retry_delay`` seconds,
when an established stream ends (cleanly or with an error) it waits
``restart_delay`` seconds, then subscribes again. The delays are fixed; there
is no back-off growth and no shared retry budget across resource types.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from kubemonitor.collector.client import ClusterClient
from kubemonitor.collector.reconciler import EventReconciler
from kubemonitor.collector.resources import is_supported
from kubemonitor.models.config import ResourceConfig
from kubemonitor.observability.metrics import watch_restarts_total

_log = structlog.get_logger(component="collector.supervisor")

OPEN_RETRY_DELAY = 5.0
RESTART_DELAY = 1.0


class WatchSupervisor:
    """Owns one long-lived watch task per enabled resource type."""

    def __init__(
        self,
        client: ClusterClient,
        reconciler: EventReconciler,
        resources: Sequence[ResourceConfig],
        open_retry_delay: float = OPEN_RETRY_DELAY,
        restart_delay: float = RESTART_DELAY,
    ) -> None:
        self._client = client
        self._reconciler = reconciler
        self._resources = [r for r in resources if r.enabled]
        self._open_retry_delay = open_retry_delay
        self._restart_delay = restart_delay
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def tasks(self) -> dict[str, asyncio.Task[None]]:
        return dict(self._tasks)

    def start(self) -> None:
        """Launch a watch task for every enabled resource not yet running."""
        for resource in self._resources:
            if resource.name in self._tasks:
                continue
            self._tasks[resource.name] = asyncio.create_task(
                self.run(resource.name, resource.namespace),
                name=f"watch-{resource.name}",
            )
        _log.info("watch_supervisor_started", resources=[r.name for r in self._resources])

    async def stop(self) -> None:
        """Cancel every watch task. Best effort: waits for them to unwind."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        _log.info("watch_supervisor_stopped")

    async def run(self, resource_type: str, namespace: str = "") -> None:
        """Watch *resource_type* forever, restarting after every stream end."""
        if not is_supported(resource_type):
            _log.error("unknown_resource_type", resource_type=resource_type)
            return

        _log.info("watcher_starting", resource_type=resource_type, namespace=namespace or "*")
        while True:
            received = 0
            try:
                async for event in self._client.subscribe(resource_type, namespace):
                    received += 1
                    self._reconciler.reconcile(resource_type, event)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                if received == 0:
                    watch_restarts_total.labels(resource_type=resource_type, reason="open_failed").inc()
                    _log.warning(
                        "watch_open_failed",
                        resource_type=resource_type,
                        error=str(exc),
                        retry_in=self._open_retry_delay,
                    )
                    await asyncio.sleep(self._open_retry_delay)
                    continue
                watch_restarts_total.labels(resource_type=resource_type, reason="stream_error").inc()
                _log.warning("watch_stream_error", resource_type=resource_type, error=str(exc), events=received)
            else:
                watch_restarts_total.labels(resource_type=resource_type, reason="closed").inc()
                _log.info("watcher_closed_restarting", resource_type=resource_type, events=received)

            await asyncio.sleep(self._restart_delay)
