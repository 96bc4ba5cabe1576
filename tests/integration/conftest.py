"""Shared fixtures for kubemonitor integration tests.

Provides an in-memory cluster client whose watch streams are driven by the
test, so the monitor can be exercised end to end without a real cluster.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from kubemonitor.collector.client import WatchEvent
from kubemonitor.models.config import MonitorConfig, PersistenceConfig, ResourceConfig

_CLOSE = object()


# ---------------------------------------------------------------------------
# Object factories
# ---------------------------------------------------------------------------


def make_pod(
    name: str = "foo",
    namespace: str = "ns",
    resource_version: str = "1",
    phase: str = "Running",
    ready: bool = True,
) -> dict[str, Any]:
    """Raw Pod object as delivered by the API server."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "status": {
            "phase": phase,
            "conditions": [{"type": "Ready", "status": "True" if ready else "False"}],
        },
    }


def make_deployment(name: str = "web", namespace: str = "ns", resource_version: str = "1") -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "resourceVersion": resource_version},
        "status": {"replicas": 3, "readyReplicas": 2, "availableReplicas": 2},
    }


# ---------------------------------------------------------------------------
# Fake cluster client
# ---------------------------------------------------------------------------


class FakeClusterClient:
    """ClusterClient whose streams are fed through per-resource queues.

    ``emit`` pushes an event, ``close_stream`` ends the current subscription
    cleanly, ``fail_stream`` makes it raise. ``open_errors`` makes the next
    N subscriptions for a resource type fail before delivering anything.
    """

    def __init__(
        self,
        listings: dict[str, list[dict[str, Any]]] | None = None,
        list_errors: dict[str, Exception] | None = None,
    ) -> None:
        self.listings = listings or {}
        self.list_errors = list_errors or {}
        self.open_errors: Counter[str] = Counter()
        self.subscribe_calls: Counter[str] = Counter()
        self.list_calls: list[tuple[str, str]] = []
        self._queues: dict[str, asyncio.Queue[object]] = {}

    def _queue(self, resource_type: str) -> asyncio.Queue[object]:
        if resource_type not in self._queues:
            self._queues[resource_type] = asyncio.Queue()
        return self._queues[resource_type]

    def emit(self, resource_type: str, event_type: str, obj: Any) -> None:
        self._queue(resource_type).put_nowait(WatchEvent(type=event_type, object=obj))

    def close_stream(self, resource_type: str) -> None:
        self._queue(resource_type).put_nowait(_CLOSE)

    def fail_stream(self, resource_type: str, error: Exception | None = None) -> None:
        self._queue(resource_type).put_nowait(error or ConnectionError("stream reset"))

    async def subscribe(self, resource_type: str, namespace: str) -> AsyncIterator[WatchEvent]:
        self.subscribe_calls[resource_type] += 1
        if self.open_errors[resource_type] > 0:
            self.open_errors[resource_type] -= 1
            raise ConnectionError("watch open refused")
        queue = self._queue(resource_type)
        while True:
            item = await queue.get()
            if item is _CLOSE:
                return
            if isinstance(item, Exception):
                raise item
            assert isinstance(item, WatchEvent)
            yield item

    async def list_current(self, resource_type: str, namespace: str) -> list[dict[str, Any]]:
        self.list_calls.append((resource_type, namespace))
        if resource_type in self.list_errors:
            raise self.list_errors[resource_type]
        return list(self.listings.get(resource_type, []))


async def wait_for(predicate: Any, timeout: float = 2.0) -> None:
    """Poll *predicate* until it is truthy or *timeout* elapses."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


def make_config(
    snapshot_path: Path | None,
    resources: tuple[str, ...] = ("pods",),
    auto_save: bool = True,
    save_interval: int = 30,
) -> MonitorConfig:
    return MonitorConfig(
        resources=[ResourceConfig(name=name, enabled=True) for name in resources],
        persistence=PersistenceConfig(
            enabled=snapshot_path is not None,
            file_path=str(snapshot_path) if snapshot_path else "changes.json",
            auto_save=auto_save,
            save_interval=save_interval,
        ),
    )


@pytest.fixture()
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "changes.json"


@pytest.fixture()
def fake_client() -> FakeClusterClient:
    return FakeClusterClient()
