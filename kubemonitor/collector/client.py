"""Cluster client contract and its kubernetes-asyncio implementation.

The monitor engine only needs two capabilities from the cluster:

* ``subscribe(resource_type, namespace)`` -- an async stream of watch events
  starting from the current state;
* ``list_current(resource_type, namespace)`` -- the objects that exist now.

Both deliver objects in raw camelCase JSON form.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

import structlog

from kubemonitor.collector.resources import get_resource_kind

_log = structlog.get_logger(component="collector.client")

# Watch from "any recent state" rather than replaying history; the API server
# may still synthesise ADDED events for existing objects, which the
# reconciler suppresses.
_WATCH_FROM_CURRENT = "0"


@dataclass(frozen=True)
class WatchEvent:
    """One notification from a watch stream."""

    type: str
    object: Any


class ClusterClient(Protocol):
    """What the monitor requires from a cluster API client."""

    def subscribe(self, resource_type: str, namespace: str) -> AsyncIterator[WatchEvent]:
        """Stream events for *resource_type* until the server closes the watch."""
        ...

    async def list_current(self, resource_type: str, namespace: str) -> list[dict[str, Any]]:
        """Return every object of *resource_type* that currently exists."""
        ...


class KubernetesClusterClient:
    """ClusterClient backed by kubernetes-asyncio.

    The client configuration (in-cluster or kubeconfig) must already be
    loaded before construction.
    """

    def __init__(self, api_client: Any | None = None) -> None:
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        self._k8s = k8s_client
        self._api_client = api_client or k8s_client.ApiClient()
        self._apis: dict[str, Any] = {}

    def _api(self, api_class: str) -> Any:
        api = self._apis.get(api_class)
        if api is None:
            api = getattr(self._k8s, api_class)(self._api_client)
            self._apis[api_class] = api
        return api

    def _endpoint(self, resource_type: str, namespace: str) -> tuple[Any, dict[str, Any]]:
        kind = get_resource_kind(resource_type)
        method_name, kwargs = kind.list_method(namespace)
        return getattr(self._api(kind.api_class), method_name), kwargs

    async def subscribe(self, resource_type: str, namespace: str) -> AsyncIterator[WatchEvent]:
        from kubernetes_asyncio import watch  # type: ignore[import-untyped]

        func, kwargs = self._endpoint(resource_type, namespace)
        w = watch.Watch()
        try:
            async for event in w.stream(func, resource_version=_WATCH_FROM_CURRENT, **kwargs):
                raw = event.get("raw_object", event.get("object"))
                yield WatchEvent(type=str(event.get("type", "")), object=raw)
        finally:
            w.stop()

    async def list_current(self, resource_type: str, namespace: str) -> list[dict[str, Any]]:
        func, kwargs = self._endpoint(resource_type, namespace)
        response = await func(**kwargs)
        items = getattr(response, "items", None) or []
        return [self._api_client.sanitize_for_serialization(item) for item in items]

    async def close(self) -> None:
        """Close the underlying connection pool."""
        try:
            await self._api_client.close()
        except Exception as exc:  # noqa: BLE001
            _log.debug("k8s api client close raised (non-fatal)", error=str(exc))
