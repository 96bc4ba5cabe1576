"""Route handlers for the change monitor REST API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kubemonitor.api.schemas import (
    ChangeModel,
    DebugResponse,
    HealthResponse,
    MarkAllReadResponse,
    MarkReadRequest,
    MarkReadResponse,
    MonitoringStatus,
    SaveNowResponse,
    StatsResponse,
)
from kubemonitor.monitor import ChangeMonitor

router = APIRouter()
root_router = APIRouter()


class MonitorUnavailableError(Exception):
    """Raised by handlers that need a monitor when none is running."""


def _monitor(request: Request) -> ChangeMonitor:
    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        raise MonitorUnavailableError
    return monitor  # type: ignore[no-any-return]


@router.get("/changes", response_model=list[ChangeModel])
async def list_changes(request: Request) -> list[dict[str, Any]]:
    return [c.to_dict() for c in _monitor(request).list_changes()]


@router.get("/stats", response_model=StatsResponse)
async def stats(request: Request) -> dict[str, Any]:
    return _monitor(request).stats().to_dict()


@router.get("/config")
async def config(request: Request) -> dict[str, object]:
    cfg = request.app.state.config
    return cfg.to_dict() if cfg is not None else {}


@router.post("/mark-read", response_model=MarkReadResponse)
async def mark_read(request: Request, body: MarkReadRequest) -> MarkReadResponse:
    return MarkReadResponse(success=_monitor(request).mark_read(body.id))


@router.post("/mark-all-read", response_model=MarkAllReadResponse)
async def mark_all_read(request: Request) -> MarkAllReadResponse:
    return MarkAllReadResponse(count=_monitor(request).mark_all_read())


@router.post("/save-now", response_model=SaveNowResponse, response_model_exclude_none=True)
async def save_now(request: Request) -> SaveNowResponse:
    result = await _monitor(request).save_now()
    return SaveNowResponse(success=result.success, error=result.error or None)


@router.get("/debug", response_model=DebugResponse, response_model_exclude_none=True)
async def debug_status(request: Request) -> DebugResponse:
    """Version and monitoring state; answers 200 in degraded mode too."""
    from kubemonitor import __version__

    monitor = getattr(request.app.state, "monitor", None)
    if monitor is None:
        monitoring = MonitoringStatus(active=False, error="Kubernetes client not available")
    else:
        stats = monitor.stats()
        monitoring = MonitoringStatus(active=True, totalChanges=stats.total, uptime=stats.uptime)
    return DebugResponse(version=__version__, monitoring=monitoring)


@root_router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@root_router.get("/metrics")
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
