"""FastAPI application factory for kubemonitor.

Usage::

    from kubemonitor.api.app import create_app

    app = create_app(monitor=monitor, config=config)

The factory is used by both the production bootstrap (``kubemonitor.app``)
and unit tests. ``monitor`` may be None when no cluster connection is
available; monitor-backed routes then answer 503.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kubemonitor.api.routes import MonitorUnavailableError, root_router, router
from kubemonitor.api.schemas import ErrorResponse

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api"


def create_app(monitor: Any = None, config: Any = None) -> FastAPI:
    """Create and configure the kubemonitor FastAPI application.

    Args:
        monitor: ChangeMonitor instance, or None in degraded mode.
        config:  MonitorConfig served by ``GET /api/config``.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kubemonitor import __version__

    app = FastAPI(
        title="kubemonitor",
        summary="Kubernetes resource change monitor",
        version=__version__,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url="/api/openapi.json",
    )

    # Dependencies live on app.state so handlers need no module globals.
    app.state.monitor = monitor
    app.state.config = config if config is not None else getattr(monitor, "config", None)

    app.include_router(router, prefix=_API_PREFIX)
    app.include_router(root_router)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(MonitorUnavailableError)
    async def monitor_unavailable_handler(
        _request: Request,
        _exc: MonitorUnavailableError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="MONITOR_UNAVAILABLE",
                detail="Kubernetes client not available",
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to the error envelope."""
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_REQUEST_BODY", detail=first_msg).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
