"""Application bootstrap for kubemonitor.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config -> logging -> K8s client -> change monitor -> REST

Shutdown runs in reverse order. The change monitor performs its final flush
during shutdown. A missing cluster connection is not fatal: the REST API
still starts and monitor-backed routes report 503.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from kubemonitor.config import load_config
from kubemonitor.models.config import MonitorConfig
from kubemonitor.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from kubemonitor.collector.client import KubernetesClusterClient
    from kubemonitor.monitor import ChangeMonitor

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class KubeMonitorApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self, config: MonitorConfig | None = None) -> None:
        self.config: MonitorConfig | None = config

        self._k8s_client: KubernetesClusterClient | None = None
        self._monitor: ChangeMonitor | None = None
        self._rest_server: object | None = None

        # Background tasks that must be cancelled on shutdown
        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def monitor(self) -> ChangeMonitor | None:
        return self._monitor

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self, serve_rest: bool = True) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            try:
                self.config = load_config()
            except (OSError, ValueError) as exc:
                raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("kubemonitor starting", version=_kubemonitor_version())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Change monitor -------------------------------------------
        await self._start_monitor()

        # --- 5. REST API -------------------------------------------------
        if serve_rest:
            await self._start_rest()

        self._running = True
        self._log.info("kubemonitor started", port=self.config.api.port)

    async def _start_k8s_client(self) -> None:
        """Initialise kubernetes-asyncio from in-cluster config or kubeconfig.

        Non-fatal: without a cluster the app runs in degraded mode.
        """
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

            from kubemonitor.collector.client import KubernetesClusterClient

            try:
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            self._k8s_client = KubernetesClusterClient()
        except Exception as exc:
            self._log.warning(
                "k8s client unavailable; monitoring disabled",
                error=str(exc),
            )
            self._k8s_client = None

    async def _start_monitor(self) -> None:
        """Build the change monitor and start its watch loops."""
        assert self._log is not None
        assert self.config is not None
        if self._k8s_client is None:
            self._log.info("change monitor skipped (no k8s client)")
            return
        self._log.debug("starting change monitor")
        try:
            from kubemonitor.monitor import ChangeMonitor

            monitor = ChangeMonitor(self._k8s_client, self.config)
            await monitor.start()
            self._monitor = monitor
            self._log.info(
                "change monitor started",
                persistence=self.config.persistence.enabled,
                auto_save=self.config.persistence.auto_save,
            )
        except Exception as exc:
            raise _ComponentError("monitor", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from kubemonitor.api import create_app

            fastapi_app = create_app(monitor=self._monitor, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("kubemonitor shutting down")

        self._running = False

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()
        self._rest_server = None

        if self._monitor is not None:
            try:
                await asyncio.wait_for(self._monitor.stop(), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("component stop timed out", component="monitor", timeout=_SHUTDOWN_GRACE_SECONDS)
            except Exception as exc:
                log.error("component stop raised an error", component="monitor", error=str(exc))
            self._monitor = None

        if self._k8s_client is not None:
            await self._k8s_client.close()
            self._k8s_client = None

        log.info("kubemonitor stopped")


def _kubemonitor_version() -> str:
    from kubemonitor import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = KubeMonitorApp()
    loop = asyncio.get_running_loop()

    # The handler only records the request; shutdown itself is awaited below
    # so the monitor's final flush completes before main() returns.
    shutdown_requested = asyncio.Event()
    signals = (signal.SIGTERM, signal.SIGINT)
    for sig in signals:
        loop.add_signal_handler(sig, shutdown_requested.set)

    try:
        await app.start()
        await shutdown_requested.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        raise SystemExit(1) from exc
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        await app.stop()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())
