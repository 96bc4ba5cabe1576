"""Tests for the application entrypoint's signal-driven shutdown."""

from __future__ import annotations

import asyncio
import os
import signal

import pytest

from kubemonitor import app as app_module
from kubemonitor.app import KubeMonitorApp, main
from kubemonitor.observability.logging import get_logger


class _SlowMonitor:
    """Monitor stand-in whose stop (and final flush) takes a while."""

    def __init__(self) -> None:
        self.stopped: list[bool] = []

    async def stop(self) -> None:
        await asyncio.sleep(0.3)
        self.stopped.append(True)


async def _slow_rest_server() -> None:
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        await asyncio.sleep(0.3)
        raise


class TestSignalShutdown:
    async def test_sigterm_waits_for_monitor_stop(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monitor = _SlowMonitor()

        async def _fake_start(self: KubeMonitorApp, serve_rest: bool = True) -> None:
            self._log = get_logger("app")
            self._monitor = monitor  # type: ignore[assignment]
            self._background_tasks.append(asyncio.create_task(_slow_rest_server(), name="rest-server"))
            self._running = True

        monkeypatch.setattr(KubeMonitorApp, "start", _fake_start)

        loop = asyncio.get_running_loop()
        loop.call_later(0.1, os.kill, os.getpid(), signal.SIGTERM)

        await asyncio.wait_for(main(), timeout=5)

        assert monitor.stopped == [True]

    async def test_startup_failure_exits_with_status_one(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def _failing_start(self: KubeMonitorApp, serve_rest: bool = True) -> None:
            raise app_module._ComponentError("config", ValueError("bad level"))

        monkeypatch.setattr(KubeMonitorApp, "start", _failing_start)

        with pytest.raises(SystemExit) as excinfo:
            await main()

        assert excinfo.value.code == 1
