"""Tests for APIServer lifecycle behavior."""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI

from uploadhub.api.server import APIServer


class _RunningServer:
    created: list[_RunningServer] = []

    def __init__(self, config: object) -> None:
        self.config = config
        self.started = False
        self.should_exit = False
        self.install_signal_handlers = True
        _RunningServer.created.append(self)

    async def serve(self) -> None:
        self.started = True
        while not self.should_exit:
            await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_api_server_start_and_stop_waits_for_started(monkeypatch: pytest.MonkeyPatch) -> None:
    """APIServer should wait for startup and stop cleanly."""
    # Given: uvicorn.Server is replaced with a controllable fake
    _RunningServer.created = []
    monkeypatch.setattr("uploadhub.api.server.uvicorn.Server", _RunningServer)
    server = APIServer(FastAPI(), host="127.0.0.1", port=8123, startup_timeout_s=0.2)

    # When: Starting twice and stopping
    await server.start()
    await server.start()
    await server.stop()

    # Then: Only one server ran, it started, and exit was requested
    assert len(_RunningServer.created) == 1
    assert _RunningServer.created[0].started is True
    assert _RunningServer.created[0].should_exit is True
    assert _RunningServer.created[0].install_signal_handlers is False


@pytest.mark.asyncio
async def test_api_server_start_raises_when_bind_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    """Startup failures surface to the caller instead of being swallowed."""

    class _FailingServer(_RunningServer):
        async def serve(self) -> None:
            raise OSError("address already in use")

    # Given: uvicorn.Server fails immediately during startup
    monkeypatch.setattr("uploadhub.api.server.uvicorn.Server", _FailingServer)
    server = APIServer(FastAPI(), host="127.0.0.1", port=8124, startup_timeout_s=0.2)

    # When/Then: Starting raises the bind error
    with pytest.raises(OSError, match="address already in use"):
        await server.start()

    # Then: Stop remains a no-op after failed startup
    await server.stop()


@pytest.mark.asyncio
async def test_api_server_start_times_out_when_started_flag_never_set(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class _HangingServer(_RunningServer):
        async def serve(self) -> None:
            while not self.should_exit:
                await asyncio.sleep(0)

    monkeypatch.setattr("uploadhub.api.server.uvicorn.Server", _HangingServer)
    server = APIServer(FastAPI(), host="127.0.0.1", port=8125, startup_timeout_s=0.05)

    with pytest.raises(TimeoutError, match="Timed out waiting"):
        await server.start()
