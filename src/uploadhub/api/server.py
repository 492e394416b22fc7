"""FastAPI app factory and the uvicorn server that hosts it."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, Any, cast

import uvicorn
from fastapi import FastAPI

from uploadhub import __version__
from uploadhub.api.errors import register_exception_handlers
from uploadhub.api.routes import register_routes

if TYPE_CHECKING:
    from uploadhub.app import Application

logger = logging.getLogger(__name__)

_STARTUP_POLL_S = 0.01


def create_contract_app() -> FastAPI:
    """Routes and error handlers only; no Application is attached.

    Used for schema export and for probing `/health` in isolation.
    """
    app = FastAPI(
        title="uploadhub",
        description="Upload files and JSON documents to content-addressed storage.",
        version=__version__,
    )
    register_exception_handlers(app)
    register_routes(app)
    return app


def create_app(app_instance: Application) -> FastAPI:
    app = create_contract_app()
    app.state.uploadhub = app_instance
    return app


class APIServer:
    """Runs uvicorn as a background task of the current event loop.

    Signal handling stays with the Application, so uvicorn's own handlers
    are disabled. `start()` returns only once the socket is listening.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str,
        port: int,
        *,
        startup_timeout_s: float = 5.0,
    ) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._startup_timeout_s = startup_timeout_s
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def address(self) -> str:
        return f"http://{self._host}:{self._port}"

    async def start(self) -> None:
        """Serve in the background.

        Raises:
            TimeoutError: If uvicorn does not report startup in time
            Exception: Whatever uvicorn raised while binding
        """
        if self._task is not None:
            return

        server = uvicorn.Server(
            uvicorn.Config(
                self._app,
                host=self._host,
                port=self._port,
                loop="asyncio",
                log_config=None,
                access_log=False,
            )
        )
        cast(Any, server).install_signal_handlers = False
        self._server = server
        self._task = asyncio.create_task(server.serve())

        try:
            await self._await_listening()
        except Exception:
            await self._abandon()
            raise

        logger.info("API server listening on %s", self.address)

    async def _await_listening(self) -> None:
        if self._server is None or self._task is None:
            raise RuntimeError("API server task not initialized")

        deadline = asyncio.get_running_loop().time() + self._startup_timeout_s
        while not self._server.started:
            if self._task.done():
                # Re-raises the bind error, if any.
                self._task.result()
                raise RuntimeError(f"API server on {self.address} exited during startup")
            if asyncio.get_running_loop().time() >= deadline:
                raise TimeoutError(f"Timed out waiting for API server on {self.address}")
            await asyncio.sleep(_STARTUP_POLL_S)

    async def _abandon(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._task is not None:
            with suppress(Exception):
                await self._task
        self._server = None
        self._task = None

    async def stop(self) -> None:
        """Ask uvicorn to exit and wait for in-flight requests to finish."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        except Exception:
            logger.exception("API server stopped with error")
        self._server = None
        self._task = None
        logger.info("API server stopped")
