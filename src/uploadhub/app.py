"""Main application that wires the gateway together."""

from __future__ import annotations

import asyncio
import logging
import signal
import time

from uploadhub.api import APIServer, create_app
from uploadhub.api.metrics_proxy import MetricsProxy
from uploadhub.config import load_config
from uploadhub.interfaces import Uploader
from uploadhub.logging_setup import set_backend_name
from uploadhub.metrics import UploadMetrics
from uploadhub.models.config import GatewayConfig
from uploadhub.plugins.uploaders import load_uploader_plugin

logger = logging.getLogger(__name__)


class Application:
    """Owns the configuration, the storage adapter, metrics and the HTTP server.

    Components passed in explicitly are used as-is; anything left out is
    built from config when `run()` starts.
    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        uploader: Uploader | None = None,
        metrics: UploadMetrics | None = None,
        metrics_proxy: MetricsProxy | None = None,
    ) -> None:
        self._config = config
        self._uploader = uploader
        self._metrics = metrics or UploadMetrics()
        self._metrics_proxy = metrics_proxy
        self._api_server: APIServer | None = None
        self._exporter_started = False
        self._start_time: float | None = None

        # Shutdown state
        self._shutdown_event = asyncio.Event()
        self._shutdown_started = False

    async def run(self) -> None:
        """Run the gateway until SIGINT or SIGTERM.

        Raises:
            ConfigError: If configuration is missing or invalid
            OSError: If the metrics exporter cannot bind its port
        """
        logger.info("Starting uploadhub...")

        if self._config is None:
            self._config = load_config()
            logger.info("Config loaded from environment")

        try:
            await self._start_components()
        except Exception:
            await self.shutdown()
            raise

        self._setup_signal_handlers()
        self._start_time = time.time()
        logger.info("Gateway ready. Accepting uploads...")

        await self._shutdown_event.wait()
        await self.shutdown()

    async def _start_components(self) -> None:
        config = self.config

        if self._uploader is None:
            self._uploader = load_uploader_plugin(config)
        set_backend_name(self._uploader.backend_name)

        self._metrics.start_exporter(config.metrics_host, config.metrics_port)
        self._exporter_started = True
        if self._metrics_proxy is None:
            self._metrics_proxy = MetricsProxy(config.metrics_scrape_url)

        self._api_server = APIServer(
            app=create_app(self),
            host=config.host,
            port=config.port,
        )
        await self._api_server.start()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._shutdown_started:
            logger.warning("Shutdown already in progress, ignoring signal")
            return

        logger.info("Received signal %s, initiating shutdown...", sig.name)
        self._shutdown_started = True
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Graceful shutdown of all components."""
        logger.info("Shutting down uploadhub...")

        # Stop accepting requests before releasing the backend client.
        if self._api_server:
            await self._api_server.stop()
            self._api_server = None

        if self._uploader:
            await self._uploader.shutdown()

        if self._metrics_proxy:
            await self._metrics_proxy.close()

        if self._exporter_started:
            self._metrics.stop_exporter()
            self._exporter_started = False

        logger.info("Shutdown complete")

    @property
    def config(self) -> GatewayConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded")
        return self._config

    @property
    def uploader(self) -> Uploader:
        if self._uploader is None:
            raise RuntimeError("Uploader not initialized")
        return self._uploader

    @property
    def metrics(self) -> UploadMetrics:
        return self._metrics

    @property
    def metrics_proxy(self) -> MetricsProxy:
        if self._metrics_proxy is None:
            raise RuntimeError("Metrics proxy not initialized")
        return self._metrics_proxy

    @property
    def uptime_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return time.time() - self._start_time
