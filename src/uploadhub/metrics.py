"""Upload latency metrics and the Prometheus scrape exporter."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from wsgiref.simple_server import WSGIServer

from prometheus_client import CollectorRegistry, Histogram, start_http_server

from uploadhub.models.enums import UploadStatus

logger = logging.getLogger(__name__)

METER_NAME = "hub_uploads"
UPLOAD_TIME_BUCKETS_MS = (100.0, 200.0, 400.0, 800.0, 1600.0)


class UploadMetrics:
    """Records upload durations in milliseconds, labelled by outcome.

    Each instance owns its registry so tests and embedded apps never collide
    with the process-wide default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.file_upload_time = Histogram(
            f"{METER_NAME}_file_upload_time",
            "Time for file upload",
            ["status"],
            unit="ms",
            buckets=UPLOAD_TIME_BUCKETS_MS,
            registry=self.registry,
        )
        self._server: WSGIServer | None = None
        self._thread: threading.Thread | None = None

    def observe_upload(self, status: UploadStatus, duration_ms: float) -> None:
        self.file_upload_time.labels(status=status.value).observe(duration_ms)

    @contextmanager
    def time_upload(self) -> Iterator[None]:
        """Record exactly one observation for the wrapped upload.

        The status is COMPLETED when the block exits normally and FAILED when
        it raises; the exception always propagates.
        """
        start = time.perf_counter()
        status = UploadStatus.FAILED
        try:
            yield
            status = UploadStatus.COMPLETED
        finally:
            self.observe_upload(status, (time.perf_counter() - start) * 1000)

    def start_exporter(self, host: str, port: int) -> None:
        """Serve the registry on a separate port for scraping."""
        if self._server is not None:
            return
        self._server, self._thread = start_http_server(port, addr=host, registry=self.registry)
        logger.info("Metrics exporter started: http://%s:%d/metrics", host, port)

    def stop_exporter(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None
        logger.info("Metrics exporter stopped")
