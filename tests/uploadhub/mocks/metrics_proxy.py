"""Stand-in for the metrics exporter proxy."""

from __future__ import annotations

EXPORTER_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class StubMetricsProxy:
    """Returns a canned scrape page, or raises the configured error."""

    def __init__(
        self,
        body: bytes = b"# HELP up Exporter up\n# TYPE up gauge\nup 1.0\n",
        *,
        error: Exception | None = None,
    ) -> None:
        self.scrape_url = "http://127.0.0.1:9464/metrics"
        self.body = body
        self.error = error
        self.fetch_count = 0
        self.closed = False

    async def fetch(self) -> tuple[bytes, str]:
        self.fetch_count += 1
        if self.error is not None:
            raise self.error
        return self.body, EXPORTER_CONTENT_TYPE

    async def close(self) -> None:
        self.closed = True
