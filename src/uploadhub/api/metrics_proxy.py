"""Reverse proxy to the local Prometheus exporter."""

from __future__ import annotations

import logging

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class MetricsProxy:
    """Fetches the exporter's scrape page so it can be served from the gateway port."""

    def __init__(self, scrape_url: str, *, timeout_s: float = 5.0) -> None:
        self.scrape_url = scrape_url
        self.timeout_s = timeout_s
        self._session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Lazy-create aiohttp session with timeout."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def fetch(self) -> tuple[bytes, str]:
        """Return the exporter's body and content type.

        Raises:
            aiohttp.ClientError: If the exporter is unreachable or errors
            TimeoutError: If the exporter does not answer in time
        """
        session = await self._ensure_session()
        async with session.get(self.scrape_url) as resp:
            resp.raise_for_status()
            body = await resp.read()
            content_type = resp.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)
        return body, content_type

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
