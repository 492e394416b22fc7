"""aiohttp helpers shared by the backend clients."""

from __future__ import annotations

import logging

import aiohttp

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY = 512


class BackendResponseError(RuntimeError):
    """Backend answered with a non-success status or an unexpected body."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class HttpBackendClient:
    """Lazily-created shared aiohttp session with a total request timeout."""

    def __init__(self, base_url: str, *, timeout_s: float) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Lazy-create aiohttp session with timeout."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


async def raise_for_backend_status(resp: aiohttp.ClientResponse, operation: str) -> None:
    """Raise BackendResponseError for any non-2xx response."""
    if 200 <= resp.status < 300:
        return
    body = await resp.text()
    raise BackendResponseError(
        f"{operation} failed with HTTP {resp.status}: {body[:_MAX_ERROR_BODY]}",
        status=resp.status,
    )


async def read_json_object(resp: aiohttp.ClientResponse, operation: str) -> dict[str, object]:
    """Decode a JSON object body regardless of the declared content type."""
    data = await resp.json(content_type=None)
    if not isinstance(data, dict):
        raise BackendResponseError(f"{operation} response is not a JSON object")
    return data
