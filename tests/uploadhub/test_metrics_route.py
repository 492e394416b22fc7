"""Tests for the proxied metrics endpoint and the exporter proxy."""

from __future__ import annotations

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from fastapi.testclient import TestClient
from prometheus_client import generate_latest

from uploadhub.api.metrics_proxy import MetricsProxy
from uploadhub.metrics import UploadMetrics
from uploadhub.models.enums import UploadStatus
from tests.uploadhub.mocks import StubMetricsProxy


def test_metrics_route_relays_exporter_page(
    client: TestClient, metrics_proxy: StubMetricsProxy
) -> None:
    # When: Scraping the gateway port
    response = client.get("/metrics")

    # Then: The exporter body and content type are relayed unchanged
    assert response.status_code == 200
    assert response.content == metrics_proxy.body
    assert response.headers["content-type"].startswith("text/plain")
    assert metrics_proxy.fetch_count == 1


def test_metrics_route_reports_unreachable_exporter(
    client: TestClient, metrics_proxy: StubMetricsProxy
) -> None:
    # Given: An exporter that refuses connections
    metrics_proxy.error = aiohttp.ClientConnectionError("connection refused")

    # When: Scraping
    response = client.get("/metrics")

    # Then: 502 with the canonical code
    assert response.status_code == 502
    assert response.json()["error_code"] == "METRICS_UNAVAILABLE"


def test_metrics_route_is_hidden_from_openapi(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    assert "/metrics" not in schema["paths"]


@pytest.mark.asyncio
async def test_metrics_proxy_fetches_exporter_output() -> None:
    """The proxy returns the exporter's rendered registry."""
    # Given: An exporter-like server rendering a registry with one observation
    metrics = UploadMetrics()
    metrics.observe_upload(UploadStatus.COMPLETED, 150.0)

    async def _scrape(request: web.Request) -> web.Response:
        _ = request
        return web.Response(
            body=generate_latest(metrics.registry), content_type="text/plain", charset="utf-8"
        )

    exporter = web.Application()
    exporter.router.add_get("/metrics", _scrape)

    async with TestServer(exporter) as server:
        proxy = MetricsProxy(str(server.make_url("/metrics")))
        try:
            # When: Fetching through the proxy
            body, content_type = await proxy.fetch()
        finally:
            await proxy.close()

    # Then: The histogram is present in the relayed page
    assert b'hub_uploads_file_upload_time_ms_count{status="COMPLETED"} 1.0' in body
    assert content_type.startswith("text/plain")


@pytest.mark.asyncio
async def test_metrics_proxy_raises_on_exporter_error() -> None:
    # Given: An exporter answering 500
    async def _broken(request: web.Request) -> web.Response:
        _ = request
        return web.Response(status=500)

    exporter = web.Application()
    exporter.router.add_get("/metrics", _broken)

    async with TestServer(exporter) as server:
        proxy = MetricsProxy(str(server.make_url("/metrics")))
        try:
            # When/Then: Fetching raises a client error
            with pytest.raises(aiohttp.ClientResponseError):
                await proxy.fetch()
        finally:
            await proxy.close()
