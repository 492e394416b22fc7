"""Reverse-proxied Prometheus scrape endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiohttp
from fastapi import APIRouter, Depends, Response, status

from uploadhub.api.dependencies import get_metrics_proxy
from uploadhub.api.errors import APIError, APIErrorCode

if TYPE_CHECKING:
    from uploadhub.api.metrics_proxy import MetricsProxy

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def get_metrics(proxy: MetricsProxy = Depends(get_metrics_proxy)) -> Response:
    """Relay the exporter's scrape page from the gateway port."""
    try:
        body, content_type = await proxy.fetch()
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.warning("Metrics exporter unreachable at %s: %s", proxy.scrape_url, exc)
        raise APIError(
            "Metrics exporter unavailable",
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code=APIErrorCode.METRICS_UNAVAILABLE,
        ) from exc
    return Response(content=body, media_type=content_type)
