"""FastAPI dependency helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi import Depends, Request, status

from uploadhub.api.errors import APIError, APIErrorCode

if TYPE_CHECKING:
    from uploadhub.api.metrics_proxy import MetricsProxy
    from uploadhub.app import Application
    from uploadhub.interfaces import Uploader
    from uploadhub.metrics import UploadMetrics


async def get_gateway_app(request: Request) -> Application:
    """Get the Application instance from request state."""
    app = cast("Application | None", getattr(request.app.state, "uploadhub", None))
    if app is None:
        raise APIError(
            "Application not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=APIErrorCode.APP_NOT_INITIALIZED,
        )
    return app


async def get_uploader(app: Application = Depends(get_gateway_app)) -> Uploader:
    """The storage adapter shared by every request."""
    return app.uploader


async def get_upload_metrics(app: Application = Depends(get_gateway_app)) -> UploadMetrics:
    return app.metrics


async def get_metrics_proxy(app: Application = Depends(get_gateway_app)) -> MetricsProxy:
    return app.metrics_proxy
