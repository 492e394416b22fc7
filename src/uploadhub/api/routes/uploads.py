"""Upload endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from uploadhub.api.dependencies import get_gateway_app, get_upload_metrics, get_uploader
from uploadhub.api.errors import APIErrorResponse
from uploadhub.api.payloads import read_upload_payload
from uploadhub.models.upload import UploadResult

if TYPE_CHECKING:
    from uploadhub.app import Application
    from uploadhub.interfaces import Uploader
    from uploadhub.metrics import UploadMetrics

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])

_UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"file": {"type": "string", "format": "binary"}},
                    "required": ["file"],
                }
            },
            "application/json": {"schema": {}},
        },
    }
}


@router.post(
    "/uploads",
    response_model=UploadResult,
    responses={
        400: {"model": APIErrorResponse},
        413: {"model": APIErrorResponse},
        502: {"model": APIErrorResponse},
    },
    openapi_extra=_UPLOAD_REQUEST_BODY,
)
async def create_upload(
    request: Request,
    app: Application = Depends(get_gateway_app),
    uploader: Uploader = Depends(get_uploader),
    metrics: UploadMetrics = Depends(get_upload_metrics),
) -> UploadResult:
    """Store one file (multipart) or one JSON document on the storage backend."""
    payload, content_type = await read_upload_payload(
        request,
        max_file_size=app.config.max_file_size,
    )

    with metrics.time_upload():
        result = await uploader.upload(payload, content_type)

    logger.info(
        "Upload completed",
        extra={"cid": result.cid, "bytes": len(payload), "content_type": content_type},
    )
    return result
