"""Error envelope shared by every non-2xx response.

Bodies always look like `{"detail": str, "error_code": str, ...extra}`.
Backend failure text is logged here and never echoed to clients.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from uploadhub.errors import FundError, FundingNotSupportedError, UploadError

logger = logging.getLogger(__name__)


class APIErrorCode(StrEnum):
    """Stable API error codes for non-2xx responses."""

    APP_NOT_INITIALIZED = "APP_NOT_INITIALIZED"
    REQUEST_VALIDATION_FAILED = "REQUEST_VALIDATION_FAILED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    FUND_FAILED = "FUND_FAILED"
    FUND_NOT_SUPPORTED = "FUND_NOT_SUPPORTED"
    METRICS_UNAVAILABLE = "METRICS_UNAVAILABLE"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


_CODE_BY_STATUS: dict[int, APIErrorCode] = {
    status.HTTP_400_BAD_REQUEST: APIErrorCode.BAD_REQUEST,
    status.HTTP_404_NOT_FOUND: APIErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: APIErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: APIErrorCode.PAYLOAD_TOO_LARGE,
    status.HTTP_503_SERVICE_UNAVAILABLE: APIErrorCode.SERVICE_UNAVAILABLE,
}


class APIErrorResponse(BaseModel):
    """Error body as documented in the OpenAPI schema."""

    detail: str
    error_code: str


class APIError(RuntimeError):
    """Raised by routes to produce a specific status and error code."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int,
        error_code: str | APIErrorCode,
        extra: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.error_code = str(error_code)
        self.extra = extra
        self.headers = headers


def request_validation_error(detail: str, **extra: Any) -> APIError:
    """The 400 raised when a request body has the wrong shape."""
    return APIError(
        detail,
        status_code=status.HTTP_400_BAD_REQUEST,
        error_code=APIErrorCode.REQUEST_VALIDATION_FAILED,
        extra=extra or None,
    )


def error_response(
    status_code: int,
    detail: str,
    error_code: str | APIErrorCode,
    *,
    extra: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    body = APIErrorResponse(detail=detail, error_code=str(error_code)).model_dump(mode="json")
    if extra:
        body.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers=dict(headers) if headers is not None else None,
    )


def _from_http_exception(exc: StarletteHTTPException) -> JSONResponse:
    error_code = str(_CODE_BY_STATUS.get(exc.status_code, APIErrorCode.HTTP_ERROR))
    detail: object = exc.detail
    extra: dict[str, Any] | None = None

    # Routes may pass {"detail": ..., "error_code": ..., **extra} as the detail.
    if isinstance(detail, dict):
        fields = dict(detail)
        error_code = str(fields.pop("error_code", error_code))
        detail = fields.pop("detail", "Request failed")
        extra = fields or None

    return error_response(
        exc.status_code,
        str(detail) if detail is not None else "Request failed",
        error_code,
        extra=extra,
        headers=exc.headers,
    )


def _log_backend_failure(request: Request, exc: UploadError | FundError) -> None:
    logger.error(
        "%s failed for path=%s: %s",
        exc.operation.capitalize(),
        request.url.path,
        exc.cause,
        exc_info=exc.cause,
        extra={"backend": exc.backend, "bytes": exc.byte_count},
    )


def _validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # `ctx` can hold exception instances and `input` echoes client data.
    return [
        {key: value for key, value in err.items() if key not in ("ctx", "input")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers mapping every failure onto the error envelope."""

    @app.exception_handler(APIError)
    async def _api_error(request: Request, exc: APIError) -> JSONResponse:
        _ = request
        return error_response(
            exc.status_code, str(exc), exc.error_code, extra=exc.extra, headers=exc.headers
        )

    @app.exception_handler(UploadError)
    async def _upload_error(request: Request, exc: UploadError) -> JSONResponse:
        _log_backend_failure(request, exc)
        return error_response(
            status.HTTP_502_BAD_GATEWAY, "Upload failed", APIErrorCode.UPLOAD_FAILED
        )

    @app.exception_handler(FundError)
    async def _fund_error(request: Request, exc: FundError) -> JSONResponse:
        if isinstance(exc, FundingNotSupportedError):
            return error_response(
                status.HTTP_501_NOT_IMPLEMENTED, str(exc), APIErrorCode.FUND_NOT_SUPPORTED
            )
        _log_backend_failure(request, exc)
        return error_response(
            status.HTTP_502_BAD_GATEWAY, "Funding failed", APIErrorCode.FUND_FAILED
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Request validation failed",
            APIErrorCode.REQUEST_VALIDATION_FAILED,
            extra={"validation_errors": _validation_errors(exc)},
        )

    # fastapi.HTTPException subclasses Starlette's, so one handler covers both.
    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        _ = request
        return _from_http_exception(exc)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled API exception for path=%s", request.url.path, exc_info=exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            APIErrorCode.INTERNAL_SERVER_ERROR,
        )
