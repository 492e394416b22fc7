"""Extract a single upload payload from a multipart or JSON request."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator

from fastapi import Request, status
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException, MultiPartParser

from uploadhub.api.errors import APIError, APIErrorCode, request_validation_error

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
JSON_CONTENT_TYPE = "application/json"
# Boundaries, part headers and small text fields on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _media_type(header: str | None) -> str:
    if not header:
        return ""
    return header.split(";", 1)[0].strip().lower()


def _payload_too_large(limit: int) -> APIError:
    return APIError(
        f"Payload exceeds the {limit} byte limit",
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        error_code=APIErrorCode.PAYLOAD_TOO_LARGE,
        extra={"max_file_size": limit},
    )


def _check_declared_length(request: Request, limit: int) -> None:
    raw = request.headers.get("content-length")
    if raw is None:
        return
    try:
        declared = int(raw)
    except ValueError:
        raise request_validation_error("Invalid Content-Length header") from None
    if declared > limit:
        raise _payload_too_large(limit)


async def read_upload_payload(request: Request, *, max_file_size: int) -> tuple[bytes, str]:
    """Return `(payload, content_type)` for an upload request.

    Accepts exactly one of:
        - multipart/form-data carrying exactly one file field
        - a JSON body (application/json or any +json type), re-serialized
          compactly and tagged application/json

    Raises:
        APIError: 400 for any other shape, 413 when over `max_file_size`
    """
    media_type = _media_type(request.headers.get("content-type"))

    if media_type == "multipart/form-data":
        if "boundary=" not in request.headers.get("content-type", "").lower():
            raise request_validation_error("Multipart body is missing its boundary")
        _check_declared_length(request, max_file_size + MULTIPART_OVERHEAD_BYTES)
        return await _read_multipart_file(request, max_file_size)

    if media_type == JSON_CONTENT_TYPE or media_type.endswith("+json"):
        _check_declared_length(request, max_file_size)
        return await _read_json_body(request, max_file_size)

    raise request_validation_error(
        "Expected multipart/form-data with one file or a JSON body",
        content_type=media_type or None,
    )


class _BodyLimitExceeded(MultiPartException):
    """Raised mid-stream; a MultiPartException so the parser closes its spooled files."""


async def _capped_body(request: Request, limit: int) -> AsyncGenerator[bytes, None]:
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise _BodyLimitExceeded(f"Request body exceeds {limit} bytes")
        yield chunk


async def _read_multipart_file(request: Request, max_file_size: int) -> tuple[bytes, str]:
    parser = MultiPartParser(
        request.headers, _capped_body(request, max_file_size + MULTIPART_OVERHEAD_BYTES)
    )
    try:
        form = await parser.parse()
    except _BodyLimitExceeded:
        raise _payload_too_large(max_file_size) from None
    except MultiPartException as exc:
        raise request_validation_error(f"Malformed multipart body: {exc.message}") from exc

    try:
        files = [value for _, value in form.multi_items() if isinstance(value, UploadFile)]
        if len(files) != 1:
            raise request_validation_error(
                "Expected exactly one file field",
                file_count=len(files),
            )

        upload = files[0]
        if upload.size is not None and upload.size > max_file_size:
            raise _payload_too_large(max_file_size)

        data = await upload.read()
        if len(data) > max_file_size:
            raise _payload_too_large(max_file_size)

        return data, upload.content_type or DEFAULT_CONTENT_TYPE
    finally:
        await form.close()


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not a valid JSON value")


async def _read_json_body(request: Request, max_file_size: int) -> tuple[bytes, str]:
    body = bytearray()
    try:
        async for chunk in _capped_body(request, max_file_size):
            body.extend(chunk)
    except _BodyLimitExceeded:
        raise _payload_too_large(max_file_size) from None

    # NaN/Infinity literals and numbers that overflow to inf are not JSON.
    try:
        parsed = json.loads(body, parse_constant=_reject_constant)
        payload = json.dumps(parsed, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except ValueError as exc:
        raise request_validation_error(f"Malformed JSON body: {exc}") from exc

    return payload.encode("utf-8"), JSON_CONTENT_TYPE
