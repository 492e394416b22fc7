"""Health and diagnostics endpoints."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from uploadhub.api.dependencies import get_gateway_app, get_uploader

if TYPE_CHECKING:
    from uploadhub.app import Application
    from uploadhub.interfaces import Uploader

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str


class BackendStatus(BaseModel):
    name: str
    status: str
    latency_ms: float | None = None


class DiagnosticsResponse(BaseModel):
    status: str
    uptime_seconds: float
    backend: BackendStatus


@router.get("/health", response_model=HealthResponse)
async def get_health() -> HealthResponse:
    """Liveness probe; never consults the storage backend."""
    return HealthResponse(status="ok")


@router.get("/diagnostics", response_model=DiagnosticsResponse)
async def get_diagnostics(
    app: Application = Depends(get_gateway_app),
    uploader: Uploader = Depends(get_uploader),
) -> DiagnosticsResponse:
    """Backend reachability for operators."""
    start = time.perf_counter()
    ok = await uploader.ping()
    latency_ms = (time.perf_counter() - start) * 1000

    backend = BackendStatus(
        name=uploader.backend_name,
        status="ok" if ok else "unreachable",
        latency_ms=round(latency_ms, 3),
    )
    return DiagnosticsResponse(
        status="healthy" if ok else "degraded",
        uptime_seconds=app.uptime_seconds,
        backend=backend,
    )
