"""API route registration."""

from __future__ import annotations

from fastapi import FastAPI

from uploadhub.api.routes import fund, health, metrics, uploads


def register_routes(app: FastAPI) -> None:
    """Register all API routers."""
    app.include_router(health.router)
    app.include_router(uploads.router)
    app.include_router(fund.router)
    app.include_router(metrics.router)
