"""uploadhub FastAPI application."""

from uploadhub.api.server import APIServer, create_app, create_contract_app

__all__ = ["APIServer", "create_app", "create_contract_app"]
