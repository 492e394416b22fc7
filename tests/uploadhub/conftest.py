"""Shared pytest fixtures for uploadhub tests."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest
from fastapi.testclient import TestClient

from uploadhub.api.server import create_app
from uploadhub.app import Application
from uploadhub.config import load_config_from_dict
from uploadhub.metrics import UploadMetrics
from uploadhub.models.config import GatewayConfig
from tests.uploadhub.mocks import GATEWAY_URL, MockUploader, StubMetricsProxy, gateway_settings


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return load_config_from_dict(gateway_settings())


@pytest.fixture
def mock_uploader() -> MockUploader:
    return MockUploader(gateway=GATEWAY_URL)


@pytest.fixture
def upload_metrics() -> UploadMetrics:
    return UploadMetrics()


@pytest.fixture
def metrics_proxy() -> StubMetricsProxy:
    return StubMetricsProxy()


@pytest.fixture
def make_client(
    gateway_config: GatewayConfig,
    mock_uploader: MockUploader,
    upload_metrics: UploadMetrics,
    metrics_proxy: StubMetricsProxy,
) -> Callable[..., TestClient]:
    """Build a TestClient around an Application with injected components."""

    def _make(config: GatewayConfig | None = None, **kwargs: Any) -> TestClient:
        app = Application(
            config or gateway_config,
            uploader=mock_uploader,
            metrics=upload_metrics,
            metrics_proxy=metrics_proxy,  # type: ignore[arg-type]
        )
        return TestClient(create_app(app), **kwargs)

    return _make


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()
