"""Mock implementations for testing."""

from tests.uploadhub.mocks.metrics_proxy import StubMetricsProxy
from tests.uploadhub.mocks.settings import (
    BUNDLER_KEY,
    GATEWAY_URL,
    W3UP_PROOF,
    gateway_settings,
)
from tests.uploadhub.mocks.uploader import MockUploader

__all__ = [
    "BUNDLER_KEY",
    "GATEWAY_URL",
    "MockUploader",
    "StubMetricsProxy",
    "W3UP_PROOF",
    "gateway_settings",
]
