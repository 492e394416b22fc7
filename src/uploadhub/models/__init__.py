"""uploadhub data models."""

from uploadhub.models.config import (
    BundlerUploaderConfig,
    GatewayConfig,
    UploaderConfig,
    W3upUploaderConfig,
)
from uploadhub.models.enums import UploaderBackend, UploadStatus
from uploadhub.models.upload import FundingQuote, UploadResult

__all__ = [
    "BundlerUploaderConfig",
    "FundingQuote",
    "GatewayConfig",
    "UploadResult",
    "UploadStatus",
    "UploaderBackend",
    "UploaderConfig",
    "W3upUploaderConfig",
]
