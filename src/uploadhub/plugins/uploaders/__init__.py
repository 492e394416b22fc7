"""Storage backend adapters."""

from __future__ import annotations

import logging

from uploadhub.interfaces import Uploader
from uploadhub.models.config import GatewayConfig
from uploadhub.plugins.registry import PluginType, load_plugin

logger = logging.getLogger(__name__)


def load_uploader_plugin(config: GatewayConfig) -> Uploader:
    """Create the configured storage backend adapter.

    Args:
        config: Validated gateway configuration

    Returns:
        Instantiated uploader, owning its backend client

    Raises:
        ValueError: If the backend is unknown
        ValidationError: If backend-specific settings are invalid
    """
    uploader = load_plugin(
        PluginType.UPLOADER,
        config.uploader_backend,
        config.uploader_settings(),
    )
    logger.info("Loaded uploader backend: %s", config.uploader_backend)
    return uploader


__all__ = ["load_uploader_plugin"]
