"""Backend-specific configuration validation."""

from __future__ import annotations

from pydantic import BaseModel, ValidationError

from uploadhub.config.loader import ConfigError, ConfigErrorCode, format_validation_error
from uploadhub.models.config import GatewayConfig
from uploadhub.plugins.registry import PluginType, get_plugin_names, validate_plugin


def validate_backend_name(config: GatewayConfig, valid_backends: list[str]) -> None:
    """Validate that the configured backend is registered.

    Raises:
        ConfigError: If the backend name is not recognized
    """
    valid = {name.lower() for name in valid_backends}
    if config.uploader_backend not in valid:
        raise ConfigError(
            f"Unknown uploader backend: {config.uploader_backend} (valid: {sorted(valid)})",
            code=ConfigErrorCode.BACKEND_UNKNOWN,
        )


def validate_uploader_config(config: GatewayConfig) -> BaseModel:
    """Validate the selected backend's settings without creating a client.

    Raises:
        ConfigError: If the backend rejects its settings (bad key, proof, URL)
    """
    try:
        return validate_plugin(
            PluginType.UPLOADER,
            config.uploader_backend,
            config.uploader_settings(),
        )
    except ValidationError as e:
        raise ConfigError(
            format_validation_error(
                e, prefix=f"Invalid settings for uploader backend '{config.uploader_backend}':"
            ),
            code=ConfigErrorCode.PLUGIN_CONFIG_INVALID,
            cause=e,
        ) from e


def validate_config(config: GatewayConfig) -> None:
    """Run all post-parse validation checks."""
    from uploadhub.plugins import discover_all_plugins

    discover_all_plugins()
    validate_backend_name(config, get_plugin_names(PluginType.UPLOADER))
    validate_uploader_config(config)
