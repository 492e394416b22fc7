"""Configuration loading and validation."""

from uploadhub.config.loader import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
)
from uploadhub.config.validation import (
    validate_backend_name,
    validate_config,
    validate_uploader_config,
)

__all__ = [
    "ConfigError",
    "ConfigErrorCode",
    "load_config",
    "load_config_from_dict",
    "validate_backend_name",
    "validate_config",
    "validate_uploader_config",
]
