"""Building a validated GatewayConfig from the environment or a mapping."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from uploadhub.models.config import GatewayConfig


class ConfigErrorCode(str, Enum):
    VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    BACKEND_UNKNOWN = "CONFIG_BACKEND_UNKNOWN"
    PLUGIN_CONFIG_INVALID = "CONFIG_PLUGIN_CONFIG_INVALID"
    UNKNOWN = "CONFIG_UNKNOWN"


class ConfigError(Exception):
    """Raised when the gateway cannot start with the configuration it was given.

    `code` is a stable `ConfigErrorCode` for scripts that wrap the CLI.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ConfigErrorCode = ConfigErrorCode.UNKNOWN,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.__cause__ = cause


def _build(factory: Callable[[], GatewayConfig]) -> GatewayConfig:
    try:
        config = factory()
    except ValidationError as exc:
        raise ConfigError(
            format_validation_error(exc), code=ConfigErrorCode.VALIDATION_FAILED, cause=exc
        ) from exc

    # validation imports ConfigError from this module.
    from uploadhub.config.validation import validate_config

    validate_config(config)
    return config


def load_config() -> GatewayConfig:
    """Read settings from process environment variables, falling back to `.env`.

    Raises:
        ConfigError: A required value is missing or malformed, or the
            selected backend rejects its settings
    """
    return _build(GatewayConfig)


def load_config_from_dict(data: Mapping[str, Any]) -> GatewayConfig:
    """Like `load_config`, but never consults the environment."""
    return _build(lambda: GatewayConfig.model_validate(dict(data)))


def format_validation_error(exc: ValidationError, prefix: str = "Config validation failed:") -> str:
    lines = [prefix]
    for err in exc.errors():
        where = " -> ".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  {where}: {err['msg']}")
    return "\n".join(lines)
