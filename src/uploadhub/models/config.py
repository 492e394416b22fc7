"""Configuration models for the gateway and its storage backends."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_FILE_SIZE = 250 * 1024 * 1024


def _require_http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"must be an http(s) URL, got {value!r}")
    return value


class UploaderConfig(BaseModel):
    """Settings shared by every storage backend."""

    url: str
    gateway: str
    request_timeout_s: float = Field(default=60.0, gt=0)

    @field_validator("url", "gateway")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _require_http_url(value)


class BundlerUploaderConfig(UploaderConfig):
    """Pay-per-byte bundler node configuration.

    `key` arrives as the raw JSON text of the account credential and is
    parsed once here; it must be an object carrying an `api_key` member.
    """

    token: str = "arweave"
    key: dict[str, Any]

    @field_validator("key", mode="before")
    @classmethod
    def _parse_key(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"key is not valid JSON: {exc.msg}") from exc
        if not isinstance(value, dict):
            raise ValueError("key must be a JSON object")
        if not isinstance(value.get("api_key"), str) or not value["api_key"]:
            if "kty" in value:
                raise ValueError(
                    "key looks like a wallet JWK; wallet keys are not accepted, "
                    'set STORAGE_KEY to {"api_key": ...} issued by the bundler node'
                )
            raise ValueError("key must contain a non-empty 'api_key'")
        return value

    @field_validator("token")
    @classmethod
    def _normalize_token(cls, value: str) -> str:
        token = value.strip().lower()
        if not token:
            raise ValueError("token must not be empty")
        return token

    @property
    def api_key(self) -> str:
        return str(self.key["api_key"])


class W3upUploaderConfig(UploaderConfig):
    """Capability-based storage configuration.

    `proof` is the base64-encoded delegation archive granting upload
    capabilities on `space`; it is decoded once at startup.
    """

    key: str = Field(min_length=1)
    proof: bytes
    space: str | None = None

    @field_validator("proof", mode="before")
    @classmethod
    def _decode_proof(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("proof is required for the w3up backend")
        if isinstance(value, bytes):
            return value
        try:
            decoded = base64.b64decode(str(value), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("proof is not valid base64") from exc
        if not decoded:
            raise ValueError("proof must not be empty")
        return decoded

    @field_validator("space")
    @classmethod
    def _validate_space(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith("did:"):
            raise ValueError(f"space must be a DID, got {value!r}")
        return value

    @property
    def encoded_proof(self) -> str:
        return base64.b64encode(self.proof).decode("ascii")


class GatewayConfig(BaseSettings):
    """Environment-sourced gateway configuration, read once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    uploader_backend: str = "bundler"
    storage_key: str = Field(min_length=1)
    storage_proof: str | None = None
    storage_url: str
    storage_space: str | None = None
    payment_token: str = "arweave"
    gateway_url: str

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    metrics_host: str = "0.0.0.0"
    metrics_port: int = Field(default=9464, ge=1, le=65535)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)
    request_timeout_s: float = Field(default=60.0, gt=0)
    log_level: str = "INFO"

    @field_validator("uploader_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("storage_url", "gateway_url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _require_http_url(value)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return str(value).upper()

    @model_validator(mode="after")
    def _validate_ports(self) -> GatewayConfig:
        if self.port == self.metrics_port:
            raise ValueError("port and metrics_port must differ")
        return self

    def uploader_settings(self) -> dict[str, Any]:
        """Raw settings handed to the selected backend's config model."""
        return {
            "url": self.storage_url,
            "gateway": self.gateway_url,
            "request_timeout_s": self.request_timeout_s,
            "key": self.storage_key,
            "proof": self.storage_proof,
            "space": self.storage_space,
            "token": self.payment_token,
        }

    @property
    def metrics_scrape_url(self) -> str:
        host = "127.0.0.1" if self.metrics_host in ("0.0.0.0", "::", "") else self.metrics_host
        return f"http://{host}:{self.metrics_port}/metrics"
