"""Centralized enums for type safety and IDE support."""

from enum import StrEnum


class UploadStatus(StrEnum):
    """Outcome label recorded for every upload attempt."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UploaderBackend(StrEnum):
    """Built-in storage backends."""

    BUNDLER = "bundler"
    W3UP = "w3up"
