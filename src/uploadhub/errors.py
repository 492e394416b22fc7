"""Error hierarchy for upload and funding operations."""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for storage backend failures.

    Preserves the backend failure via exception chaining so handlers can log
    the full cause while returning a generic message to clients.
    """

    def __init__(self, message: str, operation: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.cause = cause
        self.__cause__ = cause  # Python's exception chaining


class UploadError(StorageError):
    """Backend rejected or failed an upload."""

    def __init__(self, backend: str, byte_count: int, cause: Exception) -> None:
        super().__init__(
            f"Upload of {byte_count} bytes failed (backend: {backend})",
            operation="upload",
            cause=cause,
        )
        self.backend = backend
        self.byte_count = byte_count


class FundError(StorageError):
    """Backend rejected a price query or funding request."""

    def __init__(
        self,
        backend: str,
        byte_count: int,
        cause: Exception | None = None,
        *,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"Funding for {byte_count} bytes failed (backend: {backend})",
            operation="fund",
            cause=cause,
        )
        self.backend = backend
        self.byte_count = byte_count


class FundingNotSupportedError(FundError):
    """Backend has no payment system to fund."""

    def __init__(self, backend: str, byte_count: int) -> None:
        super().__init__(
            backend,
            byte_count,
            message=f"Funding is not supported by backend: {backend}",
        )
