"""Interface definitions for storage backend adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uploadhub.models.upload import FundingQuote, UploadResult


class Shutdownable(ABC):
    """Async shutdown interface for managed components."""

    @abstractmethod
    async def shutdown(self, timeout: float | None = None) -> None:
        """Release resources and stop background work."""
        raise NotImplementedError


class Uploader(Shutdownable, ABC):
    """Uniform contract over a content-addressed storage network.

    The gateway only ever sees this interface; vendor client types and
    response shapes stay inside the implementing plugin.
    """

    backend_name: str

    @abstractmethod
    async def upload(self, payload: bytes, content_type: str) -> UploadResult:
        """Store `payload` and return its CID and gateway URI.

        Implementations tag the blob with `content_type` where the backend
        supports metadata. Any backend failure raises UploadError; there is
        no retry.
        """
        raise NotImplementedError

    @abstractmethod
    async def fund(self, byte_count: int) -> FundingQuote:
        """Pay for storing `byte_count` bytes and return the price paid.

        Moves balance in the backend's payment system, so calling twice
        funds twice. Raises FundError on failure, or
        FundingNotSupportedError when the backend has no payment system.
        """
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        """Health check. Returns True if the backend is reachable."""
        raise NotImplementedError
