"""Upload and funding result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UploadResult(BaseModel):
    """Result of a storage upload, returned once and never persisted."""

    model_config = ConfigDict(frozen=True)

    uri: str
    cid: str

    @classmethod
    def from_cid(cls, gateway: str, cid: str) -> UploadResult:
        """Build a result whose URI is the gateway base joined with the CID."""
        return cls(uri=f"{gateway.rstrip('/')}/{cid}", cid=cid)


class FundingQuote(BaseModel):
    """Price paid to store a number of bytes, in the backend's atomic unit."""

    price: int = Field(ge=0)
