"""Funding endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Path

from uploadhub.api.dependencies import get_uploader
from uploadhub.api.errors import APIErrorResponse
from uploadhub.models.upload import FundingQuote

if TYPE_CHECKING:
    from uploadhub.interfaces import Uploader

logger = logging.getLogger(__name__)

router = APIRouter(tags=["funding"])


@router.post(
    "/fund/{bytes}",
    response_model=FundingQuote,
    responses={
        400: {"model": APIErrorResponse},
        501: {"model": APIErrorResponse},
        502: {"model": APIErrorResponse},
    },
)
async def fund_storage(
    bytes: Annotated[int, Path(gt=0, description="Number of bytes to pay for")],  # noqa: A002
    uploader: Uploader = Depends(get_uploader),
) -> FundingQuote:
    """Quote the price for storing `bytes` bytes and pay it.

    Not idempotent: every call moves balance on the backend.
    """
    quote = await uploader.fund(bytes)
    logger.info("Funding completed", extra={"bytes": bytes, "price": quote.price})
    return quote
