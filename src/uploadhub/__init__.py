"""uploadhub: HTTP gateway to content-addressed blob storage."""

__version__ = "0.1.0"

from uploadhub.errors import FundError, StorageError, UploadError
from uploadhub.models.upload import FundingQuote, UploadResult

__all__ = [
    "FundError",
    "FundingQuote",
    "StorageError",
    "UploadError",
    "UploadResult",
    "__version__",
]
