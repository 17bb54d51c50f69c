"""Shared API request/response models.

Domain models (Booking, Trek, PromoCode, ...) live in trek_shared.models and
are returned directly where they fit. This module holds HTTP-layer concerns
only.
"""

from math import ceil

from pydantic import BaseModel, ConfigDict, Field

# Re-export ToolError for convenience - this is the standard error format
from trek_shared.models.errors import ErrorCode, ToolError

__all__ = [
    "ErrorCode",
    "ToolError",
    "Pagination",
    "SuccessMessage",
]


class Pagination(BaseModel):
    """Page metadata for list endpoints."""

    model_config = ConfigDict(strict=True)

    total: int = Field(..., ge=0, description="Items matching the filters")
    page: int = Field(..., ge=1)
    pages: int = Field(..., ge=0, description="Number of pages")
    limit: int = Field(..., ge=1)

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, pages=ceil(total / limit), limit=limit)


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload.

    Used for DELETE operations.
    """

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )
