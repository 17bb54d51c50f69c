"""API models for promo code endpoints."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PromoValidateRequest(BaseModel):
    """Promo code check performed before checkout."""

    code: str = Field(..., min_length=1, examples=["MONSOON20"])
    trek_id: str | None = None
    order_value: Decimal = Field(..., ge=0, description="Order amount in INR")
