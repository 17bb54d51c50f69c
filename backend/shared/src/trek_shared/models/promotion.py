"""Promo code and offer models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import Money, UTCDateTime
from .enums import DiscountType


class PromoCode(BaseModel):
    """A code users type at checkout for a discount."""

    model_config = ConfigDict(strict=False)

    promo_id: str
    code: str = Field(..., description="Upper-case unique code", examples=["MONSOON20"])
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    max_uses: int | None = Field(default=None, ge=1, description="None means unlimited")
    used_count: int = Field(default=0, ge=0)
    valid_from: UTCDateTime
    valid_until: UTCDateTime
    min_order_value: Money = Decimal("0")
    applicable_treks: list[str] = Field(
        default_factory=list, description="Trek IDs; empty means every trek"
    )
    is_active: bool = True
    created_by: str | None = None
    created_at: UTCDateTime


class PromoCodeCreate(BaseModel):
    """Data required to create a promo code."""

    code: str = Field(..., min_length=3, max_length=32)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: UTCDateTime
    valid_until: UTCDateTime
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)
    applicable_treks: list[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def check_window(self) -> "PromoCodeCreate":
        if self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class PromoCodeUpdate(BaseModel):
    """Promo code fields that can be changed. The code itself is immutable."""

    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: UTCDateTime | None = None
    valid_until: UTCDateTime | None = None
    min_order_value: Decimal | None = Field(default=None, ge=0)
    applicable_treks: list[str] | None = None
    is_active: bool | None = None


class PromoValidation(BaseModel):
    """Outcome of validating a promo code against an order."""

    code: str
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Money
    final_price: Money


class Offer(BaseModel):
    """A time-boxed discount applied automatically to selected treks."""

    model_config = ConfigDict(strict=False)

    offer_id: str
    name: str
    description: str
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    start_date: UTCDateTime
    end_date: UTCDateTime
    applicable_treks: list[str] = Field(..., min_length=1)
    is_active: bool = True
    created_by: str | None = None
    created_at: UTCDateTime

    def is_active_at(self, now: datetime) -> bool:
        """Whether the offer applies at the given instant."""
        return self.is_active and self.start_date <= now <= self.end_date


class OfferCreate(BaseModel):
    """Data required to create an offer."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    start_date: UTCDateTime
    end_date: UTCDateTime
    applicable_treks: list[str] = Field(..., min_length=1)
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self) -> "OfferCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class OfferUpdate(BaseModel):
    """Offer fields that can be changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, ge=0)
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    applicable_treks: list[str] | None = Field(default=None, min_length=1)
    is_active: bool | None = None
