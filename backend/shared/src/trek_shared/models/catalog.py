"""Catalog models: regions, treks and their scheduled batches."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Money, UTCDateTime
from .enums import BatchStatus


class Region(BaseModel):
    """A geographic grouping of treks."""

    model_config = ConfigDict(strict=False)

    region_id: str
    name: str = Field(..., min_length=1)
    slug: str
    description: str | None = None
    is_enabled: bool = True
    created_at: UTCDateTime


class Batch(BaseModel):
    """A scheduled departure of a trek with its own price and capacity."""

    model_config = ConfigDict(strict=False)

    batch_id: str
    start_date: UTCDateTime = Field(..., description="Departure (UTC)")
    end_date: UTCDateTime
    price: Money = Field(..., ge=0, description="Price per participant in INR")
    max_participants: int = Field(..., ge=1)
    current_participants: int = Field(default=0, ge=0)
    status: BatchStatus = BatchStatus.UPCOMING
    is_active: bool = True

    @property
    def available_slots(self) -> int:
        """Seats still open in this batch."""
        return max(0, self.max_participants - self.current_participants)


class PartialPaymentSettings(BaseModel):
    """Whether and how a trek can be paid in two instalments.

    The advance is either a fixed amount per participant or a percentage of
    the total.
    """

    model_config = ConfigDict(strict=False)

    enabled: bool = False
    advance_amount: Money | None = Field(default=None, ge=0)
    advance_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    final_payment_days_before: int = Field(default=7, ge=0)
    auto_cancel_on_due_date: bool = True


class Trek(BaseModel):
    """A trek with its embedded batches."""

    model_config = ConfigDict(strict=False)

    trek_id: str
    name: str = Field(..., min_length=1)
    slug: str
    region_id: str | None = None
    description: str | None = None
    duration_days: int | None = Field(default=None, ge=1)
    difficulty: str | None = None
    is_enabled: bool = True
    partial_payment: PartialPaymentSettings = Field(default_factory=PartialPaymentSettings)
    batches: list[Batch] = Field(default_factory=list)
    created_at: UTCDateTime
    updated_at: UTCDateTime

    def find_batch(self, batch_id: str) -> Batch | None:
        """Look up an embedded batch by ID."""
        for batch in self.batches:
            if batch.batch_id == batch_id:
                return batch
        return None


class RegionCreate(BaseModel):
    """Data required to create a region."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    is_enabled: bool = True


class RegionUpdate(BaseModel):
    """Region fields that can be changed."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    is_enabled: bool | None = None


class BatchCreate(BaseModel):
    """Data required to add a batch to a trek."""

    start_date: UTCDateTime
    end_date: UTCDateTime
    price: Decimal = Field(..., ge=0)
    max_participants: int = Field(..., ge=1)
    status: BatchStatus = BatchStatus.UPCOMING
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self) -> "BatchCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BatchUpdate(BaseModel):
    """Batch fields that can be changed."""

    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    price: Decimal | None = Field(default=None, ge=0)
    max_participants: int | None = Field(default=None, ge=1)
    status: BatchStatus | None = None
    is_active: bool | None = None


class TrekCreate(BaseModel):
    """Data required to create a trek."""

    name: str = Field(..., min_length=1, max_length=200)
    region_id: str | None = None
    description: str | None = None
    duration_days: int | None = Field(default=None, ge=1)
    difficulty: str | None = None
    is_enabled: bool = True
    partial_payment: PartialPaymentSettings = Field(default_factory=PartialPaymentSettings)
    batches: list[BatchCreate] = Field(default_factory=list)


class TrekUpdate(BaseModel):
    """Trek fields that can be changed. Batches are managed separately."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    region_id: str | None = None
    description: str | None = None
    duration_days: int | None = Field(default=None, ge=1)
    difficulty: str | None = None
    partial_payment: PartialPaymentSettings | None = None
