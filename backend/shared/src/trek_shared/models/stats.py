"""Sales and dashboard statistics models."""

from decimal import Decimal

from pydantic import BaseModel, Field

from .booking import BookingSummary
from .common import Money, UTCDateTime
from .enums import BookingStatus


class RegionRevenue(BaseModel):
    region: str
    revenue: Money


class TrekRevenue(BaseModel):
    trek_id: str
    name: str
    region: str | None = None
    revenue: Money
    bookings: int


class BatchRevenue(BaseModel):
    batch_id: str
    trek_name: str
    start_date: UTCDateTime
    revenue: Money
    bookings: int


class PeriodRevenue(BaseModel):
    """Revenue and booking count for one month (YYYY-MM)."""

    period: str
    revenue: Money
    bookings: int


class SalesStats(BaseModel):
    """Revenue figures over confirmed and completed bookings.

    Revenue is net of refunds that actually succeeded, at booking and
    participant level.
    """

    total_revenue: Money = Decimal("0")
    total_bookings: int = 0
    avg_booking_value: Money = Decimal("0")
    avg_participants: float = 0.0
    revenue_by_region: list[RegionRevenue] = Field(default_factory=list)
    revenue_by_trek: list[TrekRevenue] = Field(default_factory=list)
    revenue_by_batch: list[BatchRevenue] = Field(default_factory=list)
    revenue_by_period: list[PeriodRevenue] = Field(default_factory=list)
    top_treks: list[TrekRevenue] = Field(default_factory=list)


class UpcomingBatch(BaseModel):
    trek_id: str
    trek_name: str
    batch_id: str
    start_date: UTCDateTime
    available_slots: int


class DashboardStats(BaseModel):
    """Overview numbers for the admin dashboard."""

    total_treks: int
    total_bookings: int
    bookings_by_status: dict[BookingStatus, int]
    recent_bookings: list[BookingSummary]
    upcoming_batches: list[UpcomingBatch]
