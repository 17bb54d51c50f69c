"""Statistics service for the admin sales and dashboard views."""

import datetime as dt
from collections import Counter, defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING

from trek_shared.models.booking import Booking, BookingSummary
from trek_shared.models.common import quantize_money
from trek_shared.models.enums import REVENUE_STATUSES, BookingStatus, RefundStatus
from trek_shared.models.stats import (
    BatchRevenue,
    DashboardStats,
    PeriodRevenue,
    RegionRevenue,
    SalesStats,
    TrekRevenue,
    UpcomingBatch,
)
from trek_shared.utils.logging import get_logger

from .dynamodb import from_item

if TYPE_CHECKING:
    from .catalog import CatalogService
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

TOP_TREKS_LIMIT = 5
RECENT_BOOKINGS_LIMIT = 5
UPCOMING_WINDOW = dt.timedelta(days=30)


def net_revenue(booking: Booking) -> Decimal:
    """Booking total minus refunds that succeeded."""
    refunded = Decimal("0")
    if booking.refund_status == RefundStatus.SUCCESS and booking.refund_amount:
        refunded += booking.refund_amount
    for participant in booking.participants:
        if participant.refund_status == RefundStatus.SUCCESS and participant.refund_amount:
            refunded += participant.refund_amount
    return quantize_money(Decimal(booking.total_price) - refunded)


class StatsService:
    """Aggregates bookings into sales and dashboard statistics."""

    BOOKINGS_TABLE = "bookings"

    def __init__(self, db: "DynamoDBService", catalog: "CatalogService") -> None:
        self.db = db
        self.catalog = catalog

    def _all_bookings(self) -> list[Booking]:
        return [from_item(Booking, item) for item in self.db.scan(self.BOOKINGS_TABLE)]

    def get_sales_stats(
        self,
        start: dt.datetime | None = None,
        end: dt.datetime | None = None,
        trek_id: str | None = None,
        batch_id: str | None = None,
    ) -> SalesStats:
        """Revenue statistics over confirmed and completed bookings.

        Args:
            start: Inclusive lower bound on booking creation time
            end: Inclusive upper bound on booking creation time
            trek_id: Only bookings for this trek
            batch_id: Only bookings for this batch

        Returns:
            SalesStats; all-zero when no booking matches
        """
        bookings = [
            b
            for b in self._all_bookings()
            if b.status in REVENUE_STATUSES
            and (start is None or b.created_at >= start)
            and (end is None or b.created_at <= end)
            and (trek_id is None or b.trek_id == trek_id)
            and (batch_id is None or b.batch_id == batch_id)
        ]
        if not bookings:
            return SalesStats()

        treks = {trek.trek_id: trek for trek in self.catalog.list_treks()}
        regions = {region.region_id: region.name for region in self.catalog.list_regions()}

        by_region: dict[str, Decimal] = defaultdict(Decimal)
        by_trek: dict[str, TrekRevenue] = {}
        by_batch: dict[str, BatchRevenue] = {}
        by_period: dict[str, PeriodRevenue] = {}
        total_revenue = Decimal("0")
        total_participants = 0

        for booking in bookings:
            amount = net_revenue(booking)
            total_revenue += amount
            total_participants += len(booking.active_participants)

            trek = treks.get(booking.trek_id)
            region_name = regions.get(trek.region_id) if trek and trek.region_id else None
            if region_name:
                by_region[region_name] += amount

            trek_entry = by_trek.setdefault(
                booking.trek_id,
                TrekRevenue(
                    trek_id=booking.trek_id,
                    name=trek.name if trek else booking.trek_id,
                    region=region_name,
                    revenue=Decimal("0"),
                    bookings=0,
                ),
            )
            trek_entry.revenue += amount
            trek_entry.bookings += 1

            batch = trek.find_batch(booking.batch_id) if trek else None
            if batch is not None:
                batch_entry = by_batch.setdefault(
                    booking.batch_id,
                    BatchRevenue(
                        batch_id=booking.batch_id,
                        trek_name=trek.name,
                        start_date=batch.start_date,
                        revenue=Decimal("0"),
                        bookings=0,
                    ),
                )
                batch_entry.revenue += amount
                batch_entry.bookings += 1

            period = booking.created_at.strftime("%Y-%m")
            period_entry = by_period.setdefault(
                period, PeriodRevenue(period=period, revenue=Decimal("0"), bookings=0)
            )
            period_entry.revenue += amount
            period_entry.bookings += 1

        revenue_by_trek = sorted(by_trek.values(), key=lambda t: t.revenue, reverse=True)
        total_bookings = len(bookings)
        return SalesStats(
            total_revenue=quantize_money(total_revenue),
            total_bookings=total_bookings,
            avg_booking_value=quantize_money(total_revenue / total_bookings),
            avg_participants=round(total_participants / total_bookings, 2),
            revenue_by_region=sorted(
                (RegionRevenue(region=name, revenue=value) for name, value in by_region.items()),
                key=lambda r: r.revenue,
                reverse=True,
            ),
            revenue_by_trek=revenue_by_trek,
            revenue_by_batch=sorted(
                by_batch.values(), key=lambda b: b.start_date, reverse=True
            ),
            revenue_by_period=sorted(by_period.values(), key=lambda p: p.period),
            top_treks=revenue_by_trek[:TOP_TREKS_LIMIT],
        )

    def get_dashboard_stats(self, now: dt.datetime | None = None) -> DashboardStats:
        """Counts, recent bookings and batches starting in the next 30 days."""
        now = now or dt.datetime.now(dt.UTC)
        bookings = sorted(self._all_bookings(), key=lambda b: b.created_at, reverse=True)
        treks = self.catalog.list_treks()

        status_counts = Counter(b.status for b in bookings)
        upcoming = [
            UpcomingBatch(
                trek_id=trek.trek_id,
                trek_name=trek.name,
                batch_id=batch.batch_id,
                start_date=batch.start_date,
                available_slots=batch.available_slots,
            )
            for trek in treks
            for batch in trek.batches
            if batch.is_active and now <= batch.start_date <= now + UPCOMING_WINDOW
        ]

        return DashboardStats(
            total_treks=len(treks),
            total_bookings=len(bookings),
            bookings_by_status={status: status_counts.get(status, 0) for status in BookingStatus},
            recent_bookings=[
                BookingSummary.from_booking(b) for b in bookings[:RECENT_BOOKINGS_LIMIT]
            ],
            upcoming_batches=sorted(upcoming, key=lambda u: u.start_date),
        )
