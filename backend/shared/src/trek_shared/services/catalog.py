"""Catalog service for regions, treks and batches.

Batches are embedded in their trek document, so every batch change is a
read-modify-write of the trek item.
"""

import datetime as dt
import re
import uuid
from typing import TYPE_CHECKING

from boto3.dynamodb.conditions import Attr

from trek_shared.models.booking import Booking
from trek_shared.models.catalog import (
    Batch,
    BatchCreate,
    BatchUpdate,
    Region,
    RegionCreate,
    RegionUpdate,
    Trek,
    TrekCreate,
    TrekUpdate,
)
from trek_shared.models.enums import SEAT_HOLDING_STATUSES
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.utils.logging import get_logger

from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def slugify(name: str) -> str:
    """Lower-case, hyphen-separated slug of a display name."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class CatalogService:
    """Service for region, trek and batch management."""

    TREKS_TABLE = "treks"
    REGIONS_TABLE = "regions"
    BOOKINGS_TABLE = "bookings"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize catalog service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    # =========================================================================
    # Regions
    # =========================================================================

    def create_region(self, data: RegionCreate) -> Region:
        """Create a region with a unique slug.

        Raises:
            BookingError: DUPLICATE_SLUG if a region with the same slug exists
        """
        slug = slugify(data.name)
        if self.db.scan(self.REGIONS_TABLE, Attr("slug").eq(slug)):
            raise BookingError(ErrorCode.DUPLICATE_SLUG, details={"slug": slug})

        region = Region(
            region_id=_generate_id("REG"),
            name=data.name,
            slug=slug,
            description=data.description,
            is_enabled=data.is_enabled,
            created_at=dt.datetime.now(dt.UTC),
        )
        self.db.put_item(self.REGIONS_TABLE, to_item(region))
        logger.info("Region created: %s (%s)", region.region_id, slug)
        return region

    def get_region(self, region_id: str) -> Region:
        item = self.db.get_item(self.REGIONS_TABLE, {"region_id": region_id})
        if not item:
            raise BookingError(ErrorCode.REGION_NOT_FOUND, details={"region_id": region_id})
        return from_item(Region, item)

    def list_regions(self, enabled_only: bool = False) -> list[Region]:
        regions = [from_item(Region, item) for item in self.db.scan(self.REGIONS_TABLE)]
        if enabled_only:
            regions = [r for r in regions if r.is_enabled]
        return sorted(regions, key=lambda r: r.name)

    def update_region(self, region_id: str, data: RegionUpdate) -> Region:
        region = self.get_region(region_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"]:
            changes["slug"] = slugify(changes["name"])
        updated = region.model_copy(update=changes)
        self.db.put_item(self.REGIONS_TABLE, to_item(updated))
        return updated

    def delete_region(self, region_id: str) -> None:
        self.get_region(region_id)
        self.db.delete_item(self.REGIONS_TABLE, {"region_id": region_id})
        logger.info("Region deleted: %s", region_id)

    # =========================================================================
    # Treks
    # =========================================================================

    def create_trek(self, data: TrekCreate) -> Trek:
        """Create a trek and its initial batches.

        Args:
            data: Trek details with optional batches

        Returns:
            Created Trek

        Raises:
            BookingError: REGION_NOT_FOUND if region_id is unknown
        """
        if data.region_id:
            self.get_region(data.region_id)

        now = dt.datetime.now(dt.UTC)
        trek = Trek(
            trek_id=_generate_id("TRK"),
            name=data.name,
            slug=slugify(data.name),
            region_id=data.region_id,
            description=data.description,
            duration_days=data.duration_days,
            difficulty=data.difficulty,
            is_enabled=data.is_enabled,
            partial_payment=data.partial_payment,
            batches=[self._new_batch(b) for b in data.batches],
            created_at=now,
            updated_at=now,
        )
        self._save_trek(trek)
        logger.info("Trek created: %s with %d batches", trek.trek_id, len(trek.batches))
        return trek

    def get_trek(self, trek_id: str) -> Trek:
        """Get a trek by ID.

        Raises:
            BookingError: TREK_NOT_FOUND
        """
        item = self.db.get_item(self.TREKS_TABLE, {"trek_id": trek_id})
        if not item:
            raise BookingError(ErrorCode.TREK_NOT_FOUND, details={"trek_id": trek_id})
        return from_item(Trek, item)

    def find_trek(self, trek_id: str) -> Trek | None:
        """Get a trek by ID, or None when it no longer exists."""
        item = self.db.get_item(self.TREKS_TABLE, {"trek_id": trek_id})
        return from_item(Trek, item) if item else None

    def list_treks(
        self,
        region_id: str | None = None,
        enabled_only: bool = False,
    ) -> list[Trek]:
        """List treks, optionally filtered by region and enabled flag."""
        filter_expression = None
        if region_id:
            filter_expression = Attr("region_id").eq(region_id)
        treks = [
            from_item(Trek, item)
            for item in self.db.scan(self.TREKS_TABLE, filter_expression)
        ]
        if enabled_only:
            treks = [t for t in treks if t.is_enabled]
        return sorted(treks, key=lambda t: t.name)

    def update_trek(self, trek_id: str, data: TrekUpdate) -> Trek:
        trek = self.get_trek(trek_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("region_id"):
            self.get_region(changes["region_id"])
        if changes.get("name"):
            changes["slug"] = slugify(changes["name"])
        if "partial_payment" in changes and data.partial_payment is not None:
            changes["partial_payment"] = data.partial_payment
        updated = trek.model_copy(update=changes)
        self._save_trek(updated)
        return updated

    def toggle_trek_status(self, trek_id: str) -> Trek:
        """Flip a trek between enabled and disabled."""
        trek = self.get_trek(trek_id)
        trek.is_enabled = not trek.is_enabled
        self._save_trek(trek)
        logger.info("Trek %s enabled=%s", trek_id, trek.is_enabled)
        return trek

    def _save_trek(self, trek: Trek) -> None:
        trek.updated_at = dt.datetime.now(dt.UTC)
        self.db.put_item(self.TREKS_TABLE, to_item(trek))

    # =========================================================================
    # Batches
    # =========================================================================

    @staticmethod
    def _new_batch(data: BatchCreate) -> Batch:
        return Batch(
            batch_id=_generate_id("BAT"),
            start_date=data.start_date,
            end_date=data.end_date,
            price=data.price,
            max_participants=data.max_participants,
            status=data.status,
            is_active=data.is_active,
        )

    def get_batch(self, trek_id: str, batch_id: str) -> tuple[Trek, Batch]:
        """Get a trek and one of its batches.

        Raises:
            BookingError: TREK_NOT_FOUND or BATCH_NOT_FOUND
        """
        trek = self.get_trek(trek_id)
        batch = trek.find_batch(batch_id)
        if batch is None:
            raise BookingError(
                ErrorCode.BATCH_NOT_FOUND,
                details={"trek_id": trek_id, "batch_id": batch_id},
            )
        return trek, batch

    def add_batch(self, trek_id: str, data: BatchCreate) -> Batch:
        trek = self.get_trek(trek_id)
        batch = self._new_batch(data)
        trek.batches.append(batch)
        self._save_trek(trek)
        logger.info("Batch %s added to trek %s", batch.batch_id, trek_id)
        return batch

    def update_batch(self, trek_id: str, batch_id: str, data: BatchUpdate) -> Batch:
        trek, batch = self.get_batch(trek_id, batch_id)
        changes = data.model_dump(exclude_unset=True)
        updated = batch.model_copy(update=changes)
        if updated.end_date < updated.start_date:
            raise ValueError("end_date must not be before start_date")
        trek.batches = [updated if b.batch_id == batch_id else b for b in trek.batches]
        self._save_trek(trek)
        return updated

    def remove_batch(self, trek_id: str, batch_id: str) -> None:
        """Remove a batch that has no seat-holding bookings.

        Raises:
            BookingError: BATCH_HAS_BOOKINGS if active bookings exist
        """
        trek, _ = self.get_batch(trek_id, batch_id)
        if self._count_booked_participants(batch_id) > 0:
            raise BookingError(ErrorCode.BATCH_HAS_BOOKINGS, details={"batch_id": batch_id})
        trek.batches = [b for b in trek.batches if b.batch_id != batch_id]
        self._save_trek(trek)
        logger.info("Batch %s removed from trek %s", batch_id, trek_id)

    def _count_booked_participants(self, batch_id: str) -> int:
        items = self.db.query_by_gsi(
            table=self.BOOKINGS_TABLE,
            index_name="batch_id-index",
            partition_key_name="batch_id",
            partition_key_value=batch_id,
        )
        total = 0
        for item in items:
            booking = from_item(Booking, item)
            if booking.status in SEAT_HOLDING_STATUSES:
                total += len(booking.active_participants)
        return total

    def recalculate_batch_participants(self, trek_id: str, batch_id: str) -> int:
        """Recount seats taken in a batch from its bookings.

        Only non-cancelled participants of seat-holding bookings count.

        Returns:
            The new current_participants value
        """
        trek, batch = self.get_batch(trek_id, batch_id)
        count = self._count_booked_participants(batch_id)
        batch.current_participants = count
        self._save_trek(trek)
        logger.info("Batch %s participant count recalculated: %d", batch_id, count)
        return count

    def reserve_seats(self, trek_id: str, batch_id: str, seats: int) -> Batch:
        """Increase current_participants after a capacity check.

        Raises:
            BookingError: CAPACITY_EXCEEDED if the batch cannot take the seats
        """
        trek, batch = self.get_batch(trek_id, batch_id)
        if batch.current_participants + seats > batch.max_participants:
            raise BookingError(
                ErrorCode.CAPACITY_EXCEEDED,
                details={
                    "batch_id": batch_id,
                    "available": str(batch.available_slots),
                    "requested": str(seats),
                },
            )
        batch.current_participants += seats
        self._save_trek(trek)
        return batch
