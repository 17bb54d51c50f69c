"""Unit tests for CatalogService (regions, treks and embedded batches)."""

import datetime as dt
from decimal import Decimal

import pytest

from trek_shared.models.catalog import (
    BatchCreate,
    BatchUpdate,
    RegionCreate,
    RegionUpdate,
    TrekCreate,
    TrekUpdate,
)
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.services.catalog import CatalogService, slugify


def _batch(start: dt.datetime, price: str = "8000", seats: int = 12) -> BatchCreate:
    return BatchCreate(
        start_date=start,
        end_date=start + dt.timedelta(days=4),
        price=Decimal(price),
        max_participants=seats,
    )


class TestSlugify:
    """Slugs derived from display names."""

    @pytest.mark.parametrize(
        ("name", "slug"),
        [
            ("Himachal Pradesh", "himachal-pradesh"),
            ("  Har Ki Dun!  ", "har-ki-dun"),
            ("Roopkund / Ali Bedni", "roopkund-ali-bedni"),
        ],
    )
    def test_slugify(self, name: str, slug: str) -> None:
        assert slugify(name) == slug


class TestRegions:
    """Region CRUD."""

    def test_create_and_get(self, catalog: CatalogService) -> None:
        region = catalog.create_region(RegionCreate(name="Sikkim", description="East"))

        assert region.region_id.startswith("REG-")
        assert region.slug == "sikkim"
        assert catalog.get_region(region.region_id).name == "Sikkim"

    def test_duplicate_name_rejected(self, catalog: CatalogService) -> None:
        catalog.create_region(RegionCreate(name="Ladakh"))

        with pytest.raises(BookingError) as exc_info:
            catalog.create_region(RegionCreate(name="ladakh"))

        assert exc_info.value.code == ErrorCode.DUPLICATE_SLUG

    def test_list_enabled_only(self, catalog: CatalogService) -> None:
        catalog.create_region(RegionCreate(name="Zanskar", is_enabled=False))
        catalog.create_region(RegionCreate(name="Kumaon"))

        assert [r.name for r in catalog.list_regions()] == ["Kumaon", "Zanskar"]
        assert [r.name for r in catalog.list_regions(enabled_only=True)] == ["Kumaon"]

    def test_update_renames_slug(self, catalog: CatalogService) -> None:
        region = catalog.create_region(RegionCreate(name="Garhwal"))

        updated = catalog.update_region(region.region_id, RegionUpdate(name="Garhwal Himalaya"))

        assert updated.slug == "garhwal-himalaya"
        assert catalog.get_region(region.region_id).name == "Garhwal Himalaya"

    def test_delete(self, catalog: CatalogService) -> None:
        region = catalog.create_region(RegionCreate(name="Spiti"))

        catalog.delete_region(region.region_id)

        with pytest.raises(BookingError) as exc_info:
            catalog.get_region(region.region_id)
        assert exc_info.value.code == ErrorCode.REGION_NOT_FOUND


class TestTreks:
    """Trek CRUD and lookups."""

    def test_create_with_batches(self, catalog: CatalogService, now) -> None:
        trek = catalog.create_trek(
            TrekCreate(name="Brahmatal", batches=[_batch(now + dt.timedelta(days=40))])
        )

        assert trek.trek_id.startswith("TRK-")
        assert trek.slug == "brahmatal"
        assert len(trek.batches) == 1
        assert trek.batches[0].batch_id.startswith("BAT-")
        assert trek.batches[0].current_participants == 0

    def test_unknown_region_rejected(self, catalog: CatalogService) -> None:
        with pytest.raises(BookingError) as exc_info:
            catalog.create_trek(TrekCreate(name="Nowhere", region_id="REG-MISSING"))

        assert exc_info.value.code == ErrorCode.REGION_NOT_FOUND

    def test_get_and_find(self, catalog: CatalogService, trek) -> None:
        assert catalog.get_trek(trek.trek_id).name == "Kedarkantha"
        assert catalog.find_trek("TRK-MISSING") is None
        with pytest.raises(BookingError) as exc_info:
            catalog.get_trek("TRK-MISSING")
        assert exc_info.value.code == ErrorCode.TREK_NOT_FOUND

    def test_list_by_region_and_enabled(self, catalog: CatalogService, trek) -> None:
        other = catalog.create_trek(TrekCreate(name="Valley of Flowers", is_enabled=False))

        assert {t.trek_id for t in catalog.list_treks()} == {trek.trek_id, other.trek_id}
        assert [t.trek_id for t in catalog.list_treks(enabled_only=True)] == [trek.trek_id]
        assert [t.trek_id for t in catalog.list_treks(region_id=trek.region_id)] == [trek.trek_id]

    def test_update_keeps_batches(self, catalog: CatalogService, trek) -> None:
        updated = catalog.update_trek(trek.trek_id, TrekUpdate(difficulty="moderate"))

        assert updated.difficulty == "moderate"
        assert len(catalog.get_trek(trek.trek_id).batches) == 2

    def test_toggle_status(self, catalog: CatalogService, trek) -> None:
        assert catalog.toggle_trek_status(trek.trek_id).is_enabled is False
        assert catalog.toggle_trek_status(trek.trek_id).is_enabled is True


class TestBatches:
    """Embedded batch management and seat counting."""

    def test_add_and_update_batch(self, catalog: CatalogService, trek, now) -> None:
        batch = catalog.add_batch(trek.trek_id, _batch(now + dt.timedelta(days=90)))

        updated = catalog.update_batch(
            trek.trek_id, batch.batch_id, BatchUpdate(price=Decimal("9900"), max_participants=15)
        )

        assert updated.price == Decimal("9900")
        assert updated.max_participants == 15
        assert len(catalog.get_trek(trek.trek_id).batches) == 3

    def test_update_batch_rejects_inverted_dates(self, catalog: CatalogService, trek, now) -> None:
        batch_id = trek.batches[0].batch_id

        with pytest.raises(ValueError):
            catalog.update_batch(trek.trek_id, batch_id, BatchUpdate(end_date=now))

    def test_get_unknown_batch(self, catalog: CatalogService, trek) -> None:
        with pytest.raises(BookingError) as exc_info:
            catalog.get_batch(trek.trek_id, "BAT-MISSING")

        assert exc_info.value.code == ErrorCode.BATCH_NOT_FOUND

    def test_reserve_seats(self, catalog: CatalogService, trek) -> None:
        batch_id = trek.batches[0].batch_id

        batch = catalog.reserve_seats(trek.trek_id, batch_id, 4)
        assert batch.current_participants == 4
        assert batch.available_slots == 6

        with pytest.raises(BookingError) as exc_info:
            catalog.reserve_seats(trek.trek_id, batch_id, 7)
        assert exc_info.value.code == ErrorCode.CAPACITY_EXCEEDED

    def test_remove_empty_batch(self, catalog: CatalogService, trek) -> None:
        batch_id = trek.batches[1].batch_id

        catalog.remove_batch(trek.trek_id, batch_id)

        assert catalog.get_trek(trek.trek_id).find_batch(batch_id) is None

    def test_remove_booked_batch_rejected(
        self, catalog: CatalogService, trek, make_confirmed_booking
    ) -> None:
        make_confirmed_booking(1)

        with pytest.raises(BookingError) as exc_info:
            catalog.remove_batch(trek.trek_id, trek.batches[0].batch_id)

        assert exc_info.value.code == ErrorCode.BATCH_HAS_BOOKINGS

    def test_recalculate_ignores_cancelled(
        self, catalog: CatalogService, booking_service, trek, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking(3)
        booking_service.cancel_participant(
            booking.booking_id, booking.participants[0].participant_id, "admin"
        )
        # Drift the stored count, then recount from bookings
        catalog.reserve_seats(trek.trek_id, trek.batches[0].batch_id, 5)

        count = catalog.recalculate_batch_participants(trek.trek_id, trek.batches[0].batch_id)

        assert count == 2
