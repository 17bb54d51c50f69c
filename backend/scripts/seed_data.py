#!/usr/bin/env python3
"""Seed development database with test data.

Populates DynamoDB tables with a small, realistic catalog for local
development:
- Regions of the Indian Himalaya
- Treks with upcoming batches (one trek allows partial payment)
- A couple of promo codes and one running offer

Data goes through the catalog and promotion services so stored items match
the application models exactly.

Usage:
    python backend/scripts/seed_data.py --env dev
    python backend/scripts/seed_data.py --env dev --clear-first
    python backend/scripts/seed_data.py --env dev --skip-promotions
"""

import argparse
import os
import sys
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from trek_shared.models.catalog import (
    BatchCreate,
    PartialPaymentSettings,
    RegionCreate,
    TrekCreate,
)
from trek_shared.models.enums import DiscountType
from trek_shared.models.errors import BookingError
from trek_shared.models.promotion import OfferCreate, PromoCodeCreate
from trek_shared.services.catalog import CatalogService
from trek_shared.services.dynamodb import DynamoDBService
from trek_shared.services.promotions import OfferService, PromoCodeService

TABLE_KEYS = {
    "bookings": ["booking_id"],
    "treks": ["trek_id"],
    "regions": ["region_id"],
    "promo-codes": ["promo_id"],
    "offers": ["offer_id"],
}

REGIONS = [
    ("Uttarakhand", "Garhwal and Kumaon Himalaya"),
    ("Himachal Pradesh", "Kullu, Spiti and Kangra valleys"),
]

# (name, region, days, difficulty, price per seat, partial payment)
TREKS = [
    ("Kedarkantha", "Uttarakhand", 6, "easy", Decimal("9500"), True),
    ("Har Ki Dun", "Uttarakhand", 7, "moderate", Decimal("11500"), False),
    ("Hampta Pass", "Himachal Pradesh", 5, "moderate", Decimal("10500"), False),
]


def _batches(price: Decimal, days: int, now: datetime) -> list[BatchCreate]:
    """Three departures: in 10, 25 and 45 days (one per refund tier)."""
    batches = []
    for offset in (10, 25, 45):
        start = (now + timedelta(days=offset)).replace(hour=6, minute=0, second=0, microsecond=0)
        batches.append(
            BatchCreate(
                start_date=start,
                end_date=start + timedelta(days=days - 1),
                price=price,
                max_participants=20,
            )
        )
    return batches


def seed_catalog(catalog: CatalogService) -> list[str]:
    """Create regions and treks. Returns the created trek IDs."""
    now = datetime.now(UTC)
    region_ids: dict[str, str] = {}

    print("Seeding regions")
    for name, description in REGIONS:
        try:
            region = catalog.create_region(RegionCreate(name=name, description=description))
        except BookingError:
            print(f"  ○ {name} already exists")
            existing = [r for r in catalog.list_regions() if r.name == name]
            region_ids[name] = existing[0].region_id
            continue
        region_ids[name] = region.region_id
        print(f"  ✓ {name}")

    print("Seeding treks")
    trek_ids = []
    for name, region, days, difficulty, price, partial in TREKS:
        trek = catalog.create_trek(
            TrekCreate(
                name=name,
                region_id=region_ids[region],
                description=f"{name} trek, {days} days",
                duration_days=days,
                difficulty=difficulty,
                partial_payment=PartialPaymentSettings(
                    enabled=partial,
                    advance_percentage=Decimal("30") if partial else None,
                    final_payment_days_before=7,
                ),
                batches=_batches(price, days, now),
            )
        )
        trek_ids.append(trek.trek_id)
        print(f"  ✓ {name} ({len(trek.batches)} batches, ₹{price}/seat)")
    return trek_ids


def seed_promotions(promos: PromoCodeService, offers: OfferService, trek_ids: list[str]) -> None:
    now = datetime.now(UTC)

    print("Seeding promo codes")
    codes = [
        PromoCodeCreate(
            code="WELCOME10",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            valid_from=now,
            valid_until=now + timedelta(days=180),
        ),
        PromoCodeCreate(
            code="FLAT1000",
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("1000"),
            max_uses=50,
            min_order_value=Decimal("15000"),
            valid_from=now,
            valid_until=now + timedelta(days=90),
        ),
    ]
    for code in codes:
        try:
            promos.create_promo_code(code, created_by="seed")
            print(f"  ✓ {code.code}")
        except BookingError:
            print(f"  ○ {code.code} already exists")

    if trek_ids:
        print("Seeding offers")
        offer = offers.create_offer(
            OfferCreate(
                name="Early bird",
                description="5% off on the first trek",
                discount_type=DiscountType.PERCENTAGE,
                discount_value=Decimal("5"),
                start_date=now,
                end_date=now + timedelta(days=30),
                applicable_treks=trek_ids[:1],
            ),
            created_by="seed",
        )
        print(f"  ✓ {offer.name}")


def clear_table(db: DynamoDBService, table: str) -> int:
    """Delete every item of a table.

    Returns:
        Number of items deleted
    """
    items = db.scan(table)
    for item in items:
        db.delete_item(table, {k: item[k] for k in TABLE_KEYS[table]})
    return len(items)


def main() -> int:
    """Run the seed script."""
    parser = argparse.ArgumentParser(description="Seed development database with test data")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "ap-south-1"),
        help="AWS region (default: ap-south-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Clear existing data before seeding",
    )
    parser.add_argument(
        "--skip-promotions",
        action="store_true",
        help="Skip promo codes and offers",
    )
    args = parser.parse_args()

    os.environ["AWS_DEFAULT_REGION"] = args.region

    if args.env == "prod":
        confirm = input("⚠️  WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    print(f"\n🌱 Seeding {args.env} environment (region: {args.region})\n")
    db = DynamoDBService(args.env)

    if args.clear_first:
        print("Clearing existing data...")
        for table in TABLE_KEYS:
            count = clear_table(db, table)
            print(f"  Cleared {count} items from {table}")
        print()

    trek_ids = seed_catalog(CatalogService(db))
    if not args.skip_promotions:
        print()
        seed_promotions(PromoCodeService(db), OfferService(db), trek_ids)

    print("\n✅ Seed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
