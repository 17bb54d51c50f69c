#!/usr/bin/env python3
"""Cancel partial-payment bookings whose remaining balance is overdue.

Meant to run on a schedule (cron or an EventBridge rule). A booking is
cancelled when it is in payment_confirmed_partial, its final payment due
date has passed and auto-cancel is enabled on both the booking and its trek.
Owners are e-mailed; e-mail failures are logged and do not stop the run.

Usage:
    python backend/scripts/auto_cancel_partial_payments.py --env dev
    python backend/scripts/auto_cancel_partial_payments.py --env prod --dry-run
"""

import argparse
import sys
from datetime import UTC, datetime

from trek_shared.models.booking import Booking
from trek_shared.models.enums import BookingStatus, PaymentMode
from trek_shared.services.booking import BookingService
from trek_shared.services.catalog import CatalogService
from trek_shared.services.dynamodb import DynamoDBService
from trek_shared.services.email_service import EmailService
from trek_shared.services.payment_service import PaymentService
from trek_shared.services.promotions import OfferService, PromoCodeService
from trek_shared.utils.logging import (
    configure_logging,
    get_logger,
    set_correlation_id,
)

logger = get_logger("auto_cancel_partial_payments")


def build_booking_service(env: str) -> BookingService:
    db = DynamoDBService(env)
    return BookingService(
        db=db,
        catalog=CatalogService(db),
        promo_codes=PromoCodeService(db),
        offers=OfferService(db),
        payments=PaymentService(),
        email=EmailService(),
    )


def overdue_bookings(service: BookingService, now: datetime) -> list[Booking]:
    """Overdue candidates, before the trek-level auto-cancel flag is checked."""
    bookings, _ = service.list_bookings(
        limit=10_000, status=BookingStatus.PAYMENT_CONFIRMED_PARTIAL
    )
    return [
        b
        for b in bookings
        if b.payment_mode == PaymentMode.PARTIAL
        and b.partial_payment is not None
        and b.partial_payment.auto_cancel_on_due_date
        and b.partial_payment.final_payment_due_date < now
    ]


def main() -> int:
    parser = argparse.ArgumentParser(description="Auto-cancel overdue partial payments")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List overdue bookings without cancelling them",
    )
    args = parser.parse_args()

    configure_logging()
    set_correlation_id()
    now = datetime.now(UTC)
    service = build_booking_service(args.env)

    if args.dry_run:
        for booking in overdue_bookings(service, now):
            logger.info(
                "Would cancel %s (due %s)",
                booking.booking_id,
                booking.partial_payment.final_payment_due_date.isoformat(),
            )
        return 0

    cancelled = service.auto_cancel_overdue_partial_payments(now)
    logger.info("Auto-cancelled %d booking(s)", len(cancelled))
    return 0


if __name__ == "__main__":
    sys.exit(main())
