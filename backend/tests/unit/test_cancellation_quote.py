"""Unit tests for RefundPolicyEvaluator.quote_cancellation.

Covers entire and individual cancellations, automatic and custom refunds,
and the selection rules for participants.
"""

import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError

from trek_shared.models.enums import BookingStatus, CancellationType, RefundStatus, RefundType
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.models.refund import CancellationOptions
from trek_shared.services.refund_policy_service import RefundPolicyEvaluator


@pytest.fixture
def evaluator() -> RefundPolicyEvaluator:
    return RefundPolicyEvaluator()


def _start(now: dt.datetime, days: int) -> dt.datetime:
    return now + dt.timedelta(days=days)


# === Entire cancellation ===


class TestEntireCancellation:
    """Whole-booking quotes refund against the booking total."""

    def test_auto_refund_uses_policy(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"), participants=3)

        quote = evaluator.quote_cancellation(
            booking, _start(now, 10), CancellationOptions(), now
        )

        assert quote.cancellation_type == CancellationType.ENTIRE
        assert quote.base_amount == Decimal("3000.00")
        assert quote.total_refund == Decimal("1500.00")
        assert quote.refund_percentage == 50
        assert quote.policy_label == "50% Cancellation Charge"
        assert quote.days_until_trek == 10
        assert len(quote.participants) == 3
        assert sum(p.refund_amount for p in quote.participants) == quote.total_refund

    def test_already_cancelled_booking_rejected(self, evaluator, booking_model, now) -> None:
        booking = booking_model(status=BookingStatus.CANCELLED)

        with pytest.raises(BookingError) as exc_info:
            evaluator.quote_cancellation(booking, _start(now, 30), CancellationOptions(), now)

        assert exc_info.value.code == ErrorCode.ALREADY_CANCELLED

    def test_only_active_participants_listed(self, evaluator, booking_model, now) -> None:
        booking = booking_model(participants=3)
        booking.participants[0].is_cancelled = True

        quote = evaluator.quote_cancellation(
            booking, _start(now, 30), CancellationOptions(), now
        )

        assert quote.participant_ids == ["P-2", "P-3"]
        assert quote.total_refund == Decimal("3000.00")

    def test_refunded_participant_shares_excluded(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"), participants=3)
        booking.participants[0].is_cancelled = True
        booking.participants[0].refund_status = RefundStatus.SUCCESS

        quote = evaluator.quote_cancellation(
            booking, _start(now, 30), CancellationOptions(), now
        )

        assert quote.participant_ids == ["P-2", "P-3"]
        assert quote.base_amount == Decimal("2000.00")
        assert quote.total_refund == Decimal("2000.00")

    def test_client_total_is_ignored(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"))
        options = CancellationOptions(total_refund=Decimal("99999"))

        quote = evaluator.quote_cancellation(booking, _start(now, 10), options, now)

        assert quote.total_refund == Decimal("1500.00")

    def test_missing_start_date_rejected(self, evaluator, booking_model, now) -> None:
        booking = booking_model()

        with pytest.raises(BookingError) as exc_info:
            evaluator.quote_cancellation(booking, None, CancellationOptions(), now)

        assert exc_info.value.code == ErrorCode.INVALID_TREK_START_DATE


# === Individual cancellation ===


class TestIndividualCancellation:
    """Per-participant quotes use total / number of participants per seat."""

    def test_selected_participants_priced_per_seat(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"), participants=3)
        options = CancellationOptions(
            cancellation_type=CancellationType.INDIVIDUAL,
            selected_participants=["P-1", "P-3"],
        )

        quote = evaluator.quote_cancellation(booking, _start(now, 30), options, now)

        assert quote.base_amount == Decimal("2000.00")
        assert quote.total_refund == Decimal("2000.00")
        assert quote.participant_ids == ["P-1", "P-3"]
        assert [p.refund_amount for p in quote.participants] == [
            Decimal("1000.00"),
            Decimal("1000.00"),
        ]

    def test_seat_price_counts_cancelled_participants(
        self, evaluator, booking_model, now
    ) -> None:
        """Per-seat price divides by every participant, cancelled or not."""
        booking = booking_model(total_price=Decimal("3000"), participants=3)
        booking.participants[0].is_cancelled = True
        options = CancellationOptions(
            cancellation_type=CancellationType.INDIVIDUAL,
            selected_participants=["P-2"],
        )

        quote = evaluator.quote_cancellation(booking, _start(now, 10), options, now)

        assert quote.base_amount == Decimal("1000.00")
        assert quote.total_refund == Decimal("500.00")

    def test_unknown_and_cancelled_ids_are_skipped(self, evaluator, booking_model, now) -> None:
        booking = booking_model(participants=3)
        booking.participants[1].is_cancelled = True
        options = CancellationOptions(
            cancellation_type=CancellationType.INDIVIDUAL,
            selected_participants=["P-2", "P-3", "P-99"],
        )

        quote = evaluator.quote_cancellation(booking, _start(now, 30), options, now)

        assert quote.participant_ids == ["P-3"]

    def test_nothing_cancellable_selected(self, evaluator, booking_model, now) -> None:
        booking = booking_model(participants=2)
        booking.participants[0].is_cancelled = True
        options = CancellationOptions(
            cancellation_type=CancellationType.INDIVIDUAL,
            selected_participants=["P-1", "P-404"],
        )

        with pytest.raises(BookingError) as exc_info:
            evaluator.quote_cancellation(booking, _start(now, 30), options, now)

        assert exc_info.value.code == ErrorCode.INVALID_CANCELLATION_SELECTION

    def test_empty_selection_fails_validation(self) -> None:
        with pytest.raises(ValidationError):
            CancellationOptions(cancellation_type=CancellationType.INDIVIDUAL)


# === Custom refunds ===


class TestCustomRefund:
    """Admin-entered refunds bypass the policy but stay within the paid amount."""

    def test_custom_amount_used(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"))
        options = CancellationOptions(
            refund_type=RefundType.CUSTOM, custom_refund_amount=Decimal("2500")
        )

        # Policy alone would refund nothing at 3 days out
        quote = evaluator.quote_cancellation(booking, _start(now, 3), options, now)

        assert quote.total_refund == Decimal("2500.00")
        assert quote.refund_percentage is None
        assert quote.policy_label == "Custom Refund"
        assert quote.days_until_trek == 3

    def test_custom_amount_clamped_to_base(self, evaluator, booking_model, now) -> None:
        booking = booking_model(total_price=Decimal("3000"), participants=3)
        options = CancellationOptions(
            cancellation_type=CancellationType.INDIVIDUAL,
            selected_participants=["P-1"],
            refund_type=RefundType.CUSTOM,
            custom_refund_amount=Decimal("5000"),
        )

        quote = evaluator.quote_cancellation(booking, _start(now, 30), options, now)

        assert quote.total_refund == Decimal("1000.00")

    def test_negative_custom_amount_becomes_zero(self, evaluator, booking_model, now) -> None:
        booking = booking_model()
        options = CancellationOptions(
            refund_type=RefundType.CUSTOM, custom_refund_amount=Decimal("-10")
        )

        quote = evaluator.quote_cancellation(booking, _start(now, 30), options, now)

        assert quote.total_refund == Decimal("0.00")

    def test_custom_refund_still_requires_start_date(
        self, evaluator, booking_model, now
    ) -> None:
        booking = booking_model()
        options = CancellationOptions(
            refund_type=RefundType.CUSTOM, custom_refund_amount=Decimal("100")
        )

        with pytest.raises(BookingError) as exc_info:
            evaluator.quote_cancellation(booking, "garbage", options, now)

        assert exc_info.value.code == ErrorCode.INVALID_TREK_START_DATE

    def test_custom_amount_required(self) -> None:
        with pytest.raises(ValidationError):
            CancellationOptions(refund_type=RefundType.CUSTOM)
