"""Refund policy service for calculating cancellation refunds.

Implements the trek cancellation policy, measured in whole days left until
the batch start (rounded up):
- Free cancellation (100%): more than 21 days before the trek
- 25% cancellation charge (75% refund): 15-21 days before the trek
- 50% cancellation charge (50% refund): 8-14 days before the trek
- No refund (0%): fewer than 8 days before the trek

An admin may bypass the policy with a custom amount, which is clamped to
[0, amount]. All amounts are INR Decimals rounded to paise.

The evaluator is pure: every call takes ``now`` explicitly so the same
inputs always give the same result.
"""

import datetime as dt
from decimal import Decimal
from typing import TypedDict

from trek_shared.models.booking import Booking, Participant
from trek_shared.models.common import ensure_utc, quantize_money
from trek_shared.models.enums import BookingStatus, CancellationType, RefundType
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.models.refund import (
    CancellationOptions,
    CancellationQuote,
    ParticipantRefund,
)

ONE_DAY = dt.timedelta(days=1)


class RefundCalculation(TypedDict):
    """Result of refund policy calculation."""

    refund_amount: Decimal  # Amount in INR
    refund_percentage: int  # 100, 75, 50 or 0
    policy_tier: str  # "free", "charge_25", "charge_50" or "none"
    policy_label: str
    days_until_trek: int
    description: str


def _to_utc_datetime(value: dt.datetime | dt.date | str | None) -> dt.datetime:
    """Normalise a start date to an aware UTC datetime.

    Raises:
        BookingError: INVALID_TREK_START_DATE if the value is missing or
            cannot be parsed.
    """
    if value is None or value == "":
        raise BookingError(
            ErrorCode.INVALID_TREK_START_DATE, details={"start_date": "missing"}
        )

    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            value = dt.datetime.fromisoformat(raw)
        except ValueError:
            raise BookingError(
                ErrorCode.INVALID_TREK_START_DATE, details={"start_date": value}
            ) from None

    if isinstance(value, dt.datetime):
        return ensure_utc(value)

    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day, tzinfo=dt.UTC)

    raise BookingError(
        ErrorCode.INVALID_TREK_START_DATE, details={"start_date": repr(value)}
    )


def split_evenly(total: Decimal, parts: int) -> list[Decimal]:
    """Split an amount into ``parts`` paise-rounded shares summing to ``total``.

    The last share absorbs the rounding remainder.
    """
    if parts <= 0:
        return []
    share = quantize_money(total / parts)
    shares = [share] * (parts - 1)
    shares.append(quantize_money(total - share * (parts - 1)))
    return shares


class RefundPolicyEvaluator:
    """Maps (amount, trek start, now) to a refund amount and policy label.

    Policy tiers:
    - FREE (100%): more than 21 days before the trek
    - CHARGE_25 (75%): 15-21 days
    - CHARGE_50 (50%): 8-14 days
    - NONE (0%): fewer than 8 days, or after the start
    """

    # Policy thresholds (days before the trek, rounded up)
    FREE_CANCELLATION_AFTER_DAYS = 21  # > 21 days = full refund
    CHARGE_25_MIN_DAYS = 15  # >= 15 days = 75% refund
    CHARGE_50_MIN_DAYS = 8  # >= 8 days = 50% refund

    # Refund percentages
    FREE_CANCELLATION_PERCENT = 100
    CHARGE_25_PERCENT = 75
    CHARGE_50_PERCENT = 50
    NO_REFUND_PERCENT = 0

    FREE_CANCELLATION_LABEL = "Free Cancellation"
    CHARGE_25_LABEL = "25% Cancellation Charge"
    CHARGE_50_LABEL = "50% Cancellation Charge"
    NO_REFUND_LABEL = "No Refund"
    CUSTOM_REFUND_LABEL = "Custom Refund"

    @staticmethod
    def days_until_trek(
        start_date: dt.datetime | dt.date | str | None,
        now: dt.datetime,
    ) -> int:
        """Whole days until the trek starts, rounded up.

        One millisecond short of 21 days counts as 21; exactly 21 days counts
        as 21; a start already passed gives zero or a negative number.
        """
        start = _to_utc_datetime(start_date)
        current = _to_utc_datetime(now)
        # ceil(delta / 1 day) using exact timedelta floor division
        return -((current - start) // ONE_DAY)

    def calculate_refund_amount(
        self,
        amount: Decimal | int,
        start_date: dt.datetime | dt.date | str | None,
        now: dt.datetime,
    ) -> RefundCalculation:
        """Calculate the policy refund for an amount.

        Args:
            amount: Amount paid in INR (entire booking or selected participants)
            start_date: Batch start date
            now: Evaluation instant

        Returns:
            RefundCalculation with refund amount and policy details

        Raises:
            ValueError: If amount is negative
            BookingError: INVALID_TREK_START_DATE for a missing/invalid date
        """
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError("amount must not be negative")

        days = self.days_until_trek(start_date, now)

        if days > self.FREE_CANCELLATION_AFTER_DAYS:
            percentage = self.FREE_CANCELLATION_PERCENT
            tier = "free"
            label = self.FREE_CANCELLATION_LABEL
        elif days >= self.CHARGE_25_MIN_DAYS:
            percentage = self.CHARGE_25_PERCENT
            tier = "charge_25"
            label = self.CHARGE_25_LABEL
        elif days >= self.CHARGE_50_MIN_DAYS:
            percentage = self.CHARGE_50_PERCENT
            tier = "charge_50"
            label = self.CHARGE_50_LABEL
        else:
            percentage = self.NO_REFUND_PERCENT
            tier = "none"
            label = self.NO_REFUND_LABEL

        if days <= 0:
            description = f"{label}: cancelled on or after the trek start date"
        else:
            description = f"{label} ({percentage}% refund): cancelled {days} days before the trek"

        return RefundCalculation(
            refund_amount=quantize_money(amount * percentage / 100),
            refund_percentage=percentage,
            policy_tier=tier,
            policy_label=label,
            days_until_trek=days,
            description=description,
        )

    @staticmethod
    def clamp_custom_refund(amount: Decimal | int, custom_amount: Decimal | int) -> Decimal:
        """Clamp an admin-entered refund to [0, amount]."""
        upper = Decimal(amount)
        return quantize_money(min(max(Decimal(custom_amount), Decimal("0")), upper))

    def quote_cancellation(
        self,
        booking: Booking,
        start_date: dt.datetime | dt.date | str | None,
        options: CancellationOptions,
        now: dt.datetime,
    ) -> CancellationQuote:
        """Compute the refund for cancelling a booking or some participants.

        Entire cancellations refund against the booking total less the shares
        of participants already cancelled through this workflow. Individual
        cancellations refund against ``total_price / len(participants)`` for
        each selected participant that exists and is not already cancelled.

        Args:
            booking: Booking being cancelled
            start_date: Batch start date
            options: Cancellation scope and refund mode
            now: Evaluation instant

        Returns:
            CancellationQuote with total and per-participant refunds

        Raises:
            BookingError: ALREADY_CANCELLED, INVALID_CANCELLATION_SELECTION or
                INVALID_TREK_START_DATE
        """
        affected = self._affected_participants(booking, options)
        per_participant = Decimal(booking.total_price) / len(booking.participants)
        if options.cancellation_type == CancellationType.ENTIRE:
            # Seats already cancelled through this workflow had their share quoted then
            refunded_seats = sum(
                1 for p in booking.participants if p.is_cancelled and p.refund_status is not None
            )
            base_amount = quantize_money(
                max(Decimal("0"), Decimal(booking.total_price) - per_participant * refunded_seats)
            )
        else:
            base_amount = quantize_money(per_participant * len(affected))

        # The policy tier is always evaluated so an invalid start date is
        # reported even for custom refunds.
        calculation = self.calculate_refund_amount(base_amount, start_date, now)

        if options.refund_type == RefundType.CUSTOM:
            total_refund = self.clamp_custom_refund(
                base_amount, options.custom_refund_amount or Decimal("0")
            )
            percentage = None
            label = self.CUSTOM_REFUND_LABEL
        else:
            total_refund = calculation["refund_amount"]
            percentage = calculation["refund_percentage"]
            label = calculation["policy_label"]

        shares = split_evenly(total_refund, len(affected))
        return CancellationQuote(
            booking_id=booking.booking_id,
            cancellation_type=options.cancellation_type,
            refund_type=options.refund_type,
            base_amount=quantize_money(base_amount),
            total_refund=total_refund,
            refund_percentage=percentage,
            policy_label=label,
            days_until_trek=calculation["days_until_trek"],
            participants=[
                ParticipantRefund(
                    participant_id=participant.participant_id,
                    name=participant.name,
                    refund_amount=share,
                )
                for participant, share in zip(affected, shares)
            ],
        )

    @staticmethod
    def _affected_participants(
        booking: Booking, options: CancellationOptions
    ) -> list[Participant]:
        if booking.status == BookingStatus.CANCELLED:
            raise BookingError(
                ErrorCode.ALREADY_CANCELLED, details={"booking_id": booking.booking_id}
            )
        if options.cancellation_type == CancellationType.ENTIRE:
            return booking.active_participants

        selected = set(options.selected_participants)
        affected = [
            p
            for p in booking.participants
            if p.participant_id in selected and not p.is_cancelled
        ]
        if not affected:
            raise BookingError(
                ErrorCode.INVALID_CANCELLATION_SELECTION,
                details={"selected": ",".join(options.selected_participants)},
            )
        return affected

    def get_policy_description(self) -> str:
        """Get human-readable description of the refund policy.

        Returns:
            Policy description text
        """
        return (
            "Cancellation Policy:\n"
            "• More than 21 days before the trek: Free cancellation (100% refund)\n"
            "• 15-21 days before the trek: 25% cancellation charge (75% refund)\n"
            "• 8-14 days before the trek: 50% cancellation charge (50% refund)\n"
            "• Less than 8 days before the trek: No refund"
        )
