"""Booking service for the booking lifecycle and cancellations.

Covers creation (pricing with offers and promo codes, partial payments, seat
reservation), admin status management, remarks, user cancellation/reschedule
requests, the cancellation workflow with refunds, participant-level changes,
batch shifts, CSV export and the auto-cancel job for overdue partial payments.

Every cancellation entry point prices the refund through
RefundPolicyEvaluator.quote_cancellation; the amount a client previews is
never trusted.
"""

import csv
import datetime as dt
import io
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from trek_shared.models.booking import (
    Booking,
    BookingCreate,
    CancellationRequest,
    PartialPaymentDetails,
    Participant,
    PaymentDetails,
    RemarkEntry,
)
from trek_shared.models.catalog import Trek
from trek_shared.models.common import quantize_money
from trek_shared.models.enums import (
    CANCELLABLE_STATUSES,
    BookingStatus,
    CancellationType,
    PaymentMode,
    RefundStatus,
    RequestStatus,
    RequestType,
)
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.models.refund import CancellationOptions, CancellationQuote
from trek_shared.utils.logging import get_logger, log_booking_operation

from .dynamodb import from_item, to_item
from .email_service import EmailServiceError
from .refund_policy_service import RefundPolicyEvaluator

if TYPE_CHECKING:
    from .catalog import CatalogService
    from .dynamodb import DynamoDBService
    from .email_service import EmailService
    from .payment_service import PaymentService
    from .promotions import OfferService, PromoCodeService

logger = get_logger(__name__)

DEFAULT_CANCELLATION_REASON = "Admin cancelled"
AUTO_CANCEL_REASON = "Auto-cancelled due to non-payment of remaining balance"
SYSTEM_ACTOR = "system"

EXPORT_FIELDS: tuple[str, ...] = (
    "booking_id",
    "trek_name",
    "batch_dates",
    "user_name",
    "user_email",
    "user_phone",
    "participants",
    "total_price",
    "status",
    "created_at",
    "refund_amount",
)


def available_actions(booking: Booking) -> list[str]:
    """Admin actions that make sense for a booking in its current state."""
    actions = ["add_remarks"]
    status = booking.status
    if status in CANCELLABLE_STATUSES:
        actions.append("cancel")
    if (
        status == BookingStatus.PAYMENT_CONFIRMED_PARTIAL
        and booking.payment_mode == PaymentMode.PARTIAL
    ):
        actions.append("mark_partial_complete")
    if status in (BookingStatus.PENDING, BookingStatus.PENDING_PAYMENT):
        actions.append("record_payment")
    if status == BookingStatus.CONFIRMED:
        actions.extend(["shift_batch", "complete_trek"])
    if status == BookingStatus.CANCELLED:
        actions.append("restore")
    request = booking.cancellation_request
    if request and request.status == RequestStatus.PENDING:
        actions.append("respond_request")
    return actions


class BookingService:
    """Service for booking operations."""

    BOOKINGS_TABLE = "bookings"

    def __init__(
        self,
        db: "DynamoDBService",
        catalog: "CatalogService",
        promo_codes: "PromoCodeService",
        offers: "OfferService",
        payments: "PaymentService",
        email: "EmailService",
        refund_policy: RefundPolicyEvaluator | None = None,
    ) -> None:
        """Initialize booking service.

        Args:
            db: DynamoDB service instance
            catalog: Trek/batch lookups and seat counts
            promo_codes: Promo code validation
            offers: Automatic offers
            payments: Refund issuing
            email: Notification sender
            refund_policy: Refund evaluator (defaults to the standard policy)
        """
        self.db = db
        self.catalog = catalog
        self.promo_codes = promo_codes
        self.offers = offers
        self.payments = payments
        self.email = email
        self.refund_policy = refund_policy or RefundPolicyEvaluator()

    # =========================================================================
    # Persistence helpers
    # =========================================================================

    @staticmethod
    def _generate_booking_id() -> str:
        return f"BKG-{uuid.uuid4().hex[:12].upper()}"

    @staticmethod
    def _now(now: dt.datetime | None) -> dt.datetime:
        return now or dt.datetime.now(dt.UTC)

    def _save(self, booking: Booking, now: dt.datetime | None = None) -> None:
        booking.updated_at = self._now(now)
        self.db.put_item(self.BOOKINGS_TABLE, to_item(booking))

    def _recount_batch(self, booking: Booking) -> None:
        """Refresh the batch seat count, logging instead of failing."""
        try:
            self.catalog.recalculate_batch_participants(booking.trek_id, booking.batch_id)
        except BookingError as e:
            logger.warning(
                "Could not recalculate participants for batch %s: %s",
                booking.batch_id,
                e.message,
            )

    def _batch_start(self, trek: Trek | None, batch_id: str) -> dt.datetime | None:
        if trek is None:
            return None
        batch = trek.find_batch(batch_id)
        return batch.start_date if batch else None

    # =========================================================================
    # Creation and lookups
    # =========================================================================

    def create_booking(
        self,
        data: BookingCreate,
        user_id: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Create a booking awaiting payment.

        Price is batch price times seats, minus the best active offer and
        then minus the promo code discount. Seats are reserved immediately.

        Args:
            data: Booking request
            user_id: Subject of the authenticated user
            now: Creation instant

        Returns:
            Created Booking with status pending_payment

        Raises:
            BookingError: TREK_NOT_FOUND, BATCH_NOT_FOUND, TREK_UNAVAILABLE,
                PARTICIPANT_COUNT_MISMATCH, PARTIAL_PAYMENT_UNAVAILABLE,
                CAPACITY_EXCEEDED or a promo code error
        """
        now = self._now(now)
        trek, batch = self.catalog.get_batch(data.trek_id, data.batch_id)
        if not trek.is_enabled or not batch.is_active or batch.start_date <= now:
            raise BookingError(
                ErrorCode.TREK_UNAVAILABLE,
                details={"trek_id": data.trek_id, "batch_id": data.batch_id},
            )

        seats = data.number_of_participants
        if len(data.participants) != seats:
            raise BookingError(
                ErrorCode.PARTICIPANT_COUNT_MISMATCH,
                details={"seats": str(seats), "participants": str(len(data.participants))},
            )
        if batch.current_participants + seats > batch.max_participants:
            raise BookingError(
                ErrorCode.CAPACITY_EXCEEDED,
                details={"available": str(batch.available_slots), "requested": str(seats)},
            )

        base_price = quantize_money(batch.price * seats)
        price = base_price
        offer_id = None
        best = self.offers.best_offer_for_trek(trek.trek_id, base_price, now)
        if best is not None:
            offer, price = best
            offer_id = offer.offer_id

        promo_code = None
        if data.promo_code:
            validation = self.promo_codes.validate_promo_code(
                data.promo_code, trek.trek_id, price, now
            )
            price = validation.final_price
            promo_code = validation.code

        partial_payment = None
        if data.payment_mode == PaymentMode.PARTIAL:
            partial_payment = self._partial_payment_split(trek, batch.start_date, price, seats)

        booking = Booking(
            booking_id=self._generate_booking_id(),
            trek_id=trek.trek_id,
            batch_id=batch.batch_id,
            user_id=user_id,
            user_details=data.user_details,
            participants=[
                Participant(
                    participant_id=f"P-{uuid.uuid4().hex[:8].upper()}",
                    **p.model_dump(),
                )
                for p in data.participants
            ],
            total_price=price,
            payment_mode=data.payment_mode,
            partial_payment=partial_payment,
            status=BookingStatus.PENDING_PAYMENT,
            promo_code=promo_code,
            discount_amount=quantize_money(base_price - price),
            offer_id=offer_id,
            created_at=now,
            updated_at=now,
        )

        self.catalog.reserve_seats(trek.trek_id, batch.batch_id, seats)
        self._save(booking, now)
        if promo_code:
            self.promo_codes.increment_usage(promo_code)

        log_booking_operation(
            logger,
            "create_booking",
            booking_id=booking.booking_id,
            batch_id=batch.batch_id,
            actor=user_id,
            status=booking.status.value,
            seats=seats,
            total_price=str(price),
        )
        return booking

    @staticmethod
    def _partial_payment_split(
        trek: Trek,
        start_date: dt.datetime,
        total: Decimal,
        seats: int,
    ) -> PartialPaymentDetails:
        settings = trek.partial_payment
        if not settings.enabled:
            raise BookingError(
                ErrorCode.PARTIAL_PAYMENT_UNAVAILABLE, details={"trek_id": trek.trek_id}
            )
        if settings.advance_amount is not None:
            advance = Decimal(settings.advance_amount) * seats
        else:
            advance = total * Decimal(settings.advance_percentage or 0) / 100
        advance = quantize_money(min(advance, total))
        return PartialPaymentDetails(
            advance_amount=advance,
            remaining_amount=quantize_money(total - advance),
            final_payment_due_date=start_date
            - dt.timedelta(days=settings.final_payment_days_before),
            auto_cancel_on_due_date=settings.auto_cancel_on_due_date,
        )

    def get_booking(self, booking_id: str) -> Booking:
        """Get a booking by ID.

        Raises:
            BookingError: BOOKING_NOT_FOUND
        """
        item = self.db.get_item(self.BOOKINGS_TABLE, {"booking_id": booking_id})
        if not item:
            raise BookingError(ErrorCode.BOOKING_NOT_FOUND, details={"booking_id": booking_id})
        return from_item(Booking, item)

    def get_booking_for_user(self, booking_id: str, user_id: str, is_admin: bool = False) -> Booking:
        """Get a booking the caller owns (admins see every booking).

        Raises:
            BookingError: BOOKING_NOT_FOUND or UNAUTHORIZED
        """
        booking = self.get_booking(booking_id)
        if not is_admin and booking.user_id != user_id:
            raise BookingError(ErrorCode.UNAUTHORIZED, details={"booking_id": booking_id})
        return booking

    def get_user_bookings(self, user_id: str) -> list[Booking]:
        """All bookings of a user, newest first."""
        items = self.db.query_by_gsi(
            table=self.BOOKINGS_TABLE,
            index_name="user_id-index",
            partition_key_name="user_id",
            partition_key_value=user_id,
        )
        bookings = [from_item(Booking, item) for item in items]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def list_bookings(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        status: BookingStatus | None = None,
        trek_id: str | None = None,
        batch_id: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Booking], int]:
        """Filtered, newest-first page of bookings.

        Args:
            page: 1-based page number
            limit: Page size
            status: Only bookings in this status
            trek_id: Only bookings for this trek
            batch_id: Only bookings for this batch
            search: Case-insensitive match on booking ID, user name or email

        Returns:
            (bookings on the page, total matching bookings)
        """
        bookings = self._filtered_bookings(status=status, trek_id=trek_id, batch_id=batch_id)
        if search:
            needle = search.strip().lower()
            bookings = [
                b
                for b in bookings
                if needle in b.booking_id.lower()
                or needle in b.user_details.name.lower()
                or needle in str(b.user_details.email).lower()
            ]

        total = len(bookings)
        start = (page - 1) * limit
        return bookings[start : start + limit], total

    def _filtered_bookings(
        self,
        *,
        status: BookingStatus | None = None,
        trek_id: str | None = None,
        batch_id: str | None = None,
        created_from: dt.datetime | None = None,
        created_to: dt.datetime | None = None,
    ) -> list[Booking]:
        bookings = [from_item(Booking, item) for item in self.db.scan(self.BOOKINGS_TABLE)]
        if status:
            bookings = [b for b in bookings if b.status == status]
        if trek_id:
            bookings = [b for b in bookings if b.trek_id == trek_id]
        if batch_id:
            bookings = [b for b in bookings if b.batch_id == batch_id]
        if created_from:
            bookings = [b for b in bookings if b.created_at >= created_from]
        if created_to:
            bookings = [b for b in bookings if b.created_at <= created_to]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    # =========================================================================
    # Admin status management
    # =========================================================================

    def update_status(
        self,
        booking_id: str,
        status: BookingStatus,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Set a booking status by hand.

        Terminal bookings cannot change, except that a cancelled booking can
        be restored to confirmed (its participants are reinstated).
        Cancelling goes through cancel_booking so refunds are handled.

        Raises:
            BookingError: INVALID_STATUS_TRANSITION
        """
        now = self._now(now)
        booking = self.get_booking(booking_id)
        current = booking.status
        if status == current:
            return booking

        restoring = current == BookingStatus.CANCELLED and status == BookingStatus.CONFIRMED
        if status == BookingStatus.CANCELLED or (current.is_terminal and not restoring):
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": current.value, "to": status.value},
            )

        if restoring:
            for participant in booking.participants:
                participant.is_cancelled = False
                participant.cancelled_at = None
                participant.cancellation_reason = None
            booking.cancelled_at = None
            booking.cancellation_reason = None
            booking.cancelled_by = None

        booking.status = status
        self._save(booking, now)
        self._recount_batch(booking)
        log_booking_operation(
            logger,
            "update_status",
            booking_id=booking_id,
            actor=actor,
            status=status.value,
            previous=current.value,
        )
        return booking

    def add_admin_remarks(
        self,
        booking_id: str,
        remarks: str,
        admin: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Append a remark to the booking history.

        Earlier remarks are kept; admin_remarks mirrors the latest one.
        """
        now = self._now(now)
        booking = self.get_booking(booking_id)
        booking.remarks_history.append(RemarkEntry(remarks=remarks, added_by=admin, added_at=now))
        booking.admin_remarks = remarks
        self._save(booking, now)
        log_booking_operation(logger, "add_remarks", booking_id=booking_id, actor=admin)
        return booking

    def record_payment(
        self,
        booking_id: str,
        payment_intent_id: str,
        amount: Decimal,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Record a payment captured by the gateway.

        Full-payment bookings become confirmed; partial-payment bookings
        become payment_confirmed_partial until the balance is settled.

        Raises:
            BookingError: INVALID_STATUS_TRANSITION unless the booking awaits payment
        """
        now = self._now(now)
        booking = self.get_booking(booking_id)
        if booking.status not in (BookingStatus.PENDING, BookingStatus.PENDING_PAYMENT):
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "record_payment"},
            )

        booking.payment_details = PaymentDetails(
            payment_intent_id=payment_intent_id, amount=amount, paid_at=now
        )
        booking.status = (
            BookingStatus.PAYMENT_CONFIRMED_PARTIAL
            if booking.payment_mode == PaymentMode.PARTIAL
            else BookingStatus.CONFIRMED
        )
        self._save(booking, now)
        log_booking_operation(
            logger,
            "record_payment",
            booking_id=booking_id,
            actor=actor,
            status=booking.status.value,
        )
        return booking

    def mark_partial_payment_complete(
        self,
        booking_id: str,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Mark the remaining balance of a partial-payment booking as paid.

        Raises:
            BookingError: INVALID_STATUS_TRANSITION unless the booking is a
                partial-payment booking in payment_confirmed_partial
        """
        booking = self.get_booking(booking_id)
        if (
            booking.payment_mode != PaymentMode.PARTIAL
            or booking.status != BookingStatus.PAYMENT_CONFIRMED_PARTIAL
        ):
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "mark_partial_complete"},
            )

        booking.status = BookingStatus.CONFIRMED
        if booking.partial_payment:
            booking.partial_payment.remaining_amount = Decimal("0")
        self._save(booking, now)
        log_booking_operation(
            logger,
            "mark_partial_complete",
            booking_id=booking_id,
            actor=actor,
            status=booking.status.value,
        )
        return booking

    def mark_trek_completed(
        self,
        booking_id: str,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Move a confirmed booking to trek_completed."""
        booking = self.get_booking(booking_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "complete_trek"},
            )
        booking.status = BookingStatus.TREK_COMPLETED
        self._save(booking, now)
        log_booking_operation(
            logger, "complete_trek", booking_id=booking_id, actor=actor, status="trek_completed"
        )
        return booking

    # =========================================================================
    # Cancellation / reschedule requests
    # =========================================================================

    def request_cancellation(
        self,
        booking_id: str,
        user_id: str,
        request_type: RequestType,
        reason: str,
        preferred_batch_id: str | None = None,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Raise a cancellation or reschedule request on an owned booking.

        Raises:
            BookingError: UNAUTHORIZED, INVALID_STATUS_TRANSITION or
                REQUEST_ALREADY_PENDING
        """
        now = self._now(now)
        booking = self.get_booking_for_user(booking_id, user_id)
        if booking.status not in CANCELLABLE_STATUSES:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "request"},
            )
        existing = booking.cancellation_request
        if existing and existing.status == RequestStatus.PENDING:
            raise BookingError(ErrorCode.REQUEST_ALREADY_PENDING, details={"booking_id": booking_id})

        if request_type == RequestType.RESCHEDULE and preferred_batch_id:
            self.catalog.get_batch(booking.trek_id, preferred_batch_id)

        booking.cancellation_request = CancellationRequest(
            type=request_type,
            reason=reason,
            preferred_batch_id=preferred_batch_id,
            status=RequestStatus.PENDING,
            requested_at=now,
        )
        self._save(booking, now)
        log_booking_operation(
            logger,
            "request_cancellation",
            booking_id=booking_id,
            actor=user_id,
            request_type=request_type.value,
        )
        return booking

    def respond_to_request(
        self,
        booking_id: str,
        decision: RequestStatus,
        admin: str,
        admin_response: str | None = None,
        options: CancellationOptions | None = None,
        now: dt.datetime | None = None,
    ) -> tuple[Booking, CancellationQuote | None]:
        """Approve or reject the pending request of a booking.

        Approving a cancellation request runs the cancellation workflow
        (entire booking with the policy refund unless ``options`` says
        otherwise). Approving a reschedule with a preferred batch shifts the
        booking to it.

        Returns:
            (updated booking, cancellation quote if a cancellation ran)

        Raises:
            BookingError: NO_PENDING_REQUEST, or any cancellation/shift error
        """
        if decision == RequestStatus.PENDING:
            raise ValueError("decision must be approved or rejected")

        now = self._now(now)
        booking = self.get_booking(booking_id)
        request = booking.cancellation_request
        if request is None or request.status != RequestStatus.PENDING:
            raise BookingError(ErrorCode.NO_PENDING_REQUEST, details={"booking_id": booking_id})

        request.status = decision
        request.admin_response = admin_response
        request.responded_at = now
        self._save(booking, now)
        log_booking_operation(
            logger,
            "respond_request",
            booking_id=booking_id,
            actor=admin,
            decision=decision.value,
            request_type=request.type.value,
        )

        if decision != RequestStatus.APPROVED:
            return booking, None

        if request.type == RequestType.CANCELLATION:
            cancel_options = options or CancellationOptions(reason=request.reason)
            return self.cancel_booking(booking_id, cancel_options, cancelled_by=admin, now=now)

        if request.preferred_batch_id:
            booking = self.shift_batch(booking_id, request.preferred_batch_id, actor=admin, now=now)
        return booking, None

    # =========================================================================
    # Cancellation workflow
    # =========================================================================

    def calculate_refund(
        self,
        booking_id: str,
        options: CancellationOptions,
        now: dt.datetime | None = None,
    ) -> CancellationQuote:
        """Preview the refund of a cancellation without changing anything."""
        booking = self.get_booking(booking_id)
        trek = self.catalog.find_trek(booking.trek_id)
        return self.refund_policy.quote_cancellation(
            booking,
            self._batch_start(trek, booking.batch_id),
            options,
            self._now(now),
        )

    def cancel_booking(
        self,
        booking_id: str,
        options: CancellationOptions,
        cancelled_by: str,
        now: dt.datetime | None = None,
    ) -> tuple[Booking, CancellationQuote]:
        """Cancel a whole booking or selected participants and refund them.

        The refund is recomputed here. Refunds go through the payment gateway
        only when a payment was captured and the amount is positive; gateway
        failures are recorded as refund_status=failed. Batch recount and
        e-mail failures are logged and do not fail the cancellation.

        Args:
            booking_id: Booking to cancel
            options: Scope and refund mode
            cancelled_by: Admin subject or "system"
            now: Evaluation instant

        Returns:
            (updated booking, quote used for the refund)

        Raises:
            BookingError: BOOKING_NOT_FOUND, ALREADY_CANCELLED,
                INVALID_STATUS_TRANSITION, INVALID_CANCELLATION_SELECTION or
                INVALID_TREK_START_DATE
        """
        now = self._now(now)
        booking = self.get_booking(booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise BookingError(ErrorCode.ALREADY_CANCELLED, details={"booking_id": booking_id})
        if booking.status == BookingStatus.TREK_COMPLETED:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "cancel"},
            )

        trek = self.catalog.find_trek(booking.trek_id)
        quote = self.refund_policy.quote_cancellation(
            booking, self._batch_start(trek, booking.batch_id), options, now
        )

        reason = options.reason or DEFAULT_CANCELLATION_REASON
        payment_intent_id = (
            booking.payment_details.payment_intent_id if booking.payment_details else None
        )

        affected = set(quote.participant_ids)
        for participant in booking.participants:
            if participant.participant_id in affected:
                participant.is_cancelled = True
                participant.cancelled_at = now
                participant.cancellation_reason = reason

        if options.cancellation_type == CancellationType.ENTIRE:
            booking.status = BookingStatus.CANCELLED
            booking.cancelled_at = now
            booking.cancellation_reason = reason
            booking.cancelled_by = cancelled_by
            booking.refund_status = self._issue_refund(
                payment_intent_id, quote.total_refund, reason, booking.booking_id
            )
            if booking.refund_status == RefundStatus.SUCCESS:
                booking.refund_amount = quote.total_refund
                booking.refund_date = now
        else:
            for share in quote.participants:
                participant = booking.find_participant(share.participant_id)
                if participant is None:
                    continue
                participant.refund_status = self._issue_refund(
                    payment_intent_id,
                    share.refund_amount,
                    reason,
                    booking.booking_id,
                    participant.participant_id,
                )
                if participant.refund_status == RefundStatus.SUCCESS:
                    participant.refund_amount = share.refund_amount
                    participant.refund_date = now

            if all(p.is_cancelled for p in booking.participants):
                booking.status = BookingStatus.CANCELLED
                booking.cancelled_at = now
                booking.cancellation_reason = reason
                booking.cancelled_by = cancelled_by

        self._save(booking, now)
        self._recount_batch(booking)

        cancelled_names = [p.name for p in booking.participants if p.participant_id in affected]
        try:
            self.email.send_cancellation_email(
                booking,
                trek,
                options.cancellation_type,
                cancelled_names,
                quote.total_refund,
                reason,
            )
        except EmailServiceError as e:
            logger.warning("Cancellation e-mail for %s not sent: %s", booking_id, e)

        log_booking_operation(
            logger,
            "cancel_booking",
            booking_id=booking_id,
            actor=cancelled_by,
            status=booking.status.value,
            cancellation_type=options.cancellation_type.value,
            refund=str(quote.total_refund),
        )
        return booking, quote

    def _issue_refund(
        self,
        payment_intent_id: str | None,
        amount: Decimal,
        reason: str,
        booking_id: str,
        participant_id: str | None = None,
    ) -> RefundStatus:
        if amount <= 0 or not payment_intent_id:
            return RefundStatus.NOT_APPLICABLE

        result = self.payments.process_refund(
            payment_intent_id,
            amount,
            reason=reason,
            booking_id=booking_id,
            participant_id=participant_id,
        )
        return RefundStatus.SUCCESS if result.success else RefundStatus.FAILED

    # =========================================================================
    # Participant changes and batch shifts
    # =========================================================================

    def cancel_participant(
        self,
        booking_id: str,
        participant_id: str,
        actor: str,
        reason: str | None = None,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Drop one participant without a refund, reducing the price by a seat.

        Raises:
            BookingError: PARTICIPANT_NOT_FOUND, PARTICIPANT_ALREADY_CANCELLED
                or INVALID_STATUS_TRANSITION
        """
        now = self._now(now)
        booking = self.get_booking(booking_id)
        if booking.status not in CANCELLABLE_STATUSES:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "cancel_participant"},
            )
        participant = self._require_participant(booking, participant_id)
        if participant.is_cancelled:
            raise BookingError(
                ErrorCode.PARTICIPANT_ALREADY_CANCELLED,
                details={"participant_id": participant_id},
            )

        participant.is_cancelled = True
        participant.cancelled_at = now
        participant.cancellation_reason = reason
        seat_price = self._seat_price(booking)
        booking.total_price = quantize_money(max(Decimal("0"), booking.total_price - seat_price))

        self._save(booking, now)
        self._recount_batch(booking)
        log_booking_operation(
            logger,
            "cancel_participant",
            booking_id=booking_id,
            actor=actor,
            participant_id=participant_id,
        )
        return booking

    def restore_participant(
        self,
        booking_id: str,
        participant_id: str,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Reinstate a cancelled participant, adding a seat back to the price.

        Raises:
            BookingError: PARTICIPANT_NOT_FOUND, PARTICIPANT_NOT_CANCELLED,
                INVALID_STATUS_TRANSITION or CAPACITY_EXCEEDED
        """
        booking = self.get_booking(booking_id)
        if booking.status not in CANCELLABLE_STATUSES:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "restore_participant"},
            )
        participant = self._require_participant(booking, participant_id)
        if not participant.is_cancelled:
            raise BookingError(
                ErrorCode.PARTICIPANT_NOT_CANCELLED,
                details={"participant_id": participant_id},
            )

        _, batch = self.catalog.get_batch(booking.trek_id, booking.batch_id)
        if batch.available_slots < 1:
            raise BookingError(
                ErrorCode.CAPACITY_EXCEEDED,
                details={"batch_id": batch.batch_id, "available": "0", "requested": "1"},
            )

        participant.is_cancelled = False
        participant.cancelled_at = None
        participant.cancellation_reason = None
        booking.total_price = quantize_money(booking.total_price + batch.price)

        self._save(booking, now)
        self._recount_batch(booking)
        log_booking_operation(
            logger,
            "restore_participant",
            booking_id=booking_id,
            actor=actor,
            participant_id=participant_id,
        )
        return booking

    @staticmethod
    def _require_participant(booking: Booking, participant_id: str) -> Participant:
        participant = booking.find_participant(participant_id)
        if participant is None:
            raise BookingError(
                ErrorCode.PARTICIPANT_NOT_FOUND,
                details={"booking_id": booking.booking_id, "participant_id": participant_id},
            )
        return participant

    def _seat_price(self, booking: Booking) -> Decimal:
        trek = self.catalog.find_trek(booking.trek_id)
        batch = trek.find_batch(booking.batch_id) if trek else None
        if batch is not None:
            return Decimal(batch.price)
        return Decimal(booking.total_price) / max(len(booking.participants), 1)

    def shift_batch(
        self,
        booking_id: str,
        new_batch_id: str,
        actor: str,
        now: dt.datetime | None = None,
    ) -> Booking:
        """Move a confirmed booking to another batch of the same trek.

        Raises:
            BookingError: INVALID_STATUS_TRANSITION, BATCH_NOT_FOUND or
                CAPACITY_EXCEEDED
        """
        booking = self.get_booking(booking_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise BookingError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": booking.status.value, "action": "shift_batch"},
            )
        if new_batch_id == booking.batch_id:
            return booking

        old_batch_id = booking.batch_id
        self.catalog.reserve_seats(
            booking.trek_id, new_batch_id, len(booking.active_participants)
        )
        booking.batch_id = new_batch_id
        self._save(booking, now)

        self._recount_batch(booking)
        try:
            self.catalog.recalculate_batch_participants(booking.trek_id, old_batch_id)
        except BookingError as e:
            logger.warning("Could not recalculate old batch %s: %s", old_batch_id, e.message)

        log_booking_operation(
            logger,
            "shift_batch",
            booking_id=booking_id,
            batch_id=new_batch_id,
            actor=actor,
            previous_batch=old_batch_id,
        )
        return booking

    # =========================================================================
    # Export and scheduled jobs
    # =========================================================================

    def export_bookings(
        self,
        *,
        status: BookingStatus | None = None,
        trek_id: str | None = None,
        batch_id: str | None = None,
        start_date: dt.datetime | None = None,
        end_date: dt.datetime | None = None,
        fields: list[str] | None = None,
    ) -> str:
        """Export bookings as CSV.

        Args:
            status, trek_id, batch_id: Equality filters
            start_date, end_date: Inclusive bounds on created_at
            fields: Columns to include, in order. Unknown names are ignored;
                an empty selection exports every column.

        Returns:
            CSV text with a header row
        """
        columns = [f for f in (fields or []) if f in EXPORT_FIELDS] or list(EXPORT_FIELDS)
        bookings = self._filtered_bookings(
            status=status,
            trek_id=trek_id,
            batch_id=batch_id,
            created_from=start_date,
            created_to=end_date,
        )
        treks = {trek.trek_id: trek for trek in self.catalog.list_treks()}

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        for booking in bookings:
            trek = treks.get(booking.trek_id)
            batch = trek.find_batch(booking.batch_id) if trek else None
            writer.writerow(
                {
                    "booking_id": booking.booking_id,
                    "trek_name": trek.name if trek else "",
                    "batch_dates": (
                        f"{batch.start_date.date().isoformat()} - {batch.end_date.date().isoformat()}"
                        if batch
                        else ""
                    ),
                    "user_name": booking.user_details.name,
                    "user_email": str(booking.user_details.email),
                    "user_phone": booking.user_details.phone or "",
                    "participants": len(booking.active_participants),
                    "total_price": f"{booking.total_price:.2f}",
                    "status": booking.status.value,
                    "created_at": booking.created_at.isoformat(),
                    "refund_amount": (
                        f"{booking.refund_amount:.2f}" if booking.refund_amount is not None else ""
                    ),
                }
            )
        return buffer.getvalue()

    def auto_cancel_overdue_partial_payments(
        self,
        now: dt.datetime | None = None,
    ) -> list[Booking]:
        """Cancel partial-payment bookings whose balance is overdue.

        A booking qualifies when it is a partial-payment booking in
        payment_confirmed_partial, its due date has passed and auto-cancel is
        enabled on both the booking and its trek.

        Returns:
            Bookings that were cancelled
        """
        now = self._now(now)
        candidates = self._filtered_bookings(status=BookingStatus.PAYMENT_CONFIRMED_PARTIAL)
        cancelled: list[Booking] = []

        for booking in candidates:
            details = booking.partial_payment
            if (
                booking.payment_mode != PaymentMode.PARTIAL
                or details is None
                or not details.auto_cancel_on_due_date
                or details.final_payment_due_date >= now
            ):
                continue

            trek = self.catalog.find_trek(booking.trek_id)
            if trek is not None and not trek.partial_payment.auto_cancel_on_due_date:
                logger.info(
                    "Auto-cancel disabled for trek %s, skipping booking %s",
                    trek.trek_id,
                    booking.booking_id,
                )
                continue

            for participant in booking.active_participants:
                participant.is_cancelled = True
                participant.cancelled_at = now
                participant.cancellation_reason = AUTO_CANCEL_REASON
            booking.status = BookingStatus.CANCELLED
            booking.cancellation_reason = AUTO_CANCEL_REASON
            booking.cancelled_at = now
            booking.cancelled_by = SYSTEM_ACTOR
            self._save(booking, now)
            self._recount_batch(booking)

            try:
                self.email.send_auto_cancel_email(booking, trek)
            except EmailServiceError as e:
                logger.warning("Auto-cancel e-mail for %s not sent: %s", booking.booking_id, e)

            log_booking_operation(
                logger,
                "auto_cancel",
                booking_id=booking.booking_id,
                actor=SYSTEM_ACTOR,
                status=booking.status.value,
            )
            cancelled.append(booking)

        return cancelled
