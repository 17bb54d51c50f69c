"""Booking model and its embedded documents.

A booking reserves seats for one or more participants on a batch of a trek.
Participants, remarks and the cancellation request are embedded in the
booking document rather than stored separately.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .common import Money, UTCDateTime
from .enums import (
    BookingStatus,
    PaymentMode,
    RefundStatus,
    RequestStatus,
    RequestType,
)


class UserDetails(BaseModel):
    """Contact details of the user who made the booking."""

    name: str = Field(..., min_length=1, description="Full name")
    email: EmailStr = Field(..., description="Contact email")
    phone: str | None = Field(default=None, description="Contact phone number")


class EmergencyContact(BaseModel):
    """Emergency contact for a participant."""

    name: str
    phone: str
    relation: str | None = None


class Participant(BaseModel):
    """A person travelling under a booking."""

    # Lenient so stored documents (ISO strings, Decimal numbers) validate
    model_config = ConfigDict(strict=False)

    participant_id: str = Field(..., description="Unique participant ID within booking")
    name: str = Field(..., min_length=1)
    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = None
    contact_number: str | None = None
    emergency_contact: EmergencyContact | None = None
    medical_conditions: str | None = None
    special_requests: str | None = None
    custom_field_responses: dict[str, Any] = Field(default_factory=dict)

    is_cancelled: bool = False
    cancelled_at: UTCDateTime | None = None
    cancellation_reason: str | None = None
    refund_status: RefundStatus | None = None
    refund_amount: Money | None = None
    refund_date: UTCDateTime | None = None


class RemarkEntry(BaseModel):
    """One admin remark. Remarks are appended, never replaced."""

    remarks: str
    added_by: str
    added_at: UTCDateTime


class PartialPaymentDetails(BaseModel):
    """Advance/remaining split for bookings paid in two instalments."""

    model_config = ConfigDict(strict=False)

    advance_amount: Money
    remaining_amount: Money
    final_payment_due_date: UTCDateTime
    auto_cancel_on_due_date: bool = True
    reminder_sent: bool = False


class PaymentDetails(BaseModel):
    """Reference to the captured payment used for refunds."""

    model_config = ConfigDict(strict=False)

    payment_intent_id: str | None = Field(
        default=None,
        description="Stripe PaymentIntent ID (pi_xxx)",
        examples=["pi_3ABC123DEF456"],
    )
    amount: Money | None = None
    paid_at: UTCDateTime | None = None


class CancellationRequest(BaseModel):
    """User-raised request to cancel or reschedule a booking."""

    model_config = ConfigDict(strict=False)

    type: RequestType
    reason: str
    preferred_batch_id: str | None = None
    status: RequestStatus = RequestStatus.PENDING
    requested_at: UTCDateTime
    admin_response: str | None = None
    responded_at: UTCDateTime | None = None


class Booking(BaseModel):
    """A stored booking document."""

    model_config = ConfigDict(strict=False)

    booking_id: str = Field(..., description="Unique booking ID", examples=["BKG-1A2B3C4D5E6F"])
    trek_id: str
    batch_id: str
    user_id: str = Field(..., description="Identity provider subject of the booking owner")
    user_details: UserDetails
    participants: list[Participant] = Field(default_factory=list)
    total_price: Money = Field(..., ge=0, description="Amount payable in INR")
    payment_mode: PaymentMode = PaymentMode.FULL
    partial_payment: PartialPaymentDetails | None = None
    status: BookingStatus = BookingStatus.PENDING_PAYMENT
    payment_details: PaymentDetails | None = None

    promo_code: str | None = None
    discount_amount: Money = Decimal("0")
    offer_id: str | None = None

    cancellation_request: CancellationRequest | None = None
    cancellation_reason: str | None = None
    cancelled_at: UTCDateTime | None = None
    cancelled_by: str | None = None
    refund_status: RefundStatus | None = None
    refund_amount: Money | None = None
    refund_date: UTCDateTime | None = None

    admin_remarks: str | None = None
    remarks_history: list[RemarkEntry] = Field(default_factory=list)

    created_at: UTCDateTime
    updated_at: UTCDateTime

    @property
    def active_participants(self) -> list[Participant]:
        """Participants that have not been cancelled."""
        return [p for p in self.participants if not p.is_cancelled]

    def find_participant(self, participant_id: str) -> Participant | None:
        """Look up an embedded participant by ID."""
        for participant in self.participants:
            if participant.participant_id == participant_id:
                return participant
        return None


class ParticipantCreate(BaseModel):
    """Participant data supplied when booking."""

    name: str = Field(..., min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=120)
    gender: str | None = None
    contact_number: str | None = None
    emergency_contact: EmergencyContact | None = None
    medical_conditions: str | None = None
    special_requests: str | None = None
    custom_field_responses: dict[str, Any] = Field(default_factory=dict)


class BookingCreate(BaseModel):
    """Data required to create a booking."""

    trek_id: str
    batch_id: str
    number_of_participants: int = Field(..., ge=1, le=20)
    participants: list[ParticipantCreate] = Field(..., min_length=1)
    user_details: UserDetails
    payment_mode: PaymentMode = PaymentMode.FULL
    promo_code: str | None = None


class BookingSummary(BaseModel):
    """Compact booking view for listings."""

    booking_id: str
    trek_id: str
    batch_id: str
    user_name: str
    user_email: str
    participant_count: int
    active_participant_count: int
    total_price: Money
    status: BookingStatus
    has_pending_request: bool
    created_at: UTCDateTime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingSummary":
        """Build a summary from a full booking."""
        request = booking.cancellation_request
        return cls(
            booking_id=booking.booking_id,
            trek_id=booking.trek_id,
            batch_id=booking.batch_id,
            user_name=booking.user_details.name,
            user_email=str(booking.user_details.email),
            participant_count=len(booking.participants),
            active_participant_count=len(booking.active_participants),
            total_price=booking.total_price,
            status=booking.status,
            has_pending_request=bool(request and request.status == RequestStatus.PENDING),
            created_at=booking.created_at,
        )
