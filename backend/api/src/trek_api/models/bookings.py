"""API models for booking endpoints.

Extends shared booking models with API-specific request/response formats.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from trek_shared.models.booking import Booking
from trek_shared.models.enums import BookingStatus, RequestStatus, RequestType
from trek_shared.models.refund import CancellationOptions, CancellationQuote

from .common import Pagination


class BookingListResponse(BaseModel):
    """Page of bookings for the admin list."""

    bookings: list[Booking]
    pagination: Pagination


class AdminBookingDetail(BaseModel):
    """A booking with the admin actions valid in its current state."""

    booking: Booking
    available_actions: list[str] = Field(
        ...,
        description="Action names, e.g. cancel, add_remarks, shift_batch",
        examples=[["add_remarks", "cancel", "shift_batch", "complete_trek"]],
    )


class StatusUpdateRequest(BaseModel):
    """Request to set a booking status by hand."""

    status: BookingStatus = Field(..., examples=["confirmed"])


class RemarksRequest(BaseModel):
    """Admin remark to append to a booking."""

    remarks: str = Field(..., min_length=1, max_length=2000)


class RecordPaymentRequest(BaseModel):
    """Payment captured by the gateway for a booking awaiting payment."""

    payment_intent_id: str = Field(..., min_length=1, examples=["pi_3ABC123DEF456"])
    amount: Decimal = Field(..., gt=0, description="Amount captured in INR")


class UserRequestCreate(BaseModel):
    """User-raised cancellation or reschedule request."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "request_type": "reschedule",
                    "reason": "Work commitments on the original dates",
                    "preferred_batch_id": "BAT-0A1B2C3D4E5F",
                }
            ]
        },
    )

    request_type: RequestType
    reason: str = Field(..., min_length=1, max_length=1000)
    preferred_batch_id: str | None = Field(
        default=None, description="Target batch for reschedule requests"
    )


class RequestDecision(BaseModel):
    """Admin response to a pending request.

    ``cancellation`` only applies when approving a cancellation request; it
    defaults to cancelling the entire booking with the policy refund.
    """

    status: RequestStatus = Field(..., examples=["approved"])
    admin_response: str | None = Field(default=None, max_length=1000)
    cancellation: CancellationOptions | None = None


class RequestDecisionResponse(BaseModel):
    booking: Booking
    refund: CancellationQuote | None = None


class CancelBookingResponse(BaseModel):
    """Outcome of a cancellation with the refund that was applied."""

    booking: Booking
    refund: CancellationQuote


class ParticipantCancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ShiftBatchRequest(BaseModel):
    new_batch_id: str = Field(..., min_length=1)
