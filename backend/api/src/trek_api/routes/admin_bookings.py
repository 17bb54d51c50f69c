"""Admin booking management endpoints.

Provides REST endpoints for:
- Listing, searching and exporting bookings
- Manual status changes, payments, remarks and trek completion
- Refund previews and the cancellation workflow
- Responding to user cancellation/reschedule requests
- Participant cancel/restore and batch shifts

All endpoints require the admin role.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query, Response

from trek_api.dependencies import get_booking_service
from trek_api.models.bookings import (
    AdminBookingDetail,
    BookingListResponse,
    CancelBookingResponse,
    ParticipantCancelRequest,
    RecordPaymentRequest,
    RemarksRequest,
    RequestDecision,
    RequestDecisionResponse,
    ShiftBatchRequest,
    StatusUpdateRequest,
)
from trek_api.models.common import Pagination
from trek_api.security import CurrentUser, require_admin
from trek_shared.models.booking import Booking
from trek_shared.models.common import ensure_utc
from trek_shared.models.enums import BookingStatus
from trek_shared.models.refund import CancellationOptions, CancellationQuote
from trek_shared.services.booking import BookingService, available_actions

router = APIRouter(prefix="/admin/bookings", tags=["admin-bookings"])


@router.get(
    "",
    summary="List bookings",
    description="""
Paginated bookings, newest first.

**Query Parameters:**
- `status`, `trek_id`, `batch_id`: exact filters
- `search`: matches booking ID, user name or user email (case-insensitive)
""",
    response_model=BookingListResponse,
)
async def list_bookings(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    status: BookingStatus | None = Query(default=None),
    trek_id: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings, total = service.list_bookings(
        page=page,
        limit=limit,
        status=status,
        trek_id=trek_id,
        batch_id=batch_id,
        search=search,
    )
    return BookingListResponse(
        bookings=bookings,
        pagination=Pagination.build(total=total, page=page, limit=limit),
    )


@router.get(
    "/export",
    summary="Export bookings as CSV",
    description="""
Download bookings as a CSV file.

**Query Parameters:**
- `status`, `trek_id`, `batch_id`: exact filters
- `start_date`, `end_date`: inclusive bounds on booking creation time
- `fields`: comma-separated columns from booking_id, trek_name, batch_dates,
  user_name, user_email, user_phone, participants, total_price, status,
  created_at, refund_amount (default: all)
""",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}, "description": "CSV file"}},
)
async def export_bookings(
    status: BookingStatus | None = Query(default=None),
    trek_id: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    start_date: dt.datetime | None = Query(default=None),
    end_date: dt.datetime | None = Query(default=None),
    fields: str | None = Query(default=None),
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Response:
    content = service.export_bookings(
        status=status,
        trek_id=trek_id,
        batch_id=batch_id,
        start_date=ensure_utc(start_date) if start_date else None,
        end_date=ensure_utc(end_date) if end_date else None,
        fields=[f.strip() for f in fields.split(",")] if fields else None,
    )
    filename = f"bookings-{dt.datetime.now(dt.UTC):%Y%m%d-%H%M%S}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{booking_id}",
    summary="Get booking with available actions",
    response_model=AdminBookingDetail,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> AdminBookingDetail:
    booking = service.get_booking(booking_id)
    return AdminBookingDetail(booking=booking, available_actions=available_actions(booking))


@router.put(
    "/{booking_id}/status",
    summary="Update booking status",
    description="""
Set the status by hand.

Cancelled and completed bookings cannot change, except that a cancelled
booking may be restored to `confirmed`. Use `PATCH /cancel` to cancel, so
refunds are handled.
""",
    response_model=Booking,
    responses={400: {"description": "Transition not allowed"}},
)
async def update_status(
    booking_id: str,
    body: StatusUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.update_status(booking_id, body.status, actor=admin.sub)


@router.put(
    "/{booking_id}/remarks",
    summary="Add admin remark",
    description="Appends to the remark history; earlier remarks are kept.",
    response_model=Booking,
)
async def add_remarks(
    booking_id: str,
    body: RemarksRequest,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.add_admin_remarks(booking_id, body.remarks, admin=admin.email or admin.sub)


@router.put(
    "/{booking_id}/payment",
    summary="Record captured payment",
    description="""
Attach the captured PaymentIntent to a booking awaiting payment.

Full-payment bookings become `confirmed`; partial-payment bookings become
`payment_confirmed_partial`.
""",
    response_model=Booking,
    responses={400: {"description": "Booking is not awaiting payment"}},
)
async def record_payment(
    booking_id: str,
    body: RecordPaymentRequest,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.record_payment(
        booking_id, body.payment_intent_id, body.amount, actor=admin.sub
    )


@router.put(
    "/{booking_id}/mark-partial-complete",
    summary="Mark remaining balance paid",
    response_model=Booking,
    responses={400: {"description": "Not a partial-payment booking awaiting its balance"}},
)
async def mark_partial_complete(
    booking_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.mark_partial_payment_complete(booking_id, actor=admin.sub)


@router.put(
    "/{booking_id}/complete-trek",
    summary="Mark trek completed",
    response_model=Booking,
    responses={400: {"description": "Booking is not confirmed"}},
)
async def complete_trek(
    booking_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.mark_trek_completed(booking_id, actor=admin.sub)


@router.post(
    "/{booking_id}/calculate-refund",
    summary="Preview cancellation refund",
    description="""
Compute the refund for a cancellation without changing the booking.

**Refund policy** (days until the batch start, rounded up):
- More than 21 days: 100%
- 15-21 days: 75%
- 8-14 days: 50%
- Fewer than 8 days: no refund

Individual cancellations are priced at `total_price / participants` per
selected participant. Custom refunds are clamped to the refundable amount.
""",
    response_model=CancellationQuote,
    responses={
        400: {"description": "Invalid selection, already cancelled or no valid start date"},
        404: {"description": "Booking not found"},
    },
)
async def calculate_refund(
    booking_id: str,
    body: CancellationOptions,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> CancellationQuote:
    return service.calculate_refund(booking_id, body)


@router.patch(
    "/{booking_id}/cancel",
    summary="Cancel booking or participants",
    description="""
Cancel the entire booking or selected participants and issue the refund.

The refund is recomputed on the server; a `total_refund` sent by the client
is ignored. Refund failures are recorded as `refund_status=failed` on the
booking or participant and do not fail the request.
""",
    response_model=CancelBookingResponse,
    responses={
        400: {"description": "Invalid selection, already cancelled or no valid start date"},
        404: {"description": "Booking not found"},
    },
)
async def cancel_booking(
    booking_id: str,
    body: CancellationOptions,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> CancelBookingResponse:
    booking, quote = service.cancel_booking(booking_id, body, cancelled_by=admin.sub)
    return CancelBookingResponse(booking=booking, refund=quote)


@router.put(
    "/{booking_id}/cancellation-request",
    summary="Respond to user request",
    description="""
Approve or reject the pending cancellation/reschedule request.

Approving a cancellation request cancels the booking (entire booking with
the policy refund unless `cancellation` says otherwise). Approving a
reschedule with a preferred batch moves the booking to that batch.
""",
    response_model=RequestDecisionResponse,
    responses={400: {"description": "No pending request"}},
)
async def respond_to_request(
    booking_id: str,
    body: RequestDecision,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> RequestDecisionResponse:
    booking, quote = service.respond_to_request(
        booking_id,
        body.status,
        admin=admin.sub,
        admin_response=body.admin_response,
        options=body.cancellation,
    )
    return RequestDecisionResponse(booking=booking, refund=quote)


@router.put(
    "/{booking_id}/participants/{participant_id}/cancel",
    summary="Cancel participant",
    description="Drops one participant without a refund and lowers the price by one seat.",
    response_model=Booking,
)
async def cancel_participant(
    booking_id: str,
    participant_id: str,
    body: ParticipantCancelRequest | None = None,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.cancel_participant(
        booking_id,
        participant_id,
        actor=admin.sub,
        reason=body.reason if body else None,
    )


@router.put(
    "/{booking_id}/participants/{participant_id}/restore",
    summary="Restore participant",
    description="Reinstates a cancelled participant if the batch still has a seat.",
    response_model=Booking,
    responses={409: {"description": "Batch is full"}},
)
async def restore_participant(
    booking_id: str,
    participant_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.restore_participant(booking_id, participant_id, actor=admin.sub)


@router.put(
    "/{booking_id}/shift-batch",
    summary="Move booking to another batch",
    response_model=Booking,
    responses={
        400: {"description": "Booking is not confirmed"},
        404: {"description": "Batch not found"},
        409: {"description": "Target batch is full"},
    },
)
async def shift_batch(
    booking_id: str,
    body: ShiftBatchRequest,
    admin: CurrentUser = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.shift_batch(booking_id, body.new_batch_id, actor=admin.sub)
