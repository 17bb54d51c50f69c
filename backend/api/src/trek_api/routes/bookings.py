"""Booking endpoints for signed-in users.

Provides REST endpoints for:
- Creating a booking
- Listing the caller's bookings
- Retrieving one booking (owner or admin)
- Raising a cancellation or reschedule request (owner only)

All endpoints require identity headers injected by API Gateway.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from trek_api.dependencies import get_booking_service
from trek_api.models.bookings import UserRequestCreate
from trek_api.security import CurrentUser, get_current_user
from trek_shared.models.booking import Booking, BookingCreate
from trek_shared.services.booking import BookingService

router = APIRouter(tags=["bookings"])


@router.post(
    "/bookings",
    summary="Create booking",
    description="""
Book seats on a batch of a trek.

**Requires authentication.**

Price is the batch price times the number of participants, minus the best
active offer for the trek, minus the promo code discount. Seats are held
immediately and the booking starts in `pending_payment`.

**Notes:**
- `participants` must contain exactly `number_of_participants` entries
- `payment_mode=partial` is only accepted when the trek allows it
- Amounts are INR
""",
    response_model=Booking,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Booking created"},
        400: {"description": "Trek unavailable, participant mismatch or promo code rejected"},
        401: {"description": "Authentication required"},
        404: {"description": "Trek or batch not found"},
        409: {"description": "Not enough seats left"},
    },
)
async def create_booking(
    body: BookingCreate,
    user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.create_booking(body, user_id=user.sub)


@router.get(
    "/bookings/me",
    summary="List my bookings",
    description="Bookings of the signed-in user, newest first.",
    response_model=list[Booking],
)
async def list_my_bookings(
    user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> list[Booking]:
    return service.get_user_bookings(user.sub)


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking",
    description="Booking details. Only the owner or an admin may read a booking.",
    response_model=Booking,
    responses={
        403: {"description": "Not the booking owner"},
        404: {"description": "Booking not found"},
    },
)
async def get_booking(
    booking_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.get_booking_for_user(booking_id, user.sub, is_admin=user.is_admin)


@router.put(
    "/bookings/{booking_id}/cancellation-request",
    summary="Request cancellation or reschedule",
    description="""
Ask an admin to cancel or reschedule a booking.

**Owner only.** A booking can have one pending request at a time, and only
bookings that are still cancellable accept requests. The refund, if any, is
decided when an admin approves the request.
""",
    response_model=Booking,
    responses={
        400: {"description": "Booking can no longer be changed"},
        403: {"description": "Not the booking owner"},
        404: {"description": "Booking or preferred batch not found"},
        409: {"description": "A request is already pending"},
    },
)
async def request_cancellation(
    booking_id: str,
    body: UserRequestCreate,
    user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
) -> Booking:
    return service.request_cancellation(
        booking_id,
        user.sub,
        body.request_type,
        body.reason,
        preferred_batch_id=body.preferred_batch_id,
    )
