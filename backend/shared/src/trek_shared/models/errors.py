"""Standard error codes for the trek booking platform.

Services raise BookingError with one of these codes; the API layer renders
them as ToolError bodies with a matching HTTP status.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Booking error codes (ERR_001-ERR_013)
    BOOKING_NOT_FOUND = "ERR_001"
    ALREADY_CANCELLED = "ERR_002"
    INVALID_STATUS_TRANSITION = "ERR_003"
    CAPACITY_EXCEEDED = "ERR_004"
    PARTICIPANT_NOT_FOUND = "ERR_005"
    PARTICIPANT_ALREADY_CANCELLED = "ERR_006"
    PARTICIPANT_NOT_CANCELLED = "ERR_007"
    INVALID_CANCELLATION_SELECTION = "ERR_008"
    INVALID_TREK_START_DATE = "ERR_009"
    REQUEST_ALREADY_PENDING = "ERR_010"
    NO_PENDING_REQUEST = "ERR_011"
    PARTICIPANT_COUNT_MISMATCH = "ERR_012"
    PARTIAL_PAYMENT_UNAVAILABLE = "ERR_013"

    # Catalog error codes (ERR_CAT_001-ERR_CAT_006)
    TREK_NOT_FOUND = "ERR_CAT_001"
    BATCH_NOT_FOUND = "ERR_CAT_002"
    REGION_NOT_FOUND = "ERR_CAT_003"
    TREK_UNAVAILABLE = "ERR_CAT_004"
    BATCH_HAS_BOOKINGS = "ERR_CAT_005"
    DUPLICATE_SLUG = "ERR_CAT_006"

    # Promotion error codes (ERR_PROMO_001-ERR_PROMO_007)
    PROMO_INVALID = "ERR_PROMO_001"
    PROMO_EXPIRED = "ERR_PROMO_002"
    PROMO_EXHAUSTED = "ERR_PROMO_003"
    PROMO_MIN_ORDER = "ERR_PROMO_004"
    PROMO_NOT_APPLICABLE = "ERR_PROMO_005"
    PROMO_DUPLICATE = "ERR_PROMO_006"
    OFFER_NOT_FOUND = "ERR_PROMO_007"

    # Auth error codes
    AUTH_REQUIRED = "ERR_AUTH_001"
    UNAUTHORIZED = "ERR_AUTH_002"
    ADMIN_REQUIRED = "ERR_AUTH_003"

    # Payment error codes
    REFUND_FAILED = "ERR_PAY_001"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Booking errors
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.ALREADY_CANCELLED: "Booking is already cancelled",
    ErrorCode.INVALID_STATUS_TRANSITION: "Booking status does not allow this action",
    ErrorCode.CAPACITY_EXCEEDED: "Not enough seats left in this batch",
    ErrorCode.PARTICIPANT_NOT_FOUND: "Participant not found in booking",
    ErrorCode.PARTICIPANT_ALREADY_CANCELLED: "Participant is already cancelled",
    ErrorCode.PARTICIPANT_NOT_CANCELLED: "Participant is not cancelled",
    ErrorCode.INVALID_CANCELLATION_SELECTION: "No cancellable participants selected",
    ErrorCode.INVALID_TREK_START_DATE: "Trek start date is missing or invalid",
    ErrorCode.REQUEST_ALREADY_PENDING: "A request is already pending for this booking",
    ErrorCode.NO_PENDING_REQUEST: "No pending request for this booking",
    ErrorCode.PARTICIPANT_COUNT_MISMATCH: "Participant details do not match the seat count",
    ErrorCode.PARTIAL_PAYMENT_UNAVAILABLE: "Partial payment is not available for this trek",
    # Catalog errors
    ErrorCode.TREK_NOT_FOUND: "Trek not found",
    ErrorCode.BATCH_NOT_FOUND: "Batch not found",
    ErrorCode.REGION_NOT_FOUND: "Region not found",
    ErrorCode.TREK_UNAVAILABLE: "Trek or batch is not open for booking",
    ErrorCode.BATCH_HAS_BOOKINGS: "Batch has active bookings",
    ErrorCode.DUPLICATE_SLUG: "An entry with this name already exists",
    # Promotion errors
    ErrorCode.PROMO_INVALID: "Invalid promo code",
    ErrorCode.PROMO_EXPIRED: "Promo code has expired",
    ErrorCode.PROMO_EXHAUSTED: "Promo code usage limit reached",
    ErrorCode.PROMO_MIN_ORDER: "Order value is below the promo code minimum",
    ErrorCode.PROMO_NOT_APPLICABLE: "Promo code is not valid for this trek",
    ErrorCode.PROMO_DUPLICATE: "Promo code already exists",
    ErrorCode.OFFER_NOT_FOUND: "Offer not found",
    # Auth errors
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
    ErrorCode.UNAUTHORIZED: "User not authorized for this booking",
    ErrorCode.ADMIN_REQUIRED: "Admin access required",
    # Payment errors
    ErrorCode.REFUND_FAILED: "Refund could not be processed",
}

# Recovery suggestions for clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    # Booking error recovery
    ErrorCode.BOOKING_NOT_FOUND: "Verify the booking ID",
    ErrorCode.ALREADY_CANCELLED: "No further cancellation is needed",
    ErrorCode.INVALID_STATUS_TRANSITION: "Check the current booking status",
    ErrorCode.CAPACITY_EXCEEDED: "Choose another batch or fewer participants",
    ErrorCode.PARTICIPANT_NOT_FOUND: "Verify the participant ID",
    ErrorCode.PARTICIPANT_ALREADY_CANCELLED: "Select a participant that is still active",
    ErrorCode.PARTICIPANT_NOT_CANCELLED: "Only cancelled participants can be restored",
    ErrorCode.INVALID_CANCELLATION_SELECTION: "Select at least one active participant",
    ErrorCode.INVALID_TREK_START_DATE: "Fix the batch start date before cancelling",
    ErrorCode.REQUEST_ALREADY_PENDING: "Wait for the admin to respond",
    ErrorCode.NO_PENDING_REQUEST: "Refresh the booking and try again",
    ErrorCode.PARTICIPANT_COUNT_MISMATCH: "Provide one participant entry per seat",
    ErrorCode.PARTIAL_PAYMENT_UNAVAILABLE: "Choose full payment",
    # Catalog error recovery
    ErrorCode.TREK_NOT_FOUND: "Verify the trek ID",
    ErrorCode.BATCH_NOT_FOUND: "Verify the batch ID",
    ErrorCode.REGION_NOT_FOUND: "Verify the region ID",
    ErrorCode.TREK_UNAVAILABLE: "Pick an active batch of an enabled trek",
    ErrorCode.BATCH_HAS_BOOKINGS: "Cancel or shift the bookings first",
    ErrorCode.DUPLICATE_SLUG: "Use a different name",
    # Promotion error recovery
    ErrorCode.PROMO_INVALID: "Check the code or continue without it",
    ErrorCode.PROMO_EXPIRED: "Continue without the promo code",
    ErrorCode.PROMO_EXHAUSTED: "Continue without the promo code",
    ErrorCode.PROMO_MIN_ORDER: "Add participants or continue without the code",
    ErrorCode.PROMO_NOT_APPLICABLE: "Use the code on an eligible trek",
    ErrorCode.PROMO_DUPLICATE: "Choose a different code",
    ErrorCode.OFFER_NOT_FOUND: "Verify the offer ID",
    # Auth error recovery
    ErrorCode.AUTH_REQUIRED: "Sign in and retry",
    ErrorCode.UNAUTHORIZED: "Verify the user owns the booking",
    ErrorCode.ADMIN_REQUIRED: "Sign in with an admin account",
    # Payment error recovery
    ErrorCode.REFUND_FAILED: "Retry the refund from the payment dashboard",
}


class ToolError(BaseModel):
    """Standard error response body.

    Every API error carries the code, a message and a recovery hint.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ToolError":
        """Create a ToolError from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            A ToolError with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by booking, catalog and promotion operations.

    Converted to a ToolError response by the API exception handlers.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_tool_error(self) -> ToolError:
        """Convert this exception to a ToolError response body."""
        return ToolError.from_code(self.code, self.details)
