"""Pydantic models for trek booking data entities."""

from .booking import (
    Booking,
    BookingCreate,
    BookingSummary,
    CancellationRequest,
    EmergencyContact,
    Participant,
    ParticipantCreate,
    PartialPaymentDetails,
    PaymentDetails,
    RemarkEntry,
    UserDetails,
)
from .catalog import (
    Batch,
    BatchCreate,
    BatchUpdate,
    PartialPaymentSettings,
    Region,
    RegionCreate,
    RegionUpdate,
    Trek,
    TrekCreate,
    TrekUpdate,
)
from .common import Money, UTCDateTime, ensure_utc, quantize_money
from .enums import (
    CANCELLABLE_STATUSES,
    REVENUE_STATUSES,
    SEAT_HOLDING_STATUSES,
    BatchStatus,
    BookingStatus,
    CancellationType,
    DiscountType,
    PaymentMode,
    RefundStatus,
    RefundType,
    RequestStatus,
    RequestType,
    UserRole,
)
from .errors import (
    BookingError,
    ErrorCode,
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ToolError,
)
from .promotion import (
    Offer,
    OfferCreate,
    OfferUpdate,
    PromoCode,
    PromoCodeCreate,
    PromoCodeUpdate,
    PromoValidation,
)
from .refund import (
    CancellationOptions,
    CancellationQuote,
    ParticipantRefund,
    RefundResult,
)
from .stats import (
    BatchRevenue,
    DashboardStats,
    PeriodRevenue,
    RegionRevenue,
    SalesStats,
    TrekRevenue,
    UpcomingBatch,
)

__all__ = [
    # Enums
    "BatchStatus",
    "BookingStatus",
    "CancellationType",
    "DiscountType",
    "PaymentMode",
    "RefundStatus",
    "RefundType",
    "RequestStatus",
    "RequestType",
    "UserRole",
    "CANCELLABLE_STATUSES",
    "REVENUE_STATUSES",
    "SEAT_HOLDING_STATUSES",
    # Common
    "Money",
    "quantize_money",
    "UTCDateTime",
    "ensure_utc",
    # Booking
    "Booking",
    "BookingCreate",
    "BookingSummary",
    "CancellationRequest",
    "EmergencyContact",
    "Participant",
    "ParticipantCreate",
    "PartialPaymentDetails",
    "PaymentDetails",
    "RemarkEntry",
    "UserDetails",
    # Catalog
    "Batch",
    "BatchCreate",
    "BatchUpdate",
    "PartialPaymentSettings",
    "Region",
    "RegionCreate",
    "RegionUpdate",
    "Trek",
    "TrekCreate",
    "TrekUpdate",
    # Promotions
    "Offer",
    "OfferCreate",
    "OfferUpdate",
    "PromoCode",
    "PromoCodeCreate",
    "PromoCodeUpdate",
    "PromoValidation",
    # Refunds
    "CancellationOptions",
    "CancellationQuote",
    "ParticipantRefund",
    "RefundResult",
    # Stats
    "BatchRevenue",
    "DashboardStats",
    "PeriodRevenue",
    "RegionRevenue",
    "SalesStats",
    "TrekRevenue",
    "UpcomingBatch",
    # Errors
    "BookingError",
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ToolError",
]
