"""Enumerations shared across trek booking models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_CONFIRMED_PARTIAL = "payment_confirmed_partial"
    CONFIRMED = "confirmed"
    TREK_COMPLETED = "trek_completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further lifecycle transitions are expected."""
        return self in (BookingStatus.CANCELLED, BookingStatus.TREK_COMPLETED)


# Statuses from which a booking may still be cancelled or edited
CANCELLABLE_STATUSES: frozenset[BookingStatus] = frozenset(
    {
        BookingStatus.PENDING,
        BookingStatus.PENDING_PAYMENT,
        BookingStatus.PAYMENT_COMPLETED,
        BookingStatus.PAYMENT_CONFIRMED_PARTIAL,
        BookingStatus.CONFIRMED,
    }
)

# Statuses whose participants occupy seats in a batch
SEAT_HOLDING_STATUSES: frozenset[BookingStatus] = frozenset(
    {
        BookingStatus.PENDING_PAYMENT,
        BookingStatus.PAYMENT_COMPLETED,
        BookingStatus.PAYMENT_CONFIRMED_PARTIAL,
        BookingStatus.CONFIRMED,
        BookingStatus.TREK_COMPLETED,
    }
)

# Statuses counted as revenue in sales statistics
REVENUE_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.TREK_COMPLETED}
)


class PaymentMode(str, Enum):
    """How the booking is paid for."""

    FULL = "full"
    PARTIAL = "partial"


class RefundStatus(str, Enum):
    """Refund processing state, tracked per booking and per participant."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"


class CancellationType(str, Enum):
    """Scope of a cancellation."""

    ENTIRE = "entire"
    INDIVIDUAL = "individual"


class RefundType(str, Enum):
    """Whether the refund follows the policy or an admin-entered amount."""

    AUTO = "auto"
    CUSTOM = "custom"


class DiscountType(str, Enum):
    """Discount calculation used by promo codes and offers."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class BatchStatus(str, Enum):
    """Status of a scheduled departure."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestType(str, Enum):
    """Kind of change a user asks for."""

    CANCELLATION = "cancellation"
    RESCHEDULE = "reschedule"


class RequestStatus(str, Enum):
    """Admin decision on a user request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    """Role claim forwarded by the API gateway."""

    USER = "user"
    ADMIN = "admin"
