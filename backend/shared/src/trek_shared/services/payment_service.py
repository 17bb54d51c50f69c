"""Payment service for issuing refunds through the payment gateway.

Amounts are handled in INR and converted to paise (minor units) only at the
gateway boundary.
"""

from decimal import ROUND_HALF_UP, Decimal

from trek_shared.models.refund import RefundResult
from trek_shared.utils.logging import get_logger, log_refund_operation

from .stripe_service import StripeService, StripeServiceError, get_stripe_service

logger = get_logger(__name__)


def to_paise(amount: Decimal) -> int:
    """Convert an INR amount to integer paise."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """Service for refund processing."""

    def __init__(self, stripe_service: StripeService | None = None) -> None:
        """Initialize payment service.

        Args:
            stripe_service: Gateway client. Defaults to the shared StripeService.
        """
        self._stripe = stripe_service

    @property
    def stripe(self) -> StripeService:
        if self._stripe is None:
            self._stripe = get_stripe_service()
        return self._stripe

    def process_refund(
        self,
        payment_intent_id: str,
        amount: Decimal,
        *,
        reason: str | None = None,
        booking_id: str | None = None,
        participant_id: str | None = None,
    ) -> RefundResult:
        """Refund part of a captured payment.

        Gateway failures do not raise: they come back as a failed result so
        the caller can record ``refund_status = failed`` and carry on.

        Args:
            payment_intent_id: Captured PaymentIntent to refund against
            amount: Amount to refund in INR
            reason: Optional refund reason
            booking_id: Booking reference for metadata and logs
            participant_id: Participant reference for per-participant refunds

        Returns:
            RefundResult with gateway refund ID on success
        """
        if amount <= 0:
            raise ValueError("refund amount must be positive")

        metadata: dict[str, str] = {}
        if booking_id:
            metadata["booking_id"] = booking_id
        if participant_id:
            metadata["participant_id"] = participant_id

        try:
            refund = self.stripe.create_refund(
                payment_intent_id=payment_intent_id,
                amount_paise=to_paise(amount),
                reason=reason,
                metadata=metadata,
            )
        except StripeServiceError as e:
            log_refund_operation(
                logger,
                "process_refund",
                booking_id=booking_id,
                participant_id=participant_id,
                amount=amount,
                status="failed",
                error=str(e),
            )
            return RefundResult(success=False, amount=amount, error_message=str(e))

        log_refund_operation(
            logger,
            "process_refund",
            booking_id=booking_id,
            participant_id=participant_id,
            refund_id=refund["refund_id"],
            amount=amount,
            status=refund["status"],
        )
        return RefundResult(
            success=True,
            refund_id=refund["refund_id"],
            amount=amount,
            status=refund["status"],
        )
