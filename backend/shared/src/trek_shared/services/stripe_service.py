"""Stripe gateway client used for trek refunds.

Bookings are paid through Stripe PaymentIntents in INR; refunds are issued
against the captured intent in paise. The secret key lives in SSM at
``/trek/{env}/stripe/secret_key`` and is only fetched on the first refund,
so importing this module never touches AWS.
"""

import logging
import os
from functools import lru_cache
from typing import Any, TypedDict

import stripe
from stripe import StripeClient

from .ssm_service import SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """A refund could not be created at the gateway."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class GatewayRefund(TypedDict):
    refund_id: str
    amount: int
    status: str


def refund_idempotency_key(payment_intent_id: str, metadata: dict[str, str]) -> str | None:
    """Key a refund on its booking (and participant) so a retried request
    cannot refund the same seat twice."""
    booking_id = metadata.get("booking_id")
    if not booking_id:
        return None
    parts = ["refund", payment_intent_id, booking_id]
    if metadata.get("participant_id"):
        parts.append(metadata["participant_id"])
    return ":".join(parts)


class StripeService:
    """Refunds against captured PaymentIntents.

    Usage:
        get_stripe_service().create_refund(
            payment_intent_id="pi_3ABC123",
            amount_paise=750000,
            reason="Batch cancelled by operator",
            metadata={"booking_id": "BKG-20260601-AB12"},
        )
    """

    def __init__(self, environment: str | None = None) -> None:
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._ssm = get_ssm_service()
        self._client: StripeClient | None = None

    @property
    def client(self) -> StripeClient:
        if self._client is not None:
            return self._client

        key_name = parameter_path(self._environment, "stripe", "secret_key")
        try:
            secret_key = self._ssm.get_parameter(key_name)
        except SSMServiceError as e:
            raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e

        self._client = StripeClient(secret_key)
        logger.info("Stripe client ready (%s)", self._environment)
        return self._client

    def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount_paise: int | None = None,
        reason: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> GatewayRefund:
        """Refund a captured payment, fully or in part.

        Args:
            payment_intent_id: Captured PaymentIntent (pi_xxx)
            amount_paise: Amount in paise; the whole charge when omitted
            reason: Free-text cancellation reason, copied into metadata
            metadata: Booking and participant references

        Raises:
            StripeServiceError: Missing credentials or a gateway error
        """
        refund_metadata = dict(metadata or {})
        if reason:
            refund_metadata["reason"] = reason

        params: dict[str, Any] = {"payment_intent": payment_intent_id}
        if amount_paise is not None:
            params["amount"] = amount_paise
        if refund_metadata:
            params["metadata"] = refund_metadata

        client = self.client
        idempotency_key = refund_idempotency_key(payment_intent_id, refund_metadata)
        logger.info(
            "Refunding %s paise on %s",
            "all" if amount_paise is None else amount_paise,
            payment_intent_id,
        )
        try:
            if idempotency_key:
                refund = client.refunds.create(
                    params=params, options={"idempotency_key": idempotency_key}
                )
            else:
                refund = client.refunds.create(params=params)
        except stripe.StripeError as e:
            code = getattr(e, "code", None)
            logger.error("Stripe refund on %s failed: %s (code: %s)", payment_intent_id, e, code)
            raise StripeServiceError(f"Failed to create refund: {e}", stripe_error_code=code) from e

        logger.info("Stripe refund %s is %s", refund.id, refund.status)
        return {"refund_id": refund.id, "amount": refund.amount, "status": refund.status}


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Process-wide StripeService."""
    return StripeService()
