"""Cancellation and refund models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Money
from .enums import CancellationType, RefundType


class CancellationOptions(BaseModel):
    """What an admin (or an approved request) wants cancelled.

    ``total_refund`` may be sent by clients that previewed a quote; it is
    informational only and the refund is always recomputed server-side.
    """

    cancellation_type: CancellationType = CancellationType.ENTIRE
    selected_participants: list[str] = Field(
        default_factory=list,
        description="Participant IDs (individual cancellation only)",
    )
    refund_type: RefundType = RefundType.AUTO
    custom_refund_amount: Decimal | None = Field(default=None)
    reason: str | None = Field(default=None, max_length=500)
    total_refund: Decimal | None = Field(
        default=None, description="Client-side preview, ignored"
    )

    @model_validator(mode="after")
    def check_selection(self) -> "CancellationOptions":
        if (
            self.cancellation_type == CancellationType.INDIVIDUAL
            and not self.selected_participants
        ):
            raise ValueError("selected_participants is required for individual cancellation")
        if self.refund_type == RefundType.CUSTOM and self.custom_refund_amount is None:
            raise ValueError("custom_refund_amount is required for custom refunds")
        return self


class ParticipantRefund(BaseModel):
    """Refund share for one cancelled participant."""

    participant_id: str
    name: str
    refund_amount: Money


class CancellationQuote(BaseModel):
    """Server-computed refund for a cancellation."""

    model_config = ConfigDict(strict=False)

    booking_id: str
    cancellation_type: CancellationType
    refund_type: RefundType
    base_amount: Money = Field(..., description="Amount the policy was applied to")
    total_refund: Money
    refund_percentage: int | None = Field(
        default=None, description="Policy percentage; None for custom refunds"
    )
    policy_label: str
    days_until_trek: int
    participants: list[ParticipantRefund] = Field(default_factory=list)

    @property
    def participant_ids(self) -> list[str]:
        return [p.participant_id for p in self.participants]


class RefundResult(BaseModel):
    """Result of asking the payment gateway for a refund."""

    success: bool
    refund_id: str | None = None
    amount: Money = Decimal("0")
    status: str | None = None
    error_message: str | None = None
