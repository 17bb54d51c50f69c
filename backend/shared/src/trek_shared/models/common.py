"""Common field types for trek booking models."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, PlainSerializer

# Rupee amounts are Decimal internally (DynamoDB numbers come back as Decimal)
# and plain JSON numbers on the wire.
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

TWO_PLACES = Decimal("0.01")


def quantize_money(amount: Decimal | int | str) -> Decimal:
    """Round an amount to paise precision.

    Args:
        amount: Amount in INR

    Returns:
        Decimal rounded half-up to two decimal places
    """
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# Every stored timestamp is an aware UTC datetime
UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]
