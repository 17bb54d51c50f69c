"""Promo code and offer services.

Promo codes are typed by the user at checkout; offers apply automatically to
the treks they list while they are active.
"""

import datetime as dt
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from trek_shared.models.common import quantize_money
from trek_shared.models.enums import DiscountType
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.models.promotion import (
    Offer,
    OfferCreate,
    OfferUpdate,
    PromoCode,
    PromoCodeCreate,
    PromoCodeUpdate,
    PromoValidation,
)
from trek_shared.utils.logging import get_logger

from .dynamodb import from_item, to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def discount_for(price: Decimal, discount_type: DiscountType, value: Decimal) -> Decimal:
    """Discount an order gets, never more than the order itself."""
    price = Decimal(price)
    if discount_type == DiscountType.PERCENTAGE:
        discount = price * Decimal(value) / 100
    else:
        discount = Decimal(value)
    return quantize_money(min(max(discount, Decimal("0")), price))


def apply_discount(price: Decimal, discount_type: DiscountType, value: Decimal) -> Decimal:
    """Price after discount, floored at zero."""
    return quantize_money(Decimal(price) - discount_for(price, discount_type, value))


class PromoCodeService:
    """Service for promo code management and validation."""

    PROMO_TABLE = "promo-codes"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize promo code service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def _find_by_code(self, code: str) -> PromoCode | None:
        results = self.db.query_by_gsi(
            table=self.PROMO_TABLE,
            index_name="code-index",
            partition_key_name="code",
            partition_key_value=code.strip().upper(),
        )
        return from_item(PromoCode, results[0]) if results else None

    def create_promo_code(self, data: PromoCodeCreate, created_by: str | None = None) -> PromoCode:
        """Create a promo code.

        Raises:
            BookingError: PROMO_DUPLICATE if the code already exists
        """
        if self._find_by_code(data.code):
            raise BookingError(ErrorCode.PROMO_DUPLICATE, details={"code": data.code})

        promo = PromoCode(
            promo_id=f"PRM-{uuid.uuid4().hex[:12].upper()}",
            created_by=created_by,
            created_at=dt.datetime.now(dt.UTC),
            **data.model_dump(),
        )
        self.db.put_item(self.PROMO_TABLE, to_item(promo))
        logger.info("Promo code created: %s", promo.code)
        return promo

    def get_promo_code(self, promo_id: str) -> PromoCode:
        item = self.db.get_item(self.PROMO_TABLE, {"promo_id": promo_id})
        if not item:
            raise BookingError(ErrorCode.PROMO_INVALID, details={"promo_id": promo_id})
        return from_item(PromoCode, item)

    def list_promo_codes(self) -> list[PromoCode]:
        promos = [from_item(PromoCode, item) for item in self.db.scan(self.PROMO_TABLE)]
        return sorted(promos, key=lambda p: p.created_at, reverse=True)

    def update_promo_code(self, promo_id: str, data: PromoCodeUpdate) -> PromoCode:
        promo = self.get_promo_code(promo_id)
        updated = promo.model_copy(update=data.model_dump(exclude_unset=True))
        if updated.valid_until < updated.valid_from:
            raise ValueError("valid_until must not be before valid_from")
        self.db.put_item(self.PROMO_TABLE, to_item(updated))
        return updated

    def delete_promo_code(self, promo_id: str) -> None:
        self.get_promo_code(promo_id)
        self.db.delete_item(self.PROMO_TABLE, {"promo_id": promo_id})
        logger.info("Promo code deleted: %s", promo_id)

    def validate_promo_code(
        self,
        code: str,
        trek_id: str | None,
        order_value: Decimal,
        now: dt.datetime,
    ) -> PromoValidation:
        """Check a promo code against an order and compute its discount.

        Checks run in order: exists and active, validity window, usage
        limit, minimum order value, trek applicability.

        Args:
            code: Code as typed by the user (case-insensitive)
            trek_id: Trek being booked
            order_value: Order amount before discount in INR
            now: Evaluation instant

        Returns:
            PromoValidation with discount and final price

        Raises:
            BookingError: PROMO_INVALID, PROMO_EXPIRED, PROMO_EXHAUSTED,
                PROMO_MIN_ORDER or PROMO_NOT_APPLICABLE
        """
        promo = self._find_by_code(code)
        if promo is None or not promo.is_active:
            raise BookingError(ErrorCode.PROMO_INVALID, details={"code": code})

        if now < promo.valid_from or now > promo.valid_until:
            raise BookingError(ErrorCode.PROMO_EXPIRED, details={"code": promo.code})

        if promo.max_uses is not None and promo.used_count >= promo.max_uses:
            raise BookingError(ErrorCode.PROMO_EXHAUSTED, details={"code": promo.code})

        if Decimal(order_value) < promo.min_order_value:
            raise BookingError(
                ErrorCode.PROMO_MIN_ORDER,
                details={"code": promo.code, "min_order_value": str(promo.min_order_value)},
            )

        if promo.applicable_treks and trek_id not in promo.applicable_treks:
            raise BookingError(
                ErrorCode.PROMO_NOT_APPLICABLE,
                details={"code": promo.code, "trek_id": trek_id or ""},
            )

        discount = discount_for(order_value, promo.discount_type, promo.discount_value)
        return PromoValidation(
            code=promo.code,
            discount_type=promo.discount_type,
            discount_value=promo.discount_value,
            discount_amount=discount,
            final_price=quantize_money(Decimal(order_value) - discount),
        )

    def increment_usage(self, code: str) -> bool:
        """Count one use of a code, respecting max_uses.

        Returns:
            False if the code is unknown or its limit was reached meanwhile
        """
        promo = self._find_by_code(code)
        if promo is None:
            return False
        result = self.db.update_item(
            table=self.PROMO_TABLE,
            key={"promo_id": promo.promo_id},
            update_expression="SET used_count = if_not_exists(used_count, :zero) + :one",
            expression_attribute_values={":zero": 0, ":one": 1},
            condition_expression=(
                "attribute_not_exists(max_uses) OR used_count < max_uses"
            ),
        )
        return result is not None


class OfferService:
    """Service for automatic offers."""

    OFFERS_TABLE = "offers"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize offer service.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def create_offer(self, data: OfferCreate, created_by: str | None = None) -> Offer:
        offer = Offer(
            offer_id=f"OFR-{uuid.uuid4().hex[:12].upper()}",
            created_by=created_by,
            created_at=dt.datetime.now(dt.UTC),
            **data.model_dump(),
        )
        self.db.put_item(self.OFFERS_TABLE, to_item(offer))
        logger.info("Offer created: %s (%s)", offer.offer_id, offer.name)
        return offer

    def get_offer(self, offer_id: str) -> Offer:
        item = self.db.get_item(self.OFFERS_TABLE, {"offer_id": offer_id})
        if not item:
            raise BookingError(ErrorCode.OFFER_NOT_FOUND, details={"offer_id": offer_id})
        return from_item(Offer, item)

    def list_offers(self) -> list[Offer]:
        offers = [from_item(Offer, item) for item in self.db.scan(self.OFFERS_TABLE)]
        return sorted(offers, key=lambda o: o.created_at, reverse=True)

    def update_offer(self, offer_id: str, data: OfferUpdate) -> Offer:
        offer = self.get_offer(offer_id)
        updated = offer.model_copy(update=data.model_dump(exclude_unset=True))
        if updated.end_date < updated.start_date:
            raise ValueError("end_date must not be before start_date")
        self.db.put_item(self.OFFERS_TABLE, to_item(updated))
        return updated

    def delete_offer(self, offer_id: str) -> None:
        self.get_offer(offer_id)
        self.db.delete_item(self.OFFERS_TABLE, {"offer_id": offer_id})
        logger.info("Offer deleted: %s", offer_id)

    def get_active_offers(self, now: dt.datetime) -> list[Offer]:
        """Offers whose flag is on and whose window contains ``now``."""
        return [offer for offer in self.list_offers() if offer.is_active_at(now)]

    @staticmethod
    def calculate_discounted_price(price: Decimal, offer: Offer) -> Decimal:
        """Price of a trek after an offer."""
        return apply_discount(price, offer.discount_type, offer.discount_value)

    def best_offer_for_trek(
        self,
        trek_id: str,
        price: Decimal,
        now: dt.datetime,
    ) -> tuple[Offer, Decimal] | None:
        """Pick the active offer that gives the lowest price for a trek.

        Returns:
            (offer, discounted price) or None when no offer applies
        """
        candidates = [
            (offer, self.calculate_discounted_price(price, offer))
            for offer in self.get_active_offers(now)
            if trek_id in offer.applicable_treks
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda pair: pair[1])
