"""Promo code and offer endpoints.

Public: active offers and promo code validation (signed-in users).
Admin: promo code and offer CRUD.
"""

import datetime as dt

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from trek_api.dependencies import get_offer_service, get_promo_code_service
from trek_api.models.common import SuccessMessage
from trek_api.models.promotions import PromoValidateRequest
from trek_api.security import CurrentUser, get_current_user, require_admin
from trek_shared.models.promotion import (
    Offer,
    OfferCreate,
    OfferUpdate,
    PromoCode,
    PromoCodeCreate,
    PromoCodeUpdate,
    PromoValidation,
)
from trek_shared.services.promotions import OfferService, PromoCodeService

router = APIRouter(tags=["promotions"])
admin_router = APIRouter(prefix="/admin", tags=["admin-promotions"])


@router.get(
    "/offers/active",
    summary="List active offers",
    description="Offers whose window contains the current time.",
    response_model=list[Offer],
)
async def list_active_offers(
    service: OfferService = Depends(get_offer_service),
) -> list[Offer]:
    return service.get_active_offers(dt.datetime.now(dt.UTC))


@router.post(
    "/promos/validate",
    summary="Validate promo code",
    description="""
Check a promo code against an order before booking.

Checks, in order: the code exists and is active, the current time is inside
its validity window, it has uses left, the order meets the minimum value and
the trek is eligible.
""",
    response_model=PromoValidation,
    responses={400: {"description": "Code invalid, expired, exhausted or not applicable"}},
)
async def validate_promo_code(
    body: PromoValidateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PromoCodeService = Depends(get_promo_code_service),
) -> PromoValidation:
    return service.validate_promo_code(
        body.code, body.trek_id, body.order_value, dt.datetime.now(dt.UTC)
    )


# === Admin: promo codes ===


@admin_router.get("/promo-codes", summary="List promo codes", response_model=list[PromoCode])
async def list_promo_codes(
    admin: CurrentUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
) -> list[PromoCode]:
    return service.list_promo_codes()


@admin_router.post(
    "/promo-codes",
    summary="Create promo code",
    response_model=PromoCode,
    status_code=HTTP_201_CREATED,
    responses={409: {"description": "Code already exists"}},
)
async def create_promo_code(
    body: PromoCodeCreate,
    admin: CurrentUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
) -> PromoCode:
    return service.create_promo_code(body, created_by=admin.sub)


@admin_router.put("/promo-codes/{promo_id}", summary="Update promo code", response_model=PromoCode)
async def update_promo_code(
    promo_id: str,
    body: PromoCodeUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
) -> PromoCode:
    return service.update_promo_code(promo_id, body)


@admin_router.delete(
    "/promo-codes/{promo_id}", summary="Delete promo code", response_model=SuccessMessage
)
async def delete_promo_code(
    promo_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: PromoCodeService = Depends(get_promo_code_service),
) -> SuccessMessage:
    service.delete_promo_code(promo_id)
    return SuccessMessage(message=f"Promo code {promo_id} deleted")


# === Admin: offers ===


@admin_router.get("/offers", summary="List offers", response_model=list[Offer])
async def list_offers(
    admin: CurrentUser = Depends(require_admin),
    service: OfferService = Depends(get_offer_service),
) -> list[Offer]:
    return service.list_offers()


@admin_router.post(
    "/offers",
    summary="Create offer",
    response_model=Offer,
    status_code=HTTP_201_CREATED,
)
async def create_offer(
    body: OfferCreate,
    admin: CurrentUser = Depends(require_admin),
    service: OfferService = Depends(get_offer_service),
) -> Offer:
    return service.create_offer(body, created_by=admin.sub)


@admin_router.put("/offers/{offer_id}", summary="Update offer", response_model=Offer)
async def update_offer(
    offer_id: str,
    body: OfferUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: OfferService = Depends(get_offer_service),
) -> Offer:
    return service.update_offer(offer_id, body)


@admin_router.delete("/offers/{offer_id}", summary="Delete offer", response_model=SuccessMessage)
async def delete_offer(
    offer_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: OfferService = Depends(get_offer_service),
) -> SuccessMessage:
    service.delete_offer(offer_id)
    return SuccessMessage(message=f"Offer {offer_id} deleted")
