"""FastAPI dependency injection providers for shared services.

Services are lazily instantiated and cached with @lru_cache so every request
shares the same instances.

Usage in routes:
    from trek_api.dependencies import get_booking_service

    @router.get("/bookings/me")
    async def my_bookings(
        service: BookingService = Depends(get_booking_service),
    ):
        ...

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── CatalogService
        │       └── StatsService
        ├── PromoCodeService
        ├── OfferService
        └── BookingService (+ PaymentService, EmailService)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from trek_shared.services.booking import BookingService
from trek_shared.services.catalog import CatalogService
from trek_shared.services.dynamodb import get_dynamodb_service
from trek_shared.services.email_service import EmailService
from trek_shared.services.payment_service import PaymentService
from trek_shared.services.promotions import OfferService, PromoCodeService
from trek_shared.services.stats import StatsService


@lru_cache
def get_catalog_service() -> CatalogService:
    return CatalogService(db=get_dynamodb_service())


@lru_cache
def get_promo_code_service() -> PromoCodeService:
    return PromoCodeService(db=get_dynamodb_service())


@lru_cache
def get_offer_service() -> OfferService:
    return OfferService(db=get_dynamodb_service())


@lru_cache
def get_payment_service() -> PaymentService:
    """Get cached PaymentService instance.

    The Stripe client is created on the first refund, so building the
    service does not touch SSM.
    """
    return PaymentService()


@lru_cache
def get_email_service() -> EmailService:
    """Get cached EmailService configured from EMAIL_* variables."""
    return EmailService()


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance.

    Returns:
        BookingService configured with all required dependencies.
    """
    return BookingService(
        db=get_dynamodb_service(),
        catalog=get_catalog_service(),
        promo_codes=get_promo_code_service(),
        offers=get_offer_service(),
        payments=get_payment_service(),
        email=get_email_service(),
    )


@lru_cache
def get_stats_service() -> StatsService:
    return StatsService(db=get_dynamodb_service(), catalog=get_catalog_service())


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the DynamoDB singleton and the Stripe and SSM clients.
    """
    from trek_shared.services.dynamodb import reset_dynamodb_service
    from trek_shared.services.ssm_service import get_ssm_service
    from trek_shared.services.stripe_service import get_stripe_service

    get_catalog_service.cache_clear()
    get_promo_code_service.cache_clear()
    get_offer_service.cache_clear()
    get_payment_service.cache_clear()
    get_email_service.cache_clear()
    get_booking_service.cache_clear()
    get_stats_service.cache_clear()

    get_stripe_service.cache_clear()
    get_ssm_service.cache_clear()
    reset_dynamodb_service()
