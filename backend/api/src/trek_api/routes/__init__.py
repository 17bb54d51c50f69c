"""API routes package.

Routers are organized by audience and domain:

- health: Health check endpoint
- catalog: Public trek/region listing and admin catalog management
- promotions: Active offers, promo validation and admin promo/offer CRUD
- bookings: Booking creation and self-service for signed-in users
- admin_bookings: Admin booking management and the cancellation workflow
- stats: Admin sales and dashboard statistics

All routers are registered in main.py with /api prefix.
"""

from trek_api.routes.admin_bookings import router as admin_bookings_router
from trek_api.routes.bookings import router as bookings_router
from trek_api.routes.catalog import admin_router as admin_catalog_router
from trek_api.routes.catalog import router as catalog_router
from trek_api.routes.health import router as health_router
from trek_api.routes.promotions import admin_router as admin_promotions_router
from trek_api.routes.promotions import router as promotions_router
from trek_api.routes.stats import router as stats_router

__all__ = [
    "admin_bookings_router",
    "admin_catalog_router",
    "admin_promotions_router",
    "bookings_router",
    "catalog_router",
    "health_router",
    "promotions_router",
    "stats_router",
]
