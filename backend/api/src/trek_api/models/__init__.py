"""API-specific request/response models.

This package contains Pydantic models specific to the REST API layer.
Domain models (Booking, Trek, PromoCode, ...) are in trek_shared.models and
are reused here where appropriate.

Modules:
- common: Pagination and generic success wrapper
- bookings: Booking admin and user request/response models
- promotions: Promo code validation request
"""

__all__: list[str] = []
