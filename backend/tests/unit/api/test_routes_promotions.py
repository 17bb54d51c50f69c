"""Unit tests for promo code and offer routes.

Tests for:
- GET /offers/active and POST /promos/validate
- /admin/promo-codes and /admin/offers CRUD
"""

import datetime as dt
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
)

from trek_shared.models.errors import ErrorCode


def _window(days_before: int = 1, days_after: int = 10) -> tuple[str, str]:
    """Validity window around the real clock, since the routes use it."""
    now = dt.datetime.now(dt.UTC)
    return (
        (now - dt.timedelta(days=days_before)).isoformat(),
        (now + dt.timedelta(days=days_after)).isoformat(),
    )


@pytest.fixture
def promo_payload() -> dict[str, Any]:
    valid_from, valid_until = _window()
    return {
        "code": "monsoon20",
        "discount_type": "percentage",
        "discount_value": 20,
        "valid_from": valid_from,
        "valid_until": valid_until,
        "min_order_value": 5000,
    }


@pytest.fixture
def offer_payload() -> dict[str, Any]:
    start, end = _window()
    return {
        "name": "Early bird",
        "description": "Book early and save",
        "discount_type": "fixed",
        "discount_value": 1500,
        "start_date": start,
        "end_date": end,
        "applicable_treks": ["TRK-1"],
    }


class TestPromoCodeAdmin:
    """Promo code management."""

    def test_requires_admin(self, api_client: TestClient, user_headers, promo_payload) -> None:
        response = api_client.post("/api/admin/promo-codes", json=promo_payload, headers=user_headers)

        assert response.status_code == HTTP_403_FORBIDDEN

    def test_create_list_update_delete(
        self, api_client: TestClient, admin_headers, promo_payload
    ) -> None:
        created = api_client.post(
            "/api/admin/promo-codes", json=promo_payload, headers=admin_headers
        )
        assert created.status_code == HTTP_201_CREATED
        promo = created.json()
        assert promo["code"] == "MONSOON20"
        assert promo["created_by"] == admin_headers["x-user-sub"]

        listed = api_client.get("/api/admin/promo-codes", headers=admin_headers).json()
        assert [p["promo_id"] for p in listed] == [promo["promo_id"]]

        updated = api_client.put(
            f"/api/admin/promo-codes/{promo['promo_id']}",
            json={"max_uses": 50},
            headers=admin_headers,
        )
        assert updated.json()["max_uses"] == 50

        deleted = api_client.delete(
            f"/api/admin/promo-codes/{promo['promo_id']}", headers=admin_headers
        )
        assert deleted.status_code == HTTP_200_OK
        assert api_client.get("/api/admin/promo-codes", headers=admin_headers).json() == []

    def test_duplicate_code(self, api_client: TestClient, admin_headers, promo_payload) -> None:
        api_client.post("/api/admin/promo-codes", json=promo_payload, headers=admin_headers)

        response = api_client.post(
            "/api/admin/promo-codes", json=promo_payload, headers=admin_headers
        )

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == ErrorCode.PROMO_DUPLICATE.value

    def test_percentage_over_100_rejected(
        self, api_client: TestClient, admin_headers, promo_payload
    ) -> None:
        promo_payload["discount_value"] = 150

        response = api_client.post(
            "/api/admin/promo-codes", json=promo_payload, headers=admin_headers
        )

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY


class TestValidatePromo:
    """Tests for POST /promos/validate."""

    def test_requires_identity(self, api_client: TestClient) -> None:
        response = api_client.post(
            "/api/promos/validate", json={"code": "MONSOON20", "order_value": 10000}
        )

        assert response.status_code == HTTP_401_UNAUTHORIZED

    def test_valid_code(
        self, api_client: TestClient, admin_headers, user_headers, promo_payload
    ) -> None:
        api_client.post("/api/admin/promo-codes", json=promo_payload, headers=admin_headers)

        response = api_client.post(
            "/api/promos/validate",
            json={"code": "Monsoon20", "order_value": 10000},
            headers=user_headers,
        )

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["discount_amount"] == 2000.0
        assert data["final_price"] == 8000.0

    def test_below_minimum_order(
        self, api_client: TestClient, admin_headers, user_headers, promo_payload
    ) -> None:
        api_client.post("/api/admin/promo-codes", json=promo_payload, headers=admin_headers)

        response = api_client.post(
            "/api/promos/validate",
            json={"code": "MONSOON20", "order_value": 4999},
            headers=user_headers,
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.PROMO_MIN_ORDER.value

    def test_unknown_code(self, api_client: TestClient, user_headers) -> None:
        response = api_client.post(
            "/api/promos/validate",
            json={"code": "GHOST", "order_value": 100},
            headers=user_headers,
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.PROMO_INVALID.value


class TestOffers:
    """Offer management and the public active list."""

    def test_active_offers_are_public(
        self, api_client: TestClient, admin_headers, offer_payload
    ) -> None:
        api_client.post("/api/admin/offers", json=offer_payload, headers=admin_headers)
        start, end = _window(days_before=-5, days_after=10)
        api_client.post(
            "/api/admin/offers",
            json={**offer_payload, "name": "Later", "start_date": start, "end_date": end},
            headers=admin_headers,
        )

        response = api_client.get("/api/offers/active")

        assert response.status_code == HTTP_200_OK
        assert [o["name"] for o in response.json()] == ["Early bird"]

    def test_update_and_delete(self, api_client: TestClient, admin_headers, offer_payload) -> None:
        offer = api_client.post(
            "/api/admin/offers", json=offer_payload, headers=admin_headers
        ).json()

        updated = api_client.put(
            f"/api/admin/offers/{offer['offer_id']}",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert updated.json()["is_active"] is False
        assert api_client.get("/api/offers/active").json() == []

        api_client.delete(f"/api/admin/offers/{offer['offer_id']}", headers=admin_headers)
        assert api_client.get("/api/admin/offers", headers=admin_headers).json() == []

    def test_offer_needs_a_trek(self, api_client: TestClient, admin_headers, offer_payload) -> None:
        offer_payload["applicable_treks"] = []

        response = api_client.post("/api/admin/offers", json=offer_payload, headers=admin_headers)

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY
