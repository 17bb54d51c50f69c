"""Unit tests for user booking routes.

Tests for:
- POST /bookings - Create booking
- GET /bookings/me - List own bookings
- GET /bookings/{booking_id} - Owner or admin read
- PUT /bookings/{booking_id}/cancellation-request - Raise a request
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

from trek_shared.models.catalog import BatchCreate, Trek, TrekCreate
from trek_shared.models.errors import ErrorCode


@pytest.fixture
def future_trek(catalog) -> Trek:
    """Trek departing 60 days from the real clock, so route calls can book it."""
    start = dt.datetime.now(dt.UTC).replace(microsecond=0) + dt.timedelta(days=60)
    return catalog.create_trek(
        TrekCreate(
            name="Hampta Pass",
            batches=[
                BatchCreate(
                    start_date=start,
                    end_date=start + dt.timedelta(days=4),
                    price=8000,
                    max_participants=3,
                )
            ],
        )
    )


def _payload(trek: Trek, seats: int = 2) -> dict[str, Any]:
    return {
        "trek_id": trek.trek_id,
        "batch_id": trek.batches[0].batch_id,
        "number_of_participants": seats,
        "participants": [{"name": f"Trekker {i + 1}", "age": 28} for i in range(seats)],
        "user_details": {"name": "Asha Rao", "email": "asha@example.com"},
    }


class TestCreateBooking:
    """Tests for POST /bookings."""

    def test_creates_pending_booking(
        self, api_client: TestClient, user_headers, future_trek: Trek
    ) -> None:
        response = api_client.post(
            "/api/bookings", json=_payload(future_trek), headers=user_headers
        )

        assert response.status_code == HTTP_201_CREATED
        data = response.json()
        assert data["booking_id"].startswith("BKG-")
        assert data["user_id"] == user_headers["x-user-sub"]
        assert data["status"] == "pending_payment"
        assert data["total_price"] == 16000.0
        assert len(data["participants"]) == 2

    def test_requires_identity(self, api_client: TestClient, future_trek: Trek) -> None:
        response = api_client.post("/api/bookings", json=_payload(future_trek))

        assert response.status_code == HTTP_401_UNAUTHORIZED

    def test_capacity_exceeded(
        self, api_client: TestClient, user_headers, future_trek: Trek
    ) -> None:
        api_client.post("/api/bookings", json=_payload(future_trek, 2), headers=user_headers)

        response = api_client.post(
            "/api/bookings", json=_payload(future_trek, 2), headers=user_headers
        )

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == ErrorCode.CAPACITY_EXCEEDED.value

    def test_participant_mismatch(
        self, api_client: TestClient, user_headers, future_trek: Trek
    ) -> None:
        payload = _payload(future_trek, 2)
        payload["number_of_participants"] = 3

        response = api_client.post("/api/bookings", json=payload, headers=user_headers)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == ErrorCode.PARTICIPANT_COUNT_MISMATCH.value

    def test_invalid_email_rejected(
        self, api_client: TestClient, user_headers, future_trek: Trek
    ) -> None:
        payload = _payload(future_trek)
        payload["user_details"]["email"] = "not-an-email"

        response = api_client.post("/api/bookings", json=payload, headers=user_headers)

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY


class TestReadBookings:
    """Tests for listing and reading bookings."""

    def test_list_my_bookings(
        self, api_client: TestClient, user_headers, make_confirmed_booking
    ) -> None:
        mine = make_confirmed_booking(2)
        make_confirmed_booking(1, user_id="someone-else")

        response = api_client.get("/api/bookings/me", headers=user_headers)

        assert response.status_code == HTTP_200_OK
        assert [b["booking_id"] for b in response.json()] == [mine.booking_id]

    def test_owner_reads_booking(
        self, api_client: TestClient, user_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.get(f"/api/bookings/{booking.booking_id}", headers=user_headers)

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "confirmed"

    def test_other_user_forbidden(
        self, api_client: TestClient, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.get(
            f"/api/bookings/{booking.booking_id}", headers={"x-user-sub": "intruder"}
        )

        assert response.status_code == HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == ErrorCode.UNAUTHORIZED.value

    def test_admin_reads_any_booking(
        self, api_client: TestClient, admin_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.get(f"/api/bookings/{booking.booking_id}", headers=admin_headers)

        assert response.status_code == HTTP_200_OK


class TestCancellationRequest:
    """Tests for PUT /bookings/{booking_id}/cancellation-request."""

    def test_raises_pending_request(
        self, api_client: TestClient, user_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.put(
            f"/api/bookings/{booking.booking_id}/cancellation-request",
            json={"request_type": "cancellation", "reason": "Injury"},
            headers=user_headers,
        )

        assert response.status_code == HTTP_200_OK
        request = response.json()["cancellation_request"]
        assert request["type"] == "cancellation"
        assert request["status"] == "pending"
        assert request["reason"] == "Injury"

    def test_second_request_conflicts(
        self, api_client: TestClient, user_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()
        url = f"/api/bookings/{booking.booking_id}/cancellation-request"
        api_client.put(
            url, json={"request_type": "cancellation", "reason": "Injury"}, headers=user_headers
        )

        response = api_client.put(
            url, json={"request_type": "reschedule", "reason": "Dates"}, headers=user_headers
        )

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == ErrorCode.REQUEST_ALREADY_PENDING.value

    def test_only_owner_may_request(
        self, api_client: TestClient, admin_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.put(
            f"/api/bookings/{booking.booking_id}/cancellation-request",
            json={"request_type": "cancellation", "reason": "Injury"},
            headers=admin_headers,
        )

        assert response.status_code == HTTP_403_FORBIDDEN

    def test_empty_reason_rejected(
        self, api_client: TestClient, user_headers, make_confirmed_booking
    ) -> None:
        booking = make_confirmed_booking()

        response = api_client.put(
            f"/api/bookings/{booking.booking_id}/cancellation-request",
            json={"request_type": "cancellation", "reason": ""},
            headers=user_headers,
        )

        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY
