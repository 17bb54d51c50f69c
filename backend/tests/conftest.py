"""Pytest configuration and fixtures for the trek booking backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Services wired against the mocked tables, with payment gateway and SMTP
  replaced by mocks
- Sample catalog data (trek with batches) and booking builders
"""

import datetime as dt
import os
from decimal import Decimal
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "ap-south-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-trek")
os.environ.setdefault("ENVIRONMENT", "test")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from trek_shared.models.booking import (  # noqa: E402
    Booking,
    BookingCreate,
    Participant,
    ParticipantCreate,
    PaymentDetails,
    UserDetails,
)
from trek_shared.models.catalog import (  # noqa: E402
    BatchCreate,
    PartialPaymentSettings,
    RegionCreate,
    Trek,
    TrekCreate,
)
from trek_shared.models.enums import BookingStatus, PaymentMode  # noqa: E402
from trek_shared.models.refund import RefundResult  # noqa: E402
from trek_shared.services.booking import BookingService  # noqa: E402
from trek_shared.services.catalog import CatalogService  # noqa: E402
from trek_shared.services.dynamodb import DynamoDBService  # noqa: E402
from trek_shared.services.email_service import EmailService  # noqa: E402
from trek_shared.services.payment_service import PaymentService  # noqa: E402
from trek_shared.services.promotions import OfferService, PromoCodeService  # noqa: E402

TABLE_PREFIX = "test-trek"

# Fixed evaluation instant; batches are scheduled relative to it
NOW = dt.datetime(2026, 6, 1, 12, 0, tzinfo=dt.UTC)
BATCH_START = NOW + dt.timedelta(days=30)
SEAT_PRICE = Decimal("10000")
TEST_PAYMENT_INTENT = "pi_test_3ABC123"
TEST_USER = "user-sub-0001"
OTHER_USER = "user-sub-0002"


# === Singleton resets ===


@pytest.fixture(autouse=True)
def reset_state() -> Generator[None, None, None]:
    """Reset cached services and the DynamoDB singleton around each test.

    Tests using mock_aws then get fresh instances created inside the mock
    context rather than reused from an earlier test.
    """
    from trek_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "ap-south-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="ap-south-1")
        yield client


def _table(name: str, key: str, indexes: tuple[str, ...] = ()) -> dict[str, Any]:
    definition: dict[str, Any] = {
        "TableName": f"{TABLE_PREFIX}-{name}",
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": key, "AttributeType": "S"}]
        + [{"AttributeName": attr, "AttributeType": "S"} for attr in indexes],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        definition["GlobalSecondaryIndexes"] = [
            {
                "IndexName": f"{attr}-index",
                "KeySchema": [{"AttributeName": attr, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for attr in indexes
        ]
    return definition


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        _table("bookings", "booking_id", ("user_id", "batch_id")),
        _table("treks", "trek_id"),
        _table("regions", "region_id"),
        _table("promo-codes", "promo_id", ("code",)),
        _table("offers", "offer_id"),
    ]
    for table in tables:
        dynamodb_client.create_table(**table)


# === Service Fixtures ===


@pytest.fixture
def db(create_tables: None) -> DynamoDBService:
    return DynamoDBService()


@pytest.fixture
def catalog(db: DynamoDBService) -> CatalogService:
    return CatalogService(db)


@pytest.fixture
def promo_codes(db: DynamoDBService) -> PromoCodeService:
    return PromoCodeService(db)


@pytest.fixture
def offers(db: DynamoDBService) -> OfferService:
    return OfferService(db)


@pytest.fixture
def mock_payments() -> MagicMock:
    """PaymentService whose refunds always succeed."""
    payments = MagicMock(spec=PaymentService)
    payments.process_refund.side_effect = lambda payment_intent_id, amount, **kwargs: (
        RefundResult(success=True, refund_id="re_test_123", amount=amount, status="succeeded")
    )
    return payments


@pytest.fixture
def mock_email() -> MagicMock:
    return MagicMock(spec=EmailService)


@pytest.fixture
def booking_service(
    db: DynamoDBService,
    catalog: CatalogService,
    promo_codes: PromoCodeService,
    offers: OfferService,
    mock_payments: MagicMock,
    mock_email: MagicMock,
) -> BookingService:
    return BookingService(
        db=db,
        catalog=catalog,
        promo_codes=promo_codes,
        offers=offers,
        payments=mock_payments,
        email=mock_email,
    )


# === Sample Data Fixtures ===


@pytest.fixture
def trek(catalog: CatalogService) -> Trek:
    """Enabled trek with two batches (30 and 60 days out), 10 seats each."""
    region = catalog.create_region(RegionCreate(name="Uttarakhand"))
    return catalog.create_trek(
        TrekCreate(
            name="Kedarkantha",
            region_id=region.region_id,
            duration_days=6,
            partial_payment=PartialPaymentSettings(
                enabled=True,
                advance_percentage=Decimal("30"),
                final_payment_days_before=7,
            ),
            batches=[
                BatchCreate(
                    start_date=BATCH_START,
                    end_date=BATCH_START + dt.timedelta(days=5),
                    price=SEAT_PRICE,
                    max_participants=10,
                ),
                BatchCreate(
                    start_date=BATCH_START + dt.timedelta(days=30),
                    end_date=BATCH_START + dt.timedelta(days=35),
                    price=SEAT_PRICE,
                    max_participants=10,
                ),
            ],
        )
    )


def booking_request(
    trek: Trek,
    seats: int = 2,
    *,
    batch_index: int = 0,
    payment_mode: PaymentMode = PaymentMode.FULL,
    promo_code: str | None = None,
) -> BookingCreate:
    """Build a BookingCreate for a trek batch."""
    return BookingCreate(
        trek_id=trek.trek_id,
        batch_id=trek.batches[batch_index].batch_id,
        number_of_participants=seats,
        participants=[ParticipantCreate(name=f"Trekker {i + 1}", age=30) for i in range(seats)],
        user_details=UserDetails(name="Asha Rao", email="asha@example.com", phone="+91-9800000000"),
        payment_mode=payment_mode,
        promo_code=promo_code,
    )


@pytest.fixture
def make_confirmed_booking(
    booking_service: BookingService, trek: Trek
) -> Callable[..., Booking]:
    """Factory creating a paid, confirmed booking on the first batch."""

    def _make(seats: int = 2, user_id: str = TEST_USER) -> Booking:
        booking = booking_service.create_booking(booking_request(trek, seats), user_id, now=NOW)
        return booking_service.record_payment(
            booking.booking_id,
            TEST_PAYMENT_INTENT,
            booking.total_price,
            actor="admin-sub",
            now=NOW,
        )

    return _make


def make_booking_model(
    total_price: Decimal = Decimal("3000"),
    participants: int = 3,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    """In-memory booking for tests that do not touch DynamoDB."""
    return Booking(
        booking_id="BKG-TEST00000001",
        trek_id="TRK-TEST",
        batch_id="BAT-TEST",
        user_id=TEST_USER,
        user_details=UserDetails(name="Asha Rao", email="asha@example.com"),
        participants=[
            Participant(participant_id=f"P-{i + 1}", name=f"Trekker {i + 1}")
            for i in range(participants)
        ],
        total_price=total_price,
        status=status,
        payment_details=PaymentDetails(payment_intent_id=TEST_PAYMENT_INTENT),
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def now() -> dt.datetime:
    """Fixed evaluation instant; the first batch departs 30 days later."""
    return NOW


@pytest.fixture
def booking_model() -> Callable[..., Booking]:
    """Factory for in-memory bookings."""
    return make_booking_model


@pytest.fixture
def new_booking_request() -> Callable[..., BookingCreate]:
    """Factory for BookingCreate payloads against a trek fixture."""
    return booking_request


# === API Fixtures ===

USER_HEADERS = {"x-user-sub": TEST_USER, "x-user-email": "asha@example.com"}
ADMIN_HEADERS = {
    "x-user-sub": "admin-sub",
    "x-user-email": "ops@example.com",
    "x-user-role": "admin",
}


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Identity headers API Gateway injects for a regular user."""
    return dict(USER_HEADERS)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Identity headers API Gateway injects for an admin."""
    return dict(ADMIN_HEADERS)


@pytest.fixture
def api_client(
    db: DynamoDBService,
    catalog: CatalogService,
    promo_codes: PromoCodeService,
    offers: OfferService,
    booking_service: BookingService,
) -> Generator[Any, None, None]:
    """TestClient whose services run against the mocked tables.

    Payment and e-mail stay mocked through the booking_service fixture.
    """
    from fastapi.testclient import TestClient

    from trek_api import dependencies
    from trek_api.main import app
    from trek_shared.services.stats import StatsService

    app.dependency_overrides[dependencies.get_catalog_service] = lambda: catalog
    app.dependency_overrides[dependencies.get_promo_code_service] = lambda: promo_codes
    app.dependency_overrides[dependencies.get_offer_service] = lambda: offers
    app.dependency_overrides[dependencies.get_booking_service] = lambda: booking_service
    app.dependency_overrides[dependencies.get_stats_service] = lambda: StatsService(db, catalog)
    yield TestClient(app)
    app.dependency_overrides.clear()
