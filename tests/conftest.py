"""Shared fixtures and row builders."""

import uuid
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from app.models.booking import Booking, CheckoutRequest
from app.models.listing import Property, Tour, TourPackage, TransportVehicle
from app.models.payment import HostPayout
from app.services.reconciliation_service import ReconciliationEngine
from tests.fakes import FakeGateway, InMemoryStorage, RecordingNotifier

TODAY = date(2026, 3, 10)


def make_property(**overrides) -> Property:
    values = {
        "id": uuid.uuid4(),
        "host_id": uuid.uuid4(),
        "title": "Lake Kivu cottage",
        "price_per_night": Decimal("50000"),
        "currency": "RWF",
        "is_published": True,
        "cancellation_policy": "fair",
    }
    values.update(overrides)
    return Property(**values)


def make_tour(**overrides) -> Tour:
    values = {
        "id": uuid.uuid4(),
        "host_id": uuid.uuid4(),
        "title": "Gorilla trek",
        "price_per_person": Decimal("100"),
        "currency": "USD",
        "is_published": True,
        "cancellation_policy_type": "strict",
    }
    values.update(overrides)
    return Tour(**values)


def make_package(**overrides) -> TourPackage:
    values = {
        "id": uuid.uuid4(),
        "host_id": uuid.uuid4(),
        "title": "Five days in the hills",
        "price_per_adult": Decimal("400"),
        "currency": "USD",
        "status": "approved",
        "cancellation_policy_type": "moderate",
    }
    values.update(overrides)
    return TourPackage(**values)


def make_vehicle(**overrides) -> TransportVehicle:
    values = {
        "id": uuid.uuid4(),
        "host_id": uuid.uuid4(),
        "title": "Land Cruiser",
        "price_per_day": Decimal("60000"),
        "currency": "RWF",
        "is_published": True,
    }
    values.update(overrides)
    return TransportVehicle(**values)


def make_booking(**overrides) -> Booking:
    now = datetime.now(UTC)
    values = {
        "id": uuid.uuid4(),
        "order_id": None,
        "booking_type": "property",
        "property_id": uuid.uuid4(),
        "check_in": TODAY + timedelta(days=5),
        "check_out": TODAY + timedelta(days=7),
        "total_price": Decimal("50000"),
        "currency": "RWF",
        "status": "pending_confirmation",
        "payment_status": "pending",
        "cancellation_policy_type": "fair",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Booking(**values)


def make_checkout(order_id: uuid.UUID, total: str, **overrides) -> CheckoutRequest:
    now = datetime.now(UTC)
    values = {
        "id": order_id,
        "name": "Aline Uwase",
        "email": "aline@example.com",
        "payment_status": "pending",
        "total_amount": Decimal(total),
        "currency": "RWF",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return CheckoutRequest(**values)


def make_payout(**overrides) -> HostPayout:
    now = datetime.now(UTC)
    values = {
        "id": uuid.uuid4(),
        "host_id": uuid.uuid4(),
        "amount": Decimal("5000"),
        "currency": "RWF",
        "status": "pending",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return HostPayout(**values)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(storage, gateway, notifier) -> ReconciliationEngine:
    return ReconciliationEngine(storage, gateway, notifier)


@pytest.fixture
def order(storage):
    """Order O1: two 50,000 RWF stays paid together."""
    order_id = uuid.uuid4()
    bookings = [make_booking(order_id=order_id), make_booking(order_id=order_id)]
    storage.seed(make_checkout(order_id, "100000"), *bookings)
    return order_id, sorted(bookings, key=lambda b: b.id)
