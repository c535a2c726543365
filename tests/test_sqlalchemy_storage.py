"""Storage against a real database file.

SQLite has no row locks, so these tests run sequentially; concurrency is
covered against the in-memory storage.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import Base, build_engine
from app.domain.booking_state import BLOCKING_STATUSES
from app.domain.payment_state import TransitionDecision
from app.models import AuditLog, Booking, CheckoutRequest, HostPayout, PaymentAnomaly, PaymentTransaction, Property
from app.models.listing import Tour, TourPackage, TransportVehicle
from app.repositories.sqlalchemy_storage import SqlAlchemyStorage
from app.schemas.payment import DepositCallback
from app.services.reconciliation_service import ReconciliationEngine
from tests.conftest import TODAY, make_booking, make_checkout, make_property

TABLES = [
    model.__table__
    for model in (
        Property,
        Tour,
        TourPackage,
        TransportVehicle,
        CheckoutRequest,
        Booking,
        PaymentTransaction,
        HostPayout,
        AuditLog,
        PaymentAnomaly,
    )
]


@pytest.fixture
async def db_storage(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'reconcile.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=TABLES))
    yield SqlAlchemyStorage(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


async def seed(storage, *rows):
    async with storage.session() as session:
        session.db.add_all(rows)


async def test_completed_callback_is_persisted_once(db_storage, gateway, notifier):
    checkout = make_checkout(uuid.uuid4(), "100000")
    bookings = [make_booking(order_id=checkout.id), make_booking(order_id=checkout.id)]
    await seed(db_storage, checkout, *bookings)
    engine = ReconciliationEngine(db_storage, gateway, notifier)
    callback = DepositCallback.model_validate(
        {
            "depositId": "dep-1",
            "status": "COMPLETED",
            "metadata": [{"fieldName": "orderId", "fieldValue": str(checkout.id)}],
        }
    )

    first = await engine.handle_callback(callback)
    second = await engine.handle_callback(callback)

    assert first.decision == TransitionDecision.APPLY
    assert second.decision == TransitionDecision.DUPLICATE
    async with db_storage.session() as session:
        stored = await session.get_order_bookings(checkout.id)
        transaction = await session.get_transaction("dep-1")
        order = await session.get_checkout(checkout.id)
    assert [(b.status, b.payment_status) for b in stored] == [("confirmed", "paid")] * 2
    assert transaction.status == "COMPLETED"
    assert order.payment_status == "paid"
    assert len(notifier.sent) == 1


async def test_failed_session_rolls_back(db_storage):
    booking = make_booking()
    await seed(db_storage, booking)

    with pytest.raises(RuntimeError):
        async with db_storage.session() as session:
            row = await session.get_booking(booking.id, lock=True)
            row.status = "confirmed"
            await session.flush()
            raise RuntimeError("boom")

    async with db_storage.session() as session:
        assert (await session.get_booking(booking.id)).status == "pending_confirmation"


async def test_overlap_query_uses_half_open_ranges(db_storage):
    listing = make_property()
    booked = make_booking(property_id=listing.id, check_in=TODAY, check_out=TODAY + timedelta(days=3))
    cancelled = make_booking(
        property_id=listing.id, status="cancelled", check_in=TODAY, check_out=TODAY + timedelta(days=3)
    )
    await seed(db_storage, listing, booked, cancelled)

    async with db_storage.session() as session:
        overlapping = await session.find_overlapping_bookings(
            listing.id, TODAY + timedelta(days=2), TODAY + timedelta(days=4), BLOCKING_STATUSES
        )
        back_to_back = await session.find_overlapping_bookings(
            listing.id, TODAY + timedelta(days=3), TODAY + timedelta(days=5), BLOCKING_STATUSES
        )
        excluded = await session.find_overlapping_bookings(
            listing.id, TODAY, TODAY + timedelta(days=1), BLOCKING_STATUSES, exclude_booking_id=booked.id
        )
        found = await session.get_listing("property", listing.id)
        unknown = await session.get_listing("boat", listing.id)

    assert [b.id for b in overlapping] == [booked.id]
    assert back_to_back == []
    assert excluded == []
    assert found.title == listing.title
    assert unknown is None


async def test_three_decimal_currency_amounts_survive_a_round_trip(db_storage):
    booking = make_booking(total_price=Decimal("12.345"), currency="KWD")
    await seed(db_storage, booking)

    async with db_storage.session() as session:
        stored = await session.get_booking(booking.id)

    assert stored.total_price == Decimal("12.345")
