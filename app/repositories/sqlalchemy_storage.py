"""SQLAlchemy-backed storage."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.payment_state import TERMINAL_STATUSES
from app.models.admin import AuditLog, PaymentAnomaly
from app.models.booking import Booking, CheckoutRequest
from app.models.listing import Property, Tour, TourPackage, TransportVehicle
from app.models.payment import HostPayout, PaymentTransaction
from app.repositories.base import Listing, Storage, StorageSession

LISTING_MODELS = {
    "property": Property,
    "tour": Tour,
    "tour_package": TourPackage,
    "transport": TransportVehicle,
}


class SqlAlchemyStorageSession(StorageSession):
    """StorageSession over one AsyncSession inside an open transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _scalar(self, stmt, lock: bool):
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _scalars(self, stmt, lock: bool) -> list:
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_transaction(self, deposit_id: str, lock: bool = False) -> PaymentTransaction | None:
        stmt = select(PaymentTransaction).where(PaymentTransaction.transaction_id == deposit_id)
        return await self._scalar(stmt, lock)

    async def add_transaction(self, transaction: PaymentTransaction) -> None:
        self.db.add(transaction)

    async def list_open_transactions(self, created_before: datetime) -> list[PaymentTransaction]:
        stmt = (
            select(PaymentTransaction)
            .where(
                PaymentTransaction.status.not_in([s.value for s in TERMINAL_STATUSES]),
                PaymentTransaction.created_at < created_before,
            )
            .order_by(PaymentTransaction.created_at)
        )
        return await self._scalars(stmt, lock=False)

    async def get_booking(self, booking_id: uuid.UUID, lock: bool = False) -> Booking | None:
        return await self._scalar(select(Booking).where(Booking.id == booking_id), lock)

    async def get_order_bookings(self, order_id: uuid.UUID, lock: bool = False) -> list[Booking]:
        stmt = select(Booking).where(Booking.order_id == order_id).order_by(Booking.id)
        return await self._scalars(stmt, lock)

    async def find_bookings_by_reference(self, payment_reference: str, lock: bool = False) -> list[Booking]:
        stmt = select(Booking).where(Booking.payment_reference == payment_reference).order_by(Booking.id)
        return await self._scalars(stmt, lock)

    async def add_booking(self, booking: Booking) -> None:
        self.db.add(booking)

    async def get_checkout(self, order_id: uuid.UUID, lock: bool = False) -> CheckoutRequest | None:
        return await self._scalar(select(CheckoutRequest).where(CheckoutRequest.id == order_id), lock)

    async def find_checkout_by_reference(self, payment_reference: str, lock: bool = False) -> CheckoutRequest | None:
        stmt = select(CheckoutRequest).where(CheckoutRequest.payment_reference == payment_reference)
        return await self._scalar(stmt, lock)

    async def add_checkout(self, checkout: CheckoutRequest) -> None:
        self.db.add(checkout)

    async def get_listing(self, item_type: str, listing_id: uuid.UUID) -> Listing | None:
        model = LISTING_MODELS.get(item_type)
        if model is None:
            return None
        return await self.db.get(model, listing_id)

    async def find_overlapping_bookings(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        statuses: frozenset[str],
        exclude_booking_id: uuid.UUID | None = None,
    ) -> list[Booking]:
        stmt = select(Booking).where(
            Booking.property_id == property_id,
            Booking.status.in_(list(statuses)),
            Booking.check_in < check_out,
            Booking.check_out > check_in,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return await self._scalars(stmt, lock=False)

    async def get_payout(self, payout_id: uuid.UUID, lock: bool = False) -> HostPayout | None:
        return await self._scalar(select(HostPayout).where(HostPayout.id == payout_id), lock)

    async def add_audit_log(self, entry: AuditLog) -> None:
        self.db.add(entry)

    async def add_anomaly(self, anomaly: PaymentAnomaly) -> None:
        self.db.add(anomaly)

    async def flush(self) -> None:
        await self.db.flush()


class SqlAlchemyStorage(Storage):
    """Storage whose sessions are database transactions."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[SqlAlchemyStorageSession]:
        async with self.session_maker() as db:
            async with db.begin():
                yield SqlAlchemyStorageSession(db)
