"""Storage interface used by the booking and payment services.

A ``Storage`` hands out ``StorageSession`` objects, each one a single
database transaction: everything done through a session commits together
when the ``async with`` block exits cleanly and rolls back if it raises.

Reads with ``lock=True`` hold a row lock (``SELECT ... FOR UPDATE``) until
the session ends. Callers that lock several rows lock the payment
transaction first and bookings in ascending id order.

Sessions never commit on their own; services own the transaction boundary.
"""

import uuid
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import date, datetime

from app.models.admin import AuditLog, PaymentAnomaly
from app.models.booking import Booking, CheckoutRequest
from app.models.listing import Property, Tour, TourPackage, TransportVehicle
from app.models.payment import HostPayout, PaymentTransaction

Listing = Property | Tour | TourPackage | TransportVehicle


class StorageSession(ABC):
    """Reads and writes available inside one transaction."""

    # Payment transactions

    @abstractmethod
    async def get_transaction(self, deposit_id: str, lock: bool = False) -> PaymentTransaction | None:
        pass

    @abstractmethod
    async def add_transaction(self, transaction: PaymentTransaction) -> None:
        pass

    @abstractmethod
    async def list_open_transactions(self, created_before: datetime) -> list[PaymentTransaction]:
        """Non-terminal deposits created before a cutoff, oldest first."""
        pass

    # Bookings and checkouts

    @abstractmethod
    async def get_booking(self, booking_id: uuid.UUID, lock: bool = False) -> Booking | None:
        pass

    @abstractmethod
    async def get_order_bookings(self, order_id: uuid.UUID, lock: bool = False) -> list[Booking]:
        """All bookings of an order, ordered by id."""
        pass

    @abstractmethod
    async def find_bookings_by_reference(self, payment_reference: str, lock: bool = False) -> list[Booking]:
        pass

    @abstractmethod
    async def add_booking(self, booking: Booking) -> None:
        pass

    @abstractmethod
    async def get_checkout(self, order_id: uuid.UUID, lock: bool = False) -> CheckoutRequest | None:
        pass

    @abstractmethod
    async def find_checkout_by_reference(self, payment_reference: str, lock: bool = False) -> CheckoutRequest | None:
        pass

    @abstractmethod
    async def add_checkout(self, checkout: CheckoutRequest) -> None:
        pass

    # Listings (read only)

    @abstractmethod
    async def get_listing(self, item_type: str, listing_id: uuid.UUID) -> Listing | None:
        """Listing row for a booking/checkout item type, None for unknown types."""
        pass

    @abstractmethod
    async def find_overlapping_bookings(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        statuses: frozenset[str],
        exclude_booking_id: uuid.UUID | None = None,
    ) -> list[Booking]:
        """Bookings on a property in ``statuses`` whose stay intersects [check_in, check_out)."""
        pass

    # Payouts

    @abstractmethod
    async def get_payout(self, payout_id: uuid.UUID, lock: bool = False) -> HostPayout | None:
        pass

    # Audit

    @abstractmethod
    async def add_audit_log(self, entry: AuditLog) -> None:
        pass

    @abstractmethod
    async def add_anomaly(self, anomaly: PaymentAnomaly) -> None:
        pass

    @abstractmethod
    async def flush(self) -> None:
        """Push pending writes so later reads in this session see them."""
        pass


class Storage(ABC):
    """Factory for transactional storage sessions."""

    @abstractmethod
    def session(self) -> AbstractAsyncContextManager[StorageSession]:
        """Open one transaction; use as ``async with storage.session() as s``."""
        pass
