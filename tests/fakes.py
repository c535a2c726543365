"""In-memory doubles for storage, gateway and notifier."""

import asyncio
import copy
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import inspect

from app.domain.payment_state import TERMINAL_STATUSES
from app.gateways.base import (
    DepositResult,
    GatewayType,
    MobileMoneyGateway,
    PayoutResult,
    ProviderUnavailable,
)
from app.models.admin import AuditLog, PaymentAnomaly
from app.models.booking import Booking, CheckoutRequest
from app.models.payment import HostPayout, PaymentTransaction
from app.repositories.base import Listing, Storage, StorageSession
from app.repositories.sqlalchemy_storage import LISTING_MODELS
from app.services.notification_service import NotificationService

TERMINAL_VALUES = {s.value for s in TERMINAL_STATUSES}


def _fill_defaults(row) -> None:
    if getattr(row, "id", None) is None:
        row.id = uuid.uuid4()
    now = datetime.now(UTC)
    for attr in ("created_at", "updated_at"):
        if hasattr(type(row), attr) and getattr(row, attr) is None:
            setattr(row, attr, now)


class InMemorySession(StorageSession):
    def __init__(self, storage: "InMemoryStorage"):
        self.storage = storage

    async def get_transaction(self, deposit_id, lock=False):
        return self.storage.transactions.get(deposit_id)

    async def add_transaction(self, transaction):
        _fill_defaults(transaction)
        self.storage.transactions[transaction.transaction_id] = transaction

    async def list_open_transactions(self, created_before):
        rows = [
            t for t in self.storage.transactions.values()
            if t.status not in TERMINAL_VALUES and t.created_at < created_before
        ]
        return sorted(rows, key=lambda t: t.created_at)

    async def get_booking(self, booking_id, lock=False):
        return self.storage.bookings.get(booking_id)

    async def get_order_bookings(self, order_id, lock=False):
        return sorted((b for b in self.storage.bookings.values() if b.order_id == order_id), key=lambda b: b.id)

    async def find_bookings_by_reference(self, payment_reference, lock=False):
        return sorted(
            (b for b in self.storage.bookings.values() if b.payment_reference == payment_reference),
            key=lambda b: b.id,
        )

    async def add_booking(self, booking):
        _fill_defaults(booking)
        self.storage.bookings[booking.id] = booking

    async def get_checkout(self, order_id, lock=False):
        return self.storage.checkouts.get(order_id)

    async def find_checkout_by_reference(self, payment_reference, lock=False):
        for checkout in self.storage.checkouts.values():
            if checkout.payment_reference == payment_reference:
                return checkout
        return None

    async def add_checkout(self, checkout):
        _fill_defaults(checkout)
        self.storage.checkouts[checkout.id] = checkout

    async def get_listing(self, item_type, listing_id) -> Listing | None:
        model = LISTING_MODELS.get(item_type)
        listing = self.storage.listings.get(listing_id)
        if model is None or not isinstance(listing, model):
            return None
        return listing

    async def find_overlapping_bookings(self, property_id, check_in, check_out, statuses, exclude_booking_id=None):
        return [
            b for b in self.storage.bookings.values()
            if b.property_id == property_id
            and b.status in statuses
            and b.check_in < check_out
            and b.check_out > check_in
            and b.id != exclude_booking_id
        ]

    async def get_payout(self, payout_id, lock=False):
        return self.storage.payouts.get(payout_id)

    async def add_audit_log(self, entry):
        _fill_defaults(entry)
        self.storage.audit_logs.append(entry)

    async def add_anomaly(self, anomaly):
        _fill_defaults(anomaly)
        self.storage.anomalies.append(anomaly)

    async def flush(self):
        pass


class InMemoryStorage(Storage):
    """Dict-backed storage; sessions run one at a time and roll back on error."""

    def __init__(self):
        self.transactions: dict[str, PaymentTransaction] = {}
        self.bookings: dict[uuid.UUID, Booking] = {}
        self.checkouts: dict[uuid.UUID, CheckoutRequest] = {}
        self.listings: dict[uuid.UUID, Listing] = {}
        self.payouts: dict[uuid.UUID, HostPayout] = {}
        self.audit_logs: list[AuditLog] = []
        self.anomalies: list[PaymentAnomaly] = []
        self._lock = asyncio.Lock()

    def seed(self, *rows) -> None:
        """Insert rows directly, outside any session."""
        for row in rows:
            _fill_defaults(row)
            if isinstance(row, Booking):
                self.bookings[row.id] = row
            elif isinstance(row, CheckoutRequest):
                self.checkouts[row.id] = row
            elif isinstance(row, PaymentTransaction):
                self.transactions[row.transaction_id] = row
            elif isinstance(row, HostPayout):
                self.payouts[row.id] = row
            else:
                self.listings[row.id] = row

    def _tables(self) -> dict:
        return {
            "transactions": self.transactions,
            "bookings": self.bookings,
            "checkouts": self.checkouts,
            "payouts": self.payouts,
            "audit_logs": self.audit_logs,
            "anomalies": self.anomalies,
        }

    def _snapshot(self):
        tables = {name: copy.copy(table) for name, table in self._tables().items()}
        rows = []
        for table in self._tables().values():
            for row in table.values() if isinstance(table, dict) else table:
                columns = {
                    attr.key: copy.deepcopy(getattr(row, attr.key))
                    for attr in inspect(type(row)).column_attrs
                }
                rows.append((row, columns))
        return tables, rows

    def _restore(self, snapshot) -> None:
        tables, rows = snapshot
        for name, saved in tables.items():
            setattr(self, name, saved)
        for row, columns in rows:
            for key, value in columns.items():
                setattr(row, key, value)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[InMemorySession]:
        async with self._lock:
            snapshot = self._snapshot()
            try:
                yield InMemorySession(self)
            except BaseException:
                self._restore(snapshot)
                raise


class FakeGateway(MobileMoneyGateway):
    """Scriptable provider. Set ``unavailable`` to simulate an outage."""

    def __init__(self):
        self.unavailable = False
        self.deposits: dict[str, DepositResult] = {}
        self.payouts: dict[str, PayoutResult] = {}
        self.deposit_requests: list[dict] = []
        self.payout_requests: list[dict] = []
        self.deposit_reply: DepositResult | None = None
        self.payout_reply: PayoutResult | None = None

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.PAWAPAY

    def _check(self, operation: str) -> None:
        if self.unavailable:
            raise ProviderUnavailable(operation, "timed out")

    async def initiate_deposit(self, deposit_id, amount, currency, payment_method, phone_number, metadata=None):
        self.deposit_requests.append(
            {"deposit_id": deposit_id, "amount": amount, "currency": currency, "metadata": metadata}
        )
        self._check("initiate_deposit")
        if self.deposit_reply is not None:
            return self.deposit_reply
        return DepositResult(accepted=True, deposit_id=deposit_id, status="ACCEPTED")

    async def get_deposit(self, deposit_id):
        self._check("get_deposit")
        return self.deposits.get(deposit_id) or DepositResult(
            accepted=False, deposit_id=deposit_id, status=None, found=False
        )

    async def initiate_payout(self, payout_id, amount, currency, provider, phone_number, description=None):
        self.payout_requests.append(
            {"payout_id": payout_id, "amount": amount, "currency": currency, "provider": provider}
        )
        self._check("initiate_payout")
        if self.payout_reply is not None:
            return self.payout_reply
        return PayoutResult(accepted=True, payout_id=payout_id, status="ACCEPTED")

    async def get_payout(self, payout_id):
        self._check("get_payout")
        return self.payouts.get(payout_id) or PayoutResult(
            accepted=False, payout_id=payout_id, status=None, found=False
        )


class RecordingNotifier(NotificationService):
    """Notifier that records instead of posting."""

    def __init__(self):
        super().__init__(webhook_url="")
        self.sent: list[tuple[str, dict]] = []

    async def send(self, notification_type, payload):
        self.sent.append((notification_type, payload))
        return True


def completed_deposit(deposit_id: str, metadata: dict | None = None, amount: str = "100000") -> DepositResult:
    return DepositResult(
        accepted=True,
        deposit_id=deposit_id,
        status="COMPLETED",
        amount=Decimal(amount),
        currency="RWF",
        metadata=metadata or {},
        raw_response={"depositId": deposit_id, "status": "COMPLETED"},
    )
