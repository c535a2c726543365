"""Deposit reconciliation.

Provider callbacks (push) and status checks (pull) report the same deposit
independently, in any order and any number of times. Both channels end in
``ReconciliationEngine.apply_deposit_status``, which decides inside one
transaction whether the report is new information and, if so, moves the
payment transaction, every booking of the order and the checkout together.

Rules:
- Terminal deposit statuses are written once. A different terminal status
  later is recorded as an anomaly and the first one stays authoritative.
- Non-terminal reports after a terminal one are stale and ignored.
- A paid booking is never downgraded by a failed deposit.
- Provider outages never turn into a local failure.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from app.config import settings
from app.core.exceptions import BadRequestError, NotFoundError, UnresolvableReferenceError
from app.domain.booking_state import BookingStatus, PaymentStatus, assert_booking_transition
from app.domain.failure_reasons import normalize_failure_reason
from app.domain.money import convert_amount, format_money
from app.domain.payment_state import (
    FAILURE_STATUSES,
    DepositStatus,
    TransitionDecision,
    classify_transition,
    is_terminal,
    map_deposit_status,
)
from app.gateways.base import MobileMoneyGateway, ProviderUnavailable
from app.gateways.pawapay import correspondent_for
from app.models.booking import Booking, CheckoutRequest
from app.models.payment import PaymentTransaction
from app.repositories.base import Storage, StorageSession
from app.services.audit_service import audit_service
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationOutcome:
    """What one callback or status check did to local state."""

    deposit_id: str
    decision: TransitionDecision
    status: DepositStatus
    booking_ids: list[str] = field(default_factory=list)
    order_id: str | None = None
    booking_status: str | None = None
    payment_status: str | None = None
    failure_message: str | None = None

    @property
    def booking_id(self) -> str | None:
        return self.booking_ids[0] if self.booking_ids else None

    @property
    def applied(self) -> bool:
        return self.decision == TransitionDecision.APPLY


@dataclass
class DepositInitiation:
    """Result of asking the provider to collect a payment."""

    deposit_id: str
    accepted: bool
    status: str
    amount: Decimal
    currency: str
    failure_message: str | None = None


@dataclass
class SweepReport:
    checked: int = 0
    applied: int = 0
    unchanged: int = 0
    errors: int = 0


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        logger.warning(f"Ignoring malformed id in payment metadata: {value!r}")
        return None


class ReconciliationEngine:
    """Single entry point for every deposit status report."""

    def __init__(
        self,
        storage: Storage,
        gateway: MobileMoneyGateway,
        notifier: NotificationService | None = None,
    ):
        self.storage = storage
        self.gateway = gateway
        self.notifier = notifier

    # ==================== CHANNELS ====================

    async def handle_callback(self, callback) -> ReconciliationOutcome:
        """Apply a validated provider callback (``DepositCallback``)."""
        failure = callback.failure_reason
        return await self.apply_deposit_status(
            deposit_id=callback.deposit_id,
            status=callback.status,
            channel="callback",
            metadata=callback.metadata,
            failure_code=failure.failure_code if failure else None,
            failure_message=failure.failure_message if failure else None,
            amount=callback.amount,
            currency=callback.currency,
            payload=callback.model_dump(mode="json", by_alias=True),
        )

    async def poll_deposit(
        self,
        deposit_id: str,
        order_id: uuid.UUID | str | None = None,
        booking_id: uuid.UUID | str | None = None,
    ) -> tuple[ReconciliationOutcome, dict | None] | None:
        """Ask the provider for a deposit's status and apply it.

        Returns:
            (outcome, provider deposit data), or None when the provider has
            no such deposit

        Raises:
            ProviderUnavailable: Provider unreachable; nothing was changed
        """
        result = await self.gateway.get_deposit(deposit_id)
        if not result.found:
            logger.info(f"Status check: provider has no deposit {deposit_id}")
            return None

        try:
            status = DepositStatus(result.status)
        except ValueError:
            raise ProviderUnavailable("get_deposit", f"unknown deposit status {result.status!r}") from None

        # Provider metadata wins; the caller's ids only fill gaps
        metadata = dict(result.metadata)
        if order_id:
            metadata.setdefault("orderId", str(order_id))
        if booking_id:
            metadata.setdefault("bookingId", str(booking_id))

        outcome = await self.apply_deposit_status(
            deposit_id=deposit_id,
            status=status,
            channel="status_check",
            metadata=metadata,
            failure_code=result.failure_code,
            failure_message=result.failure_message,
            amount=result.amount,
            currency=result.currency,
            payload=result.raw_response,
        )
        return outcome, result.raw_response

    async def reconcile_stale_deposits(self, older_than_minutes: int | None = None) -> SweepReport:
        """Status-check every non-terminal deposit older than the cutoff."""
        minutes = older_than_minutes if older_than_minutes is not None else settings.stale_deposit_minutes
        cutoff = datetime.now(UTC) - timedelta(minutes=minutes)

        async with self.storage.session() as session:
            open_deposits = [
                (t.transaction_id, t.order_id, t.booking_id)
                for t in await session.list_open_transactions(cutoff)
            ]

        report = SweepReport()
        for deposit_id, order_id, booking_id in open_deposits:
            report.checked += 1
            try:
                polled = await self.poll_deposit(deposit_id, order_id=order_id, booking_id=booking_id)
            except (ProviderUnavailable, UnresolvableReferenceError) as e:
                report.errors += 1
                logger.warning(f"Sweep could not reconcile deposit {deposit_id}: {e}")
                continue

            if polled and polled[0].applied:
                report.applied += 1
            else:
                report.unchanged += 1

        logger.info(
            f"Deposit sweep: checked={report.checked} applied={report.applied} "
            f"unchanged={report.unchanged} errors={report.errors}"
        )
        return report

    # ==================== STATE APPLICATION ====================

    async def apply_deposit_status(
        self,
        deposit_id: str,
        status: DepositStatus | str,
        channel: str,
        metadata: dict[str, str] | None = None,
        failure_code: str | None = None,
        failure_message: str | None = None,
        amount: Decimal | None = None,
        currency: str | None = None,
        payload: dict | None = None,
    ) -> ReconciliationOutcome:
        """Reconcile one provider report of a deposit status.

        Args:
            deposit_id: Provider deposit id
            status: Reported provider status
            channel: callback, status_check or initiation
            metadata: bookingId / orderId echoed by the provider
            failure_code: Provider failure code for failed deposits
            failure_message: Provider failure text (never shown to guests)
            amount: Reported amount, used only for unrecorded deposits
            currency: Reported currency
            payload: Raw provider payload kept on the transaction

        Returns:
            ReconciliationOutcome describing the decision taken

        Raises:
            UnresolvableReferenceError: No booking or checkout matches the deposit
        """
        status = DepositStatus(status)
        metadata = metadata or {}
        notify: dict | None = None

        async with self.storage.session() as session:
            transaction = await session.get_transaction(deposit_id, lock=True)
            bookings, checkout = await self._resolve_bookings(session, deposit_id, transaction, metadata)

            if not bookings:
                logger.warning(f"Unresolvable deposit {deposit_id} via {channel} (status {status.value})")
                raise UnresolvableReferenceError(deposit_id)

            order_id = bookings[0].order_id
            booking_ids = [str(b.id) for b in bookings]

            if transaction is None:
                transaction = self._new_transaction(deposit_id, bookings, checkout, amount, currency)
                await session.add_transaction(transaction)
                current = None
            else:
                current = DepositStatus(transaction.status)

            decision = classify_transition(current, status)
            primary = bookings[0]

            if decision == TransitionDecision.DUPLICATE:
                logger.warning(f"Duplicate {status.value} for deposit {deposit_id} via {channel}; no change")
            elif decision == TransitionDecision.STALE:
                logger.warning(
                    f"Stale {status.value} for deposit {deposit_id} via {channel}; "
                    f"stored status is {transaction.status}"
                )
            elif decision == TransitionDecision.CONFLICT:
                logger.error(
                    f"Conflicting terminal status for deposit {deposit_id} via {channel}: "
                    f"stored {transaction.status}, observed {status.value}; keeping {transaction.status}"
                )
                await audit_service.record_anomaly(
                    session,
                    deposit_id=deposit_id,
                    authoritative_status=transaction.status,
                    observed_status=status.value,
                    channel=channel,
                    payload=payload,
                )
            else:
                notify = await self._apply(
                    session, transaction, bookings, checkout, current, status, channel,
                    failure_code, failure_message, payload,
                )

            outcome = ReconciliationOutcome(
                deposit_id=deposit_id,
                decision=decision,
                status=DepositStatus(transaction.status),
                booking_ids=booking_ids,
                order_id=str(order_id) if order_id else None,
                booking_status=primary.status,
                payment_status=primary.payment_status,
                failure_message=transaction.failure_reason,
            )

        # Committed; side effects only from here on
        if notify and self.notifier:
            await self.notifier.booking_confirmed(**notify)

        return outcome

    async def _resolve_bookings(
        self,
        session: StorageSession,
        deposit_id: str,
        transaction: PaymentTransaction | None,
        metadata: dict[str, str],
    ) -> tuple[list[Booking], CheckoutRequest | None]:
        """Find and lock every booking a deposit pays for.

        Lookup order: metadata ids, ids stored on the transaction, bookings
        carrying the deposit as payment reference, then the checkout
        carrying it. A booking that belongs to an order pulls in the whole
        order.
        """
        order_id = _parse_uuid(metadata.get("orderId"))
        booking_id = _parse_uuid(metadata.get("bookingId"))
        if transaction is not None:
            order_id = order_id or transaction.order_id
            booking_id = booking_id or transaction.booking_id

        if order_id is None and booking_id is not None:
            booking = await session.get_booking(booking_id)
            if booking is not None:
                if booking.order_id is None:
                    locked = await session.get_booking(booking_id, lock=True)
                    return [locked], None
                order_id = booking.order_id

        if order_id is None:
            referenced = await session.find_bookings_by_reference(deposit_id)
            if referenced:
                order_ids = {b.order_id for b in referenced if b.order_id}
                if not order_ids:
                    return await session.find_bookings_by_reference(deposit_id, lock=True), None
                order_id = min(order_ids)
            else:
                checkout = await session.find_checkout_by_reference(deposit_id)
                if checkout is not None:
                    order_id = checkout.id

        if order_id is None:
            return [], None

        bookings = await session.get_order_bookings(order_id, lock=True)
        checkout = await session.get_checkout(order_id, lock=True)
        return bookings, checkout

    def _new_transaction(
        self,
        deposit_id: str,
        bookings: list[Booking],
        checkout: CheckoutRequest | None,
        amount: Decimal | None,
        currency: str | None,
    ) -> PaymentTransaction:
        """Row for a deposit the provider knows but we never recorded."""
        logger.warning(f"Deposit {deposit_id} had no local transaction; recording it now")
        now = datetime.now(UTC)
        if amount is None:
            amount = checkout.total_amount if checkout else sum((b.total_price for b in bookings), Decimal("0"))
            currency = checkout.currency if checkout else bookings[0].currency

        return PaymentTransaction(
            id=uuid.uuid4(),
            transaction_id=deposit_id,
            booking_id=bookings[0].id if bookings[0].order_id is None else None,
            order_id=bookings[0].order_id,
            amount=amount,
            currency=currency or settings.mobile_money_currency,
            provider="pawapay",
            status=DepositStatus.INITIATED.value,
            created_at=now,
            updated_at=now,
        )

    async def _apply(
        self,
        session: StorageSession,
        transaction: PaymentTransaction,
        bookings: list[Booking],
        checkout: CheckoutRequest | None,
        current: DepositStatus | None,
        status: DepositStatus,
        channel: str,
        failure_code: str | None,
        failure_message: str | None,
        payload: dict | None,
    ) -> dict | None:
        """Write an accepted transition; returns notification kwargs on first completion."""
        now = datetime.now(UTC)
        deposit_id = transaction.transaction_id
        booking_status, payment_status = map_deposit_status(status)

        failure_reason = None
        if status in FAILURE_STATUSES:
            failure_reason = normalize_failure_reason(failure_code, failure_message)
            if failure_message:
                logger.info(f"Deposit {deposit_id} failed: {failure_code} {failure_message}")

        transaction.status = status.value
        transaction.failure_code = failure_code
        transaction.failure_reason = failure_reason
        if payload is not None:
            transaction.provider_response = payload
        transaction.updated_at = now
        if is_terminal(status):
            transaction.terminal_at = now

        newly_paid = []
        for booking in bookings:
            was_paid = booking.payment_status == PaymentStatus.PAID.value
            self._apply_to_booking(booking, deposit_id, booking_status, payment_status, now)
            if not was_paid and booking.payment_status == PaymentStatus.PAID.value:
                newly_paid.append(booking)

        if checkout is not None:
            if checkout.payment_status != PaymentStatus.PAID.value or payment_status == PaymentStatus.PAID:
                checkout.payment_status = payment_status.value
                checkout.payment_reference = deposit_id
                checkout.payment_error = failure_reason
            checkout.updated_at = now

        await audit_service.log_deposit_transition(
            session,
            deposit_id=deposit_id,
            old_status=current.value if current else None,
            new_status=status.value,
            booking_ids=[str(b.id) for b in bookings],
            order_id=str(bookings[0].order_id) if bookings[0].order_id else None,
            channel=channel,
        )
        logger.info(
            f"Deposit {deposit_id} {current.value if current else 'NEW'} -> {status.value} via {channel}; "
            f"{len(bookings)} booking(s) now {booking_status.value}/{payment_status.value}"
        )

        if status != DepositStatus.COMPLETED or not newly_paid:
            return None
        return {
            "deposit_id": deposit_id,
            "booking_ids": [str(b.id) for b in bookings],
            "order_id": str(bookings[0].order_id) if bookings[0].order_id else None,
            "email": checkout.email if checkout else None,
            "name": checkout.name if checkout else None,
        }

    def _apply_to_booking(
        self,
        booking: Booking,
        deposit_id: str,
        booking_status: BookingStatus,
        payment_status: PaymentStatus,
        now: datetime,
    ) -> None:
        if booking.payment_status == PaymentStatus.PAID.value:
            if payment_status == PaymentStatus.PAID and booking.payment_reference not in (None, deposit_id):
                logger.error(
                    f"Booking {booking.id} paid twice: {booking.payment_reference} and {deposit_id}"
                )
            elif payment_status != PaymentStatus.PAID:
                logger.warning(
                    f"Booking {booking.id} already paid via {booking.payment_reference}; "
                    f"ignoring {payment_status.value} from deposit {deposit_id}"
                )
            return

        booking.payment_status = payment_status.value
        booking.payment_reference = deposit_id
        booking.updated_at = now

        # Only pending bookings move; cancelled and completed keep their status
        if booking.status == BookingStatus.PENDING_CONFIRMATION.value and booking_status == BookingStatus.CONFIRMED:
            assert_booking_transition(booking.status, booking_status.value)
            booking.status = booking_status.value
            booking.confirmed_at = now

    # ==================== INITIATION ====================

    async def initiate_deposit(
        self,
        phone_number: str,
        payment_method: str,
        booking_id: uuid.UUID | None = None,
        order_id: uuid.UUID | None = None,
    ) -> DepositInitiation:
        """Record a new deposit for a booking or order, then ask the provider for it.

        The transaction row exists before the outbound call, so a timeout
        leaves an INITIATED deposit that a status check can later resolve.

        Raises:
            BadRequestError: Bad input, already paid, or amount below minimum
            NotFoundError: Unknown booking or order
            ProviderUnavailable: Provider unreachable after the deposit was recorded
        """
        if booking_id is None and order_id is None:
            raise BadRequestError("Either bookingId or orderId is required")
        try:
            correspondent_for(payment_method)
        except ValueError as e:
            raise BadRequestError(str(e)) from None
        if not any(ch.isdigit() for ch in phone_number or ""):
            raise BadRequestError("Phone number is required")

        deposit_id = str(uuid.uuid4())
        target_currency = settings.mobile_money_currency

        async with self.storage.session() as session:
            checkout = None
            if order_id is not None:
                bookings = await session.get_order_bookings(order_id, lock=True)
                checkout = await session.get_checkout(order_id, lock=True)
                if not bookings or checkout is None:
                    raise NotFoundError("Order", str(order_id))
                base_amount, base_currency = checkout.total_amount, checkout.currency
            else:
                booking = await session.get_booking(booking_id, lock=True)
                if booking is None:
                    raise NotFoundError("Booking", str(booking_id))
                if booking.order_id is not None:
                    raise BadRequestError(
                        f"Booking {booking.id} belongs to order {booking.order_id}; pay for the order instead"
                    )
                bookings = [booking]
                base_amount, base_currency = booking.total_price, booking.currency

            if any(b.payment_status == PaymentStatus.PAID.value for b in bookings):
                raise BadRequestError("This booking has already been paid")

            amount = convert_amount(base_amount, base_currency, target_currency)
            if amount is None:
                raise BadRequestError(f"Cannot convert {base_currency} to {target_currency}")
            if amount < settings.min_deposit_amount:
                raise BadRequestError(
                    f"Minimum mobile money payment is {format_money(settings.min_deposit_amount, target_currency)}"
                )

            now = datetime.now(UTC)
            await session.add_transaction(
                PaymentTransaction(
                    id=uuid.uuid4(),
                    transaction_id=deposit_id,
                    booking_id=booking_id if order_id is None else None,
                    order_id=order_id,
                    amount=amount,
                    currency=target_currency,
                    provider=self.gateway.gateway_type.value,
                    payment_method=payment_method,
                    phone_number=phone_number,
                    status=DepositStatus.INITIATED.value,
                    created_at=now,
                    updated_at=now,
                )
            )
            for booking in bookings:
                if booking.payment_status != PaymentStatus.PAID.value:
                    booking.payment_reference = deposit_id
                    booking.payment_method = payment_method
                    booking.payment_status = PaymentStatus.AWAITING_CALLBACK.value
            if checkout is not None:
                checkout.payment_reference = deposit_id
                checkout.payment_method = payment_method
                checkout.payment_status = PaymentStatus.AWAITING_CALLBACK.value
                checkout.payment_error = None

            await audit_service.log_financial_action(
                session,
                action="deposit_initiated",
                resource_type="deposit",
                resource_id=deposit_id,
                new_values={
                    "amount": str(amount),
                    "currency": target_currency,
                    "booking_ids": [str(b.id) for b in bookings],
                    "order_id": str(order_id) if order_id else None,
                },
                channel="initiation",
            )

        metadata = {"orderId": str(order_id)} if order_id else {"bookingId": str(booking_id)}
        try:
            result = await self.gateway.initiate_deposit(
                deposit_id=deposit_id,
                amount=amount,
                currency=target_currency,
                payment_method=payment_method,
                phone_number=phone_number,
                metadata=metadata,
            )
        except ProviderUnavailable:
            logger.warning(f"Deposit {deposit_id} recorded but provider unreachable; left INITIATED")
            raise

        reported = result.status if result.status in DepositStatus.__members__ else None
        if result.accepted:
            outcome = await self.apply_deposit_status(
                deposit_id, reported or DepositStatus.ACCEPTED, "initiation",
                metadata=metadata, payload=result.raw_response,
            )
        else:
            outcome = await self.apply_deposit_status(
                deposit_id, reported or DepositStatus.REJECTED, "initiation",
                metadata=metadata,
                failure_code=result.failure_code,
                failure_message=result.failure_message,
                payload=result.raw_response,
            )

        return DepositInitiation(
            deposit_id=deposit_id,
            accepted=result.accepted,
            status=outcome.status.value,
            amount=amount,
            currency=target_currency,
            failure_message=outcome.failure_message,
        )
