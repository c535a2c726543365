"""Refund calculation for cancelled, paid bookings.

Pure read and compute: nothing here writes. A booking that is not both
cancelled and paid has no refund, which is reported as ``None``.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal

from app.domain.booking_state import BookingStatus, PaymentStatus
from app.domain.cancellation_policy import days_until, refund_tier_for, resolve_policy
from app.domain.money import round_to_currency_precision
from app.models.booking import Booking
from app.repositories.base import Storage

logger = logging.getLogger(__name__)

BULK_POLICY_TYPE = "bulk"


@dataclass(frozen=True)
class RefundResult:
    """Refund owed for one booking or a whole order."""

    refund_amount: Decimal
    refund_percentage: Decimal
    policy_type: str
    description: str
    currency: str


def refund_for_booking(booking: Booking, today: date, host_cancelled: bool = False) -> RefundResult | None:
    """Refund owed for a loaded booking, or None if it is not refundable.

    Args:
        booking: Booking row
        today: Cancellation date
        host_cancelled: Host-initiated cancellations refund in full

    Returns:
        RefundResult, or None unless the booking is cancelled and paid. A
        guest cancellation without a start date has no policy tier and also
        returns None.
    """
    if booking.status != BookingStatus.CANCELLED.value or booking.payment_status != PaymentStatus.PAID.value:
        return None

    policy = resolve_policy(booking.cancellation_policy_type)
    if host_cancelled:
        percentage = Decimal("100")
        description = "Full refund (cancelled by host)"
    elif booking.check_in is None:
        logger.warning(f"Booking {booking.id} has no start date; no refund tier applies")
        return None
    else:
        tier = refund_tier_for(policy, days_until(booking.check_in, today))
        percentage = tier.percentage
        description = tier.description

    amount = round_to_currency_precision(
        Decimal(booking.total_price) * percentage / Decimal("100"),
        booking.currency,
    )
    return RefundResult(
        refund_amount=amount,
        refund_percentage=percentage,
        policy_type=policy.value,
        description=description,
        currency=booking.currency,
    )


class RefundCalculator:
    """Refund lookups for single bookings and bulk orders."""

    def __init__(self, storage: Storage, today: Callable[[], date] = date.today):
        self.storage = storage
        self.today = today

    async def calculate_booking_refund(
        self,
        booking_id: uuid.UUID,
        as_of: date | None = None,
    ) -> RefundResult | None:
        """Refund for one booking.

        Returns:
            RefundResult, or None when the booking does not exist or is not
            both cancelled and paid
        """
        async with self.storage.session() as session:
            booking = await session.get_booking(booking_id)
            if booking is None:
                return None
            return refund_for_booking(booking, as_of or self.today(), booking.cancelled_by == "host")

    async def calculate_bulk_order_refund(
        self,
        order_id: uuid.UUID,
        as_of: date | None = None,
    ) -> RefundResult | None:
        """Aggregate refund across every eligible booking of an order.

        Amount is the sum; percentage is the plain mean of the eligible
        bookings' percentages, not weighted by price, rounded to a whole
        percent. Currency comes from the first eligible booking.

        Returns:
            RefundResult with policy_type "bulk", or None when no booking
            of the order is eligible
        """
        today = as_of or self.today()
        async with self.storage.session() as session:
            bookings = await session.get_order_bookings(order_id)

        refunds = [
            refund
            for refund in (refund_for_booking(b, today, b.cancelled_by == "host") for b in bookings)
            if refund is not None
        ]
        if not refunds:
            return None

        currency = refunds[0].currency
        if any(r.currency != currency for r in refunds):
            logger.warning(
                f"Order {order_id} mixes currencies {sorted({r.currency for r in refunds})}; "
                f"summing as {currency}"
            )

        total = sum((r.refund_amount for r in refunds), Decimal("0"))
        mean = sum((r.refund_percentage for r in refunds), Decimal("0")) / len(refunds)

        return RefundResult(
            refund_amount=round_to_currency_precision(total, currency),
            refund_percentage=mean.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN),
            policy_type=BULK_POLICY_TYPE,
            description=f"{len(refunds)} booking(s) - various policies",
            currency=currency,
        )

    async def get_refund_info(
        self,
        booking_id: uuid.UUID,
        order_id: uuid.UUID | None = None,
        as_of: date | None = None,
    ) -> RefundResult | None:
        """Refund for a booking, or for its whole order when ``order_id`` is given."""
        if order_id is not None:
            return await self.calculate_bulk_order_refund(order_id, as_of)
        return await self.calculate_booking_refund(booking_id, as_of)
