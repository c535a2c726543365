"""Checkout submission.

A checkout turns a cart into one ``CheckoutRequest`` and one booking per
item, all sharing the checkout id as ``order_id``. Each item's price,
currency and the listing's cancellation policy are captured at this point;
later listing edits do not change what the guest pays or the refund terms.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal

from app.core.exceptions import BadRequestError, ListingNotAvailable
from app.domain.booking_state import BookingStatus, PaymentStatus
from app.domain.fees import apply_guest_fee, host_earnings_from_guest_total, service_type_for_item
from app.domain.money import convert_amount, round_to_currency_precision
from app.models.booking import Booking, CheckoutRequest
from app.repositories.base import Listing, Storage
from app.services.audit_service import audit_service
from app.services.availability_service import AvailabilityItem, check_item

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutItem:
    item_type: str
    reference_id: uuid.UUID
    check_in: date | None = None
    check_out: date | None = None
    quantity: int = 1


@dataclass
class CheckoutResult:
    order_id: uuid.UUID
    booking_ids: list[uuid.UUID]
    total_amount: Decimal
    currency: str
    items: list[dict] = field(default_factory=list)


def _base_price(item: CheckoutItem, listing: Listing) -> Decimal:
    """Host price for an item before platform fees."""
    if item.item_type == "property":
        return Decimal(listing.price_per_night) * (item.check_out - item.check_in).days
    if item.item_type == "tour":
        return Decimal(listing.price_per_person) * item.quantity
    if item.item_type == "tour_package":
        return Decimal(listing.price_per_adult) * item.quantity
    days = (item.check_out - item.check_in).days if item.check_in and item.check_out else item.quantity
    return Decimal(listing.price_per_day) * max(days, 1)


def _policy_of(listing: Listing) -> str | None:
    return getattr(listing, "cancellation_policy", None) or getattr(listing, "cancellation_policy_type", None)


class CheckoutService:
    """Creates checkout requests and their bookings."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def create_checkout(
        self,
        name: str,
        email: str,
        items: list[CheckoutItem],
        phone: str | None = None,
        payment_method: str | None = None,
        user_id: uuid.UUID | None = None,
    ) -> CheckoutResult:
        """Validate availability and create the order in one transaction.

        Raises:
            BadRequestError: Empty cart or a currency that cannot be converted
            ListingNotAvailable: Any item is unavailable
        """
        if not items:
            raise BadRequestError("Checkout needs at least one item")

        order_id = uuid.uuid4()
        now = datetime.now(UTC)

        async with self.storage.session() as session:
            priced = []
            for item in items:
                available, reason = await check_item(
                    session,
                    AvailabilityItem(item.item_type, item.reference_id, item.check_in, item.check_out),
                )
                if not available:
                    raise ListingNotAvailable(f"{item.item_type} {item.reference_id}: {reason}")

                listing = await session.get_listing(item.item_type, item.reference_id)
                service_type = service_type_for_item(item.item_type)
                fee = apply_guest_fee(_base_price(item, listing), service_type)
                split = host_earnings_from_guest_total(fee.total, service_type)
                host_net = round_to_currency_precision(split["host_net_earnings"], listing.currency)
                total = round_to_currency_precision(fee.total, listing.currency)
                priced.append((item, listing, fee, total, host_net))

            currency = priced[0][1].currency
            if any(listing.currency != currency for _, listing, _, _, _ in priced):
                logger.warning(f"Checkout {order_id} mixes listing currencies; totalling in {currency}")

            order_total = Decimal("0")
            for _, listing, _, total, _ in priced:
                converted = convert_amount(total, listing.currency, currency)
                if converted is None:
                    raise BadRequestError(f"Cannot convert {listing.currency} to {currency}")
                order_total += converted

            snapshot = [
                {
                    "item_type": item.item_type,
                    "reference_id": str(item.reference_id),
                    "check_in": item.check_in.isoformat() if item.check_in else None,
                    "check_out": item.check_out.isoformat() if item.check_out else None,
                    "quantity": item.quantity,
                    "base_price": str(fee.base_price),
                    "guest_fee": str(fee.fee),
                    "price": str(total),
                    "host_earnings": str(host_net),
                    "currency": listing.currency,
                    "cancellation_policy": _policy_of(listing),
                }
                for item, listing, fee, total, host_net in priced
            ]

            checkout = CheckoutRequest(
                id=order_id,
                user_id=user_id,
                name=name,
                email=email,
                phone=phone,
                payment_method=payment_method,
                payment_status=PaymentStatus.PENDING.value,
                total_amount=round_to_currency_precision(order_total, currency),
                currency=currency,
                checkout_metadata={"items": snapshot},
                created_at=now,
                updated_at=now,
            )
            await session.add_checkout(checkout)

            booking_ids = []
            for item, listing, _, total, _ in priced:
                booking = Booking(
                    id=uuid.uuid4(),
                    order_id=order_id,
                    guest_id=user_id,
                    host_id=listing.host_id,
                    booking_type=item.item_type,
                    property_id=item.reference_id if item.item_type == "property" else None,
                    tour_id=item.reference_id if item.item_type in ("tour", "tour_package") else None,
                    transport_id=item.reference_id if item.item_type == "transport" else None,
                    check_in=item.check_in,
                    check_out=item.check_out,
                    total_price=total,
                    currency=listing.currency,
                    status=BookingStatus.PENDING_CONFIRMATION.value,
                    payment_status=PaymentStatus.PENDING.value,
                    payment_method=payment_method,
                    cancellation_policy_type=_policy_of(listing),
                    created_at=now,
                    updated_at=now,
                )
                await session.add_booking(booking)
                booking_ids.append(booking.id)

            await audit_service.log_financial_action(
                session,
                action="checkout_created",
                resource_type="checkout",
                resource_id=order_id,
                new_values={
                    "total_amount": str(checkout.total_amount),
                    "currency": currency,
                    "booking_ids": [str(b) for b in booking_ids],
                },
                channel="api",
            )

        logger.info(f"Checkout {order_id} created with {len(booking_ids)} booking(s)")
        return CheckoutResult(
            order_id=order_id,
            booking_ids=booking_ids,
            total_amount=checkout.total_amount,
            currency=currency,
            items=snapshot,
        )
