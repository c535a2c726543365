"""Listing availability checks and booking auto-confirmation."""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime

from app.domain.booking_state import BLOCKING_STATUSES, BookingStatus, assert_booking_transition
from app.repositories.base import Storage, StorageSession
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)

ITEM_TYPES = ("property", "tour", "tour_package", "transport")


@dataclass(frozen=True)
class AvailabilityItem:
    item_type: str
    reference_id: uuid.UUID
    check_in: date | None = None
    check_out: date | None = None


@dataclass(frozen=True)
class AvailabilityResult:
    item_type: str
    reference_id: uuid.UUID
    available: bool
    auto_confirm: bool
    reason: str | None = None


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    message: str


async def check_item(
    session: StorageSession,
    item: AvailabilityItem,
    exclude_booking_id: uuid.UUID | None = None,
) -> tuple[bool, str | None]:
    """(available, reason) for one item."""
    if item.item_type not in ITEM_TYPES:
        return False, f"Unknown item type: {item.item_type}"

    listing = await session.get_listing(item.item_type, item.reference_id)
    if listing is None:
        return False, "Listing not found"

    if item.item_type == "tour_package":
        if listing.status != "approved":
            return False, "Tour package is not approved"
        return True, None

    if not listing.is_published:
        return False, "Listing is not published"

    if item.item_type != "property":
        return True, None

    if item.check_in is None or item.check_out is None:
        return False, "Check-in and check-out dates are required"
    if item.check_out <= item.check_in:
        return False, "Check-out must be after check-in"

    overlapping = await session.find_overlapping_bookings(
        item.reference_id,
        item.check_in,
        item.check_out,
        BLOCKING_STATUSES,
        exclude_booking_id=exclude_booking_id,
    )
    if overlapping:
        return False, "Dates are already booked"
    return True, None


class AvailabilityChecker:
    """Read-only availability checks; only auto-confirmation writes."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def check_availability(self, items: list[AvailabilityItem]) -> list[AvailabilityResult]:
        """Check every item; results are in input order.

        A property is available when it exists, is published and no
        confirmed or pending booking overlaps [check_in, check_out).
        Tours and vehicles need only exist and be published; packages must
        be approved. Available items can be auto-confirmed.
        """
        results = []
        async with self.storage.session() as session:
            for item in items:
                available, reason = await check_item(session, item)
                results.append(
                    AvailabilityResult(
                        item_type=item.item_type,
                        reference_id=item.reference_id,
                        available=available,
                        auto_confirm=available,
                        reason=reason,
                    )
                )
        return results

    async def auto_confirm_booking(self, booking_id: uuid.UUID) -> ConfirmationResult:
        """Confirm a pending booking if its listing is still available for it."""
        async with self.storage.session() as session:
            booking = await session.get_booking(booking_id, lock=True)
            if booking is None:
                return ConfirmationResult(False, "Booking not found")

            if booking.status == BookingStatus.CONFIRMED.value:
                return ConfirmationResult(True, "Booking already confirmed")
            if booking.status != BookingStatus.PENDING_CONFIRMATION.value:
                return ConfirmationResult(False, f"Booking is {booking.status}")

            item = AvailabilityItem(
                item_type=booking.booking_type,
                reference_id=booking.listing_id,
                check_in=booking.check_in,
                check_out=booking.check_out,
            )
            available, reason = await check_item(session, item, exclude_booking_id=booking.id)
            if not available:
                logger.info(f"Auto-confirm refused for booking {booking_id}: {reason}")
                return ConfirmationResult(False, reason or "Listing not available")

            assert_booking_transition(booking.status, BookingStatus.CONFIRMED.value)
            booking.status = BookingStatus.CONFIRMED.value
            booking.confirmed_at = datetime.now(UTC)
            await audit_service.log_financial_action(
                session,
                action="booking_confirmed",
                resource_type="booking",
                resource_id=booking.id,
                old_values={"status": BookingStatus.PENDING_CONFIRMATION.value},
                new_values={"status": BookingStatus.CONFIRMED.value},
                channel="api",
            )

        logger.info(f"Booking {booking_id} auto-confirmed")
        return ConfirmationResult(True, "Booking confirmed")
