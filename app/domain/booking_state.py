"""Booking state machine."""

from enum import Enum

from app.core.exceptions import InvalidBookingStatus


class BookingStatus(str, Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    """Booking-level payment status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    AWAITING_CALLBACK = "awaiting_callback"


BOOKING_TRANSITIONS = {
    BookingStatus.PENDING_CONFIRMATION: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# Bookings in these states hold the listing's dates
BLOCKING_STATUSES = frozenset(
    {BookingStatus.CONFIRMED.value, BookingStatus.PENDING_CONFIRMATION.value, "pending"}
)

CANCELLABLE_STATUSES = frozenset(
    {BookingStatus.CONFIRMED.value, BookingStatus.PENDING_CONFIRMATION.value}
)


def assert_booking_transition(current: str, target: str) -> None:
    allowed = BOOKING_TRANSITIONS.get(BookingStatus(current), set())
    if BookingStatus(target) not in allowed:
        raise InvalidBookingStatus(
            f"Invalid booking transition: {current} → {target}"
        )
