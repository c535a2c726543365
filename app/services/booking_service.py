"""Booking cancellation."""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime

from app.core.exceptions import InvalidBookingStatus, NotFoundError
from app.domain.booking_state import CANCELLABLE_STATUSES, BookingStatus, assert_booking_transition
from app.repositories.base import Storage
from app.services.audit_service import audit_service
from app.services.refund_service import RefundResult, refund_for_booking

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, storage: Storage, today: Callable[[], date] = date.today):
        self.storage = storage
        self.today = today

    async def cancel_booking(
        self,
        booking_id: uuid.UUID,
        cancelled_by: str,
        reason: str | None = None,
    ) -> RefundResult | None:
        """Cancel a pending or confirmed booking.

        Args:
            booking_id: Booking to cancel
            cancelled_by: guest, host or admin
            reason: Free-text reason

        Returns:
            Refund owed under the booking's captured policy (100% when the
            host cancels), or None if nothing was paid

        Raises:
            NotFoundError: Unknown booking
            InvalidBookingStatus: Booking already cancelled or completed
        """
        async with self.storage.session() as session:
            booking = await session.get_booking(booking_id, lock=True)
            if booking is None:
                raise NotFoundError("Booking", str(booking_id))
            if booking.status not in CANCELLABLE_STATUSES:
                raise InvalidBookingStatus(f"Cannot cancel a booking that is {booking.status}")

            old_status = booking.status
            assert_booking_transition(old_status, BookingStatus.CANCELLED.value)
            booking.status = BookingStatus.CANCELLED.value
            booking.cancelled_by = cancelled_by
            booking.cancellation_reason = reason
            booking.cancelled_at = datetime.now(UTC)

            refund = refund_for_booking(booking, self.today(), host_cancelled=cancelled_by == "host")

            await audit_service.log_financial_action(
                session,
                action="booking_cancelled",
                resource_type="booking",
                resource_id=booking.id,
                old_values={"status": old_status},
                new_values={
                    "status": booking.status,
                    "cancelled_by": cancelled_by,
                    "refund_amount": str(refund.refund_amount) if refund else None,
                    "refund_percentage": str(refund.refund_percentage) if refund else None,
                },
                channel="api",
            )

        if refund:
            logger.info(f"Booking {booking_id} cancelled by {cancelled_by}; refund {refund.refund_amount} {refund.currency}")
        else:
            logger.info(f"Booking {booking_id} cancelled by {cancelled_by}; nothing to refund")
        return refund
