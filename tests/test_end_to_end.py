"""Pay for an order, then cancel part of it."""

from decimal import Decimal

from app.services.booking_service import BookingService
from app.services.refund_service import RefundCalculator
from tests.conftest import TODAY
from tests.test_reconciliation_service import callback


async def test_order_paid_then_one_booking_cancelled(engine, storage, notifier, order):
    order_id, (first, second) = order

    await engine.handle_callback(callback("dep-1", "COMPLETED", order_id=order_id))

    assert [(b.status, b.payment_status) for b in (first, second)] == [("confirmed", "paid")] * 2
    assert len(notifier.sent) == 1

    # Five days before check-in under the fair policy
    refund = await BookingService(storage, today=lambda: TODAY).cancel_booking(first.id, "guest", "Change of plans")

    assert refund.refund_amount == Decimal("25000")
    assert refund.refund_percentage == Decimal("50")
    assert (second.status, second.payment_status) == ("confirmed", "paid")

    order_refund = await RefundCalculator(storage, today=lambda: TODAY).get_refund_info(first.id, order_id=order_id)
    assert order_refund.refund_amount == Decimal("25000")

    await engine.handle_callback(callback("dep-1", "COMPLETED", order_id=order_id))

    assert len(notifier.sent) == 1
    assert first.status == "cancelled"
