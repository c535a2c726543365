"""Booking endpoints: availability, auto-confirmation, cancellation and refunds."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_availability_checker, get_booking_service, get_refund_calculator
from app.domain.booking_state import BookingStatus
from app.domain.cancellation_policy import get_policy_description
from app.schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    AvailabilityResultSchema,
    CancelRequest,
    CancelResponse,
    ConfirmationResponse,
    RefundInfoResponse,
    RefundSchema,
)
from app.services.availability_service import AvailabilityChecker, AvailabilityItem
from app.services.booking_service import BookingService
from app.services.refund_service import BULK_POLICY_TYPE, RefundCalculator

router = APIRouter()


@router.post("/availability/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    payload: AvailabilityCheckRequest,
    checker: Annotated[AvailabilityChecker, Depends(get_availability_checker)],
) -> AvailabilityCheckResponse:
    """Check whether every cart item can still be booked."""
    results = await checker.check_availability(
        [
            AvailabilityItem(item.item_type, item.reference_id, item.check_in, item.check_out)
            for item in payload.items
        ]
    )
    return AvailabilityCheckResponse(
        all_available=all(r.available for r in results),
        items=[AvailabilityResultSchema(**asdict(r)) for r in results],
    )


@router.post("/bookings/{booking_id}/auto-confirm", response_model=ConfirmationResponse)
async def auto_confirm_booking(
    booking_id: UUID,
    checker: Annotated[AvailabilityChecker, Depends(get_availability_checker)],
) -> ConfirmationResponse:
    result = await checker.auto_confirm_booking(booking_id)
    return ConfirmationResponse(success=result.success, message=result.message)


@router.post("/bookings/{booking_id}/cancel", response_model=CancelResponse)
async def cancel_booking(
    booking_id: UUID,
    payload: CancelRequest,
    service: Annotated[BookingService, Depends(get_booking_service)],
) -> CancelResponse:
    """Cancel a booking and report the refund owed, if any."""
    refund = await service.cancel_booking(booking_id, payload.cancelled_by, payload.reason)
    return CancelResponse(
        booking_id=booking_id,
        status=BookingStatus.CANCELLED.value,
        refund=RefundSchema(**asdict(refund)) if refund else None,
    )


@router.get("/bookings/{booking_id}/refund", response_model=RefundInfoResponse)
async def get_refund_info(
    booking_id: UUID,
    calculator: Annotated[RefundCalculator, Depends(get_refund_calculator)],
    order_id: Annotated[UUID | None, Query(alias="orderId")] = None,
) -> RefundInfoResponse:
    """Refund owed for a cancelled booking, or for its whole order when orderId is given."""
    refund = await calculator.get_refund_info(booking_id, order_id=order_id)
    if refund is None:
        return RefundInfoResponse(eligible=False)

    description = None if refund.policy_type == BULK_POLICY_TYPE else get_policy_description(refund.policy_type)
    return RefundInfoResponse(
        eligible=True,
        refund=RefundSchema(**asdict(refund)),
        policy_description=description,
    )
