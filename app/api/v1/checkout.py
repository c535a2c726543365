"""Checkout endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_checkout_service
from app.schemas.booking import CheckoutCreate, CheckoutResponse
from app.services.checkout_service import CheckoutItem, CheckoutService

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_checkout(
    payload: CheckoutCreate,
    service: Annotated[CheckoutService, Depends(get_checkout_service)],
) -> CheckoutResponse:
    """Create an order with one pending booking per cart item."""
    result = await service.create_checkout(
        name=payload.name,
        email=payload.email,
        items=[
            CheckoutItem(item.item_type, item.reference_id, item.check_in, item.check_out, item.quantity)
            for item in payload.items
        ],
        phone=payload.phone,
        payment_method=payload.payment_method,
        user_id=payload.user_id,
    )
    return CheckoutResponse(
        order_id=result.order_id,
        booking_ids=result.booking_ids,
        total_amount=result.total_amount,
        currency=result.currency,
        items=result.items,
    )
