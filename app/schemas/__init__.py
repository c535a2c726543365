"""Pydantic schemas for API validation."""

from app.schemas.booking import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    CancelRequest,
    CancelResponse,
    CheckoutCreate,
    CheckoutResponse,
    ConfirmationResponse,
    RefundInfoResponse,
)
from app.schemas.payment import (
    CallbackResponse,
    DepositCallback,
    DepositCreate,
    DepositResponse,
    PaymentStatusResponse,
    PayoutCreate,
    PayoutResponse,
)

__all__ = [
    # Booking
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "CancelRequest",
    "CancelResponse",
    "CheckoutCreate",
    "CheckoutResponse",
    "ConfirmationResponse",
    "RefundInfoResponse",
    # Payment
    "CallbackResponse",
    "DepositCallback",
    "DepositCreate",
    "DepositResponse",
    "PaymentStatusResponse",
    "PayoutCreate",
    "PayoutResponse",
]
