"""Booking, availability and checkout schemas."""

from datetime import date
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

ItemType = Literal["property", "tour", "tour_package", "transport"]


class AvailabilityItemSchema(BaseModel):
    """One cart item to check."""

    item_type: ItemType
    reference_id: UUID
    check_in: date | None = None
    check_out: date | None = None


class AvailabilityCheckRequest(BaseModel):
    items: list[AvailabilityItemSchema] = Field(..., min_length=1, max_length=50)


class AvailabilityResultSchema(BaseModel):
    item_type: str
    reference_id: UUID
    available: bool
    auto_confirm: bool
    reason: str | None = None


class AvailabilityCheckResponse(BaseModel):
    all_available: bool
    items: list[AvailabilityResultSchema]


class ConfirmationResponse(BaseModel):
    success: bool
    message: str


class CancelRequest(BaseModel):
    """Schema for cancelling a booking."""

    cancelled_by: Literal["guest", "host", "admin"] = "guest"
    reason: str | None = Field(None, max_length=1000)


class RefundSchema(BaseModel):
    refund_amount: Decimal
    refund_percentage: Decimal
    policy_type: str
    description: str
    currency: str


class CancelResponse(BaseModel):
    success: bool = True
    booking_id: UUID
    status: str
    refund: RefundSchema | None = None


class RefundInfoResponse(BaseModel):
    """Refund owed for a booking or its order; ``refund`` is null when none is due."""

    eligible: bool
    refund: RefundSchema | None = None
    policy_description: str | None = None


class CheckoutItemSchema(AvailabilityItemSchema):
    quantity: int = Field(default=1, ge=1, le=50)

    @field_validator("check_out")
    @classmethod
    def validate_checkout(cls, v: date | None, info) -> date | None:
        check_in = info.data.get("check_in")
        if v and check_in and v <= check_in:
            raise ValueError("check_out must be after check_in")
        return v


class CheckoutCreate(BaseModel):
    """Schema for submitting a cart."""

    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(None, max_length=20)
    payment_method: str | None = Field(None, pattern="^(mtn_momo|airtel_money)$")
    user_id: UUID | None = None
    items: list[CheckoutItemSchema] = Field(..., min_length=1, max_length=50)


class CheckoutResponse(BaseModel):
    order_id: UUID
    booking_ids: list[UUID]
    total_amount: Decimal
    currency: str
    items: list[dict]
