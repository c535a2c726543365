"""Payment-related Pydantic schemas.

Payment endpoints speak the provider's camelCase on the wire; fields are
snake_case in Python and aliased.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain.payment_state import DepositStatus
from app.gateways.pawapay import metadata_to_dict


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FailureReason(CamelModel):
    failure_code: str | None = None
    # Callbacks carry the text as errorMessage, status lookups as failureMessage
    failure_message: str | None = Field(
        default=None, validation_alias=AliasChoices("failureMessage", "errorMessage", "failure_message")
    )


class DepositCallback(CamelModel):
    """Deposit status callback as posted by the provider."""

    deposit_id: str = Field(..., min_length=1, max_length=64)
    status: DepositStatus
    amount: Decimal | None = None
    currency: str | None = None
    correspondent: str | None = None
    failure_reason: FailureReason | None = None
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("deposit_id")
    @classmethod
    def strip_deposit_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("depositId must not be blank")
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def flatten_metadata(cls, v: Any) -> dict[str, str]:
        """Accept the provider's fieldName/fieldValue list or a plain object."""
        if v is None:
            return {}
        if not isinstance(v, (list, dict)):
            raise ValueError("metadata must be a list or an object")
        return metadata_to_dict(v)


class CallbackResponse(CamelModel):
    """Acknowledgement returned to the provider."""

    success: bool = True
    booking_id: str | None = None
    order_id: str | None = None
    booking_ids: list[str] = []
    status: str | None = None
    payment_status: str | None = None
    outcome: str
    conflict: bool = False


class PaymentStatusResponse(CamelModel):
    """Result of a status check against the provider."""

    success: bool = True
    deposit_id: str
    pawapay_status: str | None
    booking_status: str | None = None
    payment_status: str | None = None
    failure_message: str | None = None
    outcome: str | None = None
    deposit_data: dict[str, Any] | None = None


class DepositCreate(CamelModel):
    """Start a mobile money payment for a booking or a whole order."""

    booking_id: UUID | None = None
    order_id: UUID | None = None
    phone_number: str = Field(..., min_length=9, max_length=20)
    payment_method: str = Field(..., pattern="^(mtn_momo|airtel_money)$")


class DepositResponse(CamelModel):
    success: bool
    deposit_id: str
    status: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


class PayoutCreate(CamelModel):
    """Send an existing host payout to the host's wallet.

    Field rules (presence, minimum amount, provider) are enforced by the
    payout processor so every caller gets the same 400 response shape.
    """

    payout_id: UUID
    amount: Decimal | None = None
    currency: str = Field(default="RWF", min_length=3, max_length=3)
    phone_number: str | None = None
    provider: str = "MTN"
    description: str | None = Field(default=None, max_length=100)

    @field_validator("provider", mode="before")
    @classmethod
    def upper_provider(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v


class PayoutResponse(CamelModel):
    success: bool
    payout_id: UUID
    pawapay_payout_id: str | None = None
    status: str
    pawapay_status: str | None = None
    message: str | None = None
    error: str | None = None
