"""Host payout endpoints."""

import json
import logging
from typing import Annotated
from uuid import UUID

import pydantic
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import get_payout_processor
from app.config import settings
from app.core.exceptions import ExternalServiceError
from app.gateways.base import ProviderUnavailable
from app.schemas.payment import PayoutCreate, PayoutResponse
from app.services.payout_service import PayoutInitiation, PayoutProcessor

logger = logging.getLogger(__name__)

router = APIRouter()

ProcessorDep = Annotated[PayoutProcessor, Depends(get_payout_processor)]

REQUIRED_FIELDS = ("payoutId", "amount", "phoneNumber")


def _rejected(error: str, provider_status: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": error, "pawapayStatus": provider_status},
    )


def _payout_response(result: PayoutInitiation, message: str | None = None) -> PayoutResponse | JSONResponse:
    if not result.success:
        return _rejected(result.error or "Payout failed", result.provider_status)
    return PayoutResponse(
        success=True,
        payout_id=result.payout_id,
        pawapay_payout_id=result.provider_payout_id,
        status=result.status,
        pawapay_status=result.provider_status,
        message=message,
    )


@router.post("/payout", response_model=PayoutResponse, response_model_by_alias=True)
async def create_payout(request: Request, processor: ProcessorDep):
    """Send a pending host payout to the host's mobile money wallet.

    The body is validated here rather than by FastAPI so that every rejected
    request gets the same 400 shape as a provider rejection.
    """
    body = await request.body()
    try:
        data = json.loads(body or b"null")
    except json.JSONDecodeError:
        return _rejected("Invalid JSON payload")

    if not isinstance(data, dict) or any(data.get(field) in (None, "") for field in REQUIRED_FIELDS):
        return _rejected("Missing required fields: payoutId, amount, phoneNumber")

    try:
        payload = PayoutCreate.model_validate(data)
    except pydantic.ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        logger.info(f"Rejected payout request: invalid {fields}")
        return _rejected(f"Invalid payout request: {fields}")

    try:
        result = await processor.initiate_payout(
            payout_id=payload.payout_id,
            amount=payload.amount,
            phone_number=payload.phone_number,
            provider=payload.provider,
            currency=payload.currency,
            description=payload.description or settings.pawapay_payout_description,
        )
    except ProviderUnavailable as e:
        raise ExternalServiceError("PawaPay", str(e))

    return _payout_response(result, message="Payout submitted")


@router.get("/payout-status", response_model=PayoutResponse, response_model_by_alias=True)
async def payout_status(
    processor: ProcessorDep,
    payout_id: Annotated[UUID, Query(alias="payoutId")],
):
    """Refresh an in-flight payout from the provider."""
    try:
        result = await processor.refresh_payout(payout_id)
    except ProviderUnavailable as e:
        raise ExternalServiceError("PawaPay", str(e))

    return _payout_response(result)
