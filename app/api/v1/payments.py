"""Mobile money payment endpoints: provider callback, status check and deposit initiation."""

import json
import logging
from typing import Annotated
from uuid import UUID

import pydantic
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_reconciliation_engine
from app.core.exceptions import ExternalServiceError
from app.domain.payment_state import TransitionDecision
from app.gateways.base import ProviderUnavailable
from app.schemas.payment import (
    CallbackResponse,
    DepositCallback,
    DepositCreate,
    DepositResponse,
    PaymentStatusResponse,
)
from app.services.reconciliation_service import ReconciliationEngine, ReconciliationOutcome

logger = logging.getLogger(__name__)

router = APIRouter()

EngineDep = Annotated[ReconciliationEngine, Depends(get_reconciliation_engine)]


def _callback_response(outcome: ReconciliationOutcome) -> CallbackResponse:
    return CallbackResponse(
        success=True,
        booking_id=outcome.booking_id,
        order_id=outcome.order_id,
        booking_ids=outcome.booking_ids,
        status=outcome.booking_status,
        payment_status=outcome.payment_status,
        outcome=outcome.decision.value,
        conflict=outcome.decision == TransitionDecision.CONFLICT,
    )


@router.post("/payment-callback", response_model=CallbackResponse, response_model_by_alias=True)
async def payment_callback(request: Request, engine: EngineDep) -> CallbackResponse:
    """Receive a deposit status callback from the provider.

    Duplicate and out-of-order callbacks are acknowledged with 200 so the
    provider stops retrying; only the first terminal status is applied.
    """
    body = await request.body()
    try:
        callback = DepositCallback.model_validate(json.loads(body or b"null"))
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")
    except pydantic.ValidationError as e:
        missing_id = any(err["loc"] and err["loc"][0] == "depositId" for err in e.errors())
        detail = "Missing depositId" if missing_id else "Invalid callback payload"
        logger.warning(f"Rejected payment callback: {detail}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    logger.info(f"Payment callback for deposit {callback.deposit_id}: {callback.status.value}")

    try:
        outcome = await engine.handle_callback(callback)
    except SQLAlchemyError as e:
        logger.error(f"Failed to persist callback for deposit {callback.deposit_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record payment status",
        )

    return _callback_response(outcome)


@router.get("/payment-status", response_model=PaymentStatusResponse, response_model_by_alias=True)
async def payment_status(
    engine: EngineDep,
    deposit_id: Annotated[str, Query(alias="depositId", min_length=1)],
    order_id: Annotated[UUID | None, Query(alias="orderId")] = None,
    booking_id: Annotated[UUID | None, Query(alias="bookingId")] = None,
) -> PaymentStatusResponse:
    """Check a deposit with the provider and apply whatever it reports."""
    try:
        polled = await engine.poll_deposit(deposit_id, order_id=order_id, booking_id=booking_id)
    except ProviderUnavailable as e:
        raise ExternalServiceError("PawaPay", str(e))

    if polled is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deposit not found")

    outcome, deposit_data = polled
    return PaymentStatusResponse(
        success=True,
        deposit_id=deposit_id,
        pawapay_status=outcome.status.value,
        booking_status=outcome.booking_status,
        payment_status=outcome.payment_status,
        failure_message=outcome.failure_message,
        outcome=outcome.decision.value,
        deposit_data=deposit_data,
    )


@router.post("/deposits", response_model=DepositResponse, response_model_by_alias=True)
async def create_deposit(payload: DepositCreate, engine: EngineDep) -> DepositResponse:
    """Start a mobile money payment for a booking or an order."""
    try:
        initiation = await engine.initiate_deposit(
            phone_number=payload.phone_number,
            payment_method=payload.payment_method,
            booking_id=payload.booking_id,
            order_id=payload.order_id,
        )
    except ProviderUnavailable as e:
        raise ExternalServiceError("PawaPay", str(e))

    message = (
        "Approve the payment on your phone"
        if initiation.accepted
        else initiation.failure_message or "Payment was rejected"
    )
    return DepositResponse(
        success=initiation.accepted,
        deposit_id=initiation.deposit_id,
        status=initiation.status,
        message=message,
        data={
            "amount": str(initiation.amount),
            "currency": initiation.currency,
            "failureMessage": initiation.failure_message,
        },
    )
