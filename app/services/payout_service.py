"""Host payouts over mobile money.

A payout row moves pending -> processing -> completed | failed. The
provider payout id is stored before the provider is called, so retrying
after a timeout sends the same id again and the provider can deduplicate
instead of paying twice.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

from app.core.exceptions import NotFoundError
from app.domain.money import format_money, round_to_currency_precision, to_decimal
from app.domain.payout_state import (
    TERMINAL_PAYOUT_STATUSES,
    PayoutStatus,
    assert_payout_transition,
    map_provider_status,
)
from app.gateways.base import MobileMoneyGateway, PayoutResult
from app.gateways.pawapay import PAYOUT_CORRESPONDENTS, PAYOUT_MINIMUMS
from app.models.payment import HostPayout
from app.repositories.base import Storage
from app.services.audit_service import audit_service

logger = logging.getLogger(__name__)


@dataclass
class PayoutInitiation:
    """Outcome of a payout request or refresh."""

    success: bool
    payout_id: uuid.UUID
    status: str
    provider_payout_id: str | None = None
    provider_status: str | None = None
    error: str | None = None

    @classmethod
    def from_row(cls, payout: HostPayout) -> "PayoutInitiation":
        failed = payout.status == PayoutStatus.FAILED.value
        return cls(
            success=not failed,
            payout_id=payout.id,
            status=payout.status,
            provider_payout_id=payout.provider_payout_id,
            provider_status=payout.provider_status,
            error=payout.failure_reason if failed else None,
        )


class PayoutProcessor:
    """Sends host payouts and tracks them to a terminal status."""

    def __init__(self, storage: Storage, gateway: MobileMoneyGateway):
        self.storage = storage
        self.gateway = gateway

    def _validate(
        self,
        amount: Decimal | None,
        phone_number: str | None,
        provider: str,
        currency: str,
    ) -> str | None:
        """Error message for an invalid request, None when it may be sent."""
        if amount is None or to_decimal(amount) <= 0 or not phone_number or not phone_number.strip():
            return "Missing required fields: payoutId, amount, phoneNumber"
        if provider not in PAYOUT_CORRESPONDENTS:
            return f"Unsupported payout provider: {provider}"
        minimum = PAYOUT_MINIMUMS.get(provider)
        if currency == "RWF" and minimum is not None and to_decimal(amount) < minimum:
            return f"Minimum payout amount is {format_money(minimum, currency)}"
        return None

    async def initiate_payout(
        self,
        payout_id: uuid.UUID,
        amount: Decimal | None,
        phone_number: str | None,
        provider: str = "MTN",
        currency: str = "RWF",
        description: str | None = None,
    ) -> PayoutInitiation:
        """Send a pending payout to the host's wallet.

        Args:
            payout_id: Local host payout id
            amount: Amount in major units, must match the payout row
            phone_number: Recipient MSISDN
            provider: MTN or AIRTEL
            currency: Payout currency
            description: Statement text shown to the recipient

        Returns:
            PayoutInitiation; ``success`` False for invalid requests and
            provider rejections

        Raises:
            NotFoundError: Unknown payout
            ProviderUnavailable: Provider unreachable; the payout stays
                pending with its provider id and can be retried safely
        """
        provider = (provider or "MTN").upper()
        currency = currency.upper()

        error = self._validate(amount, phone_number, provider, currency)
        if error:
            logger.info(f"Payout {payout_id} rejected before sending: {error}")
            return PayoutInitiation(False, payout_id, PayoutStatus.PENDING.value, error=error)

        amount = round_to_currency_precision(amount, currency)

        async with self.storage.session() as session:
            payout = await session.get_payout(payout_id, lock=True)
            if payout is None:
                raise NotFoundError("Payout", str(payout_id))

            if payout.status != PayoutStatus.PENDING.value:
                logger.info(f"Payout {payout_id} is already {payout.status}; not sending again")
                return PayoutInitiation.from_row(payout)

            if round_to_currency_precision(payout.amount, payout.currency) != amount or payout.currency != currency:
                return PayoutInitiation(
                    False,
                    payout_id,
                    payout.status,
                    error=f"Amount does not match payout record ({format_money(payout.amount, payout.currency)})",
                )

            if payout.provider_payout_id is None:
                payout.provider_payout_id = str(uuid.uuid4())
            else:
                logger.info(f"Retrying payout {payout_id} with provider id {payout.provider_payout_id}")
            payout.phone_number = phone_number
            payout.provider = provider
            payout.updated_at = datetime.now(UTC)
            provider_payout_id = payout.provider_payout_id

        result = await self.gateway.initiate_payout(
            payout_id=provider_payout_id,
            amount=amount,
            currency=currency,
            provider=provider,
            phone_number=phone_number,
            description=description,
        )
        return await self._apply_result(payout_id, result, channel="api")

    async def refresh_payout(self, payout_id: uuid.UUID) -> PayoutInitiation:
        """Poll the provider for a payout that is still in flight."""
        async with self.storage.session() as session:
            payout = await session.get_payout(payout_id)
            if payout is None:
                raise NotFoundError("Payout", str(payout_id))
            if payout.status in TERMINAL_PAYOUT_STATUSES or payout.provider_payout_id is None:
                return PayoutInitiation.from_row(payout)
            provider_payout_id = payout.provider_payout_id

        result = await self.gateway.get_payout(provider_payout_id)
        if not result.found:
            logger.warning(f"Provider has no payout {provider_payout_id} for payout {payout_id}")
            async with self.storage.session() as session:
                return PayoutInitiation.from_row(await session.get_payout(payout_id))

        return await self._apply_result(payout_id, result, channel="status_check")

    async def _apply_result(self, payout_id: uuid.UUID, result: PayoutResult, channel: str) -> PayoutInitiation:
        async with self.storage.session() as session:
            payout = await session.get_payout(payout_id, lock=True)

            if payout.status in TERMINAL_PAYOUT_STATUSES:
                logger.warning(
                    f"Payout {payout_id} already {payout.status}; ignoring provider status {result.status}"
                )
                return PayoutInitiation.from_row(payout)

            target = PayoutStatus.FAILED if not result.accepted else map_provider_status(result.status)
            old_status = payout.status
            now = datetime.now(UTC)

            if target.value != old_status:
                assert_payout_transition(old_status, target.value)
                payout.status = target.value
            payout.provider_status = result.status
            payout.provider_response = result.raw_response
            payout.updated_at = now

            if target == PayoutStatus.FAILED:
                payout.failure_reason = result.failure_message or "Payout failed"
                payout.admin_notes = payout.failure_reason
            else:
                payout.admin_notes = f"PawaPay Status: {result.status}"
            if target in TERMINAL_PAYOUT_STATUSES:
                payout.processed_at = now

            if target.value != old_status:
                await audit_service.log_payout_action(
                    session,
                    action="payout_initiated" if channel == "api" else "payout_status_applied",
                    payout_id=payout.id,
                    old_status=old_status,
                    new_status=target.value,
                    provider_status=result.status,
                    channel=channel,
                )

            logger.info(f"Payout {payout_id} {old_status} -> {target.value} (provider {result.status})")
            return PayoutInitiation.from_row(payout)
