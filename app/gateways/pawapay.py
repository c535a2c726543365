"""PawaPay mobile money gateway adapter.

PawaPay integration for the Rwanda market (MTN MoMo, Airtel Money).
Documentation: https://docs.pawapay.io
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

import httpx

from app.config import settings
from app.domain.money import round_to_currency_precision
from app.gateways.base import (
    DepositResult,
    GatewayType,
    MobileMoneyGateway,
    PayoutResult,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)

# Local payment method -> PawaPay correspondent
CORRESPONDENTS = {
    "mtn_momo": "MTN_MOMO_RWA",
    "airtel_money": "AIRTEL_RWA",
}

PAYOUT_CORRESPONDENTS = {
    "MTN": "MTN_MOMO_RWA",
    "AIRTEL": "AIRTEL_RWA",
}

# Smallest payout each correspondent accepts, in RWF
PAYOUT_MINIMUMS = {
    "MTN": Decimal("101"),
    "AIRTEL": Decimal("101"),
}


def correspondent_for(payment_method: str) -> str:
    try:
        return CORRESPONDENTS[payment_method]
    except KeyError:
        raise ValueError(f"Unsupported payment method: {payment_method}") from None


def payout_correspondent_for(provider: str) -> str:
    try:
        return PAYOUT_CORRESPONDENTS[provider.upper()]
    except KeyError:
        raise ValueError(f"Unsupported payout provider: {provider}") from None


def normalize_msisdn(phone_number: str, country_code: str | None = None) -> str:
    """International MSISDN without '+', e.g. '0788 123-456' -> '250788123456'."""
    prefix = country_code or settings.pawapay_country_code
    digits = "".join(ch for ch in phone_number if ch.isdigit())
    if digits.startswith(prefix):
        return digits
    if digits.startswith("0"):
        digits = digits[1:]
    return prefix + digits


def metadata_to_list(metadata: dict[str, str] | None) -> list[dict[str, str]]:
    return [
        {"fieldName": name, "fieldValue": str(value)}
        for name, value in (metadata or {}).items()
        if value is not None
    ]


def metadata_to_dict(metadata: list | dict | None) -> dict[str, str]:
    """Flatten provider metadata (list of fieldName/fieldValue or plain dict)."""
    if not metadata:
        return {}
    if isinstance(metadata, dict):
        return {str(k): str(v) for k, v in metadata.items() if v is not None}

    flat = {}
    for entry in metadata:
        if isinstance(entry, dict) and entry.get("fieldName"):
            flat[entry["fieldName"]] = str(entry.get("fieldValue", ""))
    return flat


def _failure(data: dict) -> tuple[str | None, str | None]:
    """Extract (code, message) from failureReason or rejectionReason blocks."""
    for key, code_key, message_key in (
        ("failureReason", "failureCode", "failureMessage"),
        ("rejectionReason", "rejectionCode", "rejectionMessage"),
    ):
        block = data.get(key)
        if isinstance(block, dict):
            return block.get(code_key), block.get(message_key) or block.get("errorMessage")
    return data.get("errorCode"), data.get("errorMessage") or data.get("message")


class PawaPayGateway(MobileMoneyGateway):
    """PawaPay gateway implementation."""

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.pawapay_base_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.pawapay_token
        self.timeout = timeout or settings.pawapay_timeout_seconds
        self._transport = transport

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.PAWAPAY

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, operation: str, method: str, path: str, payload: dict | None = None):
        """Send one request; returns (status_code, parsed JSON body).

        Raises:
            ProviderUnavailable: Timeout, transport failure, 5xx or non-JSON body
        """
        if not self.api_token:
            raise ProviderUnavailable(operation, "PawaPay API token not configured")

        try:
            async with self._client() as client:
                response = await client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            logger.warning(f"PawaPay {operation} timed out after {self.timeout}s")
            raise ProviderUnavailable(operation, "timeout") from e
        except httpx.HTTPError as e:
            logger.warning(f"PawaPay {operation} transport error: {e}")
            raise ProviderUnavailable(operation, str(e)) from e

        logger.debug(f"PawaPay {operation} response {response.status_code}: {response.text[:1000]}")

        if response.status_code >= 500:
            raise ProviderUnavailable(operation, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailable(operation, f"unparseable response: {response.text[:200]}") from e

        return response.status_code, data

    async def initiate_deposit(
        self,
        deposit_id: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        phone_number: str,
        metadata: dict[str, str] | None = None,
    ) -> DepositResult:
        """Create PawaPay deposit request."""
        payload = {
            "depositId": deposit_id,
            "amount": str(round_to_currency_precision(amount, currency)),
            "currency": currency,
            "correspondent": correspondent_for(payment_method),
            "payer": {
                "type": "MSISDN",
                "address": {"value": normalize_msisdn(phone_number)},
            },
            "customerTimestamp": datetime.now(UTC).isoformat(),
            "statementDescription": settings.pawapay_statement_description[:22],
            "metadata": metadata_to_list(metadata),
        }

        status_code, data = await self._request("initiate_deposit", "POST", "/deposits", payload)
        data = data if isinstance(data, dict) else {}
        status = data.get("status")

        if status_code >= 400 or status in ("REJECTED", "FAILED"):
            code, message = _failure(data)
            logger.info(f"PawaPay rejected deposit {deposit_id}: {code} {message}")
            return DepositResult(
                accepted=False,
                deposit_id=deposit_id,
                status=status or "REJECTED",
                failure_code=code,
                failure_message=message,
                raw_response=data,
            )

        return DepositResult(
            accepted=True,
            deposit_id=deposit_id,
            status=status or "ACCEPTED",
            raw_response=data,
        )

    async def get_deposit(self, deposit_id: str) -> DepositResult:
        """Query PawaPay for a deposit's current status."""
        status_code, data = await self._request("get_deposit", "GET", f"/deposits/{deposit_id}")

        # The deposits endpoint answers with an array
        if isinstance(data, list):
            data = data[0] if data else None

        if status_code == 404 or not data:
            return DepositResult(accepted=False, deposit_id=deposit_id, found=False, raw_response=None)

        if status_code >= 400:
            code, message = _failure(data)
            raise ProviderUnavailable("get_deposit", f"HTTP {status_code}: {code} {message}")

        code, message = _failure(data) if data.get("failureReason") else (None, None)
        amount = data.get("depositedAmount") or data.get("requestedAmount") or data.get("amount")

        return DepositResult(
            accepted=True,
            deposit_id=data.get("depositId", deposit_id),
            status=data.get("status"),
            amount=Decimal(str(amount)) if amount is not None else None,
            currency=data.get("currency"),
            failure_code=code,
            failure_message=message,
            metadata=metadata_to_dict(data.get("metadata")),
            raw_response=data,
        )

    async def initiate_payout(
        self,
        payout_id: str,
        amount: Decimal,
        currency: str,
        provider: str,
        phone_number: str,
        description: str | None = None,
    ) -> PayoutResult:
        """Create PawaPay payout request."""
        payload = {
            "payoutId": payout_id,
            "amount": str(round_to_currency_precision(amount, currency)),
            "currency": currency,
            "correspondent": payout_correspondent_for(provider),
            "recipient": {
                "type": "MSISDN",
                "address": {"value": normalize_msisdn(phone_number)},
            },
            "customerTimestamp": datetime.now(UTC).isoformat(),
            "statementDescription": (description or settings.pawapay_payout_description)[:22],
        }

        status_code, data = await self._request("initiate_payout", "POST", "/payouts", payload)
        data = data if isinstance(data, dict) else {}
        status = data.get("status")

        if status_code >= 400 or status in ("REJECTED", "FAILED"):
            code, message = _failure(data)
            logger.info(f"PawaPay rejected payout {payout_id}: {code} {message}")
            return PayoutResult(
                accepted=False,
                payout_id=payout_id,
                status=status or "REJECTED",
                failure_code=code,
                failure_message=message or "Payout failed",
                raw_response=data,
            )

        return PayoutResult(
            accepted=True,
            payout_id=payout_id,
            status=status or "ACCEPTED",
            raw_response=data,
        )

    async def get_payout(self, payout_id: str) -> PayoutResult:
        """Query PawaPay for a payout's current status."""
        status_code, data = await self._request("get_payout", "GET", f"/payouts/{payout_id}")

        if isinstance(data, list):
            data = data[0] if data else None

        if status_code == 404 or not data:
            return PayoutResult(accepted=False, payout_id=payout_id, found=False)

        if status_code >= 400:
            code, message = _failure(data)
            raise ProviderUnavailable("get_payout", f"HTTP {status_code}: {code} {message}")

        code, message = _failure(data) if data.get("failureReason") else (None, None)
        return PayoutResult(
            accepted=True,
            payout_id=data.get("payoutId", payout_id),
            status=data.get("status"),
            failure_code=code,
            failure_message=message,
            raw_response=data,
        )
