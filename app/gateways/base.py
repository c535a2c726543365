"""Base mobile money gateway interface.

All gateway adapters must implement this interface.
Business logic should NOT live in adapters - only gateway communication.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways."""

    PAWAPAY = "pawapay"


class ProviderUnavailable(Exception):
    """The provider could not be reached or answered with garbage.

    Transient: callers must leave local state untouched and retry later.
    """

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation}: {detail}")


@dataclass
class DepositResult:
    """Result of a deposit request or status check."""

    accepted: bool
    deposit_id: str
    status: str | None = None
    found: bool = True
    amount: Decimal | None = None
    currency: str | None = None
    failure_code: str | None = None
    failure_message: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict | None = None


@dataclass
class PayoutResult:
    """Result of a payout request or status check."""

    accepted: bool
    payout_id: str
    status: str | None = None
    found: bool = True
    failure_code: str | None = None
    failure_message: str | None = None
    raw_response: dict | None = None


class MobileMoneyGateway(ABC):
    """Abstract base class for mobile money gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
    async def initiate_deposit(
        self,
        deposit_id: str,
        amount: Decimal,
        currency: str,
        payment_method: str,
        phone_number: str,
        metadata: dict[str, str] | None = None,
    ) -> DepositResult:
        """Ask the provider to collect money from a payer's wallet.

        Args:
            deposit_id: Caller-generated UUID, idempotency key at the provider
            amount: Amount in major units of ``currency``
            currency: Currency code (RWF)
            payment_method: Local method name, e.g. ``mtn_momo``
            phone_number: Payer MSISDN in any common format
            metadata: Booking/order references echoed back in callbacks

        Returns:
            DepositResult; ``accepted`` False when the provider rejected it

        Raises:
            ProviderUnavailable: On timeout, transport or parse errors
        """
        pass

    @abstractmethod
    async def get_deposit(self, deposit_id: str) -> DepositResult:
        """Fetch the provider's current view of a deposit.

        Returns:
            DepositResult with ``found`` False when the provider has no record

        Raises:
            ProviderUnavailable: On timeout, transport or parse errors
        """
        pass

    @abstractmethod
    async def initiate_payout(
        self,
        payout_id: str,
        amount: Decimal,
        currency: str,
        provider: str,
        phone_number: str,
        description: str | None = None,
    ) -> PayoutResult:
        """Send money to a recipient's wallet.

        Raises:
            ProviderUnavailable: On timeout, transport or parse errors
        """
        pass

    @abstractmethod
    async def get_payout(self, payout_id: str) -> PayoutResult:
        """Fetch the provider's current view of a payout."""
        pass
