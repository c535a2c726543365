"""Platform fee schedule.

CRITICAL BUSINESS LOGIC:
- Accommodation: guest pays +7% on top of the host's price, host gives up 3%
- Tours (incl. packages): guest pays no fee, provider gives up 10%
- Transport: no platform fee on either side
- Fee helpers never mutate the base price; receipts need gross and net
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.domain.money import to_decimal


class ServiceType(str, Enum):
    """Fee schedule keys."""

    ACCOMMODATION = "accommodation"
    TOUR = "tour"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class FeeSchedule:
    guest_fee_percent: Decimal
    provider_fee_percent: Decimal


PLATFORM_FEES: dict[ServiceType, FeeSchedule] = {
    ServiceType.ACCOMMODATION: FeeSchedule(Decimal("7"), Decimal("3")),
    ServiceType.TOUR: FeeSchedule(Decimal("0"), Decimal("10")),
    ServiceType.TRANSPORT: FeeSchedule(Decimal("0"), Decimal("0")),
}

# Booking/listing item types mapped onto the fee schedule
ITEM_TYPE_SERVICE: dict[str, ServiceType] = {
    "property": ServiceType.ACCOMMODATION,
    "tour": ServiceType.TOUR,
    "tour_package": ServiceType.TOUR,
    "transport": ServiceType.TRANSPORT,
}


@dataclass(frozen=True)
class GuestFee:
    """What the guest is charged for an item."""

    base_price: Decimal
    fee: Decimal
    total: Decimal
    fee_percent: Decimal


@dataclass(frozen=True)
class ProviderFee:
    """What the host/provider keeps from an item."""

    gross: Decimal
    fee: Decimal
    net: Decimal
    fee_percent: Decimal


def _schedule(service_type: str | ServiceType) -> FeeSchedule:
    if isinstance(service_type, str):
        service_type = ServiceType(service_type)
    return PLATFORM_FEES[service_type]


def service_type_for_item(item_type: str) -> ServiceType:
    """Fee schedule key for a booking item type (property, tour, ...)."""
    try:
        return ITEM_TYPE_SERVICE[item_type]
    except KeyError:
        raise ValueError(f"Unknown item type: {item_type}") from None


def apply_guest_fee(base_price: Decimal | int | float | str, service_type: str | ServiceType) -> GuestFee:
    """Add the guest-side platform fee to a base price.

    Args:
        base_price: Price set by the host/provider
        service_type: accommodation, tour or transport

    Returns:
        GuestFee with base price, fee and guest total
    """
    base = to_decimal(base_price)
    percent = _schedule(service_type).guest_fee_percent
    fee = base * percent / Decimal("100")
    return GuestFee(base_price=base, fee=fee, total=base + fee, fee_percent=percent)


def apply_provider_fee(base_price: Decimal | int | float | str, service_type: str | ServiceType) -> ProviderFee:
    """Deduct the provider-side platform fee from a base price.

    Args:
        base_price: Price set by the host/provider
        service_type: accommodation, tour or transport

    Returns:
        ProviderFee with gross, fee and net earnings
    """
    gross = to_decimal(base_price)
    percent = _schedule(service_type).provider_fee_percent
    fee = gross * percent / Decimal("100")
    return ProviderFee(gross=gross, fee=fee, net=gross - fee, fee_percent=percent)


def extract_base_price(guest_total: Decimal | int | float | str, service_type: str | ServiceType) -> Decimal:
    """Reverse the guest fee: 107 paid for accommodation -> 100 base."""
    percent = _schedule(service_type).guest_fee_percent
    return to_decimal(guest_total) / (Decimal("1") + percent / Decimal("100"))


def host_earnings_from_guest_total(
    guest_total: Decimal | int | float | str,
    service_type: str | ServiceType,
) -> dict[str, Decimal]:
    """Split a guest-paid total into host net and platform take.

    Accommodation, guest paid 107: base 100, guest fee 7, host fee 3,
    host receives 97, platform keeps 10.
    """
    paid = to_decimal(guest_total)
    base = extract_base_price(paid, service_type)
    guest_fee = paid - base
    provider = apply_provider_fee(base, service_type)

    return {
        "guest_paid_total": paid,
        "base_price": base,
        "guest_fee": guest_fee,
        "host_fee": provider.fee,
        "host_net_earnings": provider.net,
        "platform_total_earnings": guest_fee + provider.fee,
    }
