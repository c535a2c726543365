from decimal import Decimal

import pytest

from app.domain.fees import (
    ServiceType,
    apply_guest_fee,
    apply_provider_fee,
    extract_base_price,
    host_earnings_from_guest_total,
    service_type_for_item,
)


def test_accommodation_fees():
    guest = apply_guest_fee(Decimal("100000"), ServiceType.ACCOMMODATION)
    assert guest.fee == Decimal("7000")
    assert guest.total == Decimal("107000")

    provider = apply_provider_fee(Decimal("100000"), "accommodation")
    assert provider.fee == Decimal("3000")
    assert provider.net == Decimal("97000")


def test_tour_fee_is_charged_to_provider_only():
    assert apply_guest_fee(Decimal("200"), "tour").total == Decimal("200")
    assert apply_provider_fee(Decimal("200"), "tour").net == Decimal("180")


def test_transport_is_fee_free():
    assert apply_guest_fee(Decimal("60000"), "transport").fee == 0
    assert apply_provider_fee(Decimal("60000"), "transport").net == Decimal("60000")


def test_extract_base_price_reverses_guest_fee():
    assert extract_base_price(Decimal("107"), "accommodation") == Decimal("100")


def test_host_earnings_from_guest_total():
    earnings = host_earnings_from_guest_total(Decimal("107000"), "accommodation")
    assert earnings["base_price"] == Decimal("100000")
    assert earnings["guest_fee"] == Decimal("7000")
    assert earnings["host_net_earnings"] == Decimal("97000")
    assert earnings["platform_total_earnings"] == Decimal("10000")


def test_item_types_map_to_service_types():
    assert service_type_for_item("property") == ServiceType.ACCOMMODATION
    assert service_type_for_item("tour_package") == ServiceType.TOUR
    assert service_type_for_item("transport") == ServiceType.TRANSPORT
    with pytest.raises(ValueError):
        service_type_for_item("spa")
