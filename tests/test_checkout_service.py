from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.exceptions import BadRequestError, ListingNotAvailable
from app.services.checkout_service import CheckoutItem, CheckoutService
from tests.conftest import TODAY, make_booking, make_property, make_tour, make_vehicle

CHECK_IN = TODAY + timedelta(days=10)
CHECK_OUT = TODAY + timedelta(days=12)


@pytest.fixture
def service(storage):
    return CheckoutService(storage)


async def test_checkout_creates_order_with_priced_bookings(service, storage):
    prop = make_property(price_per_night=Decimal("50000"), cancellation_policy="strict")
    car = make_vehicle(price_per_day=Decimal("60000"))
    storage.seed(prop, car)

    result = await service.create_checkout(
        "Aline Uwase",
        "aline@example.com",
        [
            CheckoutItem("property", prop.id, CHECK_IN, CHECK_OUT),
            CheckoutItem("transport", car.id, CHECK_IN, CHECK_OUT),
        ],
        payment_method="mtn_momo",
    )

    assert result.currency == "RWF"
    # 2 nights at 50,000 plus 7% guest fee; vehicle 2 days, no fee
    assert result.total_amount == Decimal("227000")
    assert storage.checkouts[result.order_id].total_amount == Decimal("227000")
    bookings = [storage.bookings[i] for i in result.booking_ids]
    assert [b.total_price for b in bookings] == [Decimal("107000"), Decimal("120000")]
    assert all(b.order_id == result.order_id for b in bookings)
    assert all((b.status, b.payment_status) == ("pending_confirmation", "pending") for b in bookings)
    assert bookings[0].cancellation_policy_type == "strict"
    assert bookings[0].host_id == prop.host_id
    assert result.items[0]["host_earnings"] == "97000"


async def test_mixed_currency_checkout_totals_in_first_currency(service, storage):
    prop = make_property(price_per_night=Decimal("50000"))
    tour = make_tour(price_per_person=Decimal("100"), currency="USD")
    storage.seed(prop, tour)

    result = await service.create_checkout(
        "Aline", "aline@example.com",
        [CheckoutItem("property", prop.id, CHECK_IN, CHECK_OUT), CheckoutItem("tour", tour.id, quantity=2)],
    )

    assert result.total_amount == Decimal("107000") + Decimal("296000")
    tour_booking = storage.bookings[result.booking_ids[1]]
    assert (tour_booking.total_price, tour_booking.currency) == (Decimal("200.00"), "USD")


async def test_unavailable_item_aborts_whole_checkout(service, storage):
    prop = make_property()
    storage.seed(prop, make_booking(property_id=prop.id, check_in=CHECK_IN, check_out=CHECK_OUT, status="confirmed"))
    before = dict(storage.bookings)

    with pytest.raises(ListingNotAvailable):
        await service.create_checkout("Aline", "aline@example.com", [CheckoutItem("property", prop.id, CHECK_IN, CHECK_OUT)])

    assert storage.bookings == before
    assert storage.checkouts == {}


async def test_empty_cart_is_rejected(service):
    with pytest.raises(BadRequestError):
        await service.create_checkout("Aline", "aline@example.com", [])
