from datetime import date, timedelta

import pytest

from app.services.availability_service import AvailabilityChecker, AvailabilityItem
from tests.conftest import TODAY, make_booking, make_package, make_property, make_tour

CHECK_IN = TODAY + timedelta(days=10)
CHECK_OUT = TODAY + timedelta(days=13)


@pytest.fixture
def checker(storage):
    return AvailabilityChecker(storage)


@pytest.fixture
def listing(storage):
    prop = make_property()
    storage.seed(prop)
    return prop


def stay(prop, check_in=CHECK_IN, check_out=CHECK_OUT):
    return AvailabilityItem("property", prop.id, check_in, check_out)


async def test_free_property_is_available(checker, listing):
    (result,) = await checker.check_availability([stay(listing)])
    assert result.available and result.auto_confirm


@pytest.mark.parametrize(
    ("status", "available"),
    [("confirmed", False), ("pending_confirmation", False), ("cancelled", True), ("completed", True)],
)
async def test_only_active_bookings_block_dates(checker, storage, listing, status, available):
    storage.seed(make_booking(property_id=listing.id, check_in=CHECK_IN, check_out=CHECK_OUT, status=status))
    (result,) = await checker.check_availability([stay(listing)])
    assert result.available is available


async def test_back_to_back_stays_do_not_overlap(checker, storage, listing):
    storage.seed(
        make_booking(
            property_id=listing.id, check_in=CHECK_IN - timedelta(days=3), check_out=CHECK_IN, status="confirmed"
        )
    )
    (result,) = await checker.check_availability([stay(listing)])
    assert result.available


async def test_partial_overlap_blocks(checker, storage, listing):
    storage.seed(
        make_booking(
            property_id=listing.id, check_in=CHECK_OUT - timedelta(days=1), check_out=CHECK_OUT + timedelta(days=2),
            status="confirmed",
        )
    )
    (result,) = await checker.check_availability([stay(listing)])
    assert not result.available
    assert result.reason == "Dates are already booked"


async def test_unpublished_unknown_and_invalid_items(checker, storage):
    hidden = make_property(is_published=False)
    draft = make_package(status="pending")
    tour = make_tour()
    storage.seed(hidden, draft, tour)

    results = await checker.check_availability(
        [
            stay(hidden),
            AvailabilityItem("tour_package", draft.id),
            AvailabilityItem("tour", tour.id),
            AvailabilityItem("spa", tour.id),
            stay(make_property(), CHECK_OUT, CHECK_IN),
        ]
    )

    assert [r.available for r in results] == [False, False, True, False, False]


async def test_auto_confirm_pending_booking(checker, storage, listing):
    booking = make_booking(property_id=listing.id, check_in=CHECK_IN, check_out=CHECK_OUT)
    storage.seed(booking)

    result = await checker.auto_confirm_booking(booking.id)

    assert result.success
    assert booking.status == "confirmed"
    assert booking.confirmed_at is not None


async def test_auto_confirm_refuses_double_booking(checker, storage, listing):
    storage.seed(make_booking(property_id=listing.id, check_in=CHECK_IN, check_out=CHECK_OUT, status="confirmed"))
    booking = make_booking(property_id=listing.id, check_in=CHECK_IN, check_out=CHECK_OUT)
    storage.seed(booking)

    result = await checker.auto_confirm_booking(booking.id)

    assert not result.success
    assert booking.status == "pending_confirmation"


async def test_auto_confirm_is_idempotent(checker, storage, listing):
    booking = make_booking(property_id=listing.id, status="confirmed")
    storage.seed(booking)
    assert (await checker.auto_confirm_booking(booking.id)).success


@pytest.mark.parametrize(
    ("check_in", "check_out", "available"),
    [(date(2026, 2, 4), date(2026, 2, 6), False), (date(2026, 2, 5), date(2026, 2, 8), True)],
)
async def test_checkout_day_is_free_for_the_next_guest(checker, storage, listing, check_in, check_out, available):
    storage.seed(
        make_booking(
            property_id=listing.id, check_in=date(2026, 2, 1), check_out=date(2026, 2, 5), status="confirmed"
        )
    )
    (result,) = await checker.check_availability([stay(listing, check_in, check_out)])
    assert result.available is available
