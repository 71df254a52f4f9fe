from __future__ import annotations

import pytest

from car_booking.domain.models import BookingStatus
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.services.availability_service import AvailabilityService
from car_booking.services.errors import DatesUnavailableError, ValidationError


@pytest.fixture
def availability(connection, clock):
    return AvailabilityService(connection, clock=clock)


@pytest.mark.parametrize(
    "pickup, return_date, expected",
    [
        ("2024-06-05", "2024-06-08", False),  # starts on the existing return day
        ("2024-05-28", "2024-06-01", False),  # ends on the existing pickup day
        ("2024-06-02", "2024-06-03", False),  # inside
        ("2024-05-30", "2024-06-10", False),  # covers
        ("2024-06-06", "2024-06-08", True),
        ("2024-05-25", "2024-05-31", True),
    ],
)
def test_overlap_is_boundary_inclusive(availability, make_booking, car, pickup, return_date, expected):
    make_booking("2024-06-01", "2024-06-05")
    assert availability.is_available(car.id, pickup, return_date) is expected


@pytest.mark.parametrize(
    "status", [BookingStatus.HOLD, BookingStatus.PAID, BookingStatus.CONFIRMED, BookingStatus.PICKUP]
)
def test_reserving_statuses_block(availability, make_booking, car, status):
    make_booking("2024-06-01", "2024-06-05", status)
    assert not availability.is_available(car.id, "2024-06-01", "2024-06-05")


@pytest.mark.parametrize(
    "status", [BookingStatus.CANCELLED, BookingStatus.EXPIRED, BookingStatus.RETURNED]
)
def test_closed_bookings_never_block(availability, make_booking, car, status):
    make_booking("2024-06-01", "2024-06-05", status)
    assert availability.is_available(car.id, "2024-06-01", "2024-06-05")


def test_other_cars_do_not_block(availability, make_booking, second_car):
    make_booking("2024-06-01", "2024-06-05")
    assert availability.is_available(second_car.id, "2024-06-01", "2024-06-05")


def test_exclude_booking_id_ignores_itself(availability, make_booking, car):
    booking = make_booking("2024-06-01", "2024-06-05", BookingStatus.PAID)
    assert availability.is_available(
        car.id, "2024-06-02", "2024-06-06", exclude_booking_id=booking.id
    )


def test_sweep_is_idempotent_and_spares_live_holds(availability, make_booking, clock, connection):
    stale = make_booking("2024-06-01", "2024-06-05")
    clock.advance(minutes=5)
    live = make_booking("2024-06-10", "2024-06-12")
    clock.advance(minutes=6)

    assert availability.expire_holds() == 1
    assert availability.expire_holds() == 0

    repo = BookingRepository(connection)
    swept = repo.get_by_id(stale.id)
    assert swept.status == BookingStatus.EXPIRED
    assert swept.hold_expires_at is None
    assert repo.get_by_id(live.id).status == BookingStatus.HOLD


def test_check_on_another_car_sweeps_globally(
    availability, make_booking, clock, connection, car, second_car
):
    hold = make_booking("2024-06-01", "2024-06-05")
    clock.advance(minutes=11)

    assert availability.is_available(second_car.id, "2024-07-01", "2024-07-02")
    assert BookingRepository(connection).get_by_id(hold.id).status == BookingStatus.EXPIRED
    assert availability.is_available(car.id, "2024-06-01", "2024-06-05")


def test_hold_exactly_at_deadline_is_not_swept(availability, make_booking, clock):
    make_booking("2024-06-01", "2024-06-05")
    clock.advance(minutes=10)
    assert availability.expire_holds() == 0


def test_assert_available_raises(availability, make_booking, car):
    make_booking("2024-06-01", "2024-06-05")
    with pytest.raises(DatesUnavailableError, match="unavailable"):
        availability.assert_available(car.id, "2024-06-03", "2024-06-04")


def test_unparseable_dates_raise_validation_error(availability, car):
    with pytest.raises(ValidationError):
        availability.is_available(car.id, "not-a-date", "2024-06-02")
