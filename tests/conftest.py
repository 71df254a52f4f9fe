from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from car_booking.db.connection import get_connection
from car_booking.db.migrations import apply_migrations
from car_booking.domain.models import Booking, BookingStatus, FleetStatus, UserRole
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.booking_service import BookingService
from car_booking.utils.dates import to_iso_timestamp


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def connection(tmp_path):
    conn = get_connection(tmp_path / "test.db")
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def customer(connection):
    return ProfileRepo(connection).create("Aina Rahman", "aina@example.com", "+60123456789")


@pytest.fixture
def other_customer(connection):
    return ProfileRepo(connection).create("Daniel Lee", "daniel@example.com", "+60198765432")


@pytest.fixture
def admin(connection):
    return ProfileRepo(connection).create(
        "Ops Admin", "ops@example.com", None, role=UserRole.ADMIN
    )


@pytest.fixture
def car(connection):
    return CarRepo(connection).create("Myvi", "Perodua", "Myvi 1.5", 150.0)


@pytest.fixture
def second_car(connection):
    return CarRepo(connection).create("Axia", "Perodua", "Axia 1.0", 100.0)


@pytest.fixture
def verified_fleet(connection):
    repo = FleetRepository(connection)
    with connection:
        group = repo.create("KL Fleet", status=FleetStatus.VERIFIED)
    return group


@pytest.fixture
def booking_service(connection, clock):
    return BookingService(connection, clock=clock)


@pytest.fixture
def make_booking(connection, customer, car, clock):
    """Insert a booking row directly, bypassing the lifecycle checks."""
    counter = {"n": 0}

    def _make(
        pickup: str,
        return_date: str,
        status: BookingStatus = BookingStatus.HOLD,
        *,
        car_id=None,
        user_id=None,
        hold_expires_at=None,
    ) -> Booking:
        counter["n"] += 1
        now_iso = to_iso_timestamp(clock())
        if status == BookingStatus.HOLD and hold_expires_at is None:
            hold_expires_at = to_iso_timestamp(clock() + timedelta(minutes=10))
        booking = Booking(
            id=f"booking-{counter['n']}",
            car_id=car_id if car_id is not None else car.id,
            user_id=user_id or customer.id,
            pickup_date=pickup,
            return_date=return_date,
            total_price=300,
            deposit_amount=90,
            status=status,
            hold_expires_at=hold_expires_at if status == BookingStatus.HOLD else None,
            created_at=now_iso,
            updated_at=now_iso,
        )
        with connection:
            BookingRepository(connection).insert(booking)
        return booking

    return _make
