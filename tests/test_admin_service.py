from __future__ import annotations

import pytest

from car_booking.domain.models import BookingStatus
from car_booking.repositories.car_repo import CarRepo
from car_booking.services.admin_service import AdminService
from car_booking.services.errors import NotFoundError


@pytest.fixture
def admin_service(connection, clock):
    return AdminService(connection, clock=clock)


def test_stats_counts_bookings_and_revenue(
    admin_service, booking_service, car, second_car, customer, other_customer, admin, clock
):
    paid = booking_service.create_hold(car.id, customer.id, "2024-06-01", "2024-06-04")
    booking_service.complete_payment(paid.id)
    booking_service.create_hold(second_car.id, other_customer.id, "2024-06-01", "2024-06-02")
    clock.advance(minutes=11)

    stats = admin_service.stats()
    assert stats.total_bookings == 2
    assert stats.active_bookings == 1
    assert stats.expired_bookings == 1
    assert stats.awaiting_confirmation == 1
    assert stats.cars == 2
    assert stats.customers == 2
    assert stats.revenue == 135
    assert stats.expenses == 0


def test_stats_scoped_to_fleet(admin_service, booking_service, connection, car, customer, verified_fleet):
    fleet_car = CarRepo(connection).create("City", "Honda", "City", 200, fleet_group_id=verified_fleet.id)
    booking = booking_service.create_hold(fleet_car.id, customer.id, "2024-06-01", "2024-06-03")
    booking_service.complete_payment(booking.id)
    booking_service.create_hold(car.id, customer.id, "2024-06-01", "2024-06-03")

    stats = admin_service.stats(verified_fleet.id)
    assert stats.total_bookings == 1
    assert stats.cars == 1
    assert stats.revenue == booking.deposit_amount


def test_list_bookings_filters(admin_service, booking_service, car, second_car, customer):
    first = booking_service.create_hold(car.id, customer.id, "2024-06-01", "2024-06-04")
    booking_service.create_hold(second_car.id, customer.id, "2024-06-01", "2024-06-04")
    booking_service.complete_payment(first.id)

    assert [b.id for b in admin_service.list_bookings(status="PAID")] == [first.id]
    assert len(admin_service.list_bookings(car_id=second_car.id)) == 1
    assert len(admin_service.list_bookings()) == 2


def test_list_bookings_sweeps_first(admin_service, booking_service, car, customer, clock):
    booking_service.create_hold(car.id, customer.id, "2024-06-01", "2024-06-04")
    clock.advance(minutes=11)
    assert admin_service.list_bookings(status=BookingStatus.HOLD) == []


def test_verify_and_unverify_customer_are_audited(admin_service, customer, admin):
    verified = admin_service.verify_customer(customer.id, admin.id)
    assert verified.is_verified
    assert verified.verified_by == admin.id

    unverified = admin_service.unverify_customer(customer.id, admin.id)
    assert not unverified.is_verified
    assert unverified.verified_by is None

    logs = admin_service.audit_logs(customer.id)
    assert {log.action for log in logs} == {"VERIFY_CUSTOMER", "UNVERIFY_CUSTOMER"}
    assert all(log.resource_type == "profile" for log in logs)


def test_verify_unknown_customer(admin_service, admin):
    with pytest.raises(NotFoundError):
        admin_service.verify_customer("nobody", admin.id)


def test_verified_at_uses_service_clock(admin_service, customer, admin, clock):
    clock.advance(days=3)
    verified = admin_service.verify_customer(customer.id, admin.id)
    (log,) = admin_service.audit_logs(customer.id)
    assert verified.verified_at == "2024-06-04T09:00:00+00:00"
    assert verified.verified_at == log.created_at


def test_car_timestamps_can_come_from_the_caller(connection):
    repo = CarRepo(connection)
    car = repo.create("City", "Honda", "City", 200, created_at="2024-06-01T09:00:00+00:00")
    repo.set_available(car.id, False, updated_at="2024-06-02T09:00:00+00:00")
    stored = repo.get_by_id(car.id)
    assert (stored.created_at, stored.updated_at) == (
        "2024-06-01T09:00:00+00:00",
        "2024-06-02T09:00:00+00:00",
    )
