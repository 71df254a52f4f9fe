from __future__ import annotations

import pytest

from car_booking.domain.models import ExpenseStatus, FleetStatus
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.services.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.services.expense_service import ExpenseService


@pytest.fixture
def expense_service(connection, clock):
    return ExpenseService(connection, clock=clock)


def test_claim_lifecycle(expense_service, car, admin):
    claim = expense_service.create_claim(car.id, "Servicing", "10k km service", 280.0, admin.id)
    assert claim.status == ExpenseStatus.PENDING
    assert expense_service.get_completed_total() == 0

    completed = expense_service.complete_claim(claim.id, "receipts/service.pdf")
    assert completed.status == ExpenseStatus.COMPLETED
    assert completed.receipt_path == "receipts/service.pdf"
    assert completed.completed_at == "2024-06-01T09:00:00+00:00"
    assert expense_service.get_completed_total() == 280.0

    with pytest.raises(InvalidTransitionError):
        expense_service.complete_claim(claim.id)


def test_claims_list_by_status_and_fleet(expense_service, connection, car, admin, verified_fleet):
    fleet_car = CarRepo(connection).create("City", "Honda", "City", 200, fleet_group_id=verified_fleet.id)
    expense_service.create_claim(car.id, "Tyres", None, 400.0, admin.id)
    fleet_claim = expense_service.create_claim(fleet_car.id, "Wash", None, 30.0, admin.id)

    assert [c.id for c in expense_service.list_claims(fleet_group_id=verified_fleet.id)] == [fleet_claim.id]
    assert len(expense_service.list_claims(status="pending")) == 2
    assert expense_service.list_claims(status=ExpenseStatus.COMPLETED) == []


@pytest.mark.parametrize("category, amount", [("", 10.0), ("Fuel", 0), ("Fuel", -5)])
def test_claim_validation(expense_service, car, admin, category, amount):
    with pytest.raises(ValidationError):
        expense_service.create_claim(car.id, category, None, amount, admin.id)


def test_claim_for_missing_car_or_claim(expense_service, admin):
    with pytest.raises(NotFoundError):
        expense_service.create_claim(999, "Fuel", None, 50.0, admin.id)
    with pytest.raises(NotFoundError):
        expense_service.complete_claim(999)


def test_claim_refused_for_pending_fleet(expense_service, connection, admin):
    with connection:
        group = FleetRepository(connection).create("New Fleet", status=FleetStatus.PENDING_VERIFICATION)
    fleet_car = CarRepo(connection).create("Vios", "Toyota", "Vios", 180, fleet_group_id=group.id)
    with pytest.raises(ForbiddenError):
        expense_service.create_claim(fleet_car.id, "Fuel", None, 50.0, admin.id)
