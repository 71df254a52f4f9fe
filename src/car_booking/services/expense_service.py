"""Expense claim service for business rules."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import ExpenseClaim, ExpenseStatus
from car_booking.logging_config import get_logger
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.expense_repo import ExpenseRepo
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.services.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.services.fleet_service import can_write
from car_booking.utils.dates import to_iso_timestamp, utc_now


class ExpenseService:
    """Service for per-car expense claims."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = ExpenseRepo(connection)
        self._cars = CarRepo(connection)
        self._fleets = FleetRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def list_claims(
        self,
        status: Optional[ExpenseStatus | str] = None,
        fleet_group_id: Optional[int] = None,
    ) -> list[ExpenseClaim]:
        status = ExpenseStatus(status) if status else None
        return self._repo.list_claims(status=status, fleet_group_id=fleet_group_id)

    def get_completed_total(self, fleet_group_id: Optional[int] = None) -> float:
        return self._repo.get_completed_total(fleet_group_id=fleet_group_id)

    def create_claim(
        self,
        car_id: int,
        category: str,
        description: Optional[str],
        amount: float,
        admin_id: str,
    ) -> ExpenseClaim:
        category = (category or "").strip()
        if not category:
            raise ValidationError("Expense category is required.")
        if amount <= 0:
            raise ValidationError("Expense amount must be greater than zero.")
        car = self._cars.get_by_id(car_id)
        if not car:
            raise NotFoundError(f"Car {car_id} not found.")
        if car.fleet_group_id is not None and not can_write(
            self._fleets.get_by_id(car.fleet_group_id)
        ):
            raise ForbiddenError("This fleet group cannot record expenses right now.")
        with write_transaction(self._connection):
            claim = self._repo.create(
                car_id,
                category,
                description,
                amount,
                fleet_group_id=car.fleet_group_id,
                claimed_by=admin_id,
                created_at=to_iso_timestamp(self._clock()),
            )
        self._logger.info("Expense claim %s created car_id=%s", claim.id, car_id)
        return claim

    def complete_claim(
        self, claim_id: int, receipt_path: Optional[str] = None
    ) -> ExpenseClaim:
        with write_transaction(self._connection):
            claim = self._repo.get_by_id(claim_id)
            if not claim:
                raise NotFoundError(f"Expense claim {claim_id} not found.")
            if claim.status != ExpenseStatus.PENDING:
                raise InvalidTransitionError(f"Expense claim {claim_id} is already completed.")
            self._repo.complete(claim_id, receipt_path, to_iso_timestamp(self._clock()))
        return self._repo.get_by_id(claim_id)
