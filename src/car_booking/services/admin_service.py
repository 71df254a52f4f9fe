"""Admin console queries and customer verification."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import (
    ACTIVE_STATUSES,
    AuditLog,
    Booking,
    BookingStatus,
    Profile,
    UserRole,
)
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.expense_repo import ExpenseRepo
from car_booking.repositories.payment_repo import PaymentRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.availability_service import AvailabilityService
from car_booking.services.errors import NotFoundError
from car_booking.utils.dates import to_iso_timestamp, utc_now


@dataclass(frozen=True)
class DashboardStats:
    total_bookings: int
    active_bookings: int
    expired_bookings: int
    awaiting_confirmation: int
    cars: int
    customers: int
    revenue: float
    expenses: float


class AdminService:
    """Read models for the admin dashboard, scoped to a fleet group when given."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._availability = AvailabilityService(connection, clock=clock)
        self._bookings = BookingRepository(connection)
        self._cars = CarRepo(connection)
        self._payments = PaymentRepository(connection)
        self._profiles = ProfileRepo(connection)
        self._expenses = ExpenseRepo(connection)
        self._audit = AuditRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def stats(self, fleet_group_id: Optional[int] = None) -> DashboardStats:
        self._availability.expire_holds()
        return DashboardStats(
            total_bookings=self._bookings.count_by_status(
                list(BookingStatus), fleet_group_id=fleet_group_id
            ),
            active_bookings=self._bookings.count_by_status(
                ACTIVE_STATUSES, fleet_group_id=fleet_group_id
            ),
            expired_bookings=self._bookings.count_by_status(
                (BookingStatus.EXPIRED,), fleet_group_id=fleet_group_id
            ),
            awaiting_confirmation=self._bookings.count_by_status(
                (BookingStatus.PAID,), fleet_group_id=fleet_group_id
            ),
            cars=self._cars.count(fleet_group_id=fleet_group_id),
            customers=self._profiles.count_by_role(UserRole.CUSTOMER),
            revenue=self._payments.get_completed_total(fleet_group_id=fleet_group_id),
            expenses=self._expenses.get_completed_total(fleet_group_id=fleet_group_id),
        )

    def list_bookings(
        self,
        status: Optional[BookingStatus | str] = None,
        car_id: Optional[int] = None,
        fleet_group_id: Optional[int] = None,
    ) -> list[Booking]:
        self._availability.expire_holds()
        return self._bookings.list_bookings(
            status=status, car_id=car_id, fleet_group_id=fleet_group_id
        )

    def audit_logs(self, resource_id: str | int) -> list[AuditLog]:
        return self._audit.list_for_resource(resource_id)

    def _set_customer_verified(
        self, profile_id: str, admin_id: str, verified: bool
    ) -> Profile:
        action = "VERIFY_CUSTOMER" if verified else "UNVERIFY_CUSTOMER"
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            profile = self._profiles.get_by_id(profile_id)
            if not profile:
                raise NotFoundError(f"Customer {profile_id} not found.")
            self._profiles.set_verified(
                profile_id, verified, verified_by=admin_id, verified_at=now_iso
            )
            self._audit.add(
                admin_id,
                action,
                "profile",
                profile_id,
                {"was_verified": profile.is_verified},
                created_at=now_iso,
            )
        self._logger.info("%s %s by %s", action, profile_id, admin_id)
        return self._profiles.get_by_id(profile_id)

    def verify_customer(self, profile_id: str, admin_id: str) -> Profile:
        return self._set_customer_verified(profile_id, admin_id, True)

    def unverify_customer(self, profile_id: str, admin_id: str) -> Profile:
        return self._set_customer_verified(profile_id, admin_id, False)
