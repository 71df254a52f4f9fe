"""Deposit credit ledger."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import CreditTransaction, CreditType
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.credit_repo import CreditRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.errors import NotFoundError, ValidationError
from car_booking.utils.dates import to_iso_timestamp, utc_now


class CreditService:
    """A renter's credit is the sum of their transactions; rows are never edited."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = CreditRepository(connection)
        self._profiles = ProfileRepo(connection)
        self._audit = AuditRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def balance(self, user_id: str, fleet_group_id: Optional[int] = None) -> float:
        return self._repo.get_balance(user_id, fleet_group_id=fleet_group_id)

    def history(self, user_id: str) -> list[CreditTransaction]:
        return self._repo.list_by_user(user_id)

    def grant(
        self,
        user_id: str,
        amount: float,
        admin_id: str,
        *,
        description: Optional[str] = None,
        booking_id: Optional[str] = None,
        fleet_group_id: Optional[int] = None,
    ) -> CreditTransaction:
        """Manually return deposit credit to a renter."""
        if amount <= 0:
            raise ValidationError("Credit amount must be greater than zero.")
        if not self._profiles.get_by_id(user_id):
            raise NotFoundError(f"Customer {user_id} not found.")
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            entry = self._repo.add(
                user_id,
                amount,
                CreditType.DEPOSIT_RETURN,
                booking_id=booking_id,
                description=description or "Manual deposit credit",
                admin_id=admin_id,
                fleet_group_id=fleet_group_id,
                created_at=now_iso,
            )
            self._audit.add(
                admin_id,
                "ADD_CREDIT",
                "profile",
                user_id,
                {"amount": amount, "booking_id": booking_id},
                created_at=now_iso,
            )
        self._logger.info("Credit %.2f granted to %s by %s", amount, user_id, admin_id)
        return entry
