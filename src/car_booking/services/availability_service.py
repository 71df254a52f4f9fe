"""Car availability checks against the booking ledger."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime
from typing import Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import RESERVING_STATUSES
from car_booking.logging_config import get_logger
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.services.errors import DatesUnavailableError, ValidationError
from car_booking.utils.dates import to_iso_date, to_iso_timestamp, utc_now


class AvailabilityService:
    """Decides whether a car is free for a date range.

    Every check first sweeps timed-out holds across the whole ledger, so a
    lapsed hold on any car stops blocking as soon as anyone asks.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = BookingRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def expire_holds(self, now: Optional[datetime] = None) -> int:
        """Mark every HOLD past its deadline as EXPIRED; returns rows changed."""
        now_iso = to_iso_timestamp(now or self._clock())
        with write_transaction(self._connection):
            expired = self._repo.expire_holds(now_iso)
        if expired:
            self._logger.info("Expired %s stale hold(s)", expired)
        return expired

    def conflicting_bookings(
        self,
        car_id: int,
        pickup_date: str | date,
        return_date: str | date,
        *,
        exclude_booking_id: Optional[str] = None,
    ) -> list[str]:
        try:
            pickup_iso = to_iso_date(pickup_date)
            return_iso = to_iso_date(return_date)
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid dates. Check the pickup and return dates.") from exc
        with write_transaction(self._connection):
            self.expire_holds()
            return self._repo.find_overlapping(
                car_id,
                pickup_iso,
                return_iso,
                RESERVING_STATUSES,
                exclude_booking_id=exclude_booking_id,
            )

    def is_available(
        self,
        car_id: int,
        pickup_date: str | date,
        return_date: str | date,
        *,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        conflicts = self.conflicting_bookings(
            car_id,
            pickup_date,
            return_date,
            exclude_booking_id=exclude_booking_id,
        )
        return not conflicts

    def assert_available(
        self,
        car_id: int,
        pickup_date: str | date,
        return_date: str | date,
        *,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        conflicts = self.conflicting_bookings(
            car_id,
            pickup_date,
            return_date,
            exclude_booking_id=exclude_booking_id,
        )
        if conflicts:
            self._logger.info(
                "Car %s unavailable %s..%s (conflicts=%s)",
                car_id,
                pickup_date,
                return_date,
                len(conflicts),
            )
            raise DatesUnavailableError(
                "These dates are unavailable for this car. Please choose different dates."
            )
