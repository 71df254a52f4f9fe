"""Repository for the booking ledger.

Methods here never commit; callers own the transaction so that multi-step
lifecycle changes land together.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Optional

from car_booking.domain.models import Booking, BookingStatus
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import booking_from_row


def _status_values(statuses: Iterable[BookingStatus | str]) -> list[str]:
    return [BookingStatus(status).value for status in statuses]


class BookingRepository:
    """Data access for bookings."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def insert(self, booking: Booking) -> Booking:
        try:
            self._connection.execute(
                """
                INSERT INTO bookings (
                    id,
                    car_id,
                    user_id,
                    fleet_group_id,
                    pickup_date,
                    return_date,
                    total_price,
                    deposit_amount,
                    status,
                    hold_expires_at,
                    customer_name,
                    customer_email,
                    customer_phone,
                    notes,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    booking.id,
                    booking.car_id,
                    booking.user_id,
                    booking.fleet_group_id,
                    booking.pickup_date,
                    booking.return_date,
                    booking.total_price,
                    booking.deposit_amount,
                    booking.status.value,
                    booking.hold_expires_at,
                    booking.customer_name,
                    booking.customer_email,
                    booking.customer_phone,
                    booking.notes,
                    booking.created_at,
                    booking.updated_at,
                ),
            )
        except Exception:
            self._logger.exception("Failed to insert booking car_id=%s", booking.car_id)
            raise
        return booking

    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            row = self._connection.execute(
                "SELECT * FROM bookings WHERE id = ?",
                (booking_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch booking id=%s", booking_id)
            raise
        return booking_from_row(row) if row else None

    def list_bookings(
        self,
        *,
        user_id: Optional[str] = None,
        car_id: Optional[int] = None,
        status: Optional[BookingStatus | str] = None,
        fleet_group_id: Optional[int] = None,
    ) -> list[Booking]:
        """List bookings newest first with optional equality filters."""
        clauses: list[str] = []
        params: list[object] = []
        if user_id:
            clauses.append("user_id = ?")
            params.append(user_id)
        if car_id is not None:
            clauses.append("car_id = ?")
            params.append(car_id)
        if status:
            clauses.append("status = ?")
            params.append(BookingStatus(status).value)
        if fleet_group_id is not None:
            clauses.append("fleet_group_id = ?")
            params.append(fleet_group_id)
        where_clause = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"""
            SELECT *
            FROM bookings
            {where_clause}
            ORDER BY created_at DESC, id
        """
        try:
            rows = self._connection.execute(query, params).fetchall()
        except Exception:
            self._logger.exception("Failed to list bookings")
            raise
        return [booking_from_row(row) for row in rows]

    def expire_holds(self, now_iso: str) -> int:
        """Flip every HOLD whose deadline is before ``now_iso`` to EXPIRED."""
        try:
            cursor = self._connection.execute(
                """
                UPDATE bookings
                SET status = ?,
                    hold_expires_at = NULL,
                    updated_at = ?
                WHERE status = ?
                  AND hold_expires_at < ?
                """,
                (
                    BookingStatus.EXPIRED.value,
                    now_iso,
                    BookingStatus.HOLD.value,
                    now_iso,
                ),
            )
        except Exception:
            self._logger.exception("Failed to expire stale holds")
            raise
        return cursor.rowcount

    def find_overlapping(
        self,
        car_id: int,
        pickup_date: str,
        return_date: str,
        statuses: Iterable[BookingStatus | str],
        *,
        exclude_booking_id: Optional[str] = None,
    ) -> list[str]:
        """Ids of bookings on ``car_id`` in ``statuses`` touching the date range.

        Both ends are inclusive: a booking returning on the candidate pickup
        date, or picking up on the candidate return date, overlaps.
        """
        status_values = _status_values(statuses)
        placeholders = ", ".join(["?"] * len(status_values))
        params: list[object] = [car_id, *status_values, return_date, pickup_date]
        exclude_clause = ""
        if exclude_booking_id is not None:
            exclude_clause = "AND id <> ?"
            params.append(exclude_booking_id)
        try:
            rows = self._connection.execute(
                f"""
                SELECT id
                FROM bookings
                WHERE car_id = ?
                  AND status IN ({placeholders})
                  AND pickup_date <= ?
                  AND return_date >= ?
                  {exclude_clause}
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to query overlapping bookings car_id=%s", car_id
            )
            raise
        return [row["id"] for row in rows]

    def set_status(
        self,
        booking_id: str,
        status: BookingStatus,
        updated_at: str,
        *,
        expected: Optional[Iterable[BookingStatus]] = None,
        hold_expires_at: Optional[str] = None,
        actual_return_date: Optional[str] = None,
    ) -> bool:
        """Move a booking to ``status``.

        ``hold_expires_at`` is written as given, so any non-HOLD target clears it.
        With ``expected`` the update only applies while the row is still in one
        of those statuses.
        """
        params: list[object] = [
            status.value,
            hold_expires_at,
            updated_at,
        ]
        extra_set = ""
        if actual_return_date is not None:
            extra_set = ", actual_return_date = ?"
            params.append(actual_return_date)
        params.append(booking_id)
        guard = ""
        if expected is not None:
            expected_values = _status_values(expected)
            guard = f"AND status IN ({', '.join(['?'] * len(expected_values))})"
            params.extend(expected_values)
        try:
            cursor = self._connection.execute(
                f"""
                UPDATE bookings
                SET status = ?,
                    hold_expires_at = ?,
                    updated_at = ?{extra_set}
                WHERE id = ?
                  {guard}
                """,
                params,
            )
        except Exception:
            self._logger.exception(
                "Failed to update booking status id=%s status=%s",
                booking_id,
                status.value,
            )
            raise
        return cursor.rowcount > 0

    def update_contact(
        self,
        booking_id: str,
        name: str,
        email: str,
        phone: str,
        notes: str,
        updated_at: str,
    ) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE bookings
                SET customer_name = ?,
                    customer_email = ?,
                    customer_phone = ?,
                    notes = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (name, email, phone, notes, updated_at, booking_id),
            )
        except Exception:
            self._logger.exception("Failed to update booking contact id=%s", booking_id)
            raise
        return cursor.rowcount > 0

    def update_dates(
        self,
        booking_id: str,
        pickup_date: str,
        return_date: str,
        updated_at: str,
    ) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE bookings
                SET pickup_date = ?,
                    return_date = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (pickup_date, return_date, updated_at, booking_id),
            )
        except Exception:
            self._logger.exception("Failed to update booking dates id=%s", booking_id)
            raise
        return cursor.rowcount > 0

    def count_by_status(
        self,
        statuses: Iterable[BookingStatus | str],
        *,
        fleet_group_id: Optional[int] = None,
    ) -> int:
        status_values = _status_values(statuses)
        placeholders = ", ".join(["?"] * len(status_values))
        params: list[object] = list(status_values)
        fleet_clause = ""
        if fleet_group_id is not None:
            fleet_clause = "AND fleet_group_id = ?"
            params.append(fleet_group_id)
        try:
            row = self._connection.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM bookings
                WHERE status IN ({placeholders})
                  {fleet_clause}
                """,
                params,
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count bookings by status")
            raise
        return int(row["total"]) if row else 0
