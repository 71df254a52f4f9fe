"""Repository for payments persistence."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import Payment, PaymentStatus, PaymentType
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import payment_from_row


class PaymentRepository:
    """Data access for payments. Payments are insert-only."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def list_by_booking(self, booking_id: str) -> list[Payment]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM payments
                WHERE booking_id = ?
                ORDER BY created_at, id
                """,
                (booking_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list payments booking_id=%s", booking_id)
            raise
        return [payment_from_row(row) for row in rows]

    def create(
        self,
        booking_id: str,
        amount: float,
        payment_method: str,
        reference_number: str,
        *,
        payment_type: PaymentType = PaymentType.DEPOSIT,
        status: PaymentStatus = PaymentStatus.COMPLETED,
        simulated: bool = False,
        credit_applied: float = 0.0,
        fleet_group_id: Optional[int] = None,
        created_at: Optional[str] = None,
    ) -> Payment:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO payments (
                    booking_id,
                    amount,
                    payment_method,
                    payment_type,
                    status,
                    reference_number,
                    simulated,
                    credit_applied,
                    fleet_group_id,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    booking_id,
                    amount,
                    payment_method,
                    payment_type.value,
                    status.value,
                    reference_number,
                    int(simulated),
                    credit_applied,
                    fleet_group_id,
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception("Failed to create payment booking_id=%s", booking_id)
            raise
        return Payment(
            id=int(cursor.lastrowid),
            booking_id=booking_id,
            amount=amount,
            payment_method=payment_method,
            payment_type=payment_type,
            status=status,
            reference_number=reference_number,
            simulated=simulated,
            credit_applied=credit_applied,
            created_at=created_at,
        )

    def count_completed_deposits(self, booking_id: str) -> int:
        try:
            row = self._connection.execute(
                """
                SELECT COUNT(*) AS total
                FROM payments
                WHERE booking_id = ?
                  AND payment_type = ?
                  AND status = ?
                """,
                (booking_id, PaymentType.DEPOSIT.value, PaymentStatus.COMPLETED.value),
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to count deposits booking_id=%s", booking_id
            )
            raise
        return int(row["total"]) if row else 0

    def get_completed_total(self, *, fleet_group_id: Optional[int] = None) -> float:
        query = """
            SELECT COALESCE(SUM(amount), 0) AS revenue
            FROM payments
            WHERE status = ?
        """
        params: list[object] = [PaymentStatus.COMPLETED.value]
        if fleet_group_id is not None:
            query += " AND fleet_group_id = ?"
            params.append(fleet_group_id)
        try:
            row = self._connection.execute(query, params).fetchone()
        except Exception:
            self._logger.exception("Failed to calculate completed payment total")
            raise
        return float(row["revenue"] or 0) if row else 0.0
