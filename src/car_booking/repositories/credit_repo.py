"""Repository for the customer deposit-credit ledger."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import CreditTransaction, CreditType
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import credit_transaction_from_row


class CreditRepository:
    """Data access for credit transactions; a balance is the sum of amounts."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def add(
        self,
        user_id: str,
        amount: float,
        credit_type: CreditType,
        *,
        booking_id: Optional[str] = None,
        description: Optional[str] = None,
        admin_id: Optional[str] = None,
        fleet_group_id: Optional[int] = None,
        created_at: Optional[str] = None,
    ) -> CreditTransaction:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO credit_transactions (
                    user_id,
                    booking_id,
                    amount,
                    type,
                    description,
                    admin_id,
                    fleet_group_id,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    booking_id,
                    amount,
                    credit_type.value,
                    description,
                    admin_id,
                    fleet_group_id,
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception("Failed to add credit transaction user_id=%s", user_id)
            raise
        return CreditTransaction(
            id=int(cursor.lastrowid),
            user_id=user_id,
            amount=amount,
            type=credit_type,
            booking_id=booking_id,
            description=description,
            admin_id=admin_id,
            fleet_group_id=fleet_group_id,
            created_at=created_at,
        )

    def get_balance(self, user_id: str, *, fleet_group_id: Optional[int] = None) -> float:
        query = """
            SELECT COALESCE(SUM(amount), 0) AS balance
            FROM credit_transactions
            WHERE user_id = ?
        """
        params: list[object] = [user_id]
        if fleet_group_id is not None:
            query += " AND fleet_group_id = ?"
            params.append(fleet_group_id)
        try:
            row = self._connection.execute(query, params).fetchone()
        except Exception:
            self._logger.exception("Failed to compute credit balance user_id=%s", user_id)
            raise
        return float(row["balance"] or 0) if row else 0.0

    def list_by_user(self, user_id: str) -> list[CreditTransaction]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM credit_transactions
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list credit user_id=%s", user_id)
            raise
        return [credit_transaction_from_row(row) for row in rows]
