"""Repository for car expense claims."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import ExpenseClaim, ExpenseStatus
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import expense_claim_from_row


class ExpenseRepo:
    """Data access for expense claims."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        car_id: int,
        category: str,
        description: Optional[str],
        amount: float,
        *,
        fleet_group_id: Optional[int] = None,
        claimed_by: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> ExpenseClaim:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO expense_claims (
                    car_id,
                    fleet_group_id,
                    category,
                    description,
                    amount,
                    status,
                    claimed_by,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    car_id,
                    fleet_group_id,
                    category,
                    description,
                    amount,
                    ExpenseStatus.PENDING.value,
                    claimed_by,
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception("Failed to create expense claim car_id=%s", car_id)
            raise
        return ExpenseClaim(
            id=int(cursor.lastrowid),
            car_id=car_id,
            category=category,
            description=description,
            amount=amount,
            status=ExpenseStatus.PENDING,
            fleet_group_id=fleet_group_id,
            claimed_by=claimed_by,
            created_at=created_at,
        )

    def get_by_id(self, claim_id: int) -> Optional[ExpenseClaim]:
        try:
            row = self._connection.execute(
                "SELECT * FROM expense_claims WHERE id = ?",
                (claim_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch expense claim id=%s", claim_id)
            raise
        return expense_claim_from_row(row) if row else None

    def complete(self, claim_id: int, receipt_path: Optional[str], completed_at: str) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE expense_claims
                SET status = ?,
                    receipt_path = ?,
                    completed_at = ?
                WHERE id = ?
                  AND status = ?
                """,
                (
                    ExpenseStatus.COMPLETED.value,
                    receipt_path,
                    completed_at,
                    claim_id,
                    ExpenseStatus.PENDING.value,
                ),
            )
        except Exception:
            self._logger.exception("Failed to complete expense claim id=%s", claim_id)
            raise
        return cursor.rowcount > 0

    def list_claims(
        self,
        *,
        status: Optional[ExpenseStatus] = None,
        fleet_group_id: Optional[int] = None,
    ) -> list[ExpenseClaim]:
        clauses: list[str] = []
        params: list[object] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if fleet_group_id is not None:
            clauses.append("fleet_group_id = ?")
            params.append(fleet_group_id)
        where_clause = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            rows = self._connection.execute(
                f"""
                SELECT *
                FROM expense_claims
                {where_clause}
                ORDER BY created_at DESC, id DESC
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list expense claims")
            raise
        return [expense_claim_from_row(row) for row in rows]

    def get_completed_total(self, *, fleet_group_id: Optional[int] = None) -> float:
        query = """
            SELECT COALESCE(SUM(amount), 0) AS total_amount
            FROM expense_claims
            WHERE status = ?
        """
        params: list[object] = [ExpenseStatus.COMPLETED.value]
        if fleet_group_id is not None:
            query += " AND fleet_group_id = ?"
            params.append(fleet_group_id)
        try:
            row = self._connection.execute(query, params).fetchone()
        except Exception:
            self._logger.exception("Failed to calculate completed expense total")
            raise
        return float(row["total_amount"] or 0) if row else 0.0
