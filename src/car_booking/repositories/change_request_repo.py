"""Repository for customer profile change requests."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from car_booking.domain.models import ChangeRequest, ChangeRequestStatus
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import change_request_from_row


class ChangeRequestRepository:
    """Data access for change requests; callers own the transaction."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        customer_id: str,
        changes: dict[str, dict[str, Any]],
        *,
        fleet_group_id: Optional[int] = None,
        requested_by: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> ChangeRequest:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO change_requests (
                    customer_id,
                    fleet_group_id,
                    requested_by,
                    changes,
                    status,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    customer_id,
                    fleet_group_id,
                    requested_by,
                    json.dumps(changes, sort_keys=True),
                    ChangeRequestStatus.PENDING.value,
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception(
                "Failed to create change request customer_id=%s", customer_id
            )
            raise
        return ChangeRequest(
            id=int(cursor.lastrowid),
            customer_id=customer_id,
            changes=changes,
            fleet_group_id=fleet_group_id,
            requested_by=requested_by,
            created_at=created_at,
        )

    def get_by_id(self, request_id: int) -> Optional[ChangeRequest]:
        try:
            row = self._connection.execute(
                "SELECT * FROM change_requests WHERE id = ?",
                (request_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch change request id=%s", request_id)
            raise
        return change_request_from_row(row) if row else None

    def list_requests(
        self,
        *,
        status: Optional[ChangeRequestStatus] = None,
        fleet_group_id: Optional[int] = None,
    ) -> list[ChangeRequest]:
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
                FROM change_requests
                {where_clause}
                ORDER BY created_at DESC, id DESC
                """,
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list change requests")
            raise
        return [change_request_from_row(row) for row in rows]

    def mark_reviewed(
        self,
        request_id: int,
        status: ChangeRequestStatus,
        reviewed_by: str,
        reviewed_at: str,
        *,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Close a PENDING request; returns False if it was already reviewed."""
        try:
            cursor = self._connection.execute(
                """
                UPDATE change_requests
                SET status = ?,
                    reviewed_by = ?,
                    reviewed_at = ?,
                    rejection_reason = ?
                WHERE id = ?
                  AND status = ?
                """,
                (
                    status.value,
                    reviewed_by,
                    reviewed_at,
                    rejection_reason,
                    request_id,
                    ChangeRequestStatus.PENDING.value,
                ),
            )
        except Exception:
            self._logger.exception("Failed to review change request id=%s", request_id)
            raise
        return cursor.rowcount > 0
