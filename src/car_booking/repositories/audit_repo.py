"""Repository for admin audit log entries."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from car_booking.domain.models import AuditLog
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import audit_log_from_row


class AuditRepository:
    """Append-only audit trail of admin actions."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def add(
        self,
        admin_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: str | int,
        details: Optional[dict[str, Any]] = None,
        *,
        created_at: Optional[str] = None,
    ) -> AuditLog:
        payload = dict(details or {})
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO audit_logs (
                    admin_id,
                    action,
                    resource_type,
                    resource_id,
                    details,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    admin_id,
                    action,
                    resource_type,
                    str(resource_id),
                    json.dumps(payload, sort_keys=True),
                    created_at,
                ),
            )
        except Exception:
            self._logger.exception(
                "Failed to write audit log action=%s resource_id=%s",
                action,
                resource_id,
            )
            raise
        return AuditLog(
            id=int(cursor.lastrowid),
            admin_id=admin_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=payload,
            created_at=created_at,
        )

    def list_for_resource(self, resource_id: str | int) -> list[AuditLog]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM audit_logs
                WHERE resource_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (str(resource_id),),
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list audit logs resource_id=%s", resource_id
            )
            raise
        return [audit_log_from_row(row) for row in rows]
