"""Repository for fleet groups (tenants of the admin console)."""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from car_booking.domain.models import FleetGroup, FleetStatus
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import fleet_group_from_row

_UPDATABLE_COLUMNS = {
    "status",
    "rejection_reason",
    "suspension_reason",
    "suspension_notes",
    "verified_at",
    "verified_by",
    "suspended_at",
    "suspended_by",
}


class FleetRepository:
    """Data access for fleet groups; callers own the transaction."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        name: str,
        *,
        is_super_group: bool = False,
        status: FleetStatus = FleetStatus.PENDING_VERIFICATION,
        created_at: Optional[str] = None,
    ) -> FleetGroup:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO fleet_groups (name, status, is_super_group, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (name, status.value, int(is_super_group), created_at),
            )
        except Exception:
            self._logger.exception("Failed to create fleet group name=%s", name)
            raise
        return FleetGroup(
            id=int(cursor.lastrowid),
            name=name,
            status=status,
            is_super_group=is_super_group,
            created_at=created_at,
        )

    def get_by_id(self, group_id: int) -> Optional[FleetGroup]:
        try:
            row = self._connection.execute(
                "SELECT * FROM fleet_groups WHERE id = ?",
                (group_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch fleet group id=%s", group_id)
            raise
        return fleet_group_from_row(row) if row else None

    def list_all(self) -> list[FleetGroup]:
        try:
            rows = self._connection.execute(
                "SELECT * FROM fleet_groups ORDER BY name"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list fleet groups")
            raise
        return [fleet_group_from_row(row) for row in rows]

    def update(self, group_id: int, changes: dict[str, Any]) -> bool:
        unknown = set(changes) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown fleet group columns: {sorted(unknown)}")
        if not changes:
            return False
        columns = sorted(changes)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        params: list[object] = [
            changes[column].value if isinstance(changes[column], FleetStatus) else changes[column]
            for column in columns
        ]
        params.append(group_id)
        try:
            cursor = self._connection.execute(
                f"UPDATE fleet_groups SET {assignments} WHERE id = ?",
                params,
            )
        except Exception:
            self._logger.exception("Failed to update fleet group id=%s", group_id)
            raise
        return cursor.rowcount > 0
