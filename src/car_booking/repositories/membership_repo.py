"""Repository for fleet group memberships."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import FleetMembership, MembershipRole
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import fleet_membership_from_row


class MembershipRepository:
    """Data access for admin memberships of fleet groups; callers own the transaction."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def add(
        self,
        user_id: str,
        fleet_group_id: int,
        role: MembershipRole = MembershipRole.FLEET_STAFF,
        *,
        created_at: Optional[str] = None,
    ) -> FleetMembership:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO fleet_memberships (user_id, fleet_group_id, role, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, fleet_group_id, role.value, created_at),
            )
        except Exception:
            self._logger.exception(
                "Failed to add member user_id=%s fleet_group_id=%s", user_id, fleet_group_id
            )
            raise
        return FleetMembership(
            id=int(cursor.lastrowid),
            user_id=user_id,
            fleet_group_id=fleet_group_id,
            role=role,
            created_at=created_at,
        )

    def get_by_id(self, membership_id: int) -> Optional[FleetMembership]:
        try:
            row = self._connection.execute(
                "SELECT * FROM fleet_memberships WHERE id = ?",
                (membership_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch membership id=%s", membership_id)
            raise
        return fleet_membership_from_row(row) if row else None

    def find(self, user_id: str, fleet_group_id: int) -> Optional[FleetMembership]:
        try:
            row = self._connection.execute(
                """
                SELECT *
                FROM fleet_memberships
                WHERE user_id = ?
                  AND fleet_group_id = ?
                """,
                (user_id, fleet_group_id),
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to find membership user_id=%s fleet_group_id=%s",
                user_id,
                fleet_group_id,
            )
            raise
        return fleet_membership_from_row(row) if row else None

    def list_for_group(self, fleet_group_id: int) -> list[FleetMembership]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM fleet_memberships
                WHERE fleet_group_id = ?
                ORDER BY created_at, id
                """,
                (fleet_group_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list members fleet_group_id=%s", fleet_group_id)
            raise
        return [fleet_membership_from_row(row) for row in rows]

    def list_for_user(self, user_id: str) -> list[FleetMembership]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM fleet_memberships
                WHERE user_id = ?
                ORDER BY created_at, id
                """,
                (user_id,),
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list memberships user_id=%s", user_id)
            raise
        return [fleet_membership_from_row(row) for row in rows]

    def update_role(self, membership_id: int, role: MembershipRole) -> bool:
        try:
            cursor = self._connection.execute(
                "UPDATE fleet_memberships SET role = ? WHERE id = ?",
                (role.value, membership_id),
            )
        except Exception:
            self._logger.exception("Failed to update membership id=%s", membership_id)
            raise
        return cursor.rowcount > 0

    def remove(self, membership_id: int) -> bool:
        try:
            cursor = self._connection.execute(
                "DELETE FROM fleet_memberships WHERE id = ?",
                (membership_id,),
            )
        except Exception:
            self._logger.exception("Failed to remove membership id=%s", membership_id)
            raise
        return cursor.rowcount > 0
