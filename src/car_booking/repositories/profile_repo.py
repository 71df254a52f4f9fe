"""Repository for user profiles."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from car_booking.db.connection import transaction
from car_booking.domain.models import Profile, UserRole
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import profile_from_row

EDITABLE_FIELDS = ("display_name", "email", "phone", "ic_number", "licence_expiry")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class ProfileRepo:
    """CRUD operations for customer and admin profiles."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        display_name: str,
        email: Optional[str],
        phone: Optional[str],
        *,
        role: UserRole = UserRole.CUSTOMER,
        profile_id: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> Profile:
        created_at = created_at or _now_iso()
        profile_id = profile_id or str(uuid.uuid4())
        try:
            with transaction(self._connection):
                self._connection.execute(
                    """
                    INSERT INTO profiles (
                        id,
                        display_name,
                        email,
                        phone,
                        role,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (profile_id, display_name, email, phone, role.value, created_at),
                )
        except Exception:
            self._logger.exception("Failed to create profile")
            raise

        return Profile(
            id=profile_id,
            display_name=display_name,
            email=email,
            phone=phone,
            role=role,
            created_at=created_at,
        )

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        try:
            row = self._connection.execute(
                "SELECT * FROM profiles WHERE id = ?",
                (profile_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get profile id=%s", profile_id)
            raise
        return profile_from_row(row) if row else None

    def count_by_role(self, role: UserRole = UserRole.CUSTOMER) -> int:
        try:
            row = self._connection.execute(
                "SELECT COUNT(*) AS total FROM profiles WHERE role = ?",
                (role.value,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to count profiles role=%s", role.value)
            raise
        return int(row["total"]) if row else 0

    def set_verified(
        self,
        profile_id: str,
        verified: bool,
        *,
        verified_by: Optional[str] = None,
        verified_at: Optional[str] = None,
    ) -> bool:
        """Set verification flags; callers own the transaction."""
        if verified:
            verified_at = verified_at or _now_iso()
        else:
            verified_at = None
        try:
            cursor = self._connection.execute(
                """
                UPDATE profiles
                SET is_verified = ?,
                    verified_at = ?,
                    verified_by = ?
                WHERE id = ?
                """,
                (int(verified), verified_at, verified_by if verified else None, profile_id),
            )
        except Exception:
            self._logger.exception("Failed to update verification id=%s", profile_id)
            raise
        return cursor.rowcount > 0

    def update_fields(self, profile_id: str, changes: dict[str, Any]) -> bool:
        """Write contact and identity fields; callers own the transaction."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")
        if not changes:
            return False
        columns = sorted(changes)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        params: list[object] = [changes[column] for column in columns]
        params.append(profile_id)
        try:
            cursor = self._connection.execute(
                f"UPDATE profiles SET {assignments} WHERE id = ?",
                params,
            )
        except Exception:
            self._logger.exception("Failed to update profile id=%s", profile_id)
            raise
        return cursor.rowcount > 0
