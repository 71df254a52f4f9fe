"""Repository for car persistence."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from car_booking.db.connection import transaction
from car_booking.domain.models import Car
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import car_from_row


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class CarRepo:
    """CRUD operations for cars."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def create(
        self,
        name: str,
        brand: Optional[str],
        model: Optional[str],
        price_per_day: float,
        *,
        fleet_group_id: Optional[int] = None,
        seats: Optional[int] = None,
        transmission: Optional[str] = None,
        image_url: Optional[str] = None,
        is_available: bool = True,
        created_at: Optional[str] = None,
    ) -> Car:
        created_at = created_at or _now_iso()
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    INSERT INTO cars (
                        name,
                        brand,
                        model,
                        price_per_day,
                        is_available,
                        fleet_group_id,
                        seats,
                        transmission,
                        image_url,
                        created_at,
                        updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        name,
                        brand,
                        model,
                        price_per_day,
                        int(is_available),
                        fleet_group_id,
                        seats,
                        transmission,
                        image_url,
                        created_at,
                        created_at,
                    ),
                )
        except Exception:
            self._logger.exception("Failed to create car name=%s", name)
            raise

        return Car(
            id=cursor.lastrowid,
            name=name,
            brand=brand,
            model=model,
            price_per_day=price_per_day,
            is_available=is_available,
            fleet_group_id=fleet_group_id,
            seats=seats,
            transmission=transmission,
            image_url=image_url,
            created_at=created_at,
            updated_at=created_at,
        )

    def update_rate(
        self, car_id: int, price_per_day: float, *, updated_at: Optional[str] = None
    ) -> Optional[Car]:
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    UPDATE cars
                    SET price_per_day = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (price_per_day, updated_at or _now_iso(), car_id),
                )
        except Exception:
            self._logger.exception("Failed to update car rate id=%s", car_id)
            raise
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(car_id)

    def set_available(
        self, car_id: int, is_available: bool, *, updated_at: Optional[str] = None
    ) -> bool:
        try:
            with transaction(self._connection):
                cursor = self._connection.execute(
                    """
                    UPDATE cars
                    SET is_available = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (int(is_available), updated_at or _now_iso(), car_id),
                )
        except Exception:
            self._logger.exception("Failed to update car availability id=%s", car_id)
            raise
        return cursor.rowcount > 0

    def get_by_id(self, car_id: int) -> Optional[Car]:
        try:
            row = self._connection.execute(
                "SELECT * FROM cars WHERE id = ?",
                (car_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to get car id=%s", car_id)
            raise
        return car_from_row(row) if row else None

    def list_cars(
        self,
        *,
        available_only: bool = False,
        fleet_group_id: Optional[int] = None,
    ) -> List[Car]:
        clauses: list[str] = []
        params: list[object] = []
        if available_only:
            clauses.append("is_available = 1")
        if fleet_group_id is not None:
            clauses.append("fleet_group_id = ?")
            params.append(fleet_group_id)
        where_clause = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            rows = self._connection.execute(
                f"SELECT * FROM cars {where_clause} ORDER BY created_at DESC, id DESC",
                params,
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list cars")
            raise
        return [car_from_row(row) for row in rows]

    def count(self, *, fleet_group_id: Optional[int] = None) -> int:
        query = "SELECT COUNT(*) AS total FROM cars"
        params: list[object] = []
        if fleet_group_id is not None:
            query += " WHERE fleet_group_id = ?"
            params.append(fleet_group_id)
        try:
            row = self._connection.execute(query, params).fetchone()
        except Exception:
            self._logger.exception("Failed to count cars")
            raise
        return int(row["total"]) if row else 0
