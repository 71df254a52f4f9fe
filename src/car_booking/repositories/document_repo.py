"""Repository for customer-submitted identity documents."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import CustomerDocument, DocumentKind
from car_booking.logging_config import get_logger
from car_booking.repositories.mappers import customer_document_from_row


class DocumentRepository:
    """Data access for uploaded customer documents."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def add(
        self,
        user_id: str,
        kind: DocumentKind,
        file_path: str,
        *,
        booking_id: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> CustomerDocument:
        try:
            cursor = self._connection.execute(
                """
                INSERT INTO customer_documents (
                    user_id,
                    booking_id,
                    kind,
                    file_path,
                    created_at
                )
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, booking_id, kind.value, file_path, created_at),
            )
        except Exception:
            self._logger.exception(
                "Failed to insert document user_id=%s kind=%s", user_id, kind.value
            )
            raise
        return CustomerDocument(
            id=int(cursor.lastrowid),
            user_id=user_id,
            kind=kind,
            file_path=file_path,
            booking_id=booking_id,
            created_at=created_at,
        )

    def get_by_id(self, document_id: int) -> Optional[CustomerDocument]:
        try:
            row = self._connection.execute(
                "SELECT * FROM customer_documents WHERE id = ?",
                (document_id,),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch document id=%s", document_id)
            raise
        return customer_document_from_row(row) if row else None

    def list_for_booking(self, booking_id: str) -> list[CustomerDocument]:
        try:
            rows = self._connection.execute(
                """
                SELECT *
                FROM customer_documents
                WHERE booking_id = ?
                ORDER BY created_at, id
                """,
                (booking_id,),
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list documents booking_id=%s", booking_id
            )
            raise
        return [customer_document_from_row(row) for row in rows]

    def mark_verified(self, document_id: int, admin_id: str, verified_at: str) -> bool:
        try:
            cursor = self._connection.execute(
                """
                UPDATE customer_documents
                SET verified_by = ?,
                    verified_at = ?
                WHERE id = ?
                """,
                (admin_id, verified_at, document_id),
            )
        except Exception:
            self._logger.exception("Failed to verify document id=%s", document_id)
            raise
        return cursor.rowcount > 0
