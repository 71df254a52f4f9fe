"""Database schema management."""

from __future__ import annotations

from pathlib import Path

from car_booking.db.connection import get_connection
from car_booking.db.migrations import apply_migrations


def init_db(database_path: Path) -> int:
    """Create or upgrade the ledger at ``database_path``; returns the schema version."""
    connection = get_connection(database_path)
    try:
        return apply_migrations(connection)
    finally:
        connection.close()
