"""Database migrations for SQLite schema versioning."""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3

from car_booking.db.connection import transaction
from car_booking.logging_config import get_logger


@dataclass(frozen=True)
class Migration:
    version: int
    script: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="""
        CREATE TABLE IF NOT EXISTS fleet_groups (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            status TEXT NOT NULL DEFAULT 'PENDING_VERIFICATION'
                CHECK (status IN ('PENDING_VERIFICATION', 'VERIFIED', 'REJECTED', 'SUSPENDED')),
            is_super_group INTEGER NOT NULL DEFAULT 0,
            rejection_reason TEXT,
            suspension_reason TEXT,
            suspension_notes TEXT,
            verified_at TEXT,
            verified_by TEXT,
            suspended_at TEXT,
            suspended_by TEXT,
            created_at TEXT
        );

        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            display_name TEXT NOT NULL,
            email TEXT,
            phone TEXT,
            role TEXT NOT NULL DEFAULT 'customer'
                CHECK (role IN ('customer', 'admin', 'super_admin')),
            is_verified INTEGER NOT NULL DEFAULT 0,
            ic_number TEXT,
            licence_expiry TEXT,
            verified_at TEXT,
            verified_by TEXT,
            created_at TEXT
        );

        CREATE TABLE IF NOT EXISTS cars (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            brand TEXT,
            model TEXT,
            price_per_day REAL NOT NULL CHECK (price_per_day > 0),
            is_available INTEGER NOT NULL DEFAULT 1,
            fleet_group_id INTEGER,
            seats INTEGER,
            transmission TEXT,
            image_url TEXT,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (fleet_group_id) REFERENCES fleet_groups(id)
        );

        CREATE TABLE IF NOT EXISTS bookings (
            id TEXT PRIMARY KEY,
            car_id INTEGER NOT NULL,
            user_id TEXT NOT NULL,
            fleet_group_id INTEGER,
            pickup_date TEXT NOT NULL,
            return_date TEXT NOT NULL,
            total_price REAL NOT NULL CHECK (total_price >= 0),
            deposit_amount REAL NOT NULL CHECK (deposit_amount >= 0),
            status TEXT NOT NULL CHECK (
                status IN ('HOLD', 'PAID', 'CONFIRMED', 'PICKUP', 'RETURNED', 'CANCELLED', 'EXPIRED')
            ),
            hold_expires_at TEXT,
            customer_name TEXT,
            customer_email TEXT,
            customer_phone TEXT,
            notes TEXT,
            actual_return_date TEXT,
            created_at TEXT,
            updated_at TEXT,
            FOREIGN KEY (car_id) REFERENCES cars(id),
            FOREIGN KEY (user_id) REFERENCES profiles(id),
            CHECK (return_date > pickup_date),
            CHECK (deposit_amount <= total_price),
            CHECK ((status = 'HOLD') = (hold_expires_at IS NOT NULL))
        );

        CREATE INDEX IF NOT EXISTS idx_bookings_car_dates
            ON bookings(car_id, pickup_date, return_date);
        CREATE INDEX IF NOT EXISTS idx_bookings_status_expiry
            ON bookings(status, hold_expires_at);
        CREATE INDEX IF NOT EXISTS idx_bookings_user_id
            ON bookings(user_id);

        CREATE TABLE IF NOT EXISTS payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id TEXT NOT NULL,
            amount REAL NOT NULL CHECK (amount >= 0),
            payment_method TEXT NOT NULL,
            payment_type TEXT NOT NULL DEFAULT 'deposit',
            status TEXT NOT NULL CHECK (status IN ('pending', 'completed')),
            reference_number TEXT NOT NULL,
            simulated INTEGER NOT NULL DEFAULT 0,
            credit_applied REAL NOT NULL DEFAULT 0,
            fleet_group_id INTEGER,
            created_at TEXT,
            FOREIGN KEY (booking_id) REFERENCES bookings(id)
        );

        CREATE INDEX IF NOT EXISTS idx_payments_booking_id
            ON payments(booking_id);
        """,
    ),
    Migration(
        version=2,
        script="""
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            admin_id TEXT,
            action TEXT NOT NULL,
            resource_type TEXT NOT NULL,
            resource_id TEXT NOT NULL,
            details TEXT NOT NULL DEFAULT '{}',
            created_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_audit_logs_resource_id
            ON audit_logs(resource_id);

        CREATE TABLE IF NOT EXISTS credit_transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            booking_id TEXT,
            amount REAL NOT NULL,
            type TEXT NOT NULL CHECK (type IN ('deposit_return', 'deposit_applied')),
            description TEXT,
            admin_id TEXT,
            fleet_group_id INTEGER,
            created_at TEXT,
            FOREIGN KEY (user_id) REFERENCES profiles(id)
        );

        CREATE INDEX IF NOT EXISTS idx_credit_transactions_user_id
            ON credit_transactions(user_id);
        """,
    ),
    Migration(
        version=3,
        script="""
        CREATE TABLE IF NOT EXISTS customer_documents (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            booking_id TEXT,
            kind TEXT NOT NULL,
            file_path TEXT NOT NULL,
            verified_by TEXT,
            verified_at TEXT,
            created_at TEXT,
            FOREIGN KEY (user_id) REFERENCES profiles(id),
            FOREIGN KEY (booking_id) REFERENCES bookings(id)
        );

        CREATE INDEX IF NOT EXISTS idx_customer_documents_booking_id
            ON customer_documents(booking_id);

        CREATE TABLE IF NOT EXISTS expense_claims (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            car_id INTEGER NOT NULL,
            fleet_group_id INTEGER,
            category TEXT NOT NULL,
            description TEXT,
            amount REAL NOT NULL CHECK (amount > 0),
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'completed')),
            claimed_by TEXT,
            receipt_path TEXT,
            completed_at TEXT,
            created_at TEXT,
            FOREIGN KEY (car_id) REFERENCES cars(id)
        );
        """,
    ),
    Migration(
        version=4,
        script="""
        CREATE TABLE IF NOT EXISTS fleet_memberships (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL,
            fleet_group_id INTEGER NOT NULL,
            role TEXT NOT NULL DEFAULT 'fleet_staff'
                CHECK (role IN ('fleet_admin', 'fleet_staff')),
            created_at TEXT,
            UNIQUE (user_id, fleet_group_id),
            FOREIGN KEY (user_id) REFERENCES profiles(id),
            FOREIGN KEY (fleet_group_id) REFERENCES fleet_groups(id)
        );

        CREATE TABLE IF NOT EXISTS change_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_id TEXT NOT NULL,
            fleet_group_id INTEGER,
            requested_by TEXT,
            changes TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED')),
            rejection_reason TEXT,
            reviewed_by TEXT,
            reviewed_at TEXT,
            created_at TEXT,
            FOREIGN KEY (customer_id) REFERENCES profiles(id),
            FOREIGN KEY (fleet_group_id) REFERENCES fleet_groups(id)
        );

        CREATE INDEX IF NOT EXISTS idx_change_requests_fleet_status
            ON change_requests(fleet_group_id, status);
        """,
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS app_meta (
            schema_version INTEGER NOT NULL
        );
        """
    )
    row = connection.execute(
        "SELECT schema_version FROM app_meta LIMIT 1"
    ).fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending database migrations and return the resulting version."""
    logger = get_logger(__name__)
    with transaction(connection):
        current_version = _fetch_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue

        with transaction(connection):
            connection.executescript(migration.script)
            connection.execute(
                "UPDATE app_meta SET schema_version = ?",
                (migration.version,),
            )

        logger.info("Applied schema migration version=%s", migration.version)
        current_version = migration.version
    return current_version
