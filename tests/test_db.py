from __future__ import annotations

import sqlite3

import pytest

from car_booking.db.connection import get_connection, write_transaction
from car_booking.db.migrations import MIGRATIONS, apply_migrations
from car_booking.db.schema import init_db


def test_migrations_are_idempotent(tmp_path):
    db_path = tmp_path / "ledger.db"
    latest = MIGRATIONS[-1].version
    assert init_db(db_path) == latest
    assert init_db(db_path) == latest

    connection = get_connection(db_path)
    try:
        tables = {
            row["name"]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
    finally:
        connection.close()
    assert {
        "bookings",
        "cars",
        "payments",
        "profiles",
        "fleet_groups",
        "audit_logs",
        "credit_transactions",
        "customer_documents",
        "expense_claims",
        "fleet_memberships",
        "change_requests",
    } <= tables


def _insert_booking(connection, car_id, user_id, **overrides):
    values = {
        "id": "b-1",
        "car_id": car_id,
        "user_id": user_id,
        "pickup_date": "2024-06-01",
        "return_date": "2024-06-04",
        "total_price": 450,
        "deposit_amount": 135,
        "status": "HOLD",
        "hold_expires_at": "2024-06-01T09:10:00+00:00",
    }
    values.update(overrides)
    columns = ", ".join(values)
    placeholders = ", ".join("?" for _ in values)
    connection.execute(
        f"INSERT INTO bookings ({columns}) VALUES ({placeholders})", list(values.values())
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"return_date": "2024-06-01"},
        {"deposit_amount": 500},
        {"status": "PAID"},
        {"hold_expires_at": None},
        {"status": "LOST", "hold_expires_at": None},
    ],
)
def test_booking_invariants_are_enforced_by_the_schema(connection, car, customer, overrides):
    with pytest.raises(sqlite3.IntegrityError):
        _insert_booking(connection, car.id, customer.id, **overrides)
    connection.rollback()


def test_write_transaction_rolls_back_on_error(connection, car, customer):
    with pytest.raises(RuntimeError):
        with write_transaction(connection):
            _insert_booking(connection, car.id, customer.id)
            raise RuntimeError("boom")
    assert connection.execute("SELECT COUNT(*) FROM bookings").fetchone()[0] == 0


def test_nested_write_transaction_joins_outer(connection, car, customer):
    with write_transaction(connection):
        with write_transaction(connection):
            _insert_booking(connection, car.id, customer.id)
        assert connection.in_transaction
    assert not connection.in_transaction
    assert connection.execute("SELECT COUNT(*) FROM bookings").fetchone()[0] == 1


def test_write_transaction_takes_the_write_lock(connection, car, customer):
    db_path = connection.execute("PRAGMA database_list").fetchone()["file"]
    other = sqlite3.connect(db_path, timeout=0)
    try:
        with write_transaction(connection):
            with pytest.raises(sqlite3.OperationalError):
                other.execute("BEGIN IMMEDIATE")
    finally:
        other.close()
