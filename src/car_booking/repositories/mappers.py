"""SQLite row mappers for domain models."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict

from car_booking.domain.models import (
    AuditLog,
    Booking,
    BookingStatus,
    Car,
    ChangeRequest,
    ChangeRequestStatus,
    CreditTransaction,
    CreditType,
    CustomerDocument,
    DocumentKind,
    ExpenseClaim,
    ExpenseStatus,
    FleetGroup,
    FleetMembership,
    FleetStatus,
    MembershipRole,
    Payment,
    PaymentStatus,
    PaymentType,
    Profile,
    UserRole,
)


def _row_value(row: sqlite3.Row, key: str) -> Any:
    return row[key] if key in row.keys() else None


def fleet_group_from_row(row: sqlite3.Row) -> FleetGroup:
    return FleetGroup(
        id=row["id"],
        name=row["name"],
        status=FleetStatus(row["status"]),
        is_super_group=bool(_row_value(row, "is_super_group") or 0),
        rejection_reason=_row_value(row, "rejection_reason"),
        suspension_reason=_row_value(row, "suspension_reason"),
        suspension_notes=_row_value(row, "suspension_notes"),
        verified_at=_row_value(row, "verified_at"),
        verified_by=_row_value(row, "verified_by"),
        suspended_at=_row_value(row, "suspended_at"),
        suspended_by=_row_value(row, "suspended_by"),
        created_at=_row_value(row, "created_at"),
    )


def car_from_row(row: sqlite3.Row) -> Car:
    return Car(
        id=row["id"],
        name=row["name"],
        brand=_row_value(row, "brand"),
        model=_row_value(row, "model"),
        price_per_day=float(row["price_per_day"]),
        is_available=bool(row["is_available"]),
        fleet_group_id=_row_value(row, "fleet_group_id"),
        seats=_row_value(row, "seats"),
        transmission=_row_value(row, "transmission"),
        image_url=_row_value(row, "image_url"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def car_to_record(car: Car) -> Dict[str, Any]:
    return {
        "id": car.id,
        "name": car.name,
        "brand": car.brand,
        "model": car.model,
        "price_per_day": car.price_per_day,
        "is_available": int(car.is_available),
        "fleet_group_id": car.fleet_group_id,
        "seats": car.seats,
        "transmission": car.transmission,
        "image_url": car.image_url,
        "created_at": car.created_at,
        "updated_at": car.updated_at,
    }


def profile_from_row(row: sqlite3.Row) -> Profile:
    return Profile(
        id=row["id"],
        display_name=row["display_name"],
        email=_row_value(row, "email"),
        phone=_row_value(row, "phone"),
        role=UserRole(row["role"]),
        is_verified=bool(_row_value(row, "is_verified") or 0),
        ic_number=_row_value(row, "ic_number"),
        licence_expiry=_row_value(row, "licence_expiry"),
        verified_at=_row_value(row, "verified_at"),
        verified_by=_row_value(row, "verified_by"),
        created_at=_row_value(row, "created_at"),
    )


def booking_from_row(row: sqlite3.Row) -> Booking:
    return Booking(
        id=row["id"],
        car_id=row["car_id"],
        user_id=row["user_id"],
        pickup_date=row["pickup_date"],
        return_date=row["return_date"],
        total_price=float(row["total_price"]),
        deposit_amount=float(row["deposit_amount"]),
        status=BookingStatus(row["status"]),
        hold_expires_at=_row_value(row, "hold_expires_at"),
        fleet_group_id=_row_value(row, "fleet_group_id"),
        customer_name=_row_value(row, "customer_name"),
        customer_email=_row_value(row, "customer_email"),
        customer_phone=_row_value(row, "customer_phone"),
        notes=_row_value(row, "notes"),
        actual_return_date=_row_value(row, "actual_return_date"),
        created_at=_row_value(row, "created_at"),
        updated_at=_row_value(row, "updated_at"),
    )


def booking_to_record(booking: Booking) -> Dict[str, Any]:
    return {
        "id": booking.id,
        "car_id": booking.car_id,
        "user_id": booking.user_id,
        "fleet_group_id": booking.fleet_group_id,
        "pickup_date": booking.pickup_date,
        "return_date": booking.return_date,
        "total_price": booking.total_price,
        "deposit_amount": booking.deposit_amount,
        "status": booking.status.value,
        "hold_expires_at": booking.hold_expires_at,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "customer_phone": booking.customer_phone,
        "notes": booking.notes,
        "actual_return_date": booking.actual_return_date,
        "created_at": booking.created_at,
        "updated_at": booking.updated_at,
    }


def payment_from_row(row: sqlite3.Row) -> Payment:
    return Payment(
        id=row["id"],
        booking_id=row["booking_id"],
        amount=float(row["amount"]),
        payment_method=row["payment_method"],
        payment_type=PaymentType(row["payment_type"]),
        status=PaymentStatus(row["status"]),
        reference_number=row["reference_number"],
        simulated=bool(row["simulated"]),
        credit_applied=float(_row_value(row, "credit_applied") or 0),
        created_at=_row_value(row, "created_at"),
    )


def credit_transaction_from_row(row: sqlite3.Row) -> CreditTransaction:
    return CreditTransaction(
        id=row["id"],
        user_id=row["user_id"],
        amount=float(row["amount"]),
        type=CreditType(row["type"]),
        booking_id=_row_value(row, "booking_id"),
        description=_row_value(row, "description"),
        admin_id=_row_value(row, "admin_id"),
        fleet_group_id=_row_value(row, "fleet_group_id"),
        created_at=_row_value(row, "created_at"),
    )


def audit_log_from_row(row: sqlite3.Row) -> AuditLog:
    raw_details = _row_value(row, "details") or "{}"
    try:
        details = json.loads(raw_details)
    except json.JSONDecodeError:
        details = {"raw": raw_details}
    return AuditLog(
        id=row["id"],
        admin_id=_row_value(row, "admin_id"),
        action=row["action"],
        resource_type=row["resource_type"],
        resource_id=row["resource_id"],
        details=details,
        created_at=_row_value(row, "created_at"),
    )


def customer_document_from_row(row: sqlite3.Row) -> CustomerDocument:
    return CustomerDocument(
        id=row["id"],
        user_id=row["user_id"],
        kind=DocumentKind(row["kind"]),
        file_path=row["file_path"],
        booking_id=_row_value(row, "booking_id"),
        verified_by=_row_value(row, "verified_by"),
        verified_at=_row_value(row, "verified_at"),
        created_at=_row_value(row, "created_at"),
    )


def expense_claim_from_row(row: sqlite3.Row) -> ExpenseClaim:
    return ExpenseClaim(
        id=row["id"],
        car_id=row["car_id"],
        category=row["category"],
        description=_row_value(row, "description"),
        amount=float(row["amount"]),
        status=ExpenseStatus(row["status"]),
        fleet_group_id=_row_value(row, "fleet_group_id"),
        claimed_by=_row_value(row, "claimed_by"),
        receipt_path=_row_value(row, "receipt_path"),
        completed_at=_row_value(row, "completed_at"),
        created_at=_row_value(row, "created_at"),
    )


def fleet_membership_from_row(row: sqlite3.Row) -> FleetMembership:
    return FleetMembership(
        id=row["id"],
        user_id=row["user_id"],
        fleet_group_id=row["fleet_group_id"],
        role=MembershipRole(row["role"]),
        created_at=_row_value(row, "created_at"),
    )


def change_request_from_row(row: sqlite3.Row) -> ChangeRequest:
    return ChangeRequest(
        id=row["id"],
        customer_id=row["customer_id"],
        changes=json.loads(row["changes"] or "{}"),
        status=ChangeRequestStatus(row["status"]),
        fleet_group_id=_row_value(row, "fleet_group_id"),
        requested_by=_row_value(row, "requested_by"),
        rejection_reason=_row_value(row, "rejection_reason"),
        reviewed_by=_row_value(row, "reviewed_by"),
        reviewed_at=_row_value(row, "reviewed_at"),
        created_at=_row_value(row, "created_at"),
    )
