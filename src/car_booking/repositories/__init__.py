"""Repositories for data access."""

from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.change_request_repo import ChangeRequestRepository
from car_booking.repositories.credit_repo import CreditRepository
from car_booking.repositories.document_repo import DocumentRepository
from car_booking.repositories.expense_repo import ExpenseRepo
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.repositories.mappers import (
    booking_from_row,
    booking_to_record,
    car_from_row,
    car_to_record,
)
from car_booking.repositories.membership_repo import MembershipRepository
from car_booking.repositories.payment_repo import PaymentRepository
from car_booking.repositories.profile_repo import ProfileRepo

__all__ = [
    "AuditRepository",
    "BookingRepository",
    "booking_from_row",
    "booking_to_record",
    "CarRepo",
    "car_from_row",
    "car_to_record",
    "ChangeRequestRepository",
    "CreditRepository",
    "DocumentRepository",
    "ExpenseRepo",
    "FleetRepository",
    "MembershipRepository",
    "PaymentRepository",
    "ProfileRepo",
]
