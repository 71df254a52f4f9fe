"""Payment service for business rules."""

from __future__ import annotations

import sqlite3
from typing import Optional

from car_booking.domain.models import Payment
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.payment_repo import PaymentRepository
from car_booking.services.errors import NotFoundError


class PaymentService:
    """Read side of the payment ledger; rows are written by the booking flow."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = PaymentRepository(connection)
        self._bookings = BookingRepository(connection)

    def list_payments(self, booking_id: str) -> list[Payment]:
        if not self._bookings.get_by_id(booking_id):
            raise NotFoundError(f"Booking {booking_id} not found.")
        return self._repo.list_by_booking(booking_id)

    def latest_payment(self, booking_id: str) -> Optional[Payment]:
        payments = self.list_payments(booking_id)
        return payments[-1] if payments else None

    def has_paid_deposit(self, booking_id: str) -> bool:
        return self._repo.count_completed_deposits(booking_id) > 0

    def completed_total(self, fleet_group_id: Optional[int] = None) -> float:
        return self._repo.get_completed_total(fleet_group_id=fleet_group_id)
