"""Booking lifecycle: holds, payment, admin transitions and cancellation."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from car_booking.config import BookingSettings
from car_booking.db.connection import write_transaction
from car_booking.domain.models import (
    CUSTOMER_CANCELLABLE,
    RESCHEDULABLE,
    Booking,
    BookingStatus,
    CreditType,
    Payment,
    PaymentStatus,
    PaymentType,
    can_transition,
)
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.credit_repo import CreditRepository
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.repositories.payment_repo import PaymentRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.availability_service import AvailabilityService
from car_booking.services.errors import (
    ForbiddenError,
    HoldExpiredError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.services.pricing import amount_due, calculate_price
from car_booking.utils.contact import is_valid_email, is_valid_my_phone, normalize_phone
from car_booking.utils.dates import (
    format_time_remaining,
    parse_date,
    parse_timestamp,
    to_iso_timestamp,
    utc_now,
)
from car_booking.utils.format import payment_reference


class BookingService:
    """Service for the booking state machine.

    Every state change runs inside a single ``BEGIN IMMEDIATE`` transaction,
    so the availability check and the write it guards, or a payment and the
    status flip it causes, commit together or not at all.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        settings: Optional[BookingSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._settings = settings or BookingSettings()
        self._clock = clock
        self._availability = AvailabilityService(connection, clock=clock)
        self._bookings = BookingRepository(connection)
        self._cars = CarRepo(connection)
        self._profiles = ProfileRepo(connection)
        self._payments = PaymentRepository(connection)
        self._credits = CreditRepository(connection)
        self._audit = AuditRepository(connection)
        self._fleets = FleetRepository(connection)
        self._logger = get_logger(self.__class__.__name__)

    @property
    def availability(self) -> AvailabilityService:
        return self._availability

    def _now_iso(self) -> str:
        return to_iso_timestamp(self._clock())

    def _normalize_dates(
        self, pickup_date: Optional[str | date], return_date: Optional[str | date]
    ) -> tuple[str, str]:
        try:
            pickup = parse_date(pickup_date)
            returned = parse_date(return_date)
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid dates. Check the pickup and return dates.") from exc
        if pickup is None or returned is None:
            raise ValidationError("Pickup and return dates are required.")
        if returned <= pickup:
            raise ValidationError("The return date must be after the pickup date.")
        return pickup.isoformat(), returned.isoformat()

    def _get(self, booking_id: str) -> Booking:
        booking = self._bookings.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found.")
        return booking

    def _get_owned(self, booking_id: str, user_id: Optional[str]) -> Booking:
        booking = self._get(booking_id)
        if user_id is not None and booking.user_id != user_id:
            raise ForbiddenError("You can only manage your own bookings.")
        return booking

    def _ensure_fleet_writable(self, fleet_group_id: Optional[int]) -> None:
        if fleet_group_id is None:
            return
        group = self._fleets.get_by_id(fleet_group_id)
        if group and not group.can_write:
            raise ForbiddenError(
                f"Fleet group {group.name} is {group.status.value.lower()} and cannot be modified."
            )

    def get_booking(self, booking_id: str, *, user_id: Optional[str] = None) -> Booking:
        return self._get_owned(booking_id, user_id)

    def list_for_customer(self, user_id: str) -> list[Booking]:
        self._availability.expire_holds()
        return self._bookings.list_bookings(user_id=user_id)

    def time_remaining(self, booking: Booking, now: Optional[datetime] = None) -> str:
        if booking.status != BookingStatus.HOLD:
            return ""
        return format_time_remaining(booking.hold_expires_at, now or self._clock())

    def create_hold(
        self,
        car_id: int,
        user_id: str,
        pickup_date: str | date,
        return_date: str | date,
        *,
        notes: Optional[str] = None,
    ) -> Booking:
        """Reserve ``car_id`` for the customer for a short payment window."""
        pickup_iso, return_iso = self._normalize_dates(pickup_date, return_date)
        profile = self._profiles.get_by_id(user_id)
        if not profile:
            raise NotFoundError(f"Customer {user_id} not found.")
        car = self._cars.get_by_id(car_id)
        if not car:
            raise NotFoundError(f"Car {car_id} not found.")
        if not car.is_available:
            raise ValidationError(f"{car.name} is not available for rent.")
        if car.fleet_group_id is not None:
            group = self._fleets.get_by_id(car.fleet_group_id)
            if group and not group.can_write:
                raise ValidationError(f"{car.name} is not accepting bookings right now.")

        quote = calculate_price(
            car.price_per_day,
            pickup_iso,
            return_iso,
            deposit_rate=self._settings.deposit_rate,
        )
        # Commit the sweep on its own so a rejected hold does not roll it back.
        self._availability.expire_holds()
        now = self._clock()
        now_iso = to_iso_timestamp(now)
        booking = Booking(
            id=str(uuid.uuid4()),
            car_id=car.id,
            user_id=user_id,
            pickup_date=pickup_iso,
            return_date=return_iso,
            total_price=quote.total,
            deposit_amount=quote.deposit,
            status=BookingStatus.HOLD,
            hold_expires_at=to_iso_timestamp(
                now + timedelta(minutes=self._settings.hold_minutes)
            ),
            fleet_group_id=car.fleet_group_id,
            customer_name=profile.display_name,
            customer_email=profile.email,
            customer_phone=profile.phone,
            notes=notes,
            created_at=now_iso,
            updated_at=now_iso,
        )
        with write_transaction(self._connection):
            self._availability.assert_available(car.id, pickup_iso, return_iso)
            self._bookings.insert(booking)
        self._logger.info(
            "Hold %s created car_id=%s %s..%s expires=%s",
            booking.id,
            car.id,
            pickup_iso,
            return_iso,
            booking.hold_expires_at,
        )
        return booking

    def update_customer_info(
        self,
        booking_id: str,
        user_id: str,
        name: str,
        email: str,
        phone: str,
        notes: Optional[str] = None,
    ) -> Booking:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Full name is required.")
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email address.")
        normalized_phone = normalize_phone(phone)
        if not is_valid_my_phone(normalized_phone):
            raise ValidationError("Please enter a valid Malaysian phone number.")
        with write_transaction(self._connection):
            booking = self._get_owned(booking_id, user_id)
            if booking.status != BookingStatus.HOLD:
                raise InvalidTransitionError(
                    "Customer details can only be changed while the booking is on hold."
                )
            self._bookings.update_contact(
                booking_id,
                name,
                email.strip(),
                normalized_phone,
                (notes or "").strip(),
                self._now_iso(),
            )
        return self._get(booking_id)

    def complete_payment(
        self,
        booking_id: str,
        *,
        user_id: Optional[str] = None,
        method: str = "simulated",
        use_credit: bool = True,
        simulated: bool = True,
    ) -> Payment:
        """Record the deposit and move the hold to PAID.

        A hold whose deadline has passed is expired on the spot and
        ``HoldExpiredError`` is raised; the customer has to start over.
        """
        expired = False
        payment: Optional[Payment] = None
        with write_transaction(self._connection):
            booking = self._get_owned(booking_id, user_id)
            if booking.status != BookingStatus.HOLD:
                raise InvalidTransitionError(
                    f"Booking {booking_id} is {booking.status.value} and cannot be paid."
                )
            now = self._clock()
            now_iso = to_iso_timestamp(now)
            if booking.hold_expires_at and parse_timestamp(booking.hold_expires_at) < now:
                self._bookings.set_status(
                    booking_id,
                    BookingStatus.EXPIRED,
                    now_iso,
                    expected=(BookingStatus.HOLD,),
                )
                expired = True
            else:
                credit_applied = 0.0
                if use_credit:
                    balance = self._credits.get_balance(booking.user_id)
                    credit_applied, _ = amount_due(booking.deposit_amount, balance)
                if credit_applied > 0:
                    self._credits.add(
                        booking.user_id,
                        -credit_applied,
                        CreditType.DEPOSIT_APPLIED,
                        booking_id=booking_id,
                        description="Credit applied to booking deposit",
                        fleet_group_id=booking.fleet_group_id,
                        created_at=now_iso,
                    )
                payment = self._payments.create(
                    booking_id,
                    booking.deposit_amount,
                    method,
                    payment_reference("SIM" if simulated else "PAY"),
                    payment_type=PaymentType.DEPOSIT,
                    status=PaymentStatus.COMPLETED,
                    simulated=simulated,
                    credit_applied=credit_applied,
                    fleet_group_id=booking.fleet_group_id,
                    created_at=now_iso,
                )
                moved = self._bookings.set_status(
                    booking_id,
                    BookingStatus.PAID,
                    now_iso,
                    expected=(BookingStatus.HOLD,),
                )
                if not moved:
                    raise InvalidTransitionError(f"Booking {booking_id} is no longer on hold.")
        if expired:
            self._logger.info("Payment refused, hold %s expired", booking_id)
            raise HoldExpiredError("Your hold has expired. Please start a new booking.")
        self._logger.info(
            "Deposit paid booking=%s ref=%s credit=%s",
            booking_id,
            payment.reference_number,
            payment.credit_applied,
        )
        return payment

    def _admin_transition(
        self,
        booking_id: str,
        target: BookingStatus,
        admin_id: str,
        action: str,
    ) -> Booking:
        with write_transaction(self._connection):
            booking = self._get(booking_id)
            self._ensure_fleet_writable(booking.fleet_group_id)
            if not can_transition(booking.status, target):
                raise InvalidTransitionError(
                    f"Cannot move booking from {booking.status.value} to {target.value}."
                )
            now_iso = self._now_iso()
            actual_return_date = None
            if target == BookingStatus.RETURNED:
                actual_return_date = self._clock().date().isoformat()
            moved = self._bookings.set_status(
                booking_id,
                target,
                now_iso,
                expected=(booking.status,),
                actual_return_date=actual_return_date,
            )
            if not moved:
                raise InvalidTransitionError(f"Booking {booking_id} changed concurrently.")
            if target == BookingStatus.RETURNED and booking.deposit_amount > 0:
                self._credits.add(
                    booking.user_id,
                    booking.deposit_amount,
                    CreditType.DEPOSIT_RETURN,
                    booking_id=booking_id,
                    description="Deposit returned as credit",
                    admin_id=admin_id,
                    fleet_group_id=booking.fleet_group_id,
                    created_at=now_iso,
                )
            self._audit.add(
                admin_id,
                action,
                "booking",
                booking_id,
                {"from": booking.status.value, "to": target.value},
                created_at=now_iso,
            )
        self._logger.info(
            "Booking %s moved %s -> %s by %s",
            booking_id,
            booking.status.value,
            target.value,
            admin_id,
        )
        return self._get(booking_id)

    def confirm(self, booking_id: str, admin_id: str) -> Booking:
        return self._admin_transition(
            booking_id, BookingStatus.CONFIRMED, admin_id, "CONFIRM_BOOKING"
        )

    def mark_picked_up(self, booking_id: str, admin_id: str) -> Booking:
        return self._admin_transition(
            booking_id, BookingStatus.PICKUP, admin_id, "PICKUP_BOOKING"
        )

    def mark_returned(self, booking_id: str, admin_id: str) -> Booking:
        return self._admin_transition(
            booking_id, BookingStatus.RETURNED, admin_id, "RETURN_BOOKING"
        )

    def cancel(
        self,
        booking_id: str,
        *,
        user_id: Optional[str] = None,
        admin_id: Optional[str] = None,
    ) -> Booking:
        """Cancel as the owning customer (HOLD or PAID) or as an admin."""
        if user_id is None and admin_id is None:
            raise ForbiddenError("A customer or an admin is required to cancel.")
        with write_transaction(self._connection):
            booking = self._get_owned(booking_id, user_id if admin_id is None else None)
            if admin_id is None:
                allowed = booking.status in CUSTOMER_CANCELLABLE
            else:
                self._ensure_fleet_writable(booking.fleet_group_id)
                allowed = can_transition(booking.status, BookingStatus.CANCELLED)
            if not allowed:
                raise InvalidTransitionError(
                    f"Booking {booking_id} is {booking.status.value} and cannot be cancelled."
                )
            now_iso = self._now_iso()
            moved = self._bookings.set_status(
                booking_id,
                BookingStatus.CANCELLED,
                now_iso,
                expected=(booking.status,),
            )
            if not moved:
                raise InvalidTransitionError(f"Booking {booking_id} changed concurrently.")
            if admin_id is not None:
                self._audit.add(
                    admin_id,
                    "CANCEL_BOOKING",
                    "booking",
                    booking_id,
                    {"from": booking.status.value, "to": BookingStatus.CANCELLED.value},
                    created_at=now_iso,
                )
        self._logger.info(
            "Booking %s cancelled by %s", booking_id, admin_id or user_id
        )
        return self._get(booking_id)

    def change_status(
        self, booking_id: str, new_status: BookingStatus | str, admin_id: str
    ) -> Booking:
        """Admin status dropdown; only edges of the status flow are accepted."""
        try:
            target = BookingStatus(new_status)
        except ValueError as exc:
            raise ValidationError(f"Unknown booking status: {new_status}") from exc
        if target == BookingStatus.PAID:
            return self._mark_paid(booking_id, admin_id)
        if target == BookingStatus.CONFIRMED:
            return self.confirm(booking_id, admin_id)
        if target == BookingStatus.PICKUP:
            return self.mark_picked_up(booking_id, admin_id)
        if target == BookingStatus.RETURNED:
            return self.mark_returned(booking_id, admin_id)
        if target == BookingStatus.CANCELLED:
            return self.cancel(booking_id, admin_id=admin_id)
        raise InvalidTransitionError(f"Bookings cannot be moved to {target.value} by hand.")

    def _mark_paid(self, booking_id: str, admin_id: str) -> Booking:
        # Lapsed holds are swept first so the flip to EXPIRED survives a refusal.
        self._availability.expire_holds()
        with write_transaction(self._connection):
            booking = self._get(booking_id)
            self._ensure_fleet_writable(booking.fleet_group_id)
            self.complete_payment(
                booking_id, method="manual", use_credit=False, simulated=False
            )
            self._audit.add(
                admin_id,
                "MARK_PAID",
                "booking",
                booking_id,
                {"from": BookingStatus.HOLD.value, "to": BookingStatus.PAID.value},
                created_at=self._now_iso(),
            )
        return self._get(booking_id)

    def reschedule(
        self,
        booking_id: str,
        pickup_date: str | date,
        return_date: str | date,
        admin_id: str,
    ) -> Booking:
        """Move a live booking to new dates; the agreed price is kept."""
        pickup_iso, return_iso = self._normalize_dates(pickup_date, return_date)
        self._availability.expire_holds()
        with write_transaction(self._connection):
            booking = self._get(booking_id)
            self._ensure_fleet_writable(booking.fleet_group_id)
            if booking.status not in RESCHEDULABLE:
                raise InvalidTransitionError(
                    f"Booking {booking_id} is {booking.status.value} and cannot be rescheduled."
                )
            self._availability.assert_available(
                booking.car_id,
                pickup_iso,
                return_iso,
                exclude_booking_id=booking_id,
            )
            now_iso = self._now_iso()
            self._bookings.update_dates(booking_id, pickup_iso, return_iso, now_iso)
            self._audit.add(
                admin_id,
                "UPDATE_DATES",
                "booking",
                booking_id,
                {
                    "old_pickup": booking.pickup_date,
                    "old_return": booking.return_date,
                    "new_pickup": pickup_iso,
                    "new_return": return_iso,
                },
                created_at=now_iso,
            )
        self._logger.info(
            "Booking %s rescheduled to %s..%s by %s",
            booking_id,
            pickup_iso,
            return_iso,
            admin_id,
        )
        return self._get(booking_id)
