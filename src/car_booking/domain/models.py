"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BookingStatus(str, Enum):
    HOLD = "HOLD"
    PAID = "PAID"
    CONFIRMED = "CONFIRMED"
    PICKUP = "PICKUP"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentType(str, Enum):
    DEPOSIT = "deposit"
    FULL = "full"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class MembershipRole(str, Enum):
    FLEET_ADMIN = "fleet_admin"
    FLEET_STAFF = "fleet_staff"


class ChangeRequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FleetStatus(str, Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"


class CreditType(str, Enum):
    DEPOSIT_RETURN = "deposit_return"
    DEPOSIT_APPLIED = "deposit_applied"


class DocumentKind(str, Enum):
    IC_FRONT = "ic_front"
    IC_BACK = "ic_back"
    LICENCE = "licence"
    SELFIE = "selfie"
    RECEIPT = "receipt"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PdfKind(str, Enum):
    CONFIRMATION = "confirmation"
    RECEIPT = "receipt"


# Statuses that count against a car's availability.
RESERVING_STATUSES = (
    BookingStatus.HOLD,
    BookingStatus.PAID,
    BookingStatus.CONFIRMED,
    BookingStatus.PICKUP,
)

ACTIVE_STATUSES = RESERVING_STATUSES

TERMINAL_STATUSES = (
    BookingStatus.RETURNED,
    BookingStatus.CANCELLED,
    BookingStatus.EXPIRED,
)

STATUS_FLOW: dict[BookingStatus, tuple[BookingStatus, ...]] = {
    BookingStatus.HOLD: (BookingStatus.PAID, BookingStatus.CANCELLED),
    BookingStatus.PAID: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED: (BookingStatus.PICKUP, BookingStatus.CANCELLED),
    BookingStatus.PICKUP: (BookingStatus.RETURNED,),
    BookingStatus.RETURNED: (),
    BookingStatus.CANCELLED: (),
    BookingStatus.EXPIRED: (),
}

CUSTOMER_CANCELLABLE = (BookingStatus.HOLD, BookingStatus.PAID)
RESCHEDULABLE = (BookingStatus.HOLD, BookingStatus.PAID, BookingStatus.CONFIRMED)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in STATUS_FLOW.get(current, ())


@dataclass(slots=True, frozen=True)
class PriceQuote:
    days: int
    total: float
    deposit: float


@dataclass(slots=True)
class FleetGroup:
    id: Optional[int]
    name: str
    status: FleetStatus = FleetStatus.PENDING_VERIFICATION
    is_super_group: bool = False
    rejection_reason: Optional[str] = None
    suspension_reason: Optional[str] = None
    suspension_notes: Optional[str] = None
    verified_at: Optional[str] = None
    verified_by: Optional[str] = None
    suspended_at: Optional[str] = None
    suspended_by: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def can_write(self) -> bool:
        if self.is_super_group:
            return True
        return self.status == FleetStatus.VERIFIED


@dataclass(slots=True)
class Car:
    id: Optional[int]
    name: str
    brand: Optional[str]
    model: Optional[str]
    price_per_day: float
    is_available: bool = True
    fleet_group_id: Optional[int] = None
    seats: Optional[int] = None
    transmission: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Profile:
    id: str
    display_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    is_verified: bool = False
    ic_number: Optional[str] = None
    licence_expiry: Optional[str] = None
    verified_at: Optional[str] = None
    verified_by: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(slots=True)
class Booking:
    id: str
    car_id: int
    user_id: str
    pickup_date: str
    return_date: str
    total_price: float
    deposit_amount: float
    status: BookingStatus
    hold_expires_at: Optional[str] = None
    fleet_group_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    actual_return_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(slots=True)
class Payment:
    id: Optional[int]
    booking_id: str
    amount: float
    payment_method: str
    payment_type: PaymentType
    status: PaymentStatus
    reference_number: str
    simulated: bool
    credit_applied: float = 0.0
    created_at: Optional[str] = None


@dataclass(slots=True)
class CreditTransaction:
    id: Optional[int]
    user_id: str
    amount: float
    type: CreditType
    booking_id: Optional[str] = None
    description: Optional[str] = None
    admin_id: Optional[str] = None
    fleet_group_id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass(slots=True)
class AuditLog:
    id: Optional[int]
    admin_id: Optional[str]
    action: str
    resource_type: str
    resource_id: str
    details: dict
    created_at: Optional[str] = None


@dataclass(slots=True)
class CustomerDocument:
    id: Optional[int]
    user_id: str
    kind: DocumentKind
    file_path: str
    booking_id: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(slots=True)
class ExpenseClaim:
    id: Optional[int]
    car_id: int
    category: str
    description: Optional[str]
    amount: float
    status: ExpenseStatus
    fleet_group_id: Optional[int] = None
    claimed_by: Optional[str] = None
    receipt_path: Optional[str] = None
    completed_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass(slots=True)
class FleetMembership:
    id: Optional[int]
    user_id: str
    fleet_group_id: int
    role: MembershipRole = MembershipRole.FLEET_STAFF
    created_at: Optional[str] = None


@dataclass(slots=True)
class ChangeRequest:
    """Pending edit of a customer's profile; ``changes`` maps field -> {old, new}."""

    id: Optional[int]
    customer_id: str
    changes: dict
    status: ChangeRequestStatus = ChangeRequestStatus.PENDING
    fleet_group_id: Optional[int] = None
    requested_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    created_at: Optional[str] = None
