"""Domain models for CarBooking."""

from car_booking.domain.models import (
    AuditLog,
    Booking,
    BookingStatus,
    Car,
    CreditTransaction,
    CreditType,
    CustomerDocument,
    DocumentKind,
    ExpenseClaim,
    ExpenseStatus,
    FleetGroup,
    FleetStatus,
    Payment,
    PaymentStatus,
    PaymentType,
    PdfKind,
    PriceQuote,
    Profile,
    RESERVING_STATUSES,
    STATUS_FLOW,
    TERMINAL_STATUSES,
    UserRole,
)

__all__ = [
    "AuditLog",
    "Booking",
    "BookingStatus",
    "Car",
    "CreditTransaction",
    "CreditType",
    "CustomerDocument",
    "DocumentKind",
    "ExpenseClaim",
    "ExpenseStatus",
    "FleetGroup",
    "FleetStatus",
    "Payment",
    "PaymentStatus",
    "PaymentType",
    "PdfKind",
    "PriceQuote",
    "Profile",
    "RESERVING_STATUSES",
    "STATUS_FLOW",
    "TERMINAL_STATUSES",
    "UserRole",
]
