"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from car_booking.utils.config_store import load_config_data
from car_booking.version import __app_name__, __company__

APP_NAME = __app_name__
APP_DATA_DIRNAME = "CarBooking"
HOME_ENV_VAR = "CAR_BOOKING_HOME"
DB_FILENAME = "car_booking.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
PDF_DIRNAME = "pdfs"
STORAGE_DIRNAME = "storage"
CONFIG_FILENAME = "config.json"

HOLD_DURATION_MINUTES = 10
DEPOSIT_RATE = 0.30
STORAGE_BUCKET = "customer-documents"
SIGNED_URL_EXPIRES_IN = 3600
DEFAULT_STORAGE_SECRET = "change-me"


@dataclass(frozen=True)
class PdfIssuerInfo:
    """Issuer information for booking PDFs."""

    name: str
    phone: str
    email: str
    address: str


PDF_ISSUER = PdfIssuerInfo(
    name="Bubat Rent",
    phone="+60 12-345 6789",
    email="bookings@bubatrent.local",
    address="Jalan Contoh 1, Kuala Lumpur",
)


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for CarBooking."""

    app_name: str = APP_NAME
    organization_name: str = __company__
    organization_domain: str = "bubatrent.local"


@dataclass(frozen=True)
class BookingSettings:
    """Booking rules that can be overridden in config.json."""

    hold_minutes: int = HOLD_DURATION_MINUTES
    deposit_rate: float = DEPOSIT_RATE
    storage_secret: str = DEFAULT_STORAGE_SECRET


def load_booking_settings(config_path: Path) -> BookingSettings:
    """Load booking settings, falling back to defaults for invalid values."""
    data = load_config_data(config_path)
    hold_minutes = data.get("hold_minutes", HOLD_DURATION_MINUTES)
    deposit_rate = data.get("deposit_rate", DEPOSIT_RATE)
    secret = data.get("storage_secret", DEFAULT_STORAGE_SECRET)
    if not isinstance(hold_minutes, int) or hold_minutes <= 0:
        hold_minutes = HOLD_DURATION_MINUTES
    if not isinstance(deposit_rate, (int, float)) or not 0 < deposit_rate <= 1:
        deposit_rate = DEPOSIT_RATE
    if not isinstance(secret, str) or not secret.strip():
        secret = DEFAULT_STORAGE_SECRET
    return BookingSettings(
        hold_minutes=hold_minutes,
        deposit_rate=float(deposit_rate),
        storage_secret=secret,
    )
