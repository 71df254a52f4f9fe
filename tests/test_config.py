from __future__ import annotations

from car_booking.config import (
    DEFAULT_STORAGE_SECRET,
    DEPOSIT_RATE,
    HOLD_DURATION_MINUTES,
    load_booking_settings,
)
from car_booking.domain.models import Booking, BookingStatus, PdfKind
from car_booking.paths import get_app_data_dir, get_db_path, get_logs_dir
from car_booking.utils.config_store import load_config_data, save_config_data
from car_booking.utils.documents import (
    DocumentsSettings,
    build_document_filename,
    resolve_pdfs_dir,
    sanitize_filename,
    save_documents_settings,
)


def test_defaults_without_config(tmp_path):
    settings = load_booking_settings(tmp_path / "missing.json")
    assert settings.hold_minutes == HOLD_DURATION_MINUTES
    assert settings.deposit_rate == DEPOSIT_RATE
    assert settings.storage_secret == DEFAULT_STORAGE_SECRET


def test_overrides_and_invalid_values(tmp_path):
    config_path = tmp_path / "config.json"
    save_config_data(config_path, {"hold_minutes": 20, "deposit_rate": 0.5, "storage_secret": "s3"})
    settings = load_booking_settings(config_path)
    assert (settings.hold_minutes, settings.deposit_rate, settings.storage_secret) == (20, 0.5, "s3")

    save_config_data(config_path, {"hold_minutes": -1, "deposit_rate": 2, "storage_secret": " "})
    settings = load_booking_settings(config_path)
    assert settings.hold_minutes == HOLD_DURATION_MINUTES
    assert settings.deposit_rate == DEPOSIT_RATE
    assert settings.storage_secret == DEFAULT_STORAGE_SECRET


def test_corrupt_config_is_ignored(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json", encoding="utf-8")
    assert load_config_data(config_path) == {}


def test_home_override(tmp_path, monkeypatch):
    monkeypatch.setenv("CAR_BOOKING_HOME", str(tmp_path / "home"))
    assert get_app_data_dir() == tmp_path / "home"
    assert get_db_path() == tmp_path / "home" / "car_booking.db"
    assert get_logs_dir().is_dir()


def test_pdf_file_names_and_output_dir(tmp_path):
    booking = Booking(
        id="b-1",
        car_id=1,
        user_id="u-1",
        pickup_date="2024-06-01",
        return_date="2024-06-04",
        total_price=450,
        deposit_amount=135,
        status=BookingStatus.PAID,
        customer_name="Siti  Nur/Aisyah",
    )
    assert sanitize_filename("  ") == "Customer"
    assert build_document_filename(booking, PdfKind.CONFIRMATION) == (
        "Siti_NurAisyah_2024-06-01_Confirmation.pdf"
    )

    config_path = tmp_path / "config.json"
    default_dir = tmp_path / "pdfs"
    assert resolve_pdfs_dir(config_path, default_dir) == default_dir
    save_documents_settings(config_path, DocumentsSettings(pdfs_dir=str(tmp_path / "elsewhere")))
    assert resolve_pdfs_dir(config_path, default_dir) == tmp_path / "elsewhere"
