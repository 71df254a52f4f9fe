"""PDF output settings and file naming."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from car_booking.domain.models import Booking, PdfKind
from car_booking.utils.config_store import load_config_data, save_config_data


@dataclass(frozen=True)
class DocumentsSettings:
    """Where generated booking PDFs are written."""

    pdfs_dir: str | None = None


def sanitize_filename(value: str) -> str:
    """Normalize text to be safe for filenames."""
    cleaned = " ".join(value.strip().split())
    cleaned = cleaned.replace(" ", "_")
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", cleaned)
    return cleaned or "Customer"


def build_document_filename(booking: Booking, kind: PdfKind) -> str:
    """e.g. ``Aina_Rahman_2024-06-01_Receipt.pdf``."""
    base_name = sanitize_filename(booking.customer_name or "")
    label = {
        PdfKind.CONFIRMATION: "Confirmation",
        PdfKind.RECEIPT: "Receipt",
    }[kind]
    return f"{base_name}_{booking.pickup_date}_{label}.pdf"


def load_documents_settings(config_path: Path) -> DocumentsSettings:
    data = load_config_data(config_path)
    value = data.get("pdfs_dir")
    if isinstance(value, str) and value.strip():
        return DocumentsSettings(pdfs_dir=value)
    return DocumentsSettings()


def save_documents_settings(config_path: Path, settings: DocumentsSettings) -> None:
    payload = load_config_data(config_path)
    payload["pdfs_dir"] = settings.pdfs_dir
    save_config_data(config_path, payload)


def resolve_pdfs_dir(config_path: Path, default_dir: Path) -> Path:
    settings = load_documents_settings(config_path)
    if settings.pdfs_dir:
        return Path(settings.pdfs_dir).expanduser()
    return default_dir
