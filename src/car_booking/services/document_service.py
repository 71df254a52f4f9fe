"""Customer identity documents and booking PDFs."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from car_booking.config import SIGNED_URL_EXPIRES_IN
from car_booking.db.connection import write_transaction
from car_booking.domain.models import CustomerDocument, DocumentKind, PdfKind
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.booking_repo import BookingRepository
from car_booking.repositories.car_repo import CarRepo
from car_booking.repositories.document_repo import DocumentRepository
from car_booking.repositories.payment_repo import PaymentRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.errors import ForbiddenError, NotFoundError, ValidationError
from car_booking.utils.dates import to_iso_timestamp, utc_now
from car_booking.utils.documents import build_document_filename, sanitize_filename
from car_booking.utils.pdf_generator import generate_booking_pdf
from car_booking.utils.storage import DocumentStorage

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png", ".pdf")


class DocumentService:
    """Uploads, admin review and PDF rendering for bookings."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        storage: DocumentStorage,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._storage = storage
        self._repo = DocumentRepository(connection)
        self._bookings = BookingRepository(connection)
        self._cars = CarRepo(connection)
        self._payments = PaymentRepository(connection)
        self._profiles = ProfileRepo(connection)
        self._audit = AuditRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def upload(
        self,
        user_id: str,
        kind: DocumentKind | str,
        filename: str,
        data: bytes,
        *,
        booking_id: Optional[str] = None,
    ) -> CustomerDocument:
        try:
            kind = DocumentKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Unknown document type: {kind}") from exc
        if not data:
            raise ValidationError("The uploaded file is empty.")
        suffix = PurePosixPath(filename or "").suffix.lower()
        if suffix not in ALLOWED_EXTENSIONS:
            raise ValidationError("Only JPG, PNG or PDF files can be uploaded.")
        if not self._profiles.get_by_id(user_id):
            raise NotFoundError(f"Customer {user_id} not found.")
        if booking_id is not None:
            booking = self._bookings.get_by_id(booking_id)
            if not booking:
                raise NotFoundError(f"Booking {booking_id} not found.")
            if booking.user_id != user_id:
                raise ForbiddenError("You can only attach documents to your own bookings.")

        now = self._clock()
        now_iso = to_iso_timestamp(now)
        folder = booking_id or "profile"
        stem = sanitize_filename(PurePosixPath(filename).stem)
        object_path = f"{user_id}/{folder}/{kind.value}_{int(now.timestamp())}_{stem}{suffix}"
        self._storage.upload(object_path, data)
        with write_transaction(self._connection):
            document = self._repo.add(
                user_id,
                kind,
                object_path,
                booking_id=booking_id,
                created_at=now_iso,
            )
        self._logger.info("Document %s uploaded for %s", kind.value, user_id)
        return document

    def list_for_booking(self, booking_id: str, admin_id: str) -> list[CustomerDocument]:
        """Admin view of a renter's documents; each viewing is audited."""
        if not self._bookings.get_by_id(booking_id):
            raise NotFoundError(f"Booking {booking_id} not found.")
        with write_transaction(self._connection):
            documents = self._repo.list_for_booking(booking_id)
            self._audit.add(
                admin_id,
                "VIEW_DOCUMENTS",
                "booking",
                booking_id,
                {"count": len(documents)},
                created_at=to_iso_timestamp(self._clock()),
            )
        return documents

    def verify(self, document_id: int, admin_id: str) -> CustomerDocument:
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            document = self._repo.get_by_id(document_id)
            if not document:
                raise NotFoundError(f"Document {document_id} not found.")
            self._repo.mark_verified(document_id, admin_id, now_iso)
            self._audit.add(
                admin_id,
                "VERIFY_DOCUMENT",
                "customer_document",
                document_id,
                {"kind": document.kind.value, "user_id": document.user_id},
                created_at=now_iso,
            )
        self._logger.info("Document %s verified by %s", document_id, admin_id)
        return self._repo.get_by_id(document_id)

    def signed_url(
        self, document_id: int, expires_in: int = SIGNED_URL_EXPIRES_IN
    ) -> str:
        document = self._repo.get_by_id(document_id)
        if not document:
            raise NotFoundError(f"Document {document_id} not found.")
        return self._storage.signed_url(
            document.file_path, expires_in, now=self._clock().timestamp()
        )

    def render_booking_pdf(
        self, booking_id: str, output_dir: Path, kind: PdfKind | str
    ) -> Path:
        kind = PdfKind(kind)
        booking = self._bookings.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found.")
        car = self._cars.get_by_id(booking.car_id)
        if not car:
            raise NotFoundError(f"Car {booking.car_id} not found.")
        payments = self._payments.list_by_booking(booking_id)
        if kind == PdfKind.RECEIPT and not payments:
            raise ValidationError("No payment has been recorded for this booking yet.")
        output_path = Path(output_dir) / build_document_filename(booking, kind)
        generate_booking_pdf(booking, car, output_path, kind=kind, payments=payments)
        self._logger.info("PDF %s written to %s", kind.value, output_path)
        return output_path
