from __future__ import annotations

import pytest

from car_booking.domain.models import DocumentKind, PdfKind
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.services.document_service import DocumentService
from car_booking.services.errors import ForbiddenError, NotFoundError, ValidationError
from car_booking.utils.storage import DocumentStorage


@pytest.fixture
def storage(tmp_path):
    return DocumentStorage(tmp_path / "storage", "test-secret")


@pytest.fixture
def documents(connection, storage, clock):
    return DocumentService(connection, storage, clock=clock)


@pytest.fixture
def booking(booking_service, car, customer):
    return booking_service.create_hold(car.id, customer.id, "2024-06-01", "2024-06-04")


def test_upload_stores_file_and_record(documents, storage, customer, booking):
    document = documents.upload(
        customer.id, "ic_front", "My IC.PNG", b"front", booking_id=booking.id
    )
    assert document.kind == DocumentKind.IC_FRONT
    assert document.file_path.startswith(f"{customer.id}/{booking.id}/ic_front_")
    assert document.file_path.endswith("_My_IC.png")
    assert storage.download(document.file_path) == b"front"


@pytest.mark.parametrize(
    "kind, filename, data",
    [("passport", "a.png", b"x"), ("licence", "a.exe", b"x"), ("licence", "a.png", b"")],
)
def test_upload_validation(documents, customer, kind, filename, data):
    with pytest.raises(ValidationError):
        documents.upload(customer.id, kind, filename, data)


def test_upload_to_someone_elses_booking(documents, other_customer, booking):
    with pytest.raises(ForbiddenError):
        documents.upload(other_customer.id, "licence", "l.png", b"x", booking_id=booking.id)


def test_admin_listing_and_verification_are_audited(documents, connection, customer, admin, booking):
    document = documents.upload(customer.id, "licence", "l.png", b"x", booking_id=booking.id)

    listed = documents.list_for_booking(booking.id, admin.id)
    assert [d.id for d in listed] == [document.id]

    verified = documents.verify(document.id, admin.id)
    assert verified.verified_by == admin.id
    assert verified.verified_at == "2024-06-01T09:00:00+00:00"

    audit = AuditRepository(connection)
    assert [log.action for log in audit.list_for_resource(booking.id)] == ["VIEW_DOCUMENTS"]
    assert [log.action for log in audit.list_for_resource(document.id)] == ["VERIFY_DOCUMENT"]


def test_missing_documents(documents, admin):
    with pytest.raises(NotFoundError):
        documents.verify(123, admin.id)
    with pytest.raises(NotFoundError):
        documents.list_for_booking("missing", admin.id)


def test_signed_url_verifies(documents, storage, customer, clock):
    document = documents.upload(customer.id, "selfie", "me.jpg", b"x")
    url = documents.signed_url(document.id, 120)
    assert storage.verify_signed_url(url, now=clock().timestamp() + 60)
    assert not storage.verify_signed_url(url, now=clock().timestamp() + 121)


def test_receipt_pdf_requires_payment(documents, booking_service, booking, tmp_path):
    with pytest.raises(ValidationError):
        documents.render_booking_pdf(booking.id, tmp_path / "pdfs", PdfKind.RECEIPT)

    booking_service.complete_payment(booking.id)
    path = documents.render_booking_pdf(booking.id, tmp_path / "pdfs", "receipt")
    assert path.name == "Aina_Rahman_2024-06-01_Receipt.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def test_confirmation_pdf(documents, booking, tmp_path):
    path = documents.render_booking_pdf(booking.id, tmp_path, PdfKind.CONFIRMATION)
    assert path.exists()
    assert path.stat().st_size > 0
