"""PDF generation for booking confirmations and deposit receipts."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from car_booking.config import PDF_ISSUER, PdfIssuerInfo
from car_booking.domain.models import Booking, Car, Payment, PaymentStatus, PdfKind
from car_booking.utils.dates import format_date, format_datetime
from car_booking.utils.format import format_myr, format_phone


def _document_title(kind: PdfKind) -> str:
    if kind == PdfKind.CONFIRMATION:
        return "BOOKING CONFIRMATION"
    return "DEPOSIT RECEIPT"


def _build_booking_rows(booking: Booking, car: Car) -> list[list[str]]:
    days = 0
    if booking.pickup_date and booking.return_date:
        days = (
            datetime.fromisoformat(booking.return_date)
            - datetime.fromisoformat(booking.pickup_date)
        ).days
    car_label = " ".join(part for part in (car.brand, car.model) if part) or car.name
    return [
        ["Booking", booking.id],
        ["Vehicle", car_label],
        ["Pickup", format_date(booking.pickup_date)],
        ["Return", format_date(booking.return_date)],
        ["Duration", f"{days} day(s)"],
        ["Status", booking.status.value],
    ]


def _build_terms(kind: PdfKind) -> str:
    if kind == PdfKind.RECEIPT:
        return (
            "We acknowledge receipt of the deposit described in this document. "
            "The deposit is returned as booking credit once the vehicle is "
            "returned in good condition."
        )
    return (
        "The renter is responsible for the vehicle from pickup until return and "
        "must return it on the agreed date. The remaining balance is settled at "
        "pickup. Date changes must be requested in advance and are subject to "
        "availability."
    )


def generate_booking_pdf(
    booking: Booking,
    car: Car,
    output_path: Path,
    *,
    kind: PdfKind,
    payments: Optional[Iterable[Payment]] = None,
    issuer: PdfIssuerInfo = PDF_ISSUER,
) -> Path:
    """Render a confirmation or receipt for ``booking`` to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    completed = [
        payment
        for payment in (payments or [])
        if payment.status == PaymentStatus.COMPLETED
    ]

    title = _document_title(kind)
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=issuer.name,
    )

    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )

    elements: list[object] = []
    customer_name = booking.customer_name or "Customer"
    main_title = f"{customer_name} - {format_date(booking.pickup_date)}"
    elements.append(Paragraph(f"<b>{main_title}</b>", styles["Title"]))
    elements.append(Paragraph(title, styles["Heading2"]))
    elements.append(Spacer(1, 8))

    issuer_lines = [
        f"<b>Issued by:</b> {issuer.name}",
        f"<b>Phone:</b> {issuer.phone}",
        f"<b>Email:</b> {issuer.email}",
        f"<b>Address:</b> {issuer.address}",
    ]
    elements.append(Paragraph("<br/>".join(issuer_lines), styles["Normal"]))
    elements.append(Spacer(1, 10))

    customer_lines = [
        "<b>Renter</b>",
        f"Name: {customer_name}",
        f"Phone: {format_phone(booking.customer_phone) or '-'}",
        f"Email: {booking.customer_email or '-'}",
    ]
    elements.append(Paragraph("<br/>".join(customer_lines), styles["Normal"]))
    elements.append(Spacer(1, 10))

    booking_table = Table(_build_booking_rows(booking, car), colWidths=[40 * mm, 120 * mm])
    booking_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
            ]
        )
    )
    elements.append(Paragraph("Booking details", styles["SectionTitle"]))
    elements.append(booking_table)
    elements.append(Spacer(1, 12))

    if kind == PdfKind.RECEIPT:
        payments_data = [["Reference", "Date", "Method", "Credit", "Amount"]]
        for payment in completed:
            payments_data.append(
                [
                    payment.reference_number,
                    format_datetime(payment.created_at),
                    payment.payment_method,
                    format_myr(payment.credit_applied),
                    format_myr(payment.amount),
                ]
            )
        payments_table = Table(
            payments_data, colWidths=[38 * mm, 38 * mm, 28 * mm, 26 * mm, 30 * mm]
        )
        payments_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                    ("ALIGN", (3, 1), (-1, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        elements.append(Paragraph("Payments", styles["SectionTitle"]))
        elements.append(payments_table)
        elements.append(Spacer(1, 12))

    paid = sum(payment.amount for payment in completed)
    values_table = Table(
        [
            ["Total", format_myr(booking.total_price)],
            ["Deposit", format_myr(booking.deposit_amount)],
            ["Paid", format_myr(paid)],
            ["Balance at pickup", format_myr(booking.total_price - paid)],
        ],
        colWidths=[40 * mm, 50 * mm],
    )
    values_table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke),
            ]
        )
    )
    elements.append(Paragraph("Amounts", styles["SectionTitle"]))
    elements.append(values_table)
    elements.append(Spacer(1, 12))

    elements.append(Paragraph("Terms", styles["SectionTitle"]))
    elements.append(Paragraph(_build_terms(kind), styles["SmallText"]))
    elements.append(Spacer(1, 18))

    footer = f"{issuer.name} - generated on {datetime.now().strftime('%d %b %Y %H:%M')}"
    elements.append(Paragraph(footer, styles["SmallText"]))

    doc.build(elements)
    return output_path
