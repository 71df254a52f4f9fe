"""Command-line entry point."""

from __future__ import annotations

import argparse
import json
import sqlite3
import sys
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional, Sequence

from car_booking.config import AppConfig, BookingSettings, load_booking_settings
from car_booking.db.connection import get_connection
from car_booking.db.migrations import apply_migrations
from car_booking.domain.models import Booking, PdfKind, UserRole
from car_booking.logging_config import configure_logging, get_logger
from car_booking.paths import (
    get_config_path,
    get_db_path,
    get_pdfs_dir,
    get_storage_dir,
)
from car_booking.repositories import CarRepo, ProfileRepo, booking_to_record, car_to_record
from car_booking.services.admin_service import AdminService
from car_booking.services.booking_service import BookingService
from car_booking.services.document_service import DocumentService
from car_booking.services.errors import ServiceError, ValidationError
from car_booking.services.hold_sweeper import DEFAULT_INTERVAL_SECONDS, HoldSweeper
from car_booking.services.pricing import calculate_price
from car_booking.utils.documents import resolve_pdfs_dir
from car_booking.utils.format import format_myr
from car_booking.utils.storage import DocumentStorage


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _booking_payload(service: BookingService, booking: Booking) -> dict[str, Any]:
    record = booking_to_record(booking)
    record["time_remaining"] = service.time_remaining(booking)
    return record


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="car-booking",
        description="Car rental booking ledger: holds, deposits and admin workflow.",
    )
    parser.add_argument("--db", type=Path, help="Ledger file (defaults to the app data dir).")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create or upgrade the ledger schema.")

    add_car = sub.add_parser("add-car", help="Register a car.")
    add_car.add_argument("name")
    add_car.add_argument("--rate", type=float, required=True, help="Price per day (MYR).")
    add_car.add_argument("--brand")
    add_car.add_argument("--model")
    add_car.add_argument("--seats", type=int)
    add_car.add_argument("--transmission")
    add_car.add_argument("--fleet-group", type=int)

    cars = sub.add_parser("cars", help="List registered cars.")
    cars.add_argument("--available", action="store_true")
    cars.add_argument("--fleet-group", type=int)

    add_customer = sub.add_parser("add-customer", help="Register a customer or admin.")
    add_customer.add_argument("name")
    add_customer.add_argument("--email")
    add_customer.add_argument("--phone")
    add_customer.add_argument("--admin", action="store_true")

    quote = sub.add_parser("quote", help="Price a rental without reserving.")
    quote.add_argument("car_id", type=int)
    quote.add_argument("pickup_date")
    quote.add_argument("return_date")

    check = sub.add_parser("check", help="Check a car's availability.")
    check.add_argument("car_id", type=int)
    check.add_argument("pickup_date")
    check.add_argument("return_date")

    hold = sub.add_parser("hold", help="Place a short hold on a car.")
    hold.add_argument("car_id", type=int)
    hold.add_argument("user_id")
    hold.add_argument("pickup_date")
    hold.add_argument("return_date")
    hold.add_argument("--notes")

    pay = sub.add_parser("pay", help="Record the deposit for a held booking.")
    pay.add_argument("booking_id")
    pay.add_argument("--user")
    pay.add_argument("--no-credit", action="store_true")

    status = sub.add_parser("status", help="Show a booking, or move it as an admin.")
    status.add_argument("booking_id")
    status.add_argument("new_status", nargs="?")
    status.add_argument("--admin")

    cancel = sub.add_parser("cancel", help="Cancel a booking.")
    cancel.add_argument("booking_id")
    who = cancel.add_mutually_exclusive_group(required=True)
    who.add_argument("--user")
    who.add_argument("--admin")

    sweep = sub.add_parser("sweep", help="Expire lapsed holds.")
    sweep.add_argument("--loop", action="store_true")
    sweep.add_argument("--interval", type=float, default=DEFAULT_INTERVAL_SECONDS)

    stats = sub.add_parser("stats", help="Dashboard counters.")
    stats.add_argument("--fleet-group", type=int)

    receipt = sub.add_parser("receipt", help="Render a booking PDF.")
    receipt.add_argument("booking_id")
    receipt.add_argument(
        "--kind",
        choices=[kind.value for kind in PdfKind],
        default=PdfKind.RECEIPT.value,
    )
    receipt.add_argument("--output-dir", type=Path)
    return parser


def _run(
    args: argparse.Namespace,
    connection: sqlite3.Connection,
    settings: BookingSettings,
) -> int:
    bookings = BookingService(connection, settings=settings)

    if args.command == "init-db":
        print(f"Schema version {apply_migrations(connection)}")
        return 0
    if args.command == "add-car":
        car = CarRepo(connection).create(
            args.name,
            args.brand,
            args.model,
            args.rate,
            fleet_group_id=args.fleet_group,
            seats=args.seats,
            transmission=args.transmission,
        )
        _print_json(car_to_record(car))
        return 0
    if args.command == "cars":
        found = CarRepo(connection).list_cars(
            available_only=args.available, fleet_group_id=args.fleet_group
        )
        _print_json([car_to_record(car) for car in found])
        return 0
    if args.command == "add-customer":
        role = UserRole.ADMIN if args.admin else UserRole.CUSTOMER
        profile = ProfileRepo(connection).create(
            args.name, args.email, args.phone, role=role
        )
        _print_json({"id": profile.id, "display_name": profile.display_name, "role": role.value})
        return 0
    if args.command == "quote":
        car = CarRepo(connection).get_by_id(args.car_id)
        if not car:
            raise ServiceError(f"Car {args.car_id} not found.")
        try:
            quote = calculate_price(
                car.price_per_day,
                args.pickup_date,
                args.return_date,
                deposit_rate=settings.deposit_rate,
            )
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid dates. Check the pickup and return dates.") from exc
        payload = asdict(quote)
        payload["total_display"] = format_myr(quote.total)
        payload["deposit_display"] = format_myr(quote.deposit)
        _print_json(payload)
        return 0
    if args.command == "check":
        available = bookings.availability.is_available(
            args.car_id, args.pickup_date, args.return_date
        )
        print("available" if available else "unavailable")
        return 0 if available else 2
    if args.command == "hold":
        booking = bookings.create_hold(
            args.car_id,
            args.user_id,
            args.pickup_date,
            args.return_date,
            notes=args.notes,
        )
        _print_json(_booking_payload(bookings, booking))
        return 0
    if args.command == "pay":
        payment = bookings.complete_payment(
            args.booking_id, user_id=args.user, use_credit=not args.no_credit
        )
        _print_json(
            {
                "booking_id": payment.booking_id,
                "reference_number": payment.reference_number,
                "amount": payment.amount,
                "credit_applied": payment.credit_applied,
                "status": payment.status.value,
            }
        )
        return 0
    if args.command == "status":
        if args.new_status:
            if not args.admin:
                raise ServiceError("--admin is required to change a booking status.")
            booking = bookings.change_status(args.booking_id, args.new_status.upper(), args.admin)
        else:
            bookings.availability.expire_holds()
            booking = bookings.get_booking(args.booking_id)
        _print_json(_booking_payload(bookings, booking))
        return 0
    if args.command == "cancel":
        booking = bookings.cancel(args.booking_id, user_id=args.user, admin_id=args.admin)
        _print_json(_booking_payload(bookings, booking))
        return 0
    if args.command == "sweep":
        sweeper = HoldSweeper(connection, args.interval)
        if not args.loop:
            print(f"Expired {sweeper.run_once()} hold(s)")
            return 0
        stop_event = threading.Event()
        try:
            sweeper.run_forever(stop_event)
        except KeyboardInterrupt:
            stop_event.set()
        return 0
    if args.command == "stats":
        _print_json(asdict(AdminService(connection).stats(args.fleet_group)))
        return 0
    if args.command == "receipt":
        storage = DocumentStorage(get_storage_dir(), settings.storage_secret)
        output_dir = args.output_dir or resolve_pdfs_dir(get_config_path(), get_pdfs_dir())
        path = DocumentService(connection, storage).render_booking_pdf(
            args.booking_id, output_dir, args.kind
        )
        print(path)
        return 0
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CarBooking command line."""
    args = _build_parser().parse_args(argv)
    configure_logging()
    logger = get_logger(__name__)
    config = AppConfig()
    settings = load_booking_settings(get_config_path())

    connection = get_connection(args.db or get_db_path())
    try:
        apply_migrations(connection)
        logger.info("Running %s %s", config.app_name, args.command)
        return _run(args, connection, settings)
    except ServiceError as exc:
        logger.info("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        connection.close()


if __name__ == "__main__":
    raise SystemExit(main())
