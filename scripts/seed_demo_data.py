"""Seed demo data into the CarBooking SQLite ledger."""

from __future__ import annotations

import argparse
import random
import sys
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from car_booking.db.connection import get_connection  # noqa: E402
from car_booking.db.schema import init_db  # noqa: E402
from car_booking.domain.models import UserRole  # noqa: E402
from car_booking.paths import get_db_path  # noqa: E402
from car_booking.repositories.car_repo import CarRepo  # noqa: E402
from car_booking.repositories.profile_repo import ProfileRepo  # noqa: E402
from car_booking.services.booking_service import BookingService  # noqa: E402
from car_booking.services.errors import DatesUnavailableError  # noqa: E402
from car_booking.services.fleet_service import FleetService  # noqa: E402

SEED_TAG = "Seed Demo"
DEFAULT_SEED = 42


@dataclass(frozen=True)
class CarSeed:
    name: str
    brand: str
    model: str
    price_per_day: float
    seats: int
    transmission: str


CAR_SEEDS = [
    CarSeed("Myvi", "Perodua", "Myvi 1.5 AV", 150.0, 5, "auto"),
    CarSeed("Axia", "Perodua", "Axia 1.0 SE", 100.0, 5, "auto"),
    CarSeed("Bezza", "Perodua", "Bezza 1.3", 120.0, 5, "auto"),
    CarSeed("City", "Honda", "City 1.5 V", 220.0, 5, "auto"),
    CarSeed("Vios", "Toyota", "Vios 1.5 G", 200.0, 5, "auto"),
    CarSeed("Alza", "Perodua", "Alza 1.5 AV", 250.0, 7, "auto"),
]

FIRST_NAMES = ["Aina", "Daniel", "Siti", "Arjun", "Mei Ling", "Hafiz", "Priya", "Wei Jie"]
LAST_NAMES = ["Rahman", "Lee", "Aisyah", "Kumar", "Tan", "Ismail", "Nair", "Wong"]


class _SeedClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for CarBooking")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete the current ledger and recreate it before seeding.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help="Random seed.",
    )
    return parser.parse_args()


def _seed_exists(connection) -> bool:
    row = connection.execute(
        "SELECT COUNT(*) AS total FROM fleet_groups WHERE name = ?",
        (SEED_TAG,),
    ).fetchone()
    return bool(row and row["total"])


def main() -> None:
    args = _parse_args()
    rng = random.Random(args.seed)

    db_path = get_db_path()
    if args.reset and db_path.exists():
        db_path.unlink()
        print(f"Ledger removed: {db_path}")

    print(f"Using ledger: {db_path}")
    init_db(db_path)

    connection = get_connection(db_path)
    try:
        if _seed_exists(connection) and not args.reset:
            print("Seed data already present. Use --reset to recreate the ledger.")
            return

        profiles = ProfileRepo(connection)
        admin = profiles.create("Seed Admin", "admin@bubatrent.local", None, role=UserRole.SUPER_ADMIN)
        fleet_service = FleetService(connection)
        fleet = fleet_service.create_group(SEED_TAG, admin.id)
        fleet_service.verify(fleet.id, admin.id)

        cars = CarRepo(connection)
        car_ids = [
            cars.create(
                seed.name,
                seed.brand,
                seed.model,
                seed.price_per_day,
                fleet_group_id=fleet.id,
                seats=seed.seats,
                transmission=seed.transmission,
            ).id
            for seed in CAR_SEEDS
        ]

        customer_ids = []
        for index in range(rng.randint(10, 20)):
            name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
            email = f"{name.lower().replace(' ', '.')}{index}@example.com"
            phone = f"+6012{rng.randint(1000000, 9999999)}"
            customer_ids.append(profiles.create(name, email, phone).id)

        clock = _SeedClock(datetime.now(timezone.utc))
        bookings = BookingService(connection, clock=clock)
        today = date.today()
        created = paid = confirmed = cancelled = 0
        for _ in range(rng.randint(30, 50)):
            pickup = today + timedelta(days=rng.randint(-30, 60))
            return_date = pickup + timedelta(days=rng.randint(1, 7))
            try:
                booking = bookings.create_hold(
                    rng.choice(car_ids), rng.choice(customer_ids), pickup, return_date
                )
            except DatesUnavailableError:
                continue
            created += 1
            outcome = rng.random()
            if outcome < 0.15:
                bookings.cancel(booking.id, user_id=booking.user_id)
                cancelled += 1
                continue
            if outcome < 0.25:
                # Left on hold to show the countdown.
                continue
            bookings.complete_payment(booking.id, user_id=booking.user_id)
            paid += 1
            if outcome > 0.6:
                bookings.confirm(booking.id, admin.id)
                confirmed += 1
    finally:
        connection.close()

    print(
        f"Seeded {len(CAR_SEEDS)} cars, {len(customer_ids)} customers, {created} bookings "
        f"({paid} paid, {confirmed} confirmed, {cancelled} cancelled)."
    )


if __name__ == "__main__":
    main()
