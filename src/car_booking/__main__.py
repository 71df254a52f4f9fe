"""Module entry point for python -m car_booking."""

from __future__ import annotations

from car_booking.app import main


if __name__ == "__main__":
    raise SystemExit(main())
