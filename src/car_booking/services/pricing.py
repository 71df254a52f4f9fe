"""Rental pricing: day count, total and deposit."""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from car_booking.config import DEPOSIT_RATE
from car_booking.domain.models import PriceQuote
from car_booking.utils.dates import parse_date

EMPTY_QUOTE = PriceQuote(days=0, total=0, deposit=0)


def calculate_price(
    price_per_day: float,
    pickup_date: Optional[str | date],
    return_date: Optional[str | date],
    *,
    deposit_rate: float = DEPOSIT_RATE,
) -> PriceQuote:
    """Quote a rental of ``price_per_day`` between two calendar dates.

    The deposit is rounded up to the next whole currency unit so it never
    collects less than ``deposit_rate`` of the total, and never exceeds the
    total itself. A missing date or a return that is not after pickup yields
    the all-zero quote.
    """
    pickup = parse_date(pickup_date)
    returned = parse_date(return_date)
    if pickup is None or returned is None:
        return EMPTY_QUOTE
    days = (returned - pickup).days
    if days <= 0:
        return EMPTY_QUOTE
    total = days * price_per_day
    # Round off float noise before the ceiling.
    deposit = min(math.ceil(round(total * deposit_rate, 6)), total)
    return PriceQuote(days=days, total=total, deposit=deposit)


def amount_due(deposit: float, credit: float) -> tuple[float, float]:
    """Split a deposit into (credit applied, amount still to pay)."""
    credit_applied = max(min(credit, deposit), 0)
    return credit_applied, deposit - credit_applied
