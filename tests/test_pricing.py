from __future__ import annotations

from datetime import date

import pytest

from car_booking.services.pricing import EMPTY_QUOTE, amount_due, calculate_price


def test_three_day_rental_at_150():
    quote = calculate_price(150, "2024-06-01", "2024-06-04")
    assert (quote.days, quote.total, quote.deposit) == (3, 450, 135)


def test_deposit_rounds_up_to_whole_ringgit():
    quote = calculate_price(99, date(2024, 6, 1), date(2024, 6, 2))
    assert quote.total == 99
    assert quote.deposit == 30


def test_exact_thirty_percent_is_not_bumped_by_float_noise():
    # 0.30 * 10 is 3.0000000000000004 in binary floating point.
    quote = calculate_price(10, "2024-06-01", "2024-06-02")
    assert quote.deposit == 3


@pytest.mark.parametrize(
    "pickup, return_date",
    [
        ("2024-06-01", "2024-06-01"),
        ("2024-06-05", "2024-06-01"),
        (None, "2024-06-01"),
        ("2024-06-01", None),
        ("", ""),
    ],
)
def test_invalid_range_returns_zero_quote(pickup, return_date):
    assert calculate_price(150, pickup, return_date) == EMPTY_QUOTE


@pytest.mark.parametrize("rate", [1, 49.9, 150, 333.33])
@pytest.mark.parametrize("days", [1, 2, 7, 30])
def test_deposit_never_exceeds_total(rate, days):
    quote = calculate_price(rate, date(2024, 1, 1), date(2024, 1, 1 + days))
    assert quote.days == days
    assert quote.total == pytest.approx(days * rate)
    assert quote.total * 0.30 <= quote.deposit + 1e-9
    assert quote.deposit <= quote.total


def test_deposit_capped_at_tiny_total():
    quote = calculate_price(0.5, "2024-06-01", "2024-06-02")
    assert quote.deposit == 0.5


def test_custom_deposit_rate():
    quote = calculate_price(100, "2024-06-01", "2024-06-03", deposit_rate=0.5)
    assert quote.deposit == 100


def test_amount_due_splits_credit():
    assert amount_due(135, 50) == (50, 85)
    assert amount_due(135, 500) == (135, 0)
    assert amount_due(135, 0) == (0, 135)
    assert amount_due(135, -10) == (0, 135)
