from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from car_booking.utils.contact import is_valid_email, is_valid_my_phone, normalize_phone
from car_booking.utils.dates import (
    format_date,
    format_time_remaining,
    parse_date,
    parse_timestamp,
    to_iso_date,
    to_iso_timestamp,
)
from car_booking.utils.format import (
    format_myr,
    format_phone,
    payment_reference,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("012-345 6789", "+60123456789"),
        ("+60 12-345 6789", "+60123456789"),
        ("(03) 2345 6789", "+60323456789"),
        ("123456789", "+60123456789"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize(
    "phone, valid",
    [("+60123456789", True), ("+601123456789", True), ("+600123456789", False), ("+6512345678", False), ("", False)],
)
def test_is_valid_my_phone(phone, valid):
    assert is_valid_my_phone(phone) is valid


def test_is_valid_email():
    assert is_valid_email("aina@example.com")
    assert not is_valid_email("aina@example")
    assert not is_valid_email("")
    assert not is_valid_email(None)


def test_timestamps_are_utc_strings():
    local = datetime(2024, 6, 1, 17, 0, tzinfo=timezone.utc)
    assert to_iso_timestamp(local) == "2024-06-01T17:00:00+00:00"
    assert to_iso_timestamp(datetime(2024, 6, 1, 17, 0)) == "2024-06-01T17:00:00+00:00"
    assert parse_timestamp("2024-06-01T17:00:00") == local


def test_parse_date_accepts_strings_dates_and_datetimes():
    assert parse_date("2024-06-01") == date(2024, 6, 1)
    assert parse_date(date(2024, 6, 1)) == date(2024, 6, 1)
    assert parse_date(datetime(2024, 6, 1, 8, 0)) == date(2024, 6, 1)
    assert parse_date("") is None
    with pytest.raises(ValueError):
        to_iso_date(None)


def test_format_date():
    assert format_date("2024-06-01") == "01 Jun 2024"
    assert format_date("garbage") == "garbage"
    assert format_date(None) == ""


def test_format_time_remaining():
    now = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
    assert format_time_remaining("2024-06-01T09:09:05+00:00", now) == "9:05"
    assert format_time_remaining("2024-06-01T09:00:00+00:00", now) == "Expired"
    assert format_time_remaining(None, now) == ""


def test_format_myr():
    assert format_myr(1350) == "RM 1,350"
    assert format_myr(134.5) == "RM 135"


def test_payment_reference_is_base36_millis():
    assert payment_reference(now_ms=35) == "SIM-Z"
    assert payment_reference("PAY", now_ms=36) == "PAY-10"


def test_format_phone():
    assert format_phone("+60123456789") == "+60 12-3456789"
    assert format_phone("0123456789") == "012-3456789"
    assert format_phone(None) == ""
