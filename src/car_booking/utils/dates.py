"""Date and timestamp helpers shared by the booking services."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_timestamp(value: datetime) -> str:
    """Serialize a timestamp in UTC so stored values compare as strings."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_date(value: Optional[str | date]) -> Optional[date]:
    """Return a calendar date, or None for empty input."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parser.isoparse(value).date()


def to_iso_date(value: str | date) -> str:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("A date is required.")
    return parsed.isoformat()


def format_date(value: Optional[str | date]) -> str:
    """Format as '01 Jun 2024'; unparseable input is returned unchanged."""
    if not value:
        return ""
    try:
        parsed = parse_date(value)
    except (ValueError, OverflowError):
        return str(value)
    return parsed.strftime("%d %b %Y") if parsed else ""


def format_datetime(value: Optional[str | datetime]) -> str:
    if not value:
        return ""
    try:
        parsed = parse_timestamp(value)
    except (ValueError, OverflowError):
        return str(value)
    return parsed.strftime("%d %b %Y, %H:%M")


def format_time_remaining(
    expires_at: Optional[str | datetime], now: Optional[datetime] = None
) -> str:
    """Countdown text for a hold: 'M:SS', or 'Expired' once the deadline passed."""
    if not expires_at:
        return ""
    now = now or utc_now()
    remaining = (parse_timestamp(expires_at) - parse_timestamp(now)).total_seconds()
    if remaining <= 0:
        return "Expired"
    minutes, seconds = divmod(int(remaining), 60)
    return f"{minutes}:{seconds:02d}"
