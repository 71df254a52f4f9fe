"""Display formatting and reference code helpers."""

from __future__ import annotations

import math
import re
import time
from typing import Optional

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def format_myr(amount: float) -> str:
    """Whole-ringgit currency text, e.g. 'RM 1,350'."""
    rounded = int(math.floor(float(amount) + 0.5))
    return f"RM {rounded:,}"


def format_phone(phone: Optional[str]) -> str:
    if not phone:
        return ""
    cleaned = re.sub(r"\D", "", phone)
    if cleaned.startswith("60"):
        return f"+{cleaned[:2]} {cleaned[2:4]}-{cleaned[4:]}"
    if cleaned.startswith("0"):
        return f"{cleaned[:3]}-{cleaned[3:]}"
    return phone


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def payment_reference(prefix: str = "SIM", now_ms: Optional[int] = None) -> str:
    """Reference code for a recorded payment: prefix plus base36 epoch millis."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{prefix}-{_to_base36(now_ms)}"

