"""Phone number and e-mail validation for customer contact details.

Phone numbers default to Malaysia:

* spaces, dashes and parentheses are stripped
* ``0194961568`` becomes ``+60194961568``
* ``60194961568`` becomes ``+60194961568``
* ``+601...`` is kept as-is
"""

from __future__ import annotations

import re
from typing import Optional

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_MY_PHONE_RE = re.compile(r"^60[1-9]\d{7,9}$")


def normalize_phone(raw: Optional[str]) -> str:
    if not raw:
        return ""
    cleaned = re.sub(r"[\s\-()]", "", raw)
    cleaned = cleaned.replace("+", "")
    if cleaned.startswith("0"):
        cleaned = "60" + cleaned[1:]
    if not cleaned.startswith("60") and 9 <= len(cleaned) <= 11:
        cleaned = "60" + cleaned
    return "+" + cleaned


def is_valid_my_phone(normalized: Optional[str]) -> bool:
    if not normalized:
        return False
    digits = re.sub(r"\D", "", normalized)
    return bool(_MY_PHONE_RE.match(digits))


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value.strip()))
