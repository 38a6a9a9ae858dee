"""Formatting helpers shared by the CRM tools and the response parser.

Key utilities:
- Phone number normalization for US-style numbers
- Amount rendering with currency and thousands separators
- Display names for people records
"""

import re
from typing import Any, Dict, Optional, Union

from src.utils.config.constants import NOT_SET, UNNAMED_PERSON

_NON_DIGITS = re.compile(r"\D")


def format_phone_number(phone: Optional[str]) -> Optional[str]:
    """Normalize a phone number for storage.

    Ten digits become ``(NNN) NNN-NNNN`` and eleven digits with a leading 1
    become ``+1 (NNN) NNN-NNNN``. Anything else is returned unchanged, so
    international numbers and free text survive untouched.

    Args:
        phone: Raw phone number as typed by the user or the model

    Returns:
        The formatted phone number, or the input when no rule applies
    """
    if not phone:
        return phone

    digits = _NON_DIGITS.sub("", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    return phone


def format_amount(amount: Optional[Union[int, float]], currency: Optional[str] = None) -> str:
    """Render an amount as ``EUR 1,250,000`` (decimals kept only when present)."""
    if amount is None:
        return NOT_SET

    if float(amount).is_integer():
        rendered = f"{int(amount):,}"
    else:
        rendered = f"{amount:,.2f}"

    return f"{currency} {rendered}" if currency else rendered


def format_probability(probability: Optional[float]) -> str:
    """Render a 0-1 probability as a percentage with one decimal."""
    if not probability:
        return NOT_SET
    return f"{probability * 100:.1f}%"


def person_display_name(person: Dict[str, Any]) -> str:
    """Join first and last name, falling back to a placeholder."""
    parts = [person.get("first_name"), person.get("last_name")]
    return " ".join(part for part in parts if part) or UNNAMED_PERSON


def date_part(value: Any) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` part of a date, datetime or ISO string."""
    if not value:
        return None
    if hasattr(value, "isoformat"):
        value = value.isoformat()
    return str(value)[:10]
