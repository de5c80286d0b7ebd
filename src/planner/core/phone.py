"""Phone identity helpers.

The phone number is the lookup key for coverage records. Storage always
uses the bare digit string; the grouped form is for display only.
"""

from __future__ import annotations

import re

NON_DIGIT = re.compile(r"\D+")
GROUP_OF_FIVE = re.compile(r"(\d{5})(?=\d)")

MIN_DIGITS = 10
MAX_DIGITS = 15


def normalize_phone(raw: str | None) -> str:
    """Remove every non-digit character and return the bare digits."""
    if raw is None or not raw.strip():
        return ""
    return NON_DIGIT.sub("", raw)


def is_valid_phone(raw: str | None) -> bool:
    """A phone is valid when it has 10 to 15 digits after normalization."""
    return MIN_DIGITS <= len(normalize_phone(raw)) <= MAX_DIGITS


def format_phone(raw: str | None) -> str:
    """Format digits for display by splitting them into groups of 5.

    Examples:
        "9876543210" -> "98765 43210"
        "+44 7700 900123" -> "44770 09001 23"
    """
    digits = normalize_phone(raw)
    if not digits:
        return ""
    return GROUP_OF_FIVE.sub(r"\1 ", digits).strip()
