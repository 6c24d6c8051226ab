"""Duration strings such as ``"2h"`` or ``"500ms"``.

Used for fuzzy windows and for duration-valued fuzzy factors.
A unit suffix is required: a bare number is a dimensionless factor,
not a duration.
"""

from __future__ import annotations

import re
from typing import Optional

_TIME_VALUE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)\s*$")

_UNIT_MILLIS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
}


def parse_time_value(text: str) -> int:
    """Parse a duration string into milliseconds.

    Args:
        text: Duration such as ``"2h"``, ``"1.5d"`` or ``"250ms"``

    Returns:
        Duration in whole milliseconds (fractions truncated)

    Raises:
        ValueError: If the text is not a number followed by a known unit
    """
    match = _TIME_VALUE_PATTERN.match(text.lower())
    if match is None:
        raise ValueError(f"failed to parse time value [{text}]")
    amount, unit = match.groups()
    if "." in amount:
        return int(float(amount) * _UNIT_MILLIS[unit])
    return int(amount) * _UNIT_MILLIS[unit]


def try_parse_time_value(text: str) -> Optional[int]:
    """Like :func:`parse_time_value` but returns None instead of raising."""
    try:
        return parse_time_value(text)
    except ValueError:
        return None
