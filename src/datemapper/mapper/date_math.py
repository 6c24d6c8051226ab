"""Date Math Resolution.

Resolves query-side date expressions to epoch milliseconds:

    now                     the caller-supplied current time
    now-1d/d                yesterday, rounded to the start of the day
    2015-01-01||+1M/M       an absolute anchor followed by operators
    2015-01-01              a plain literal (date format or raw number)

Operators are ``+N<unit>``, ``-N<unit>`` and ``/<unit>`` (round down) with
units ``y M w d h H m s``; ``N`` defaults to 1. In round-up mode a
truncated literal and every ``/<unit>`` resolve to the last millisecond
of their period instead of its first, so an inclusive upper bound
covers the whole period.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict

from dateutil.relativedelta import relativedelta

from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.exceptions import DateFormatError, DateMathParseError, ValueParseError
from datemapper.mapper.formatter import datetime_to_millis, millis_to_datetime
from datemapper.mapper.types import FieldConfig

logger = logging.getLogger(__name__)

NOW = "now"
ANCHOR_SEPARATOR = "||"

_UNIT_KEYWORDS: Dict[str, str] = {
    "y": "years",
    "M": "months",
    "w": "weeks",
    "d": "days",
    "h": "hours",
    "H": "hours",
    "m": "minutes",
    "s": "seconds",
}

_ZERO_TIME = {"hour": 0, "minute": 0, "second": 0, "microsecond": 0}

_FLOORS: Dict[str, Callable[[datetime], datetime]] = {
    "years": lambda dt: dt.replace(month=1, day=1, **_ZERO_TIME),
    "months": lambda dt: dt.replace(day=1, **_ZERO_TIME),
    "weeks": lambda dt: (dt - timedelta(days=dt.weekday())).replace(**_ZERO_TIME),
    "days": lambda dt: dt.replace(**_ZERO_TIME),
    "hours": lambda dt: dt.replace(minute=0, second=0, microsecond=0),
    "minutes": lambda dt: dt.replace(second=0, microsecond=0),
    "seconds": lambda dt: dt.replace(microsecond=0),
}


class DateMathParser:
    """Resolves absolute and relative date expressions.

    ``now`` always resolves to the value passed by the caller, never to a
    clock read, so resolution is deterministic.

    Example:
        >>> parser = DateMathParser(ValueCoercer(DateFormatter.for_pattern("dateOptionalTime")))
        >>> parser.parse("now-1d", now=86_400_000)
        0
        >>> parser.parse("2015-01-01", now=0, round_up=True)
        1420156799999
    """

    def __init__(self, coercer: ValueCoercer):
        self.coercer = coercer

    @classmethod
    def from_config(cls, config: FieldConfig) -> "DateMathParser":
        return cls(ValueCoercer.from_config(config))

    def parse(self, text: str, now: int, round_up: bool = False) -> int:
        """Resolve an expression to epoch milliseconds.

        Args:
            text: Literal date, raw number, or date-math expression
            now: Epoch milliseconds that ``now`` resolves to
            round_up: Resolve truncated literals and rounding operators to
                the end of their period

        Raises:
            DateMathParseError: If the expression or its anchor is invalid
        """
        if text.startswith(NOW):
            time = now
            math = text[len(NOW):]
        else:
            anchor, _, math = text.partition(ANCHOR_SEPARATOR)
            try:
                time = self.coercer.parse_string(anchor, round_up=round_up)
            except ValueParseError as e:
                raise DateMathParseError(
                    f"failed to parse date field [{anchor}] in [{text}]",
                    expression=text,
                    cause=e,
                ) from e

        if not math:
            return time
        return self._parse_math(math, time, round_up, text)

    def parse_upper_inclusive(self, text: str, now: int) -> int:
        """Resolve an inclusive upper bound (end-of-period rounding)."""
        return self.parse(text, now, round_up=True)

    def _parse_math(self, math: str, time: int, round_up: bool, expression: str) -> int:
        try:
            value = millis_to_datetime(time)
        except DateFormatError as e:
            raise DateMathParseError(
                f"failed to parse date math [{math}]", expression=expression, cause=e
            ) from e

        i = 0
        length = len(math)
        while i < length:
            operator = math[i]
            i += 1
            if operator not in "/+-":
                raise DateMathParseError(
                    f"operator not supported for date math [{math}]", expression=expression
                )

            start = i
            while i < length and math[i].isdigit():
                i += 1
            amount = int(math[start:i]) if i > start else 1
            if operator == "/" and amount != 1:
                raise DateMathParseError(
                    f"rounding `/` can only be used on single unit types [{math}]",
                    expression=expression,
                )

            if i >= length:
                raise DateMathParseError(
                    f"missing unit for date math [{math}]", expression=expression
                )
            unit = math[i]
            i += 1
            keyword = _UNIT_KEYWORDS.get(unit)
            if keyword is None:
                raise DateMathParseError(
                    f"unit [{unit}] not supported for date math [{math}]",
                    expression=expression,
                )

            try:
                if operator == "/":
                    value = _FLOORS[keyword](value)
                    if round_up:
                        value = value + relativedelta(**{keyword: 1}) - timedelta(milliseconds=1)
                elif operator == "+":
                    value = value + relativedelta(**{keyword: amount})
                else:
                    value = value - relativedelta(**{keyword: amount})
            except (OverflowError, ValueError) as e:
                raise DateMathParseError(
                    f"failed to parse date math [{math}]", expression=expression, cause=e
                ) from e

        resolved = datetime_to_millis(value)
        logger.debug(f"Resolved date math [{expression}] to {resolved} (round_up={round_up})")
        return resolved
