"""Value Coercion.

Normalizes arbitrary inputs into canonical epoch milliseconds:
- numbers are already canonical milliseconds
- encoded binary terms are decoded to text and parsed
- text is parsed with the field's date format, falling back to a bare
  integer interpreted in the field's ``time_unit``

The integer fallback only runs after the date format rejected the text,
so any integer string is silently accepted as a raw timestamp. A
malformed date that happens to be all digits is indistinguishable from
an intentional epoch value.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

from datemapper.mapper.exceptions import DateFormatError, ValueParseError
from datemapper.mapper.formatter import Formatter
from datemapper.mapper.numeric import LONG_MAX, LONG_MIN, bytes_to_long, long_to_prefix_coded
from datemapper.mapper.tokens import render_boolean
from datemapper.mapper.types import FieldConfig, TimeUnit

logger = logging.getLogger(__name__)

_LONG_LITERAL = re.compile(r"[+-]?\d+")

_BINARY_TYPES = (bytes, bytearray, memoryview)


def parse_long(text: str) -> int:
    """Parse a signed 64-bit integer literal, rejecting anything else.

    Raises:
        ValueError: If the text is not a plain integer or overflows a long
    """
    if not _LONG_LITERAL.fullmatch(text):
        raise ValueError(f'For input string: "{text}"')
    number = int(text)
    if number < LONG_MIN or number > LONG_MAX:
        raise ValueError(f'Value out of range. Value:"{text}"')
    return number


def to_canonical_long(
    value: Any,
    pattern: Optional[str] = None,
    field_name: Optional[str] = None,
) -> int:
    """Convert a numeric input to a signed 64-bit millisecond value.

    Floats are truncated toward zero.

    Raises:
        ValueParseError: For NaN, infinities and values outside the long range
    """
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueParseError(
            f"non-finite number [{value}] is not a valid date value",
            value=value,
            pattern=pattern,
            field_name=field_name,
        )
    number = int(value)
    if number < LONG_MIN or number > LONG_MAX:
        raise ValueParseError(
            f"number [{value}] is out of the long range for a date value",
            value=value,
            pattern=pattern,
            field_name=field_name,
        )
    return number


class ValueCoercer:
    """Coerces document and query inputs into canonical milliseconds.

    Example:
        >>> coercer = ValueCoercer(DateFormatter.for_pattern("dateOptionalTime"),
        ...                        time_unit=TimeUnit.SECONDS)
        >>> coercer.coerce("2015-01-01")
        1420070400000
        >>> coercer.coerce("1000")
        1000000

    Attributes:
        formatter: Date formatter for text inputs
        time_unit: Unit of the integer fallback
    """

    def __init__(
        self,
        formatter: Formatter,
        time_unit: TimeUnit = TimeUnit.MILLISECONDS,
        field_name: Optional[str] = None,
    ):
        self.formatter = formatter
        self.time_unit = time_unit
        self.field_name = field_name

    @classmethod
    def from_config(cls, config: FieldConfig) -> "ValueCoercer":
        return cls(config.formatter, config.time_unit, field_name=config.name)

    def coerce(self, value: Any) -> int:
        """Normalize a number, encoded term, or text to epoch milliseconds.

        Raises:
            ValueParseError: If neither the date format nor the integer
                fallback accepts the value
        """
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return self._to_long(value)
        if isinstance(value, _BINARY_TYPES):
            return self.parse_string(self._decode(value))
        if isinstance(value, bool):
            value = render_boolean(value)
        return self.parse_string(str(value))

    def parse_string(self, text: str, round_up: bool = False) -> int:
        """Parse text with the date format, then as a raw integer timestamp.

        Args:
            text: Value to parse
            round_up: Resolve absent date fields to the end of their period
                (only affects the date format path)

        Raises:
            ValueParseError: Carries both failure causes and the pattern
        """
        try:
            return self.formatter.parse(text, round_up=round_up)
        except DateFormatError as format_error:
            try:
                number = parse_long(text)
            except ValueError as number_error:
                raise ValueParseError(
                    f"failed to parse date field [{text}], tried both date format "
                    f"[{self.formatter.format}], and timestamp number",
                    value=text,
                    pattern=self.formatter.format,
                    format_error=format_error,
                    number_error=number_error,
                    field_name=self.field_name,
                )
            logger.debug(
                f"Date [{text}] did not match format [{self.formatter.format}], "
                f"treating as {self.time_unit.value} since epoch"
            )
            return self.time_unit.to_millis(number)

    def value(self, value: Any) -> Optional[int]:
        """Search-side conversion: None passes through, 8-byte binary is a raw long."""
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return self._to_long(value)
        if isinstance(value, _BINARY_TYPES):
            try:
                return bytes_to_long(bytes(value))
            except ValueError as e:
                raise ValueParseError(
                    f"failed to decode binary date value: {e}",
                    value=value,
                    pattern=self.formatter.format,
                    number_error=e,
                    field_name=self.field_name,
                )
        return self.parse_string(str(value))

    def value_for_search(self, value: Any) -> Optional[str]:
        """Render a stored value as a date string; strings are returned as indexed."""
        if isinstance(value, str):
            return value
        millis = self.value(value)
        if millis is None:
            return None
        return self.formatter.print(millis)

    def indexed_value_for_search(self, value: Any) -> bytes:
        """Full-precision prefix-coded term for an exact lookup."""
        return long_to_prefix_coded(self.coerce(value), 0)

    def _to_long(self, value: Any) -> int:
        return to_canonical_long(value, self.formatter.format, self.field_name)

    def _decode(self, value: Any) -> str:
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueParseError(
                f"failed to decode date term: {e}",
                value=value,
                pattern=self.formatter.format,
                format_error=e,
                field_name=self.field_name,
            )
