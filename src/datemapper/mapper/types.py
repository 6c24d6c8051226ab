"""Date Field Types and Models.

Defines the core types of the date field mapper:
- TimeUnit: resolution of raw numeric timestamps
- FieldConfig: Pydantic model for one date field definition
- ResolvedBound: one resolved endpoint of a range predicate
- ExtractedValue: outcome of extracting a field from one document

FieldConfig is immutable except ``null_value``, which only the merge
controller replaces.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from datemapper.mapper.exceptions import DateFormatError
from datemapper.mapper.formatter import DEFAULT_FORMAT, DateFormatter
from datemapper.mapper.numeric import LONG_MAX, LONG_MIN
from datemapper.mapper.time_value import try_parse_time_value

DEFAULT_PRECISION_STEP = 4
MAX_PRECISION_STEP = 64


class TimeUnit(str, Enum):
    """Resolution used to interpret raw numeric timestamps.

    Conversion to milliseconds truncates toward zero for sub-millisecond
    units and saturates at the 64-bit bounds for coarse units.
    """

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    @classmethod
    def from_name(cls, name: str) -> "TimeUnit":
        """Look up a unit by case-insensitive name.

        Raises:
            ValueError: If the name is not a known unit
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"unknown time unit [{name}]") from None

    def to_millis(self, value: int) -> int:
        """Convert a value in this unit to milliseconds."""
        divisor = _SUB_MILLI_DIVISORS.get(self)
        if divisor is not None:
            quotient = abs(value) // divisor
            return quotient if value >= 0 else -quotient
        millis = value * _MILLI_MULTIPLIERS[self]
        return max(LONG_MIN, min(LONG_MAX, millis))


_SUB_MILLI_DIVISORS = {
    TimeUnit.NANOSECONDS: 1_000_000,
    TimeUnit.MICROSECONDS: 1_000,
}

_MILLI_MULTIPLIERS = {
    TimeUnit.MILLISECONDS: 1,
    TimeUnit.SECONDS: 1_000,
    TimeUnit.MINUTES: 60_000,
    TimeUnit.HOURS: 3_600_000,
    TimeUnit.DAYS: 86_400_000,
}


def parse_fuzzy_factor(fuzzy_factor: Optional[str]) -> float:
    """Resolve a configured fuzzy factor to a millisecond scale.

    A duration (``"1d"``) yields its length in milliseconds, a plain number
    is used as is, and an unset factor is 1.0.

    Raises:
        ValueError: If the text is neither a duration nor a number
    """
    if fuzzy_factor is None:
        return 1.0
    millis = try_parse_time_value(fuzzy_factor)
    if millis is not None:
        return float(millis)
    try:
        return float(fuzzy_factor)
    except ValueError:
        raise ValueError(
            f"fuzzy_factor [{fuzzy_factor}] is neither a time value nor a number"
        ) from None


class FieldConfig(BaseModel):
    """Date field definition.

    Example:
        >>> config = FieldConfig(
        ...     name="created_at",
        ...     format="yyyy/MM/dd||dateOptionalTime",
        ...     time_unit=TimeUnit.SECONDS,
        ...     null_value="1970/01/01",
        ... )
        >>> config.formatter.parse("2015/01/01")
        1420070400000
    """

    CONTENT_TYPE: ClassVar[str] = "date"

    name: str = Field(
        ...,
        min_length=1,
        frozen=True,
        description="Full field name in the schema"
    )
    format: str = Field(
        default=DEFAULT_FORMAT,
        frozen=True,
        description="Date format pattern used to parse and print values"
    )
    precision_step: int = Field(
        default=DEFAULT_PRECISION_STEP,
        ge=1,
        le=MAX_PRECISION_STEP,
        frozen=True,
        description="Bits per precision level of the numeric encoding"
    )
    fuzzy_factor: Optional[str] = Field(
        default=None,
        frozen=True,
        description="Scale for bare numeric fuzzy similarity (duration or number)"
    )
    time_unit: TimeUnit = Field(
        default=TimeUnit.MILLISECONDS,
        frozen=True,
        description="Resolution of raw numeric timestamps given as text"
    )
    parse_upper_inclusive: bool = Field(
        default=True,
        frozen=True,
        description="Round inclusive upper bounds to the end of their period"
    )
    null_value: Optional[str] = Field(
        default=None,
        description="Value substituted for explicit nulls"
    )
    include_in_all: Optional[bool] = Field(
        default=None,
        frozen=True,
        description="Add textual values to the aggregate field (None inherits)"
    )
    boost: float = Field(
        default=1.0,
        frozen=True,
        description="Default per-document boost"
    )
    ignore_malformed: bool = Field(
        default=False,
        frozen=True,
        description="Skip unparsable document values instead of failing"
    )

    model_config = {
        "validate_assignment": True,
    }

    _formatter: DateFormatter = PrivateAttr()
    _fuzzy_factor_millis: float = PrivateAttr(default=1.0)

    @field_validator("format")
    def _validate_format(cls, value: str) -> str:
        try:
            DateFormatter.for_pattern(value)
        except DateFormatError as e:
            raise ValueError(f"invalid date format [{value}]: {e}") from e
        return value

    @field_validator("fuzzy_factor")
    def _validate_fuzzy_factor(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_fuzzy_factor(value)
        return value

    def model_post_init(self, __context) -> None:
        self._formatter = DateFormatter.for_pattern(self.format)
        self._fuzzy_factor_millis = parse_fuzzy_factor(self.fuzzy_factor)

    @property
    def formatter(self) -> DateFormatter:
        """Compiled formatter for ``format``."""
        return self._formatter

    @property
    def fuzzy_factor_millis(self) -> float:
        """Millisecond scale applied to bare numeric fuzzy similarities."""
        return self._fuzzy_factor_millis

    @property
    def content_type(self) -> str:
        return self.CONTENT_TYPE


@dataclass(frozen=True)
class ResolvedBound:
    """One endpoint of a range predicate.

    Attributes:
        value: Canonical epoch milliseconds, or None for an open side
        inclusive: Whether the endpoint itself matches
    """

    value: Optional[int]
    inclusive: bool

    @property
    def is_open(self) -> bool:
        return self.value is None


@dataclass(frozen=True)
class ExtractedValue:
    """Outcome of extracting one date field from a document.

    Attributes:
        value: Canonical epoch milliseconds; None for a null without default
        boost: Effective boost for this document
        add_to_all: Whether ``text`` belongs in the aggregate full-text field
        text: Original textual representation, when the value was text
    """

    value: Optional[int]
    boost: float
    add_to_all: bool = False
    text: Optional[str] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None
