"""Range, Term and Fuzzy Predicates for date fields.

Dates are matched with numeric range predicates throughout:
- term: single-point inclusive range
- range: lower/upper bounds with end-of-period rounding for inclusive
  upper bounds when the field opts in
- fuzzy: symmetric window around a resolved value
- null value: single-point range on the configured default

Every predicate resolves all of its bounds against one ``now`` snapshot.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.date_math import DateMathParser
from datemapper.mapper.exceptions import DateMathParseError
from datemapper.mapper.numeric import LONG_MAX, LONG_MIN, PrefixCodedRange, split_long_range
from datemapper.mapper.time_value import try_parse_time_value
from datemapper.mapper.types import FieldConfig, ResolvedBound

logger = logging.getLogger(__name__)


def current_millis() -> int:
    """Wall-clock epoch milliseconds."""
    return int(time.time() * 1000)


class RangeEngine(Protocol):
    """Index engine capability that builds numeric range predicates."""

    def __call__(
        self,
        field: str,
        precision_step: int,
        lower: Optional[int],
        upper: Optional[int],
        include_lower: bool,
        include_upper: bool,
    ) -> Any:
        ...


@dataclass(frozen=True)
class NumericRangePredicate:
    """Numeric range over a long-encoded field.

    An open side (None) extends to the long bounds. Exclusive bounds are
    normalised to inclusive ones before matching or splitting.

    Example:
        >>> predicate = NumericRangePredicate.new_long_range("ts", 4, 0, 255, True, True)
        >>> predicate.matches(100)
        True
        >>> [r.shift for r in predicate.term_ranges()]
        [8]
    """

    field: str
    precision_step: int
    lower: Optional[int]
    upper: Optional[int]
    include_lower: bool = True
    include_upper: bool = True

    @classmethod
    def new_long_range(
        cls,
        field: str,
        precision_step: int,
        lower: Optional[int],
        upper: Optional[int],
        include_lower: bool,
        include_upper: bool,
    ) -> "NumericRangePredicate":
        if precision_step < 1:
            raise ValueError("precisionStep must be >=1")
        return cls(field, precision_step, lower, upper, include_lower, include_upper)

    def inclusive_bounds(self) -> Optional[Tuple[int, int]]:
        """Inclusive (min, max) covered by the predicate, or None when empty."""
        if self.lower is None:
            min_bound = LONG_MIN
        elif self.include_lower:
            min_bound = self.lower
        elif self.lower == LONG_MAX:
            return None
        else:
            min_bound = self.lower + 1

        if self.upper is None:
            max_bound = LONG_MAX
        elif self.include_upper:
            max_bound = self.upper
        elif self.upper == LONG_MIN:
            return None
        else:
            max_bound = self.upper - 1

        if min_bound > max_bound:
            return None
        return min_bound, max_bound

    @property
    def is_empty(self) -> bool:
        return self.inclusive_bounds() is None

    def matches(self, value: int) -> bool:
        bounds = self.inclusive_bounds()
        if bounds is None:
            return False
        return bounds[0] <= value <= bounds[1]

    def term_ranges(self) -> List[PrefixCodedRange]:
        """Prefix-coded term ranges an index engine visits for this predicate."""
        bounds = self.inclusive_bounds()
        if bounds is None:
            return []
        return split_long_range(bounds[0], bounds[1], self.precision_step)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "precision_step": self.precision_step,
            "lower": self.lower,
            "upper": self.upper,
            "include_lower": self.include_lower,
            "include_upper": self.include_upper,
        }


def _convert_to_string(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


class DatePredicateBuilder:
    """Builds range, term and fuzzy predicates for one date field.

    Example:
        >>> builder = DatePredicateBuilder(FieldConfig(name="ts"))
        >>> predicate = builder.range_query("2015-01-01", "2015-01-01", now=0)
        >>> predicate.upper - predicate.lower
        86399999

    Attributes:
        config: Field definition
        engine: Callable producing the executable predicate
    """

    def __init__(
        self,
        config: FieldConfig,
        engine: Optional[RangeEngine] = None,
        clock: Callable[[], int] = current_millis,
    ):
        self.config = config
        self.engine = engine or NumericRangePredicate.new_long_range
        self._clock = clock
        self._coercer = ValueCoercer.from_config(config)
        self._date_math = DateMathParser(self._coercer)

    def term_query(self, value: Any, now: Optional[int] = None) -> Any:
        """Single-point inclusive range on the resolved value."""
        now = self._snapshot(now)
        millis = self._date_math.parse(_convert_to_string(value), now)
        return self._new_range(millis, millis, True, True)

    def resolve_bounds(
        self,
        lower: Any = None,
        upper: Any = None,
        include_lower: bool = True,
        include_upper: bool = True,
        now: Optional[int] = None,
    ) -> Tuple[ResolvedBound, ResolvedBound]:
        """Resolve both range endpoints against one ``now`` snapshot.

        The upper bound rounds to the end of its period only when the
        caller asks for an inclusive upper bound and the field opts in.
        """
        now = self._snapshot(now)
        lower_value = None
        if lower is not None:
            lower_value = self._date_math.parse(_convert_to_string(lower), now)
        upper_value = None
        if upper is not None:
            round_up = include_upper and self.config.parse_upper_inclusive
            upper_value = self._date_math.parse(
                _convert_to_string(upper), now, round_up=round_up
            )
        logger.debug(
            f"Resolved range on [{self.config.name}]: "
            f"{lower_value} ({include_lower}) .. {upper_value} ({include_upper})"
        )
        return ResolvedBound(lower_value, include_lower), ResolvedBound(upper_value, include_upper)

    def range_query(
        self,
        lower: Any = None,
        upper: Any = None,
        include_lower: bool = True,
        include_upper: bool = True,
        now: Optional[int] = None,
    ) -> Any:
        """Range predicate; a missing bound leaves that side open."""
        lower_bound, upper_bound = self.resolve_bounds(
            lower, upper, include_lower, include_upper, now
        )
        return self._new_range(
            lower_bound.value, upper_bound.value, lower_bound.inclusive, upper_bound.inclusive
        )

    def fuzzy_query(
        self,
        value: Any,
        similarity: Union[str, int, float],
        now: Optional[int] = None,
    ) -> Any:
        """Inclusive window ``[value - delta, value + delta]``.

        A duration similarity (``"2h"``) is used as is; a bare number is
        scaled by the field's fuzzy factor.
        """
        now = self._snapshot(now)
        millis = self._date_math.parse(_convert_to_string(value), now)
        delta = self._fuzzy_delta(similarity)
        return self._new_range(millis - delta, millis + delta, True, True)

    def null_value_query(self) -> Optional[Any]:
        """Single-point predicate on the null value, or None when unset.

        The null value is a literal, so it goes through plain coercion
        rather than date math.
        """
        if self.config.null_value is None:
            return None
        millis = self._coercer.parse_string(self.config.null_value)
        return self._new_range(millis, millis, True, True)

    def _fuzzy_delta(self, similarity: Union[str, int, float]) -> int:
        if isinstance(similarity, (int, float)) and not isinstance(similarity, bool):
            return self._scale_similarity(similarity, str(similarity))
        text = str(similarity)
        millis = try_parse_time_value(text)
        if millis is not None:
            return millis
        try:
            factor = float(text)
        except ValueError as e:
            raise DateMathParseError(
                f"failed to parse fuzzy similarity [{text}] for date field [{self.config.name}]",
                expression=text,
                cause=e,
            ) from e
        return self._scale_similarity(factor, text)

    def _scale_similarity(self, similarity: Union[int, float], text: str) -> int:
        try:
            delta = int(similarity * self.config.fuzzy_factor_millis)
        except (ValueError, OverflowError) as e:
            raise DateMathParseError(
                f"fuzzy similarity [{text}] for date field [{self.config.name}] is not a finite number",
                expression=text,
                cause=e,
            ) from e
        if abs(delta) > LONG_MAX:
            raise DateMathParseError(
                f"fuzzy similarity [{text}] for date field [{self.config.name}] is out of range",
                expression=text,
            )
        return delta

    def _snapshot(self, now: Optional[int]) -> int:
        return self._clock() if now is None else now

    def _new_range(
        self,
        lower: Optional[int],
        upper: Optional[int],
        include_lower: bool,
        include_upper: bool,
    ) -> Any:
        return self.engine(
            self.config.name,
            self.config.precision_step,
            lower,
            upper,
            include_lower,
            include_upper,
        )
