"""Date Formatter.

Parses date strings into milliseconds since the epoch and prints
milliseconds back, for a named pattern:
- Named ISO formats (``dateOptionalTime``, ``basicDate``, ...), in camelCase
  or underscore form
- Joda-style custom patterns (``yyyy/MM/dd HH:mm:ss``) with quoted literals
  and ``[...]`` optional sections
- Composites ``"p1||p2"``: parse tries each, print uses the first

Parsing can fill the fields a text leaves out either with their minimum
(start of the named period) or, with ``round_up=True``, with their maximum
(last millisecond of the named period).

All values are UTC unless the text carries an offset.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Dict, List, NamedTuple, Optional, Protocol, Sequence, Tuple, Union

from dateutil.tz import tzoffset, tzutc

from datemapper.mapper.exceptions import DateFormatError

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=tzutc())

DEFAULT_FORMAT = "dateOptionalTime"

# name -> (parse pattern, print pattern)
NAMED_FORMATS: Dict[str, Tuple[str, str]] = {
    "dateOptionalTime": (
        "yyyy-MM[-dd]['T'HH[:mm[:ss[.SSS]]][ZZ]]",
        "yyyy-MM-dd'T'HH:mm:ss.SSSZZ",
    ),
    "date": ("yyyy-MM-dd", "yyyy-MM-dd"),
    "dateTime": ("yyyy-MM-dd'T'HH:mm:ss.SSSZZ", "yyyy-MM-dd'T'HH:mm:ss.SSSZZ"),
    "dateTimeNoMillis": ("yyyy-MM-dd'T'HH:mm:ssZZ", "yyyy-MM-dd'T'HH:mm:ssZZ"),
    "dateHour": ("yyyy-MM-dd'T'HH", "yyyy-MM-dd'T'HH"),
    "dateHourMinute": ("yyyy-MM-dd'T'HH:mm", "yyyy-MM-dd'T'HH:mm"),
    "dateHourMinuteSecond": ("yyyy-MM-dd'T'HH:mm:ss", "yyyy-MM-dd'T'HH:mm:ss"),
    "dateHourMinuteSecondMillis": (
        "yyyy-MM-dd'T'HH:mm:ss.SSS",
        "yyyy-MM-dd'T'HH:mm:ss.SSS",
    ),
    "basicDate": ("yyyyMMdd", "yyyyMMdd"),
    "basicDateTime": ("yyyyMMdd'T'HHmmss.SSSZZ", "yyyyMMdd'T'HHmmss.SSSZZ"),
    "basicDateTimeNoMillis": ("yyyyMMdd'T'HHmmssZZ", "yyyyMMdd'T'HHmmssZZ"),
    "year": ("yyyy", "yyyy"),
    "yearMonth": ("yyyy-MM", "yyyy-MM"),
    "yearMonthDay": ("yyyy-MM-dd", "yyyy-MM-dd"),
}

_FIELD_LETTERS = {
    "y": "year",
    "M": "month",
    "d": "day",
    "H": "hour",
    "m": "minute",
    "s": "second",
    "S": "millis",
    "Z": "zone",
}

_ZONE_PATTERN = re.compile(r"^([+-])(\d{2})(?::?(\d{2}))?$")


class Formatter(Protocol):
    """Parse/print capability injected into the mapper components."""

    @property
    def format(self) -> str:
        ...

    def parse(self, text: str, round_up: bool = False) -> int:
        ...

    def print(self, millis: int) -> str:
        ...


def millis_to_datetime(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except OverflowError as e:
        raise DateFormatError(f"value [{millis}] is out of the supported date range", cause=e)


def datetime_to_millis(value: datetime) -> int:
    """Convert a datetime (naive values are UTC) to epoch milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tzutc())
    delta = value - EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


# ---------------------------------------------------------------------------
# Pattern compilation
# ---------------------------------------------------------------------------


class _Field(NamedTuple):
    name: str
    count: int


class _Literal(NamedTuple):
    text: str


class _Optional(NamedTuple):
    nodes: Tuple["_Node", ...]


_Node = Union[_Field, _Literal, _Optional]


def _tokenize(pattern: str) -> List[_Node]:
    stack: List[List[_Node]] = [[]]
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "'":
            if i + 1 < n and pattern[i + 1] == "'":
                stack[-1].append(_Literal("'"))
                i += 2
                continue
            end = i + 1
            text = []
            while True:
                if end >= n:
                    raise DateFormatError(f"Unterminated quote in pattern [{pattern}]", pattern)
                if pattern[end] == "'":
                    if end + 1 < n and pattern[end + 1] == "'":
                        text.append("'")
                        end += 2
                        continue
                    break
                text.append(pattern[end])
                end += 1
            stack[-1].append(_Literal("".join(text)))
            i = end + 1
        elif c == "[":
            stack.append([])
            i += 1
        elif c == "]":
            if len(stack) == 1:
                raise DateFormatError(f"Unbalanced ']' in pattern [{pattern}]", pattern)
            nodes = stack.pop()
            stack[-1].append(_Optional(tuple(nodes)))
            i += 1
        elif c.isalpha():
            j = i
            while j < n and pattern[j] == c:
                j += 1
            if c not in _FIELD_LETTERS:
                raise DateFormatError(f"Illegal pattern component: {pattern[i:j]}", pattern)
            stack[-1].append(_Field(_FIELD_LETTERS[c], j - i))
            i = j
        else:
            stack[-1].append(_Literal(c))
            i += 1
    if len(stack) != 1:
        raise DateFormatError(f"Unbalanced '[' in pattern [{pattern}]", pattern)
    if not stack[0]:
        raise DateFormatError("Empty date format pattern", pattern)
    return stack[0]


def _field_regex(field: _Field) -> str:
    if field.name == "year":
        if field.count == 2:
            return r"\d{2}"
        if field.count == 1:
            return r"\d{1,4}"
        return r"\d{%d}" % field.count
    if field.name == "millis":
        return r"\d{1,9}"
    if field.name == "zone":
        return r"Z|[+-]\d{2}(?::?\d{2})?"
    if field.count == 1:
        return r"\d{1,2}"
    return r"\d{%d}" % field.count


def _build_regex(nodes: Sequence[_Node], seen: set, pattern: str) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, _Literal):
            parts.append(re.escape(node.text))
        elif isinstance(node, _Optional):
            parts.append("(?:" + _build_regex(node.nodes, seen, pattern) + ")?")
        else:
            if node.name in seen:
                raise DateFormatError(
                    f"Field [{node.name}] appears more than once in pattern [{pattern}]",
                    pattern,
                )
            seen.add(node.name)
            parts.append(f"(?P<{node.name}>{_field_regex(node)})")
    return "".join(parts)


def _print_field(field: _Field, value: datetime) -> str:
    if field.name == "year":
        if field.count == 2:
            return f"{value.year % 100:02d}"
        return f"{value.year:0{field.count}d}"
    if field.name == "millis":
        millis = value.microsecond // 1000
        if field.count <= 3:
            return f"{millis:03d}"
        return f"{millis:03d}".ljust(field.count, "0")
    if field.name == "zone":
        # values are always printed in UTC
        return "+0000" if field.count == 1 else "Z"
    number = getattr(value, field.name)
    return f"{number:0{field.count}d}"


def _print_nodes(nodes: Sequence[_Node], value: datetime) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, _Literal):
            parts.append(node.text)
        elif isinstance(node, _Optional):
            parts.append(_print_nodes(node.nodes, value))
        else:
            parts.append(_print_field(node, value))
    return "".join(parts)


def _parse_zone(text: str):
    if text == "Z":
        return tzutc()
    match = _ZONE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"invalid offset [{text}]")
    sign, hours, minutes = match.groups()
    seconds = int(hours) * 3600 + int(minutes or 0) * 60
    if seconds == 0:
        return tzutc()
    return tzoffset(None, -seconds if sign == "-" else seconds)


class _CompiledPattern:
    """One pattern of a (possibly composite) format."""

    def __init__(self, pattern: str, print_pattern: Optional[str] = None):
        self.pattern = pattern
        nodes = _tokenize(pattern)
        self._regex = re.compile(_build_regex(nodes, set(), pattern))
        self._print_nodes = _tokenize(print_pattern) if print_pattern else nodes
        self._two_digit_year = any(
            isinstance(node, _Field) and node.name == "year" and node.count == 2
            for node in _walk(nodes)
        )

    def parse(self, text: str, round_up: bool = False) -> int:
        match = self._regex.fullmatch(text)
        if match is None:
            raise DateFormatError(f'Invalid format: "{text}"', self.pattern)
        groups = match.groupdict()
        try:
            year = 1970
            if groups.get("year") is not None:
                raw_year = groups["year"]
                year = int(raw_year)
                if self._two_digit_year:
                    year += 2000 if year < 50 else 1900
            month = _group_int(groups, "month", 12 if round_up else 1)
            if groups.get("day") is not None:
                day = int(groups["day"])
            else:
                day = calendar.monthrange(year, month)[1] if round_up else 1
            hour = _group_int(groups, "hour", 23 if round_up else 0)
            minute = _group_int(groups, "minute", 59 if round_up else 0)
            second = _group_int(groups, "second", 59 if round_up else 0)
            if groups.get("millis") is not None:
                millis = int((groups["millis"] + "00")[:3])
            else:
                millis = 999 if round_up else 0
            zone = tzutc()
            if groups.get("zone") is not None:
                zone = _parse_zone(groups["zone"])
            value = datetime(year, month, day, hour, minute, second, millis * 1000, tzinfo=zone)
        except ValueError as e:
            raise DateFormatError(f'Cannot parse "{text}": {e}', self.pattern, cause=e)
        return datetime_to_millis(value)

    def print(self, millis: int) -> str:
        return _print_nodes(self._print_nodes, millis_to_datetime(millis))


def _walk(nodes: Sequence[_Node]):
    for node in nodes:
        if isinstance(node, _Optional):
            yield from _walk(node.nodes)
        else:
            yield node


def _group_int(groups: Dict[str, Optional[str]], name: str, default: int) -> int:
    raw = groups.get(name)
    return int(raw) if raw is not None else default


def _to_camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class DateFormatter:
    """Formatter for a named, custom or composite date pattern.

    Example:
        >>> formatter = DateFormatter.for_pattern("yyyy/MM/dd||dateOptionalTime")
        >>> formatter.parse("2015/01/01")
        1420070400000
        >>> formatter.print(1420070400000)
        '2015/01/01'

    Attributes:
        format: The pattern string, as configured
    """

    def __init__(self, format: str, patterns: Sequence[_CompiledPattern]):
        if not patterns:
            raise DateFormatError("Date format requires at least one pattern", format)
        self._format = format
        self._patterns = list(patterns)

    @classmethod
    def for_pattern(cls, format: str) -> "DateFormatter":
        """Build (or fetch from cache) the formatter for a pattern string.

        Raises:
            DateFormatError: If any part of the pattern is malformed
        """
        return _compile_formatter(format)

    @property
    def format(self) -> str:
        return self._format

    def parse(self, text: str, round_up: bool = False) -> int:
        """Parse text into epoch milliseconds.

        Args:
            text: Date string; must be consumed completely by one pattern
            round_up: Fill absent fields with their maximum instead of
                their minimum

        Raises:
            DateFormatError: If no pattern accepts the text
        """
        last_error: Optional[DateFormatError] = None
        for pattern in self._patterns:
            try:
                return pattern.parse(text, round_up=round_up)
            except DateFormatError as e:
                last_error = e
        raise DateFormatError(
            f'Invalid format: "{text}" for [{self._format}]',
            self._format,
            cause=last_error,
        )

    def print(self, millis: int) -> str:
        """Render epoch milliseconds with the first pattern, in UTC."""
        return self._patterns[0].print(millis)

    def __repr__(self) -> str:
        return f"DateFormatter(format={self._format!r})"


@lru_cache(maxsize=128)
def _compile_formatter(format: str) -> DateFormatter:
    if not format or not format.strip():
        raise DateFormatError("Date format must not be empty", format)
    patterns = []
    for part in format.split("||"):
        named = NAMED_FORMATS.get(part) or NAMED_FORMATS.get(_to_camel_case(part))
        if named is not None:
            patterns.append(_CompiledPattern(*named))
        else:
            patterns.append(_CompiledPattern(part))
    logger.debug(f"Compiled date format [{format}] with {len(patterns)} pattern(s)")
    return DateFormatter(format, patterns)
