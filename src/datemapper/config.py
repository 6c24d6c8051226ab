"""Mapper Configuration Module.

Index-level defaults applied when date fields are built:
- MapperSettings: defaults for upper-bound rounding, malformed values and
  the aggregate full-text field
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

PARSE_UPPER_INCLUSIVE_KEY = "index.mapping.date.parse_upper_inclusive"
IGNORE_MALFORMED_KEY = "index.mapping.ignore_malformed"

_FALSE_VALUES = ("false", "0", "off", "no")


def node_boolean_value(value: Any) -> bool:
    """Interpret a loosely-typed configuration value as a boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() not in _FALSE_VALUES


@dataclass
class MapperSettings:
    """Index-level defaults for date fields.

    Example:
        >>> settings = MapperSettings.from_flat_settings({
        ...     "index.mapping.date.parse_upper_inclusive": "false",
        ... })
        >>> settings.parse_upper_inclusive
        False
    """

    parse_upper_inclusive: bool = True
    """Round inclusive upper bounds to the end of their period. Default: True."""

    ignore_malformed: bool = False
    """Skip unparsable document values instead of failing. Default: False."""

    include_in_all: bool = True
    """Add textual values to the aggregate field when a field does not say. Default: True."""

    @classmethod
    def from_flat_settings(cls, settings: Mapping[str, Any]) -> "MapperSettings":
        """Read defaults from dotted index settings keys."""
        defaults = cls()
        return cls(
            parse_upper_inclusive=node_boolean_value(
                settings.get(PARSE_UPPER_INCLUSIVE_KEY, defaults.parse_upper_inclusive)
            ),
            ignore_malformed=node_boolean_value(
                settings.get(IGNORE_MALFORMED_KEY, defaults.ignore_malformed)
            ),
        )
