"""Test fixtures for date field mapper tests.

Provides:
- Default and customised field configurations
- Coercer, date-math and predicate components bound to them
- A counting clock for "now" snapshot checks
"""

import pytest

from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.date_math import DateMathParser
from datemapper.mapper.predicates import DatePredicateBuilder
from datemapper.mapper.types import FieldConfig, TimeUnit


# 2015-01-01T00:00:00.000Z
JAN_1_2015 = 1420070400000
HOUR = 3_600_000


@pytest.fixture
def config():
    """Date field with all defaults."""
    return FieldConfig(name="created_at")


@pytest.fixture
def seconds_config():
    """Date field whose raw numbers are seconds since the epoch."""
    return FieldConfig(name="created_at", time_unit=TimeUnit.SECONDS)


@pytest.fixture
def coercer(config):
    return ValueCoercer.from_config(config)


@pytest.fixture
def date_math(config):
    return DateMathParser.from_config(config)


@pytest.fixture
def predicates(config):
    return DatePredicateBuilder(config)


class CountingClock:
    """Clock that advances one hour on every read."""

    def __init__(self, start: int):
        self.now = start
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        value = self.now
        self.now += HOUR
        return value


@pytest.fixture
def counting_clock():
    return CountingClock(JAN_1_2015)
