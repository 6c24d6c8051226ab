"""Tests for date field types and the FieldConfig model."""

import pytest
from pydantic import ValidationError

from datemapper.mapper.numeric import LONG_MAX, LONG_MIN
from datemapper.mapper.time_value import parse_time_value, try_parse_time_value
from datemapper.mapper.types import (
    ExtractedValue,
    FieldConfig,
    ResolvedBound,
    TimeUnit,
    parse_fuzzy_factor,
)


class TestTimeUnit:
    """Test TimeUnit lookup and conversion."""

    def test_enum_values(self):
        assert TimeUnit.MILLISECONDS.value == "milliseconds"
        assert len(TimeUnit) == 7

    def test_from_name_is_case_insensitive(self):
        assert TimeUnit.from_name("SECONDS") == TimeUnit.SECONDS
        assert TimeUnit.from_name(" days ") == TimeUnit.DAYS

    def test_from_name_unknown(self):
        with pytest.raises(ValueError) as exc_info:
            TimeUnit.from_name("fortnights")
        assert "unknown time unit [fortnights]" in str(exc_info.value)

    def test_to_millis(self):
        assert TimeUnit.SECONDS.to_millis(2) == 2000
        assert TimeUnit.HOURS.to_millis(1) == 3_600_000
        assert TimeUnit.MICROSECONDS.to_millis(1999) == 1
        assert TimeUnit.NANOSECONDS.to_millis(-1_999_999) == -1

    def test_to_millis_saturates(self):
        assert TimeUnit.DAYS.to_millis(LONG_MAX) == LONG_MAX
        assert TimeUnit.SECONDS.to_millis(LONG_MIN) == LONG_MIN


class TestTimeValue:
    def test_units(self):
        assert parse_time_value("2h") == 7_200_000
        assert parse_time_value("250ms") == 250
        assert parse_time_value("1w") == 604_800_000
        assert parse_time_value("1.5d") == 129_600_000
        assert parse_time_value("30S") == 30_000

    def test_unit_required(self):
        with pytest.raises(ValueError):
            parse_time_value("10")
        assert try_parse_time_value("10") is None


class TestFuzzyFactor:
    def test_unset(self):
        assert parse_fuzzy_factor(None) == 1.0

    def test_duration(self):
        assert parse_fuzzy_factor("1d") == 86_400_000.0

    def test_number(self):
        assert parse_fuzzy_factor("2.5") == 2.5

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_fuzzy_factor("lots")


class TestFieldConfig:
    """Test FieldConfig validation and immutability."""

    def test_defaults(self):
        config = FieldConfig(name="created_at")
        assert config.format == "dateOptionalTime"
        assert config.precision_step == 4
        assert config.time_unit == TimeUnit.MILLISECONDS
        assert config.parse_upper_inclusive is True
        assert config.null_value is None
        assert config.include_in_all is None
        assert config.boost == 1.0
        assert config.ignore_malformed is False
        assert config.content_type == "date"
        assert config.fuzzy_factor_millis == 1.0

    def test_formatter_is_compiled(self):
        config = FieldConfig(name="created_at", format="yyyy/MM/dd")
        assert config.formatter.parse("2015/01/01") == 1420070400000

    @pytest.mark.parametrize("precision_step", [0, 65])
    def test_precision_step_bounds(self, precision_step):
        with pytest.raises(ValidationError):
            FieldConfig(name="created_at", precision_step=precision_step)

    def test_precision_step_max(self):
        assert FieldConfig(name="created_at", precision_step=64).precision_step == 64

    def test_invalid_format(self):
        with pytest.raises(ValidationError) as exc_info:
            FieldConfig(name="created_at", format="yyyy-qq")
        assert "invalid date format" in str(exc_info.value)

    def test_empty_name(self):
        with pytest.raises(ValidationError):
            FieldConfig(name="")

    @pytest.mark.parametrize(
        "attribute,value",
        [("format", "yyyy"), ("precision_step", 8), ("boost", 2.0), ("name", "other")],
    )
    def test_frozen_fields(self, attribute, value):
        config = FieldConfig(name="created_at")
        with pytest.raises(ValidationError):
            setattr(config, attribute, value)

    def test_null_value_is_mutable(self):
        config = FieldConfig(name="created_at")
        config.null_value = "2015-01-01"
        assert config.null_value == "2015-01-01"


class TestValueTypes:
    def test_resolved_bound(self):
        assert ResolvedBound(None, True).is_open
        assert not ResolvedBound(0, False).is_open

    def test_extracted_value(self):
        assert ExtractedValue(0, 1.0).has_value
        assert not ExtractedValue(None, 1.0).has_value
