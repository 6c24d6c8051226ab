"""Tests for index-level mapper settings."""

import pytest

from datemapper.config import (
    IGNORE_MALFORMED_KEY,
    PARSE_UPPER_INCLUSIVE_KEY,
    MapperSettings,
    node_boolean_value,
)
from datemapper.mapper.field import DateField


class TestNodeBooleanValue:
    @pytest.mark.parametrize("value", ["false", "FALSE", "0", "off", "no", False, 0])
    def test_false_values(self, value):
        assert node_boolean_value(value) is False

    @pytest.mark.parametrize("value", ["true", "yes", "1", "on", True, 1])
    def test_true_values(self, value):
        assert node_boolean_value(value) is True


class TestMapperSettings:
    def test_defaults(self):
        settings = MapperSettings()
        assert settings.parse_upper_inclusive is True
        assert settings.ignore_malformed is False
        assert settings.include_in_all is True

    def test_from_flat_settings(self):
        settings = MapperSettings.from_flat_settings(
            {PARSE_UPPER_INCLUSIVE_KEY: "false", IGNORE_MALFORMED_KEY: "true"}
        )
        assert settings.parse_upper_inclusive is False
        assert settings.ignore_malformed is True

    def test_from_empty_settings(self):
        assert MapperSettings.from_flat_settings({}) == MapperSettings()


class TestDateFieldSettings:
    """Settings flow into fields built through DateField."""

    def test_parse_upper_inclusive_default(self):
        settings = MapperSettings(parse_upper_inclusive=False)
        field = DateField.from_node("created_at", {}, settings)
        predicate = field.range_query("2015-01-01", "2015-01-01", now=0)
        assert predicate.upper == 1420070400000

    def test_include_in_all_default(self):
        field = DateField.from_node("created_at", {}, MapperSettings(include_in_all=False))
        assert field.extract_from_source({"created_at": "2015-01-01"}).add_to_all is False

    def test_field_facade(self):
        field = DateField.from_node("created_at", {"format": "yyyy/MM/dd"})
        assert field.name == "created_at"
        assert field.value("2015/01/01") == 1420070400000
        assert field.value_for_search(1420070400000) == "2015/01/01"
        assert field.resolve("2015/01/01", now=0, upper_inclusive=True) == 1420156799999
        assert field.term_query("2015/01/01", now=0).lower == 1420070400000
        assert field.fuzzy_query("2015/01/01", "1s", now=0).upper == 1420070401000
        assert field.to_node() == {"type": "date", "format": "yyyy/MM/dd"}
