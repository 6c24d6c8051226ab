"""Tests for building and serializing date field definitions."""

import pytest

from datemapper.config import MapperSettings
from datemapper.mapper.builder import build_config, serialize_config, to_underscore_case
from datemapper.mapper.exceptions import ConfigError
from datemapper.mapper.types import FieldConfig, TimeUnit


class TestToUnderscoreCase:
    def test_camel_case(self):
        assert to_underscore_case("nullValue") == "null_value"
        assert to_underscore_case("precisionStep") == "precision_step"

    def test_underscore_unchanged(self):
        assert to_underscore_case("numeric_resolution") == "numeric_resolution"


class TestBuildConfig:
    """Test build_config."""

    def test_defaults(self):
        config = build_config("created_at", {"type": "date"})
        assert config == FieldConfig(name="created_at")

    def test_all_properties(self):
        config = build_config(
            "created_at",
            {
                "type": "date",
                "format": "yyyy/MM/dd",
                "precision_step": 8,
                "numeric_resolution": "seconds",
                "null_value": "1970/01/01",
                "fuzzy_factor": "1d",
                "boost": 2.0,
                "include_in_all": "false",
                "ignore_malformed": True,
            },
        )
        assert config.format == "yyyy/MM/dd"
        assert config.precision_step == 8
        assert config.time_unit == TimeUnit.SECONDS
        assert config.null_value == "1970/01/01"
        assert config.fuzzy_factor == "1d"
        assert config.fuzzy_factor_millis == 86_400_000
        assert config.boost == 2.0
        assert config.include_in_all is False
        assert config.ignore_malformed is True

    def test_camel_case_keys(self):
        config = build_config("created_at", {"nullValue": "2015-01-01", "precisionStep": 8})
        assert config.null_value == "2015-01-01"
        assert config.precision_step == 8

    def test_non_string_null_value(self):
        config = build_config("created_at", {"null_value": 0})
        assert config.null_value == "0"

    def test_host_keys_are_ignored(self):
        config = build_config("created_at", {"index": "not_analyzed", "store": "yes"})
        assert config == FieldConfig(name="created_at")

    def test_settings_defaults(self):
        settings = MapperSettings(parse_upper_inclusive=False, ignore_malformed=True)
        config = build_config("created_at", {}, settings)
        assert config.parse_upper_inclusive is False
        assert config.ignore_malformed is True

    def test_node_overrides_settings(self):
        settings = MapperSettings(ignore_malformed=True)
        config = build_config("created_at", {"ignore_malformed": "no"}, settings)
        assert config.ignore_malformed is False


class TestBuildConfigErrors:
    """Invalid definitions fail with ConfigError."""

    @pytest.mark.parametrize(
        "node",
        [
            {"numeric_resolution": "fortnights"},
            {"precision_step": 0},
            {"precision_step": 65},
            {"precision_step": "fine"},
            {"format": "yyyy-qq"},
            {"format": "yyyy[-MM"},
            {"fuzzy_factor": "lots"},
        ],
    )
    def test_invalid_node(self, node):
        with pytest.raises(ConfigError) as exc_info:
            build_config("created_at", node)
        assert exc_info.value.field_name == "created_at"
        assert exc_info.value.cause is not None

    def test_empty_name(self):
        with pytest.raises(ConfigError):
            build_config("", {})


class TestSerializeConfig:
    """Only non-default settings are written."""

    def test_defaults(self):
        assert serialize_config(FieldConfig(name="created_at")) == {
            "type": "date",
            "format": "dateOptionalTime",
        }

    def test_non_defaults(self):
        config = FieldConfig(
            name="created_at",
            format="yyyy/MM/dd",
            precision_step=8,
            fuzzy_factor="1d",
            time_unit=TimeUnit.SECONDS,
            null_value="1970/01/01",
            include_in_all=False,
            boost=2.0,
            ignore_malformed=True,
        )
        assert serialize_config(config) == {
            "type": "date",
            "boost": 2.0,
            "precision_step": 8,
            "fuzzy_factor": "1d",
            "format": "yyyy/MM/dd",
            "null_value": "1970/01/01",
            "include_in_all": False,
            "numeric_resolution": "seconds",
            "ignore_malformed": True,
        }

    def test_round_trip(self):
        node = {
            "type": "date",
            "format": "yyyy/MM/dd||dateOptionalTime",
            "precision_step": 16,
            "numeric_resolution": "seconds",
            "null_value": "1970/01/01",
        }
        config = build_config("created_at", node)
        assert serialize_config(config) == node
        assert build_config("created_at", serialize_config(config)) == config
