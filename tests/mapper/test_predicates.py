"""Tests for range, term, fuzzy and null value predicates."""

import pytest

from datemapper.mapper.exceptions import DateMathParseError
from datemapper.mapper.numeric import LONG_MAX, LONG_MIN, PrefixCodedRange
from datemapper.mapper.predicates import DatePredicateBuilder, NumericRangePredicate
from datemapper.mapper.types import FieldConfig, ResolvedBound


JAN_1_2015 = 1420070400000
END_OF_JAN_1_2015 = 1420156799999
DAY = 86_400_000
HOUR = 3_600_000


def _bounds(predicate):
    return (
        predicate.lower,
        predicate.upper,
        predicate.include_lower,
        predicate.include_upper,
    )


class TestNumericRangePredicate:
    """Test the in-memory numeric range predicate."""

    def test_matches_inclusive(self):
        predicate = NumericRangePredicate.new_long_range("ts", 4, 10, 20, True, True)
        assert predicate.matches(10)
        assert predicate.matches(20)
        assert not predicate.matches(21)

    def test_matches_exclusive(self):
        predicate = NumericRangePredicate.new_long_range("ts", 4, 10, 20, False, False)
        assert not predicate.matches(10)
        assert predicate.matches(11)
        assert not predicate.matches(20)

    def test_open_sides(self):
        predicate = NumericRangePredicate.new_long_range("ts", 4, None, None, True, True)
        assert predicate.inclusive_bounds() == (LONG_MIN, LONG_MAX)

    def test_empty(self):
        predicate = NumericRangePredicate.new_long_range("ts", 4, 5, 5, False, True)
        assert predicate.is_empty
        assert predicate.term_ranges() == []
        assert not predicate.matches(5)

    def test_exclusive_upper_is_normalised_before_split(self):
        predicate = NumericRangePredicate.new_long_range("ts", 4, 0, 256, True, False)
        assert predicate.term_ranges() == [PrefixCodedRange(8, 0, 255)]

    def test_invalid_precision_step(self):
        with pytest.raises(ValueError):
            NumericRangePredicate.new_long_range("ts", 0, 0, 1, True, True)

    def test_to_dict(self):
        predicate = NumericRangePredicate.new_long_range("ts", 8, 1, 2, True, False)
        assert predicate.to_dict() == {
            "field": "ts",
            "precision_step": 8,
            "lower": 1,
            "upper": 2,
            "include_lower": True,
            "include_upper": False,
        }


class TestTermQuery:
    def test_single_point_inclusive(self, predicates):
        predicate = predicates.term_query("2015-01-01", now=0)
        assert _bounds(predicate) == (JAN_1_2015, JAN_1_2015, True, True)

    def test_uses_field_precision_step(self):
        builder = DatePredicateBuilder(FieldConfig(name="created_at", precision_step=8))
        predicate = builder.term_query(JAN_1_2015, now=0)
        assert predicate.precision_step == 8
        assert predicate.field == "created_at"

    def test_date_math_value(self, predicates):
        predicate = predicates.term_query("now/d", now=JAN_1_2015 + HOUR)
        assert _bounds(predicate) == (JAN_1_2015, JAN_1_2015, True, True)


class TestRangeQuery:
    """Test range bound resolution."""

    def test_inclusive_upper_rounds_to_end_of_period(self, predicates):
        predicate = predicates.range_query("2015-01-01", "2015-01-01", now=0)
        assert _bounds(predicate) == (JAN_1_2015, END_OF_JAN_1_2015, True, True)

    def test_exclusive_upper_keeps_start_of_period(self, predicates):
        predicate = predicates.range_query(
            "2015-01-01", "2015-01-01", include_upper=False, now=0
        )
        assert _bounds(predicate) == (JAN_1_2015, JAN_1_2015, True, False)

    def test_field_can_opt_out_of_rounding(self):
        builder = DatePredicateBuilder(
            FieldConfig(name="created_at", parse_upper_inclusive=False)
        )
        predicate = builder.range_query("2015-01-01", "2015-01-01", now=0)
        assert _bounds(predicate) == (JAN_1_2015, JAN_1_2015, True, True)

    def test_lower_bound_is_never_rounded_up(self, predicates):
        predicate = predicates.range_query("2015-01-01", None, include_lower=False, now=0)
        assert _bounds(predicate) == (JAN_1_2015, None, False, True)

    def test_open_lower(self, predicates):
        predicate = predicates.range_query(None, "2015-01-01", now=0)
        assert predicate.lower is None
        assert predicate.upper == END_OF_JAN_1_2015

    def test_numeric_bounds(self, predicates):
        predicate = predicates.range_query(0, 1000, now=0)
        assert _bounds(predicate) == (0, 1000, True, True)

    def test_resolve_bounds(self, predicates):
        lower, upper = predicates.resolve_bounds(None, "now-1d/d", now=JAN_1_2015 + HOUR)
        assert lower == ResolvedBound(None, True)
        assert lower.is_open
        assert upper == ResolvedBound(JAN_1_2015 - 1, True)

    def test_single_now_snapshot(self, config, counting_clock):
        builder = DatePredicateBuilder(config, clock=counting_clock)
        predicate = builder.range_query("now-1h", "now")
        assert counting_clock.calls == 1
        assert predicate.upper - predicate.lower == HOUR

    def test_explicit_now_skips_clock(self, config, counting_clock):
        builder = DatePredicateBuilder(config, clock=counting_clock)
        builder.range_query("now-1h", "now", now=JAN_1_2015)
        assert counting_clock.calls == 0

    def test_malformed_bound(self, predicates):
        with pytest.raises(DateMathParseError):
            predicates.range_query("now+1q", None, now=0)

    def test_custom_engine(self, config):
        builder = DatePredicateBuilder(config, engine=lambda *args: args)
        assert builder.term_query("2015-01-01", now=0) == (
            "created_at", 4, JAN_1_2015, JAN_1_2015, True, True
        )


class TestFuzzyQuery:
    """Test fuzzy windows."""

    def test_duration_similarity(self, predicates):
        predicate = predicates.fuzzy_query("2015-01-01", "2h", now=0)
        assert _bounds(predicate) == (
            JAN_1_2015 - 7_200_000,
            JAN_1_2015 + 7_200_000,
            True,
            True,
        )

    def test_numeric_similarity_scaled_by_fuzzy_factor(self):
        builder = DatePredicateBuilder(FieldConfig(name="created_at", fuzzy_factor="1d"))
        predicate = builder.fuzzy_query("2015-01-01", 2, now=0)
        assert predicate.lower == JAN_1_2015 - 2 * DAY
        assert predicate.upper == JAN_1_2015 + 2 * DAY

    def test_numeric_text_similarity(self):
        builder = DatePredicateBuilder(FieldConfig(name="created_at", fuzzy_factor="1000"))
        predicate = builder.fuzzy_query(JAN_1_2015, "1.5", now=0)
        assert predicate.upper - JAN_1_2015 == 1500

    def test_default_factor_is_one_millisecond(self, predicates):
        predicate = predicates.fuzzy_query(JAN_1_2015, 10, now=0)
        assert (predicate.lower, predicate.upper) == (JAN_1_2015 - 10, JAN_1_2015 + 10)

    def test_invalid_similarity(self, predicates):
        with pytest.raises(DateMathParseError):
            predicates.fuzzy_query("2015-01-01", "soon", now=0)

    @pytest.mark.parametrize("similarity", ["inf", "-inf", "nan", float("inf"), float("nan")])
    def test_non_finite_similarity(self, predicates, similarity):
        with pytest.raises(DateMathParseError):
            predicates.fuzzy_query("2015-01-01", similarity, now=0)

    def test_similarity_out_of_range(self):
        builder = DatePredicateBuilder(FieldConfig(name="created_at", fuzzy_factor="1d"))
        with pytest.raises(DateMathParseError):
            builder.fuzzy_query("2015-01-01", 1e300, now=0)


class TestNullValueQuery:
    def test_without_null_value(self, predicates):
        assert predicates.null_value_query() is None

    def test_with_null_value(self):
        builder = DatePredicateBuilder(
            FieldConfig(name="created_at", null_value="2015-01-01")
        )
        predicate = builder.null_value_query()
        assert _bounds(predicate) == (JAN_1_2015, JAN_1_2015, True, True)
