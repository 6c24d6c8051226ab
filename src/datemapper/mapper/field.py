"""Date Field.

Bundles one FieldConfig with the components that operate on it, giving
the host a single object per date field.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from datemapper.config import MapperSettings
from datemapper.mapper.builder import build_config, serialize_config
from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.date_math import DateMathParser
from datemapper.mapper.extractor import (
    NO_EXTERNAL_VALUE,
    AllEntries,
    extract,
    extract_from_source,
)
from datemapper.mapper.merge import merge
from datemapper.mapper.predicates import DatePredicateBuilder, RangeEngine
from datemapper.mapper.tokens import DocumentCursor
from datemapper.mapper.types import ExtractedValue, FieldConfig


class DateField:
    """A date field of the schema.

    Example:
        >>> field = DateField.from_node("created_at", {"format": "yyyy/MM/dd"})
        >>> field.extract_from_source({"created_at": "2015/01/01"}).value
        1420070400000
        >>> field.range_query("2015/01/01", "now", now=1420156800000).upper
        1420156800000
    """

    def __init__(
        self,
        config: FieldConfig,
        settings: Optional[MapperSettings] = None,
        engine: Optional[RangeEngine] = None,
    ):
        self.config = config
        self.settings = settings or MapperSettings()
        self.coercer = ValueCoercer.from_config(config)
        self.date_math = DateMathParser(self.coercer)
        self.predicates = DatePredicateBuilder(config, engine=engine)

    @classmethod
    def from_node(
        cls,
        name: str,
        node: Mapping[str, Any],
        settings: Optional[MapperSettings] = None,
        engine: Optional[RangeEngine] = None,
    ) -> "DateField":
        return cls(build_config(name, node, settings), settings=settings, engine=engine)

    @property
    def name(self) -> str:
        return self.config.name

    # Values

    def value(self, value: Any) -> Optional[int]:
        return self.coercer.value(value)

    def value_for_search(self, value: Any) -> Optional[str]:
        return self.coercer.value_for_search(value)

    def indexed_value_for_search(self, value: Any) -> bytes:
        return self.coercer.indexed_value_for_search(value)

    def resolve(self, expression: str, now: int, upper_inclusive: bool = False) -> int:
        return self.date_math.parse(expression, now, round_up=upper_inclusive)

    # Documents

    def extract(
        self,
        cursor: Optional[DocumentCursor] = None,
        external_value: Any = NO_EXTERNAL_VALUE,
        all_entries: Optional[AllEntries] = None,
    ) -> Optional[ExtractedValue]:
        return extract(
            self.config,
            cursor,
            external_value=external_value,
            all_entries=all_entries,
            include_in_all_default=self.settings.include_in_all,
        )

    def extract_from_source(
        self,
        source: Mapping[str, Any],
        all_entries: Optional[AllEntries] = None,
    ) -> Optional[ExtractedValue]:
        return extract_from_source(
            self.config,
            source,
            all_entries=all_entries,
            include_in_all_default=self.settings.include_in_all,
        )

    # Queries

    def term_query(self, value: Any, now: Optional[int] = None) -> Any:
        return self.predicates.term_query(value, now=now)

    def range_query(
        self,
        lower: Any = None,
        upper: Any = None,
        include_lower: bool = True,
        include_upper: bool = True,
        now: Optional[int] = None,
    ) -> Any:
        return self.predicates.range_query(lower, upper, include_lower, include_upper, now=now)

    def fuzzy_query(
        self,
        value: Any,
        similarity: Union[str, int, float],
        now: Optional[int] = None,
    ) -> Any:
        return self.predicates.fuzzy_query(value, similarity, now=now)

    def null_value_query(self) -> Optional[Any]:
        return self.predicates.null_value_query()

    # Schema

    def merge(self, other: Any, simulate: bool = False) -> None:
        """Merge another field definition (a DateField or a bare config) into this one."""
        incoming = other.config if isinstance(other, DateField) else other
        merge(self.config, incoming, simulate=simulate)

    def to_node(self) -> dict:
        return serialize_config(self.config)
