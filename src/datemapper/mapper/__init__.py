"""Date Field Mapper Module.

Implements the temporal field handler of the index schema:
- Value coercion to canonical epoch milliseconds
- Date-math resolution anchored to a caller-supplied "now"
- Numeric range, term and fuzzy predicates with precision-step encoding
- Document value extraction (scalar and object forms)
- Field configuration build, serialization and merge
"""

from datemapper.mapper.builder import build_config, serialize_config
from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.date_math import DateMathParser
from datemapper.mapper.exceptions import (
    ConfigError,
    DateFormatError,
    DateMapperError,
    DateMathParseError,
    IncompatibleMergeError,
    UnknownFieldPropertyError,
    ValueParseError,
)
from datemapper.mapper.extractor import AllEntries, extract, extract_from_source
from datemapper.mapper.field import DateField
from datemapper.mapper.formatter import DateFormatter
from datemapper.mapper.merge import merge
from datemapper.mapper.predicates import DatePredicateBuilder, NumericRangePredicate
from datemapper.mapper.tokens import DocumentCursor, Token, TokenKind
from datemapper.mapper.types import ExtractedValue, FieldConfig, ResolvedBound, TimeUnit

__all__ = [
    # Facade
    "DateField",
    # Types
    "FieldConfig",
    "TimeUnit",
    "ResolvedBound",
    "ExtractedValue",
    # Components
    "DateFormatter",
    "ValueCoercer",
    "DateMathParser",
    "DatePredicateBuilder",
    "NumericRangePredicate",
    "DocumentCursor",
    "Token",
    "TokenKind",
    "AllEntries",
    # Operations
    "build_config",
    "serialize_config",
    "extract",
    "extract_from_source",
    "merge",
    # Errors
    "DateMapperError",
    "DateFormatError",
    "ValueParseError",
    "DateMathParseError",
    "UnknownFieldPropertyError",
    "ConfigError",
    "IncompatibleMergeError",
]
