"""Date Mapper Exceptions.

Defines the exception hierarchy for the date field mapper:
- DateFormatError: a date pattern failed to compile, parse or print
- ValueParseError: document or null value could not be coerced
- DateMathParseError: malformed date-math expression in a query
- UnknownFieldPropertyError: unrecognised key in object-form values
- ConfigError: invalid field definition
- IncompatibleMergeError: merge between different field kinds

Every condition stems from invalid input or configuration, so none of
these errors is retryable.
"""

from __future__ import annotations

from typing import Any, Optional


class DateMapperError(Exception):
    """Base exception for date mapper operations.

    All mapper-specific exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description
            field_name: Name of the field being processed (optional)
            cause: Underlying exception (optional)
        """
        super().__init__(message)
        self.field_name = field_name
        self.cause = cause


class DateFormatError(DateMapperError):
    """A formatter could not parse text, print a value, or compile a pattern.

    Attributes:
        pattern: The format pattern involved
    """

    def __init__(
        self,
        message: str,
        pattern: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.pattern = pattern


class ValueParseError(DateMapperError):
    """Neither the date format nor the numeric fallback accepted a value.

    Surfaced to the indexing caller, which rejects the single document.

    Attributes:
        value: The rejected input
        pattern: Name of the configured date format
        format_error: Failure raised by the date format parse
        number_error: Failure raised by the integer fallback parse
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        pattern: Optional[str] = None,
        format_error: Optional[Exception] = None,
        number_error: Optional[Exception] = None,
        field_name: Optional[str] = None,
    ):
        super().__init__(message, field_name=field_name, cause=format_error)
        self.value = value
        self.pattern = pattern
        self.format_error = format_error
        self.number_error = number_error


class DateMathParseError(DateMapperError):
    """A date-math expression is malformed or names an unknown unit.

    Example:
        >>> raise DateMathParseError(
        ...     "unit [q] not supported for date math [+1q]",
        ...     expression="now+1q",
        ... )

    Attributes:
        expression: The full expression that failed
    """

    def __init__(
        self,
        message: str,
        expression: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.expression = expression


class UnknownFieldPropertyError(DateMapperError):
    """Object-form document value contains an unrecognised key.

    Attributes:
        property_name: The offending key
    """

    def __init__(self, property_name: str, field_name: Optional[str] = None):
        self.property_name = property_name
        message = f"unknown property [{property_name}]"
        if field_name:
            message += f" for date field [{field_name}]"
        super().__init__(message, field_name=field_name)


class ConfigError(DateMapperError):
    """Field definition is invalid; the field is never constructed."""

    pass


class IncompatibleMergeError(DateMapperError):
    """Merge attempted between field configurations of different kinds.

    Attributes:
        target_kind: Kind of the existing configuration
        incoming_kind: Kind of the configuration being merged in
    """

    def __init__(
        self,
        target_kind: str,
        incoming_kind: str,
        field_name: Optional[str] = None,
    ):
        self.target_kind = target_kind
        self.incoming_kind = incoming_kind
        message = (
            f"mapper [{field_name or '?'}] of different type, "
            f"current_type [{target_kind}], merged_type [{incoming_kind}]"
        )
        super().__init__(message, field_name=field_name)
