"""Field Value Extraction.

Reads one date field out of a document payload:
- scalar forms: null (null value substitution), number, string
- object form: ``value``/``_value`` plus optional ``boost``/``_boost``;
  any other key is rejected
- an out-of-band external value bypasses the token stream

Textual values are also offered to the aggregate full-text field in
their original form.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from datemapper.mapper.coercion import ValueCoercer, to_canonical_long
from datemapper.mapper.exceptions import UnknownFieldPropertyError, ValueParseError
from datemapper.mapper.tokens import DocumentCursor, Token, TokenKind, render_boolean
from datemapper.mapper.types import ExtractedValue, FieldConfig

logger = logging.getLogger(__name__)

VALUE_KEYS = ("value", "_value")
BOOST_KEYS = ("boost", "_boost")

NO_EXTERNAL_VALUE = object()
"""Marker for "no external value supplied" (None is a valid external null)."""


@dataclass(frozen=True)
class AllEntry:
    """One contribution to the aggregate full-text field."""

    name: str
    text: str
    boost: float = 1.0


@dataclass
class AllEntries:
    """Collects text that a document contributes to the aggregate field."""

    entries: List[AllEntry] = field(default_factory=list)

    def add_text(self, name: str, text: str, boost: float = 1.0) -> None:
        self.entries.append(AllEntry(name=name, text=text, boost=boost))

    def text(self) -> str:
        return " ".join(entry.text for entry in self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def extract(
    config: FieldConfig,
    cursor: Optional[DocumentCursor] = None,
    external_value: Any = NO_EXTERNAL_VALUE,
    all_entries: Optional[AllEntries] = None,
    include_in_all_default: bool = True,
) -> Optional[ExtractedValue]:
    """Extract the value of a date field.

    Args:
        config: Field definition
        cursor: Cursor positioned on the field's value token
        external_value: Value supplied out of band; takes precedence over
            the cursor
        all_entries: Aggregate full-text collector to append text to
        include_in_all_default: Document-level default used when the field
            does not set ``include_in_all``

    Returns:
        The extracted value, or None when a malformed value is skipped
        because the field ignores malformed input

    Raises:
        ValueParseError: If the value cannot be coerced
        UnknownFieldPropertyError: If an object-form value has an unknown key
    """
    boost = config.boost
    number: Any = None
    text: Optional[str] = None

    if external_value is not NO_EXTERNAL_VALUE:
        if isinstance(external_value, bool):
            text = render_boolean(external_value)
        elif isinstance(external_value, (int, float)):
            number = external_value
        elif external_value is None:
            text = config.null_value
        else:
            text = str(external_value)
    else:
        if cursor is None:
            raise ValueError("extract requires a cursor when no external value is given")
        token = cursor.current_token
        if token.kind == TokenKind.START_OBJECT:
            number, text, boost = _parse_object(config, cursor, boost)
        else:
            number, text = _parse_scalar(config, token)

    if number is None and text is None:
        return ExtractedValue(value=None, boost=boost)

    try:
        if number is not None:
            millis = to_canonical_long(number, config.format, config.name)
        else:
            millis = ValueCoercer.from_config(config).parse_string(text)
    except ValueParseError:
        if config.ignore_malformed:
            malformed = text if number is None else number
            logger.warning(f"Ignoring malformed value [{malformed}] for date field [{config.name}]")
            return None
        raise

    if number is not None:
        return ExtractedValue(value=millis, boost=boost)

    add_to_all = config.include_in_all
    if add_to_all is None:
        add_to_all = include_in_all_default
    if add_to_all and all_entries is not None:
        all_entries.add_text(config.name, text, boost)
    return ExtractedValue(value=millis, boost=boost, add_to_all=add_to_all, text=text)


def extract_from_source(
    config: FieldConfig,
    source: Mapping[str, Any],
    all_entries: Optional[AllEntries] = None,
    include_in_all_default: bool = True,
) -> Optional[ExtractedValue]:
    """Extract a date field from a parsed document.

    Returns None when the document does not contain the field; only an
    explicit null triggers null value substitution.
    """
    found, payload = _lookup(source, config.name)
    if not found:
        return None
    return extract(
        config,
        DocumentCursor.from_payload(payload),
        all_entries=all_entries,
        include_in_all_default=include_in_all_default,
    )


def _parse_scalar(config: FieldConfig, token: Token) -> Tuple[Any, Optional[str]]:
    if token.kind == TokenKind.NULL:
        return None, config.null_value
    if token.kind == TokenKind.NUMBER:
        return token.value, None
    if token.kind == TokenKind.STRING:
        return None, token.value
    raise ValueParseError(
        f"unexpected token [{token.kind.value}] for date field [{config.name}]",
        value=token.value,
        pattern=config.format,
        field_name=config.name,
    )


def _parse_object(
    config: FieldConfig,
    cursor: DocumentCursor,
    boost: float,
) -> Tuple[Any, Optional[str], float]:
    number: Any = None
    text: Optional[str] = None
    current_name: Optional[str] = None
    while True:
        token = cursor.next_token()
        if token is None:
            raise ValueParseError(
                f"unterminated object for date field [{config.name}]",
                field_name=config.name,
            )
        if token.kind == TokenKind.END_OBJECT:
            return number, text, boost
        if token.kind == TokenKind.FIELD_NAME:
            current_name = token.value
        elif current_name in VALUE_KEYS:
            if token.kind == TokenKind.START_OBJECT:
                raise ValueParseError(
                    f"[{current_name}] of date field [{config.name}] must be a scalar",
                    field_name=config.name,
                )
            number, text = _parse_scalar(config, token)
        elif current_name in BOOST_KEYS:
            boost = _parse_boost(config, token)
        else:
            raise UnknownFieldPropertyError(str(current_name), field_name=config.name)


def _parse_boost(config: FieldConfig, token: Token) -> float:
    if token.kind in (TokenKind.NUMBER, TokenKind.STRING):
        try:
            return float(token.value)
        except ValueError:
            pass
    raise ValueParseError(
        f"failed to parse boost [{token.value}] for date field [{config.name}]",
        value=token.value,
        field_name=config.name,
    )


def _lookup(source: Mapping[str, Any], path: str) -> Tuple[bool, Any]:
    if path in source:
        return True, source[path]
    current: Any = source
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return False, None
        current = current[part]
    return True, current
