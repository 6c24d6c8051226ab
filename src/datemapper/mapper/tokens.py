"""Document token stream.

A document field payload is consumed as a flat sequence of tagged tokens:

    {"value": "2015-01-01", "boost": 2.0}

    START_OBJECT, FIELD_NAME(value), STRING(2015-01-01),
    FIELD_NAME(boost), NUMBER(2.0), END_OBJECT
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional, Sequence

from datemapper.mapper.exceptions import ValueParseError


class TokenKind(str, Enum):
    """Kinds of tokens in a document payload."""

    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    START_OBJECT = "start_object"
    FIELD_NAME = "field_name"
    END_OBJECT = "end_object"


@dataclass(frozen=True)
class Token:
    """One token; ``value`` holds the scalar or the field name."""

    kind: TokenKind
    value: Any = None


def render_boolean(value: bool) -> str:
    """JSON text of a boolean, the form booleans take as date input."""
    return "true" if value else "false"


def tokenize(payload: Any) -> List[Token]:
    """Flatten a JSON-like field payload into tokens.

    Booleans become their JSON text. Arrays are not a single field value
    and are rejected.

    Raises:
        ValueParseError: For arrays and non-JSON values
    """
    return list(_tokens(payload))


def _tokens(payload: Any) -> Iterator[Token]:
    if payload is None:
        yield Token(TokenKind.NULL)
    elif isinstance(payload, bool):
        yield Token(TokenKind.STRING, render_boolean(payload))
    elif isinstance(payload, (int, float)):
        yield Token(TokenKind.NUMBER, payload)
    elif isinstance(payload, str):
        yield Token(TokenKind.STRING, payload)
    elif isinstance(payload, Mapping):
        yield Token(TokenKind.START_OBJECT)
        for key, value in payload.items():
            yield Token(TokenKind.FIELD_NAME, str(key))
            yield from _tokens(value)
        yield Token(TokenKind.END_OBJECT)
    else:
        raise ValueParseError(
            f"unsupported date field payload of type [{type(payload).__name__}]",
            value=payload,
        )


class DocumentCursor:
    """Forward-only cursor over a token sequence.

    The cursor starts positioned on the first token.

    Example:
        >>> cursor = DocumentCursor.from_payload({"value": 0})
        >>> cursor.current_token.kind
        <TokenKind.START_OBJECT: 'start_object'>
        >>> cursor.next_token().value
        'value'
    """

    def __init__(self, tokens: Sequence[Token]):
        if not tokens:
            raise ValueError("DocumentCursor requires at least one token")
        self._tokens = list(tokens)
        self._position = 0

    @classmethod
    def from_payload(cls, payload: Any) -> "DocumentCursor":
        return cls(tokenize(payload))

    @property
    def current_token(self) -> Token:
        return self._tokens[self._position]

    def next_token(self) -> Optional[Token]:
        """Advance and return the new current token, or None at the end."""
        if self._position + 1 >= len(self._tokens):
            self._position = len(self._tokens) - 1
            return None
        self._position += 1
        return self._tokens[self._position]
