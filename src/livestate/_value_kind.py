"""Runtime value kinds and declared value-type tokens.

Widget fields declare the kinds of values they accept as a token string such as
``"Boolean | Void"``. This module parses those tokens and infers the kind of a
resolved Python value so the two can be compared.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final, Self


class _Undefined:
    """Marker for a value that is absent, as opposed to an explicit ``None``."""

    _instance: _Undefined | None = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Final = _Undefined()


class ValueKind(StrEnum):
    """Kind of a resolved value.

    Members carry a docstring describing the Python values they cover.
    """

    def __new__(cls, value: str, doc: str = "") -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.__doc__ = doc
        return obj

    UNDEFINED = "undefined", "The UNDEFINED sentinel."
    NULL = "null", "None."
    ARRAY = "array", "list or tuple."
    STRING = "string", "str."
    NUMBER = "number", "int or float, never bool."
    BOOLEAN = "boolean", "bool."
    FUNCTION = "function", "Any callable that is not a container."
    OBJECT = "object", "Any mapping."
    UNKNOWN = "unknown", "Everything else."


_TOKEN_ALIASES: Final[dict[str, ValueKind]] = {
    "void": ValueKind.UNDEFINED,
    "undefined": ValueKind.UNDEFINED,
    "bool": ValueKind.BOOLEAN,
    "boolean": ValueKind.BOOLEAN,
    "str": ValueKind.STRING,
    "string": ValueKind.STRING,
    "int": ValueKind.NUMBER,
    "float": ValueKind.NUMBER,
    "number": ValueKind.NUMBER,
    "json": ValueKind.OBJECT,
    "object": ValueKind.OBJECT,
    "array": ValueKind.ARRAY,
    "null": ValueKind.NULL,
}

_TOKEN_SEPARATOR = re.compile(r"[|/]")


def normalize_value_type_token(token: str) -> ValueKind | str | None:
    """Normalize one value-type token.

    Known spellings map onto a ValueKind. Unknown tokens are returned lower-cased
    so they still never match a runtime kind, and blank tokens give None.
    """
    normalized = token.strip().lower()
    if not normalized:
        return None
    return _TOKEN_ALIASES.get(normalized, normalized)


def parse_value_type_tokens(value_type: str | None) -> tuple[ValueKind | str, ...]:
    """Split a declaration like ``"Boolean | Void"`` into normalized tokens."""
    if not value_type:
        return ()
    tokens = (normalize_value_type_token(token) for token in _TOKEN_SEPARATOR.split(value_type))
    return tuple(token for token in tokens if token is not None)


def infer_value_kind(value: Any) -> ValueKind:  # noqa: PLR0911
    """Return the runtime kind of a resolved value."""
    if value is UNDEFINED:
        return ValueKind.UNDEFINED
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    if callable(value):
        return ValueKind.FUNCTION
    return ValueKind.UNKNOWN


def format_value_kind_label(kind: ValueKind) -> str:
    """Human label for a kind, e.g. ``Void`` for undefined."""
    if kind is ValueKind.UNDEFINED:
        return "Void"
    return kind.value.capitalize()
