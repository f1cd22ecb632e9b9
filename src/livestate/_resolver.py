"""Expression resolution against an evaluation context.

The expression language itself is owned elsewhere; any object implementing
:class:`Resolver` can be plugged in. :class:`TemplateResolver` is the default used
when none is given. It understands ``{{ ... }}`` templates whose body is a literal,
a reference path, or the negation of either.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Protocol

from ._path import Reference, get_value_by_reference
from ._value_kind import UNDEFINED

logger = logging.getLogger(__name__)

_EXPRESSION_PATTERN = re.compile(r"\{\{\s*([\s\S]+?)\s*\}\}")
_NUMBER_PATTERN = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")

_LITERALS: Final[dict[str, Any]] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": UNDEFINED,
}


class Resolver(Protocol):
    """Anything that resolves a raw property value against a context."""

    def resolve(self, value: Any, context: Mapping[str, Any]) -> Any: ...


@dataclass(frozen=True, slots=True)
class Resolved:
    """Successful outcome of :func:`try_resolve`."""

    value: Any


def try_resolve(resolver: Resolver, value: Any, context: Mapping[str, Any]) -> Resolved | None:
    """Resolve a value, turning any resolver failure into None.

    Callers treat None as "omit this value"; it is never propagated as an error.
    """
    try:
        return Resolved(resolver.resolve(value, context))
    except Exception:  # noqa: BLE001
        logger.debug("Resolver failed for %r", value, exc_info=True)
        return None


def to_display_string(value: Any) -> str:  # noqa: PLR0911
    """Text form of a value as shown in templates and search."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        if math.isnan(value):
            return "NaN"
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def _evaluate_literal(expression: str) -> Any:
    if expression in _LITERALS:
        return _LITERALS[expression]
    if len(expression) >= 2 and expression[0] == expression[-1] and expression[0] in "'\"":  # noqa: PLR2004
        return expression[1:-1]
    if _NUMBER_PATTERN.match(expression):
        number = float(expression)
        if number.is_integer() and "." not in expression and "e" not in expression.lower():
            return int(number)
        return number
    return UNDEFINED


class TemplateResolver:
    """Resolve ``{{ reference }}`` templates.

    A string that is exactly one template evaluates to the referenced value.
    Templates embedded in longer text are replaced by their display string.
    Anything that cannot be evaluated is left as written.
    """

    def evaluate(self, expression: str, context: Mapping[str, Any]) -> Any:
        """Evaluate a template body, returning UNDEFINED when it cannot."""
        expression = expression.strip()
        if expression.startswith("!"):
            inner = self.evaluate(expression[1:], context)
            return UNDEFINED if inner is UNDEFINED else not _truthy(inner)

        literal = _evaluate_literal(expression)
        if literal is not UNDEFINED or expression == "undefined":
            return literal

        try:
            reference = Reference.parse(expression)
        except ValueError:
            logger.debug("Cannot evaluate expression %r", expression)
            return UNDEFINED
        return get_value_by_reference(context, reference)

    def resolve(self, value: Any, context: Mapping[str, Any]) -> Any:
        if isinstance(value, str):
            trimmed = value.strip()
            if trimmed.startswith("{{") and trimmed.endswith("}}") and _is_single_template(trimmed):
                evaluated = self.evaluate(trimmed[2:-2], context)
                return value if evaluated is UNDEFINED else evaluated

            def substitute(match: re.Match[str]) -> str:
                evaluated = self.evaluate(match.group(1), context)
                if evaluated is UNDEFINED:
                    return match.group(0)
                return to_display_string(evaluated)

            return _EXPRESSION_PATTERN.sub(substitute, value)

        if isinstance(value, (list, tuple)):
            return [self.resolve(item, context) for item in value]

        if isinstance(value, Mapping):
            return {key: self.resolve(item, context) for key, item in value.items()}

        return value


def _is_single_template(text: str) -> bool:
    match = _EXPRESSION_PATTERN.fullmatch(text)
    return match is not None and "}}" not in match.group(1)


def _truthy(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (Mapping, list, tuple)):
        # Containers are always truthy in expressions, even when empty
        return True
    return bool(value)


DEFAULT_RESOLVER: Final[Resolver] = TemplateResolver()
