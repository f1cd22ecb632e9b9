"""Widget property resolution.

Each property in a widget's raw bag is resolved against the context, then
coerced and checked against the kinds its field declares. A property whose
resolution fails, or whose resolved kind is not allowed, is omitted: the widget
state then looks exactly as if the property had never been set.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ._resolver import DEFAULT_RESOLVER, try_resolve
from ._spacing import resolve_widget_spacing_modes
from ._value_kind import UNDEFINED, ValueKind, infer_value_kind

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ._models import FieldSchema, WidgetDefinition, WidgetInstance
    from ._resolver import Resolver

logger = logging.getLogger(__name__)

_TRUE_WORDS = frozenset({"true", "1", "yes", "y"})
_FALSE_WORDS = frozenset({"false", "0", "no", "n"})


def parse_boolean(value: Any, fallback: bool = False) -> bool:  # noqa: FBT001, FBT002
    """Read a boolean from a bool, number or yes/no style string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return fallback


def coerce_boolean_void_value(field: FieldSchema | None, value: Any) -> Any:
    """Turn ``""`` into ``False`` for fields declared as ``Boolean | Void``.

    This is the only coercion applied; every other value is returned as is.
    """
    if not isinstance(value, str) or value or field is None:
        return value
    allowed = field.allowed_kinds
    if ValueKind.BOOLEAN in allowed and ValueKind.UNDEFINED in allowed:
        return False
    return value


def is_value_valid_for_field(field: FieldSchema | None, value: Any) -> bool:
    """Check a value's runtime kind against the field's allowed kinds."""
    if field is None:
        return True
    allowed = field.allowed_kinds
    if not allowed:
        return True
    return infer_value_kind(value) in allowed


def resolve_widget_props(
    widget: WidgetInstance,
    fields: Sequence[FieldSchema],
    context: Mapping[str, Any],
    resolver: Resolver = DEFAULT_RESOLVER,
) -> dict[str, Any]:
    """Resolve, coerce and validate every property in the widget's raw bag.

    Properties without a field schema accept any resolved value.

    Returns:
        The subset of properties that resolved to an allowed value.

    """
    fields_by_key = {field.key: field for field in fields if field.key}
    resolved_props: dict[str, Any] = {}
    for key, raw_value in widget.props.items():
        field = fields_by_key.get(key)
        resolved = try_resolve(resolver, raw_value, context)
        if resolved is None:
            logger.debug("Omitting %s.%s: resolution failed", widget.id, key)
            continue
        value = coerce_boolean_void_value(field, resolved.value)
        if not is_value_valid_for_field(field, value):
            logger.debug(
                "Omitting %s.%s: %s is not one of %s",
                widget.id,
                key,
                infer_value_kind(value),
                field.allowed_kinds if field is not None else (),
            )
            continue
        resolved_props[key] = value
    return resolved_props


def build_widget_state(
    widget: WidgetInstance,
    definition: WidgetDefinition | None,
    context: Mapping[str, Any],
    resolver: Resolver = DEFAULT_RESOLVER,
) -> dict[str, Any]:
    """Build the flat state snapshot of one widget.

    Layers, lowest first: the type's default props, the raw bag, the resolved
    props. An omitted property falls back to its default when the default is
    itself valid, and is absent otherwise. Invalid defaults are dropped too.
    Layout attributes and ``hidden`` come last.

    """
    fields = definition.fields if definition is not None else []
    fields_by_key = {field.key: field for field in fields if field.key}
    default_props = definition.default_props if definition is not None else {}
    resolved_props = resolve_widget_props(widget, fields, context, resolver)

    identity = {"id": widget.id, "type": widget.type}
    state: dict[str, Any] = {**identity, **default_props, **widget.props}
    for key in {**default_props, **widget.props}:
        if key in resolved_props:
            state[key] = resolved_props[key]
        elif key in default_props and is_value_valid_for_field(fields_by_key.get(key), default_props[key]):
            state[key] = default_props[key]
        elif key in identity:
            state[key] = identity[key]
        else:
            del state[key]

    def evaluate_fx(expression: str) -> Any:
        resolved = try_resolve(resolver, expression, context)
        return resolved.value if resolved is not None else UNDEFINED

    spacing = resolve_widget_spacing_modes(widget.type, widget.spacing, evaluate_fx)
    hidden = try_resolve(resolver, widget.hidden, context)

    state.update(
        {
            "hidden": parse_boolean(hidden.value if hidden is not None else None, fallback=False),
            "visibleWhen": widget.visible_when or "",
            "disabledWhen": widget.disabled_when or "",
            "heightType": spacing.height_mode,
            "margin": spacing.margin,
        },
    )
    return state
