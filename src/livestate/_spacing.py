"""Widget spacing: height mode and margin mode.

Both modes have a static value and an optional fx expression. When the fx is
enabled it wins, but only if it evaluates to one of the allowed modes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._models import WidgetSpacing

AUTO_HEIGHT_WIDGET_TYPES: Final = frozenset(
    {
        "Text",
        "Button",
        "TextInput",
        "EditableText",
        "Select",
        "Switch",
        "DatePicker",
        "FileUpload",
        "Icon",
    },
)

HEIGHT_MODES: Final = ("auto", "fixed")
MARGIN_MODES: Final = ("normal", "none")

DEFAULT_MARGIN: Final = "4px 8px"
NO_MARGIN: Final = "0px"


@dataclass(frozen=True, slots=True)
class ResolvedSpacing:
    height_mode: str
    height_fx_enabled: bool
    height_fx: str
    margin_mode: str
    margin_fx_enabled: bool
    margin_fx: str

    @property
    def margin(self) -> str:
        return NO_MARGIN if self.margin_mode == "none" else DEFAULT_MARGIN


def default_widget_spacing(widget_type: str | None) -> ResolvedSpacing:
    return ResolvedSpacing(
        height_mode="auto" if widget_type in AUTO_HEIGHT_WIDGET_TYPES else "fixed",
        height_fx_enabled=False,
        height_fx="",
        margin_mode="normal",
        margin_fx_enabled=False,
        margin_fx="",
    )


def resolve_widget_spacing(widget_type: str, spacing: WidgetSpacing | None) -> ResolvedSpacing:
    """Overlay a widget's spacing overrides on its type defaults."""
    defaults = default_widget_spacing(widget_type)
    if spacing is None:
        return defaults

    def pick(override: Any, fallback: Any) -> Any:
        return fallback if override is None else override

    return ResolvedSpacing(
        height_mode=pick(spacing.height_mode, defaults.height_mode),
        height_fx_enabled=pick(spacing.height_fx_enabled, defaults.height_fx_enabled),
        height_fx=pick(spacing.height_fx, defaults.height_fx),
        margin_mode=pick(spacing.margin_mode, defaults.margin_mode),
        margin_fx_enabled=pick(spacing.margin_fx_enabled, defaults.margin_fx_enabled),
        margin_fx=pick(spacing.margin_fx, defaults.margin_fx),
    )


def _strip_quotes(text: str) -> str:
    if text[:1] in {"'", '"'}:
        text = text[1:]
    if text[-1:] in {"'", '"'}:
        text = text[:-1]
    return text.strip()


def resolve_fx_mode(
    fallback: str,
    *,
    enabled: bool,
    expression: str,
    allowed: tuple[str, ...],
    evaluate_fx: Callable[[str], Any] | None = None,
) -> str:
    """Pick a mode from an fx expression, falling back to the static mode."""
    if not enabled or not expression:
        return fallback

    evaluated = evaluate_fx(expression) if evaluate_fx is not None else expression
    if evaluated is None:
        return fallback

    normalized_value = str(evaluated).strip()
    if not normalized_value:
        return fallback

    if normalized_value.startswith("{{") and normalized_value.endswith("}}"):
        normalized_value = normalized_value[2:-2].strip()
    normalized = _strip_quotes(normalized_value)
    return normalized if normalized in allowed else fallback


def resolve_widget_spacing_modes(
    widget_type: str,
    spacing: WidgetSpacing | None,
    evaluate_fx: Callable[[str], Any] | None = None,
) -> ResolvedSpacing:
    """Resolve spacing with fx expressions applied to both modes."""
    resolved = resolve_widget_spacing(widget_type, spacing)
    return ResolvedSpacing(
        height_mode=resolve_fx_mode(
            resolved.height_mode,
            enabled=resolved.height_fx_enabled,
            expression=resolved.height_fx,
            allowed=HEIGHT_MODES,
            evaluate_fx=evaluate_fx,
        ),
        height_fx_enabled=resolved.height_fx_enabled,
        height_fx=resolved.height_fx,
        margin_mode=resolve_fx_mode(
            resolved.margin_mode,
            enabled=resolved.margin_fx_enabled,
            expression=resolved.margin_fx,
            allowed=MARGIN_MODES,
            evaluate_fx=evaluate_fx,
        ),
        margin_fx_enabled=resolved.margin_fx_enabled,
        margin_fx=resolved.margin_fx,
    )
