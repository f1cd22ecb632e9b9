"""State targets: every inspectable entity with its resolved state.

Targets come in five families, listed in this order: global facts, queries,
transformers, pages and widget instances. Widget instances are merged from
several trees; the first occurrence of a widget id wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from ._context import (
    build_app_context_state,
    build_location,
    build_theme_state,
    build_viewport_state,
    parse_local_storage,
)
from ._query_state import build_query_state
from ._resolver import DEFAULT_RESOLVER
from ._transformer import build_transformer_state
from ._widget_state import build_widget_state

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ._context import ContextInputs
    from ._models import Page, QueryDescriptor, QueryRunResult, TransformerFunction, WidgetDefinition, WidgetInstance
    from ._resolver import Resolver

logger = logging.getLogger(__name__)

GLOBAL_GROUP: Final = "Global"
QUERIES_GROUP: Final = "Queries"
TRANSFORMERS_GROUP: Final = "Transformers"
PAGES_GROUP: Final = "Pages"
COMPONENTS_GROUP: Final = "Components"

CATEGORY_LABELS: Final[dict[str, str]] = {
    "inputs": "Inputs",
    "buttons": "UI",
    "data": "Data",
    "charts": "Charts",
    "presentation": "Presentation",
    "navigation": "Navigation",
    "containers": "Containers_Forms",
    "custom": "Special_Inputs",
    "globals": "Frame",
}

COMPONENT_PREFIX: Final = "component."
PAGE_PREFIX: Final = "page."
QUERY_PREFIX: Final = "query."
TRANSFORMER_PREFIX: Final = "transformer."


def component_target_id(widget_id: str) -> str:
    return f"{COMPONENT_PREFIX}{widget_id}"


def page_target_id(page_id: str) -> str:
    return f"{PAGE_PREFIX}{page_id}"


@dataclass(frozen=True, slots=True)
class StateTarget:
    """One inspectable entity.

    Attributes:
        id: Stable id such as ``component.button1`` or ``query.q1``.
        label: Display label.
        group: Group the target is listed under.
        state: The resolved state snapshot.
        description: Optional secondary label, e.g. the widget type.

    """

    id: str
    label: str
    group: str
    state: dict[str, Any]
    description: str | None = None


def flatten_widgets(widgets: Iterable[WidgetInstance]) -> list[WidgetInstance]:
    """Flatten widget trees in pre-order (parent first, children in order).

    Uses an explicit stack so arbitrarily deep trees are safe.
    """
    result: list[WidgetInstance] = []
    stack = list(reversed(list(widgets)))
    while stack:
        current = stack.pop()
        result.append(current)
        stack.extend(reversed(current.children))
    return result


def merge_widget_trees(
    global_widgets: Sequence[WidgetInstance],
    page_globals: Sequence[WidgetInstance],
    pages: Sequence[Page],
    active_page: Page | None,
) -> list[WidgetInstance]:
    """Merge all widget trees into one list of unique widget ids.

    Sources in priority order: global widgets, page-global widgets, every
    page's page-globals, every page's widgets, the active page's widgets.
    The first widget seen with a given id wins.
    """
    seen: set[str] = set()
    merged: list[WidgetInstance] = []

    def add_widgets(items: Iterable[WidgetInstance]) -> None:
        for widget in items:
            if widget.id in seen:
                continue
            seen.add(widget.id)
            merged.append(widget)

    add_widgets(flatten_widgets(global_widgets))
    add_widgets(flatten_widgets(page_globals))
    add_widgets(flatten_widgets(widget for page in pages for widget in page.page_globals))
    add_widgets(flatten_widgets(widget for page in pages for widget in page.widgets))
    add_widgets(flatten_widgets(active_page.widgets if active_page is not None else []))
    return merged


def build_global_targets(inputs: ContextInputs) -> list[StateTarget]:
    """Targets for the ambient facts: user, storage, app context, theme, url, viewport."""
    environment = inputs.environment
    return [
        StateTarget(
            id="global.current_user",
            label="current_user",
            group=GLOBAL_GROUP,
            state=dict(inputs.current_user) if inputs.current_user is not None else {},
        ),
        StateTarget(
            id="global.localStorage",
            label="localStorage",
            group=GLOBAL_GROUP,
            state={"values": parse_local_storage(environment.local_storage)},
        ),
        StateTarget(
            id="global.retoolContext",
            label="retoolContext",
            group=GLOBAL_GROUP,
            state=build_app_context_state(inputs),
        ),
        StateTarget(
            id="global.theme",
            label="theme",
            group=GLOBAL_GROUP,
            state=build_theme_state(environment),
        ),
        StateTarget(
            id="global.url",
            label="url",
            group=GLOBAL_GROUP,
            state=build_location(environment.href),
        ),
        StateTarget(
            id="global.viewport",
            label="viewport",
            group=GLOBAL_GROUP,
            state=build_viewport_state(environment),
        ),
    ]


def build_query_targets(
    queries: Iterable[QueryDescriptor],
    query_runs: Mapping[str, QueryRunResult],
) -> list[StateTarget]:
    return [
        StateTarget(
            id=f"{QUERY_PREFIX}{query.id}",
            label=query.name,
            group=QUERIES_GROUP,
            state=build_query_state(query, query_runs.get(query.id)),
            description=query.type,
        )
        for query in queries
    ]


def build_transformer_targets(functions: Iterable[TransformerFunction]) -> list[StateTarget]:
    return [
        StateTarget(
            id=f"{TRANSFORMER_PREFIX}{func.id}",
            label=func.name or func.id,
            group=TRANSFORMERS_GROUP,
            state=build_transformer_state(func),
            description="transformer",
        )
        for func in functions
    ]


def build_page_state(page: Page) -> dict[str, str]:
    meta = page.page_meta
    return {
        "id": page.name,
        "title": (meta.title if meta is not None else None) or "",
        "browserTitle": (meta.browser_title if meta is not None else None) or "",
        "urlSlug": (meta.url if meta is not None else None) or "",
    }


def build_page_targets(pages: Iterable[Page]) -> list[StateTarget]:
    return [
        StateTarget(
            id=page_target_id(page.id),
            label=f"{page.name} (Screen)",
            group=PAGES_GROUP,
            state=build_page_state(page),
        )
        for page in pages
    ]


def build_component_targets(
    widgets: Iterable[WidgetInstance],
    widget_definitions: Mapping[str, WidgetDefinition],
    context: Mapping[str, Any],
    resolver: Resolver = DEFAULT_RESOLVER,
) -> list[StateTarget]:
    """Targets for widget instances.

    A widget whose state cannot be built is logged and left out; the other
    widgets are unaffected.
    """
    targets: list[StateTarget] = []
    for widget in widgets:
        definition = widget_definitions.get(widget.type)
        try:
            state = build_widget_state(widget, definition, context, resolver)
        except Exception:  # noqa: BLE001
            logger.warning("Skipping widget %s: could not build its state", widget.id, exc_info=True)
            continue
        category = definition.category if definition is not None else "inputs"
        targets.append(
            StateTarget(
                id=component_target_id(widget.id),
                label=widget.id,
                group=CATEGORY_LABELS.get(category, COMPONENTS_GROUP),
                state=state,
                description=(definition.label if definition is not None else None) or widget.type,
            ),
        )
    return targets


def group_targets(
    targets: Iterable[StateTarget],
    menu_search: str = "",
) -> list[tuple[str, list[StateTarget]]]:
    """Group targets by group label, keeping first-seen group order.

    Args:
        targets: Targets in display order.
        menu_search: Case-insensitive label filter; empty keeps everything.

    """
    needle = menu_search.lower()
    groups: dict[str, list[StateTarget]] = {}
    for target in targets:
        if needle and needle not in target.label.lower():
            continue
        groups.setdefault(target.group, []).append(target)
    return list(groups.items())


def find_target(targets: Iterable[StateTarget], target_id: str | None) -> StateTarget | None:
    if target_id is None:
        return None
    return next((target for target in targets if target.id == target_id), None)
