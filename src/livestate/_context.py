"""Evaluation context assembly.

The context maps namespace names to current values. Expressions in widget
properties are resolved against it. It is rebuilt from scratch on every pass
from declared inputs only, so identical inputs give identical contexts.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlsplit

from ._models import EnvironmentFacts, QueryRunStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from ._models import Page, QueryDescriptor, QueryRunResult, WidgetDefinition, WidgetInstance

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContextInputs:
    """Declared inputs of one context rebuild.

    Attributes:
        pages: Ordered page list.
        active_page: The page being edited, if any.
        widgets: Merged, de-duplicated widget instances.
        widget_definitions: Widget type definitions keyed by type.
        queries: Query descriptors.
        query_runs: Latest run result per query id.
        current_user: The signed-in principal, if any.
        environment: Persisted key-value snapshot, location, theme and viewport.
        refresh_token: Manual refresh counter; bumping it forces a rebuild.

    """

    pages: Sequence[Page] = ()
    active_page: Page | None = None
    widgets: Sequence[WidgetInstance] = ()
    widget_definitions: Mapping[str, WidgetDefinition] = field(default_factory=dict)
    queries: Sequence[QueryDescriptor] = ()
    query_runs: Mapping[str, QueryRunResult] = field(default_factory=dict)
    current_user: Mapping[str, Any] | None = None
    environment: EnvironmentFacts = field(default_factory=EnvironmentFacts)
    refresh_token: int = 0


def _reject_constant(name: str) -> Any:
    msg = f"Not a JSON value: {name}"
    raise ValueError(msg)


def parse_local_storage(snapshot: Mapping[str, str | None]) -> dict[str, Any]:
    """Decode a persisted key-value snapshot.

    Values holding JSON are decoded; anything else is kept as the raw string.
    """
    values: dict[str, Any] = {}
    for key, raw in snapshot.items():
        if not key:
            continue
        if raw is None:
            values[key] = None
            continue
        try:
            values[key] = json.loads(raw, parse_constant=_reject_constant)
        except ValueError:
            values[key] = raw
    return values


def parse_url_params(query: str) -> dict[str, str]:
    """Parse a query string into a flat map; later duplicates win."""
    return dict(parse_qsl(query, keep_blank_values=True))


def parse_hash_params(fragment: str) -> dict[str, str]:
    cleaned = fragment.removeprefix("#")
    if not cleaned:
        return {}
    return parse_url_params(cleaned)


def build_location(href: str) -> dict[str, Any]:
    """Split an href into the ``location`` record."""
    if not href:
        return {"href": "", "searchParams": {}, "hashParams": {}}
    parts = urlsplit(href)
    return {
        "href": href,
        "searchParams": parse_url_params(parts.query),
        "hashParams": parse_hash_params(parts.fragment),
    }


def build_theme_state(environment: EnvironmentFacts) -> dict[str, str]:
    theme = environment.theme
    return {
        "mode": theme.mode,
        "primary": theme.primary.strip(),
        "surfacePrimary": theme.surface_primary.strip(),
    }


def build_viewport_state(environment: EnvironmentFacts) -> dict[str, int]:
    return {"width": environment.viewport.width, "height": environment.viewport.height}


def running_query_names(
    queries: Iterable[QueryDescriptor],
    query_runs: Mapping[str, QueryRunResult],
) -> list[str]:
    """Names of queries whose latest run is still in flight."""
    return [
        query.name
        for query in queries
        if (run := query_runs.get(query.id)) is not None and run.status == QueryRunStatus.RUNNING
    ]


def build_app_context_state(inputs: ContextInputs) -> dict[str, Any]:
    """The ``retoolContext`` record describing the app and its environment."""
    page_name = inputs.active_page.name if inputs.active_page is not None else ""
    return {
        "appName": page_name,
        "currentPage": page_name,
        "environment": inputs.environment.environment or "local",
        "inEditorMode": True,
        "pages": [page.name for page in inputs.pages],
        "runningQueries": running_query_names(inputs.queries, inputs.query_runs),
        "translations": {},
    }


def build_query_results(
    queries: Iterable[QueryDescriptor],
    query_runs: Mapping[str, QueryRunResult],
) -> dict[str, dict[str, Any]]:
    """Project query runs into the context, keyed by both name and id."""
    result: dict[str, dict[str, Any]] = {}
    for query in queries:
        run = query_runs.get(query.id)
        entry = {
            "data": run.data if run is not None else None,
            "error": run.error if run is not None else None,
            "isFetching": run is not None and run.status == QueryRunStatus.RUNNING,
        }
        result[query.name] = entry
        result[query.id] = entry
    return result


def build_widget_value_map(
    widgets: Iterable[WidgetInstance],
    widget_definitions: Mapping[str, WidgetDefinition],
) -> dict[str, dict[str, Any]]:
    """Each widget's unresolved property bag over its type's default props."""
    value_map: dict[str, dict[str, Any]] = {}
    for widget in widgets:
        definition = widget_definitions.get(widget.type)
        default_props = definition.default_props if definition is not None else {}
        value_map[widget.id] = {**default_props, **widget.props}
    return value_map


def build_context(inputs: ContextInputs) -> dict[str, Any]:
    """Assemble the evaluation context.

    The fixed namespaces come first, then the widget layer and the query layer
    are flattened into the root so expressions can use ``{{ input1.value }}``
    as well as ``{{ widgets.input1.value }}``.

    Args:
        inputs: The declared inputs of this rebuild.

    Returns:
        A fresh context mapping. It shares no mutable state with earlier builds.

    """
    widget_values = build_widget_value_map(inputs.widgets, inputs.widget_definitions)
    query_results = build_query_results(inputs.queries, inputs.query_runs)
    current_user = dict(inputs.current_user) if inputs.current_user is not None else None

    logger.debug(
        "Building context (refresh %d): %d widgets, %d queries",
        inputs.refresh_token,
        len(widget_values),
        len(inputs.queries),
    )

    context: dict[str, Any] = {
        "widgets": widget_values,
        "queries": query_results,
        "auth": {"user": current_user} if current_user is not None else {},
        "current_user": current_user if current_user is not None else {},
        "localStorage": parse_local_storage(inputs.environment.local_storage),
        "theme": build_theme_state(inputs.environment),
        "location": build_location(inputs.environment.href),
        "viewport": build_viewport_state(inputs.environment),
        "retoolContext": build_app_context_state(inputs),
    }
    context.update(widget_values)
    context.update(query_results)
    return context
