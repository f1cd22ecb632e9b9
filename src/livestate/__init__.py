"""Live state inspection for low-code app builders."""

__all__ = [
    "DEFAULT_RESOLVER",
    "NO_MATCH",
    "UNDEFINED",
    "AppDocument",
    "AppDocumentError",
    "ContextInputs",
    "EnvironmentFacts",
    "FieldSchema",
    "Page",
    "PageMeta",
    "PluginType",
    "QueryConfig",
    "QueryDescriptor",
    "QueryRunResult",
    "QueryRunStatus",
    "Reference",
    "Resolved",
    "Resolver",
    "SearchResult",
    "Selection",
    "SelectionTracker",
    "StatePanel",
    "StatePanelInputs",
    "StatePanelSnapshot",
    "StateTarget",
    "TemplateResolver",
    "ThemeTokens",
    "TransformerFunction",
    "ValueKind",
    "Viewport",
    "WidgetDefinition",
    "WidgetInstance",
    "WidgetSpacing",
    "build_context",
    "build_query_state",
    "build_targets",
    "build_widget_state",
    "filter_state_by_search",
    "group_targets",
    "infer_value_kind",
    "load_app_document",
    "merge_widget_trees",
    "resolve_widget_props",
    "search_state",
    "try_resolve",
]

from ._context import ContextInputs, build_context
from ._io import AppDocumentError, load_app_document
from ._models import (
    AppDocument,
    EnvironmentFacts,
    FieldSchema,
    Page,
    PageMeta,
    QueryDescriptor,
    QueryRunResult,
    QueryRunStatus,
    Selection,
    ThemeTokens,
    TransformerFunction,
    Viewport,
    WidgetDefinition,
    WidgetInstance,
    WidgetSpacing,
)
from ._panel import StatePanel, StatePanelInputs, StatePanelSnapshot, build_targets
from ._path import Reference
from ._query_state import PluginType, QueryConfig, build_query_state
from ._resolver import DEFAULT_RESOLVER, Resolved, Resolver, TemplateResolver, try_resolve
from ._search import NO_MATCH, SearchResult, filter_state_by_search, search_state
from ._selection import SelectionTracker
from ._targets import StateTarget, group_targets, merge_widget_trees
from ._value_kind import UNDEFINED, ValueKind, infer_value_kind
from ._widget_state import build_widget_state, resolve_widget_props
