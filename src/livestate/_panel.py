"""One full recompute of the live state view.

A pass consumes only its declared inputs: context, then targets, then the
active target, then the searched tree. Nothing is carried between passes
except the selection tracker, which is passed in explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._context import ContextInputs, build_context
from ._models import EnvironmentFacts, Selection
from ._resolver import DEFAULT_RESOLVER
from ._search import search_state
from ._selection import SelectionTracker
from ._targets import (
    build_component_targets,
    build_global_targets,
    build_page_targets,
    build_query_targets,
    build_transformer_targets,
    find_target,
    group_targets,
    merge_widget_trees,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ._models import (
        AppDocument,
        Page,
        QueryDescriptor,
        QueryRunResult,
        TransformerFunction,
        WidgetDefinition,
        WidgetInstance,
    )
    from ._resolver import Resolver
    from ._targets import StateTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StatePanelInputs:
    """Everything one pass depends on."""

    pages: Sequence[Page] = ()
    active_page: Page | None = None
    global_widgets: Sequence[WidgetInstance] = ()
    page_globals: Sequence[WidgetInstance] = ()
    widget_definitions: Sequence[WidgetDefinition] = ()
    queries: Sequence[QueryDescriptor] = ()
    js_functions: Sequence[TransformerFunction] = ()
    query_runs: Mapping[str, QueryRunResult] = field(default_factory=dict)
    selection: Selection = field(default_factory=Selection)
    current_user: Mapping[str, Any] | None = None
    environment: EnvironmentFacts = field(default_factory=EnvironmentFacts)
    refresh_token: int = 0

    @classmethod
    def from_document(cls, document: AppDocument, *, refresh_token: int = 0) -> StatePanelInputs:
        return cls(
            pages=document.pages,
            active_page=document.active_page,
            global_widgets=document.global_widgets,
            page_globals=document.page_globals,
            widget_definitions=document.widget_definitions,
            queries=document.queries,
            js_functions=document.js_functions,
            query_runs=document.query_runs,
            selection=document.selection,
            current_user=document.current_user,
            environment=document.environment,
            refresh_token=refresh_token,
        )


@dataclass(frozen=True, slots=True)
class StatePanelSnapshot:
    """Output of one pass.

    Attributes:
        context: The evaluation context the pass resolved against.
        targets: All targets in display order.
        targets_by_group: Targets grouped for the target menu.
        active_target: The active target, if any.
        resolved_state_tree: The active target's state narrowed by the search.
        search_query: The normalized search text.
        has_search_results: False when a non-empty search matched nothing.

    """

    context: dict[str, Any]
    targets: list[StateTarget]
    targets_by_group: list[tuple[str, list[StateTarget]]]
    active_target: StateTarget | None
    resolved_state_tree: Any
    search_query: str = ""
    has_search_results: bool = True


def build_targets(
    inputs: StatePanelInputs,
    resolver: Resolver = DEFAULT_RESOLVER,
) -> tuple[dict[str, Any], list[StateTarget]]:
    """Build the context and every target for the given inputs."""
    definitions = {definition.type: definition for definition in inputs.widget_definitions}
    widgets = merge_widget_trees(inputs.global_widgets, inputs.page_globals, inputs.pages, inputs.active_page)
    context_inputs = ContextInputs(
        pages=inputs.pages,
        active_page=inputs.active_page,
        widgets=widgets,
        widget_definitions=definitions,
        queries=inputs.queries,
        query_runs=inputs.query_runs,
        current_user=inputs.current_user,
        environment=inputs.environment,
        refresh_token=inputs.refresh_token,
    )
    context = build_context(context_inputs)
    targets = [
        *build_global_targets(context_inputs),
        *build_query_targets(inputs.queries, inputs.query_runs),
        *build_transformer_targets(inputs.js_functions),
        *build_page_targets(inputs.pages),
        *build_component_targets(widgets, definitions, context, resolver),
    ]
    return context, targets


class StatePanel:
    """Live state view over an app under construction.

    Each :meth:`render` is a complete, independent recompute. The panel keeps
    only the selection tracker between renders.
    """

    def __init__(self, resolver: Resolver = DEFAULT_RESOLVER, tracker: SelectionTracker | None = None) -> None:
        self.resolver = resolver
        self.tracker = tracker if tracker is not None else SelectionTracker()

    def render(
        self,
        inputs: StatePanelInputs,
        *,
        search: str = "",
        menu_search: str = "",
    ) -> StatePanelSnapshot:
        """Run one pass and return its snapshot."""
        context, targets = build_targets(inputs, self.resolver)
        # The page the editor shows is always the one a page selection refers to.
        page_id = inputs.active_page.id if inputs.active_page is not None else None
        selection = inputs.selection.model_copy(update={"page_id": page_id})
        active_target_id = self.tracker.update(selection, targets)
        active_target = find_target(targets, active_target_id)

        logger.debug("Rendered %d targets, active: %s", len(targets), active_target_id)

        if active_target is None:
            return StatePanelSnapshot(
                context=context,
                targets=targets,
                targets_by_group=group_targets(targets, menu_search),
                active_target=None,
                resolved_state_tree=None,
            )

        result = search_state(active_target.state, search)
        return StatePanelSnapshot(
            context=context,
            targets=targets,
            targets_by_group=group_targets(targets, menu_search),
            active_target=active_target,
            resolved_state_tree=result.tree,
            search_query=result.query,
            has_search_results=result.has_results,
        )

    def settle(
        self,
        inputs: StatePanelInputs,
        *,
        search: str = "",
        menu_search: str = "",
    ) -> StatePanelSnapshot:
        """Render twice with the same inputs, as a live view would.

        A selection change is applied on the first pass. The first-target
        fallback only applies when the selection did not change, so it needs
        the second pass.
        """
        self.render(inputs, search=search, menu_search=menu_search)
        return self.render(inputs, search=search, menu_search=menu_search)

    def select(self, target_id: str) -> None:
        self.tracker.select(target_id)
