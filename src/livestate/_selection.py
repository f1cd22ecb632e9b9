"""Active target tracking driven by editor selection.

The tracker is fed the current selection on every pass, together with the
freshly built targets. It remembers the previous selection so it can tell a
selection change from an unrelated recompute.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._models import Selection
from ._targets import component_target_id, page_target_id

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._targets import StateTarget

logger = logging.getLogger(__name__)


def selection_target_id(selection: Selection) -> str | None:
    """The target a selection points at, by precedence.

    A selected global widget beats a selected widget, which beats a selected
    page component on the active page.
    """
    if selection.global_widget_id:
        return component_target_id(selection.global_widget_id)
    if selection.widget_id:
        return component_target_id(selection.widget_id)
    if selection.page_component and selection.page_id:
        return page_target_id(selection.page_id)
    return None


class SelectionTracker:
    """Tracks the active target id across passes.

    States are "no active target" (``active_target_id is None``) and
    "active target". There is no terminal state.
    """

    def __init__(self, previous: Selection | None = None, active_target_id: str | None = None) -> None:
        self.previous = previous if previous is not None else Selection()
        self.active_target_id = active_target_id

    def update(self, selection: Selection, targets: Sequence[StateTarget]) -> str | None:
        """Apply one pass and return the active target id.

        A changed selection sets the active target by precedence. Otherwise, and
        only if nothing is active yet, the first target becomes active.
        """
        if selection != self.previous:
            target_id = selection_target_id(selection)
            if target_id is not None:
                logger.debug("Selection changed, activating %s", target_id)
                self.active_target_id = target_id
        elif self.active_target_id is None and targets:
            self.active_target_id = targets[0].id
            logger.debug("No active target, defaulting to %s", self.active_target_id)

        self.previous = selection
        return self.active_target_id

    def select(self, target_id: str) -> None:
        """Activate a target picked by hand, e.g. from the target menu."""
        self.active_target_id = target_id
