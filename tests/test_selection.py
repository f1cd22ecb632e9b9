"""Tests for the selection tracker."""

from livestate._models import Selection
from livestate._selection import SelectionTracker, selection_target_id
from livestate._targets import StateTarget


def target(target_id: str) -> StateTarget:
    return StateTarget(id=target_id, label=target_id, group="Global", state={})


TARGETS = [target("global.current_user"), target("component.w1"), target("page.p1")]


class TestSelectionTargetId:
    """Precedence: global widget, widget, page component."""

    def test_global_widget_wins(self) -> None:
        selection = Selection(widget_id="w1", global_widget_id="g1", page_component=True, page_id="p1")
        assert selection_target_id(selection) == "component.g1"

    def test_widget(self) -> None:
        assert selection_target_id(Selection(widget_id="w1", page_id="p1")) == "component.w1"

    def test_page_component(self) -> None:
        assert selection_target_id(Selection(page_component=True, page_id="p1")) == "page.p1"

    def test_page_without_component_flag(self) -> None:
        assert selection_target_id(Selection(page_id="p1")) is None


class TestSelectionTracker:
    """Tests for SelectionTracker.update."""

    def test_selection_change_activates_widget(self) -> None:
        tracker = SelectionTracker(previous=Selection(page_id="p1"))
        active = tracker.update(Selection(widget_id="w1", page_id="p1"), TARGETS)
        assert active == "component.w1"

    def test_unchanged_selection_defaults_to_first_target(self) -> None:
        tracker = SelectionTracker()
        assert tracker.update(Selection(), TARGETS) == "global.current_user"

    def test_first_pass_with_selection(self) -> None:
        tracker = SelectionTracker()
        assert tracker.update(Selection(widget_id="w1"), TARGETS) == "component.w1"

    def test_recompute_keeps_active_target(self) -> None:
        tracker = SelectionTracker()
        selection = Selection(widget_id="w1")
        tracker.update(selection, TARGETS)
        tracker.select("page.p1")
        assert tracker.update(selection, TARGETS) == "page.p1"

    def test_cleared_selection_keeps_active_target(self) -> None:
        tracker = SelectionTracker()
        tracker.update(Selection(widget_id="w1"), TARGETS)
        assert tracker.update(Selection(), TARGETS) == "component.w1"

    def test_no_targets(self) -> None:
        tracker = SelectionTracker()
        assert tracker.update(Selection(), []) is None
        assert tracker.active_target_id is None

    def test_previous_selection_recorded(self) -> None:
        tracker = SelectionTracker()
        selection = Selection(global_widget_id="g1")
        tracker.update(selection, TARGETS)
        assert tracker.previous == selection
