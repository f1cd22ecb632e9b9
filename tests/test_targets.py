"""Tests for state targets."""

from livestate._context import ContextInputs
from livestate._models import (
    EnvironmentFacts,
    Page,
    PageMeta,
    QueryDescriptor,
    WidgetDefinition,
    WidgetInstance,
)
from livestate._targets import (
    build_component_targets,
    build_global_targets,
    build_page_targets,
    build_query_targets,
    find_target,
    flatten_widgets,
    group_targets,
    merge_widget_trees,
)


def widget(widget_id: str, *children: WidgetInstance, widget_type: str = "Text") -> WidgetInstance:
    return WidgetInstance(id=widget_id, type=widget_type, children=list(children))


class TestFlattenWidgets:
    def test_pre_order(self) -> None:
        tree = [widget("a", widget("b", widget("c")), widget("d")), widget("e")]
        assert [w.id for w in flatten_widgets(tree)] == ["a", "b", "c", "d", "e"]

    def test_deep_tree(self) -> None:
        node = widget("leaf")
        for index in range(5000):
            node = widget(f"n{index}", node)
        assert len(flatten_widgets([node])) == 5001


class TestMergeWidgetTrees:
    """Tests for merge_widget_trees function."""

    def test_first_occurrence_wins(self) -> None:
        global_button = WidgetInstance(id="button1", type="Button", props={"text": "global"})
        page_button = WidgetInstance(id="button1", type="Button", props={"text": "page"})
        page = Page(id="p1", name="Home", widgets=[page_button, widget("text1")])

        merged = merge_widget_trees([global_button], [], [page], page)

        assert [w.id for w in merged] == ["button1", "text1"]
        assert merged[0].props == {"text": "global"}

    def test_source_order(self) -> None:
        pages = [
            Page(id="p1", name="One", widgets=[widget("w1")], page_globals=[widget("pg1")]),
            Page(id="p2", name="Two", widgets=[widget("w2")]),
        ]
        merged = merge_widget_trees([widget("g1")], [widget("pg0")], pages, pages[1])
        assert [w.id for w in merged] == ["g1", "pg0", "pg1", "w1", "w2"]

    def test_no_duplicate_ids(self) -> None:
        page = Page(id="p1", name="Home", widgets=[widget("a", widget("b")), widget("b")])
        merged = merge_widget_trees([], [], [page], page)
        ids = [w.id for w in merged]
        assert len(ids) == len(set(ids))


class TestGlobalTargets:
    def test_six_targets_in_order(self) -> None:
        targets = build_global_targets(ContextInputs(environment=EnvironmentFacts(local_storage={"k": "1"})))
        assert [t.id for t in targets] == [
            "global.current_user",
            "global.localStorage",
            "global.retoolContext",
            "global.theme",
            "global.url",
            "global.viewport",
        ]
        assert targets[1].state == {"values": {"k": 1}}
        assert all(t.group == "Global" for t in targets)


class TestQueryAndPageTargets:
    def test_query_target(self) -> None:
        (target,) = build_query_targets([QueryDescriptor(id="q1", name="getUsers", type="rest")], {})
        assert target.id == "query.q1"
        assert target.label == "getUsers"
        assert target.description == "rest"
        assert target.state["pluginType"] == "RestQuery"

    def test_page_target(self) -> None:
        page = Page(id="p1", name="Home", page_meta=PageMeta(title="Welcome", url="home"))
        (target,) = build_page_targets([page])
        assert target.id == "page.p1"
        assert target.label == "Home (Screen)"
        assert target.state == {"id": "Home", "title": "Welcome", "browserTitle": "", "urlSlug": "home"}


class TestComponentTargets:
    """Tests for build_component_targets function."""

    def test_groups_by_category(self) -> None:
        definitions = {
            "Button": WidgetDefinition(type="Button", label="Button", category="buttons"),
            "Odd": WidgetDefinition(type="Odd", category="unlisted"),
        }
        targets = build_component_targets(
            [WidgetInstance(id="b1", type="Button"), WidgetInstance(id="o1", type="Odd")],
            definitions,
            {},
        )
        assert [(t.id, t.group, t.description) for t in targets] == [
            ("component.b1", "UI", "Button"),
            ("component.o1", "Components", "Odd"),
        ]

    def test_failing_widget_skipped(self, monkeypatch) -> None:
        import livestate._targets as targets_module  # noqa: PLC0415

        def build(widget, definition, context, resolver):
            if widget.id == "bad":
                msg = "broken widget"
                raise RuntimeError(msg)
            return {"id": widget.id}

        monkeypatch.setattr(targets_module, "build_widget_state", build)
        targets = build_component_targets(
            [WidgetInstance(id="bad", type="Text"), WidgetInstance(id="good", type="Text")],
            {},
            {},
        )
        assert [t.id for t in targets] == ["component.good"]


class TestGroupTargets:
    def test_group_order_and_filter(self) -> None:
        targets = [
            *build_global_targets(ContextInputs()),
            *build_query_targets([QueryDescriptor(id="q1", name="getUsers", type="rest")], {}),
        ]
        groups = group_targets(targets)
        assert [name for name, _ in groups] == ["Global", "Queries"]

        filtered = group_targets(targets, "USER")
        assert [(name, [t.id for t in items]) for name, items in filtered] == [
            ("Global", ["global.current_user"]),
            ("Queries", ["query.q1"]),
        ]

    def test_empty_groups_dropped(self) -> None:
        assert group_targets(build_global_targets(ContextInputs()), "zzz") == []

    def test_find_target(self) -> None:
        targets = build_global_targets(ContextInputs())
        assert find_target(targets, "global.theme") is targets[3]
        assert find_target(targets, "global.nope") is None
        assert find_target(targets, None) is None
