"""Tests for evaluation context assembly."""

from livestate._context import (
    ContextInputs,
    build_context,
    build_location,
    build_query_results,
    parse_local_storage,
    running_query_names,
)
from livestate._models import (
    EnvironmentFacts,
    Page,
    QueryDescriptor,
    QueryRunResult,
    QueryRunStatus,
    ThemeTokens,
    Viewport,
    WidgetDefinition,
    WidgetInstance,
)


def make_inputs() -> ContextInputs:
    pages = [Page(id="p1", name="Home"), Page(id="p2", name="Settings")]
    return ContextInputs(
        pages=pages,
        active_page=pages[0],
        widgets=[
            WidgetInstance(id="input1", type="TextInput", props={"value": "hi"}),
            WidgetInstance(id="toggle1", type="Switch"),
        ],
        widget_definitions={
            "TextInput": WidgetDefinition(type="TextInput", default_props={"value": "", "placeholder": "Type"}),
            "Switch": WidgetDefinition(type="Switch", default_props={"checked": False}),
        },
        queries=[
            QueryDescriptor(id="q1", name="getUsers", type="rest"),
            QueryDescriptor(id="q2", name="saveUser", type="sql"),
        ],
        query_runs={
            "q1": QueryRunResult(status=QueryRunStatus.SUCCESS, data=[{"id": 1}]),
            "q2": QueryRunResult(status=QueryRunStatus.RUNNING),
        },
        current_user={"email": "ada@example.com"},
        environment=EnvironmentFacts(
            local_storage={"token": '"abc"', "count": "3", "raw": "not json", "": "skipped", "gone": None},
            href="https://example.com/app?tab=a&tab=b&q=#section=top",
            theme=ThemeTokens(mode="dark", primary=" #fff ", surface_primary="#000"),
            viewport=Viewport(width=1280, height=800),
            environment="staging",
        ),
    )


class TestBuildContext:
    """Tests for build_context function."""

    def test_namespaces_present(self) -> None:
        context = build_context(make_inputs())
        for key in (
            "widgets",
            "queries",
            "auth",
            "current_user",
            "localStorage",
            "theme",
            "location",
            "viewport",
            "retoolContext",
        ):
            assert key in context

    def test_identical_inputs_give_identical_contexts(self) -> None:
        inputs = make_inputs()
        assert build_context(inputs) == build_context(inputs)

    def test_contexts_share_no_state(self) -> None:
        inputs = make_inputs()
        first = build_context(inputs)
        first["input1"]["value"] = "mutated"
        first["localStorage"]["token"] = "mutated"
        second = build_context(inputs)
        assert second["input1"]["value"] == "hi"
        assert second["localStorage"]["token"] == "abc"

    def test_widgets_flattened_into_root(self) -> None:
        context = build_context(make_inputs())
        assert context["input1"] == {"value": "hi", "placeholder": "Type"}
        assert context["widgets"]["toggle1"] == {"checked": False}
        assert context["toggle1"] is context["widgets"]["toggle1"]

    def test_queries_keyed_by_name_and_id(self) -> None:
        context = build_context(make_inputs())
        assert context["getUsers"]["data"] == [{"id": 1}]
        assert context["q1"] == context["getUsers"]
        assert context["saveUser"]["isFetching"] is True

    def test_auth_and_current_user(self) -> None:
        context = build_context(make_inputs())
        assert context["auth"] == {"user": {"email": "ada@example.com"}}
        assert context["current_user"] == {"email": "ada@example.com"}

    def test_no_current_user(self) -> None:
        context = build_context(ContextInputs())
        assert context["auth"] == {}
        assert context["current_user"] == {}

    def test_app_context(self) -> None:
        app_context = build_context(make_inputs())["retoolContext"]
        assert app_context == {
            "appName": "Home",
            "currentPage": "Home",
            "environment": "staging",
            "inEditorMode": True,
            "pages": ["Home", "Settings"],
            "runningQueries": ["saveUser"],
            "translations": {},
        }

    def test_theme_and_viewport(self) -> None:
        context = build_context(make_inputs())
        assert context["theme"] == {"mode": "dark", "primary": "#fff", "surfacePrimary": "#000"}
        assert context["viewport"] == {"width": 1280, "height": 800}

    def test_empty_inputs(self) -> None:
        context = build_context(ContextInputs())
        assert context["widgets"] == {}
        assert context["location"] == {"href": "", "searchParams": {}, "hashParams": {}}
        assert context["retoolContext"]["environment"] == "local"
        assert context["retoolContext"]["appName"] == ""


class TestParseLocalStorage:
    def test_json_decoded_and_raw_kept(self) -> None:
        values = parse_local_storage({"token": '"abc"', "count": "3", "raw": "not json", "gone": None})
        assert values == {"token": "abc", "count": 3, "raw": "not json", "gone": None}

    def test_empty_key_skipped(self) -> None:
        assert parse_local_storage({"": "1"}) == {}

    def test_non_standard_constants_kept_raw(self) -> None:
        values = parse_local_storage({"a": "NaN", "b": "Infinity", "c": "[1, -Infinity]"})
        assert values == {"a": "NaN", "b": "Infinity", "c": "[1, -Infinity]"}


class TestBuildLocation:
    def test_params(self) -> None:
        location = build_location("https://example.com/app?tab=a&tab=b&q=#section=top")
        assert location["href"] == "https://example.com/app?tab=a&tab=b&q=#section=top"
        assert location["searchParams"] == {"tab": "b", "q": ""}
        assert location["hashParams"] == {"section": "top"}

    def test_no_query_or_fragment(self) -> None:
        assert build_location("https://example.com/") == {
            "href": "https://example.com/",
            "searchParams": {},
            "hashParams": {},
        }


class TestQueryProjection:
    def test_never_run_query(self) -> None:
        results = build_query_results([QueryDescriptor(id="q9", name="later", type="rest")], {})
        assert results["later"] == {"data": None, "error": None, "isFetching": False}

    def test_running_names(self) -> None:
        inputs = make_inputs()
        assert running_query_names(inputs.queries, inputs.query_runs) == ["saveUser"]
