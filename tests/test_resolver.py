"""Tests for the template resolver."""

from collections.abc import Mapping
from typing import Any

import pytest

from livestate._resolver import DEFAULT_RESOLVER, Resolved, TemplateResolver, to_display_string, try_resolve
from livestate._value_kind import UNDEFINED


class FailingResolver:
    def resolve(self, value: Any, context: Mapping[str, Any]) -> Any:
        msg = f"cannot resolve {value!r}"
        raise RuntimeError(msg)


@pytest.fixture
def context() -> dict[str, Any]:
    return {
        "input1": {"value": "Ada", "count": 3, "enabled": True, "empty": ""},
        "items": [1, 2, 3],
        "current_user": {"firstName": "Ada"},
    }


class TestTemplateResolver:
    """Tests for TemplateResolver.resolve."""

    def test_plain_values_pass_through(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("plain text", context) == "plain text"
        assert resolver.resolve(42, context) == 42
        assert resolver.resolve(None, context) is None

    def test_single_template_keeps_type(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("{{ input1.count }}", context) == 3
        assert resolver.resolve("{{input1.enabled}}", context) is True
        assert resolver.resolve("{{ items }}", context) == [1, 2, 3]

    def test_embedded_templates_become_text(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("Hi {{ input1.value }} x{{ input1.count }}", context) == "Hi Ada x3"
        assert resolver.resolve("on: {{ input1.enabled }}", context) == "on: true"

    def test_unresolvable_template_left_as_written(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("{{ missing.value }}", context) == "{{ missing.value }}"
        assert resolver.resolve("a {{ 1 + }} b", context) == "a {{ 1 + }} b"

    def test_literals(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("{{ true }}", context) is True
        assert resolver.resolve("{{ null }}", context) is None
        assert resolver.resolve("{{ 42 }}", context) == 42
        assert resolver.resolve("{{ 1.5 }}", context) == 1.5
        assert resolver.resolve("{{ 'fixed' }}", context) == "fixed"

    def test_negation(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        assert resolver.resolve("{{ !input1.enabled }}", context) is False
        assert resolver.resolve("{{ !input1.empty }}", context) is True
        assert resolver.resolve("{{ !items }}", context) is False

    def test_containers_resolved_recursively(self, context: dict[str, Any]) -> None:
        resolver = TemplateResolver()
        value = {"name": "{{ current_user.firstName }}", "tags": ("{{ input1.count }}", "x")}
        assert resolver.resolve(value, context) == {"name": "Ada", "tags": [3, "x"]}

    def test_evaluate_undefined(self, context: dict[str, Any]) -> None:
        assert TemplateResolver().evaluate("undefined", context) is UNDEFINED


class TestTryResolve:
    """Tests for try_resolve."""

    def test_success(self) -> None:
        assert try_resolve(DEFAULT_RESOLVER, "x", {}) == Resolved("x")

    def test_resolved_none_is_not_failure(self) -> None:
        assert try_resolve(DEFAULT_RESOLVER, None, {}) == Resolved(None)

    def test_failure_returns_none(self) -> None:
        assert try_resolve(FailingResolver(), "{{ boom }}", {}) is None


class TestToDisplayString:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "null"),
            (UNDEFINED, "undefined"),
            (True, "true"),
            (3.0, "3"),
            (2.5, "2.5"),
            ("text", "text"),
            ([1, "a"], '[1, "a"]'),
        ],
    )
    def test_display(self, value: object, expected: str) -> None:
        assert to_display_string(value) == expected
