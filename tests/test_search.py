"""Tests for state search."""

import pytest

from livestate._search import (
    NO_MATCH,
    filter_state_by_search,
    is_empty_tree_value,
    matches_search_value,
    search_state,
)
from livestate._value_kind import UNDEFINED

STATE = {
    "id": "nameInput",
    "value": "Ada Lovelace",
    "count": 42,
    "enabled": True,
    "user": {"email": "ada@example.com", "role": "admin"},
    "tags": ["math", "ada", "poetry"],
    "nothing": None,
}


class TestFilterStateBySearch:
    """Tests for filter_state_by_search function."""

    def test_empty_query_returns_input(self) -> None:
        assert filter_state_by_search(STATE, "") is STATE
        assert filter_state_by_search(STATE, "   ") is STATE

    def test_matches_values_case_insensitive(self) -> None:
        assert filter_state_by_search(STATE, "LOVELACE") == {"value": "Ada Lovelace"}

    def test_key_match_keeps_subtree(self) -> None:
        assert filter_state_by_search(STATE, "user") == {"user": STATE["user"]}

    def test_nested_match_keeps_path(self) -> None:
        assert filter_state_by_search(STATE, "admin") == {"user": {"role": "admin"}}

    def test_arrays_become_index_keyed(self) -> None:
        result = filter_state_by_search({"tags": ["math", "ada", "poetry"]}, "ada")
        assert result == {"tags": {"1": "ada"}}

    def test_top_level_array(self) -> None:
        assert filter_state_by_search(["x", "y", "xy"], "x") == {"0": "x", "2": "xy"}

    def test_array_indices_are_not_matched_as_keys(self) -> None:
        assert filter_state_by_search(["a", "b"], "1") is NO_MATCH

    def test_scalars_by_display_text(self) -> None:
        assert filter_state_by_search(STATE, "42") == {"count": 42}
        assert filter_state_by_search({"flag": False}, "fals") == {"flag": False}
        assert filter_state_by_search({"n": None}, "null") == {"n": None}

    def test_no_match(self) -> None:
        assert filter_state_by_search(STATE, "zzz") is NO_MATCH
        assert filter_state_by_search("text", "zzz") is NO_MATCH

    def test_no_match_distinct_from_empty(self) -> None:
        assert NO_MATCH != {}
        assert filter_state_by_search({}, "a") is NO_MATCH

    def test_scalar_match(self) -> None:
        assert filter_state_by_search("Hello", "ell") == "Hello"

    def test_idempotent(self) -> None:
        once = filter_state_by_search(STATE, "ada")
        assert filter_state_by_search(once, "ada") == once

    def test_deep_tree(self) -> None:
        tree: dict[str, object] = {"leaf": "needle"}
        for _ in range(5000):
            tree = {"node": tree}
        result = filter_state_by_search(tree, "needle")
        depth = 0
        while isinstance(result, dict) and "node" in result:
            result = result["node"]
            depth += 1
        assert depth == 5000
        assert result == {"leaf": "needle"}


class TestMatchesSearchValue:
    @pytest.mark.parametrize(
        ("value", "query", "expected"),
        [
            ("Hello", "hell", True),
            (3.0, "3", True),
            (True, "true", True),
            (UNDEFINED, "undef", True),
            ({"a": 1}, "a", False),
            ("x", "", True),
        ],
    )
    def test_values(self, value: object, query: str, expected: bool) -> None:  # noqa: FBT001
        assert matches_search_value(value, query) is expected


class TestSearchState:
    def test_no_results(self) -> None:
        result = search_state(STATE, " ZZZ ")
        assert result.query == "zzz"
        assert result.tree == {}
        assert result.has_results is False

    def test_results(self) -> None:
        result = search_state(STATE, "admin")
        assert result.has_results is True
        assert result.tree == {"user": {"role": "admin"}}

    def test_empty_query(self) -> None:
        result = search_state(STATE, "")
        assert result.tree is STATE
        assert result.has_results is True

    def test_is_empty_tree_value(self) -> None:
        assert is_empty_tree_value(NO_MATCH)
        assert is_empty_tree_value([])
        assert not is_empty_tree_value(0)
