"""Free-text search over resolved state trees.

Filtering keeps the structure of the tree: a mapping entry survives when its key
contains the query (with its whole subtree) or when something inside it matches.
Sequences are filtered the same way and come back as index-keyed mappings.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Final

from ._resolver import to_display_string
from ._value_kind import UNDEFINED


class _NoMatch:
    """Result of a search that matched nothing."""

    def __repr__(self) -> str:
        return "NO_MATCH"

    def __bool__(self) -> bool:
        return False


NO_MATCH: Final = _NoMatch()


def normalize_search_value(value: str) -> str:
    return value.strip().lower()


def matches_search_value(value: Any, query: str) -> bool:
    """Check whether a scalar's display text contains the query."""
    if not query:
        return True
    if value is None or value is UNDEFINED or isinstance(value, (str, bool, int, float)):
        return query in to_display_string(value).lower()
    return False


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _iter_entries(value: Mapping[Any, Any] | list[Any] | tuple[Any, ...]) -> Iterator[tuple[str, Any]]:
    if isinstance(value, Mapping):
        return ((str(key), entry) for key, entry in value.items())
    return ((str(index), entry) for index, entry in enumerate(value))


@dataclass(slots=True)
class _Frame:
    entries: Iterator[tuple[str, Any]]
    match_keys: bool
    key: str | None = None
    result: dict[str, Any] = field(default_factory=dict)


def filter_state_by_search(value: Any, query: str) -> Any:
    """Prune a state tree to the parts matching ``query``.

    Args:
        value: Any resolved value: mapping, sequence or scalar.
        query: Search text; it is normalized (trimmed, lower-cased) first.

    Returns:
        ``value`` itself when the query is empty, :data:`NO_MATCH` when nothing
        matches, otherwise the pruned tree.

    """
    query = normalize_search_value(query)
    if not query:
        return value
    if not _is_container(value):
        return value if matches_search_value(value, query) else NO_MATCH

    stack = [_Frame(entries=_iter_entries(value), match_keys=isinstance(value, Mapping))]
    while True:
        frame = stack[-1]
        entry = next(frame.entries, None)
        if entry is None:
            stack.pop()
            filtered = frame.result if frame.result else NO_MATCH
            if not stack:
                return filtered
            if filtered is not NO_MATCH:
                stack[-1].result[frame.key] = filtered  # type: ignore[index]
            continue

        key, child = entry
        if frame.match_keys and query in key.lower():
            frame.result[key] = child
        elif _is_container(child):
            stack.append(_Frame(entries=_iter_entries(child), match_keys=isinstance(child, Mapping), key=key))
        elif matches_search_value(child, query):
            frame.result[key] = child


def is_empty_tree_value(value: Any) -> bool:
    """True for NO_MATCH, UNDEFINED and empty containers."""
    if value is NO_MATCH or value is UNDEFINED:
        return True
    if _is_container(value):
        return len(value) == 0
    return False


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A state tree narrowed by a search.

    Attributes:
        query: The normalized query.
        tree: The filtered tree, or the original tree when the query is empty.
        has_results: False only for a non-empty query that matched nothing.

    """

    query: str
    tree: Any
    has_results: bool


def search_state(state: Any, query: str) -> SearchResult:
    normalized = normalize_search_value(query)
    if not normalized:
        return SearchResult(query="", tree=state, has_results=True)
    filtered = filter_state_by_search(state, normalized)
    if is_empty_tree_value(filtered):
        return SearchResult(query=normalized, tree={}, has_results=False)
    return SearchResult(query=normalized, tree=filtered, has_results=True)
