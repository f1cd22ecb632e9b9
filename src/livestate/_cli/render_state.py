"""Rendering of targets and state trees for the terminal."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from livestate._resolver import to_display_string
from livestate._value_kind import ValueKind, format_value_kind_label, infer_value_kind

if TYPE_CHECKING:
    from rich.console import Console

    from livestate._targets import StateTarget

# Containers larger than this are truncated
COLLECTION_LIMIT = 200


def _kind_style(kind: ValueKind) -> str:
    match kind:
        case ValueKind.STRING:
            return "green"
        case ValueKind.NUMBER:
            return "yellow"
        case ValueKind.BOOLEAN:
            return "magenta"
        case ValueKind.NULL | ValueKind.UNDEFINED:
            return "dim"
        case _:
            return "cyan"


def _format_scalar(value: Any) -> str:
    kind = infer_value_kind(value)
    text = to_display_string(value)
    if kind is ValueKind.STRING:
        text = f'"{text}"'
    return f"[{_kind_style(kind)}]{escape(text)}[/{_kind_style(kind)}]"


def _summary(value: Mapping[Any, Any] | list[Any] | tuple[Any, ...]) -> str:
    kind = infer_value_kind(value)
    noun = "keys" if kind is ValueKind.OBJECT else "items"
    return f"[dim]{format_value_kind_label(kind)} {len(value)} {noun}[/dim]"


def _entries(value: Any) -> list[tuple[str, Any]]:
    if isinstance(value, Mapping):
        return sorted(((str(key), entry) for key, entry in value.items()), key=lambda item: item[0])
    return [(str(index), entry) for index, entry in enumerate(value)]


def build_state_tree(label: str, state: Any) -> Tree:
    """Build a rich Tree for a state value, with sorted object keys.

    Built with an explicit stack so deep states cannot exhaust recursion.
    """
    root = Tree(f"[bold]{escape(label)}[/bold]")
    if not isinstance(state, (Mapping, list, tuple)):
        root.add(_format_scalar(state))
        return root

    stack: list[tuple[Tree, Any]] = [(root, state)]
    while stack:
        node, value = stack.pop()
        entries = _entries(value)
        for key, entry in entries[:COLLECTION_LIMIT]:
            if isinstance(entry, (Mapping, list, tuple)):
                child = node.add(f"[bold]{escape(key)}[/bold] {_summary(entry)}")
                stack.append((child, entry))
            else:
                node.add(f"[bold]{escape(key)}[/bold]: {_format_scalar(entry)}")
        if len(entries) > COLLECTION_LIMIT:
            node.add(f"[dim]… {len(entries) - COLLECTION_LIMIT} more[/dim]")
    return root


def render_target_groups(
    groups: list[tuple[str, list[StateTarget]]],
    console: Console,
    active_target_id: str | None = None,
) -> None:
    """Render grouped targets as a table."""
    if not groups:
        console.print("[dim]No targets match[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Group", style="bold")
    table.add_column("Target")
    table.add_column("Id", style="dim")
    table.add_column("Description", style="dim")

    for group, targets in groups:
        for index, target in enumerate(targets):
            label = escape(target.label)
            if target.id == active_target_id:
                label = f"[green]▶ {label}[/green]"
            table.add_row(
                escape(group) if index == 0 else "",
                label,
                escape(target.id),
                escape(target.description or ""),
            )

    console.print(table)
