import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from livestate._io import AppDocumentError, dump_targets, dumps_state, load_app_document, write_sample_app_document
from livestate._models import AppDocument
from livestate._panel import StatePanel, StatePanelInputs, build_targets

from .config import ConfigError, LivestateConfig, get_config
from .render_state import build_state_tree, render_target_groups

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Inspect the live state of a low-code app."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config() -> LivestateConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e


def _load_inputs(app_path: Path | None) -> tuple[AppDocument, StatePanelInputs]:
    """Load the app document named on the command line or in [tool.livestate]."""
    config = _load_config()
    path = app_path or config.app
    if path is None:
        err_console.print("[red]✗ No app document given and no [tool.livestate].app configured[/red]")
        raise typer.Exit(code=1)

    err_console.print(f"[cyan]Loading app document from:[/cyan] {path}")
    try:
        document = load_app_document(path)
    except AppDocumentError as e:
        err_console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    if config.environment is not None:
        environment = document.environment.model_copy(update={"environment": config.environment})
        document = document.model_copy(update={"environment": environment})

    return document, StatePanelInputs.from_document(document)


AppArgument = Annotated[
    Path | None,
    typer.Argument(help="Path to the app document (.json or .toml); defaults to [tool.livestate].app"),
]


@app.command()
def targets(
    app_path: AppArgument = None,
    *,
    menu_search: Annotated[
        str,
        typer.Option("--filter", help="Only list targets whose label contains this text"),
    ] = "",
) -> None:
    """List every inspectable target, grouped."""
    _, inputs = _load_inputs(app_path)
    snapshot = StatePanel().settle(inputs, menu_search=menu_search)
    active_id = snapshot.active_target.id if snapshot.active_target is not None else None
    render_target_groups(snapshot.targets_by_group, out_console, active_id)


@app.command()
def inspect(
    app_path: AppArgument = None,
    *,
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Target id to inspect (e.g. component.button1)"),
    ] = None,
    search: Annotated[
        str,
        typer.Option("--search", "-s", help="Only show state matching this text"),
    ] = "",
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the state as JSON"),
    ] = False,
) -> None:
    """Show the resolved state of the active or given target."""
    _, inputs = _load_inputs(app_path)
    panel = StatePanel()
    if target is None:
        snapshot = panel.settle(inputs, search=search)
    else:
        # First pass registers the selection, so a manual pick is not overridden
        panel.render(inputs)
        panel.select(target)
        snapshot = panel.render(inputs, search=search)
        if snapshot.active_target is None:
            err_console.print(f"[red]✗ Unknown target:[/red] {target}")
            raise typer.Exit(code=1)

    active = snapshot.active_target
    if active is None:
        err_console.print("[yellow]Select a component or global state.[/yellow]")
        raise typer.Exit(code=1)

    if snapshot.search_query and not snapshot.has_search_results:
        err_console.print("[yellow]No matches.[/yellow]")
        raise typer.Exit(code=0)

    if as_json:
        out_console.print_json(dumps_state(snapshot.resolved_state_tree))
        return

    title = active.label if active.description is None else f"{active.label} ({active.description})"
    out_console.print(
        Panel(
            build_state_tree(active.id, snapshot.resolved_state_tree),
            title=f"[bold]{title}[/bold]",
            subtitle=f"[dim]{active.group}[/dim]",
            border_style="cyan",
        ),
    )


@app.command()
def context(app_path: AppArgument = None) -> None:
    """Print the evaluation context expressions are resolved against."""
    _, inputs = _load_inputs(app_path)
    evaluation_context, _ = build_targets(inputs)
    out_console.print_json(dumps_state(evaluation_context))


@app.command()
def dump(
    app_path: AppArgument = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output JSON file; defaults to [tool.livestate].output"),
    ] = None,
    indent: Annotated[
        int,
        typer.Option("--indent", help="JSON indentation spaces"),
    ] = 2,
) -> None:
    """Write the state of every target to a JSON file."""
    _, inputs = _load_inputs(app_path)
    output_path = output or _load_config().output
    if output_path is None:
        err_console.print("[red]✗ No output given and no [tool.livestate].output configured[/red]")
        raise typer.Exit(code=1)

    _, all_targets = build_targets(inputs)
    err_console.print(f"[cyan]Writing {len(all_targets)} targets to:[/cyan] {output_path}")
    dump_targets(all_targets, output_path, indent=indent)
    err_console.print("[green]✓ Dump complete[/green]")


@app.command()
def init(
    *,
    output: Annotated[
        Path,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ],
) -> None:
    """Write a sample app document to start from."""
    err_console.print(f"[cyan]Writing sample app document to:[/cyan] {output}")
    write_sample_app_document(output)
    err_console.print("[green]✓ Sample app document written[/green]")
