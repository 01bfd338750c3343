"""CLI entry point.

Provides commands for:
- catalog: List the built-in node types
- validate: Check a canonical graph file
- layout: Auto-layout a canonical graph file
- new-id: Print a fresh node or edge id
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from flowcanvas.catalog.builtin import build_default_registry
from flowcanvas.catalog.types import NodeCategory
from flowcanvas.graph.ids import new_edge_id, new_node_id
from flowcanvas.graph.importer import ImportResult, export_graph, import_graph
from flowcanvas.layout.engine import apply_layout
from flowcanvas.layout.options import PRESETS, Direction, LayoutOptions, get_preset
from flowcanvas.logging_config import configure_logging

app = typer.Typer(
    name="flowcanvas",
    help="Node catalog, graph validation and auto-layout for workflow canvases",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


class IdKind(StrEnum):
    NODE = "node"
    EDGE = "edge"


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """flowcanvas command line."""
    configure_logging("DEBUG" if verbose else None)


@app.command()
def catalog(
    category: Annotated[
        Optional[NodeCategory],  # noqa: UP007
        typer.Option("--category", "-c", help="Only show one category"),
    ] = None,
    search: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--search", "-s", help="Filter by name, description or tag"),
    ] = None,
) -> None:
    """List the registered node types."""
    registry = build_default_registry()

    definitions = registry.search(search) if search else registry.get_all()
    if category is not None:
        definitions = [d for d in definitions if d.category == category]

    if not definitions:
        console.print("[yellow]No node types found[/yellow]")
        return

    table = Table(title=f"Node types ({len(definitions)})")
    table.add_column("Type ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category", style="magenta")
    table.add_column("v", justify="right")

    for definition in definitions:
        table.add_row(
            definition.type_id,
            escape(definition.display_name),
            definition.category.value,
            str(definition.version),
        )

    console.print(table)


@app.command()
def validate(
    file: Annotated[
        Path,
        typer.Argument(help="Canonical graph JSON file", exists=True, dir_okay=False, readable=True),
    ],
) -> None:
    """Validate a canonical graph file against the node catalog."""
    result = _import_file(file)
    _print_messages(result)

    if not result.success:
        console.print(f"[bold red]✗ {file.name}: {len(result.errors)} error(s)[/bold red]")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"Graph: {escape(result.graph_id)}\nNodes: {len(result.nodes)}\nEdges: {len(result.edges)}",
            title=f"✓ {escape(file.name)}",
            border_style="green",
        )
    )


@app.command()
def layout(
    file: Annotated[
        Path,
        typer.Argument(help="Canonical graph JSON file", exists=True, dir_okay=False, readable=True),
    ],
    direction: Annotated[
        Optional[Direction],  # noqa: UP007
        typer.Option("--direction", "-d", help="Flow direction", case_sensitive=False),
    ] = None,
    preset: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--preset", "-p", help=f"Layout preset ({', '.join(PRESETS)})"),
    ] = None,
    output: Annotated[
        Optional[Path],  # noqa: UP007
        typer.Option("--output", "-o", help="Write the result here instead of stdout"),
    ] = None,
) -> None:
    """Auto-layout a canonical graph and emit the updated JSON."""
    result = _import_file(file)
    if not result.success:
        _print_messages(result)
        raise typer.Exit(code=1)

    if preset:
        try:
            options = get_preset(preset)
        except KeyError as exc:
            console.print(f"[red]{escape(str(exc.args[0]))}[/red]")
            raise typer.Exit(code=2) from exc
    else:
        options = LayoutOptions.from_settings()
    if direction is not None:
        options = options.model_copy(update={"direction": direction})

    nodes = apply_layout(result.nodes, result.edges, options)
    text = export_graph(nodes, result.edges, result.graph_id)

    if output is None:
        typer.echo(text)
        return

    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]Wrote {len(nodes)} node(s) to {escape(str(output))}[/green]")


@app.command("new-id")
def new_id(
    kind: Annotated[IdKind, typer.Argument(help="node or edge")] = IdKind.NODE,
) -> None:
    """Print a fresh node or edge id."""
    typer.echo(new_node_id() if kind == IdKind.NODE else new_edge_id())


def _import_file(file: Path) -> ImportResult:
    registry = build_default_registry()
    return import_graph(file.read_text(encoding="utf-8"), registry)


def _print_messages(result: ImportResult) -> None:
    for error in result.errors:
        console.print(f"[red]✗ {escape(error)}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]! {escape(warning)}[/yellow]")


if __name__ == "__main__":
    app()
