"""
Rendering functions for pkgindex output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich.tree import Tree
from rich import box
from typing import List, Optional, Sequence

from .domain import PackageRecord, ReleaseOutcome, StatsRow, Compiler
from .services.dependency_graph import DependencyGraph

console = Console()


def render_table(headers: List[str], rows: List[List[str]], title: Optional[str] = None) -> None:
    """
    Render a generic table with the given headers and rows.

    Args:
        headers: List of column headers
        rows: List of rows, where each row is a list of values
        title: Optional table title
    """
    if not rows:
        console.print("[yellow]No data to display.[/yellow]")
        return

    # Create table
    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    # Add columns
    for header in headers:
        table.add_column(header)

    # Add rows
    for row in rows:
        table.add_row(*[str(val) for val in row])

    console.print(table)


def render_test_summary(outcomes: Sequence[ReleaseOutcome]) -> None:
    """
    Render the result of a test-all sweep.

    Failing packages are always listed by name, not just counted.
    """
    if not outcomes:
        console.print("[yellow]No packages selected.[/yellow]")
        return

    table = Table(
        title="Test Results",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Package", style="cyan")
    table.add_column("Result")
    table.add_column("Failed step", style="yellow")
    table.add_column("Exit code", justify="right")

    for outcome in outcomes:
        result = "[green]passed[/green]" if outcome.succeeded else "[red]failed[/red]"
        step = outcome.failed_step.value if outcome.failed_step else ""
        table.add_row(outcome.package_id, result, step, str(outcome.exit_code))

    console.print(table)

    failed = [o.package_id for o in outcomes if not o.succeeded]
    passed = len(outcomes) - len(failed)
    if failed:
        console.print(f"[red]{len(failed)} failed:[/red] {', '.join(failed)}")
    console.print(f"[green]{passed} passed[/green] of {len(outcomes)}")


def render_package_list(selected: Sequence[PackageRecord],
                        all_versions: Sequence[Sequence[PackageRecord]],
                        compiler: Optional[Compiler]) -> None:
    """Render the index listing: one row per package."""
    if not selected:
        console.print("[yellow]The index is empty.[/yellow]")
        return

    table = Table(
        title="Package Index",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("All versions", style="dim")
    table.add_column("Compilers", style="blue")
    table.add_column("Category")
    table.add_column("Synopsis")

    for record, versions in zip(selected, all_versions):
        version = str(record.version)
        if compiler is not None and not record.is_compatible(compiler):
            version = f"[red]{version}[/red]"
        table.add_row(
            record.name,
            version,
            ", ".join(str(r.version) for r in versions),
            str(record.compilers),
            record.category,
            record.synopsis,
        )

    console.print(table)


def render_dependency_tree(graph: DependencyGraph, roots: Sequence[str]) -> None:
    """
    Render a graph as trees hanging from roots.

    A node already shown on the current path is marked and not expanded
    again, so cycles print finitely.
    """
    for root in roots:
        tree = Tree(f"[bold cyan]{root}[/bold cyan]")
        _add_children(tree, graph, root, {root})
        console.print(tree)


def _add_children(tree: Tree, graph: DependencyGraph, node: str, path: set) -> None:
    for child in graph.direct_dependencies(node):
        if child in path:
            tree.add(f"[yellow]{child} (cycle)[/yellow]")
            continue
        branch = tree.add(child)
        _add_children(branch, graph, child, path | {child})


def render_edges(graph: DependencyGraph) -> None:
    """Plain 'from -> to' listing, one edge per line."""
    data = graph.to_dict()
    for node in data['nodes']:
        if node['highlighted']:
            console.print(f"[bold]* {node['id']}[/bold]")
    for edge in data['edges']:
        console.print(f"{edge['from']} -> {edge['to']}")


def render_stats(header: Sequence[str], rows: Sequence[StatsRow], total: StatsRow) -> None:
    """Render combined statistics as a table."""
    table_rows = [row.to_csv() for row in rows]
    table_rows.append(total.to_csv())
    render_table(list(header), table_rows, title="Test Statistics")
