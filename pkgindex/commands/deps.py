"""
Handles the 'show-deps' and 'write-deps' commands.

Both work over the informational working set: one record per package
(the best version for the configured compiler, or the latest when none
fits), so every package name appears in the graph.
"""

from pathlib import Path

import click

from ..cli_utils import (
    standard_command, add_common_options, build_settings, load_index, echo_json,
)
from ..exit_codes import PackageNotFound
from ..infra import graph_renderer
from ..render import render_dependency_tree, render_edges
from ..services.dependency_graph import DependencyGraph


def _graph_for(settings, package, reverse):
    index = load_index(settings)
    if package and package not in index:
        raise PackageNotFound(package)
    graph = DependencyGraph.build(index.select(settings.compiler, strict=False))
    return graph.restrict([package] if package else [], reverse=reverse)


@click.command('show-deps')
@click.argument('package', required=False)
@click.option('-r', '--reverse', is_flag=True, help='Show packages that depend on PACKAGE instead')
@click.option('--tree', is_flag=True, help='Print as a tree rooted at PACKAGE')
@add_common_options('index', 'compiler', 'json', 'debug')
@standard_command
def show_deps_handler(package, reverse, tree, index_dir, compiler, as_json, debug):
    """Show the dependency graph.

    PACKAGE: restrict to this package's transitive dependencies
    (or dependents with --reverse); the whole graph when omitted.

    \b
    Examples:
        pkgindex show-deps
        pkgindex show-deps parser-kit --tree
        pkgindex show-deps base --reverse --json
    """
    settings = build_settings(index_dir, compiler, (), debug)
    graph = _graph_for(settings, package, reverse)

    if as_json:
        echo_json(graph.to_dict())
    elif tree and package and not reverse:
        render_dependency_tree(graph, [package])
    else:
        render_edges(graph)
    return 0


@click.command('write-deps')
@click.argument('output', type=click.Path(dir_okay=False))
@click.argument('package', required=False)
@click.option('-r', '--reverse', is_flag=True, help='Graph packages that depend on PACKAGE instead')
@click.option('-f', '--format', 'fmt', type=click.Choice(graph_renderer.FORMATS),
              help='Output format (default: from OUTPUT suffix, else svg)')
@add_common_options('index', 'compiler', 'debug')
@standard_command
def write_deps_handler(output, package, reverse, fmt, index_dir, compiler, debug):
    """Write the dependency graph to a file.

    \b
    Examples:
        pkgindex write-deps deps.svg
        pkgindex write-deps parser-kit.dot parser-kit
        pkgindex write-deps users.json base --reverse
    """
    settings = build_settings(index_dir, compiler, (), debug)
    graph = _graph_for(settings, package, reverse)

    if fmt is None:
        suffix = Path(output).suffix.lstrip('.').lower()
        fmt = suffix if suffix in graph_renderer.FORMATS else 'svg'

    path = graph_renderer.render(graph.to_dict(), output, fmt)
    click.echo(f"Wrote {len(graph.nodes)} packages, {len(graph.edges)} edges to {path}")
    return 0
