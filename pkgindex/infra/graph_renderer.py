"""
Graph renderer for pkgindex.

Turns the generic {nodes, edges} structure produced by DependencyGraph
into DOT or JSON, and hands DOT to Graphviz for image formats.
"""

import json
import subprocess
from pathlib import Path
from typing import Dict, Any, Union
import logging

from ..exit_codes import CommandError
from .file_store import write_atomic

logger = logging.getLogger(__name__)

TEXT_FORMATS = ('dot', 'json')
IMAGE_FORMATS = ('svg', 'png')
FORMATS = TEXT_FORMATS + IMAGE_FORMATS


def _quote(value: str) -> str:
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


def to_dot(graph: Dict[str, Any], name: str = "dependencies") -> str:
    """Render a {nodes, edges} dict as a Graphviz digraph."""
    lines = [f"digraph {_quote(name)} {{", "  rankdir=LR;", "  node [shape=box];"]
    for node in graph.get('nodes', []):
        attrs = ' [style=filled, fillcolor="#ffd866"]' if node.get('highlighted') else ''
        lines.append(f"  {_quote(node['id'])}{attrs};")
    for edge in graph.get('edges', []):
        lines.append(f"  {_quote(edge['from'])} -> {_quote(edge['to'])};")
    lines.append("}")
    return '\n'.join(lines) + '\n'


def render(graph: Dict[str, Any], output: Union[str, Path], fmt: str = 'svg',
           dot_command: str = 'dot') -> Path:
    """
    Write graph to output in the requested format.

    Raises:
        CommandError: on an unknown format or a Graphviz failure
    """
    output = Path(output)
    if fmt not in FORMATS:
        raise CommandError(f"Unknown graph format '{fmt}' (choose from {', '.join(FORMATS)})")

    if fmt == 'json':
        write_atomic(output, json.dumps(graph, indent=2) + '\n')
        return output

    dot_source = to_dot(graph)
    if fmt == 'dot':
        write_atomic(output, dot_source)
        return output

    output.parent.mkdir(parents=True, exist_ok=True)
    cmd = [dot_command, f"-T{fmt}", "-o", str(output)]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, input=dot_source, capture_output=True, text=True)
    except FileNotFoundError:
        raise CommandError(f"Graphviz '{dot_command}' not found; use --format dot or json") from None
    if result.returncode != 0:
        raise CommandError(f"Graphviz failed: {result.stderr.strip()}")
    return output
