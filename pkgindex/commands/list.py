"""
Handles the 'list' and 'rebuild' commands.

'list' shows every package in the index, including ones with no version
for the configured compiler.
"""

import click

from ..cli_utils import (
    standard_command, add_common_options, build_settings, load_index, open_store, echo_json,
)
from ..render import render_package_list


@click.command('list')
@add_common_options('index', 'compiler', 'json', 'debug')
@standard_command
def list_handler(index_dir, compiler, as_json, debug):
    """List all indexed packages.

    \b
    Examples:
        pkgindex list
        pkgindex list -c ghc-9.4.7 --json
    """
    settings = build_settings(index_dir, compiler, (), debug)
    index = load_index(settings)
    selected = index.select(settings.compiler, strict=False)

    if as_json:
        for record in selected:
            item = record.to_dict()
            item['versions'] = [str(r.version) for r in index.versions(record.name)]
            if settings.compiler is not None:
                item['compatible'] = record.is_compatible(settings.compiler)
            echo_json(item)
        return 0

    render_package_list(selected, [index.versions(r.name) for r in selected], settings.compiler)
    return 0


@click.command('rebuild')
@add_common_options('index', 'debug')
@standard_command
def rebuild_handler(index_dir, debug):
    """Regenerate the served index snapshot from the index directory."""
    settings = build_settings(index_dir, None, (), debug)
    count = open_store(settings).rebuild()
    click.echo(f"Snapshot {settings.snapshot_path} holds {count} packages")
    return 0
