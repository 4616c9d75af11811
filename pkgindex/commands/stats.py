"""
Handles the 'sum-stats' command: combine per-package statistics files.
"""

import click

from ..cli_utils import standard_command, add_common_options, setup_logging
from ..infra.file_store import write_atomic
from ..render import render_stats
from ..services import stats as stats_service


@click.command('sum-stats')
@click.argument('stats_dir', type=click.Path(exists=True, file_okay=False))
@click.option('-o', '--output', type=click.Path(dir_okay=False),
              help='Write the combined CSV here instead of stdout')
@click.option('--table', is_flag=True, help='Display as a formatted table')
@add_common_options('debug')
@standard_command
def sum_stats_handler(stats_dir, output, table, debug):
    """Combine the statistics CSV files in STATS_DIR.

    Rows are sorted by package and followed by a TOTAL row. Any file
    with the wrong column shape is an error.

    \b
    Examples:
        pkgindex sum-stats stats/
        pkgindex sum-stats stats/ -o summary.csv
    """
    setup_logging(debug)
    header, rows, total = stats_service.combine(stats_service.read_stats_dir(stats_dir))

    if table:
        render_stats(header, rows, total)
        return 0

    text = stats_service.format_stats(header, rows, total)
    if output:
        write_atomic(output, text)
        click.echo(f"Wrote statistics for {len(rows)} package(s) to {output}", err=True)
    else:
        click.echo(text, nl=False)
    return 0
