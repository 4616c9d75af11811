"""
Handles the 'add' and 'update' commands: admit package versions into the index.

Admission runs the full release pipeline against the new version. If it
fails, the new entry is rolled back and the command exits non-zero. On
success the git commands needed to publish the index are printed; this
tool never pushes the index itself.
"""

import click

from ..cli_utils import standard_command, add_common_options, build_settings
from ..services.admission import AdmissionWorkflow, AdmissionResult
from ..version_manager import BUMP_PARTS


def _report(result: AdmissionResult) -> None:
    click.secho(f"Admitted {result.record.identity}", fg='green')
    click.echo("To publish the index entry, run:")
    for line in result.follow_up:
        click.echo(f"    {line}")


@click.command('add')
@click.argument('spec_dir', type=click.Path(exists=True, file_okay=False))
@click.option('--tag', is_flag=True, help='Tag the package git repository with the version first')
@add_common_options('index', 'define', 'debug')
@click.option('--stats-dir', type=click.Path(file_okay=False),
              help='Write the statistics CSV file here')
@standard_command
def add_handler(spec_dir, tag, index_dir, definitions, debug, stats_dir):
    """Admit a new package version.

    SPEC_DIR: directory holding the package.yaml to admit

    \b
    Examples:
        pkgindex add ~/src/parser-kit
        pkgindex add ~/src/parser-kit --tag
    """
    settings = build_settings(index_dir, None, definitions, debug, stats_dir)
    result = AdmissionWorkflow(settings).admit(spec_dir, tag=tag)
    _report(result)
    return 0


@click.command('update')
@click.argument('spec_dir', type=click.Path(exists=True, file_okay=False))
@click.option('--bump', 'part', type=click.Choice(BUMP_PARTS), default='patch', show_default=True,
              help='Version part to increment')
@click.option('--tag', is_flag=True, help='Tag the package git repository with the new version')
@add_common_options('index', 'define', 'debug')
@click.option('--stats-dir', type=click.Path(file_okay=False),
              help='Write the statistics CSV file here')
@standard_command
def update_handler(spec_dir, part, tag, index_dir, definitions, debug, stats_dir):
    """Admit the next version of an indexed package.

    SPEC_DIR: directory holding the package's package.yaml

    The package.yaml version is rewritten to the highest indexed version with
    the chosen part incremented, then the package is admitted.

    \b
    Examples:
        pkgindex update ~/src/parser-kit
        pkgindex update ~/src/parser-kit --bump minor --tag
    """
    settings = build_settings(index_dir, None, definitions, debug, stats_dir)
    result = AdmissionWorkflow(settings).update(spec_dir, part=part, tag=tag)
    _report(result)
    return 0
