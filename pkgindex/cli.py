#!/usr/bin/env python3

import click

from pkgindex.commands.test_all import test_all_handler
from pkgindex.commands.add import add_handler, update_handler
from pkgindex.commands.deps import show_deps_handler, write_deps_handler
from pkgindex.commands.stats import sum_stats_handler
from pkgindex.commands.list import list_handler, rebuild_handler
from pkgindex.commands.config import config_cmd


@click.group()
@click.version_option(package_name='pkgindex')
def cli():
    """pkgindex - Package index and release pipeline.

    Keeps a central index of versioned packages and runs checkout,
    install and test against each indexed version.
    """
    pass


# Release pipeline
cli.add_command(test_all_handler, name='test-all')
cli.add_command(add_handler, name='add')
cli.add_command(update_handler, name='update')

# Dependency graph
cli.add_command(show_deps_handler, name='show-deps')
cli.add_command(write_deps_handler, name='write-deps')

# Statistics
cli.add_command(sum_stats_handler, name='sum-stats')

# Index maintenance
cli.add_command(list_handler, name='list')
cli.add_command(rebuild_handler, name='rebuild')

# Configuration
cli.add_command(config_cmd, name='config')


def main():
    cli()

if __name__ == "__main__":
    main()
