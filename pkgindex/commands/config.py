"""
Handles the 'config' command group: inspect and initialise configuration.
"""

import json

import click

from ..cli_utils import standard_command
from ..config import get_config_path, get_default_config, load_config, merge_configs, save_config
from ..domain.package import Compiler
from ..exit_codes import ConfigError


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSON")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@standard_command
def show_config(pretty, path):
    """Show the current configuration with all merges applied.

    Environment overrides (PKGINDEX_*) are included.
    """
    if path:
        click.echo(json.dumps({"config_path": str(get_config_path())}))
        return 0

    config = load_config()
    if pretty:
        click.echo(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        click.echo(json.dumps(config, ensure_ascii=False))
    return 0


@config_cmd.command("init")
@click.option("-c", "--compiler", help="Compiler to record, e.g. ghc-9.4.7")
@click.option("--index", "index_path", type=click.Path(file_okay=False), help="Index directory to record")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@standard_command
def init_config(compiler, index_path, force):
    """Write a configuration file with the default settings.

    The file is written to PKGINDEX_CONFIG when that names an existing
    file, else to ~/.pkgindex/config.json.

    \b
    Examples:
        pkgindex config init
        pkgindex config init -c ghc-9.4.7 --index ~/pkg-index
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        raise ConfigError(f"Configuration already exists at {config_path} (use --force to overwrite)")

    overrides = {}
    if compiler:
        try:
            parsed = Compiler.parse(compiler)
        except ValueError as e:
            raise ConfigError(f"Invalid compiler: {e}") from e
        overrides['compiler'] = {'name': parsed.name, 'version': str(parsed.version)}
    if index_path:
        overrides['index'] = {'path': index_path}

    save_config(merge_configs(get_default_config(), overrides))
    if not config_path.exists():
        raise ConfigError(f"Could not write configuration to {config_path}")
    click.echo(f"Configuration written to {config_path}")
    return 0
