"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Optional, Sequence

from .config import load_config, configure_logging, Settings
from .exit_codes import SUCCESS, INTERRUPTED, CommandError, CompensationFailed
from .infra.index_store import IndexStore
from .services.index_service import RepositoryIndex


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - The command's return value (an int) becomes the exit code
    - CommandError is reported on stderr and exits with its code
    - CompensationFailed is reported separately with the parts that
      need manual repair
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            code = func(*args, **kwargs)
            sys.exit(code or SUCCESS)
        except KeyboardInterrupt:
            click.secho("Interrupted by user", fg='red', err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CompensationFailed as e:
            click.secho(f"ROLLBACK INCOMPLETE: {e}", fg='red', bold=True, err=True)
            if e.cause is not None:
                click.secho(f"Cause: {e.cause}", fg='red', err=True)
            for part in e.failed_parts:
                click.echo(f"  needs repair: {part}", err=True)
            sys.exit(e.exit_code)
        except CommandError as e:
            click.secho(f"Error: {e}", fg='red', err=True)
            sys.exit(e.exit_code)

    return wrapper


def echo_json(item: Any) -> None:
    click.echo(json.dumps(item, ensure_ascii=False))


# Standard options that many commands share
common_options = {
    'index': click.option('--index', 'index_dir', type=click.Path(file_okay=False),
                          help='Index directory (default: index.path from config)'),
    'compiler': click.option('-c', '--compiler',
                             help='Compiler identity NAME-VERSION, e.g. ghc-9.4.7'),
    'define': click.option('-D', '--define', 'definitions', multiple=True, metavar='KEY=VALUE',
                           help='Override passed to every package-manager call (repeatable)'),
    'debug': click.option('--debug', is_flag=True, help='Enable debug logging'),
    'json': click.option('--json', 'as_json', is_flag=True, help='Emit JSON instead of tables'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('index', 'debug')
        def my_command(index_dir, debug):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator


def build_settings(
    index_dir: Optional[str] = None,
    compiler: Optional[str] = None,
    definitions: Sequence[str] = (),
    debug: bool = False,
    stats_dir: Optional[str] = None,
) -> Settings:
    """Load configuration once and fold in command-line overrides."""
    config = load_config()
    configure_logging(config, debug=debug)
    return Settings.from_config(
        config,
        compiler=compiler,
        stats_dir=stats_dir,
        definitions=definitions,
        index_dir=index_dir,
    )


def setup_logging(debug: bool = False) -> None:
    """Configure logging for commands that need no other settings."""
    configure_logging(load_config(), debug=debug)


def open_store(settings: Settings) -> IndexStore:
    return IndexStore(settings.index_dir, settings.snapshot_path)


def load_index(settings: Settings) -> RepositoryIndex:
    return RepositoryIndex.load(open_store(settings))
