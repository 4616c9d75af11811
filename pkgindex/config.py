#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Dict, Any, Iterable

import logging
import sys

from packaging.version import InvalidVersion

from .domain.package import Compiler
from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("pkgindex")


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. PKGINDEX_CONFIG environment variable
    2. ~/.pkgindex/ directory
    """
    # Check for environment variable override
    if 'PKGINDEX_CONFIG' in os.environ:
        path = Path(os.environ['PKGINDEX_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.pkgindex'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                import yaml
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            # Merge file config with defaults
            config = merge_configs(config, file_config)
        except Exception as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()

    try:
        # Create directory if it doesn't exist
        config_path.parent.mkdir(parents=True, exist_ok=True)

        if config_path.suffix.lower() in ['.toml']:
            # tomllib is read-only
            import toml
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            import yaml
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            # Default to JSON format
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)

        logger.info(f"Configuration saved to {config_path}")
    except Exception as e:
        logger.error(f"Error saving config to {config_path}: {e}")


def get_default_config():
    """Get default configuration."""
    return {
        "index": {
            "path": "~/.pkgindex/index",
            "snapshot": "~/.pkgindex/index.json",
            "install_cache": "~/.pkgindex/cache",
        },
        "package_manager": {
            "command": "pkgtool",
            "timeout_seconds": 3600,
            # Passed as --define key=value to every invocation
            "overrides": {},
        },
        "compiler": {
            "name": "",
            "version": "",
        },
        "pipeline": {
            "stats_dir": "",
            "rebuild_on_rollback": True,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        },
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: PKGINDEX_SECTION_SUBSECTION_KEY
    For example: PKGINDEX_PIPELINE_REBUILD_ON_ROLLBACK=false
    """
    env_prefix = "PKGINDEX_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "PKGINDEX_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config


def configure_logging(config: Dict[str, Any], debug: bool = False) -> None:
    """Apply the logging section (or --debug) to the root logger."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            force=True,
        )
        return
    section = config.get("logging", {})
    level = getattr(logging, str(section.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=section.get("format", "%(levelname)s: %(message)s"),
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def parse_definitions(definitions: Iterable[str]) -> Tuple[Tuple[str, str], ...]:
    """
    Parse KEY=VALUE strings from the command line.

    Raises:
        ConfigError: if an entry has no '=' or an empty key
    """
    parsed = []
    for item in definitions:
        key, sep, value = item.partition('=')
        if not sep or not key.strip():
            raise ConfigError(f"Override '{item}' is not of the form KEY=VALUE")
        parsed.append((key.strip(), value))
    return tuple(parsed)


def _merge_overrides(*groups: Iterable[Tuple[str, str]]) -> Tuple[Tuple[str, str], ...]:
    # Later groups win; first-seen key order is kept.
    merged: Dict[str, str] = {}
    for group in groups:
        for key, value in group:
            merged[key] = value
    return tuple(merged.items())


def _optional_path(value: Any) -> Optional[Path]:
    if not value:
        return None
    return Path(os.path.expanduser(str(value)))


@dataclass(frozen=True)
class Settings:
    """
    Immutable process-wide settings.

    Built once at process start from the merged configuration plus any
    command-line overrides, then passed explicitly into every service.
    """
    index_dir: Path
    snapshot_path: Path
    install_cache_dir: Path
    package_manager: str = "pkgtool"
    timeout: Optional[int] = None
    overrides: Tuple[Tuple[str, str], ...] = ()
    compiler: Optional[Compiler] = None
    stats_dir: Optional[Path] = None
    rebuild_on_rollback: bool = True

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        compiler: Optional[str] = None,
        stats_dir: Optional[str] = None,
        definitions: Iterable[str] = (),
        index_dir: Optional[str] = None,
    ) -> 'Settings':
        """
        Build Settings from a config dict, with command-line values taking
        precedence over the file.

        Raises:
            ConfigError: if a value cannot be interpreted
        """
        index = config.get("index", {})
        manager = config.get("package_manager", {})
        pipeline = config.get("pipeline", {})

        overrides = manager.get("overrides") or {}
        if not isinstance(overrides, dict):
            raise ConfigError("package_manager.overrides must be a mapping")
        overrides = _merge_overrides(
            ((str(k), str(v)) for k, v in overrides.items()),
            parse_definitions(definitions),
        )

        resolved_compiler = None
        try:
            if compiler:
                resolved_compiler = Compiler.parse(compiler)
            else:
                section = config.get("compiler", {})
                if section.get("name") and section.get("version"):
                    resolved_compiler = Compiler.parse(f"{section['name']}-{section['version']}")
        except (ValueError, InvalidVersion) as e:
            raise ConfigError(f"Bad compiler setting: {e}") from e

        timeout = manager.get("timeout_seconds")
        try:
            timeout = int(timeout) if timeout else None
        except (TypeError, ValueError):
            raise ConfigError(f"package_manager.timeout_seconds is not a number: {timeout!r}") from None

        return cls(
            index_dir=_optional_path(index_dir or index.get("path")) or Path("index"),
            snapshot_path=_optional_path(index.get("snapshot")) or Path("index.json"),
            install_cache_dir=_optional_path(index.get("install_cache")) or Path("cache"),
            package_manager=str(manager.get("command") or "pkgtool"),
            timeout=timeout,
            overrides=overrides,
            compiler=resolved_compiler,
            stats_dir=_optional_path(stats_dir or pipeline.get("stats_dir")),
            rebuild_on_rollback=bool(pipeline.get("rebuild_on_rollback", True)),
        )

    def require_compiler(self) -> Compiler:
        """Return the configured compiler or raise ConfigError."""
        if self.compiler is None:
            raise ConfigError(
                "No compiler configured; pass --compiler NAME-VERSION "
                "or set compiler.name and compiler.version"
            )
        return self.compiler
