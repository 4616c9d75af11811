"""
Package specification loader for pkgindex.

A package directory describes one version in package.yaml:

    name: parser-kit
    version: 1.2.0
    synopsis: Parser combinators
    category: Parsing
    dependencies:
      - base
      - name: containers
        version: ">=0.6"
    compilers:
      ghc: ">=9.2,<9.10"
"""

from pathlib import Path
from typing import Optional, Union
import logging

import yaml

from ..domain.package import PackageRecord
from ..exit_codes import SpecInvalid

logger = logging.getLogger(__name__)

SPEC_FILENAMES = ('package.yaml', 'package.yml')


def find_spec_file(directory: Union[str, Path]) -> Optional[Path]:
    """Return the package.yaml file inside directory, if there is one."""
    directory = Path(directory)
    for filename in SPEC_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def load_spec_file(path: Union[str, Path]) -> PackageRecord:
    """
    Parse a single YAML spec file.

    Raises:
        SpecInvalid: if the file cannot be read or does not describe a package
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise SpecInvalid(str(path), f"cannot read file ({e.strerror})") from e
    except yaml.YAMLError as e:
        raise SpecInvalid(str(path), f"not valid YAML ({e})") from e

    try:
        return PackageRecord.from_dict(data)
    except ValueError as e:
        raise SpecInvalid(str(path), str(e)) from e


def load(directory: Union[str, Path]) -> PackageRecord:
    """
    Load the PackageRecord described in directory.

    Raises:
        SpecInvalid: if no spec file exists or it is malformed
    """
    spec_file = find_spec_file(directory)
    if spec_file is None:
        raise SpecInvalid(str(directory), "no package.yaml found")
    record = load_spec_file(spec_file)
    logger.debug(f"Loaded {record.identity} from {spec_file}")
    return record
