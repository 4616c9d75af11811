"""
Version management utilities for package specs.

Handles version bumping and rewriting the version line of a
package.yaml in place, leaving the rest of the file (comments,
ordering) untouched.
"""

import re
from pathlib import Path
from typing import Union

from packaging.version import Version

from .domain.package import parse_version

BUMP_PARTS = ('major', 'minor', 'patch')

_VERSION_LINE = re.compile(r'^(version\s*:\s*["\']?)([^"\'\s#]+)(["\']?.*)$', re.MULTILINE)


class VersionBumper:
    """Bump semantic versions. A trailing build segment is dropped."""

    @staticmethod
    def bump_major(version: Version) -> Version:
        """Bump major version (X.0.0)."""
        return Version(f"{version.major + 1}.0.0")

    @staticmethod
    def bump_minor(version: Version) -> Version:
        """Bump minor version (x.Y.0)."""
        return Version(f"{version.major}.{version.minor + 1}.0")

    @staticmethod
    def bump_patch(version: Version) -> Version:
        """Bump patch version (x.y.Z)."""
        return Version(f"{version.major}.{version.minor}.{version.micro + 1}")

    @classmethod
    def bump(cls, version: Union[str, Version], part: str = 'patch') -> Version:
        """
        Bump the given part of version.

        Raises:
            ValueError: on an unknown part or unparseable version
        """
        if isinstance(version, str):
            version = parse_version(version)
        if part not in BUMP_PARTS:
            raise ValueError(f"Unknown version part '{part}' (choose from {', '.join(BUMP_PARTS)})")
        return getattr(cls, f"bump_{part}")(version)


def set_spec_version(spec_file: Union[str, Path], new_version: Union[str, Version]) -> bool:
    """
    Set the top-level version in a spec file.

    Returns:
        True if the file changed
    """
    spec_file = Path(spec_file)
    content = spec_file.read_text(encoding='utf-8')
    new_content, count = _VERSION_LINE.subn(
        lambda m: f"{m.group(1)}{new_version}{m.group(3)}",
        content,
        count=1,
    )
    if count == 0 or new_content == content:
        return False
    spec_file.write_text(new_content, encoding='utf-8')
    return True

