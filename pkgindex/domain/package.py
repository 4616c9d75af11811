"""
Package domain objects for pkgindex.

PackageRecord represents one released version of a package. It is
immutable and serializable; the on-disk YAML layout and the JSON
snapshot both go through to_dict()/from_dict().
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple, Mapping

from packaging.specifiers import SpecifierSet, InvalidSpecifier
from packaging.version import Version, InvalidVersion

VERSION_PATTERN = re.compile(r'^\d+\.\d+\.\d+(\.\d+)?$')
NAME_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._+-]*$')


def parse_version(value: Any) -> Version:
    """
    Parse a major.minor.patch[.build] version string.

    Raises:
        ValueError: if the string is not in that form
    """
    text = str(value).strip()
    if not VERSION_PATTERN.match(text):
        raise ValueError(f"'{text}' is not a major.minor.patch[.build] version")
    try:
        return Version(text)
    except InvalidVersion as e:
        raise ValueError(str(e)) from e


def parse_specifier(value: Optional[str]) -> SpecifierSet:
    """Parse a version constraint; empty or None means unconstrained."""
    try:
        return SpecifierSet(value or "")
    except InvalidSpecifier as e:
        raise ValueError(f"'{value}' is not a valid version constraint") from e


@dataclass(frozen=True)
class Compiler:
    """A compiler identity: name plus version."""
    name: str
    version: Version

    @classmethod
    def parse(cls, text: str) -> 'Compiler':
        """
        Parse 'name-1.2.3' (or 'name 1.2.3').

        Example:
            >>> Compiler.parse("ghc-9.4.7")
            Compiler(name='ghc', version=<Version('9.4.7')>)
        """
        text = text.strip()
        match = re.match(r'^(.+?)[-\s]+(\d[\w.]*)$', text)
        if not match:
            raise ValueError(f"'{text}' is not a compiler identity (expected name-version)")
        return cls(name=match.group(1), version=Version(match.group(2)))

    def __str__(self) -> str:
        return f"{self.name}-{self.version}"


@dataclass(frozen=True)
class Dependency:
    """A named dependency with an optional version constraint."""
    name: str
    constraint: str = ""

    def to_dict(self) -> Dict[str, Any]:
        if self.constraint:
            return {'name': self.name, 'version': self.constraint}
        return {'name': self.name}

    def __str__(self) -> str:
        return f"{self.name} {self.constraint}".strip()


@dataclass(frozen=True)
class CompilerCompatibility:
    """
    Predicate over (compiler name, compiler version).

    `ranges` maps a compiler name to a PEP 440 specifier string. A
    compiler is accepted when its name is listed and its version lies in
    the range. No ranges at all means every compiler is accepted.
    """
    ranges: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> 'CompilerCompatibility':
        ranges = []
        for name, spec in sorted((mapping or {}).items()):
            spec = '' if spec is None else str(spec)
            parse_specifier(spec)
            ranges.append((str(name), spec))
        return cls(ranges=tuple(ranges))

    def accepts(self, compiler: Compiler) -> bool:
        if not self.ranges:
            return True
        for name, spec in self.ranges:
            if name == compiler.name:
                return SpecifierSet(spec).contains(compiler.version, prereleases=True)
        return False

    def __call__(self, compiler: Compiler) -> bool:
        return self.accepts(compiler)

    def to_dict(self) -> Dict[str, str]:
        return dict(self.ranges)

    def __str__(self) -> str:
        if not self.ranges:
            return "any"
        return ", ".join(f"{name}{spec or ' (any)'}" for name, spec in self.ranges)


@dataclass(frozen=True)
class PackageRecord:
    """
    Immutable description of one package version.

    `identity` (name-version) is the unique key across the whole index.
    Records are never mutated; an update is a new record with a higher
    version.
    """

    name: str
    version: Version
    dependencies: Tuple[Dependency, ...] = ()
    compilers: CompilerCompatibility = field(default_factory=CompilerCompatibility)
    synopsis: str = ""
    category: str = ""

    def __post_init__(self):
        if not self.name or not NAME_PATTERN.match(self.name):
            raise ValueError(f"'{self.name}' is not a valid package name")
        if not isinstance(self.version, Version):
            object.__setattr__(self, 'version', parse_version(self.version))

    @property
    def identity(self) -> str:
        return f"{self.name}-{self.version}"

    @property
    def dependency_names(self) -> Tuple[str, ...]:
        """Dependency names in declaration order, duplicates kept."""
        return tuple(dep.name for dep in self.dependencies)

    def is_compatible(self, compiler: Compiler) -> bool:
        return self.compilers.accepts(compiler)

    def with_version(self, version: Version) -> 'PackageRecord':
        """Create a new record for a different version."""
        from dataclasses import replace
        return replace(self, version=version)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.name,
            'version': str(self.version),
        }
        if self.synopsis:
            data['synopsis'] = self.synopsis
        if self.category:
            data['category'] = self.category
        data['dependencies'] = [dep.to_dict() for dep in self.dependencies]
        data['compilers'] = self.compilers.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PackageRecord':
        """
        Build a record from parsed spec data.

        Raises:
            ValueError: on missing or malformed fields
        """
        if not isinstance(data, Mapping):
            raise ValueError("package data must be a mapping")
        for key in ('name', 'version'):
            if not data.get(key):
                raise ValueError(f"missing required field '{key}'")

        deps = []
        for entry in data.get('dependencies') or []:
            if isinstance(entry, str):
                deps.append(Dependency(name=entry))
            elif isinstance(entry, Mapping) and entry.get('name'):
                constraint = str(entry.get('version') or '')
                parse_specifier(constraint)
                deps.append(Dependency(name=str(entry['name']), constraint=constraint))
            else:
                raise ValueError(f"bad dependency entry: {entry!r}")

        compilers = data.get('compilers') or {}
        if not isinstance(compilers, Mapping):
            raise ValueError("'compilers' must map compiler names to version ranges")

        return cls(
            name=str(data['name']),
            version=parse_version(data['version']),
            dependencies=tuple(deps),
            compilers=CompilerCompatibility.from_mapping(compilers),
            synopsis=str(data.get('synopsis') or ''),
            category=str(data.get('category') or ''),
        )
