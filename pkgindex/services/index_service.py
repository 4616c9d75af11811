"""
Repository index service for pkgindex.

RepositoryIndex is the in-memory view of every indexed package version,
grouped by name. It is built once per command from the persisted layout
and is read-only afterwards.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Mapping
import logging

from ..domain import PackageRecord, Compiler, parse_version
from ..exit_codes import DuplicateVersion, PackageNotFound

logger = logging.getLogger(__name__)


class RepositoryIndex:
    """
    Package versions grouped by name, each bucket sorted ascending.

    Example:
        index = RepositoryIndex.from_records(store.list_all())
        for name in index.names():
            print(name, [str(r.version) for r in index.versions(name)])
    """

    def __init__(self, versions_by_name: Mapping[str, Tuple[PackageRecord, ...]]):
        self._versions: Dict[str, Tuple[PackageRecord, ...]] = dict(versions_by_name)
        self._check_invariants()

    def _check_invariants(self) -> None:
        identities = set()
        for name, bucket in self._versions.items():
            if not bucket:
                raise ValueError(f"empty version list for {name}")
            for record in bucket:
                if record.name != name:
                    raise ValueError(f"{record.identity} filed under {name}")
                if record.identity in identities:
                    raise DuplicateVersion(record.identity)
                identities.add(record.identity)
            versions = [r.version for r in bucket]
            if versions != sorted(versions):
                raise ValueError(f"versions of {name} are not sorted")

    @classmethod
    def from_records(cls, records: Iterable[PackageRecord]) -> 'RepositoryIndex':
        """
        Group records by name.

        Raises:
            DuplicateVersion: if two records share an identity
        """
        grouped: Dict[str, List[PackageRecord]] = {}
        for record in records:
            grouped.setdefault(record.name, []).append(record)
        return cls({
            name: tuple(sorted(bucket, key=lambda r: r.version))
            for name, bucket in grouped.items()
        })

    @classmethod
    def load(cls, store) -> 'RepositoryIndex':
        """Build the index from an IndexStore."""
        index = cls.from_records(store.list_all())
        logger.debug(f"Loaded {len(index)} packages from {store.root}")
        return index

    def names(self) -> List[str]:
        """All package names, sorted."""
        return sorted(self._versions)

    def versions(self, name: str) -> Tuple[PackageRecord, ...]:
        """
        All versions of name, ascending.

        Raises:
            PackageNotFound: if name is not indexed
        """
        try:
            return self._versions[name]
        except KeyError:
            raise PackageNotFound(name) from None

    def latest(self, name: str) -> PackageRecord:
        return self.versions(name)[-1]

    def resolve(self, name: str, version) -> Optional[PackageRecord]:
        """Return the record for (name, version), or None."""
        wanted = parse_version(version) if isinstance(version, str) else version
        for record in self._versions.get(name, ()):
            if record.version == wanted:
                return record
        return None

    def records(self) -> Iterator[PackageRecord]:
        """Every record, by name then version."""
        for name in self.names():
            yield from self._versions[name]

    def with_record(self, record: PackageRecord) -> 'RepositoryIndex':
        """
        Return a new index that also holds record.

        Raises:
            DuplicateVersion: if the identity is already indexed
        """
        if self.resolve(record.name, record.version) is not None:
            raise DuplicateVersion(record.identity)
        bucket = tuple(sorted(self._versions.get(record.name, ()) + (record,),
                              key=lambda r: r.version))
        versions = dict(self._versions)
        versions[record.name] = bucket
        return RepositoryIndex(versions)

    def select(self, compiler: Optional[Compiler], strict: bool) -> List[PackageRecord]:
        """
        Working set: one selected record per name, sorted by name.

        See version_selector.select for the per-package rule. Without a
        compiler only a non-strict selection is possible, and it is the
        latest version of every package.
        """
        from .version_selector import select
        if compiler is None:
            if strict:
                raise ValueError("strict selection needs a compiler")
            return [self.latest(name) for name in self.names()]
        selected = []
        for name in self.names():
            selected.extend(select(self._versions[name], compiler, strict))
        return selected

    def __contains__(self, name: str) -> bool:
        return name in self._versions

    def __len__(self) -> int:
        return len(self._versions)
