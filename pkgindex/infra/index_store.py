"""
Persisted index store for pkgindex.

Layout on disk, one YAML file per released version:

    <index>/<name>/<name>-<version>.yaml
    <index>/.lock

The served snapshot is a single JSON document regenerated from the
layout by rebuild(). Appends are atomic and serialized by an exclusive
lock; an existing identity is never overwritten.
"""

import contextlib
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Iterator, Optional, Union
import logging

import yaml

from ..domain.package import PackageRecord
from ..exit_codes import DuplicateVersion, SpecInvalid
from .file_store import FileStore, write_atomic, exclusive_lock
from .spec_loader import load_spec_file

logger = logging.getLogger(__name__)

LOCK_NAME = '.lock'


class IndexStore:
    """
    Directory-backed store of PackageRecords.

    Example:
        store = IndexStore(Path("~/.pkgindex/index"))
        for record in store.list_all():
            print(record.identity)
    """

    def __init__(self, root: Union[str, Path], snapshot_path: Optional[Union[str, Path]] = None):
        self.root = Path(root).expanduser()
        self.snapshot = FileStore(Path(snapshot_path)) if snapshot_path else None

    def path_for(self, name: str, version: str) -> Path:
        return self.root / name / f"{name}-{version}.yaml"

    def _path_for_record(self, record: PackageRecord) -> Path:
        return self.path_for(record.name, str(record.version))

    @contextlib.contextmanager
    def lock(self) -> Iterator[None]:
        """Single-writer lock over the whole index."""
        with exclusive_lock(self.root / LOCK_NAME):
            yield

    def list_all(self) -> List[PackageRecord]:
        """
        Read every record in the layout.

        Raises:
            SpecInvalid: if a stored file is malformed or misplaced
        """
        records = []
        if not self.root.is_dir():
            return records
        for path in sorted(self.root.glob('*/*.yaml')):
            record = load_spec_file(path)
            if path != self._path_for_record(record):
                raise SpecInvalid(str(path), f"file does not match identity {record.identity}")
            records.append(record)
        return records

    def contains(self, identity: str) -> bool:
        return any(p.stem == identity for p in self.root.glob('*/*.yaml'))

    def append(self, record: PackageRecord) -> Path:
        """
        Add a record to the layout.

        Raises:
            DuplicateVersion: if the identity, or an equal version of the
                same package (1.0.0 and 1.0.0.0), is already stored
        """
        path = self._path_for_record(record)
        with self.lock():
            if path.exists():
                raise DuplicateVersion(record.identity)
            for existing in sorted(path.parent.glob('*.yaml')):
                stored = load_spec_file(existing)
                if stored.name == record.name and stored.version == record.version:
                    raise DuplicateVersion(stored.identity)
            text = yaml.safe_dump(record.to_dict(), sort_keys=False, default_flow_style=False)
            write_atomic(path, text)
        logger.info(f"Added {record.identity} to {self.root}")
        return path

    def remove_by_identity(self, identity: str) -> bool:
        """
        Delete the stored file for identity.

        Returns:
            True if a file was removed, False if the identity was absent
        """
        with self.lock():
            matches = [p for p in self.root.glob('*/*.yaml') if p.stem == identity]
            for path in matches:
                path.unlink()
                logger.info(f"Removed {path}")
                with contextlib.suppress(OSError):
                    path.parent.rmdir()  # only succeeds when empty
        return bool(matches)

    def rebuild(self) -> int:
        """
        Regenerate the served JSON snapshot from the layout.

        Returns:
            Number of records in the new snapshot
        """
        records = self.list_all()
        if self.snapshot is None:
            logger.debug("No snapshot configured; nothing to rebuild")
            return len(records)
        self.snapshot.write({
            'generated_at': datetime.now(timezone.utc).isoformat(timespec='seconds'),
            'packages': [r.to_dict() for r in records],
        })
        logger.info(f"Rebuilt snapshot {self.snapshot.path} ({len(records)} packages)")
        return len(records)


def remove_cache_dir(cache_root: Union[str, Path], identity: str) -> bool:
    """Delete the install cache directory for identity, if present."""
    path = Path(cache_root).expanduser() / identity
    if not path.exists():
        return False
    shutil.rmtree(path)
    logger.info(f"Removed install cache {path}")
    return True
