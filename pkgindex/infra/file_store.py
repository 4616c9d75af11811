"""
File store infrastructure for pkgindex.

Provides file persistence with:
- Atomic writes (write to temp, then rename)
- Pretty formatting for human readability
- A POSIX single-writer lock for read-modify-write sections
- Automatic parent directory creation
"""

import contextlib
import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterator, Union
import logging

logger = logging.getLogger(__name__)


def write_atomic(path: Union[str, Path], text: str) -> None:
    """Write text atomically using temp file and rename."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file in same directory
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)

        # Atomic rename
        os.replace(temp_path, path)

    except Exception:
        # Clean up temp file on error
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


@contextlib.contextmanager
def exclusive_lock(lock_path: Union[str, Path]) -> Iterator[None]:
    """
    Hold an exclusive flock on lock_path for the duration of the block.

    Serializes writers across processes; readers do not take the lock.
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with lock_path.open("a+", encoding="utf-8") as lf:
        fcntl.flock(lf.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lf.fileno(), fcntl.LOCK_UN)


class FileStore:
    """
    JSON document persistence with atomic writes.

    Example:
        store = FileStore(Path("~/.pkgindex/index.json"))
        store.write({"packages": [...]})
        data = store.read()
    """

    def __init__(self, path: Path):
        """
        Initialize FileStore.

        Args:
            path: Path to JSON file
        """
        self.path = Path(path).expanduser()

    def read(self, default: Any = None) -> Any:
        """
        Read the stored document.

        Returns:
            Parsed JSON, or default if the file does not exist
        """
        if not self.path.exists():
            return default
        with open(self.path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def write(self, data: Any) -> None:
        """Replace the stored document."""
        text = json.dumps(data, indent=2, ensure_ascii=False) + '\n'
        write_atomic(self.path, text)
        logger.debug(f"Wrote {self.path}")
