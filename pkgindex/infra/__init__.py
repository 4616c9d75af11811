"""
Infrastructure layer for pkgindex.

Contains abstractions for external systems:
- PackageManagerClient: checkout/install/test/uninstall command execution
- GitClient: Version tagging
- IndexStore: The persisted package index layout and its snapshot
- FileStore: Atomic JSON file persistence
- spec_loader: package.yaml parsing
- graph_renderer: DOT/JSON/Graphviz output

These provide clean interfaces that can be mocked for testing.
"""

from .package_manager import PackageManagerClient
from .git_client import GitClient
from .index_store import IndexStore, remove_cache_dir
from .file_store import FileStore, write_atomic, exclusive_lock
from . import spec_loader, graph_renderer

__all__ = [
    'PackageManagerClient',
    'GitClient',
    'IndexStore',
    'remove_cache_dir',
    'FileStore',
    'write_atomic',
    'exclusive_lock',
    'spec_loader',
    'graph_renderer',
]
