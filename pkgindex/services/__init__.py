"""
Service layer for pkgindex.

Contains business logic that orchestrates domain objects and infrastructure:
- RepositoryIndex: Package versions grouped by name
- select: Per-package version selection against a compiler
- DependencyGraph: Forward and backward dependency closures
- ReleasePipeline: checkout -> install -> test -> uninstall
- AdmissionWorkflow: Adding versions to the index with rollback
- stats: Combining per-package statistics

Services are the primary API for commands to use.
"""

from .index_service import RepositoryIndex
from .version_selector import select
from .dependency_graph import DependencyGraph
from .pipeline import ReleasePipeline
from .admission import AdmissionWorkflow, AdmissionResult
from . import stats

__all__ = [
    'RepositoryIndex',
    'select',
    'DependencyGraph',
    'ReleasePipeline',
    'AdmissionWorkflow',
    'AdmissionResult',
    'stats',
]
