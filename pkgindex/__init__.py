"""
pkgindex - A central index of versioned packages and their release pipeline.

pkgindex keeps every released version of every package in an
append-only index, selects the version to use for a given compiler,
analyses the dependency graph, and drives checkout, install and test of
each version through an external package manager.

Quick Start:
    from pkgindex import Settings, RepositoryIndex, ReleasePipeline, load_config
    from pkgindex.infra import IndexStore

    settings = Settings.from_config(load_config(), compiler="ghc-9.4.7")
    index = RepositoryIndex.load(IndexStore(settings.index_dir))

    # Best version of every package for the compiler
    for record in index.select(settings.compiler, strict=True):
        print(record.identity)

    # Test one of them
    outcome = ReleasePipeline.from_settings(settings).run(index.latest("parser-kit"))
    print(outcome.exit_code)

Domain Objects:
    PackageRecord - One released version of a package
    Compiler - Compiler identity used for version selection
    ReleaseOutcome - Result of one pipeline run
    StatsRow - Per-package test statistics

Services:
    RepositoryIndex - Versions grouped by name
    DependencyGraph - Forward/backward dependency closures
    ReleasePipeline - checkout -> install -> test -> uninstall
    AdmissionWorkflow - Add a version, rolling back on failure
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    PackageRecord,
    Dependency,
    Compiler,
    ReleaseOutcome,
    PipelineState,
    StatsRow,
)

# Services
from .services import (
    RepositoryIndex,
    DependencyGraph,
    ReleasePipeline,
    AdmissionWorkflow,
    select,
)

# Configuration
from .config import load_config, save_config, Settings

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "PackageRecord",
    "Dependency",
    "Compiler",
    "ReleaseOutcome",
    "PipelineState",
    "StatsRow",
    # Services
    "RepositoryIndex",
    "DependencyGraph",
    "ReleasePipeline",
    "AdmissionWorkflow",
    "select",
    # Configuration
    "load_config",
    "save_config",
    "Settings",
]
