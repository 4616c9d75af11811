"""
Domain layer for pkgindex.

Contains pure domain objects with no I/O or side effects:
- PackageRecord: One released version of a package
- Compiler: The compiler identity packages are selected against
- ReleaseOutcome: Result of one release pipeline run
- StatsRow: Per-package test statistics

These objects are immutable and provide serialization methods for
JSON and CSV output.
"""

from .package import (
    PackageRecord,
    Dependency,
    Compiler,
    CompilerCompatibility,
    parse_version,
)
from .outcome import ReleaseOutcome, PipelineState, PipelineStep
from .stats import StatsRow, HEADER as STATS_HEADER, COUNTER_FIELDS

__all__ = [
    'PackageRecord',
    'Dependency',
    'Compiler',
    'CompilerCompatibility',
    'parse_version',
    'ReleaseOutcome',
    'PipelineState',
    'PipelineStep',
    'StatsRow',
    'STATS_HEADER',
    'COUNTER_FIELDS',
]
