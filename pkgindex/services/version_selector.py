"""
Version selection for pkgindex.

Picks the one version of a package that repository-wide operations
(test all, document all, the index listing) act on.
"""

from typing import Sequence, Tuple

from ..domain import PackageRecord, Compiler


def select(
    versions: Sequence[PackageRecord],
    compiler: Compiler,
    strict: bool = True,
) -> Tuple[PackageRecord, ...]:
    """
    Select the representative version of one package.

    The highest version that accepts compiler wins. When none does,
    strict selection returns nothing (the package sits out
    compiler-restricted operations); non-strict selection falls back to
    the highest version overall so informational listings still show
    every package.

    Args:
        versions: All versions of a single package (never empty)
        compiler: Compiler identity to select against
        strict: Drop packages with no compatible version

    Returns:
        A tuple holding zero or one record
    """
    compatible = [r for r in versions if r.is_compatible(compiler)]
    if compatible:
        return (max(compatible, key=lambda r: r.version),)
    if strict or not versions:
        return ()
    return (max(versions, key=lambda r: r.version),)
