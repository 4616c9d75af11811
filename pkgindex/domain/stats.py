"""
Statistics rows produced by a package's test step.

Each row carries six integer counters. The CSV column layout is:

    package, timestamp, modules_total, modules_tested, tests_total,
    tests_passed, tests_failed, tests_skipped, modules

`modules` is a ';'-separated list of module names.
"""

from dataclasses import dataclass
from typing import Tuple, List, Dict, Any, Sequence

COUNTER_FIELDS = (
    'modules_total',
    'modules_tested',
    'tests_total',
    'tests_passed',
    'tests_failed',
    'tests_skipped',
)

HEADER = ('package', 'timestamp') + COUNTER_FIELDS + ('modules',)

TOTAL_ID = 'TOTAL'
MODULE_SEPARATOR = ';'


@dataclass(frozen=True)
class StatsRow:
    """One row of per-package statistics."""
    package_id: str
    timestamp: str
    counters: Tuple[int, ...]
    modules: Tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.counters) != len(COUNTER_FIELDS):
            raise ValueError(
                f"expected {len(COUNTER_FIELDS)} counters, got {len(self.counters)}"
            )

    @classmethod
    def from_csv(cls, cells: Sequence[str]) -> 'StatsRow':
        """
        Parse one CSV row.

        Raises:
            ValueError: if the row does not have exactly len(HEADER) cells
                or a counter is not an integer
        """
        if len(cells) != len(HEADER):
            raise ValueError(f"expected {len(HEADER)} columns, got {len(cells)}")
        package_id = cells[0].strip()
        if not package_id:
            raise ValueError("empty package column")
        counters = []
        for name, cell in zip(COUNTER_FIELDS, cells[2:2 + len(COUNTER_FIELDS)]):
            try:
                counters.append(int(cell))
            except ValueError:
                raise ValueError(f"{name} is not an integer: {cell!r}") from None
        modules = tuple(m for m in cells[-1].split(MODULE_SEPARATOR) if m)
        return cls(package_id, cells[1].strip(), tuple(counters), modules)

    def to_csv(self) -> List[str]:
        return ([self.package_id, self.timestamp]
                + [str(c) for c in self.counters]
                + [MODULE_SEPARATOR.join(self.modules)])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'package': self.package_id, 'timestamp': self.timestamp}
        data.update(zip(COUNTER_FIELDS, self.counters))
        data['modules'] = list(self.modules)
        return data
