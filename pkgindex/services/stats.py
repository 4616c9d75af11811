"""
Statistics aggregation for pkgindex.

The test step of each package may write a CSV file of statistics. This
module reads those files strictly and merges them into one summary
with a trailing TOTAL row.
"""

import csv
import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union
import logging

from ..domain.stats import StatsRow, HEADER, COUNTER_FIELDS, TOTAL_ID
from ..exit_codes import MalformedStatsRow
from ..infra.file_store import write_atomic

logger = logging.getLogger(__name__)


def parse_stats(text: str, source: str = "<string>") -> List[StatsRow]:
    """
    Parse CSV statistics text.

    A header line equal to HEADER is allowed first. Every other line must
    be a complete row.

    Raises:
        MalformedStatsRow: on any row of the wrong shape
    """
    rows = []
    for line_no, cells in enumerate(csv.reader(io.StringIO(text)), start=1):
        if not cells:
            continue
        if line_no == 1 and tuple(c.strip() for c in cells) == HEADER:
            continue
        try:
            rows.append(StatsRow.from_csv(cells))
        except ValueError as e:
            raise MalformedStatsRow(source, f"line {line_no}: {e}") from e
    if not rows:
        raise MalformedStatsRow(source, "no statistics rows")
    return rows


def read_stats_file(path: Union[str, Path]) -> List[StatsRow]:
    """
    Read one statistics file.

    Raises:
        MalformedStatsRow: if the file is unreadable, not UTF-8, or malformed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise MalformedStatsRow(str(path), f"not valid UTF-8 ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise MalformedStatsRow(str(path), f"cannot read file ({e})") from e
    return parse_stats(text, source=str(path))


def read_stats_dir(directory: Union[str, Path]) -> List[StatsRow]:
    """Read every *.csv file in directory, in file-name order."""
    rows = []
    for path in sorted(Path(directory).glob('*.csv')):
        logger.debug(f"Reading statistics from {path}")
        rows.extend(read_stats_file(path))
    return rows


def combine(rows: Iterable[StatsRow]) -> Tuple[Tuple[str, ...], List[StatsRow], StatsRow]:
    """
    Merge statistics rows.

    Returns:
        (header, rows sorted by package id, TOTAL row). TOTAL counters are
        the element-wise sum; its timestamp is the latest input timestamp
        (or now when there are no rows) and its module list is empty.
    """
    ordered = sorted(rows, key=lambda r: r.package_id)
    totals = [0] * len(COUNTER_FIELDS)
    for row in ordered:
        for i, value in enumerate(row.counters):
            totals[i] += value

    timestamps = [r.timestamp for r in ordered if r.timestamp]
    timestamp = max(timestamps) if timestamps else \
        datetime.now(timezone.utc).isoformat(timespec='seconds')

    total = StatsRow(TOTAL_ID, timestamp, tuple(totals))
    return HEADER, ordered, total


def format_stats(header: Sequence[str], rows: Iterable[StatsRow], total: StatsRow) -> str:
    """Render a combined summary as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(header)
    for row in rows:
        writer.writerow(row.to_csv())
    writer.writerow(total.to_csv())
    return buffer.getvalue()


def write_summary(directory: Union[str, Path], output: Union[str, Path]) -> StatsRow:
    """
    Combine every statistics file in directory and write the summary.

    Returns:
        The TOTAL row
    """
    header, rows, total = combine(read_stats_dir(directory))
    write_atomic(Path(output), format_stats(header, rows, total))
    logger.info(f"Wrote statistics for {len(rows)} package(s) to {output}")
    return total
