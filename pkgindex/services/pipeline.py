"""
Release pipeline for pkgindex.

Runs checkout -> install -> test -> uninstall for one package version
as an explicit state machine:

    PENDING -> CHECKED_OUT -> INSTALLED -> TESTED -> SUCCEEDED
        \\            \\            \\
         +------------+------------+--> FAILED

Each run gets a fresh temporary working directory holding the source
checkout and a private bin directory; the directory is removed when the
run ends, whatever state it reached.
"""

import tempfile
from pathlib import Path
from typing import List, Optional, Iterable, Callable
import logging

from ..config import Settings
from ..domain import PackageRecord, ReleaseOutcome, PipelineState, PipelineStep, StatsRow
from ..exit_codes import MalformedStatsRow
from ..infra.package_manager import PackageManagerClient
from .stats import read_stats_file

logger = logging.getLogger(__name__)

# Step that moves the pipeline out of each state
_TRANSITIONS = (
    (PipelineState.PENDING, PipelineStep.CHECKOUT, PipelineState.CHECKED_OUT),
    (PipelineState.CHECKED_OUT, PipelineStep.INSTALL, PipelineState.INSTALLED),
    (PipelineState.INSTALLED, PipelineStep.TEST, PipelineState.TESTED),
)


class _Run:
    """Mutable state of one pipeline run; discarded when the run ends."""

    def __init__(self, record: PackageRecord, workdir: Path):
        self.record = record
        self.workdir = workdir
        self.source = workdir / "src"
        self.bin_dir = workdir / "bin"
        self.state = PipelineState.PENDING
        self.history: List[PipelineState] = [PipelineState.PENDING]

    def advance(self, state: PipelineState) -> None:
        logger.debug(f"{self.record.identity}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


class ReleasePipeline:
    """
    Checkout, install, test and clean up one package version.

    Example:
        pipeline = ReleasePipeline.from_settings(settings)
        outcome = pipeline.run(record)
        if not outcome.succeeded:
            print(f"{outcome.package_id} failed at {outcome.failed_step.value}")
    """

    def __init__(
        self,
        client: PackageManagerClient,
        stats_dir: Optional[Path] = None,
        temp_root: Optional[Path] = None,
    ):
        """
        Initialize ReleasePipeline.

        Args:
            client: Package manager used for every step
            stats_dir: Directory for per-package statistics files
            temp_root: Parent for temporary working directories (system default if None)
        """
        self.client = client
        self.stats_dir = Path(stats_dir) if stats_dir else None
        self.temp_root = temp_root

    @classmethod
    def from_settings(cls, settings: Settings) -> 'ReleasePipeline':
        client = PackageManagerClient(
            command=settings.package_manager,
            overrides=settings.overrides,
            timeout=settings.timeout,
        )
        return cls(client, stats_dir=settings.stats_dir)

    def stats_file_for(self, record: PackageRecord) -> Optional[Path]:
        if self.stats_dir is None:
            return None
        return self.stats_dir / f"{record.identity}.csv"

    def _step(self, run: _Run, step: PipelineStep) -> int:
        if step is PipelineStep.CHECKOUT:
            return self.client.checkout(run.record.name, str(run.record.version), run.source)
        if step is PipelineStep.INSTALL:
            run.bin_dir.mkdir(exist_ok=True)
            return self.client.install(run.source, run.bin_dir)
        if step is PipelineStep.TEST:
            stats_file = self.stats_file_for(run.record)
            if stats_file is not None:
                stats_file.parent.mkdir(parents=True, exist_ok=True)
            return self.client.test(run.source, stats_file)
        return self.client.uninstall(run.source, run.record.name)

    def _collect_statistics(self, record: PackageRecord) -> Optional[StatsRow]:
        stats_file = self.stats_file_for(record)
        if stats_file is None or not stats_file.exists():
            return None
        try:
            rows = read_stats_file(stats_file)
        except MalformedStatsRow as e:
            logger.warning(str(e))
            return None
        return rows[0] if rows else None

    def run(self, record: PackageRecord) -> ReleaseOutcome:
        """
        Run the pipeline for record.

        Returns:
            ReleaseOutcome whose exit_code is 0 iff checkout, install and
            test all succeeded
        """
        logger.info(f"Testing {record.identity}")
        with tempfile.TemporaryDirectory(prefix=f"pkgindex-{record.identity}-",
                                         dir=self.temp_root) as tmp:
            run = _Run(record, Path(tmp))
            return self._execute(run)

    def _execute(self, run: _Run) -> ReleaseOutcome:
        record = run.record
        for _, step, target in _TRANSITIONS:
            code = self._step(run, step)
            if code != 0:
                run.advance(PipelineState.FAILED)
                logger.error(f"{record.identity}: {step.value} failed (exit {code})")
                statistics = self._collect_statistics(record) if step is PipelineStep.TEST else None
                return ReleaseOutcome(
                    package_id=record.identity,
                    exit_code=code,
                    state=run.state,
                    failed_step=step,
                    statistics=statistics,
                    history=tuple(run.history),
                )
            run.advance(target)

        code = self._step(run, PipelineStep.UNINSTALL)
        if code != 0:
            logger.warning(f"{record.identity}: uninstall failed (exit {code}); test result stands")
        run.advance(PipelineState.SUCCEEDED)
        logger.info(f"{record.identity}: passed")

        return ReleaseOutcome(
            package_id=record.identity,
            exit_code=0,
            state=run.state,
            statistics=self._collect_statistics(record),
            history=tuple(run.history),
        )

    def run_all(
        self,
        records: Iterable[PackageRecord],
        on_outcome: Optional[Callable[[ReleaseOutcome], None]] = None,
    ) -> List[ReleaseOutcome]:
        """
        Run the pipeline for each record in turn.

        A failing package is recorded and the sweep continues. Outcomes
        come back in the order of records.
        """
        outcomes = []
        for record in records:
            outcome = self.run(record)
            outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)
        return outcomes
