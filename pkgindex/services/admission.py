"""
Admission workflow for pkgindex.

Admitting a package version durably adds it to the persisted index, but
only if a full release pipeline run passes. The steps are:

1. Load the record from the package directory
2. Optionally tag the package's git state with the version
3. Append the record to the index (under the single-writer lock)
4. Run the release pipeline
5. On failure, compensate: drop the index entry, drop the install
   cache for the identity, rebuild the served snapshot, then raise

The index never keeps an entry whose pipeline run failed. When
compensation itself fails, CompensationFailed names each part that did
not complete.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import logging

from ..config import Settings
from ..domain import PackageRecord, ReleaseOutcome
from ..exit_codes import CommandError, CompensationFailed, PackageNotFound, PipelineStepFailed
from ..infra import spec_loader
from ..infra.file_store import write_atomic
from ..infra.git_client import GitClient
from ..infra.index_store import IndexStore, remove_cache_dir
from ..version_manager import VersionBumper, set_spec_version
from .index_service import RepositoryIndex
from .pipeline import ReleasePipeline

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    """A successfully admitted package version."""
    record: PackageRecord
    outcome: ReleaseOutcome
    index_path: Path
    follow_up: List[str] = field(default_factory=list)


class AdmissionWorkflow:
    """
    Add new package versions to the index.

    Example:
        workflow = AdmissionWorkflow(settings)
        result = workflow.admit("~/src/parser-kit", tag=True)
        for line in result.follow_up:
            print(line)
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[IndexStore] = None,
        pipeline: Optional[ReleasePipeline] = None,
        git_client: Optional[GitClient] = None,
    ):
        """
        Initialize AdmissionWorkflow.

        Args:
            settings: Process settings
            store: Index store (built from settings if None)
            pipeline: Release pipeline (built from settings if None)
            git_client: Git client for tagging (creates default if None)
        """
        self.settings = settings
        self.store = store or IndexStore(settings.index_dir, settings.snapshot_path)
        self.pipeline = pipeline or ReleasePipeline.from_settings(settings)
        self.git = git_client or GitClient()

    def admit(self, spec_dir: Union[str, Path], tag: bool = False) -> AdmissionResult:
        """
        Admit the package version described in spec_dir.

        Raises:
            SpecInvalid: if package.yaml is absent or malformed
            TagError: if tagging was requested and failed
            DuplicateVersion: if the identity is already indexed
            PipelineStepFailed: if the pipeline failed and rollback completed
            CompensationFailed: if the pipeline failed and rollback did not complete

        If the pipeline run itself raises, the entry is rolled back and the
        exception propagates (as the cause of CompensationFailed when the
        rollback did not complete).
        """
        spec_dir = Path(spec_dir).expanduser()
        record = spec_loader.load(spec_dir)
        logger.info(f"Admitting {record.identity}")

        if tag:
            self.git.tag(str(spec_dir), str(record.version))

        index_path = self.store.append(record)

        try:
            outcome = self.pipeline.run(record)
        except BaseException as e:
            logger.error(f"{record.identity}: pipeline aborted ({e!r}); rolling back admission")
            failed_parts = self._rollback(record.identity)
            if failed_parts:
                cause = e if isinstance(e, Exception) else None
                raise CompensationFailed(record.identity, failed_parts, cause=cause) from e
            raise
        if not outcome.succeeded:
            self.compensate(record, outcome)

        return AdmissionResult(
            record=record,
            outcome=outcome,
            index_path=index_path,
            follow_up=self.follow_up_commands(record, index_path),
        )

    def update(self, spec_dir: Union[str, Path], part: str = 'patch', tag: bool = False) -> AdmissionResult:
        """
        Admit the next version of an already indexed package.

        The package.yaml version is rewritten to the highest indexed version
        bumped by part, then the package is admitted as usual.

        Raises:
            PackageNotFound: if the package has never been admitted
            plus everything admit() raises
        """
        spec_dir = Path(spec_dir).expanduser()
        record = spec_loader.load(spec_dir)
        index = RepositoryIndex.load(self.store)
        if record.name not in index:
            raise PackageNotFound(record.name)

        current = index.latest(record.name).version
        new_version = VersionBumper.bump(current, part)
        spec_file = spec_loader.find_spec_file(spec_dir)
        original = spec_file.read_text(encoding='utf-8')
        set_spec_version(spec_file, new_version)
        logger.info(f"{record.name}: {current} -> {new_version}")
        try:
            return self.admit(spec_dir, tag=tag)
        except BaseException:
            write_atomic(spec_file, original)
            logger.info(f"Restored {spec_file} to version {record.version}")
            raise

    def compensate(self, record: PackageRecord, outcome: ReleaseOutcome) -> None:
        """
        Undo a failed admission, then raise.

        Raises:
            PipelineStepFailed: rollback completed
            CompensationFailed: some part of the rollback did not complete
        """
        identity = record.identity
        logger.error(f"{identity} failed; rolling back admission")
        failed_parts = self._rollback(identity)

        step = outcome.failed_step.value if outcome.failed_step else "pipeline"
        cause = PipelineStepFailed(identity, step, outcome.exit_code)
        if failed_parts:
            raise CompensationFailed(identity, failed_parts, cause=cause) from cause
        raise cause

    def _rollback(self, identity: str) -> List[str]:
        """
        Remove every trace of identity from the index.

        Every part runs even if an earlier one failed.

        Returns:
            Descriptions of the parts that did not complete
        """
        failed_parts = []

        try:
            self.store.remove_by_identity(identity)
        except OSError as e:
            logger.error(f"Could not remove index entry for {identity}: {e}")
            failed_parts.append(f"index entry ({e})")

        try:
            remove_cache_dir(self.settings.install_cache_dir, identity)
        except OSError as e:
            logger.error(f"Could not remove install cache for {identity}: {e}")
            failed_parts.append(f"install cache ({e})")

        if self.settings.rebuild_on_rollback:
            try:
                self.store.rebuild()
            except (OSError, CommandError) as e:
                logger.error(f"Could not rebuild index snapshot: {e}")
                failed_parts.append(f"snapshot rebuild ({e})")

        if self.store.contains(identity) and not any(p.startswith("index entry") for p in failed_parts):
            failed_parts.append("index entry (still present)")

        if not failed_parts:
            logger.info(f"Rolled back {identity}")
        return failed_parts

    def follow_up_commands(self, record: PackageRecord, index_path: Path) -> List[str]:
        """Commands an operator runs to publish the new index entry."""
        root = self.store.root
        try:
            relative = index_path.relative_to(root)
        except ValueError:
            relative = index_path
        return [
            f"cd {root}",
            f"git add {relative}",
            f'git commit -m "Add {record.identity}"',
            "git push",
        ]
