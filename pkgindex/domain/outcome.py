"""
Release outcome domain objects for pkgindex.

A ReleaseOutcome is produced once per pipeline run and never changes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, Tuple

from .stats import StatsRow


class PipelineState(Enum):
    """States of one release pipeline run."""
    PENDING = "pending"
    CHECKED_OUT = "checked_out"
    INSTALLED = "installed"
    TESTED = "tested"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineStep(Enum):
    """External commands run by the pipeline, in order."""
    CHECKOUT = "checkout"
    INSTALL = "install"
    TEST = "test"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class ReleaseOutcome:
    """Result of running the release pipeline against one package version."""
    package_id: str
    exit_code: int
    state: PipelineState = PipelineState.SUCCEEDED
    failed_step: Optional[PipelineStep] = None
    statistics: Optional[StatsRow] = None
    history: Tuple[PipelineState, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def raise_for_status(self) -> None:
        """Raise PipelineStepFailed if the run did not succeed."""
        if self.succeeded:
            return
        from ..exit_codes import PipelineStepFailed
        step = self.failed_step.value if self.failed_step else "pipeline"
        raise PipelineStepFailed(self.package_id, step, self.exit_code)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'package': self.package_id,
            'exit_code': self.exit_code,
            'state': self.state.value,
        }
        if self.failed_step:
            data['failed_step'] = self.failed_step.value
        if self.statistics:
            data['statistics'] = self.statistics.to_dict()
        return data
