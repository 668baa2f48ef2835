"""
Pipeline State - общее состояние, которое шаги передают друг другу
"""

from dataclasses import dataclass
from typing import Optional

from client.models import StatusCode
from core.exceptions import RunNotResolvedError


UNRESOLVED = -1


@dataclass
class PipelineState:
    """Состояние одного запуска pipeline

    Caller fills branch/source/force; the steps fill the rest in order.
    """
    git_branch: str = ""
    pipelines_source_id: int = 0
    force: bool = False

    # validate git state
    head_commit_sha: str = ""

    # find or trigger run
    pipeline_id: int = UNRESOLVED
    run_id: int = UNRESOLVED
    run_number: int = UNRESOLVED
    should_trigger_run: bool = False

    # wait / print
    run_status: Optional[StatusCode] = None
    report: str = ""

    def is_run_resolved(self) -> bool:
        return self.run_id != UNRESOLVED and self.run_number != UNRESOLVED

    def require_run(self) -> None:
        """Raise if run id/number are still unresolved"""
        if not self.is_run_resolved():
            raise RunNotResolvedError(
                f"Run is not resolved (run_id={self.run_id}, run_number={self.run_number})"
            )

    @property
    def run_failed(self) -> bool:
        return self.run_status is not None and self.run_status.is_failure
