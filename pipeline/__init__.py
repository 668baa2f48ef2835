"""Pipeline module"""

from .backoff import Backoff
from .step import Step, StepContext, StepKind, StepStatus
from .state import PipelineState, UNRESOLVED
from .retrying import RetryingStep
from .runner import PipelineRunner, build_steps, run_pipeline
from .git_manager import GitManager

__all__ = [
    "Backoff",
    "Step",
    "StepContext",
    "StepKind",
    "StepStatus",
    "PipelineState",
    "UNRESOLVED",
    "RetryingStep",
    "PipelineRunner",
    "build_steps",
    "run_pipeline",
    "GitManager",
]
