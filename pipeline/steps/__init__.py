"""Pipeline steps"""

from .validate_git import ValidateGitStateStep
from .sync_source import SyncSourceStep
from .find_run import FindRunStep
from .wait_run import WaitRunStep
from .print_run import PrintRunStep, format_report, run_url

__all__ = [
    "ValidateGitStateStep",
    "SyncSourceStep",
    "FindRunStep",
    "WaitRunStep",
    "PrintRunStep",
    "format_report",
    "run_url",
]
