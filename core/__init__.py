"""Piperika Core"""

from .config import Config, load_config
from .exceptions import (
    PiperikaError,
    ConfigError,
    MissingConfigError,
    PipelinesAPIError,
    PipelinesConnectionError,
    GitError,
    GitStateError,
    PipelineError,
    StepError,
    RetryExhaustedError,
    PipelineTimeoutError,
    RunNotResolvedError,
    SourceSyncError,
    NotFoundError,
    PipelineNotFoundError,
    RunNotFoundError,
    TriggerTargetNotFoundError,
)
from .logging_config import setup_logging, LogContext

__all__ = [
    "Config",
    "load_config",
    "PiperikaError",
    "ConfigError",
    "MissingConfigError",
    "PipelinesAPIError",
    "PipelinesConnectionError",
    "GitError",
    "GitStateError",
    "PipelineError",
    "StepError",
    "RetryExhaustedError",
    "PipelineTimeoutError",
    "RunNotResolvedError",
    "SourceSyncError",
    "NotFoundError",
    "PipelineNotFoundError",
    "RunNotFoundError",
    "TriggerTargetNotFoundError",
    "setup_logging",
    "LogContext",
]
