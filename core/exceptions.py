"""
Custom exceptions for Piperika
"""

from typing import Optional


class PiperikaError(Exception):
    """Base exception for all Piperika errors"""
    pass


# Config exceptions
class ConfigError(PiperikaError):
    """Configuration error"""
    pass


class MissingConfigError(ConfigError):
    """Required configuration is missing"""
    pass


# Pipelines API exceptions
class PipelinesAPIError(PiperikaError):
    """Remote Pipelines service returned an error response"""
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PipelinesConnectionError(PipelinesAPIError):
    """Failed to reach the Pipelines service"""
    pass


# Git exceptions
class GitError(PiperikaError):
    """Base exception for git operations"""
    pass


class GitStateError(GitError):
    """Working tree is not in a buildable state"""
    pass


# Pipeline exceptions
class PipelineError(PiperikaError):
    """Base exception for pipeline errors"""
    pass


class StepError(PipelineError):
    """Error during step execution

    Carries the label of the step that failed; the original error is
    available as ``cause`` (and ``__cause__``).
    """
    def __init__(self, label: str, message: str = "", cause: Optional[BaseException] = None):
        self.label = label
        self.cause = cause
        if not message:
            message = str(cause) if cause is not None else "step failed"
        super().__init__(f"[{label}] {message}")


class RetryExhaustedError(StepError):
    """Step never reported done within its backoff limit"""
    def __init__(self, label: str, attempts: int):
        self.attempts = attempts
        super().__init__(label, f"gave up after {attempts} attempts")


class PipelineTimeoutError(PipelineError):
    """Overall pipeline deadline elapsed"""
    pass


class RunNotResolvedError(PipelineError):
    """A step needed the run id/number before it was resolved"""
    pass


class SourceSyncError(PipelineError):
    """Pipeline source failed to sync the branch"""
    def __init__(self, message: str, logs: str = ""):
        super().__init__(message)
        self.logs = logs


# Lookup exceptions
class NotFoundError(PipelineError):
    """A required remote entity was not returned"""
    pass


class PipelineNotFoundError(NotFoundError):
    """No pipeline matches the branch/name filter"""
    pass


class RunNotFoundError(NotFoundError):
    """Run lookup returned nothing"""
    pass


class TriggerTargetNotFoundError(NotFoundError):
    """The pipeline step to trigger could not be found"""
    pass
