"""
Backoff - интервал и лимит попыток для одного шага
"""

from dataclasses import dataclass

from core.config import Config


@dataclass(frozen=True)
class Backoff:
    """Fixed-interval retry policy"""
    interval: float
    max_retries: int

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.interval < 0:
            raise ValueError(f"interval must not be negative, got {self.interval}")

    @classmethod
    def from_config(cls, config: Config) -> "Backoff":
        """Default policy shared by every step"""
        return cls(interval=config.backoff_interval, max_retries=config.backoff_max_retries)

    @classmethod
    def for_wait(cls, config: Config) -> "Backoff":
        """Long polling policy for waiting on a remote run"""
        return cls(interval=config.wait_interval, max_retries=config.wait_max_retries)
