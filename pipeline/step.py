"""
Step Definition - контракт шага pipeline (init / tick / on_complete)
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, TYPE_CHECKING

from client.pipelines_client import PipelinesClient
from core.config import Config
from .git_manager import GitManager

if TYPE_CHECKING:
    from .state import PipelineState


class StepKind(str, Enum):
    """Фиксированный набор шагов"""
    VALIDATE_GIT = "validate_git"
    SYNC_SOURCE = "sync_source"
    FIND_RUN = "find_run"
    WAIT_RUN = "wait_run"
    PRINT_RUN = "print_run"


@dataclass
class StepStatus:
    """Результат одного tick"""
    done: bool = False
    message: str = ""


@dataclass
class StepContext:
    """Collaborators shared by all steps of one invocation"""
    client: PipelinesClient
    git: GitManager
    config: Config
    on_progress: Optional[Callable[[str, str], None]] = None
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def progress(self, label: str, message: str):
        if message and self.on_progress:
            self.on_progress(label, message)


class Step(ABC):
    """Base class for pipeline steps

    ``tick`` is retried by the wrapper until it returns ``done``; ``init``
    and ``on_complete`` run exactly once around it.
    """

    kind: StepKind

    async def init(self, ctx: StepContext, state: "PipelineState") -> str:
        return ""

    @abstractmethod
    async def tick(self, ctx: StepContext, state: "PipelineState") -> StepStatus:
        ...

    async def on_complete(self, ctx: StepContext, state: "PipelineState", status: StepStatus) -> str:
        return ""
