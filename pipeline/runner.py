"""
Pipeline Runner - последовательное выполнение фиксированного списка шагов

Управляет:
- Порядком шагов (validate → sync → find/trigger → wait → print)
- Общим дедлайном на весь pipeline
- Остановкой на первой ошибке
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from core.config import Config
from core.exceptions import PipelineTimeoutError
from .backoff import Backoff
from .retrying import RetryingStep
from .state import PipelineState
from .step import StepContext
from .steps import (
    ValidateGitStateStep,
    SyncSourceStep,
    FindRunStep,
    WaitRunStep,
    PrintRunStep,
)


logger = logging.getLogger(__name__)


def build_steps(config: Config) -> List[RetryingStep]:
    """Фиксированный список шагов pipeline"""
    default_backoff = Backoff.from_config(config)
    return [
        RetryingStep("validate git state", ValidateGitStateStep(), default_backoff),
        RetryingStep("sync pipelines sources", SyncSourceStep(), default_backoff),
        RetryingStep("find or trigger active run", FindRunStep(), default_backoff),
        RetryingStep("wait for run to finish", WaitRunStep(), Backoff.for_wait(config)),
        RetryingStep("print run results", PrintRunStep(), default_backoff),
    ]


class PipelineRunner:
    """Runs the steps strictly in order against one PipelineState"""

    def __init__(
        self,
        ctx: StepContext,
        steps: Optional[Sequence[RetryingStep]] = None,
        timeout: Optional[float] = None
    ):
        self.ctx = ctx
        self.steps = list(steps) if steps is not None else build_steps(ctx.config)
        self.timeout = timeout if timeout is not None else ctx.config.pipeline_timeout
        self.completed: List[str] = []

    async def run(self, state: PipelineState) -> PipelineState:
        """Запустить все шаги

        Raises:
            PipelineTimeoutError: overall deadline elapsed
            StepError: first failing step (later steps never start)
        """
        self.completed = []
        try:
            await asyncio.wait_for(self._run_steps(state), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            current = self.steps[len(self.completed)].label if len(self.completed) < len(self.steps) else "?"
            logger.error(f"Pipeline deadline of {self.timeout:.0f}s elapsed during '{current}'")
            raise PipelineTimeoutError(
                f"Pipeline did not finish within {self.timeout:.0f}s (step '{current}')"
            ) from e
        return state

    async def _run_steps(self, state: PipelineState):
        total = len(self.steps)
        for index, step in enumerate(self.steps, start=1):
            logger.info(f"Step {index}/{total}: {step.label}")
            try:
                await step.run(self.ctx, state)
            except Exception as e:
                logger.error(f"Step {index}/{total} '{step.label}' failed: {e}")
                raise
            self.completed.append(step.label)
        logger.info("Pipeline completed")


async def run_pipeline(ctx: StepContext, state: PipelineState, timeout: Optional[float] = None) -> PipelineState:
    """Build the default steps and run them"""
    return await PipelineRunner(ctx, timeout=timeout).run(state)
