"""
Retrying Step - выполняет tick шага до done с фиксированным backoff

init один раз, tick до max_retries попыток, on_complete один раз.
Ошибки из init/tick/on_complete не повторяются: оборачиваются в StepError
с label шага и прерывают pipeline.
"""

import logging

from core.exceptions import StepError, RetryExhaustedError
from core.logging_config import LogContext
from .backoff import Backoff
from .state import PipelineState
from .step import Step, StepContext, StepStatus


logger = logging.getLogger(__name__)


class RetryingStep:
    """Шаг pipeline с retry логикой"""

    def __init__(self, label: str, step: Step, backoff: Backoff):
        self.label = label
        self.step = step
        self.backoff = backoff
        self.attempts = 0

    def __repr__(self) -> str:
        return f"RetryingStep({self.label!r}, {self.step.kind.value}, {self.backoff})"

    def _report(self, ctx: StepContext, message: str):
        if message:
            logger.info(f"{self.label}: {message}")
            ctx.progress(self.label, message)

    async def run(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        """Выполнить шаг

        Raises:
            StepError: init/tick/on_complete failed (original error chained)
            RetryExhaustedError: tick never reported done
        """
        self.attempts = 0
        with LogContext(step=self.label):
            try:
                self._report(ctx, await self.step.init(ctx, state))
            except Exception as e:
                raise StepError(self.label, cause=e) from e

            status = await self._tick_until_done(ctx, state)

            try:
                self._report(ctx, await self.step.on_complete(ctx, state, status))
            except Exception as e:
                raise StepError(self.label, cause=e) from e

        return status

    async def _tick_until_done(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        last_message = ""
        for attempt in range(1, self.backoff.max_retries + 1):
            self.attempts = attempt
            with LogContext(attempt=attempt):
                try:
                    status = await self.step.tick(ctx, state)
                except Exception as e:
                    logger.debug(f"{self.label}: attempt {attempt} failed: {e}")
                    raise StepError(self.label, cause=e) from e

                if status.message and status.message != last_message:
                    self._report(ctx, status.message)
                    last_message = status.message

                if status.done:
                    logger.debug(f"{self.label}: done after {attempt} attempt(s)")
                    return status

            if attempt < self.backoff.max_retries:
                await ctx.sleep(self.backoff.interval)

        raise RetryExhaustedError(self.label, self.backoff.max_retries)
