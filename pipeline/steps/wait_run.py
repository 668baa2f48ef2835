"""
Wait Run - опрашивать run до терминального статуса
"""

from client.models import GetRunsOptions
from core.exceptions import RunNotFoundError
from ..state import PipelineState
from ..step import Step, StepContext, StepKind, StepStatus


class WaitRunStep(Step):
    kind = StepKind.WAIT_RUN

    async def tick(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        state.require_run()
        runs = await ctx.client.get_runs(GetRunsOptions(run_ids=state.run_id))
        if not runs:
            raise RunNotFoundError(f"Run {state.run_id} not found")

        status = runs[0].status_code
        if status is None or not status.is_terminal:
            label = status.label if status is not None else "unknown"
            return StepStatus(message=f"Run #{state.run_number} is {label}")

        state.run_status = status
        return StepStatus(done=True, message=f"Run #{state.run_number} finished: {status.label}")
