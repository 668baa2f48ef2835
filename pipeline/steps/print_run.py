"""
Print Run - итоговый отчёт по run
"""

from typing import List
from urllib.parse import quote

from client.models import RunStep
from ..state import PipelineState
from ..step import Step, StepContext, StepKind, StepStatus


def run_url(ui_url: str, pipeline_name: str, run_number: int) -> str:
    """Ссылка на run в UI"""
    return f"{ui_url.rstrip('/')}/ui/pipelines/myPipelines/default/{quote(pipeline_name)}/{run_number}"


def format_report(state: PipelineState, pipeline_name: str, ui_url: str, steps: List[RunStep]) -> str:
    status = state.run_status.label if state.run_status is not None else "unknown"
    lines = [f"Run #{state.run_number} ({pipeline_name}): {status}"]

    failed = [s.name for s in steps if s.status_code is not None and s.status_code.is_failure]
    if failed:
        lines.append("Failed steps: " + ", ".join(failed))

    lines.append(run_url(ui_url, pipeline_name, state.run_number))
    return "\n".join(lines)


class PrintRunStep(Step):
    kind = StepKind.PRINT_RUN

    async def tick(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        state.require_run()
        steps = await ctx.client.get_run_steps(state.run_id)
        # Первое имя - основной pipeline
        pipeline_name = ctx.config.pipeline_names[0]
        state.report = format_report(state, pipeline_name, ctx.config.ui_url, steps)
        return StepStatus(done=True)
