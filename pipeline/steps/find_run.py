"""
Find Run - найти активный run для текущего commit или запустить новый

- Найти pipeline для ветки
- Проверить processing runs на том же commit sha
- Если такого нет (или force) - trigger нового run
- Разрешить run id и run number
"""

import logging
from typing import List

from client.models import (
    GetPipelinesOptions,
    GetRunsOptions,
    GetRunResourcesOptions,
    GetPipelineStepsOptions,
    StatusCode,
)
from core.exceptions import (
    PipelineNotFoundError,
    RunNotFoundError,
    TriggerTargetNotFoundError,
)
from ..state import PipelineState, UNRESOLVED
from ..step import Step, StepContext, StepKind, StepStatus


logger = logging.getLogger(__name__)


ACTIVE_RUNS_LIMIT = 10

MSG_FOUND = "Found an active run id"
MSG_TRIGGER = "Triggering a new run"
MSG_FORCE = "Force flag set, triggering a new run"


class FindRunStep(Step):
    """Find-or-trigger step"""

    kind = StepKind.FIND_RUN

    async def init(self, ctx: StepContext, state: PipelineState) -> str:
        state.run_id = UNRESOLVED
        state.run_number = UNRESOLVED
        state.should_trigger_run = False
        return ""

    async def tick(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        state.run_id = UNRESOLVED
        state.should_trigger_run = False

        pipelines = await ctx.client.get_pipelines(GetPipelinesOptions(
            sort_by="latestRunId",
            filter_by=state.git_branch,
            names=ctx.config.pipeline_names,
            light=True,
        ))
        if not pipelines:
            raise PipelineNotFoundError(
                f"No pipeline named '{ctx.config.pipeline_name}' found for branch '{state.git_branch}'"
            )
        state.pipeline_id = pipelines[0].pipeline_id

        if state.force:
            state.should_trigger_run = True
            return StepStatus(done=True, message=MSG_FORCE)

        runs = await ctx.client.get_runs(GetRunsOptions(
            pipeline_ids=state.pipeline_id,
            status_codes=int(StatusCode.PROCESSING),
            sort_by="runNumber",
            sort_order=-1,
            limit=ACTIVE_RUNS_LIMIT,
            light=True,
        ))
        if not runs:
            state.should_trigger_run = True
            return StepStatus(done=True)

        # Порядок runs - по run number по убыванию, он же определяет "самый свежий"
        run_ids = [run.run_id for run in runs]
        resources = await ctx.client.get_run_resource_versions(GetRunResourcesOptions(
            pipeline_source_ids=state.pipelines_source_id,
            run_ids=run_ids,
            sort_by="resourceTypeCode",
            sort_order=1,
        ))
        if not resources:
            state.should_trigger_run = True
            return StepStatus(done=True)

        candidates = self._runs_on_commit(resources, state.head_commit_sha)
        for run_id in run_ids:
            if run_id in candidates:
                state.run_id = run_id
                break

        if state.run_id != UNRESOLVED:
            logger.info(
                f"Reusing run {state.run_id} for commit {state.head_commit_sha[:8]}",
                extra={"run_id": state.run_id, "pipeline_id": state.pipeline_id},
            )
            return StepStatus(done=True, message=MSG_FOUND)

        state.should_trigger_run = True
        return StepStatus(done=True, message=MSG_TRIGGER)

    @staticmethod
    def _runs_on_commit(resources, commit_sha: str) -> List[int]:
        """Run ids whose git resource points at commit_sha, in received order"""
        matches: List[int] = []
        for resource in resources:
            if not resource.is_git_repo:
                continue
            if resource.commit_sha == commit_sha and resource.run_id not in matches:
                matches.append(resource.run_id)
        return matches

    async def on_complete(self, ctx: StepContext, state: PipelineState, status: StepStatus) -> str:
        message = ""
        if state.should_trigger_run:
            await self._trigger(ctx, state)
            message = f"Triggered run #{state.run_number}"

        if state.run_number == UNRESOLVED:
            runs = await ctx.client.get_runs(GetRunsOptions(run_ids=state.run_id))
            if not runs:
                raise RunNotFoundError(f"Run {state.run_id} not found")
            state.run_number = runs[0].run_number
            message = f"Active run #{state.run_number}"

        return message

    async def _trigger(self, ctx: StepContext, state: PipelineState):
        step_name = ctx.config.trigger_step_name
        steps = await ctx.client.get_pipeline_steps(GetPipelineStepsOptions(
            pipeline_ids=state.pipeline_id,
            pipeline_source_ids=state.pipelines_source_id,
            names=step_name,
        ))
        if not steps:
            raise TriggerTargetNotFoundError(
                f"Tried to trigger a run for step '{step_name}' but couldn't fetch its id"
            )

        await ctx.client.trigger_pipeline_step(steps[0].step_id)

        # Pipelines создаёт run асинхронно
        await ctx.sleep(ctx.config.trigger_grace_period)

        runs = await ctx.client.get_runs(GetRunsOptions(
            pipeline_ids=state.pipeline_id,
            sort_by="createdAt",
            sort_order=-1,
            limit=1,
            light=True,
        ))
        if not runs:
            raise RunNotFoundError(f"Triggered a run on pipeline {state.pipeline_id} but it did not appear")
        state.run_id = runs[0].run_id
        state.run_number = runs[0].run_number
        logger.info(
            f"Triggered run {state.run_id} (#{state.run_number})",
            extra={"run_id": state.run_id, "run_number": state.run_number, "pipeline_id": state.pipeline_id},
        )
