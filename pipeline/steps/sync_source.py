"""
Sync Source - дождаться синхронизации pipeline source с веткой
"""

import logging

from client.models import GetPipelineSourcesOptions, StatusCode
from core.exceptions import SourceSyncError
from ..state import PipelineState
from ..step import Step, StepContext, StepKind, StepStatus


logger = logging.getLogger(__name__)


class SyncSourceStep(Step):
    """Request a branch sync, then poll until it succeeds"""

    kind = StepKind.SYNC_SOURCE

    async def init(self, ctx: StepContext, state: PipelineState) -> str:
        await ctx.client.sync_pipeline_source(state.pipelines_source_id, state.git_branch)
        return f"Syncing source {state.pipelines_source_id} on branch {state.git_branch}"

    async def tick(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        sources = await ctx.client.get_pipeline_sources(GetPipelineSourcesOptions(
            pipeline_source_ids=state.pipelines_source_id,
            branch=state.git_branch,
        ))
        source = next((s for s in sources if s.branch == state.git_branch), None)
        if source is None:
            return StepStatus(message=f"Waiting for branch {state.git_branch} to appear")

        status = source.last_sync_status
        if source.is_syncing or status is None or not status.is_terminal:
            return StepStatus(message="Waiting for source sync")

        if status != StatusCode.SUCCESS:
            raise SourceSyncError(
                f"Source {source.source_id} sync on '{state.git_branch}' "
                f"ended with status '{status.label}'",
                logs=source.last_sync_logs,
            )

        return StepStatus(done=True, message="Source is synced")
