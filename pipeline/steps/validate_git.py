"""
Validate Git State - ветка и HEAD commit рабочей копии
"""

import logging

from core.exceptions import GitStateError
from ..state import PipelineState
from ..step import Step, StepContext, StepKind, StepStatus


logger = logging.getLogger(__name__)


class ValidateGitStateStep(Step):
    """Resolve branch/HEAD and make sure HEAD is pushed"""

    kind = StepKind.VALIDATE_GIT

    async def init(self, ctx: StepContext, state: PipelineState) -> str:
        git = ctx.git
        if not git.is_git_repo():
            raise GitStateError(f"{git.project_path} is not a git repository")

        if not state.git_branch:
            branch = git.get_current_branch()
            if branch is None:
                raise GitStateError("HEAD is detached, pass the branch explicitly")
            state.git_branch = branch

        sha = git.get_head_sha()
        if sha is None:
            raise GitStateError("Could not resolve HEAD commit")
        state.head_commit_sha = sha
        return f"Branch {state.git_branch} at {sha[:8]}"

    async def tick(self, ctx: StepContext, state: PipelineState) -> StepStatus:
        git = ctx.git
        fetched = git.fetch(state.git_branch)
        stale = "" if fetched else f" (git fetch from {git.remote} failed, remote ref may be stale)"

        remote_sha = git.get_remote_sha(state.git_branch)
        if remote_sha is None:
            raise GitStateError(
                f"Branch '{state.git_branch}' is not pushed to {git.remote}{stale}"
            )
        if remote_sha != state.head_commit_sha:
            raise GitStateError(
                f"Local commit {state.head_commit_sha[:8]} is not pushed "
                f"({git.remote}/{state.git_branch} is at {remote_sha[:8]}){stale}"
            )

        if git.has_changes():
            return StepStatus(done=True, message="Uncommitted changes will not be part of the build")
        return StepStatus(done=True)
