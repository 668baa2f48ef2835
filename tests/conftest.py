"""
Shared fixtures: config, mocked Pipelines client / git, step context
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from client.models import Run, RunResourceVersion, ResourceTypeCode, StatusCode
from client.pipelines_client import PipelinesClient
from core.config import Config
from pipeline.git_manager import GitManager
from pipeline.state import PipelineState
from pipeline.step import StepContext


HEAD_SHA = "abc"


def make_config(**overrides) -> Config:
    values = dict(
        pipelines_url="https://pipelines.example.com",
        token="secret-token",
        pipelines_source_id=3,
        pipeline_name="main_build",
        backoff_interval=1.0,
        backoff_max_retries=5,
        trigger_grace_period=3.0,
    )
    values.update(overrides)
    return Config(_env_file=None, **values)


def make_run(run_id: int, run_number: int, status=StatusCode.PROCESSING) -> Run:
    return Run(run_id=run_id, run_number=run_number, pipeline_id=7, status_code=status)


def git_resource(run_id: int, commit_sha: str) -> RunResourceVersion:
    return RunResourceVersion(
        run_id=run_id,
        resource_type_code=int(ResourceTypeCode.GIT_REPO),
        commit_sha=commit_sha,
    )


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def client():
    mock = MagicMock(spec=PipelinesClient)
    mock.get_pipelines = AsyncMock(return_value=[])
    mock.get_runs = AsyncMock(return_value=[])
    mock.get_run_resource_versions = AsyncMock(return_value=[])
    mock.get_pipeline_steps = AsyncMock(return_value=[])
    mock.trigger_pipeline_step = AsyncMock(return_value=None)
    mock.get_pipeline_sources = AsyncMock(return_value=[])
    mock.sync_pipeline_source = AsyncMock(return_value=None)
    mock.get_run_steps = AsyncMock(return_value=[])
    mock.close = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def git():
    mock = MagicMock(spec=GitManager)
    mock.project_path = "/tmp/project"
    mock.remote = "origin"
    mock.is_git_repo.return_value = True
    mock.get_current_branch.return_value = "feature/x"
    mock.get_head_sha.return_value = HEAD_SHA
    mock.get_remote_sha.return_value = HEAD_SHA
    mock.has_changes.return_value = False
    mock.fetch.return_value = True
    return mock


@pytest.fixture
def sleep():
    return AsyncMock(return_value=None)


@pytest.fixture
def progress():
    return MagicMock()


@pytest.fixture
def ctx(client, git, config, sleep, progress):
    return StepContext(client=client, git=git, config=config, on_progress=progress, sleep=sleep)


@pytest.fixture
def state():
    return PipelineState(
        git_branch="feature/x",
        pipelines_source_id=3,
        head_commit_sha=HEAD_SHA,
    )
