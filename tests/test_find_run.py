"""
Unit tests for the find-or-trigger run step
"""

import asyncio
import time

import pytest

from client.models import Pipeline, PipelineSource, PipelineStep, StatusCode
from core.exceptions import (
    StepError,
    PipelineNotFoundError,
    PipelineTimeoutError,
    RunNotFoundError,
    TriggerTargetNotFoundError,
)
from pipeline.backoff import Backoff
from pipeline.retrying import RetryingStep
from pipeline.runner import PipelineRunner
from pipeline.state import PipelineState, UNRESOLVED
from pipeline.steps.find_run import FindRunStep, MSG_FOUND, MSG_TRIGGER

from conftest import HEAD_SHA, make_config, make_run, git_resource


def run_step(ctx, state):
    wrapper = RetryingStep("find or trigger active run", FindRunStep(), Backoff(interval=1.0, max_retries=5))
    return asyncio.run(wrapper.run(ctx, state))


class TestFindRunTick:
    """Decision logic of tick (no trigger side effects)"""

    def test_no_processing_runs_triggers(self, ctx, client, state):
        """Zero processing runs -> trigger, run id untouched"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = []

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.done is True
        assert state.pipeline_id == 7
        assert state.should_trigger_run is True
        assert state.run_id == UNRESOLVED
        client.get_run_resource_versions.assert_not_called()

    def test_processing_runs_query(self, ctx, client, state):
        """Should ask for the 10 newest processing runs by run number"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]

        asyncio.run(FindRunStep().tick(ctx, state))

        options = client.get_runs.call_args.args[0]
        assert options.pipeline_ids == 7
        assert options.status_codes == int(StatusCode.PROCESSING)
        assert options.sort_by == "runNumber"
        assert options.sort_order == -1
        assert options.limit == 10

    def test_pipeline_query_uses_branch_and_names(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7), Pipeline(pipeline_id=8)]

        asyncio.run(FindRunStep().tick(ctx, state))

        options = client.get_pipelines.call_args.args[0]
        assert options.filter_by == "feature/x"
        assert options.sort_by == "latestRunId"
        assert options.names == ["main_build"]
        assert state.pipeline_id == 7

    def test_no_resources_triggers(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(100, 10)]
        client.get_run_resource_versions.return_value = []

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.done is True
        assert state.should_trigger_run is True
        assert state.run_id == UNRESOLVED

    def test_single_match_among_many(self, ctx, client, state):
        """Only the run on HEAD is picked, other processing runs ignored"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(103, 13), make_run(102, 12), make_run(101, 11)]
        client.get_run_resource_versions.return_value = [
            git_resource(103, "fff"),
            git_resource(102, HEAD_SHA),
            git_resource(101, "eee"),
        ]

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.message == MSG_FOUND
        assert state.run_id == 102
        assert state.should_trigger_run is False

    def test_resource_query_filters(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(101, 11), make_run(100, 10)]

        asyncio.run(FindRunStep().tick(ctx, state))

        options = client.get_run_resource_versions.call_args.args[0]
        assert options.pipeline_source_ids == 3
        assert options.run_ids == [101, 100]
        assert options.sort_by == "resourceTypeCode"
        assert options.sort_order == 1

    def test_multiple_matches_prefers_highest_run_number(self, ctx, client, state):
        """Same commit on several active runs -> newest run wins"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(105, 15), make_run(104, 14), make_run(103, 13)]
        client.get_run_resource_versions.return_value = [
            git_resource(103, HEAD_SHA),
            git_resource(105, HEAD_SHA),
        ]

        asyncio.run(FindRunStep().tick(ctx, state))

        assert state.run_id == 105

    def test_non_git_resource_is_ignored(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(100, 10)]
        resource = git_resource(100, HEAD_SHA)
        resource.resource_type_code = 2005
        client.get_run_resource_versions.return_value = [resource]

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.message == MSG_TRIGGER
        assert state.should_trigger_run is True
        assert state.run_id == UNRESOLVED

    def test_no_commit_match_triggers(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.return_value = [make_run(100, 10)]
        client.get_run_resource_versions.return_value = [git_resource(100, "other")]

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.done is True
        assert status.message == MSG_TRIGGER
        assert state.should_trigger_run is True

    def test_force_skips_active_run_lookup(self, ctx, client, state):
        state.force = True
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]

        status = asyncio.run(FindRunStep().tick(ctx, state))

        assert status.done is True
        assert state.should_trigger_run is True
        client.get_runs.assert_not_called()
        client.get_run_resource_versions.assert_not_called()


class TestFindRunScenarios:
    """End-to-end through the retrying wrapper"""

    def test_trigger_new_run(self, ctx, client, sleep, state):
        """Empty processing list -> trigger, then newest run is recorded"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.side_effect = [[], [make_run(501, 42)]]
        client.get_pipeline_steps.return_value = [PipelineStep(step_id=9, name="trigger_all")]

        run_step(ctx, state)

        assert state.run_id == 501
        assert state.run_number == 42
        client.trigger_pipeline_step.assert_awaited_once_with(9)
        sleep.assert_awaited_once_with(3.0)

        steps_options = client.get_pipeline_steps.call_args.args[0]
        assert steps_options.pipeline_ids == 7
        assert steps_options.pipeline_source_ids == 3
        assert steps_options.names == "trigger_all"

        latest_options = client.get_runs.call_args.args[0]
        assert latest_options.sort_by == "createdAt"
        assert latest_options.sort_order == -1
        assert latest_options.limit == 1

    def test_reuse_active_run(self, ctx, client, state):
        """Matching processing run is reused, nothing is triggered"""
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.side_effect = [
            [make_run(100, 10), make_run(101, 11)],
            [make_run(101, 11)],
        ]
        client.get_run_resource_versions.return_value = [git_resource(101, "abc")]

        run_step(ctx, state)

        assert state.run_id == 101
        assert state.run_number == 11
        assert state.should_trigger_run is False
        client.trigger_pipeline_step.assert_not_called()
        client.get_pipeline_steps.assert_not_called()

    def test_missing_pipeline_fails_before_run_query(self, ctx, client, state):
        client.get_pipelines.return_value = []

        with pytest.raises(StepError) as exc_info:
            run_step(ctx, state)

        assert isinstance(exc_info.value.cause, PipelineNotFoundError)
        assert exc_info.value.label == "find or trigger active run"
        client.get_runs.assert_not_called()

    def test_trigger_target_missing(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_pipeline_steps.return_value = []

        with pytest.raises(StepError) as exc_info:
            run_step(ctx, state)

        assert isinstance(exc_info.value.cause, TriggerTargetNotFoundError)
        client.trigger_pipeline_step.assert_not_called()

    def test_triggered_run_never_appears(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.side_effect = [[], []]
        client.get_pipeline_steps.return_value = [PipelineStep(step_id=9)]

        with pytest.raises(StepError) as exc_info:
            run_step(ctx, state)

        assert isinstance(exc_info.value.cause, RunNotFoundError)

    def test_reused_run_lookup_fails(self, ctx, client, state):
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_runs.side_effect = [[make_run(101, 11)], []]
        client.get_run_resource_versions.return_value = [git_resource(101, HEAD_SHA)]

        with pytest.raises(StepError) as exc_info:
            run_step(ctx, state)

        assert isinstance(exc_info.value.cause, RunNotFoundError)

    def test_second_invocation_reuses_triggered_run(self, ctx, client, state):
        """Running discovery twice for one commit triggers only once"""
        runs = []

        async def get_runs(options):
            if options.run_ids is not None:
                return [r for r in runs if r.run_id == options.run_ids]
            if options.status_codes is not None:
                return sorted(runs, key=lambda r: r.run_number, reverse=True)
            return runs[-1:]

        async def trigger(step_id):
            runs.append(make_run(600 + len(runs), 50 + len(runs)))

        async def resources(options):
            return [git_resource(r.run_id, HEAD_SHA) for r in runs if r.run_id in options.run_ids]

        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_pipeline_steps.return_value = [PipelineStep(step_id=9)]
        client.get_runs.side_effect = get_runs
        client.trigger_pipeline_step.side_effect = trigger
        client.get_run_resource_versions.side_effect = resources

        run_step(ctx, state)
        first = (state.run_id, state.run_number)
        run_step(ctx, state)

        assert (state.run_id, state.run_number) == first == (600, 50)
        assert client.trigger_pipeline_step.await_count == 1

    def test_init_resets_previous_resolution(self, ctx, state):
        state.run_id = 5
        state.run_number = 6
        state.should_trigger_run = True

        asyncio.run(FindRunStep().init(ctx, state))

        assert state.run_id == UNRESOLVED
        assert state.run_number == UNRESOLVED
        assert state.should_trigger_run is False


class TestFindRunInPipeline:
    """Find step driven by PipelineRunner"""

    def test_deadline_cancels_grace_period(self, ctx, client, state):
        """Overall deadline interrupts the wait after trigger"""
        ctx.sleep = asyncio.sleep
        ctx.config = make_config(trigger_grace_period=30.0)
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_pipeline_steps.return_value = [PipelineStep(step_id=9)]
        steps = [RetryingStep("find or trigger active run", FindRunStep(), Backoff(interval=0.0, max_retries=1))]
        runner = PipelineRunner(ctx, steps=steps, timeout=0.1)

        started = time.monotonic()
        with pytest.raises(PipelineTimeoutError) as exc_info:
            asyncio.run(runner.run(state))

        assert time.monotonic() - started < 5
        assert "find or trigger active run" in str(exc_info.value)
        client.trigger_pipeline_step.assert_awaited_once_with(9)
        assert state.run_id == UNRESOLVED

    def test_default_steps_trigger_and_wait(self, ctx, client, git):
        """Fresh commit: sync, trigger, wait for success, report"""
        client.get_pipeline_sources.return_value = [
            PipelineSource(source_id=3, branch="feature/x", last_sync_status=StatusCode.SUCCESS),
        ]
        client.get_pipelines.return_value = [Pipeline(pipeline_id=7)]
        client.get_pipeline_steps.return_value = [PipelineStep(step_id=9)]
        client.get_runs.side_effect = [
            [],
            [make_run(501, 42)],
            [make_run(501, 42, StatusCode.SUCCESS)],
        ]
        state = PipelineState(git_branch="feature/x", pipelines_source_id=3)
        runner = PipelineRunner(ctx, timeout=60)

        asyncio.run(runner.run(state))

        assert state.head_commit_sha == HEAD_SHA
        assert state.pipeline_id == 7
        assert state.run_id == 501
        assert state.run_number == 42
        assert state.run_status == StatusCode.SUCCESS
        assert not state.run_failed
        assert state.report.startswith("Run #42 (main_build): success")
        client.sync_pipeline_source.assert_awaited_once_with(3, "feature/x")
        client.trigger_pipeline_step.assert_awaited_once_with(9)
        client.get_run_steps.assert_awaited_once_with(501)
        assert runner.completed == [
            "validate git state",
            "sync pipelines sources",
            "find or trigger active run",
            "wait for run to finish",
            "print run results",
        ]
