"""
CLI Interface - команды Piperika

Команды:
- piperika build - найти или запустить run для текущего commit и дождаться результата
- piperika status - показать конфигурацию и состояние git
"""

import asyncio
import logging
import signal
import sys
from typing import Optional

import click

from client.pipelines_client import PipelinesClient
from core.config import Config, load_config
from core.logging_config import setup_logging
from core.exceptions import ConfigError, PiperikaError, StepError
from pipeline.git_manager import GitManager
from pipeline.runner import PipelineRunner
from pipeline.state import PipelineState
from pipeline.step import StepContext
from cli.display import Display


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RUN_FAILED = 2


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False), help='Path to .env config file')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config: Optional[str], verbose: bool):
    """Piperika - build the current git commit on Pipelines"""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose


def _load_config(ctx) -> Config:
    try:
        return load_config(ctx.obj.get('config_path'))
    except ConfigError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(EXIT_ERROR)


async def _run_build(runner: PipelineRunner, state: PipelineState) -> PipelineState:
    """Run the pipeline, cancelling it on SIGINT/SIGTERM"""
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows / не main thread
            pass

    pipeline_task = asyncio.create_task(runner.run(state))
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    try:
        done, pending = await asyncio.wait(
            [pipeline_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if shutdown_task in done and pipeline_task not in done:
            raise KeyboardInterrupt
        return pipeline_task.result()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
        await runner.ctx.client.close()


@cli.command()
@click.option('--branch', '-b', default="", help='Branch to build (default: current branch)')
@click.option('--force', '-f', is_flag=True, help='Always trigger a new run, even if one is processing')
@click.option('--project', '-p', type=click.Path(exists=True, file_okay=False), default=".", help='Git working tree')
@click.pass_context
def build(ctx, branch: str, force: bool, project: str):
    """Build the current commit and wait for the run to finish"""
    config = _load_config(ctx)
    setup_logging(
        level="DEBUG" if ctx.obj.get('verbose') else "WARNING",
        log_dir=config.log_dir,
        json_format=config.log_json,
    )

    display = Display()
    display.header("Piperika build")

    step_ctx = StepContext(
        client=PipelinesClient(config.pipelines_url, config.token, timeout=config.http_timeout),
        git=GitManager(project),
        config=config,
        on_progress=display.step_progress,
    )
    state = PipelineState(
        git_branch=branch,
        pipelines_source_id=config.pipelines_source_id,
        force=force,
    )
    runner = PipelineRunner(step_ctx, timeout=config.pipeline_timeout)

    try:
        asyncio.run(_run_build(runner, state))
    except KeyboardInterrupt:
        display.warning("Interrupted")
        sys.exit(EXIT_ERROR)
    except StepError as e:
        display.error(str(e))
        logger.debug("Step failure", exc_info=True)
        sys.exit(EXIT_ERROR)
    except PiperikaError as e:
        display.error(str(e))
        sys.exit(EXIT_ERROR)

    display.report(state.report, failed=state.run_failed)
    sys.exit(EXIT_RUN_FAILED if state.run_failed else EXIT_OK)


@cli.command()
@click.option('--project', '-p', type=click.Path(exists=True, file_okay=False), default=".", help='Git working tree')
@click.pass_context
def status(ctx, project: str):
    """Показать конфигурацию и состояние git"""
    config = _load_config(ctx)
    display = Display()
    display.header("Piperika status")

    display.info(f"Pipelines URL: {config.pipelines_url}")
    display.info(f"Token: {config.masked_token()}")
    display.info(f"Pipeline: {config.pipeline_name}")
    display.info(f"Source id: {config.pipelines_source_id}")
    display.info(f"Trigger step: {config.trigger_step_name}")
    display.separator()

    git = GitManager(project)
    if not git.is_git_repo():
        display.warning(f"{project} is not a git repository")
        return

    branch = git.get_current_branch()
    head = git.get_head_sha() or "unknown"
    display.info(f"Branch: {branch or 'detached HEAD'}")
    display.info(f"HEAD: {head}")
    if git.has_changes():
        display.warning("Has uncommitted changes")


def main():
    """Entry point"""
    cli(obj={})


if __name__ == '__main__':
    main()
