"""
Unit tests for the CLI
"""

from unittest.mock import patch

from click.testing import CliRunner

from cli.main import cli, EXIT_ERROR, EXIT_OK, EXIT_RUN_FAILED
from client.models import StatusCode
from core.exceptions import MissingConfigError, RetryExhaustedError

from conftest import make_config


def _fake_run(status=StatusCode.SUCCESS, error=None):
    async def run(self, state):
        if error is not None:
            raise error
        state.run_id, state.run_number = 501, 42
        state.run_status = status
        state.report = f"Run #42 (main_build): {status.label}"
        return state
    return run


class TestBuildCommand:
    """Tests for `piperika build`"""

    def test_successful_run(self):
        with patch("cli.main.load_config", return_value=make_config()), \
             patch("cli.main.setup_logging"), \
             patch("cli.main.PipelineRunner.run", _fake_run()):
            result = CliRunner().invoke(cli, ["build", "--branch", "main"], obj={})

        assert result.exit_code == EXIT_OK
        assert "Run #42 (main_build): success" in result.output

    def test_failed_run_exit_code(self):
        with patch("cli.main.load_config", return_value=make_config()), \
             patch("cli.main.setup_logging"), \
             patch("cli.main.PipelineRunner.run", _fake_run(StatusCode.FAILURE)):
            result = CliRunner().invoke(cli, ["build"], obj={})

        assert result.exit_code == EXIT_RUN_FAILED

    def test_step_error_reported(self):
        error = RetryExhaustedError("sync pipelines sources", 30)
        with patch("cli.main.load_config", return_value=make_config()), \
             patch("cli.main.setup_logging"), \
             patch("cli.main.PipelineRunner.run", _fake_run(error=error)):
            result = CliRunner().invoke(cli, ["build", "--force"], obj={})

        assert result.exit_code == EXIT_ERROR
        assert "sync pipelines sources" in result.output

    def test_bad_config_exits(self):
        with patch("cli.main.load_config", side_effect=MissingConfigError("Missing required settings: PIPERIKA_TOKEN")):
            result = CliRunner().invoke(cli, ["build"], obj={})

        assert result.exit_code == EXIT_ERROR
        assert "PIPERIKA_TOKEN" in result.output

    def test_json_log_format_from_config(self):
        config = make_config(log_json=True, log_dir="/tmp/piperika-logs")
        with patch("cli.main.load_config", return_value=config), \
             patch("cli.main.setup_logging") as setup, \
             patch("cli.main.PipelineRunner.run", _fake_run()):
            result = CliRunner().invoke(cli, ["build"], obj={})

        assert result.exit_code == EXIT_OK
        setup.assert_called_once_with(level="WARNING", log_dir="/tmp/piperika-logs", json_format=True)
