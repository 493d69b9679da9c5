"""Tests for the jobs CLI."""

import json
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from scripts.jobs import main
from smsession.aws.errors import UnexpectedStatusError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_session():
    """A mocked Session handed to the CLI through the click context."""
    session = MagicMock()
    session.sagemaker_client = MagicMock()
    return session


class TestJobsCli:
    """Tests for the jobs command group."""

    def test_wait(self, runner, cli_session):
        """wait prints the final status."""
        cli_session.wait_for_processing_job.return_value = {"ProcessingJobStatus": "Completed"}

        result = runner.invoke(main, ["wait", "proc-1", "--kind", "processing", "--poll", "0"], obj=cli_session)

        assert result.exit_code == 0, result.output
        assert "proc-1: Completed" in result.output
        cli_session.wait_for_processing_job.assert_called_once_with("proc-1", poll=0.0)

    def test_wait_failure(self, runner, cli_session):
        """A failed job becomes a CLI error."""
        cli_session.wait_for_job.side_effect = UnexpectedStatusError(
            "Error for Training job job-1: Failed. Reason: OOM", ["Completed", "Stopped"], "Failed"
        )

        result = runner.invoke(main, ["wait", "job-1"], obj=cli_session)

        assert result.exit_code == 1
        assert "Reason: OOM" in result.output

    def test_logs(self, runner, cli_session):
        """logs forwards the options and echoes lines."""

        def logs_for_job(job_name, kind, wait, poll, line_callback):
            line_callback("line 1")
            line_callback("line 2")

        cli_session.logs_for_job.side_effect = logs_for_job

        result = runner.invoke(main, ["logs", "job-1", "--wait"], obj=cli_session)

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["line 1", "line 2"]

    def test_describe(self, runner, cli_session):
        """describe prints the description as JSON without metadata."""
        cli_session.sagemaker_client.describe_transform_job.return_value = {
            "TransformJobStatus": "InProgress",
            "ResponseMetadata": {"RequestId": "x"},
        }

        result = runner.invoke(main, ["describe", "xform", "-k", "transform"], obj=cli_session)

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"TransformJobStatus": "InProgress"}

    def test_stop(self, runner, cli_session):
        """stop calls the kind's stop method."""
        result = runner.invoke(main, ["stop", "tune-1", "--kind", "tuning"], obj=cli_session)

        assert result.exit_code == 0, result.output
        cli_session.stop_tuning_job.assert_called_once_with("tune-1")

    def test_stop_unsupported_kind(self, runner, cli_session):
        """Kinds without a stop method are rejected."""
        result = runner.invoke(main, ["stop", "aml", "--kind", "auto_ml"], obj=cli_session)

        assert result.exit_code == 1
        assert "not supported" in result.output

    def test_invalid_config_file(self, runner, cli_session, tmp_path):
        """Config errors are reported as CLI errors."""
        path = tmp_path / "session.yaml"
        path.write_text("bogus: 1\n")

        result = runner.invoke(main, ["--config", str(path), "wait", "job-1"], obj=cli_session)

        assert result.exit_code == 1
        assert "Unknown session config keys" in result.output
