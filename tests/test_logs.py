"""Tests for CloudWatch log tailing."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from smsession.aws.errors import UnexpectedStatusError
from smsession.aws.job_kinds import JobKind
from smsession.aws.logs import LogTailer, Position, log_stream

JOB = "job-1"


class FakeLogs:
    """In-memory stand-in for the CloudWatch Logs client."""

    def __init__(self):
        self.streams: dict[str, list[dict]] = {}
        self.describe_log_streams = MagicMock(side_effect=self._describe_log_streams)
        self.get_log_events = MagicMock(side_effect=self._get_log_events)

    def add(self, stream: str, *events: tuple[int, str]) -> None:
        self.streams.setdefault(stream, []).extend(
            {"timestamp": ts, "message": message} for ts, message in events
        )

    def _describe_log_streams(self, logGroupName, logStreamNamePrefix, orderBy, limit, nextToken=None):
        names = sorted(n for n in self.streams if n.startswith(logStreamNamePrefix))
        return {"logStreams": [{"logStreamName": n} for n in names]}

    def _get_log_events(self, logGroupName, logStreamName, startTime, startFromHead, nextToken=None):
        if nextToken == "end":
            return {"events": [], "nextForwardToken": "end"}
        events = [e for e in self.streams.get(logStreamName, []) if e["timestamp"] >= startTime]
        return {"events": events, "nextForwardToken": "end"}


def _training(status, instance_count=1, **extra):
    return {
        "TrainingJobStatus": status,
        "ResourceConfig": {"InstanceCount": instance_count},
        **extra,
    }


@pytest.fixture
def fake_logs():
    return FakeLogs()


def _describe_with_events(fake_logs, steps):
    """Describe side effect that adds log events before each response."""
    remaining = list(steps)

    def describe(**kwargs):
        description, events = remaining.pop(0)
        for stream, stream_events in events.items():
            fake_logs.add(stream, *stream_events)
        return description

    return describe


class TestPosition:
    """Tests for the per-stream read position."""

    def test_no_events_keeps_position(self):
        """An empty batch leaves the position untouched."""
        position = Position(5, 2)
        assert position.advance([]) is position

    def test_new_timestamp_counts_trailing_events(self):
        """Skip counts only the events sharing the newest timestamp."""
        events = [{"timestamp": 1}, {"timestamp": 2}, {"timestamp": 2}]
        assert Position().advance(events) == Position(2, 2)

    def test_same_timestamp_accumulates(self):
        """More events at the same timestamp add to the skip count."""
        assert Position(2, 2).advance([{"timestamp": 2}]) == Position(2, 3)


class TestLogStream:
    """Tests for the single-stream reader."""

    def test_skip_drops_leading_events(self, fake_logs):
        """Events already emitted at the start timestamp are skipped."""
        fake_logs.add("s", (1, "a"), (2, "b"), (2, "c"), (3, "d"))

        events = list(log_stream(fake_logs, "group", "s", start_time=2, skip=1))

        assert [e["message"] for e in events] == ["c", "d"]

    def test_follows_tokens_until_empty_page(self):
        """Pages are fetched until one comes back empty."""
        client = MagicMock()
        client.get_log_events.side_effect = [
            {"events": [{"timestamp": 1, "message": "a"}], "nextForwardToken": "t1"},
            {"events": [{"timestamp": 2, "message": "b"}], "nextForwardToken": "t2"},
            {"events": [], "nextForwardToken": "t2"},
        ]

        events = list(log_stream(client, "group", "s"))

        assert [e["message"] for e in events] == ["a", "b"]
        assert client.get_log_events.call_args_list[1].kwargs["nextToken"] == "t1"


class TestLogTailer:
    """Tests for LogTailer."""

    def test_single_pass_without_wait(self, mock_sagemaker, fake_logs):
        """wait=False describes once and reads the current events once."""
        fake_logs.add(f"{JOB}/algo-1", (1, "hello"), (2, "world"))
        mock_sagemaker.describe_training_job.return_value = _training("InProgress")

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        lines = list(tailer.stream(wait=False))

        assert lines == ["hello", "world"]
        assert mock_sagemaker.describe_training_job.call_count == 1

    def test_without_wait_does_not_check_status(self, mock_sagemaker, fake_logs):
        """A failed job is not an error when not waiting."""
        mock_sagemaker.describe_training_job.return_value = _training("Failed")

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)

        assert list(tailer.stream(wait=False)) == []

    def test_lines_are_never_re_emitted(self, mock_sagemaker, fake_logs):
        """Each event is yielded exactly once across polls."""
        stream = f"{JOB}/algo-1"
        mock_sagemaker.describe_training_job.side_effect = _describe_with_events(
            fake_logs,
            [
                (_training("InProgress"), {stream: [(1, "a"), (2, "b")]}),
                (_training("InProgress"), {stream: [(2, "c"), (3, "d")]}),
                (_training("Completed"), {stream: [(4, "e")]}),
            ],
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        lines = list(tailer.stream(wait=True))

        assert lines == ["a", "b", "c", "d", "e"]
        assert mock_sagemaker.describe_training_job.call_count == 3

    def test_single_drain_after_terminal_status(self, mock_sagemaker, fake_logs):
        """Streams are read exactly once after the job is seen finished."""
        stream = f"{JOB}/algo-1"
        mock_sagemaker.describe_training_job.side_effect = _describe_with_events(
            fake_logs,
            [
                (_training("InProgress"), {stream: [(1, "a")]}),
                (_training("Completed"), {stream: [(2, "b")]}),
            ],
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        lines = list(tailer.stream(wait=True))

        assert lines == ["a", "b"]
        # One read per pass plus the empty page that ends each read
        assert fake_logs.get_log_events.call_count == 4

    def test_stream_appearing_at_completion_is_drained(self, mock_sagemaker, fake_logs):
        """Discovery still runs during the final drain."""
        mock_sagemaker.describe_training_job.side_effect = _describe_with_events(
            fake_logs,
            [
                (_training("InProgress", 2), {f"{JOB}/algo-1": [(1, "one")]}),
                (_training("Completed", 2), {f"{JOB}/algo-2": [(2, "two")]}),
            ],
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        lines = list(tailer.stream(wait=True))

        assert lines == ["one", "two"]
        assert tailer.stream_names == [f"{JOB}/algo-1", f"{JOB}/algo-2"]

    def test_streams_read_in_discovery_order(self, mock_sagemaker, fake_logs):
        """Lines are grouped per stream, not merged by timestamp."""
        fake_logs.add(f"{JOB}/algo-2", (1, "b1"))
        fake_logs.add(f"{JOB}/algo-1", (2, "a1"))
        mock_sagemaker.describe_training_job.return_value = _training("InProgress", 2)

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)

        assert list(tailer.stream()) == ["a1", "b1"]

    def test_discovery_stops_once_all_instances_seen(self, mock_sagemaker, fake_logs):
        """No more stream listing once instance_count streams are known."""
        stream = f"{JOB}/algo-1"
        mock_sagemaker.describe_training_job.side_effect = _describe_with_events(
            fake_logs,
            [
                (_training("InProgress"), {stream: [(1, "a")]}),
                (_training("InProgress"), {}),
                (_training("Completed"), {}),
            ],
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        list(tailer.stream(wait=True))

        assert fake_logs.describe_log_streams.call_count == 1

    def test_missing_log_group_is_zero_streams(self, mock_sagemaker, client_error):
        """ResourceNotFoundException while listing means no streams yet."""
        logs = MagicMock()
        logs.describe_log_streams.side_effect = client_error(
            "ResourceNotFoundException", "The specified log group does not exist."
        )
        mock_sagemaker.describe_training_job.return_value = _training("InProgress")

        tailer = LogTailer(mock_sagemaker, logs, JOB, poll=0)

        assert list(tailer.stream()) == []
        logs.get_log_events.assert_not_called()

    def test_other_listing_errors_propagate(self, mock_sagemaker, client_error):
        """Errors outside the allow-list are raised unchanged."""
        logs = MagicMock()
        logs.describe_log_streams.side_effect = client_error("AccessDeniedException", "denied")
        mock_sagemaker.describe_training_job.return_value = _training("InProgress")

        tailer = LogTailer(mock_sagemaker, logs, JOB, poll=0)

        with pytest.raises(ClientError):
            list(tailer.stream())

    def test_failed_job_raises_after_draining(self, mock_sagemaker, fake_logs):
        """wait=True yields every line and then reports the failure."""
        stream = f"{JOB}/algo-1"
        mock_sagemaker.describe_training_job.side_effect = _describe_with_events(
            fake_logs,
            [
                (_training("InProgress"), {stream: [(1, "start")]}),
                (_training("Failed", FailureReason="boom"), {stream: [(2, "Traceback")]}),
            ],
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        lines = []

        with pytest.raises(UnexpectedStatusError, match="boom"):
            for line in tailer.stream(wait=True):
                lines.append(line)

        assert lines == ["start", "Traceback"]

    def test_logs_billable_seconds(self, mock_sagemaker, fake_logs, caplog):
        """Finished training jobs report billable time for all instances."""
        mock_sagemaker.describe_training_job.return_value = _training(
            "Completed", 2, TrainingTimeInSeconds=100, BillableTimeInSeconds=40
        )

        tailer = LogTailer(mock_sagemaker, fake_logs, JOB, poll=0)
        with caplog.at_level("INFO", logger="smsession.aws.logs"):
            list(tailer.stream(wait=True))

        assert "Training seconds: 200" in caplog.text
        assert "Billable seconds: 80" in caplog.text

    def test_processing_jobs_use_their_log_group(self, mock_sagemaker, fake_logs):
        """The job kind selects the log group and describe operation."""
        mock_sagemaker.describe_processing_job.return_value = {
            "ProcessingJobStatus": "InProgress",
            "ProcessingResources": {"ClusterConfig": {"InstanceCount": 1}},
        }

        tailer = LogTailer(mock_sagemaker, fake_logs, "proc", kind=JobKind.PROCESSING, poll=0)
        list(tailer.stream())

        call = fake_logs.describe_log_streams.call_args
        assert call.kwargs["logGroupName"] == "/aws/sagemaker/ProcessingJobs"
        assert call.kwargs["logStreamNamePrefix"] == "proc/"

    def test_tuning_jobs_have_no_logs(self, mock_sagemaker, fake_logs):
        """Kinds without a log group are rejected."""
        with pytest.raises(ValueError):
            LogTailer(mock_sagemaker, fake_logs, "tune", kind=JobKind.TUNING)
