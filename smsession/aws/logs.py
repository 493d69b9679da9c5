"""CloudWatch log tailing for SageMaker jobs.

Each job writes one log stream per instance under
``/aws/sagemaker/<Kind>Jobs/<job-name>/...``. LogTailer discovers those
streams, fetches new events from each one, and interleaves the job's status
polling with the fetching until the job finishes.

Streams are read in discovery order, so lines from different instances are
not merged by timestamp.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from botocore.exceptions import ClientError

from .errors import ErrorAction, ErrorContext, classify_client_error
from .job_kinds import JobKind, get_job_kind
from .status import check_job_status, secondary_status_changed, secondary_status_message

logger = logging.getLogger(__name__)

MAX_STREAMS_PER_PAGE = 50


class LogState(str, Enum):
    """Lifecycle of a tailing loop."""

    TAILING = "tailing"
    JOB_COMPLETE = "job_complete"
    COMPLETE = "complete"


@dataclass
class Position:
    """Read position in one log stream.

    ``skip`` counts the events at ``timestamp`` that were already emitted.
    Fetches restart at ``timestamp`` because CloudWatch start times are
    inclusive.
    """

    timestamp: int = 0
    skip: int = 0

    def advance(self, events: list[dict[str, Any]]) -> "Position":
        """Position after ``events`` have been emitted from this one."""
        if not events:
            return self

        last = events[-1]["timestamp"]
        at_last = sum(1 for e in events if e["timestamp"] == last)
        if last == self.timestamp:
            return Position(timestamp=last, skip=self.skip + at_last)
        return Position(timestamp=last, skip=at_last)


def log_stream(
    client,
    log_group: str,
    stream_name: str,
    start_time: int = 0,
    skip: int = 0,
) -> Iterator[dict[str, Any]]:
    """Yield events from one stream, following forward tokens to the end.

    Args:
        client: boto3 CloudWatch Logs client
        log_group: Log group name
        stream_name: Log stream name
        start_time: Earliest event timestamp (ms since epoch) to fetch
        skip: Number of leading events to drop

    Yields:
        Event dicts with ``timestamp`` and ``message`` keys
    """
    next_token = None

    while True:
        token_arg = {"nextToken": next_token} if next_token else {}
        response = client.get_log_events(
            logGroupName=log_group,
            logStreamName=stream_name,
            startTime=start_time,
            startFromHead=True,
            **token_arg,
        )
        events = response.get("events", [])
        if not events:
            return

        if skip >= len(events):
            skip -= len(events)
        else:
            yield from events[skip:]
            skip = 0

        next_token = response.get("nextForwardToken")
        if not next_token:
            return


class LogTailer:
    """Streams the logs of a single job.

    Holds the per-stream positions and the previous description for one job
    only; create a new tailer for each job.

    Usage:
        tailer = LogTailer(sagemaker_client, logs_client, "my-training-job")
        for line in tailer.stream(wait=True):
            print(line)
    """

    def __init__(
        self,
        sagemaker_client,
        logs_client,
        job_name: str,
        kind: JobKind | str = JobKind.TRAINING,
        poll: float = 10,
    ):
        self.spec = get_job_kind(kind)
        if self.spec.log_group is None:
            raise ValueError(f"{self.spec.label}s do not write CloudWatch logs")

        self.sagemaker_client = sagemaker_client
        self.logs_client = logs_client
        self.job_name = job_name
        self.kind = JobKind(kind)
        self.poll = poll

        self.stream_names: list[str] = []
        self.positions: dict[str, Position] = {}
        self.instance_count: int | None = None
        self.description: dict[str, Any] | None = None

    def stream(self, wait: bool = False) -> Iterator[str]:
        """Yield log lines for the job.

        With ``wait=False`` this makes a single pass over the streams that
        exist now. With ``wait=True`` it keeps polling until the job reaches a
        terminal status, drains every stream exactly once more, and then
        raises UnexpectedStatusError if the job did not succeed.
        """
        description = self.spec.describe(self.sagemaker_client, self.job_name)
        self.description = description
        self.instance_count = self.spec.instance_count(description)

        message = secondary_status_message(description)
        if message:
            logger.info(message)

        if wait and not self.spec.is_terminal(description):
            state = LogState.TAILING
        else:
            state = LogState.COMPLETE

        yield from self._flush_streams()

        while state is LogState.TAILING:
            if self.poll > 0:
                time.sleep(self.poll)

            previous = description
            description = self.spec.describe(self.sagemaker_client, self.job_name)
            self.description = description

            if secondary_status_changed(description, previous):
                logger.info(secondary_status_message(description, previous))

            if self.spec.is_terminal(description):
                state = LogState.JOB_COMPLETE

            yield from self._flush_streams()

        if wait:
            check_job_status(self.job_name, description, self.kind)
            if self.kind is JobKind.TRAINING:
                self._log_billing(description)

    def _discover_streams(self) -> None:
        """Pick up streams that have appeared since the last pass."""
        if self.instance_count is not None and len(self.stream_names) >= self.instance_count:
            return

        limit = MAX_STREAMS_PER_PAGE
        if self.instance_count:
            limit = min(self.instance_count, MAX_STREAMS_PER_PAGE)

        params = {
            "logGroupName": self.spec.log_group,
            "logStreamNamePrefix": f"{self.job_name}/",
            "orderBy": "LogStreamName",
            "limit": limit,
        }

        found = []
        try:
            while True:
                response = self.logs_client.describe_log_streams(**params)
                found.extend(s["logStreamName"] for s in response.get("logStreams", []))

                next_token = response.get("nextToken")
                if not next_token:
                    break
                params["nextToken"] = next_token
                params["limit"] = MAX_STREAMS_PER_PAGE
        except ClientError as e:
            if classify_client_error(e, ErrorContext.DESCRIBE_LOG_STREAMS) is ErrorAction.PASS_THROUGH:
                raise
            logger.debug("Log group %s does not exist yet", self.spec.log_group)
            return

        for name in found:
            if name not in self.positions:
                self.stream_names.append(name)
                self.positions[name] = Position()

    def _flush_streams(self) -> Iterator[str]:
        """Emit every event that is new since the previous pass."""
        self._discover_streams()

        if not self.stream_names:
            logger.debug("No log streams for %s yet", self.job_name)
            return

        for name in self.stream_names:
            position = self.positions[name]
            events = list(
                log_stream(
                    self.logs_client,
                    self.spec.log_group,
                    name,
                    start_time=position.timestamp,
                    skip=position.skip,
                )
            )
            for event in events:
                yield event["message"]
            self.positions[name] = position.advance(events)

    def _log_billing(self, description: dict[str, Any]) -> None:
        instance_count = self.instance_count or 1
        training_time = description.get("TrainingTimeInSeconds")
        billable_time = description.get("BillableTimeInSeconds")

        if training_time is not None:
            logger.info("Training seconds: %s", training_time * instance_count)
        if billable_time is not None:
            logger.info("Billable seconds: %s", billable_time * instance_count)
        if description.get("EnableManagedSpotTraining") and training_time and billable_time is not None:
            saving = (1 - float(billable_time) / training_time) * 100
            logger.info("Managed Spot Training savings: %.1f%%", saving)
