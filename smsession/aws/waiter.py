"""Polling loops that wait for SageMaker resources to settle.

None of these loops has a timeout or a retry policy of its own. Describe
errors propagate to the caller, and retries are left to botocore. A poll
interval of 0 never sleeps.
"""

import logging
import time
from typing import Any, Callable, TypeVar

from .errors import UnexpectedStatusError
from .job_kinds import JobKind, get_job_kind
from .status import secondary_status_changed, secondary_status_message

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENDPOINT_IN_PROGRESS_STATUSES = frozenset({"Creating", "Updating"})
MODEL_PACKAGE_IN_PROGRESS_STATUSES = frozenset({"InProgress", "Pending"})
TUNING_IN_PROGRESS_STATUSES = frozenset({"InProgress", "Stopping"})


def _sleep(poll: float) -> None:
    if poll > 0:
        time.sleep(poll)


def wait_until(fn: Callable[[], T | None], poll: float = 5) -> T:
    """Call ``fn`` until it returns something truthy, sleeping in between."""
    result = fn()
    while not result:
        _sleep(poll)
        result = fn()
    return result


def wait_for_job(
    client,
    job_name: str,
    kind: JobKind | str = JobKind.TRAINING,
    poll: float = 5,
    progress_callback: Callable[[str, dict], None] | None = None,
) -> dict[str, Any]:
    """Poll a job until it reaches a terminal status.

    Args:
        client: boto3 SageMaker client
        job_name: Name of the job
        kind: Job kind, selects the describe operation and terminal set
        poll: Seconds between describe calls
        progress_callback: Optional callback for status updates

    Returns:
        The first describe response with a terminal status
    """
    spec = get_job_kind(kind)
    previous = None

    while True:
        description = spec.describe(client, job_name)

        if secondary_status_changed(description, previous):
            logger.info(secondary_status_message(description, previous))
        previous = description

        status = spec.status(description)
        if progress_callback:
            progress_callback(status, description)

        if status in spec.terminal_statuses:
            return description

        logger.debug("%s %s status: %s", spec.label, job_name, status)
        _sleep(poll)


def tuning_job_status(client, job_name: str) -> dict[str, Any] | None:
    """Describe a tuning job, or return None while it is still running."""
    spec = get_job_kind(JobKind.TUNING)
    description = spec.describe(client, job_name)

    if spec.status(description) in TUNING_IN_PROGRESS_STATUSES:
        return None
    return description


def endpoint_status(client, endpoint_name: str) -> dict[str, Any] | None:
    """Describe an endpoint, or return None while it is being deployed."""
    description = client.describe_endpoint(EndpointName=endpoint_name)

    if description.get("EndpointStatus") in ENDPOINT_IN_PROGRESS_STATUSES:
        return None
    return description


def wait_for_endpoint(client, endpoint_name: str, poll: float = 30) -> dict[str, Any]:
    """Wait for an endpoint deployment and require it to be InService."""
    description = wait_until(lambda: endpoint_status(client, endpoint_name), poll)
    status = description.get("EndpointStatus")

    if status != "InService":
        reason = description.get("FailureReason")
        raise UnexpectedStatusError(
            f"Error hosting endpoint {endpoint_name}: {status}. Reason: {reason}.",
            allowed_statuses=["InService"],
            actual_status=status,
        )
    return description


def model_package_status(client, model_package_name: str) -> dict[str, Any] | None:
    """Describe a model package, or return None while it is being created."""
    description = client.describe_model_package(ModelPackageName=model_package_name)

    if description.get("ModelPackageStatus") in MODEL_PACKAGE_IN_PROGRESS_STATUSES:
        return None
    return description


def wait_for_model_package(client, model_package_name: str, poll: float = 5) -> dict[str, Any]:
    """Wait for a model package and require it to be Completed."""
    description = wait_until(lambda: model_package_status(client, model_package_name), poll)
    status = description.get("ModelPackageStatus")

    if status != "Completed":
        reason = description.get("FailureReason")
        raise UnexpectedStatusError(
            f"Error creating model package {model_package_name}: {status} Reason: {reason}",
            allowed_statuses=["Completed"],
            actual_status=status,
        )
    return description
