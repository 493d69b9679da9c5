"""Job status inspection helpers."""

import logging
from datetime import datetime, timezone
from typing import Any

from .errors import UnexpectedStatusError
from .job_kinds import SUCCESS_STATUSES, JobKind, get_job_kind

logger = logging.getLogger(__name__)


def _transitions(description: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not description:
        return []
    return description.get("SecondaryStatusTransitions") or []


def secondary_status_changed(
    current: dict[str, Any] | None,
    previous: dict[str, Any] | None,
) -> bool:
    """Whether the secondary status transitions grew since the last poll.

    The transition list is append-only on the service side, so only growth
    counts. An empty current list always reports unchanged.
    """
    current_count = len(_transitions(current))
    if current_count == 0:
        return False
    return current_count > len(_transitions(previous))


def _utc(moment: datetime | None) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def secondary_status_message(
    current: dict[str, Any] | None,
    previous: dict[str, Any] | None = None,
) -> str:
    """Format the newest secondary status transition for display.

    Uses the description's own LastModifiedTime rather than the transition's
    start time. Returns an empty string when there are no transitions.
    """
    transitions = _transitions(current)
    if not transitions:
        return ""

    last = transitions[-1]
    timestamp = _utc(current.get("LastModifiedTime")).strftime("%Y-%m-%d %H:%M:%S")
    return f"{timestamp} {last.get('Status', '')} - {last.get('StatusMessage', '')}"


def check_job_status(job_name: str, description: dict[str, Any], kind: JobKind | str) -> None:
    """Raise UnexpectedStatusError unless the job completed or was stopped.

    Args:
        job_name: Name of the job
        description: Final describe response
        kind: Job kind the description belongs to
    """
    spec = get_job_kind(kind)
    status = spec.status(description)

    if status in SUCCESS_STATUSES:
        return

    reason = description.get("FailureReason", "(No reason provided)")
    raise UnexpectedStatusError(
        f"Error for {spec.label} {job_name}: {status}. Reason: {reason}",
        allowed_statuses=sorted(SUCCESS_STATUSES),
        actual_status=status,
    )
