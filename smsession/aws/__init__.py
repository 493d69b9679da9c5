"""SageMaker integration.

Configuration, job submission, status polling and CloudWatch log tailing
for SageMaker jobs, models and endpoints.
"""

from .config import SessionConfig
from .errors import EndpointNotFoundError, SessionError, UnexpectedStatusError
from .job_kinds import JobKind
from .logs import LogTailer
from .session import Session

__all__ = [
    "SessionConfig",
    "SessionError",
    "UnexpectedStatusError",
    "EndpointNotFoundError",
    "JobKind",
    "LogTailer",
    "Session",
]
