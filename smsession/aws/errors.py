"""Exceptions and remote-error classification.

Most remote errors propagate to the caller unchanged. A short allow-list of
(operation, error code, message fragment) combinations is handled instead:
either downgraded to a log line plus a successful return, or translated into
a typed error. The allow-list lives in ``_RULES`` so call sites only ask
``classify_client_error`` what to do.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from botocore.exceptions import ClientError


class SessionError(Exception):
    """Base exception for smsession errors."""


class UnexpectedStatusError(SessionError, ValueError):
    """A resource finished in a status the caller cannot continue from."""

    def __init__(self, message: str, allowed_statuses: Iterable[str], actual_status: str):
        super().__init__(message)
        self.allowed_statuses = list(allowed_statuses)
        self.actual_status = actual_status


class EndpointNotFoundError(SessionError, ValueError):
    """The named endpoint does not exist."""

    def __init__(self, endpoint_name: str):
        super().__init__(
            f"Endpoint with name '{endpoint_name}' does not exist; "
            "please use an existing endpoint name"
        )
        self.endpoint_name = endpoint_name


class ErrorAction(str, Enum):
    """What a call site should do with a remote error."""

    PASS_THROUGH = "pass_through"
    WARN_AND_SUCCEED = "warn_and_succeed"
    TRANSLATE = "translate"


class ErrorContext(str, Enum):
    """Operations with special remote-error handling."""

    CREATE_MODEL = "create_model"
    CREATE_MODEL_PACKAGE = "create_model_package"
    DESCRIBE_ENDPOINT = "describe_endpoint"
    DESCRIBE_ENDPOINT_CONFIG = "describe_endpoint_config"
    STOP_TUNING_JOB = "stop_tuning_job"
    STOP_TRANSFORM_JOB = "stop_transform_job"
    DESCRIBE_LOG_STREAMS = "describe_log_streams"


@dataclass(frozen=True)
class _Rule:
    context: ErrorContext
    code: str
    message_fragment: str
    action: ErrorAction


_RULES = (
    _Rule(
        ErrorContext.CREATE_MODEL,
        "ValidationException",
        "Cannot create already existing model",
        ErrorAction.WARN_AND_SUCCEED,
    ),
    _Rule(
        ErrorContext.CREATE_MODEL_PACKAGE,
        "ValidationException",
        "ModelPackage already exists",
        ErrorAction.WARN_AND_SUCCEED,
    ),
    _Rule(
        ErrorContext.DESCRIBE_ENDPOINT,
        "ValidationException",
        "Could not find",
        ErrorAction.TRANSLATE,
    ),
    _Rule(
        ErrorContext.DESCRIBE_ENDPOINT_CONFIG,
        "ValidationException",
        "Could not find",
        ErrorAction.TRANSLATE,
    ),
    # Stopping a job that already finished is reported as a validation error.
    _Rule(ErrorContext.STOP_TUNING_JOB, "ValidationException", "", ErrorAction.WARN_AND_SUCCEED),
    _Rule(ErrorContext.STOP_TRANSFORM_JOB, "ValidationException", "", ErrorAction.WARN_AND_SUCCEED),
    # The log group only exists once the container has written something.
    _Rule(
        ErrorContext.DESCRIBE_LOG_STREAMS,
        "ResourceNotFoundException",
        "",
        ErrorAction.WARN_AND_SUCCEED,
    ),
)


def client_error_code(error: ClientError) -> str:
    """Provider error code of a botocore ClientError."""
    return error.response.get("Error", {}).get("Code", "")


def client_error_message(error: ClientError) -> str:
    """Provider error message of a botocore ClientError."""
    return error.response.get("Error", {}).get("Message", "")


def classify_client_error(error: ClientError, context: ErrorContext) -> ErrorAction:
    """Map a remote error raised during ``context`` to an ErrorAction.

    Args:
        error: The ClientError raised by boto3
        context: Operation that raised it

    Returns:
        PASS_THROUGH unless an allow-list rule matches both the error code
        and (when the rule has one) a fragment of the error message, compared
        without regard to case.
    """
    code = client_error_code(error)
    message = client_error_message(error).lower()

    for rule in _RULES:
        if rule.context != context or rule.code != code:
            continue
        if rule.message_fragment and rule.message_fragment.lower() not in message:
            continue
        return rule.action

    return ErrorAction.PASS_THROUGH
