"""Tests for the remote-error classifier and exception types."""

import pytest

from smsession.aws.errors import (
    EndpointNotFoundError,
    ErrorAction,
    ErrorContext,
    SessionError,
    UnexpectedStatusError,
    classify_client_error,
    client_error_code,
    client_error_message,
)


class TestClassifyClientError:
    """Tests for classify_client_error."""

    @pytest.mark.parametrize(
        "context, code, message, expected",
        [
            (
                ErrorContext.CREATE_MODEL,
                "ValidationException",
                "Cannot create already existing model \"arn:...\"",
                ErrorAction.WARN_AND_SUCCEED,
            ),
            (
                ErrorContext.CREATE_MODEL_PACKAGE,
                "ValidationException",
                "ModelPackage already exists: pkg",
                ErrorAction.WARN_AND_SUCCEED,
            ),
            (
                ErrorContext.DESCRIBE_ENDPOINT,
                "ValidationException",
                "Could not find endpoint \"ep\".",
                ErrorAction.TRANSLATE,
            ),
            (
                ErrorContext.DESCRIBE_ENDPOINT_CONFIG,
                "ValidationException",
                "Could not find endpoint configuration \"ep\".",
                ErrorAction.TRANSLATE,
            ),
            (
                ErrorContext.STOP_TUNING_JOB,
                "ValidationException",
                "Job is not in progress",
                ErrorAction.WARN_AND_SUCCEED,
            ),
            (
                ErrorContext.STOP_TRANSFORM_JOB,
                "ValidationException",
                "anything",
                ErrorAction.WARN_AND_SUCCEED,
            ),
            (
                ErrorContext.DESCRIBE_LOG_STREAMS,
                "ResourceNotFoundException",
                "The specified log group does not exist.",
                ErrorAction.WARN_AND_SUCCEED,
            ),
        ],
    )
    def test_allow_listed_errors(self, client_error, context, code, message, expected):
        """Allow-listed combinations map to their action."""
        assert classify_client_error(client_error(code, message), context) is expected

    def test_wrong_message_passes_through(self, client_error):
        """A matching code with a different message is not allow-listed."""
        error = client_error("ValidationException", "Role is invalid")
        assert classify_client_error(error, ErrorContext.CREATE_MODEL) is ErrorAction.PASS_THROUGH

    def test_wrong_code_passes_through(self, client_error):
        """A matching message with a different code is not allow-listed."""
        error = client_error("ThrottlingException", "Could not find endpoint")
        result = classify_client_error(error, ErrorContext.DESCRIBE_ENDPOINT)
        assert result is ErrorAction.PASS_THROUGH

    def test_message_fragment_ignores_case(self, client_error):
        """The message fragment matches regardless of capitalization."""
        error = client_error("ValidationException", "could not find entity")
        result = classify_client_error(error, ErrorContext.DESCRIBE_ENDPOINT)
        assert result is ErrorAction.TRANSLATE

    def test_rules_are_scoped_to_their_context(self, client_error):
        """A rule for one operation does not apply to another."""
        error = client_error("ValidationException", "Cannot create already existing model")
        result = classify_client_error(error, ErrorContext.DESCRIBE_ENDPOINT)
        assert result is ErrorAction.PASS_THROUGH


class TestErrorFields:
    """Tests for ClientError field extraction."""

    def test_code_and_message(self, client_error):
        """Code and message come from response['Error']."""
        error = client_error("ValidationException", "bad input")
        assert client_error_code(error) == "ValidationException"
        assert client_error_message(error) == "bad input"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_endpoint_not_found(self):
        """EndpointNotFoundError names the endpoint."""
        error = EndpointNotFoundError("my-endpoint")

        assert error.endpoint_name == "my-endpoint"
        assert "Endpoint with name 'my-endpoint' does not exist" in str(error)
        assert isinstance(error, SessionError)
        assert isinstance(error, ValueError)

    def test_unexpected_status(self):
        """UnexpectedStatusError keeps the allowed and actual statuses."""
        error = UnexpectedStatusError("failed", ("InService",), "Failed")

        assert error.allowed_statuses == ["InService"]
        assert error.actual_status == "Failed"
