"""Pytest configuration and shared fixtures for smsession tests."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from smsession.aws.config import SessionConfig
from smsession.aws.session import Session


@pytest.fixture
def client_error():
    """Factory for botocore ClientErrors with a given code and message."""

    def _make(code: str, message: str = "", operation: str = "Operation") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _make


@pytest.fixture
def mock_sagemaker():
    """Create a mock SageMaker client."""
    return MagicMock()


@pytest.fixture
def mock_logs():
    """Create a mock CloudWatch Logs client."""
    return MagicMock()


@pytest.fixture
def mock_s3():
    """Create a mock S3 client."""
    return MagicMock()


@pytest.fixture
def mock_iam():
    """Create a mock IAM client."""
    client = MagicMock()
    client.get_role.side_effect = lambda RoleName: {
        "Role": {"Arn": f"arn:aws:iam::123456789012:role/{RoleName}"}
    }
    return client


@pytest.fixture
def mock_sts():
    """Create a mock STS client."""
    client = MagicMock()
    client.get_caller_identity.return_value = {
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:user/alice",
    }
    return client


@pytest.fixture
def config():
    """Session config with polling disabled."""
    return SessionConfig(
        region="us-west-2",
        role_arn="arn:aws:iam::123456789012:role/SageMakerRole",
        poll_interval_seconds=0,
        log_poll_interval_seconds=0,
        endpoint_poll_interval_seconds=0,
    )


@pytest.fixture
def session(config, mock_sagemaker, mock_logs, mock_s3, mock_sts, mock_iam):
    """Create a Session with mocked clients."""
    return Session(
        config,
        sagemaker_client=mock_sagemaker,
        logs_client=mock_logs,
        s3_client=mock_s3,
        sts_client=mock_sts,
        iam_client=mock_iam,
    )
