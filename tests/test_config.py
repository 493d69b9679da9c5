"""Tests for SessionConfig."""

import pytest

from smsession.aws.config import SessionConfig


class TestSessionConfig:
    """Tests for SessionConfig loading and validation."""

    def test_defaults_are_valid(self):
        """A default config validates cleanly."""
        config = SessionConfig()

        assert config.region == "us-east-1"
        assert config.logs_max_attempts == 15
        assert config.is_configured()

    def test_from_env(self, monkeypatch):
        """Environment variables override the defaults."""
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        monkeypatch.setenv("SMSESSION_ROLE_ARN", "arn:aws:iam::1:role/r")
        monkeypatch.setenv("SMSESSION_POLL_INTERVAL", "0")
        monkeypatch.setenv("SMSESSION_TAGS", "team=ml, env = dev")

        config = SessionConfig.from_env()

        assert config.region == "eu-west-1"
        assert config.role_arn == "arn:aws:iam::1:role/r"
        assert config.poll_interval_seconds == 0
        assert config.tags == {"team": "ml", "env": "dev"}

    def test_from_env_bad_tags(self, monkeypatch):
        """Tags must be key=value pairs."""
        monkeypatch.setenv("SMSESSION_TAGS", "team")

        with pytest.raises(ValueError, match="key=value"):
            SessionConfig.from_env()

    def test_from_yaml(self, tmp_path):
        """A session section in YAML is loaded."""
        path = tmp_path / "session.yaml"
        path.write_text(
            "session:\n"
            "  region: us-west-2\n"
            "  log_poll_interval_seconds: 2\n"
            "  tags:\n"
            "    team: ml\n"
        )

        config = SessionConfig.from_yaml(path)

        assert config.region == "us-west-2"
        assert config.log_poll_interval_seconds == 2
        assert config.tag_list() == [{"Key": "team", "Value": "ml"}]

    def test_from_yaml_unknown_key(self, tmp_path):
        """Unknown keys are rejected rather than ignored."""
        path = tmp_path / "session.yaml"
        path.write_text("regoin: us-west-2\n")

        with pytest.raises(ValueError, match="regoin"):
            SessionConfig.from_yaml(path)

    def test_from_yaml_missing_file(self, tmp_path):
        """A missing file is reported."""
        with pytest.raises(FileNotFoundError):
            SessionConfig.from_yaml(tmp_path / "nope.yaml")

    def test_validate(self):
        """Invalid values are all reported."""
        config = SessionConfig(
            region="",
            role_arn="arn:aws:iam::1:user/bob",
            poll_interval_seconds=-1,
            logs_max_attempts=0,
        )

        errors = config.validate()

        assert len(errors) == 4
        assert not config.is_configured()
