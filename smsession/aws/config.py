"""Session configuration for smsession."""

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class SessionConfig:
    """Configuration for SageMaker sessions."""

    # Region
    region: str = "us-east-1"

    # Default artifact bucket (derived from the account id when empty)
    default_bucket: str = ""

    # Execution role used when a call does not pass one explicitly
    role_arn: str = ""

    # Polling
    poll_interval_seconds: float = 5.0
    log_poll_interval_seconds: float = 10.0
    endpoint_poll_interval_seconds: float = 30.0

    # Client retries (CloudWatch Logs is throttled aggressively while tailing)
    logs_max_attempts: int = 15
    s3_max_attempts: int = 3

    # Custom endpoint URL (for LocalStack / MinIO local testing)
    endpoint_url: str | None = None

    # Tags appended to every created resource
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "SessionConfig":
        """Create configuration from environment variables."""
        return cls(
            region=os.getenv("AWS_REGION", "us-east-1"),
            default_bucket=os.getenv("SMSESSION_DEFAULT_BUCKET", ""),
            role_arn=os.getenv("SMSESSION_ROLE_ARN", ""),
            poll_interval_seconds=float(os.getenv("SMSESSION_POLL_INTERVAL", "5")),
            log_poll_interval_seconds=float(os.getenv("SMSESSION_LOG_POLL_INTERVAL", "10")),
            endpoint_poll_interval_seconds=float(
                os.getenv("SMSESSION_ENDPOINT_POLL_INTERVAL", "30")
            ),
            logs_max_attempts=int(os.getenv("SMSESSION_LOGS_MAX_ATTEMPTS", "15")),
            s3_max_attempts=int(os.getenv("SMSESSION_S3_MAX_ATTEMPTS", "3")),
            endpoint_url=os.getenv("AWS_ENDPOINT_URL"),
            tags=_parse_tags(os.getenv("SMSESSION_TAGS", "")),
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SessionConfig":
        """Load configuration from a YAML file.

        Keys missing from the file keep their defaults. A top-level
        ``session`` section is unwrapped if present.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if isinstance(data.get("session"), dict):
            data = data["session"]

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown session config keys: {', '.join(unknown)}")

        return cls(**data)

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.region:
            errors.append("AWS region is required")

        if self.role_arn and ":role/" not in self.role_arn:
            errors.append(f"Role ARN is not an IAM role: {self.role_arn}")

        if self.poll_interval_seconds < 0:
            errors.append("Poll interval must be non-negative")
        if self.log_poll_interval_seconds < 0:
            errors.append("Log poll interval must be non-negative")
        if self.endpoint_poll_interval_seconds < 0:
            errors.append("Endpoint poll interval must be non-negative")

        if self.logs_max_attempts < 1:
            errors.append("Logs client needs at least one attempt")

        return errors

    def is_configured(self) -> bool:
        """Check if the session is properly configured."""
        return len(self.validate()) == 0

    def tag_list(self) -> list[dict[str, str]]:
        """Tags in the Key/Value shape the SageMaker API expects."""
        return [{"Key": k, "Value": v} for k, v in self.tags.items()]


def _parse_tags(raw: str) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` into a dict."""
    tags = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"Invalid tag (expected key=value): {pair}")
        tags[key.strip()] = value.strip()
    return tags
