"""Job and resource name generation.

SageMaker names are limited to 63 characters matching
``[a-zA-Z0-9](-*[a-zA-Z0-9])*``.
"""

import random
import re
import time
from datetime import datetime, timezone

MAX_NAME_LENGTH = 63

_IMAGE_PATTERN = re.compile(r"^(?:.+/)?([^:/]+)(?::[^:]+)?$")
_TIMESTAMPED_NAME_PATTERN = re.compile(
    r"^(.+)-(\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2}-\d{3}|\d{6}-\d{4})"
)


def sagemaker_timestamp() -> str:
    """UTC timestamp with milliseconds, e.g. 2024-01-31-12-30-05-123."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d-%H-%M-%S-") + f"{now.microsecond // 1000:03d}"


def sagemaker_short_timestamp() -> str:
    """Short UTC timestamp, e.g. 240131-1230."""
    return datetime.now(timezone.utc).strftime("%y%m%d-%H%M")


def name_from_base(base: str, max_length: int = MAX_NAME_LENGTH, short: bool = False) -> str:
    """Append a timestamp to ``base``, trimming base so the result fits."""
    timestamp = sagemaker_short_timestamp() if short else sagemaker_timestamp()
    trimmed = base[: max_length - len(timestamp) - 1]
    return f"{trimmed}-{timestamp}"


def unique_name_from_base(base: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Append epoch seconds and four random hex digits to ``base``."""
    unique = f"{random.randrange(16**4):04x}"
    ts = str(int(time.time()))
    available = max_length - 2 - len(ts) - len(unique)
    return f"{base[:available]}-{ts}-{unique}"


def base_name_from_image(image: str) -> str:
    """Algorithm name from an image URI (repository name without tag)."""
    match = _IMAGE_PATTERN.match(image)
    return match.group(1) if match else image


def name_from_image(image: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Timestamped name derived from an image URI."""
    return name_from_base(base_name_from_image(image), max_length=max_length)


def base_from_name(name: str) -> str:
    """Strip the timestamp that name_from_base appended, if any."""
    match = _TIMESTAMPED_NAME_PATTERN.match(name)
    return match.group(1) if match else name
