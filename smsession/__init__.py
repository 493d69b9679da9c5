"""smsession: a SageMaker session client.

Submits training, tuning, transform, processing and AutoML jobs, manages
models and endpoints, waits for resources to settle and tails job logs.
"""

from .aws import (
    EndpointNotFoundError,
    JobKind,
    LogTailer,
    Session,
    SessionConfig,
    SessionError,
    UnexpectedStatusError,
)
from .aws.normalize import (
    container_def,
    production_variant,
    update_args,
    vpc_from_dict,
    vpc_sanitize,
    vpc_to_dict,
)
from .storage.s3 import S3Helper, is_s3_uri, parse_s3_uri, s3_path_join
from .utils.naming import name_from_base, name_from_image, unique_name_from_base
from .utils.tar import repack_model

__version__ = "0.1.0"

__all__ = [
    "Session",
    "SessionConfig",
    "SessionError",
    "UnexpectedStatusError",
    "EndpointNotFoundError",
    "JobKind",
    "LogTailer",
    "S3Helper",
    "container_def",
    "production_variant",
    "update_args",
    "vpc_from_dict",
    "vpc_sanitize",
    "vpc_to_dict",
    "is_s3_uri",
    "parse_s3_uri",
    "s3_path_join",
    "name_from_base",
    "name_from_image",
    "unique_name_from_base",
    "repack_model",
]
