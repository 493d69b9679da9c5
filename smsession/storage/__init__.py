"""S3 storage helpers for job inputs and model artifacts."""

from .s3 import S3Helper, is_s3_uri, parse_s3_uri, s3_path_join

__all__ = [
    "S3Helper",
    "is_s3_uri",
    "parse_s3_uri",
    "s3_path_join",
]
