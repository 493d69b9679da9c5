"""S3 helpers for moving job inputs and artifacts."""

import logging
import re
from pathlib import Path
from urllib.parse import urlparse

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

S3_PREFIX = "s3://"
_S3_URI_PATTERN = re.compile(r"^s3://[a-z0-9.\-]+(/(.*)?)?$")


def is_s3_uri(value) -> bool:
    """Check whether ``value`` is an ``s3://bucket[/key]`` string."""
    if not isinstance(value, str):
        return False
    return bool(_S3_URI_PATTERN.match(value))


def parse_s3_uri(uri: str) -> tuple[str, str]:
    """Split an S3 URI into (bucket, key).

    Raises:
        ValueError: If the scheme is not ``s3``
    """
    parsed = urlparse(uri)
    if parsed.scheme != "s3":
        raise ValueError(f"Expecting 's3' scheme, got: {parsed.scheme} in {uri}.")
    return parsed.netloc, parsed.path.lstrip("/")


def s3_path_join(*parts: str) -> str:
    """Join path segments with single slashes, keeping a leading ``s3://``."""
    if not parts:
        return ""

    prefix = ""
    first = parts[0]
    if first.startswith(S3_PREFIX):
        prefix = S3_PREFIX
        first = first[len(S3_PREFIX):]

    segments = [p.strip("/") for p in (first, *parts[1:])]
    return prefix + "/".join(s for s in segments if s)


class S3Helper:
    """Thin layer over a boto3 S3 client.

    Usage:
        helper = S3Helper(boto3.client("s3"))
        uri = helper.upload_data("data/train", bucket="my-bucket", key_prefix="train")
        helper.download_data("local/out", bucket="my-bucket", key_prefix="output")
    """

    def __init__(self, s3_client):
        self.s3_client = s3_client

    def upload_data(
        self,
        path: str | Path,
        bucket: str,
        key_prefix: str = "data",
        extra_args: dict | None = None,
    ) -> str:
        """Upload a file or directory tree to S3.

        Args:
            path: Local file or directory
            bucket: Destination bucket
            key_prefix: Key prefix to upload under
            extra_args: Passed to upload_file as ExtraArgs (e.g. SSE settings)

        Returns:
            The S3 URI of the uploaded file, or of the prefix for a directory
        """
        path = Path(path)
        key_prefix = key_prefix.strip("/")

        if path.is_dir():
            files = sorted(p for p in path.rglob("*") if p.is_file())
            uploads = [(f, s3_path_join(key_prefix, f.relative_to(path).as_posix())) for f in files]
            uri = f"{S3_PREFIX}{bucket}/{key_prefix}"
        elif path.is_file():
            key = s3_path_join(key_prefix, path.name)
            uploads = [(path, key)]
            uri = f"{S3_PREFIX}{bucket}/{key}"
        else:
            raise FileNotFoundError(f"Local path not found: {path}")

        for local_file, key in uploads:
            logger.debug("Uploading %s to s3://%s/%s", local_file, bucket, key)
            self.s3_client.upload_file(str(local_file), bucket, key, ExtraArgs=extra_args)

        logger.info("Uploaded %d file(s) to %s", len(uploads), uri)
        return uri

    def upload_string_as_file_body(
        self,
        body: str,
        bucket: str,
        key: str,
        kms_key: str | None = None,
    ) -> str:
        """Write a string to S3 and return its URI."""
        params = {"Bucket": bucket, "Key": key, "Body": body.encode("utf-8")}
        if kms_key is not None:
            params["SSEKMSKeyId"] = kms_key
            params["ServerSideEncryption"] = "aws:kms"

        self.s3_client.put_object(**params)
        return f"{S3_PREFIX}{bucket}/{key}"

    def list_s3_files(self, bucket: str, key_prefix: str = "") -> list[str]:
        """List every object key under a prefix."""
        keys = []
        paginator = self.s3_client.get_paginator("list_objects_v2")

        for page in paginator.paginate(Bucket=bucket, Prefix=key_prefix):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])

        return keys

    def read_s3_file(self, bucket: str, key: str) -> str:
        """Read an object body as UTF-8 text."""
        response = self.s3_client.get_object(Bucket=bucket, Key=key)
        return response["Body"].read().decode("utf-8")

    def download_file(self, bucket: str, key: str, target: str | Path) -> Path:
        """Download a single object to ``target``."""
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        response = self.s3_client.get_object(Bucket=bucket, Key=key.lstrip("/"))
        target.write_bytes(response["Body"].read())
        return target

    def download_data(self, path: str | Path, bucket: str, key_prefix: str = "") -> list[Path]:
        """Download every object under a prefix into ``path``.

        A prefix that names a single file (it has an extension) is downloaded
        by file name; otherwise keys keep their path relative to the prefix.
        """
        path = Path(path)
        keys = [k for k in self.list_s3_files(bucket, key_prefix) if not k.endswith("/")]
        prefix_is_file = bool(Path(key_prefix).suffix)

        downloaded = []
        for key in keys:
            if prefix_is_file:
                relative = Path(key).name
            else:
                relative = key[len(key_prefix):].lstrip("/")
            downloaded.append(self.download_file(bucket, key, path / relative))

        return downloaded

    def download_folder(self, bucket: str, prefix: str, target: str | Path) -> list[Path]:
        """Download an S3 "folder", or the single object the prefix names.

        The prefix is first tried as an object, since it may have broader
        permissions than the bucket listing.
        """
        target = Path(target)
        prefix = prefix.lstrip("/")

        if not prefix.endswith("/"):
            try:
                return [self.download_file(bucket, prefix, target / Path(prefix).name)]
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code", "")
                if code not in ("NoSuchKey", "404"):
                    raise

        return self.download_data(target, bucket, prefix)
