"""Tarball helpers and model repacking."""

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path

from ..storage.s3 import S3Helper, parse_s3_uri

logger = logging.getLogger(__name__)

FILE_SCHEME = "file://"


def _is_s3(uri: str) -> bool:
    return uri.lower().startswith("s3://")


def _local_path(uri: str | Path) -> Path:
    uri = str(uri)
    if uri.startswith(FILE_SCHEME):
        uri = uri[len(FILE_SCHEME):]
    return Path(uri)


def create_tar_file(source_files: list[str | Path], target: str | Path | None = None) -> Path:
    """Create a gzipped tarball holding ``source_files`` at its top level.

    Args:
        source_files: Files or directories to add, each under its base name
        target: Output path; a temporary file is created when omitted

    Returns:
        Absolute path of the tarball
    """
    if target is None:
        fd, name = tempfile.mkstemp(suffix=".tar.gz")
        os.close(fd)
        target = Path(name)

    target = Path(target).resolve()
    target.parent.mkdir(parents=True, exist_ok=True)

    with tarfile.open(target, "w:gz") as tar:
        for source in source_files:
            source = Path(source)
            if not source.exists():
                raise ValueError(
                    f"'{source}' doesn't exist, please check the location and try again."
                )
            tar.add(source, arcname=source.name)

    return target


def tar_directory(source_dir: str | Path, target: str | Path) -> Path:
    """Tar the contents of ``source_dir`` (not the directory itself)."""
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise ValueError(
            f"Directory '{source_dir}' doesn't exist, please check the location and try again."
        )

    target = Path(target)
    with tarfile.open(target, "w:gz") as tar:
        for child in sorted(source_dir.iterdir()):
            tar.add(child, arcname=child.name)
    return target


def extract_tar(archive: str | Path, target: str | Path) -> Path:
    """Extract a tarball into ``target``, refusing members that escape it."""
    target = Path(target)
    target.mkdir(parents=True, exist_ok=True)
    root = target.resolve()

    with tarfile.open(archive, "r:*") as tar:
        members = tar.getmembers()
        for member in members:
            destination = (root / member.name).resolve()
            if destination != root and root not in destination.parents:
                raise ValueError(f"Refusing to extract {member.name} outside {root}")
            if member.issym() or member.islnk():
                raise ValueError(f"Refusing to extract link {member.name}")
        # Extraction filters are missing before 3.10.12 and 3.11.4.
        if hasattr(tarfile, "data_filter"):
            tar.extractall(root, members=members, filter="data")
        else:
            tar.extractall(root, members=members)

    return target


def _fetch(uri: str, destination: Path, s3_helper: S3Helper | None) -> Path:
    """Bring a local or S3 file to ``destination``."""
    if _is_s3(uri):
        if s3_helper is None:
            raise ValueError(f"An S3 client is required to download {uri}")
        bucket, key = parse_s3_uri(uri)
        return s3_helper.download_file(bucket, key, destination)
    return _local_path(uri)


def _create_or_update_code_dir(
    model_dir: Path,
    inference_script: str | None,
    source_directory: str | None,
    dependencies: list[str],
    s3_helper: S3Helper | None,
    tmp: Path,
) -> None:
    code_dir = model_dir / "code"

    if source_directory and _is_s3(source_directory):
        local_code = _fetch(source_directory, tmp / "local_code.tar.gz", s3_helper)
        extract_tar(local_code, code_dir)
    elif source_directory:
        if code_dir.exists():
            shutil.rmtree(code_dir)
        shutil.copytree(source_directory, code_dir)
    else:
        code_dir.mkdir(parents=True, exist_ok=True)
        script = Path(inference_script)
        destination = code_dir / script.name
        if script.exists():
            shutil.copy2(script, destination)
        elif not destination.exists():
            raise FileNotFoundError(f"Inference script not found: {inference_script}")

    lib_dir = code_dir / "lib"
    lib_dir.mkdir(parents=True, exist_ok=True)
    for dependency in dependencies:
        dependency = Path(dependency)
        if dependency.is_dir():
            shutil.copytree(dependency, lib_dir / dependency.name, dirs_exist_ok=True)
        else:
            shutil.copy2(dependency, lib_dir)


def _save_model(
    repacked_model_uri: str,
    tmp_model_path: Path,
    s3_helper: S3Helper | None,
    kms_key: str | None,
) -> None:
    if _is_s3(repacked_model_uri):
        if s3_helper is None:
            raise ValueError(f"An S3 client is required to upload {repacked_model_uri}")
        bucket, key = parse_s3_uri(repacked_model_uri)
        params = {"Body": tmp_model_path.read_bytes(), "Bucket": bucket, "Key": key}
        if kms_key is not None:
            params["ServerSideEncryption"] = "aws:kms"
            params["SSEKMSKeyId"] = kms_key
        s3_helper.s3_client.put_object(**params)
    else:
        destination = _local_path(repacked_model_uri)
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(tmp_model_path, destination)


def repack_model(
    inference_script: str | None,
    source_directory: str | None,
    dependencies: list[str] | None,
    model_uri: str,
    repacked_model_uri: str,
    s3_helper: S3Helper | None = None,
    kms_key: str | None = None,
) -> str:
    """Add inference code to an existing model archive.

    The archive is unpacked and the code goes under ``code/``. A
    ``source_directory`` replaces ``code/`` entirely; a lone
    ``inference_script`` overwrites the file of the same name. Dependencies
    are copied into ``code/lib/``. Everything else in the archive is kept.

    Args:
        inference_script: Path of the entry point script
        source_directory: Local directory or S3 tarball with the code
        dependencies: Extra files or directories for ``code/lib``
        model_uri: Local path, ``file://`` or ``s3://`` URI of model.tar.gz
        repacked_model_uri: Where to write the repacked archive
        s3_helper: Needed when either URI is on S3
        kms_key: KMS key for server-side encryption of the S3 upload

    Returns:
        ``repacked_model_uri``
    """
    if inference_script is None and source_directory is None:
        raise ValueError("Either inference_script or source_directory is required")

    with tempfile.TemporaryDirectory() as tmp_name:
        tmp = Path(tmp_name)

        model_archive = _fetch(model_uri, tmp / "model.tar.gz", s3_helper)
        model_dir = extract_tar(model_archive, tmp / "model")

        _create_or_update_code_dir(
            model_dir, inference_script, source_directory, dependencies or [], s3_helper, tmp
        )

        tmp_model_path = tar_directory(model_dir, tmp / "temp-model.tar.gz")
        _save_model(repacked_model_uri, tmp_model_path, s3_helper, kms_key)

    logger.info("Repacked %s into %s", model_uri, repacked_model_uri)
    return repacked_model_uri
