"""Object-storage helpers shared by the sweeper and the uploader.

Aliyun OSS speaks the S3 protocol, so the bucket is driven through a boto3
S3 client pointed at the OSS endpoint with virtual-hosted addressing.
"""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from raspi_uploader.config import OssConfig
from raspi_uploader.errors import StorageError


ROOT_PREFIX = "raspi/"
FOLDER_DATE_FORMAT = "%Y%m%d"

# Exceptions botocore raises for transport and service failures.
STORAGE_EXCEPTIONS = (BotoCoreError, ClientError)

_BUCKET_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")


def endpoint_url(endpoint: str) -> str:
    if "://" in endpoint:
        return endpoint
    return f"https://{endpoint}"


def check_bucket_name(bucket_name: str) -> str:
    """Return ``bucket_name`` if it is a valid OSS bucket name."""
    if not _BUCKET_NAME_RE.match(bucket_name):
        raise StorageError(f"Failed to get bucket: invalid bucket name {bucket_name!r}")
    return bucket_name


def create_client(config: OssConfig) -> Any:
    """Build an S3 client for the configured OSS endpoint."""
    try:
        return boto3.client(
            "s3",
            endpoint_url=endpoint_url(config.endpoint),
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.access_key_secret,
            region_name=config.region or None,
            config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
        )
    except (*STORAGE_EXCEPTIONS, ValueError) as exc:
        raise StorageError(f"Failed to create OSS client: {exc}") from exc


def folder_prefix(day: datetime) -> str:
    return f"{ROOT_PREFIX}{day.strftime(FOLDER_DATE_FORMAT)}/"


def object_key_for(path: Path | str, now: datetime) -> str:
    """Destination key for ``path`` uploaded at ``now``.

    The key is ``raspi/YYYYMMDD/<millisecond>_<basename>``.
    """
    millis = now.microsecond // 1000
    return f"{folder_prefix(now)}{millis}_{Path(path).name}"


def public_url(config: OssConfig, key: str) -> str:
    return f"https://{config.bucket_name}.{config.endpoint}/{key}"
