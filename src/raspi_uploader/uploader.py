"""Single-file upload to the OSS bucket."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from raspi_uploader.config import AppConfig
from raspi_uploader.errors import LocalFileError, StorageError
from raspi_uploader.storage import (
    STORAGE_EXCEPTIONS,
    check_bucket_name,
    create_client,
    object_key_for,
    public_url,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    public_url: str
    key: str


def upload_file(
    config: AppConfig,
    path: Path | str,
    now: Optional[datetime] = None,
    client: Any = None,
) -> UploadResult:
    """Store ``path`` under today's ``raspi/`` folder and return its public URL.

    The URL is built from the bucket and endpoint names; nothing checks that
    the bucket actually allows anonymous reads.
    """
    if client is None:
        client = create_client(config.oss)
    bucket = check_bucket_name(config.oss.bucket_name)

    local_path = Path(path)
    try:
        handle = local_path.open("rb")
    except OSError as exc:
        raise LocalFileError(f"Failed to open file {local_path}: {exc}") from exc

    key = object_key_for(local_path, now or datetime.now())
    with handle:
        logger.info("Uploading %s to %s/%s", local_path, bucket, key)
        try:
            client.put_object(Bucket=bucket, Key=key, Body=handle)
        except (*STORAGE_EXCEPTIONS, UnicodeError) as exc:
            raise StorageError(f"Failed to upload {local_path}: {exc}") from exc

    url = public_url(config.oss, key)
    logger.info("Uploaded %s", url)
    return UploadResult(public_url=url, key=key)
