"""Retention sweep for dated upload folders in the bucket."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from raspi_uploader.config import AppConfig
from raspi_uploader.errors import StorageError
from raspi_uploader.storage import (
    FOLDER_DATE_FORMAT,
    ROOT_PREFIX,
    STORAGE_EXCEPTIONS,
    check_bucket_name,
    create_client,
)

logger = logging.getLogger(__name__)

RETENTION = timedelta(days=3)

_FOLDER_DATE_RE = re.compile(r"^[0-9]{8}$")


def parse_folder_date(prefix: str) -> Optional[datetime]:
    """Return the UTC midnight encoded in ``raspi/YYYYMMDD/``, or None."""
    name = prefix
    if name.startswith(ROOT_PREFIX):
        name = name[len(ROOT_PREFIX):]
    if name.endswith("/"):
        name = name[:-1]
    if not _FOLDER_DATE_RE.match(name):
        return None
    try:
        return datetime.strptime(name, FOLDER_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def is_expired(folder_date: datetime, now: datetime, retention: timedelta = RETENTION) -> bool:
    return now - folder_date > retention


def _list_folders(client: Any, bucket: str, marker: str) -> dict:
    try:
        return client.list_objects(
            Bucket=bucket, Prefix=ROOT_PREFIX, Delimiter="/", Marker=marker
        )
    except STORAGE_EXCEPTIONS as exc:
        raise StorageError(f"Failed to list folders: {exc}") from exc


def _delete_folder(client: Any, bucket: str, prefix: str) -> int:
    # A single page is assumed to hold the whole folder.
    try:
        listing = client.list_objects(Bucket=bucket, Prefix=prefix)
    except STORAGE_EXCEPTIONS as exc:
        raise StorageError(f"Failed to list contents of folder {prefix}: {exc}") from exc

    keys = [obj["Key"] for obj in listing.get("Contents", [])]
    if not keys:
        logger.debug("Folder %s is already empty", prefix)
        return 0

    try:
        response = client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
    except STORAGE_EXCEPTIONS as exc:
        raise StorageError(f"Failed to delete folder {prefix}: {exc}") from exc

    errors = response.get("Errors", [])
    if errors:
        first = errors[0]
        raise StorageError(
            f"Failed to delete folder {prefix}: {len(errors)} object(s) not deleted "
            f"({first.get('Key')}: {first.get('Code')} {first.get('Message')})"
        )
    return len(keys)


def sweep_expired_folders(
    client: Any, bucket: str, now: Optional[datetime] = None
) -> list[str]:
    """Delete every ``raspi/YYYYMMDD/`` folder older than the retention window.

    Folders whose names are not dates are left alone. Any listing or delete
    failure raises StorageError and stops the sweep. A naive ``now`` is
    taken as local time. Returns the prefixes of the deleted folders.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone(timezone.utc)
    removed: list[str] = []
    marker = ""
    while True:
        page = _list_folders(client, bucket, marker)
        for entry in page.get("CommonPrefixes", []):
            prefix = entry["Prefix"]
            folder_date = parse_folder_date(prefix)
            if folder_date is None:
                logger.debug("Skipping non-date folder %s", prefix)
                continue
            if not is_expired(folder_date, now):
                continue
            count = _delete_folder(client, bucket, prefix)
            logger.info("Deleted expired folder %s (%d objects)", prefix, count)
            removed.append(prefix)

        if not page.get("IsTruncated"):
            break
        prefixes = page.get("CommonPrefixes", [])
        next_marker = page.get("NextMarker") or (prefixes[-1]["Prefix"] if prefixes else "")
        if not next_marker or next_marker == marker:
            raise StorageError("Failed to list folders: truncated listing without a next marker")
        marker = next_marker
    return removed


def run_sweep(config: AppConfig, now: Optional[datetime] = None, client: Any = None) -> list[str]:
    bucket = check_bucket_name(config.oss.bucket_name)
    if client is None:
        client = create_client(config.oss)
    return sweep_expired_folders(client, bucket, now)
