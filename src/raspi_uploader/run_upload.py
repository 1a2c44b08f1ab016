"""Entrypoint: sweep expired folders, upload one file, announce it."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from raspi_uploader.config import load_config
from raspi_uploader.errors import UploaderError
from raspi_uploader.logging import configure_logging
from raspi_uploader.notifier import send_notification
from raspi_uploader.sweeper import run_sweep
from raspi_uploader.uploader import upload_file

logger = logging.getLogger(__name__)

USAGE = "Usage: raspi-upload <file-path>"


def main(argv: Optional[Sequence[str]] = None, config_path: Path | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print(USAGE)
        return 1
    file_path = Path(args[0])

    try:
        config = load_config(config_path)
    except UploaderError as exc:
        print(f"Failed to load config: {exc}")
        return 1
    configure_logging(config.logging)

    # A failed sweep must not block the upload.
    try:
        removed = run_sweep(config)
        logger.info("Swept %d expired folders", len(removed))
    except UploaderError as exc:
        logger.error("Failed to clean up expired folders: %s", exc)

    try:
        result = upload_file(config, file_path)
    except UploaderError as exc:
        print(f"Failed to upload file: {exc}")
        return 1

    try:
        send_notification(config.dingtalk, result.public_url)
    except UploaderError as exc:
        print(f"Failed to send DingTalk message: {exc}")
        return 1

    print("File uploaded and notification sent.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
