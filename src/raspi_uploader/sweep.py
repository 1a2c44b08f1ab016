"""Standalone retention sweep for the upload bucket."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from raspi_uploader.config import load_config
from raspi_uploader.errors import ConfigError, StorageError
from raspi_uploader.logging import configure_logging
from raspi_uploader.sweeper import run_sweep

logger = logging.getLogger(__name__)


def main(config_path: Path | None = None) -> int:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        print(f"Failed to load config: {exc}")
        return 1
    configure_logging(config.logging)
    try:
        removed = run_sweep(config)
    except StorageError as exc:
        logger.error("Sweep failed: %s", exc)
        return 1
    logger.info("Swept %s expired folders", len(removed))
    return 0


if __name__ == "__main__":
    sys.exit(main())
