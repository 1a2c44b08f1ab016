"""Configuration loader for raspi-uploader."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Any, Dict

import yaml

from raspi_uploader.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.yaml")
CONFIG_ENV_VAR = "RASPI_UPLOADER_CONFIG"


@dataclass(frozen=True)
class OssConfig:
    endpoint: str
    access_key_id: str
    access_key_secret: str
    bucket_name: str
    region: str


@dataclass(frozen=True)
class DingtalkConfig:
    webhook: str
    secret: str


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    file_logging: bool
    log_dir: Path


@dataclass(frozen=True)
class AppConfig:
    oss: OssConfig
    dingtalk: DingtalkConfig
    logging: LoggingConfig


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a mapping")
    return value


def _text(data: Dict[str, Any], key: str) -> str:
    # Missing keys surface later as auth or URL failures.
    value = data.get(key)
    return "" if value is None else str(value)


def region_from_endpoint(endpoint: str) -> str:
    """Derive the signing region from an endpoint host.

    ``oss-cn-hangzhou.aliyuncs.com`` becomes ``oss-cn-hangzhou``.
    """
    host = endpoint.split("://", 1)[-1]
    return host.split(".", 1)[0]


def resolve_config_path(path: Path | None = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from YAML."""
    config_path = resolve_config_path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {config_path}: {exc}") from exc
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML in {config_path}: {exc}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    oss_raw = _section(raw, "aliyun_oss")
    dingtalk_raw = _section(raw, "dingtalk_bot")
    logging_raw = _section(raw, "logging")

    endpoint = _text(oss_raw, "endpoint")
    return AppConfig(
        oss=OssConfig(
            endpoint=endpoint,
            access_key_id=_text(oss_raw, "access_key_id"),
            access_key_secret=_text(oss_raw, "access_key_secret"),
            bucket_name=_text(oss_raw, "bucket_name"),
            region=_text(oss_raw, "region") or region_from_endpoint(endpoint),
        ),
        dingtalk=DingtalkConfig(
            webhook=_text(dingtalk_raw, "webhook"),
            secret=_text(dingtalk_raw, "secret"),
        ),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "INFO")).upper(),
            file_logging=bool(logging_raw.get("file_logging", False)),
            log_dir=Path(logging_raw.get("log_dir", "logs")),
        ),
    )
