"""DingTalk chat-bot notifications with signed webhook URLs."""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
from datetime import datetime
from typing import Any, Optional

import requests

from raspi_uploader.config import DingtalkConfig
from raspi_uploader.errors import EncodingError, NetworkError, ProtocolError

logger = logging.getLogger(__name__)

MESSAGE_TITLE = "文件上传通知"
TIME_FORMAT = "%H:%M:%S"


def hmac_sha256_base64(key: str, message: str) -> str:
    digest = hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def calculate_sign(secret: str, timestamp: int) -> str:
    """Return base64(HMAC-SHA256(secret, "<timestamp>\\n<secret>"))."""
    return hmac_sha256_base64(secret, f"{timestamp}\n{secret}")


def signed_webhook_url(webhook: str, secret: str, timestamp: int) -> str:
    # The configured webhook already carries ?access_token=..., so the
    # signature parameters are always appended with '&'.
    sign = calculate_sign(secret, timestamp)
    return f"{webhook}&timestamp={timestamp}&sign={sign}"


def format_time(now: datetime) -> str:
    return f"{now.year:04d}年{now.month:02d}月{now.day:02d}日 {now.strftime(TIME_FORMAT)}"


def build_message(url: str, now: datetime) -> dict[str, Any]:
    text = (
        "### 树莓派图片上传通知\n"
        f"**时间**: {format_time(now)}\n\n"
        f"![图片预览]({url})\n\n"
        f"[点击查看原图]({url})"
    )
    return {"msgtype": "markdown", "markdown": {"title": MESSAGE_TITLE, "text": text}}


def _log_api_error(response: requests.Response) -> None:
    try:
        body = response.json()
    except ValueError:
        return
    if isinstance(body, dict) and body.get("errcode", 0) != 0:
        logger.warning(
            "DingTalk rejected the message: errcode=%s errmsg=%s",
            body.get("errcode"),
            body.get("errmsg"),
        )


def send_notification(
    config: DingtalkConfig,
    url: str,
    now: Optional[datetime] = None,
    session: Optional[requests.Session] = None,
) -> None:
    """Post a markdown message linking ``url`` to the DingTalk webhook."""
    timestamp = int(time.time() * 1000)
    webhook_url = signed_webhook_url(config.webhook, config.secret, timestamp)
    message = build_message(url, now or datetime.now())

    try:
        body = json.dumps(message, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Failed to encode message as JSON: {exc}") from exc

    http = session or requests
    try:
        response = http.post(
            webhook_url,
            data=body,
            headers={"Content-Type": "application/json"},
        )
    except requests.RequestException as exc:
        raise NetworkError(f"Webhook request failed: {exc}") from exc

    if response.status_code != 200:
        raise ProtocolError(
            f"DingTalk API returned error: {response.status_code} {response.reason}, "
            f"{response.text}"
        )
    _log_api_error(response)
    logger.info("Notification sent for %s", url)
