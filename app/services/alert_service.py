"""Operator alerts posted to a Telegram chat."""

import os
import time
from typing import Optional

import httpx

from app.logging_config import get_logger

logger = get_logger("alert_service")

ALERT_BOT_TOKEN = os.environ.get("ALERT_BOT_TOKEN")
ALERT_CHAT_ID = os.environ.get("ALERT_CHAT_ID")
ALERT_DEDUP_SECONDS = float(os.environ.get("ALERT_DEDUP_SECONDS", "60"))

_recent_alerts: dict[str, float] = {}


def _is_duplicate(key: str, now: float) -> bool:
    for stale in [k for k, sent_at in _recent_alerts.items() if now - sent_at > ALERT_DEDUP_SECONDS]:
        _recent_alerts.pop(stale, None)
    if key in _recent_alerts:
        return True
    _recent_alerts[key] = now
    return False


def send_alert(level: str, message: str, context: Optional[dict] = None) -> bool:
    """Send an alert to the ops chat.

    Args:
        level: INFO, WARNING, ERROR, CRITICAL
        message: Alert message
        context: Optional context dict

    Returns:
        True if Telegram accepted it. Unconfigured, duplicate or failed alerts return False.
    """
    if not ALERT_BOT_TOKEN or not ALERT_CHAT_ID:
        logger.warning(f"Alert not configured: {level} - {message}")
        return False

    if _is_duplicate(f"{level}:{message}", time.monotonic()):
        logger.debug(f"Duplicate alert suppressed: {level} - {message}")
        return False

    text = f"[{level}] SereneMinds API\n\n{message}"
    if context:
        text += "\n\n" + "\n".join(f"{k}: {v}" for k, v in context.items())

    try:
        with httpx.Client(timeout=10) as client:
            response = client.post(
                f"https://api.telegram.org/bot{ALERT_BOT_TOKEN}/sendMessage",
                json={"chat_id": ALERT_CHAT_ID, "text": text},
            )
            return response.status_code == 200
    except Exception as e:
        logger.error(f"Failed to send alert: {e}")
        return False


def alert_error(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("ERROR", message, context)


def alert_critical(message: str, context: Optional[dict] = None) -> bool:
    return send_alert("CRITICAL", message, context)


def reset_alert_history() -> None:
    _recent_alerts.clear()
