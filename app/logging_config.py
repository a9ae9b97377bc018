"""Structured logging for the SereneMinds API.

One JSON object per line on stdout. Structured fields travel under
``extra={"context": {...}}``; phone numbers in that context are masked, since
logs leave the database's access controls.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "sereneminds-api"
LOGGER_PREFIX = "sereneminds"

PHONE_CONTEXT_KEYS = frozenset({"phone", "phone_no", "destination", "caller_phone"})
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def mask_phone(value: Any) -> Any:
    """Keep the last four digits: ``919876543210`` -> ``********3210``."""
    if not isinstance(value, str) or len(value) <= 4:
        return value
    return "*" * (len(value) - 4) + value[-4:]


def _scrub(context: dict[str, Any]) -> dict[str, Any]:
    return {key: mask_phone(value) if key in PHONE_CONTEXT_KEYS else value for key, value in context.items()}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            entry["context"] = _scrub(context)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Binds per-turn fields (session, intent) to every record it emits."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra_context = kwargs.pop("context", None) or {}
        bound = dict(self.extra or {})
        if bound or extra_context:
            kwargs["extra"] = {"context": {**bound, **extra_context}}
        return msg, kwargs
