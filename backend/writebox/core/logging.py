"""Logging utilities for Writebox."""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("WRITEBOX_LOG_LEVEL", "INFO")

# Gateway URLs carry the API key as a query parameter.
_API_KEY_RE = re.compile(r"([?&]key=)[^&\s\"']+")

# Libraries that log every outgoing request URL at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "urllib3")


def redact(message: str) -> str:
    return _API_KEY_RE.sub(r"\1***", message)


class RedactingFilter(logging.Filter):
    """Mask API keys before a record reaches any output."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON documents.

    Extra attributes prefixed with ``ctx_`` (gateway feature, store
    collection) are copied into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - thin wrapper
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                payload[key[len("ctx_") :]] = value
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Configure the root logger; JSON lines by default."""
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactingFilter())
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "writebox") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "redact", "RedactingFilter", "JsonFormatter"]
