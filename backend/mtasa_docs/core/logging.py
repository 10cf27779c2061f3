"""Logging utilities for the docs cache service."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

LOG_LEVEL_ENV = "MTADOCS_LOG_LEVEL"
LOG_FORMAT_ENV = "MTADOCS_LOG_FORMAT"
CONTEXT_PREFIX = "ctx_"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``ctx_*`` extras are copied through."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - thin wrapper
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith(CONTEXT_PREFIX):
                payload[key[len(CONTEXT_PREFIX):]] = value
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int | None = None, use_json: bool | None = None) -> None:
    """Configure the root logger.

    Logs go to stderr so CLI output on stdout stays clean. Level and format
    default to ``MTADOCS_LOG_LEVEL`` and ``MTADOCS_LOG_FORMAT`` (``json`` or
    ``text``).
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    if use_json is None:
        use_json = os.environ.get(LOG_FORMAT_ENV, "json").lower() != "text"
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stderr)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"))
    root.handlers = [handler]


def get_logger(name: str = "mtasa_docs") -> logging.Logger:
    """Return a named logger, configuring the root on first use."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def log_extra(**fields: Any) -> dict[str, Any]:
    """Build an ``extra`` mapping the JSON formatter emits as top-level keys."""
    return {f"{CONTEXT_PREFIX}{key}": value for key, value in fields.items()}


__all__ = ["configure_logging", "get_logger", "log_extra", "JsonFormatter"]
