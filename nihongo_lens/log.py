"""Structured logging for nihongo-lens.

Records are written to stderr as JSON lines. ``LOG_LEVEL`` controls the
verbosity and ``LOG_FORMAT=text`` switches to a human-readable format.
"""
import json
import logging
import os
import sys
from typing import Any

_EXTRA_FIELDS = ("endpoint", "status_code", "count")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, ensure_ascii=False, default=str)


def get_logger(name: str = "nihongo_lens") -> logging.Logger:
    """Get or create a structured logger.

    Usage:
        logger = get_logger(__name__)
        logger.warning("Upstream rejected request", extra={"endpoint": "chat", "status_code": 429})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

        handler = logging.StreamHandler(sys.stderr)
        if os.environ.get("LOG_FORMAT", "json") == "text":
            handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%H:%M:%S",
                )
            )
        else:
            handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    return logger
