"""
Structured logging for the rate card estimator.

Two output modes, chosen by LOG_FORMAT:
  json — one JSON object per line (production)
  text — human-readable line with ``extra=`` fields appended as key=value
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict

SERVICE_NAME = "ratecard-estimator"

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """The ``extra=`` context attached to a record, in insertion order."""
    return {k: v for k, v in vars(record).items() if k not in _RESERVED_ATTRS}


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key, value in extra_fields(record).items():
            log_entry.setdefault(key, value)
        return json.dumps(log_entry, default=str)


class KeyValueFormatter(logging.Formatter):
    """Plain-text formatter for local development."""
    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    def format(self, record):
        line = super().format(record)
        context = " ".join(f"{k}={v}" for k, v in extra_fields(record).items())
        return f"{line} | {context}" if context else line


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging. Replaces any handlers already on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else KeyValueFormatter())
    root.handlers = [handler]

    # uvicorn's access log duplicates RequestTimingMiddleware
    for name in ["uvicorn.access", "httpcore", "httpx"]:
        logging.getLogger(name).setLevel(logging.WARNING)
