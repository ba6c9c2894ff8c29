"""Structured logging configuration.

Provides JSON-formatted logs with request_id correlation. structlog renders
through the stdlib logger factory so both ``logging.getLogger`` and
``structlog.get_logger`` end up in the same handler; values bound with
``structlog.contextvars`` are attached to stdlib records as well.
"""
from __future__ import annotations

import json
import logging as _logging
import sys
import time
from typing import Any, Dict

import structlog

# Attributes every LogRecord carries; anything else was passed via ``extra``
_RECORD_ATTRS = set(vars(_logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(_logging.Formatter):
    def format(self, record) -> str:  # noqa: D401 - record is LogRecord
        base: Dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        base.update(structlog.contextvars.get_contextvars())
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                base[key] = value
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for application startup."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    handler = _logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root = _logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())


def bind_request_context(**kwargs: Any) -> None:
    """Replace the per-request logging context (request_id, method, path)."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)


__all__ = ["JsonFormatter", "configure_logging", "bind_request_context"]
