"""Structured logs for the content service.

Every HTTP request gets a correlation id (see the middleware in ``main.py``);
``RequestIdFilter`` copies it onto each record emitted while that request is
handled, and ``JSONFormatter`` writes one JSON object per line.
"""
from __future__ import annotations
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional, Union

_current_request: ContextVar[Optional[str]] = ContextVar("current_request", default=None)


def set_request_id(rid: Optional[str]) -> None:
    _current_request.set(rid)


def get_request_id() -> Optional[str]:
    return _current_request.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """One line per record, stamped with the time the event was logged."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: Union[int, str] = "INFO") -> logging.Logger:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JSONFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    return logging.getLogger("curriculum_content")
