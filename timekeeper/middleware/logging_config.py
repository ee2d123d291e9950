"""
Structured logging configuration.

- Development: single-line coloured output
- Production: one JSON object per line for log shippers
- LOG_LEVEL picks the level, LOG_FORMAT (json | readable) forces a format

Every record emitted while a request is active carries that request's id
and the authenticated user id, so service-level log lines can be joined to
the access log written by ``timing.py``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_app_context


class RequestContextFilter(logging.Filter):
    """Copy request_id / user_id from ``flask.g`` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_app_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = g.get("request_id")
            if getattr(record, "user_id", None) is None:
                record.user_id = g.get("current_user_id")
        return True


class JSONFormatter(logging.Formatter):
    """Render a record as a flat JSON object."""

    EXTRA_FIELDS = (
        "request_id",
        "user_id",
        "method",
        "path",
        "status",
        "duration_ms",
        "remote_addr",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key in self.EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger [request-id]: message`` with ANSI level colours."""

    LEVEL_COLOURS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        request_id = getattr(record, "request_id", None)
        context = f" [{request_id}]" if request_id else ""
        line = (
            f"{colour}{stamp} {record.levelname:<8}{self.RESET} "
            f"{record.name}{context}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _use_json(app) -> bool:
    forced = os.getenv("LOG_FORMAT", "").lower()
    if forced in ("json", "readable"):
        return forced == "json"
    return not app.debug and not app.testing


def configure_logging(app):
    """Install one stderr handler on the root logger.

    Called first in ``create_app`` so extension setup is logged too. The
    root handlers are replaced rather than appended to; the test suite
    builds apps repeatedly.
    """
    as_json = _use_json(app)
    default_level = "INFO" if as_json else "DEBUG"
    level_name = os.getenv("LOG_LEVEL", default_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if as_json else ReadableFormatter())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)

    for chatty in ("werkzeug", "sqlalchemy.engine", "alembic"):
        logging.getLogger(chatty).setLevel(logging.WARNING)

    if not app.testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if as_json else "readable")
