"""
Request id and timing middleware.

Every request gets an id: the caller's X-Request-ID when it is a short
token of safe characters, otherwise a fresh 12-hex-digit one. The id and
the elapsed time are returned as X-Request-ID / X-Request-Duration-Ms and
written to the access log.
"""

import logging
import re
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

# Liveness probes are polled constantly; keep them out of the access log
_QUIET_PATHS = frozenset({"/health"})

_CLIENT_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

SLOW_THRESHOLD_MS = 1000


def _request_id() -> str:
    supplied = request.headers.get("X-Request-ID", "")
    if _CLIENT_ID_RE.match(supplied):
        return supplied
    return uuid.uuid4().hex[:12]


def _level_for(status: int, duration_ms: float) -> int:
    if status >= 500:
        return logging.ERROR
    if duration_ms > SLOW_THRESHOLD_MS:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    """Register the before/after hooks on ``app``."""

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()
        g.request_id = _request_id()

    @app.after_request
    def _finish_timer(response):
        started = g.get("request_start")
        if started is None:
            return response

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path not in _QUIET_PATHS:
            level = _level_for(response.status_code, duration_ms)
            label = "Slow request" if level == logging.WARNING else "Request"
            logger.log(
                level,
                "%s: %s %s %d (%.0fms)",
                label, request.method, request.path, response.status_code, duration_ms,
                extra={
                    "method": request.method,
                    "path": request.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "remote_addr": request.remote_addr,
                },
            )
        return response
