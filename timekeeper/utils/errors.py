"""Standardised API error responses.

Usage
-----
    from timekeeper.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "DailyPlan not found")
    return api_error(E.VALIDATION_REQUIRED, "description is required")

Domain exceptions raised by services are translated here exactly once by
``register_error_handlers``; blueprints simply let them propagate.
"""

from __future__ import annotations

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from timekeeper.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (ERR_ prefix)."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Auth – HTTP 401
    UNAUTHORIZED = "ERR_UNAUTHORIZED"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"

    # Request shape – HTTP 405 / 413 / 415
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA_TYPE = "ERR_UNSUPPORTED_MEDIA_TYPE"

    # Throttling – HTTP 429
    RATE_LIMITED = "ERR_RATE_LIMITED"

    # Server – HTTP 500
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHORIZED: 401,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.METHOD_NOT_ALLOWED: 405,
    E.PAYLOAD_TOO_LARGE: 413,
    E.UNSUPPORTED_MEDIA_TYPE: 415,
    E.RATE_LIMITED: 429,
    E.INTERNAL: 500,
}

_HTTP_CODES: dict[int, str] = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHORIZED,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    409: E.CONFLICT_DUPLICATE,
    413: E.PAYLOAD_TOO_LARGE,
    415: E.UNSUPPORTED_MEDIA_TYPE,
    429: E.RATE_LIMITED,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field-level validation errors, etc.).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map domain exceptions and HTTP errors to JSON responses."""

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details)

    @app.errorhandler(AuthenticationError)
    def _authentication_error(e):
        return api_error(E.UNAUTHORIZED, str(e))

    @app.errorhandler(NotFoundError)
    def _not_found_error(e):
        logger.debug("Not found: %s", e)
        return api_error(E.NOT_FOUND, e.public_message)

    @app.errorhandler(ConflictError)
    def _conflict_error(e):
        return api_error(E.CONFLICT_DUPLICATE, str(e))

    @app.errorhandler(HTTPException)
    def _http_error(e):
        code = _HTTP_CODES.get(e.code, E.INTERNAL if e.code >= 500 else E.VALIDATION_INVALID)
        message = e.description or e.name
        if e.code == 429:
            message = f"Too many requests: {e.description}"
        return api_error(code, message, status=e.code)

    @app.errorhandler(Exception)
    def _unhandled_error(e):
        logger.error("Unhandled error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error", status=500)
