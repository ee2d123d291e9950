"""Shared helpers: UTC clock, date/datetime parsing, query-arg clamping
and the session commit wrapper every service goes through.

Datetimes are stored naive and always mean UTC. ``isoformat`` renders them
with a trailing ``Z`` so clients never have to guess the zone.
"""
import logging
from datetime import date, datetime, timezone

from timekeeper.models import db

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100
DEFAULT_STATS_DAYS = 30
MAX_STATS_DAYS = 365


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def parse_date_input(value, field="date"):
    """Parse a YYYY-MM-DD string, raising ValueError on bad input.

    Callers turn the ValueError into a 400.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Invalid {field} format. Use YYYY-MM-DD.") from exc


def parse_datetime_input(value, field="datetime"):
    """Parse an ISO-8601 timestamp to a naive UTC datetime.

    Accepts a trailing ``Z`` and explicit offsets; offsets are converted to
    UTC. A timestamp without an offset is taken to already be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid {field} format. Use ISO-8601.")
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid {field} format. Use ISO-8601.") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_pagination(page, limit):
    """Normalise page/limit: page < 1 → 1, limit outside [1, 100] → 20."""
    page = _to_int(page, 1)
    limit = _to_int(limit, DEFAULT_PAGE_LIMIT)
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        limit = DEFAULT_PAGE_LIMIT
    return page, limit


def clamp_days(days):
    """Normalise a statistics window: outside [1, 365] → 30."""
    days = _to_int(days, DEFAULT_STATS_DAYS)
    if days < 1 or days > MAX_STATS_DAYS:
        return DEFAULT_STATS_DAYS
    return days


# ── Database write helpers ───────────────────────────────────────────────────

def _write_or_rollback(write, action, resource, field):
    from sqlalchemy.exc import IntegrityError

    from timekeeper.core.exceptions import ConflictError

    try:
        write()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on %s: %s", action, exc.orig)
        raise ConflictError(resource=resource, field=field) from exc
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on %s", action)
        raise


def commit_or_rollback(resource="Record", field="id"):
    """Commit the current session; roll back and re-raise on failure.

    IntegrityError → ConflictError (duplicate / constraint violation)
    Anything else  → rolled back and propagated to the 500 handler
    """
    _write_or_rollback(db.session.commit, "commit", resource, field)


def flush_or_rollback(resource="Record", field="id"):
    """Flush pending rows with the same error mapping as commit_or_rollback.

    Used where generated ids are needed before the commit; a unique index
    can already fire here.
    """
    _write_or_rollback(db.session.flush, "flush", resource, field)
