"""
Timekeeper
Blueprint registry and shared request helpers.
"""

from flask import g, request

from timekeeper.utils.helpers import clamp_days, clamp_pagination


def current_user_id() -> str:
    """Id of the authenticated caller, set by the JWT middleware."""
    return g.current_user_id


def json_body() -> dict:
    """Request JSON as a dict; anything else is treated as an empty body."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def pagination_args() -> tuple[int, int]:
    """page / limit query params, clamped (page >= 1, limit in [1, 100] else 20)."""
    return clamp_pagination(request.args.get("page", 1), request.args.get("limit", 20))


def days_arg() -> int:
    """days query param for statistics windows (default 30, clamped to [1, 365])."""
    return clamp_days(request.args.get("days", 30))
