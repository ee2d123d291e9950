"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in timekeeper/__init__.py with no default limits; this module
applies granular limits per route category.

Usage:
    from timekeeper.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

AUTH_LIMIT = "10/minute"
API_LIMIT = "120/minute"

_API_BLUEPRINTS = ("time_entries", "daily_plans", "statistics")


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:   10/minute  (credential guessing)
        - Other API routes: 120/minute
        - Health / docs:    exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(AUTH_LIMIT)(bp)

    for bp_name in _API_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(API_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured — auth: %s, api: %s", AUTH_LIMIT, API_LIMIT)
