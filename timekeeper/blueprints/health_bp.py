"""
Health check blueprint.

Endpoints:
    GET /health  — liveness: {status, timestamp, version}
    GET /docs    — JSON index of the API surface
"""

from flask import Blueprint, current_app, jsonify

from timekeeper.utils.helpers import isoformat, utcnow

health_bp = Blueprint("health", __name__)

API_INDEX = {
    "auth": {
        "POST /api/v1/auth/register": "Create an account",
        "POST /api/v1/auth/login": "Log in with email and password",
        "POST /api/v1/auth/refresh": "Exchange a refresh token for a new token pair",
        "POST /api/v1/auth/logout": "Log out (client discards tokens)",
        "GET /api/v1/auth/me": "Current user profile",
    },
    "time_entries": {
        "GET /api/v1/time-entries": "List time entries",
        "POST /api/v1/time-entries": "Create a time entry",
        "GET /api/v1/time-entries/stats": "Time entry totals",
        "GET /api/v1/time-entries/{id}": "Get a time entry",
        "PUT /api/v1/time-entries/{id}": "Replace a time entry",
        "DELETE /api/v1/time-entries/{id}": "Delete a time entry",
    },
    "daily_plans": {
        "GET /api/v1/daily-plans": "List daily plans",
        "POST /api/v1/daily-plans": "Create a daily plan",
        "GET /api/v1/daily-plans/today": "Today's plan (created from a template if missing)",
        "GET /api/v1/daily-plans/stats": "Plan goal completion",
        "GET /api/v1/daily-plans/date/{date}": "Plan for a date",
        "GET /api/v1/daily-plans/{id}": "Get a daily plan",
        "PUT /api/v1/daily-plans/{id}": "Replace a daily plan",
        "DELETE /api/v1/daily-plans/{id}": "Delete a daily plan",
        "PUT /api/v1/daily-plans/{id}/activities/{activity_id}": "Update one activity",
    },
    "statistics": {
        "GET /api/v1/statistics/overview": "Dashboard overview",
        "GET /api/v1/statistics/productivity": "Peak hours, focus sessions, consistency",
        "GET /api/v1/statistics/categories": "Time per category",
        "GET /api/v1/statistics/timeseries": "Chart series",
        "GET /api/v1/statistics/insights": "Insights and recommendations",
    },
    "health": {
        "GET /health": "Liveness probe",
        "GET /docs": "This index",
    },
}


@health_bp.route("/health", methods=["GET"])
def health():
    """Liveness probe — always 200 if the app is running."""
    return jsonify({
        "status": "healthy",
        "timestamp": isoformat(utcnow()),
        "version": current_app.config.get("APP_VERSION", "1.0.0"),
    }), 200


@health_bp.route("/docs", methods=["GET"])
def docs():
    return jsonify({
        "name": "Timekeeper API",
        "version": current_app.config.get("APP_VERSION", "1.0.0"),
        "authentication": "Authorization: Bearer <access_token>",
        "endpoints": API_INDEX,
    }), 200
