"""
Statistics Blueprint — read-only aggregates for the calling user.

  GET /api/v1/statistics/overview      — days, date_from, date_to
  GET /api/v1/statistics/productivity  — days
  GET /api/v1/statistics/categories    — days, category
  GET /api/v1/statistics/timeseries    — days, metric (time|activities|goals), granularity (hour|day|week)
  GET /api/v1/statistics/insights      — days

days defaults to 30; values outside [1, 365] fall back to 30.
"""

from flask import Blueprint, jsonify, request

from timekeeper.blueprints import current_user_id, days_arg
from timekeeper.services import statistics_service

statistics_bp = Blueprint("statistics", __name__, url_prefix="/api/v1/statistics")


@statistics_bp.route("/overview", methods=["GET"])
def overview():
    stats = statistics_service.get_overview(
        current_user_id(),
        days_arg(),
        date_from=request.args.get("date_from"),
        date_to=request.args.get("date_to"),
    )
    return jsonify(stats), 200


@statistics_bp.route("/productivity", methods=["GET"])
def productivity():
    return jsonify(statistics_service.get_productivity(current_user_id(), days_arg())), 200


@statistics_bp.route("/categories", methods=["GET"])
def categories():
    stats = statistics_service.get_categories(
        current_user_id(), days_arg(), category=request.args.get("category")
    )
    return jsonify(stats), 200


@statistics_bp.route("/timeseries", methods=["GET"])
def timeseries():
    series = statistics_service.get_timeseries(
        current_user_id(),
        days_arg(),
        metric=request.args.get("metric", "time"),
        granularity=request.args.get("granularity", "day"),
    )
    return jsonify(series), 200


@statistics_bp.route("/insights", methods=["GET"])
def insights():
    return jsonify(statistics_service.get_insights(current_user_id(), days_arg())), 200
