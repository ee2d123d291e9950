"""
Daily Plan Blueprint.

  GET    /api/v1/daily-plans                                — list (date_from, date_to, status, page, limit)
  POST   /api/v1/daily-plans                                — create with activities
  GET    /api/v1/daily-plans/today                          — get or provision today's plan
  GET    /api/v1/daily-plans/stats                          — goal completion (days)
  GET    /api/v1/daily-plans/date/<YYYY-MM-DD>              — plan for a date
  GET    /api/v1/daily-plans/<id>                           — get
  PUT    /api/v1/daily-plans/<id>                           — full update (activities replaced)
  DELETE /api/v1/daily-plans/<id>                           — soft delete with activities
  PUT    /api/v1/daily-plans/<id>/activities/<activity_id>  — partial activity update
"""

from flask import Blueprint, jsonify, request

from timekeeper.blueprints import current_user_id, days_arg, json_body, pagination_args
from timekeeper.services import daily_plan_service, statistics_service

daily_plan_bp = Blueprint("daily_plans", __name__, url_prefix="/api/v1/daily-plans")


@daily_plan_bp.route("", methods=["GET"])
def list_plans():
    page, limit = pagination_args()
    filters = {
        "date_from": request.args.get("date_from"),
        "date_to": request.args.get("date_to"),
        "status": request.args.get("status"),
        "page": page,
        "limit": limit,
    }
    return jsonify(daily_plan_service.list_plans(current_user_id(), filters)), 200


@daily_plan_bp.route("", methods=["POST"])
def create_plan():
    plan = daily_plan_service.create_plan(current_user_id(), json_body())
    return jsonify(plan.to_dict()), 201


@daily_plan_bp.route("/today", methods=["GET"])
def today():
    plan = daily_plan_service.get_or_create_today(current_user_id())
    return jsonify(plan.to_dict()), 200


@daily_plan_bp.route("/stats", methods=["GET"])
def plan_stats():
    return jsonify(statistics_service.daily_plan_summary(current_user_id(), days_arg())), 200


@daily_plan_bp.route("/date/<plan_date>", methods=["GET"])
def get_by_date(plan_date):
    plan = daily_plan_service.get_plan_by_date(current_user_id(), plan_date)
    return jsonify(plan.to_dict()), 200


@daily_plan_bp.route("/<plan_id>", methods=["GET"])
def get_plan(plan_id):
    plan = daily_plan_service.get_plan(current_user_id(), plan_id)
    return jsonify(plan.to_dict()), 200


@daily_plan_bp.route("/<plan_id>", methods=["PUT"])
def update_plan(plan_id):
    plan = daily_plan_service.update_plan(current_user_id(), plan_id, json_body())
    return jsonify(plan.to_dict()), 200


@daily_plan_bp.route("/<plan_id>", methods=["DELETE"])
def delete_plan(plan_id):
    daily_plan_service.delete_plan(current_user_id(), plan_id)
    return jsonify({"message": "Daily plan deleted successfully"}), 200


@daily_plan_bp.route("/<plan_id>/activities/<activity_id>", methods=["PUT"])
def update_activity(plan_id, activity_id):
    activity = daily_plan_service.update_activity(
        current_user_id(), plan_id, activity_id, json_body()
    )
    return jsonify(activity.to_dict()), 200
