"""
Time Entry Blueprint.

  GET    /api/v1/time-entries          — list (category, date_from, date_to, search, page, limit)
  POST   /api/v1/time-entries          — create
  GET    /api/v1/time-entries/stats    — totals + category breakdown (days)
  GET    /api/v1/time-entries/<id>     — get
  PUT    /api/v1/time-entries/<id>     — full update
  DELETE /api/v1/time-entries/<id>     — soft delete

Service layer owns all business logic and commits.
"""

from flask import Blueprint, jsonify, request

from timekeeper.blueprints import current_user_id, days_arg, json_body, pagination_args
from timekeeper.services import statistics_service, time_service

time_entry_bp = Blueprint("time_entries", __name__, url_prefix="/api/v1/time-entries")


@time_entry_bp.route("", methods=["GET"])
def list_entries():
    page, limit = pagination_args()
    filters = {
        "category": request.args.get("category"),
        "date_from": request.args.get("date_from"),
        "date_to": request.args.get("date_to"),
        "search": request.args.get("search"),
        "page": page,
        "limit": limit,
    }
    return jsonify(time_service.list_entries(current_user_id(), filters)), 200


@time_entry_bp.route("", methods=["POST"])
def create_entry():
    entry = time_service.create_entry(current_user_id(), json_body())
    return jsonify(entry.to_dict()), 201


@time_entry_bp.route("/stats", methods=["GET"])
def entry_stats():
    return jsonify(statistics_service.time_entry_summary(current_user_id(), days_arg())), 200


@time_entry_bp.route("/<entry_id>", methods=["GET"])
def get_entry(entry_id):
    entry = time_service.get_entry(current_user_id(), entry_id)
    return jsonify(entry.to_dict()), 200


@time_entry_bp.route("/<entry_id>", methods=["PUT"])
def update_entry(entry_id):
    entry = time_service.update_entry(current_user_id(), entry_id, json_body())
    return jsonify(entry.to_dict()), 200


@time_entry_bp.route("/<entry_id>", methods=["DELETE"])
def delete_entry(entry_id):
    time_service.delete_entry(current_user_id(), entry_id)
    return jsonify({"message": "Time entry deleted successfully"}), 200
