"""
Auth Blueprint — JWT authentication endpoints.

  POST /api/v1/auth/register    — email + password + name → {user, tokens}
  POST /api/v1/auth/login       — email + password → {user, tokens}
  POST /api/v1/auth/refresh     — refresh token → new token pair
  POST /api/v1/auth/logout      — acknowledge; tokens are stateless
  GET  /api/v1/auth/me          — current user profile
"""

from flask import Blueprint, jsonify

from timekeeper.blueprints import current_user_id, json_body
from timekeeper.services import auth_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Create an account.

    Body: { "email": "...", "password": "...", "name": "..." }
    """
    return jsonify(auth_service.register_user(json_body())), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password, return JWT pair.

    Body: { "email": "...", "password": "..." }
    """
    return jsonify(auth_service.authenticate_user(json_body())), 200


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """Body: { "refresh_token": "..." }"""
    tokens = auth_service.refresh_tokens(json_body().get("refresh_token"))
    return jsonify(tokens), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    # Nothing is stored server-side; the client drops its tokens.
    return jsonify({"message": "Logged out successfully. Discard your tokens."}), 200


@auth_bp.route("/me", methods=["GET"])
def me():
    user = auth_service.get_user(current_user_id())
    return jsonify(user.to_dict()), 200
