"""
JWT Auth Middleware — enforces Bearer tokens on the /api/v1 surface.

Every /api/v1/* request except the public auth endpoints and CORS
preflights must carry ``Authorization: Bearer <access token>``. On success
the identity is placed on ``g.current_user_id`` / ``g.current_user_email``;
otherwise the request is answered with 401 before any view runs.
"""

from flask import g, request

from timekeeper.core.exceptions import AuthenticationError
from timekeeper.services.auth_service import validate_access_token


API_PREFIX = "/api/v1/"

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/register",
    "/api/v1/auth/refresh",
)


def extract_bearer_token(header: str | None) -> str | None:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user_id = None
        g.current_user_email = None

        path = request.path
        if not path.startswith(API_PREFIX) or request.method == "OPTIONS":
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise AuthenticationError("Authorization header with Bearer token is required")

        claims = validate_access_token(token)
        g.current_user_id = claims["user_id"]
        g.current_user_email = claims["email"]
