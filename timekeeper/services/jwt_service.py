"""
JWT Service — Token generation and verification.

Access token:  24 hours  (configurable via JWT_EXPIRE_HOURS)
Refresh token: 7 days    (configurable via JWT_REFRESH_EXPIRE_HOURS)
Algorithm:     HS256

Token payload:
{
    "user_id": <user uuid>,
    "email": <user email>,
    "sub": "access" | "refresh",
    "iat": <issued_at>,
    "nbf": <not_before>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

The token type lives in ``sub``; an access token is never accepted where a
refresh token is expected, and vice versa.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app


# ─── Defaults ────────────────────────────────────────────────
DEFAULT_ACCESS_EXPIRE_HOURS = 24
DEFAULT_REFRESH_EXPIRE_HOURS = 168
ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


def _get_secret():
    """Get the JWT signing secret from app config."""
    return current_app.config["JWT_SECRET"]


def _get_access_expires() -> int:
    """Access token lifetime in seconds."""
    return current_app.config.get("JWT_EXPIRE_HOURS", DEFAULT_ACCESS_EXPIRE_HOURS) * 3600


def _get_refresh_expires() -> int:
    """Refresh token lifetime in seconds."""
    return current_app.config.get("JWT_REFRESH_EXPIRE_HOURS", DEFAULT_REFRESH_EXPIRE_HOURS) * 3600


# ═══════════════════════════════════════════════════════════════
# Token Generation
# ═══════════════════════════════════════════════════════════════
def _encode(user_id: str, email: str, token_type: str, lifetime_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user_id,
        "email": email,
        "sub": token_type,
        "iat": now,
        "nbf": now,
        "exp": now + timedelta(seconds=lifetime_seconds),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


def generate_access_token(user_id: str, email: str) -> str:
    """Generate an access token."""
    return _encode(user_id, email, ACCESS, _get_access_expires())


def generate_refresh_token(user_id: str, email: str) -> str:
    """Generate a long-lived refresh token."""
    return _encode(user_id, email, REFRESH, _get_refresh_expires())


def generate_token_pair(user_id: str, email: str) -> dict:
    """Generate both access + refresh tokens."""
    return {
        "access_token": generate_access_token(user_id, email),
        "refresh_token": generate_refresh_token(user_id, email),
        "token_type": "Bearer",
        "expires_in": _get_access_expires(),
    }


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def decode_token(token: str, expected_type: str = ACCESS) -> dict:
    """
    Decode and verify a JWT token.

    Returns the payload dict on success.
    Raises jwt.exceptions on failure (ExpiredSignatureError, InvalidTokenError, etc.)
    """
    payload = jwt.decode(
        token,
        _get_secret(),
        algorithms=[ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )

    # Verify token type
    if payload.get("sub") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token, got {payload.get('sub')}")
    if not payload.get("user_id"):
        raise jwt.InvalidTokenError("Token carries no user_id claim")

    return payload


def decode_access_token(token: str) -> dict:
    """Decode an access token — convenience wrapper."""
    return decode_token(token, expected_type=ACCESS)


def decode_refresh_token(token: str) -> dict:
    """Decode a refresh token — convenience wrapper."""
    return decode_token(token, expected_type=REFRESH)
