"""
Auth Service — registration, login, token refresh and token validation.

Passwords are bcrypt-hashed (timekeeper.utils.crypto); tokens come from
jwt_service. Failures surface as AuthenticationError (401),
ValidationError (400) or ConflictError (409).
"""

import logging

import jwt
from email_validator import EmailNotValidError, validate_email
from flask import current_app

from timekeeper.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from timekeeper.models import db
from timekeeper.models.auth import User
from timekeeper.services.jwt_service import (
    decode_access_token,
    decode_refresh_token,
    generate_token_pair,
)
from timekeeper.utils.crypto import hash_password, verify_password
from timekeeper.utils.helpers import commit_or_rollback

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
INVALID_CREDENTIALS = "Invalid email or password"


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required", details={"email": "required"})
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"}) from e
    return valid.normalized.lower()


def _validate_registration(data: dict) -> tuple[str, str, str]:
    email = _normalize_email(data.get("email"))

    password = data.get("password")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too_short"},
        )

    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"name must be at least {MIN_NAME_LENGTH} characters",
            details={"name": "too_short"},
        )
    return email, password, name


def _auth_response(user: User) -> dict:
    return {
        "user": user.to_dict(),
        "tokens": generate_token_pair(user.id, user.email),
    }


# ═══════════════════════════════════════════════════════════════
# Register / Login
# ═══════════════════════════════════════════════════════════════
def register_user(data: dict) -> dict:
    """Create an account and return ``{user, tokens}``.

    An email is taken for good once registered, even if that user was
    later soft-deleted.
    """
    email, password, name = _validate_registration(data)

    if User.query.filter_by(email=email).first() is not None:
        raise ConflictError(resource="User", field="email", value=email)

    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    user = User(email=email, password_hash=hash_password(password, rounds=rounds), name=name)
    db.session.add(user)
    commit_or_rollback(resource="User", field="email")

    logger.info("User registered: %s", user.id)
    return _auth_response(user)


def authenticate_user(data: dict) -> dict:
    """Check credentials and return ``{user, tokens}``.

    Unknown email and wrong password are indistinguishable to the caller.
    """
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
        raise ValidationError("email and password are required")

    user = User.query_active().filter_by(email=email.strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email.strip().lower())
        raise AuthenticationError(INVALID_CREDENTIALS)

    return _auth_response(user)


# ═══════════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════════
def refresh_tokens(refresh_token) -> dict:
    """Exchange a valid refresh token for a new token pair.

    No rotation and no blacklist: the old refresh token stays valid until
    it expires.
    """
    if not isinstance(refresh_token, str) or not refresh_token:
        raise ValidationError("refresh_token is required", details={"refresh_token": "required"})
    try:
        claims = decode_refresh_token(refresh_token)
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Refresh token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid refresh token") from e

    return generate_token_pair(claims["user_id"], claims.get("email", ""))


def validate_access_token(token: str) -> dict:
    """Verify an access token and return its identity claims."""
    try:
        claims = decode_access_token(token)
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid or expired token") from e
    return {"user_id": claims["user_id"], "email": claims.get("email", "")}


# ═══════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════
def get_user(user_id: str) -> User:
    """Return the live user behind a token; NotFoundError if it is gone."""
    user = User.query_active().filter_by(id=user_id).first()
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user
