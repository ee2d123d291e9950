"""
Crypto utilities — bcrypt password hashing.

bcrypt only looks at the first 72 bytes of its input and current releases
raise on anything longer, so both sides truncate to that length.
"""

import bcrypt

BCRYPT_MAX_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password with bcrypt (default 12 rounds, random salt)."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or plain_password is None:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False
