"""
Shared pytest fixtures for the Timekeeper test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - register_user: factory that registers a user through the API
    - auth_headers: Bearer headers for a freshly registered user
"""

import itertools

import pytest

from timekeeper import create_app
from timekeeper.models import db as _db
from timekeeper.services.seed_service import seed_default_tags

_user_counter = itertools.count(1)


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, seed tags, rollback + recreate tables after."""
    with app.app_context():
        seed_default_tags()
        _db.session.commit()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def register_user(client):
    """Register a user via the API and return the response body ({user, tokens})."""

    def _register(email=None, password="secret123", name="Test User"):
        email = email or f"user{next(_user_counter)}@example.com"
        res = client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert res.status_code == 201, res.get_json()
        return res.get_json()

    return _register


def bearer(tokens):
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture()
def auth_headers(register_user):
    """Authorization headers for a newly registered user."""
    return bearer(register_user()["tokens"])


@pytest.fixture()
def other_headers(register_user):
    """Authorization headers for a second, unrelated user."""
    return bearer(register_user()["tokens"])
