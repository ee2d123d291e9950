"""
Middleware, configuration and platform endpoint tests.

Tests cover:
  - health / docs endpoints
  - security headers, request id + duration headers, CORS
  - request guards (415 / 413) and JSON error bodies for 404 / 405
  - JWT middleware coverage of /api/v1
  - validate_config / build_database_uri
  - pagination and window clamping helpers, structured logging
"""

import json
import logging

import pytest
from flask import g

from timekeeper.config import (
    DEFAULT_JWT_SECRET,
    TestingConfig,
    build_database_uri,
    validate_config,
)
from timekeeper.middleware.jwt_auth import extract_bearer_token
from timekeeper.middleware.logging_config import JSONFormatter, RequestContextFilter
from timekeeper.utils.helpers import clamp_days, clamp_pagination


# ═══════════════════════════════════════════════════════════════
# HEALTH / DOCS
# ═══════════════════════════════════════════════════════════════

class TestHealth:
    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        data = res.get_json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["timestamp"].endswith("Z")

    def test_docs_lists_endpoints(self, client):
        data = client.get("/docs").get_json()
        assert data["version"] == "1.0.0"
        assert "POST /api/v1/auth/login" in data["endpoints"]["auth"]
        assert set(data["endpoints"]) == {
            "auth", "time_entries", "daily_plans", "statistics", "health",
        }


# ═══════════════════════════════════════════════════════════════
# RESPONSE HEADERS
# ═══════════════════════════════════════════════════════════════

class TestResponseHeaders:
    def test_security_headers(self, client):
        res = client.get("/health")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["Content-Security-Policy"].startswith("default-src 'none'")
        assert res.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "Strict-Transport-Security" in res.headers
        assert "Server" not in res.headers

    def test_request_id_generated(self, client):
        res = client.get("/health")
        assert len(res.headers["X-Request-ID"]) == 12
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_request_id_echoed(self, client):
        res = client.get("/health", headers={"X-Request-ID": "trace-abc"})
        assert res.headers["X-Request-ID"] == "trace-abc"

    def test_unsafe_request_id_replaced(self, client):
        res = client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        assert res.headers["X-Request-ID"] != "bad id with spaces"
        assert len(res.headers["X-Request-ID"]) == 12

    def test_headers_on_error_responses(self, client):
        res = client.get("/api/v1/time-entries")
        assert res.status_code == 401
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in res.headers

    def test_cors_allowed_origin(self, client):
        res = client.get("/health", headers={"Origin": "http://localhost:3000"})
        assert res.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    def test_cors_unknown_origin(self, client):
        res = client.get("/health", headers={"Origin": "http://evil.example.com"})
        assert "Access-Control-Allow-Origin" not in res.headers


# ═══════════════════════════════════════════════════════════════
# REQUEST GUARDS / ERROR BODIES
# ═══════════════════════════════════════════════════════════════

class TestRequestGuards:
    def test_non_json_body_rejected(self, client, auth_headers):
        res = client.post(
            "/api/v1/time-entries",
            data="description=x",
            headers={**auth_headers, "Content-Type": "text/plain"},
        )
        assert res.status_code == 415
        assert res.get_json()["code"] == "ERR_UNSUPPORTED_MEDIA_TYPE"

    def test_oversized_body_rejected(self, client, auth_headers):
        res = client.post(
            "/api/v1/time-entries",
            data="x" * (3 * 1024 * 1024),
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert res.status_code == 413
        assert res.get_json()["code"] == "ERR_PAYLOAD_TOO_LARGE"

    def test_malformed_json(self, client, auth_headers):
        res = client.post(
            "/api/v1/time-entries",
            data="{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert res.status_code == 400
        assert "error" in res.get_json()

    def test_unknown_route_is_json(self, client):
        res = client.get("/nope")
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_wrong_method_is_json(self, client):
        res = client.delete("/health")
        assert res.status_code == 405
        assert res.get_json()["code"] == "ERR_METHOD_NOT_ALLOWED"


class TestJWTMiddleware:
    @pytest.mark.parametrize("path", [
        "/api/v1/auth/me",
        "/api/v1/time-entries",
        "/api/v1/daily-plans",
        "/api/v1/statistics/overview",
    ])
    def test_protected_without_token(self, client, path):
        res = client.get(path)
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHORIZED"

    def test_malformed_header(self, client):
        res = client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})
        assert res.status_code == 401

    def test_preflight_not_authenticated(self, client):
        res = client.options(
            "/api/v1/time-entries",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert res.status_code == 200

    @pytest.mark.parametrize("header, expected", [
        ("Bearer abc.def", "abc.def"),
        ("bearer abc", "abc"),
        ("Bearer ", None),
        ("Basic xyz", None),
        ("", None),
        (None, None),
    ])
    def test_extract_bearer_token(self, header, expected):
        assert extract_bearer_token(header) == expected


# ═══════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════

def _cfg(**overrides):
    cfg = {
        "JWT_SECRET": "s3cret",
        "DB_DRIVER": "sqlite",
        "DB_PASSWORD": "",
        "JWT_EXPIRE_HOURS": 24,
        "JWT_REFRESH_EXPIRE_HOURS": 168,
    }
    cfg.update(overrides)
    return cfg


class TestValidateConfig:
    def test_valid(self):
        validate_config(_cfg())

    def test_testing_config_is_valid(self):
        validate_config({k: getattr(TestingConfig, k) for k in dir(TestingConfig) if k.isupper()})

    @pytest.mark.parametrize("overrides", [
        {"JWT_SECRET": DEFAULT_JWT_SECRET},
        {"JWT_SECRET": ""},
        {"DB_DRIVER": "mysql"},
        {"DB_DRIVER": "postgres"},
        {"JWT_EXPIRE_HOURS": 0},
        {"JWT_REFRESH_EXPIRE_HOURS": -1},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(RuntimeError):
            validate_config(_cfg(**overrides))

    def test_postgres_with_password(self):
        validate_config(_cfg(DB_DRIVER="postgres", DB_PASSWORD="pw"))


class TestBuildDatabaseUri:
    def test_database_url_wins(self):
        uri = build_database_uri({"DATABASE_URL": "sqlite:///custom.db", "DB_DRIVER": "postgres"})
        assert uri == "sqlite:///custom.db"

    def test_heroku_style_url(self):
        uri = build_database_uri({"DATABASE_URL": "postgres://u:p@h:5432/d"})
        assert uri == "postgresql+psycopg://u:p@h:5432/d"

    def test_sqlite_default(self):
        uri = build_database_uri({})
        assert uri.startswith("sqlite:///")
        assert uri.endswith("timecal_db.db")

    def test_postgres_components(self):
        uri = build_database_uri({
            "DB_DRIVER": "postgres",
            "DB_HOST": "db.internal",
            "DB_PORT": "6543",
            "DB_USER": "tk",
            "DB_PASSWORD": "pw",
            "DB_NAME": "tk_db",
            "DB_SSLMODE": "require",
        })
        assert uri == "postgresql+psycopg://tk:pw@db.internal:6543/tk_db?sslmode=require"


# ═══════════════════════════════════════════════════════════════
# HELPERS / LOGGING
# ═══════════════════════════════════════════════════════════════

class TestClampHelpers:
    @pytest.mark.parametrize("page, limit, expected", [
        (None, None, (1, 20)),
        ("2", "50", (2, 50)),
        (0, 0, (1, 20)),
        (-4, 101, (1, 20)),
        ("x", "y", (1, 20)),
        (3, 100, (3, 100)),
    ])
    def test_pagination(self, page, limit, expected):
        assert clamp_pagination(page, limit) == expected

    @pytest.mark.parametrize("days, expected", [
        (None, 30), (0, 30), (366, 30), ("7", 7), (365, 365), (1, 1),
    ])
    def test_days(self, days, expected):
        assert clamp_days(days) == expected


class TestJSONFormatter:
    def test_includes_request_context(self):
        record = logging.LogRecord("timekeeper.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.request_id = "abc123"
        record.user_id = "u-1"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["request_id"] == "abc123"
        assert entry["user_id"] == "u-1"
        assert "status" not in entry

    def test_context_filter_stamps_request_values(self, app):
        with app.test_request_context("/health"):
            g.request_id = "req-42"
            g.current_user_id = "user-7"
            record = logging.LogRecord("timekeeper.test", logging.INFO, __file__, 1, "msg", None, None)
            assert RequestContextFilter().filter(record) is True
        assert record.request_id == "req-42"
        assert record.user_id == "user-7"
