"""
Timekeeper
Flask Application Factory.

Usage:
    from timekeeper import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from timekeeper.config import config, validate_config
from timekeeper.middleware.diagnostics import run_startup_diagnostics
from timekeeper.middleware.jwt_auth import init_jwt_middleware
from timekeeper.middleware.logging_config import configure_logging
from timekeeper.middleware.rate_limiter import init_rate_limits
from timekeeper.middleware.security_headers import init_security_headers
from timekeeper.middleware.timing import init_request_timing
from timekeeper.models import db
from timekeeper.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.

    Raises:
        RuntimeError: if the configuration is unusable (see validate_config).
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])
    validate_config(app.config)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(app.instance_path, exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(
        app,
        origins=app.config["CORS_ALLOWED_ORIGINS"],
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Request-Duration-Ms"],
    )

    # ── Request timing middleware (assigns request ids) ──────────────────
    init_request_timing(app)

    # ── Security headers ─────────────────────────────────────────────────
    init_security_headers(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    @app.before_request
    def _guard_request():
        max_len = app.config.get("MAX_CONTENT_LENGTH")
        if max_len and request.content_length and request.content_length > max_len:
            abort(413, description="Request body too large")
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.get_data(cache=True) and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── JWT auth middleware ──────────────────────────────────────────────
    init_jwt_middleware(app)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from timekeeper.models import auth as _auth_models              # noqa: F401
    from timekeeper.models import planning as _planning_models      # noqa: F401
    from timekeeper.models import time_entry as _time_entry_models  # noqa: F401

    # ── Create tables and seed default tags ──────────────────────────────
    with app.app_context():
        from timekeeper.services.seed_service import seed_default_tags
        db.create_all()
        seed_default_tags()
        db.session.commit()

    # ── Blueprints ───────────────────────────────────────────────────────
    from timekeeper.blueprints.auth_bp import auth_bp
    from timekeeper.blueprints.daily_plan_bp import daily_plan_bp
    from timekeeper.blueprints.health_bp import health_bp
    from timekeeper.blueprints.statistics_bp import statistics_bp
    from timekeeper.blueprints.time_entry_bp import time_entry_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(time_entry_bp)
    app.register_blueprint(daily_plan_bp)
    app.register_blueprint(statistics_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-tags")
    def seed_tags_cmd():
        """Seed the default tags (Work, Personal, Learning, Exercise, Meeting)."""
        from timekeeper.services.seed_service import seed_default_tags
        count = seed_default_tags()
        db.session.commit()
        logger.info("Seeded %s new tags.", count)

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
