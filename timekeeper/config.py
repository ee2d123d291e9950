"""
Timekeeper
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
    validate_config(app.config)
"""

import os

from sqlalchemy.engine import URL

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Placeholder shipped in examples; the app refuses to start with it.
DEFAULT_JWT_SECRET = "default-secret-change-this"

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"
SUPPORTED_DB_DRIVERS = ("sqlite", "postgres")

_SQLITE_TEST = "sqlite:///:memory:"


def _split_origins(raw):
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def build_database_uri(env=None):
    """Build the SQLAlchemy URL from DATABASE_URL or the DB_* variables.

    SQLite keeps its file next to the project in ``instance/``; PostgreSQL
    goes through psycopg (v3).
    """
    env = os.environ if env is None else env
    raw_url = env.get("DATABASE_URL", "")
    if raw_url:
        # Heroku-style postgres:// is not accepted by SQLAlchemy 2.0
        return raw_url.replace("postgres://", "postgresql+psycopg://", 1)

    driver = env.get("DB_DRIVER", "sqlite").lower()
    db_name = env.get("DB_NAME", "timecal_db")
    if driver == "postgres":
        return URL.create(
            "postgresql+psycopg",
            username=env.get("DB_USER", "timecal_user"),
            password=env.get("DB_PASSWORD") or None,
            host=env.get("DB_HOST", "localhost"),
            port=int(env.get("DB_PORT", "5432")),
            database=db_name,
            query={"sslmode": env.get("DB_SSLMODE", "disable")},
        ).render_as_string(hide_password=False)
    return f"sqlite:///{os.path.join(basedir, 'instance', db_name + '.db')}"


def _engine_options(uri):
    options = {"pool_pre_ping": True}
    if uri.startswith("postgresql"):
        options.update({
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": 300,   # recycle connections every 5 min
            "pool_timeout": 20,    # wait max 20s for a connection from pool
        })
    return options


class Config:
    """Base configuration shared across all environments."""

    DEBUG = False
    TESTING = False
    APP_VERSION = "1.0.0"
    PORT = int(os.getenv("PORT", "8080"))

    # Database
    DB_DRIVER = os.getenv("DB_DRIVER", "sqlite").lower()
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    SQLALCHEMY_DATABASE_URI = build_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI)

    # JWT
    JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    SECRET_KEY = JWT_SECRET
    JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
    JWT_REFRESH_EXPIRE_HOURS = int(os.getenv("JWT_REFRESH_EXPIRE_HOURS", "168"))
    BCRYPT_ROUNDS = 12

    # CORS
    CORS_ALLOWED_ORIGINS = _split_origins(os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS))

    # Request guards
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2 MB

    # Rate limiting (Flask-Limiter)
    RATELIMIT_STORAGE_URI = "memory://"


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DB_DRIVER = "sqlite"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET = "test-secret-not-for-production"
    SECRET_KEY = JWT_SECRET
    BCRYPT_ROUNDS = 4
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False


def validate_config(cfg):
    """Refuse to start with an unusable configuration.

    Raises RuntimeError when the JWT secret is the shipped placeholder (or
    empty), when DB_DRIVER is unknown, or when PostgreSQL is selected
    without a password.
    """
    secret = cfg.get("JWT_SECRET")
    if not secret or secret == DEFAULT_JWT_SECRET:
        raise RuntimeError(
            "JWT_SECRET environment variable must be set to a non-default value"
        )
    driver = cfg.get("DB_DRIVER", "sqlite")
    if driver not in SUPPORTED_DB_DRIVERS:
        raise RuntimeError(
            f"Unsupported DB_DRIVER {driver!r}; expected one of {', '.join(SUPPORTED_DB_DRIVERS)}"
        )
    if driver == "postgres" and not cfg.get("DB_PASSWORD"):
        raise RuntimeError("DB_PASSWORD environment variable is required for the postgres driver")
    if cfg.get("JWT_EXPIRE_HOURS", 0) <= 0 or cfg.get("JWT_REFRESH_EXPIRE_HOURS", 0) <= 0:
        raise RuntimeError("JWT_EXPIRE_HOURS and JWT_REFRESH_EXPIRE_HOURS must be positive")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
