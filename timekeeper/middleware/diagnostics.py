"""
Startup diagnostics.

Logs one banner when the app boots: database backend and reachability,
schema state, seeded tag count and the allowed CORS origins. Problems are
logged as warnings; startup is never aborted from here.
"""

import logging
import sys

from flask import Flask
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from timekeeper.models import db

logger = logging.getLogger(__name__)

EXPECTED_TABLES = frozenset({
    "users", "tags", "time_entries", "time_entry_tags", "daily_plans", "activities",
})


def _database_checks(problems: list[str]) -> dict:
    info = {"status": "ok", "tables": "?", "tags": "?", "users": "?"}
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as exc:
        info["status"] = "FAILED"
        problems.append(f"Database unreachable: {exc}")
        return info

    present = set(sa_inspect(db.engine).get_table_names())
    missing = sorted(EXPECTED_TABLES - present)
    info["tables"] = f"{len(present & EXPECTED_TABLES)}/{len(EXPECTED_TABLES)}"
    if missing:
        problems.append(f"Missing tables {', '.join(missing)}; run 'flask db upgrade'")
        return info

    from timekeeper.models.auth import User
    from timekeeper.models.time_entry import Tag
    info["tags"] = str(Tag.query_active().count())
    info["users"] = str(User.query.count())
    return info


def run_startup_diagnostics(app: Flask):
    """Log the startup banner (skipped under TESTING)."""
    if app.config.get("TESTING"):
        return

    problems: list[str] = []
    with app.app_context():
        backend = "PostgreSQL" if app.config.get("DB_DRIVER") == "postgres" else "SQLite"
        database = _database_checks(problems)

    python = ".".join(str(part) for part in sys.version_info[:3])
    origins = ", ".join(app.config.get("CORS_ALLOWED_ORIGINS", [])) or "none"
    rows = [
        ("Version", app.config.get("APP_VERSION", "?")),
        ("Python", python),
        ("Debug", str(app.debug)),
        ("Database", f"{backend} ({database['status']})"),
        ("Tables", database["tables"]),
        ("Tags", database["tags"]),
        ("Users", database["users"]),
        ("CORS", origins),
    ]
    width = 60
    lines = ["", "┌" + "─" * width + "┐", f"│ {'Timekeeper API':<{width - 1}}│", "├" + "─" * width + "┤"]
    lines += [f"│ {label:<10}: {value[:width - 14]:<{width - 13}}│" for label, value in rows]
    lines.append("└" + "─" * width + "┘")
    logger.info("\n".join(lines))

    for problem in problems:
        logger.warning("Startup check failed: %s", problem)
    if not problems:
        logger.info("Startup checks passed")
