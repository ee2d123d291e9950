"""
Timekeeper
SQLAlchemy model package.

``db`` is the shared Flask-SQLAlchemy handle. Model modules import it from
here and are themselves imported by ``create_app`` so that
``db.create_all()`` and Alembic see every table.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
