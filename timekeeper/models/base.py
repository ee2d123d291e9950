"""
BaseModel — abstract base class for every Timekeeper table.

Adds:
  - UUID4 string primary key (portable across SQLite and PostgreSQL)
  - created_at / updated_at audit columns (naive UTC)
  - soft delete via SoftDeleteMixin
"""

import uuid

from timekeeper.models import db
from timekeeper.models.soft_delete import SoftDeleteMixin
from timekeeper.utils.helpers import utcnow


def new_uuid() -> str:
    return str(uuid.uuid4())


class BaseModel(SoftDeleteMixin, db.Model):
    """Abstract base: id, audit timestamps, soft delete."""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
