"""
Soft delete support shared by every Timekeeper table.

Deleting a time entry, plan, activity or tag stamps ``deleted_at``; the row
stays in the database and is filtered out of every read. Nothing purges
soft-deleted rows.

    entry.soft_delete()
    TimeEntry.query_active().filter_by(user_id=uid)

A tag that was deleted and is named again on a time entry is brought back
with ``restore()`` instead of being inserted a second time, because tag
names are unique across live and deleted rows.
"""

from timekeeper.models import db
from timekeeper.utils.helpers import utcnow


class SoftDeleteMixin:
    deleted_at = db.Column(db.DateTime, nullable=True, default=None, index=True)

    def soft_delete(self):
        self.deleted_at = utcnow()

    def restore(self):
        self.deleted_at = None

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @classmethod
    def query_active(cls):
        """Query excluding soft-deleted rows."""
        return cls.query.filter(cls.deleted_at.is_(None))
