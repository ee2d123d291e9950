"""
Time tracking models — tags, time entries and their N–N link table.

Durations are stored in whole seconds and derived from start/end by
``TimeEntry.recalculate_duration()``; callers never set them directly.
"""

from timekeeper.models import db
from timekeeper.models.base import BaseModel
from timekeeper.utils.helpers import isoformat


# Shared palette for tag colours and category statistics.
COLOR_PALETTE = (
    "#3b82f6", "#10b981", "#8b5cf6", "#f59e0b", "#ef4444",
    "#14b8a6", "#f97316", "#84cc16", "#06b6d4", "#ec4899",
)


time_entry_tags = db.Table(
    "time_entry_tags",
    db.Column(
        "time_entry_id", db.String(36),
        db.ForeignKey("time_entries.id", ondelete="CASCADE"), primary_key=True,
    ),
    db.Column(
        "tag_id", db.String(36),
        db.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True,
    ),
)


class Tag(BaseModel):
    __tablename__ = "tags"

    name = db.Column(db.String(100), nullable=False, unique=True)
    color = db.Column(db.String(20))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
        }


class TimeEntry(BaseModel):
    __tablename__ = "time_entries"

    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    description = db.Column(db.Text, nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # seconds
    category = db.Column(db.String(100), nullable=False, index=True)

    __table_args__ = (
        db.Index("ix_time_entries_user_start", "user_id", "start_time"),
    )

    # Relationships
    user = db.relationship("User", back_populates="time_entries")
    tags = db.relationship("Tag", secondary=time_entry_tags, lazy="selectin", order_by="Tag.name")

    def recalculate_duration(self):
        """Derive ``duration`` (seconds) from start/end; None while running."""
        if self.end_time is None or self.start_time is None:
            self.duration = None
        else:
            self.duration = int((self.end_time - self.start_time).total_seconds())

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "start_time": isoformat(self.start_time),
            "end_time": isoformat(self.end_time),
            "duration": self.duration,
            "category": self.category,
            "tags": [t.to_dict() for t in self.tags],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
