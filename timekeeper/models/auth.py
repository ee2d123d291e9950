"""
Auth Models — users.

The password hash lives on the row but is never part of ``to_dict()``.
"""

from timekeeper.models import db
from timekeeper.models.base import BaseModel
from timekeeper.utils.helpers import isoformat


class User(BaseModel):
    __tablename__ = "users"

    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(200), nullable=False)

    # Relationships
    time_entries = db.relationship("TimeEntry", back_populates="user", lazy="dynamic")
    daily_plans = db.relationship("DailyPlan", back_populates="user", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<User {self.email}>"
