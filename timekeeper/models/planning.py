"""
Daily planning models — one plan per user and day, owning ordered activities.

Estimated and actual activity times are minutes. Plan totals are derived
from the live activities by ``DailyPlan.recalculate_totals()``.
"""

from timekeeper.models import db
from timekeeper.models.base import BaseModel
from timekeeper.utils.helpers import isoformat


PLAN_STATUSES = ("draft", "active", "completed")
ACTIVITY_STATUSES = ("pending", "in_progress", "completed")
ACTIVITY_PRIORITIES = ("low", "medium", "high")


class DailyPlan(BaseModel):
    __tablename__ = "daily_plans"

    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    date = db.Column(db.Date, nullable=False, index=True)
    total_estimated_time = db.Column(db.Integer, nullable=False, default=0)
    total_actual_time = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default="draft")

    # One live plan per user and day; soft-deleted plans free their date.
    __table_args__ = (
        db.Index(
            "uq_daily_plans_user_date_live",
            "user_id",
            "date",
            unique=True,
            postgresql_where=db.text("deleted_at IS NULL"),
            sqlite_where=db.text("deleted_at IS NULL"),
        ),
    )

    # Relationships
    user = db.relationship("User", back_populates="daily_plans")
    activities = db.relationship(
        "Activity",
        primaryjoin="and_(DailyPlan.id == Activity.daily_plan_id, Activity.deleted_at.is_(None))",
        order_by="Activity.order",
        viewonly=True,
        lazy="selectin",
    )

    def recalculate_totals(self, activities):
        self.total_estimated_time = sum(a.estimated_time or 0 for a in activities)
        self.total_actual_time = sum(a.actual_time or 0 for a in activities)

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "activities": [a.to_dict() for a in self.activities],
            "total_estimated_time": self.total_estimated_time,
            "total_actual_time": self.total_actual_time,
            "status": self.status,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class Activity(BaseModel):
    __tablename__ = "activities"

    daily_plan_id = db.Column(
        db.String(36), db.ForeignKey("daily_plans.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    description = db.Column(db.Text, nullable=False)
    estimated_time = db.Column(db.Integer, nullable=False)  # minutes
    actual_time = db.Column(db.Integer, nullable=True)  # minutes
    status = db.Column(db.String(20), nullable=False, default="pending")
    category = db.Column(db.String(100), nullable=False)
    priority = db.Column(db.String(10), nullable=False, default="medium")
    order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "id": self.id,
            "daily_plan_id": self.daily_plan_id,
            "description": self.description,
            "estimated_time": self.estimated_time,
            "actual_time": self.actual_time,
            "status": self.status,
            "category": self.category,
            "priority": self.priority,
            "order": self.order,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
