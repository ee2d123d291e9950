"""
Daily Plan Service — plans and their activities.

Business rules:
  - at most one live plan per (user, date); a second one is a ConflictError
  - activities are replaced wholesale on update: the old rows are
    soft-deleted and the new set inserted, in the same transaction
  - plan totals (estimated / actual minutes) are always derived from the
    live activities
  - GET /daily-plans/today provisions a fixed five-activity draft the
    first time it is asked for
"""

import logging
from datetime import date

from timekeeper.core.exceptions import ConflictError, NotFoundError, ValidationError
from timekeeper.models import db
from timekeeper.models.planning import (
    ACTIVITY_PRIORITIES,
    ACTIVITY_STATUSES,
    PLAN_STATUSES,
    Activity,
    DailyPlan,
)
from timekeeper.services.helpers.scoped_queries import get_scoped
from timekeeper.utils.helpers import (
    clamp_pagination,
    commit_or_rollback,
    flush_or_rollback,
    parse_date_input,
    utcnow,
)

logger = logging.getLogger(__name__)

TODAY_TEMPLATE = (
    # description, estimated minutes, category, priority, order
    ("Morning routine", 30, "Personal", "medium", 1),
    ("Deep work session 1", 120, "Work", "high", 2),
    ("Lunch break", 60, "Personal", "medium", 3),
    ("Deep work session 2", 120, "Work", "high", 4),
    ("Evening review", 30, "Personal", "medium", 5),
)


# ═══════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════
def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_plan_date(value) -> date:
    if not value:
        raise ValidationError("date is required", details={"date": "required"})
    try:
        return parse_date_input(value, "date")
    except ValueError as e:
        raise ValidationError(str(e), details={"date": "invalid"}) from e


def _validate_plan_status(status) -> str:
    if status not in PLAN_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(PLAN_STATUSES)}",
            details={"status": "invalid"},
        )
    return status


def _validate_activity(data, label: str) -> dict:
    """Check one activity payload; error details are keyed ``<label>.<field>``."""
    if not isinstance(data, dict):
        raise ValidationError(f"{label} must be an object")

    def fail(field, message):
        raise ValidationError(
            f"{label}.{field} {message}",
            details={f"{label}.{field}": message},
        )

    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        fail("description", "is required")
    category = data.get("category")
    if not isinstance(category, str) or not category.strip():
        fail("category", "is required")

    estimated = data.get("estimated_time")
    if not _is_int(estimated) or estimated < 1:
        fail("estimated_time", "must be an integer >= 1")

    actual = data.get("actual_time")
    if actual is not None and (not _is_int(actual) or actual < 0):
        fail("actual_time", "must be an integer >= 0")

    order = data.get("order")
    if not _is_int(order) or order < 0:
        fail("order", "must be an integer >= 0")

    status = data.get("status") or "pending"
    if status not in ACTIVITY_STATUSES:
        fail("status", f"must be one of: {', '.join(ACTIVITY_STATUSES)}")
    priority = data.get("priority") or "medium"
    if priority not in ACTIVITY_PRIORITIES:
        fail("priority", f"must be one of: {', '.join(ACTIVITY_PRIORITIES)}")

    return {
        "description": description.strip(),
        "category": category.strip(),
        "estimated_time": estimated,
        "actual_time": actual,
        "order": order,
        "status": status,
        "priority": priority,
    }


def _validate_activities(raw) -> list[dict]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("activities must be a list", details={"activities": "invalid"})
    return [_validate_activity(item, f"activities[{i}]") for i, item in enumerate(raw)]


def _live_plan_for_date(user_id: str, plan_date: date, exclude_id: str | None = None):
    q = DailyPlan.query_active().filter(
        DailyPlan.user_id == user_id,
        DailyPlan.date == plan_date,
    )
    if exclude_id is not None:
        q = q.filter(DailyPlan.id != exclude_id)
    return q.first()


def _live_activities(plan: DailyPlan) -> list[Activity]:
    return (
        Activity.query_active()
        .filter(Activity.daily_plan_id == plan.id)
        .order_by(Activity.order)
        .all()
    )


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════
def create_plan(user_id: str, data: dict) -> DailyPlan:
    plan_date = _parse_plan_date(data.get("date"))
    status = _validate_plan_status(data.get("status") or "draft")
    activities = _validate_activities(data.get("activities"))

    if _live_plan_for_date(user_id, plan_date) is not None:
        raise ConflictError(resource="DailyPlan", field="date", value=plan_date.isoformat())

    plan = DailyPlan(user_id=user_id, date=plan_date, status=status)
    db.session.add(plan)
    flush_or_rollback(resource="DailyPlan", field="date")

    rows = [Activity(daily_plan_id=plan.id, **fields) for fields in activities]
    db.session.add_all(rows)
    plan.recalculate_totals(rows)
    commit_or_rollback(resource="DailyPlan", field="date")
    return plan


def list_plans(user_id: str, filters: dict) -> dict:
    """Paginated listing, newest date first. Filters: date_from, date_to, status."""
    page, limit = clamp_pagination(filters.get("page"), filters.get("limit"))

    q = DailyPlan.query_active().filter(DailyPlan.user_id == user_id)
    try:
        if filters.get("date_from"):
            q = q.filter(DailyPlan.date >= parse_date_input(filters["date_from"], "date_from"))
        if filters.get("date_to"):
            q = q.filter(DailyPlan.date <= parse_date_input(filters["date_to"], "date_to"))
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if filters.get("status"):
        q = q.filter(DailyPlan.status == filters["status"])

    total = q.count()
    plans = (
        q.order_by(DailyPlan.date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "plans": [p.to_dict() for p in plans],
        "total": total,
        "page": page,
        "limit": limit,
    }


def get_plan(user_id: str, plan_id: str) -> DailyPlan:
    return get_scoped(DailyPlan, plan_id, user_id=user_id)


def get_plan_by_date(user_id: str, value) -> DailyPlan:
    plan_date = _parse_plan_date(value)
    plan = _live_plan_for_date(user_id, plan_date)
    if plan is None:
        raise NotFoundError(resource="DailyPlan", resource_id=plan_date.isoformat())
    return plan


def update_plan(user_id: str, plan_id: str, data: dict) -> DailyPlan:
    """Full replacement of date, status and the activity set."""
    plan = get_scoped(DailyPlan, plan_id, user_id=user_id)

    plan_date = _parse_plan_date(data.get("date"))
    status = _validate_plan_status(data.get("status") or plan.status)
    activities = _validate_activities(data.get("activities"))

    if plan_date != plan.date and _live_plan_for_date(user_id, plan_date, exclude_id=plan.id):
        raise ConflictError(resource="DailyPlan", field="date", value=plan_date.isoformat())

    now = utcnow()
    for old in _live_activities(plan):
        old.deleted_at = now

    rows = [Activity(daily_plan_id=plan.id, **fields) for fields in activities]
    db.session.add_all(rows)

    plan.date = plan_date
    plan.status = status
    plan.recalculate_totals(rows)
    plan.updated_at = now
    commit_or_rollback(resource="DailyPlan", field="date")
    return plan


def delete_plan(user_id: str, plan_id: str) -> None:
    """Soft-delete the plan together with its live activities."""
    plan = get_scoped(DailyPlan, plan_id, user_id=user_id)
    for activity in _live_activities(plan):
        activity.soft_delete()
    plan.soft_delete()
    commit_or_rollback(resource="DailyPlan")
    logger.info("DailyPlan %s soft-deleted by user %s", plan_id, user_id)


def get_or_create_today(user_id: str) -> DailyPlan:
    """Return today's (UTC) plan, provisioning the default draft if absent.

    Two requests racing to provision the same day both pass the lookup;
    the loser hits the unique (user, date) index and returns the winner's plan.
    """
    today = utcnow().date()
    plan = _live_plan_for_date(user_id, today)
    if plan is not None:
        return plan

    try:
        return _provision_today(user_id, today)
    except ConflictError:
        plan = _live_plan_for_date(user_id, today)
        if plan is None:
            raise
        return plan


def _provision_today(user_id: str, today: date) -> DailyPlan:
    plan = DailyPlan(user_id=user_id, date=today, status="draft")
    db.session.add(plan)
    flush_or_rollback(resource="DailyPlan", field="date")
    rows = [
        Activity(
            daily_plan_id=plan.id,
            description=description,
            estimated_time=minutes,
            category=category,
            priority=priority,
            order=order,
            status="pending",
        )
        for description, minutes, category, priority, order in TODAY_TEMPLATE
    ]
    db.session.add_all(rows)
    plan.recalculate_totals(rows)
    commit_or_rollback(resource="DailyPlan", field="date")
    logger.info("Provisioned today's plan %s for user %s", plan.id, user_id)
    return plan


# ═══════════════════════════════════════════════════════════════
# Activities
# ═══════════════════════════════════════════════════════════════
_ACTIVITY_UPDATABLE = (
    "description", "estimated_time", "actual_time",
    "status", "category", "priority", "order",
)


def update_activity(user_id: str, plan_id: str, activity_id: str, data: dict) -> Activity:
    """Partial update of one activity; plan totals are recomputed."""
    plan = get_scoped(DailyPlan, plan_id, user_id=user_id)
    activity = get_scoped(Activity, activity_id, daily_plan_id=plan.id)

    # Validate the merged result so partial input obeys the same rules
    merged = {field: getattr(activity, field) for field in _ACTIVITY_UPDATABLE}
    for field in _ACTIVITY_UPDATABLE:
        if field in data:
            merged[field] = data[field]
    fields = _validate_activity(merged, "activity")

    for field in _ACTIVITY_UPDATABLE:
        if field in data:
            setattr(activity, field, fields[field])

    db.session.flush()
    plan.recalculate_totals(_live_activities(plan))
    plan.updated_at = utcnow()
    commit_or_rollback(resource="Activity")
    return activity
