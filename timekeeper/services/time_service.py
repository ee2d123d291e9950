"""
Time Entry Service — CRUD for a user's time entries.

All reads and writes are scoped to the calling user; another user's entry
behaves exactly like a missing one (404). Updates are full replacements:
description, start/end, category and the tag set are all rewritten and the
duration is derived again.
"""

import logging
from datetime import datetime, time, timedelta

from timekeeper.core.exceptions import ValidationError
from timekeeper.models import db
from timekeeper.models.time_entry import COLOR_PALETTE, Tag, TimeEntry
from timekeeper.services.helpers.scoped_queries import get_scoped
from timekeeper.utils.helpers import (
    clamp_pagination,
    commit_or_rollback,
    parse_date_input,
    parse_datetime_input,
)

logger = logging.getLogger(__name__)


def tag_color(name: str) -> str:
    """Pick a palette colour deterministically from a tag name."""
    h = 0
    for ch in name:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return COLOR_PALETTE[h % len(COLOR_PALETTE)]


def resolve_tags(names) -> list[Tag]:
    """Map tag names to Tag rows, creating the ones that do not exist yet.

    Matching is exact and case-sensitive. A soft-deleted tag with the same
    name is brought back rather than duplicated.
    """
    if names is None:
        return []
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValidationError("tags must be a list of strings", details={"tags": "invalid"})

    tags = []
    seen = set()
    for raw in names:
        name = raw.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        tag = Tag.query.filter_by(name=name).first()
        if tag is None:
            tag = Tag(name=name, color=tag_color(name))
            db.session.add(tag)
        elif tag.is_deleted:
            tag.restore()
        tags.append(tag)
    return tags


def _validated_fields(data: dict) -> dict:
    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("description is required", details={"description": "required"})

    category = data.get("category")
    if not isinstance(category, str) or not category.strip():
        raise ValidationError("category is required", details={"category": "required"})

    if not data.get("start_time"):
        raise ValidationError("start_time is required", details={"start_time": "required"})
    try:
        start_time = parse_datetime_input(data["start_time"], "start_time")
        end_time = (
            parse_datetime_input(data["end_time"], "end_time")
            if data.get("end_time") else None
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if end_time is not None and end_time < start_time:
        raise ValidationError(
            "end_time must not be before start_time",
            details={"end_time": "before_start"},
        )

    return {
        "description": description.strip(),
        "category": category.strip(),
        "start_time": start_time,
        "end_time": end_time,
    }


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════
def create_entry(user_id: str, data: dict) -> TimeEntry:
    fields = _validated_fields(data)
    entry = TimeEntry(user_id=user_id, **fields)
    entry.tags = resolve_tags(data.get("tags"))
    entry.recalculate_duration()
    db.session.add(entry)
    commit_or_rollback(resource="TimeEntry")
    return entry


def _escape_like(term: str) -> str:
    """Make % and _ in a search term match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_entries(user_id: str, filters: dict) -> dict:
    """Paginated, filtered listing, newest start_time first.

    Filters: category, date_from / date_to (YYYY-MM-DD, date_to inclusive),
    search (case-insensitive substring of the description), page, limit.
    """
    page, limit = clamp_pagination(filters.get("page"), filters.get("limit"))

    q = TimeEntry.query_active().filter(TimeEntry.user_id == user_id)
    if filters.get("category"):
        q = q.filter(TimeEntry.category == filters["category"])
    try:
        if filters.get("date_from"):
            date_from = parse_date_input(filters["date_from"], "date_from")
            q = q.filter(TimeEntry.start_time >= datetime.combine(date_from, time.min))
        if filters.get("date_to"):
            date_to = parse_date_input(filters["date_to"], "date_to")
            q = q.filter(TimeEntry.start_time < datetime.combine(date_to + timedelta(days=1), time.min))
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if filters.get("search"):
        q = q.filter(TimeEntry.description.ilike(f"%{_escape_like(filters['search'])}%", escape="\\"))

    total = q.count()
    entries = (
        q.order_by(TimeEntry.start_time.desc(), TimeEntry.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "entries": [e.to_dict() for e in entries],
        "total": total,
        "page": page,
        "limit": limit,
    }


def get_entry(user_id: str, entry_id: str) -> TimeEntry:
    return get_scoped(TimeEntry, entry_id, user_id=user_id)


def update_entry(user_id: str, entry_id: str, data: dict) -> TimeEntry:
    entry = get_scoped(TimeEntry, entry_id, user_id=user_id)
    fields = _validated_fields(data)
    for key, value in fields.items():
        setattr(entry, key, value)
    entry.tags = resolve_tags(data.get("tags"))
    entry.recalculate_duration()
    commit_or_rollback(resource="TimeEntry")
    return entry


def delete_entry(user_id: str, entry_id: str) -> None:
    entry = get_scoped(TimeEntry, entry_id, user_id=user_id)
    entry.soft_delete()
    commit_or_rollback(resource="TimeEntry")
    logger.info("TimeEntry %s soft-deleted by user %s", entry_id, user_id)
