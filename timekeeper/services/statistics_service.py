"""
Statistics Service — read-side aggregation over a user's live time entries
and daily plans.

Windows are ``[now - days, now]`` in UTC. Durations are seconds; plan
times are minutes and reported here in hours. An entry is attributed to
the day/hour its start_time falls in.

Provides:
  - overview (totals, category/daily breakdowns, productivity trend, goals)
  - productivity (peak hours, focus sessions, consistency / streaks)
  - categories, timeseries, insights
  - time entry and daily plan summaries for the per-resource /stats routes
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta

from sqlalchemy import func

from timekeeper.core.exceptions import ValidationError
from timekeeper.models import db
from timekeeper.models.planning import DailyPlan
from timekeeper.models.time_entry import COLOR_PALETTE, TimeEntry
from timekeeper.utils.helpers import parse_date_input, utcnow

logger = logging.getLogger(__name__)

DAILY_GOAL_SECONDS = 8 * 3600
DAILY_GOAL_HOURS = 8.0
FOCUS_SESSION_SECONDS = 30 * 60

TIMESERIES_METRICS = ("time", "activities", "goals")
TIMESERIES_GRANULARITIES = ("hour", "day", "week")


def _window(days: int) -> tuple[datetime, datetime]:
    end = utcnow()
    return end - timedelta(days=days), end


def _entry_filters(user_id, start, end):
    return (
        TimeEntry.user_id == user_id,
        TimeEntry.deleted_at.is_(None),
        TimeEntry.start_time >= start,
        TimeEntry.start_time <= end,
    )


def _as_date(value) -> date:
    # func.date() yields a string on SQLite and a date on PostgreSQL
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _percentage(part, whole) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


# ═══════════════════════════════════════════════════════════════
# Building blocks
# ═══════════════════════════════════════════════════════════════
def total_tracked_time(user_id: str, start: datetime, end: datetime) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(TimeEntry.duration), 0))
        .filter(*_entry_filters(user_id, start, end))
        .scalar()
    )
    return int(total or 0)


def category_stats(user_id: str, start: datetime, end: datetime, category: str | None = None) -> list[dict]:
    """Time and entry count per category, largest first."""
    q = (
        db.session.query(
            TimeEntry.category.label("category"),
            func.coalesce(func.sum(TimeEntry.duration), 0).label("total_time"),
            func.count(TimeEntry.id).label("count"),
        )
        .filter(*_entry_filters(user_id, start, end))
    )
    if category:
        q = q.filter(TimeEntry.category == category)
    rows = (
        q.group_by(TimeEntry.category)
        .order_by(func.coalesce(func.sum(TimeEntry.duration), 0).desc(), TimeEntry.category)
        .all()
    )

    grand_total = sum(int(r.total_time or 0) for r in rows)
    return [
        {
            "category": r.category,
            "total_time": int(r.total_time or 0),
            "percentage": _percentage(int(r.total_time or 0), grand_total),
            "color": COLOR_PALETTE[i % len(COLOR_PALETTE)],
            "count": r.count,
        }
        for i, r in enumerate(rows)
    ]


def _daily_totals(user_id: str, start: datetime, end: datetime) -> list[tuple[date, int, int]]:
    """(day, seconds, entry count) per active day, oldest first."""
    day = func.date(TimeEntry.start_time)
    rows = (
        db.session.query(
            day.label("day"),
            func.coalesce(func.sum(TimeEntry.duration), 0).label("total_time"),
            func.count(TimeEntry.id).label("count"),
        )
        .filter(*_entry_filters(user_id, start, end))
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [(_as_date(r.day), int(r.total_time or 0), r.count) for r in rows]


def daily_stats(user_id: str, start: datetime, end: datetime) -> list[dict]:
    """Per-day totals, newest first; goal_met at eight tracked hours."""
    return [
        {
            "date": day.isoformat(),
            "total_time": total,
            "activities_completed": count,
            "goal_met": total >= DAILY_GOAL_SECONDS,
        }
        for day, total, count in reversed(_daily_totals(user_id, start, end))
    ]


def productivity_trend(user_id: str, start: datetime, end: datetime) -> list[dict]:
    """Per-day score min(actual/8h, 1) * 100, oldest first."""
    trend = []
    for day, total, _count in _daily_totals(user_id, start, end):
        actual_hours = total / 3600
        trend.append({
            "date": day.isoformat(),
            "value": round(min(actual_hours / DAILY_GOAL_HOURS, 1.0) * 100, 2),
            "goal_hours": DAILY_GOAL_HOURS,
            "actual_hours": round(actual_hours, 2),
        })
    return trend


def goal_completion(user_id: str, start_date: date, end_date: date) -> dict:
    """Plan completion over plans dated within [start_date, end_date]."""
    row = (
        db.session.query(
            func.count(DailyPlan.id).label("total"),
            func.coalesce(func.avg(DailyPlan.total_estimated_time), 0).label("avg_goal"),
            func.coalesce(func.avg(DailyPlan.total_actual_time), 0).label("avg_actual"),
        )
        .filter(
            DailyPlan.user_id == user_id,
            DailyPlan.deleted_at.is_(None),
            DailyPlan.date >= start_date,
            DailyPlan.date <= end_date,
        )
        .one()
    )
    completed = (
        DailyPlan.query_active()
        .filter(
            DailyPlan.user_id == user_id,
            DailyPlan.date >= start_date,
            DailyPlan.date <= end_date,
            DailyPlan.status == "completed",
        )
        .count()
    )
    total = row.total or 0
    return {
        "daily_goal_met": completed,
        "daily_goal_missed": total - completed,
        "completion_rate": _percentage(completed, total),
        "average_goal": round(float(row.avg_goal or 0) / 60, 2),
        "average_actual": round(float(row.avg_actual or 0) / 60, 2),
    }


def peak_hours(user_id: str, start: datetime, end: datetime) -> dict:
    """Tracked seconds per start hour, keyed "HH:00"; hours without data are omitted."""
    hour = func.extract("hour", TimeEntry.start_time)
    rows = (
        db.session.query(
            hour.label("hour"),
            func.coalesce(func.sum(TimeEntry.duration), 0).label("total_time"),
        )
        .filter(*_entry_filters(user_id, start, end))
        .group_by(hour)
        .order_by(hour)
        .all()
    )
    return {f"{int(r.hour):02d}:00": int(r.total_time or 0) for r in rows}


def focus_sessions(user_id: str, start: datetime, end: datetime) -> dict:
    """Entries of at least thirty minutes count as focus sessions."""
    row = (
        db.session.query(
            func.count(TimeEntry.id).label("sessions"),
            func.coalesce(func.avg(TimeEntry.duration), 0).label("average"),
            func.coalesce(func.max(TimeEntry.duration), 0).label("longest"),
            func.coalesce(func.sum(TimeEntry.duration), 0).label("total"),
        )
        .filter(
            *_entry_filters(user_id, start, end),
            TimeEntry.duration >= FOCUS_SESSION_SECONDS,
        )
        .one()
    )
    return {
        "total_sessions": row.sessions or 0,
        "average_duration": int(round(float(row.average or 0))),
        "longest_session": int(row.longest or 0),
        "total_focus_time": int(row.total or 0),
    }


def _streaks(active_days: set, today: date) -> tuple[int, int]:
    """(current, longest) runs of consecutive active days.

    The current streak may end today or yesterday; a day without tracking
    yet does not break it.
    """
    current = 0
    cursor = today if today in active_days else today - timedelta(days=1)
    while cursor in active_days:
        current += 1
        cursor -= timedelta(days=1)

    longest = run = 0
    previous = None
    for day in sorted(active_days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return current, longest


def consistency(user_id: str, start: datetime, end: datetime, days: int) -> dict:
    """Active days among the last ``days`` calendar dates, today included.

    ``[now - days, now]`` touches days + 1 dates; the oldest partial date is
    left out so days_active never exceeds days_total.
    """
    first_day = end.date() - timedelta(days=days - 1)
    active = {
        day for day, total, _count in _daily_totals(user_id, start, end)
        if total > 0 and day >= first_day
    }
    current, longest = _streaks(active, end.date())
    return {
        "current_streak": current,
        "longest_streak": longest,
        "days_active": len(active),
        "days_total": days,
        "consistency_rate": _percentage(len(active), days),
    }


# ═══════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════
def get_overview(user_id: str, days: int, date_from=None, date_to=None) -> dict:
    """Full dashboard payload.

    date_from / date_to (YYYY-MM-DD) override the window bounds; date_to is
    inclusive to the end of that day. Today / week / month totals are
    always relative to now.
    """
    start, end = _window(days)
    now = end
    try:
        if date_from:
            start = datetime.combine(parse_date_input(date_from, "date_from"), time.min)
        if date_to:
            end = datetime.combine(parse_date_input(date_to, "date_to"), time.max)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    # A lone date_to older than the default window just yields empty aggregates
    if date_from and date_to and end < start:
        raise ValidationError("date_to must not be before date_from")

    today_start = datetime.combine(now.date(), time.min)
    week_start = today_start - timedelta(days=now.weekday())
    month_start = today_start.replace(day=1)

    return {
        "total_tracked_time": total_tracked_time(user_id, start, end),
        "total_time_today": total_tracked_time(user_id, today_start, now),
        "total_time_this_week": total_tracked_time(user_id, week_start, now),
        "total_time_this_month": total_tracked_time(user_id, month_start, now),
        "category_stats": category_stats(user_id, start, end),
        "daily_stats": daily_stats(user_id, start, end),
        "productivity_trend": productivity_trend(user_id, start, end),
        "goal_completion": goal_completion(user_id, start.date(), end.date()),
    }


def get_productivity(user_id: str, days: int) -> dict:
    start, end = _window(days)
    return {
        "peak_hours": peak_hours(user_id, start, end),
        "focus_sessions": focus_sessions(user_id, start, end),
        "consistency": consistency(user_id, start, end, days),
    }


def get_categories(user_id: str, days: int, category: str | None = None) -> list[dict]:
    start, end = _window(days)
    return category_stats(user_id, start, end, category=category)


def time_entry_summary(user_id: str, days: int) -> dict:
    """Totals behind GET /time-entries/stats."""
    start, end = _window(days)
    entry_count = (
        db.session.query(func.count(TimeEntry.id))
        .filter(*_entry_filters(user_id, start, end))
        .scalar()
    )
    running = (
        db.session.query(func.count(TimeEntry.id))
        .filter(*_entry_filters(user_id, start, end), TimeEntry.end_time.is_(None))
        .scalar()
    )
    total = total_tracked_time(user_id, start, end)
    return {
        "days": days,
        "total_time": total,
        "entry_count": entry_count or 0,
        "running_entries": running or 0,
        "average_daily_time": int(total / days),
        "category_stats": category_stats(user_id, start, end),
    }


def daily_plan_summary(user_id: str, days: int) -> dict:
    """Goal figures behind GET /daily-plans/stats."""
    start, end = _window(days)
    status_rows = (
        db.session.query(DailyPlan.status, func.count(DailyPlan.id))
        .filter(
            DailyPlan.user_id == user_id,
            DailyPlan.deleted_at.is_(None),
            DailyPlan.date >= start.date(),
            DailyPlan.date <= end.date(),
        )
        .group_by(DailyPlan.status)
        .all()
    )
    by_status = {status: 0 for status in ("draft", "active", "completed")}
    for status, count in status_rows:
        by_status[status] = count
    return {
        "days": days,
        "total_plans": sum(by_status.values()),
        "by_status": by_status,
        "goal_completion": goal_completion(user_id, start.date(), end.date()),
    }


# ── Timeseries ────────────────────────────────────────────────────────────

def _bucket(moment, granularity: str) -> tuple[str, str]:
    """(response key, bucket label) for a datetime or date."""
    if granularity == "hour":
        return "timestamp", moment.strftime("%Y-%m-%dT%H:00:00Z")
    day = moment.date() if isinstance(moment, datetime) else moment
    if granularity == "week":
        iso_year, iso_week, _ = day.isocalendar()
        return "week", f"{iso_year}-W{iso_week:02d}"
    return "date", day.isoformat()


def get_timeseries(user_id: str, days: int, metric: str = "time", granularity: str = "day") -> dict:
    """Chart series; unknown metric / granularity fall back to time / day.

    time       → tracked seconds per bucket
    activities → number of entries per bucket
    goals      → plan completion rate (%) per bucket; plans carry only a
                 date, so hourly goals are bucketed per day
    """
    if metric not in TIMESERIES_METRICS:
        metric = "time"
    if granularity not in TIMESERIES_GRANULARITIES:
        granularity = "day"
    start, end = _window(days)

    values = defaultdict(int)
    key_name = "date"
    if metric == "goals":
        plan_granularity = "day" if granularity == "hour" else granularity
        totals = defaultdict(int)
        completed = defaultdict(int)
        plans = (
            db.session.query(DailyPlan.date, DailyPlan.status)
            .filter(
                DailyPlan.user_id == user_id,
                DailyPlan.deleted_at.is_(None),
                DailyPlan.date >= start.date(),
                DailyPlan.date <= end.date(),
            )
            .all()
        )
        for plan_date, status in plans:
            key_name, label = _bucket(plan_date, plan_granularity)
            totals[label] += 1
            if status == "completed":
                completed[label] += 1
        for label, total in totals.items():
            values[label] = _percentage(completed[label], total)
    else:
        rows = (
            db.session.query(TimeEntry.start_time, TimeEntry.duration)
            .filter(*_entry_filters(user_id, start, end))
            .all()
        )
        for start_time, duration in rows:
            key_name, label = _bucket(start_time, granularity)
            values[label] += (duration or 0) if metric == "time" else 1

    data = [{key_name: label, "value": values[label]} for label in sorted(values)]
    return {"metric": metric, "granularity": granularity, "days": days, "data": data}


# ── Insights ──────────────────────────────────────────────────────────────

def _day_part(hour: int) -> str:
    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 17:
        return "Afternoon"
    if 17 <= hour < 22:
        return "Evening"
    return "Night"


def _trend_label(first: float, second: float, tolerance: float = 5.0) -> str:
    if second - first > tolerance:
        return "improving"
    if first - second > tolerance:
        return "declining"
    return "stable"


def _average(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def _average_break_minutes(user_id: str, start: datetime, end: datetime):
    """Mean gap between consecutive finished entries on the same day."""
    rows = (
        db.session.query(TimeEntry.start_time, TimeEntry.end_time)
        .filter(*_entry_filters(user_id, start, end), TimeEntry.end_time.isnot(None))
        .order_by(TimeEntry.start_time)
        .all()
    )
    gaps = []
    for (prev_start, prev_end), (next_start, _next_end) in zip(rows, rows[1:]):
        if prev_start.date() == next_start.date() and next_start > prev_end:
            gaps.append((next_start - prev_end).total_seconds() / 60)
    return round(_average(gaps)) if gaps else None


def get_insights(user_id: str, days: int) -> dict:
    """Rule-based insights derived from the user's own data."""
    start, end = _window(days)
    midpoint = start + (end - start) / 2

    trend = productivity_trend(user_id, start, end)
    hours = peak_hours(user_id, start, end)
    categories = category_stats(user_id, start, end)
    goals = goal_completion(user_id, start.date(), end.date())
    focus = focus_sessions(user_id, start, end)
    break_minutes = _average_break_minutes(user_id, start, end)

    productivity_score = round(_average(p["value"] for p in trend), 2)
    most_productive_hour = max(hours, key=hours.get) if hours else None
    top_category = categories[0]["category"] if categories else None

    recommendations = []
    if not trend:
        recommendations.append("Start tracking your time to unlock personalised insights")
    else:
        if most_productive_hour:
            recommendations.append(
                f"Schedule deep work around {most_productive_hour}, your most productive hour"
            )
        if categories and categories[0]["percentage"] >= 60:
            recommendations.append(
                f"{top_category} takes {categories[0]['percentage']:.0f}% of your time; "
                "consider balancing it with other categories"
            )
        if productivity_score < 50:
            recommendations.append("You are averaging under half of the 8-hour daily goal")
        if focus["total_sessions"] == 0:
            recommendations.append("Try blocking at least 30 uninterrupted minutes for focused work")
    total_plans = goals["daily_goal_met"] + goals["daily_goal_missed"]
    if total_plans:
        if goals["completion_rate"] >= 80:
            recommendations.append(
                f"You complete {goals['completion_rate']:.0f}% of your daily plans; great consistency!"
            )
        elif goals["completion_rate"] < 50:
            recommendations.append("Fewer than half of your plans get completed; try planning less per day")

    # First half of the window against the second half
    midpoint_label = midpoint.date().isoformat()
    first_trend = [p["value"] for p in trend if p["date"] < midpoint_label]
    second_trend = [p["value"] for p in trend if p["date"] >= midpoint_label]
    first_goals = goal_completion(user_id, start.date(), midpoint.date() - timedelta(days=1))
    second_goals = goal_completion(user_id, midpoint.date(), end.date())
    first_categories = category_stats(user_id, start, midpoint)
    second_categories = category_stats(user_id, midpoint, end)

    def _top_share(stats):
        return stats[0]["percentage"] if stats else 0.0

    balance = "balanced" if _top_share(second_categories) < 60 else "needs_attention"
    if balance == "balanced" and _top_share(first_categories) - _top_share(second_categories) > 5:
        balance = "improving"

    return {
        "days": days,
        "productivity_score": productivity_score,
        "most_productive_hour": most_productive_hour,
        "top_category": top_category,
        "recommendations": recommendations,
        "patterns": {
            "peak_productivity": (
                _day_part(int(most_productive_hour[:2])) if most_productive_hour else None
            ),
            "focus_duration": (
                f"{focus['average_duration'] // 60} minutes" if focus["total_sessions"] else None
            ),
            "break_frequency": (
                f"Every {break_minutes} minutes" if break_minutes is not None else None
            ),
        },
        "trends": {
            "productivity_trend": _trend_label(_average(first_trend), _average(second_trend)),
            "goal_completion_trend": _trend_label(
                first_goals["completion_rate"], second_goals["completion_rate"]
            ),
            "category_balance_trend": balance,
        },
    }
