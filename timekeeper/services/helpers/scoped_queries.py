"""
Owner-scoped query helper.

Every get-by-id in the service layer goes through get_scoped instead of
``db.session.get(Model, pk)``. A bare primary-key lookup would hand one
user's records to another.

Usage:
    # Scope by owner (TimeEntry, DailyPlan)
    entry = get_scoped(TimeEntry, entry_id, user_id=user_id)

    # Scope by parent (Activity inside a DailyPlan)
    activity = get_scoped(Activity, activity_id, daily_plan_id=plan.id)

Soft-deleted rows are never returned.
"""

import logging

from sqlalchemy import select

from timekeeper.core.exceptions import NotFoundError
from timekeeper.models import db

logger = logging.getLogger(__name__)


def get_scoped(
    model,
    pk: str,
    *,
    user_id: str | None = None,
    daily_plan_id: str | None = None,
):
    """Fetch a single live entity by PK with a mandatory scope filter.

    Cross-user access is indistinguishable from a missing record: both
    raise NotFoundError → HTTP 404.

    Args:
        model: SQLAlchemy model class with an ``id`` PK and the scope column.
        pk: Primary key value to look up.
        user_id: Scope by owning user.
        daily_plan_id: Scope by parent plan.

    Raises:
        ValueError: If no scope is provided, or a scope names a column the
                    model does not have.
        NotFoundError: If the entity does not exist, is soft-deleted, or
                       belongs to a different scope.
    """
    provided_scopes = {
        "user_id": user_id,
        "daily_plan_id": daily_plan_id,
    }
    provided_scopes = {k: v for k, v in provided_scopes.items() if v is not None}

    if not provided_scopes:
        raise ValueError(
            f"{model.__name__} id={pk} requires a scope filter (user_id or daily_plan_id)"
        )

    missing_fields = [field for field in provided_scopes if not hasattr(model, field)]
    if missing_fields:
        raise ValueError(
            f"{model.__name__} has no scope column(s) {sorted(missing_fields)}"
        )

    stmt = select(model).where(model.id == pk, model.deleted_at.is_(None))
    for field, value in provided_scopes.items():
        stmt = stmt.where(getattr(model, field) == value)

    result = db.session.execute(stmt).scalar_one_or_none()

    if result is None:
        logger.debug(
            "get_scoped: %s id=%s not found in scope %s",
            model.__name__,
            pk,
            provided_scopes,
        )
        raise NotFoundError(resource=model.__name__, resource_id=pk)

    return result
