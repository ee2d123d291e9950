"""
Seed Service — default tags.

Safe to run multiple times: existing tag names are skipped. Called at
schema initialisation and from the ``flask seed-tags`` CLI command.
"""

import logging

from timekeeper.models import db
from timekeeper.models.time_entry import Tag

logger = logging.getLogger(__name__)

DEFAULT_TAGS = (
    ("Work", "#3b82f6"),
    ("Personal", "#10b981"),
    ("Learning", "#8b5cf6"),
    ("Exercise", "#f59e0b"),
    ("Meeting", "#ef4444"),
)


def seed_default_tags() -> int:
    """Insert the default tags that are missing; returns how many were created.

    The caller commits.
    """
    created = 0
    for name, color in DEFAULT_TAGS:
        if Tag.query.filter_by(name=name).first() is None:
            db.session.add(Tag(name=name, color=color))
            created += 1

    if created > 0:
        db.session.flush()
        logger.info("Seeded %d default tags", created)

    return created
