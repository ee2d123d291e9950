"""initial_schema

Create users, tags, time_entries, time_entry_tags, daily_plans and
activities.

Revision ID: 5f1c2a9d3e01
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "5f1c2a9d3e01"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            *_audit_columns(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    if "tags" not in existing_tables:
        op.create_table(
            "tags",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("color", sa.String(length=20), nullable=True),
            *_audit_columns(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )
        op.create_index("ix_tags_deleted_at", "tags", ["deleted_at"])

    if "time_entries" not in existing_tables:
        op.create_table(
            "time_entries",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("start_time", sa.DateTime(), nullable=False),
            sa.Column("end_time", sa.DateTime(), nullable=True),
            sa.Column("duration", sa.Integer(), nullable=True),
            sa.Column("category", sa.String(length=100), nullable=False),
            *_audit_columns(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
        op.create_index("ix_time_entries_start_time", "time_entries", ["start_time"])
        op.create_index("ix_time_entries_category", "time_entries", ["category"])
        op.create_index("ix_time_entries_deleted_at", "time_entries", ["deleted_at"])
        op.create_index("ix_time_entries_user_start", "time_entries", ["user_id", "start_time"])

    if "time_entry_tags" not in existing_tables:
        op.create_table(
            "time_entry_tags",
            sa.Column("time_entry_id", sa.String(length=36), nullable=False),
            sa.Column("tag_id", sa.String(length=36), nullable=False),
            sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["time_entry_id"], ["time_entries.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("time_entry_id", "tag_id"),
        )

    if "daily_plans" not in existing_tables:
        op.create_table(
            "daily_plans",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("total_estimated_time", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_actual_time", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
            *_audit_columns(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_daily_plans_user_id", "daily_plans", ["user_id"])
        op.create_index("ix_daily_plans_date", "daily_plans", ["date"])
        op.create_index("ix_daily_plans_deleted_at", "daily_plans", ["deleted_at"])
        op.create_index(
            "uq_daily_plans_user_date_live",
            "daily_plans",
            ["user_id", "date"],
            unique=True,
            postgresql_where=sa.text("deleted_at IS NULL"),
            sqlite_where=sa.text("deleted_at IS NULL"),
        )

    if "activities" not in existing_tables:
        op.create_table(
            "activities",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("daily_plan_id", sa.String(length=36), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("estimated_time", sa.Integer(), nullable=False),
            sa.Column("actual_time", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("category", sa.String(length=100), nullable=False),
            sa.Column("priority", sa.String(length=10), nullable=False, server_default="medium"),
            sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
            *_audit_columns(),
            sa.ForeignKeyConstraint(["daily_plan_id"], ["daily_plans.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_activities_daily_plan_id", "activities", ["daily_plan_id"])
        op.create_index("ix_activities_deleted_at", "activities", ["deleted_at"])


def downgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    for table in ("activities", "daily_plans", "time_entry_tags", "time_entries", "tags", "users"):
        if table in existing_tables:
            op.drop_table(table)
