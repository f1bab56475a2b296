"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-01-10

Creates the four user-owned tables:
- profile (one row per authenticated user, curriculum vow/streak/tracks)
- experiment
- log_entry
- journal_entry
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("onboarded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("vow", sa.Text(), nullable=True),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_practice_date", sa.Date(), nullable=True),
        sa.Column("metta_object", sa.Text(), nullable=False, server_default=sa.text("'self'")),
        sa.Column("karuna_object", sa.Text(), nullable=False, server_default=sa.text("'self'")),
        sa.Column("mudita_object", sa.Text(), nullable=False, server_default=sa.text("'self'")),
        sa.Column("upekkha_object", sa.Text(), nullable=False, server_default=sa.text("'self'")),
        sa.CheckConstraint("streak >= 0", name="ck_profile_streak_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "experiment",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("hypothesis", sa.Text(), nullable=False),
        sa.Column("protocol", sa.Text(), nullable=False),
        sa.Column("metrics", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'active'")),
        sa.Column("conclusion", sa.Text(), nullable=True),
        sa.CheckConstraint("duration_days >= 1", name="ck_experiment_duration_positive"),
        sa.CheckConstraint("status IN ('active', 'completed', 'abandoned')", name="ck_experiment_status"),
        sa.ForeignKeyConstraint(["user_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_experiment_user_id", "experiment", ["user_id"], unique=False)
    op.create_index("ix_experiment_user_status", "experiment", ["user_id", "status"], unique=False)
    op.create_index(
        "ux_experiment_one_active_per_user",
        "experiment",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "log_entry",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False),
        sa.Column("experiment_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("entry_type", sa.Text(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("ratings", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sit_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("technique_notes", sa.Text(), nullable=True),
        sa.CheckConstraint("entry_type IN ('before_sit', 'after_sit', 'eod')", name="ck_log_entry_type"),
        sa.ForeignKeyConstraint(["user_id"], ["profile.id"]),
        sa.ForeignKeyConstraint(["experiment_id"], ["experiment.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_log_entry_user_id", "log_entry", ["user_id"], unique=False)
    op.create_index("ix_log_entry_experiment_id", "log_entry", ["experiment_id"], unique=False)
    op.create_index("ix_log_entry_user_date", "log_entry", ["user_id", "entry_date"], unique=False)
    op.create_index("ix_log_entry_experiment_date", "log_entry", ["experiment_id", "entry_date"], unique=False)

    op.create_table(
        "journal_entry",
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("entry_type", sa.Text(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("data", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.CheckConstraint(
            "entry_type IN ('session', 'missed_day', 'readiness_gate')",
            name="ck_journal_entry_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_journal_entry_user_id", "journal_entry", ["user_id"], unique=False)
    op.create_index(
        "ix_journal_entry_user_type_date", "journal_entry", ["user_id", "entry_type", "entry_date"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_journal_entry_user_type_date", table_name="journal_entry")
    op.drop_index("ix_journal_entry_user_id", table_name="journal_entry")
    op.drop_table("journal_entry")

    op.drop_index("ix_log_entry_experiment_date", table_name="log_entry")
    op.drop_index("ix_log_entry_user_date", table_name="log_entry")
    op.drop_index("ix_log_entry_experiment_id", table_name="log_entry")
    op.drop_index("ix_log_entry_user_id", table_name="log_entry")
    op.drop_table("log_entry")

    op.drop_index("ux_experiment_one_active_per_user", table_name="experiment")
    op.drop_index("ix_experiment_user_status", table_name="experiment")
    op.drop_index("ix_experiment_user_id", table_name="experiment")
    op.drop_table("experiment")

    op.drop_table("profile")
