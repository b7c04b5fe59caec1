"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("timezone", sa.String(50), nullable=True, server_default="UTC"),
        sa.Column("device_sources", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)

    # Daily Metrics table
    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("steps", sa.Integer(), nullable=True),
        sa.Column("sleep_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("hrv", sa.Float(), nullable=True),
        sa.Column("resting_heart_rate", sa.Integer(), nullable=True),
        sa.Column("recovery_score", sa.Float(), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("data_sources", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_user_date"),
    )
    op.create_index(op.f("ix_daily_metrics_date"), "daily_metrics", ["date"], unique=False)
    op.create_index(op.f("ix_daily_metrics_id"), "daily_metrics", ["id"], unique=False)
    op.create_index(op.f("ix_daily_metrics_user_id"), "daily_metrics", ["user_id"], unique=False)

    # Metric Baselines table
    op.create_table(
        "metric_baselines",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("metric_type", sa.String(20), nullable=False),
        sa.Column("avg_7day", sa.Float(), nullable=True),
        sa.Column("avg_14day", sa.Float(), nullable=True),
        sa.Column("avg_30day", sa.Float(), nullable=True),
        sa.Column("stddev_7day", sa.Float(), nullable=True),
        sa.Column("stddev_14day", sa.Float(), nullable=True),
        sa.Column("stddev_30day", sa.Float(), nullable=True),
        sa.Column("min_7day", sa.Float(), nullable=True),
        sa.Column("max_7day", sa.Float(), nullable=True),
        sa.Column("sample_count_7day", sa.Integer(), nullable=True),
        sa.Column("sample_count_14day", sa.Integer(), nullable=True),
        sa.Column("sample_count_30day", sa.Integer(), nullable=True),
        sa.Column("computed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "metric_type", name="uq_user_metric_type"),
    )
    op.create_index(op.f("ix_metric_baselines_id"), "metric_baselines", ["id"], unique=False)
    op.create_index(op.f("ix_metric_baselines_user_id"), "metric_baselines", ["user_id"], unique=False)

    # Correlation Patterns table
    op.create_table(
        "correlation_patterns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("pattern_type", sa.String(20), nullable=True, server_default="correlation"),
        sa.Column("metric_a", sa.String(20), nullable=False),
        sa.Column("metric_b", sa.String(20), nullable=False),
        sa.Column("time_lag_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("correlation_strength", sa.Float(), nullable=False),
        sa.Column("direction", sa.String(10), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("sample_size", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("last_observed", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "metric_a", "metric_b", "time_lag_days",
            name="uq_user_pattern_key",
        ),
    )
    op.create_index(op.f("ix_correlation_patterns_id"), "correlation_patterns", ["id"], unique=False)
    op.create_index(op.f("ix_correlation_patterns_user_id"), "correlation_patterns", ["user_id"], unique=False)
    op.create_index(
        "ix_correlation_patterns_user_active",
        "correlation_patterns",
        ["user_id", "is_active"],
        unique=False,
    )

    # Refresh States table
    op.create_table(
        "refresh_states",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("job_type", sa.String(20), nullable=False),
        sa.Column("last_run_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "job_type", name="uq_user_job_type"),
    )
    op.create_index(op.f("ix_refresh_states_id"), "refresh_states", ["id"], unique=False)
    op.create_index(op.f("ix_refresh_states_user_id"), "refresh_states", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_refresh_states_user_id"), table_name="refresh_states")
    op.drop_index(op.f("ix_refresh_states_id"), table_name="refresh_states")
    op.drop_table("refresh_states")

    op.drop_index("ix_correlation_patterns_user_active", table_name="correlation_patterns")
    op.drop_index(op.f("ix_correlation_patterns_user_id"), table_name="correlation_patterns")
    op.drop_index(op.f("ix_correlation_patterns_id"), table_name="correlation_patterns")
    op.drop_table("correlation_patterns")

    op.drop_index(op.f("ix_metric_baselines_user_id"), table_name="metric_baselines")
    op.drop_index(op.f("ix_metric_baselines_id"), table_name="metric_baselines")
    op.drop_table("metric_baselines")

    op.drop_index(op.f("ix_daily_metrics_user_id"), table_name="daily_metrics")
    op.drop_index(op.f("ix_daily_metrics_id"), table_name="daily_metrics")
    op.drop_index(op.f("ix_daily_metrics_date"), table_name="daily_metrics")
    op.drop_table("daily_metrics")

    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
