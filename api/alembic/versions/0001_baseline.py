"""baseline: users and series

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Range rules on series mirror the service-layer validation so rows written
outside the API still satisfy them.
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "series",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("rating", sa.Numeric(3, 1), nullable=False),
        sa.Column("total_seasons", sa.Integer(), nullable=False),
        sa.Column("total_episodes", sa.Integer(), nullable=False),
        sa.Column("watched_episodes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "rating >= 0 AND rating <= 10", name="ck_series_rating_range"
        ),
        sa.CheckConstraint("total_seasons >= 1", name="ck_series_total_seasons_min"),
        sa.CheckConstraint(
            "total_episodes >= 1", name="ck_series_total_episodes_min"
        ),
        sa.CheckConstraint("watched_episodes >= 0", name="ck_series_watched_min"),
        sa.CheckConstraint(
            "watched_episodes <= total_episodes", name="ck_series_watched_le_total"
        ),
        sa.CheckConstraint(
            "status IN ('planned', 'watching', 'completed')",
            name="ck_series_status_values",
        ),
    )
    op.create_index("ix_series_owner_id", "series", ["owner_id"])
    op.create_index("ix_series_owner_created", "series", ["owner_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_series_owner_created", table_name="series")
    op.drop_index("ix_series_owner_id", table_name="series")
    op.drop_table("series")
    op.drop_table("users")
