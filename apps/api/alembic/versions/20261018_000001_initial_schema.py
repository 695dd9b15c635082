"""create analytics event tables

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_000001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "views",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("user_agent", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_views_slug"), "views", ["slug"], unique=False)
    op.create_index(op.f("ix_views_timestamp"), "views", ["timestamp"], unique=False)
    op.create_index("idx_views_session_slug", "views", ["session_id", "slug"], unique=False)

    op.create_table(
        "feedback",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_feedback_slug"), "feedback", ["slug"], unique=False)
    op.create_index(op.f("ix_feedback_timestamp"), "feedback", ["timestamp"], unique=False)
    op.create_index("idx_feedback_session_slug", "feedback", ["session_id", "slug"], unique=False)

    op.create_table(
        "reading_analytics",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("max_scroll_depth", sa.Integer(), nullable=False),
        sa.Column("reached_25", sa.Boolean(), nullable=True),
        sa.Column("reached_50", sa.Boolean(), nullable=True),
        sa.Column("reached_75", sa.Boolean(), nullable=True),
        sa.Column("reached_100", sa.Boolean(), nullable=True),
        sa.Column("time_on_page", sa.Integer(), nullable=False),
        sa.Column("exit_scroll_position", sa.Integer(), nullable=False),
        sa.Column("user_agent", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reading_analytics_slug"), "reading_analytics", ["slug"], unique=False)
    op.create_index(op.f("ix_reading_analytics_timestamp"), "reading_analytics", ["timestamp"], unique=False)
    op.create_index(op.f("ix_reading_analytics_reached_100"), "reading_analytics", ["reached_100"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_reading_analytics_reached_100"), table_name="reading_analytics")
    op.drop_index(op.f("ix_reading_analytics_timestamp"), table_name="reading_analytics")
    op.drop_index(op.f("ix_reading_analytics_slug"), table_name="reading_analytics")
    op.drop_table("reading_analytics")

    op.drop_index("idx_feedback_session_slug", table_name="feedback")
    op.drop_index(op.f("ix_feedback_timestamp"), table_name="feedback")
    op.drop_index(op.f("ix_feedback_slug"), table_name="feedback")
    op.drop_table("feedback")

    op.drop_index("idx_views_session_slug", table_name="views")
    op.drop_index(op.f("ix_views_timestamp"), table_name="views")
    op.drop_index(op.f("ix_views_slug"), table_name="views")
    op.drop_table("views")
