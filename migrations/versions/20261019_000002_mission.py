"""Add contributor missions.

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_000002"
down_revision = "20261019_000001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "mission",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contributor_id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("class_id", sa.Integer(), nullable=True),
        sa.Column("habit_category", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["contributor_id"], ["app_user.id"]),
        sa.ForeignKeyConstraint(["student_id"], ["app_user.id"]),
        sa.ForeignKeyConstraint(["class_id"], ["school_class.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mission_contributor_id", "mission", ["contributor_id"], unique=False)
    op.create_index("ix_mission_student_id", "mission", ["student_id"], unique=False)
    op.create_index("ix_mission_class_id", "mission", ["class_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_mission_class_id", table_name="mission")
    op.drop_index("ix_mission_student_id", table_name="mission")
    op.drop_index("ix_mission_contributor_id", table_name="mission")
    op.drop_table("mission")
