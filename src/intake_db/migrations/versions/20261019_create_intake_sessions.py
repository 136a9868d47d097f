"""Create the intake_sessions table.

One row per intake conversation with the profile, history and metadata
held as JSONB, plus the ``version`` counter used for optimistic locking.

Revision ID: 20261019_intake_sessions
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_intake_sessions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "intake_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("session_id", sa.Text(), nullable=False, unique=True),
        sa.Column("subject_id", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("turn_count", sa.Integer(), nullable=False),
        sa.Column(
            "profile", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column(
            "history", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column(
            "metadata", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('active', 'completed')", name="ck_status_valid"),
        sa.CheckConstraint("turn_count >= 0", name="ck_turn_count_non_negative"),
        sa.CheckConstraint(
            "status != 'completed' OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
    )
    op.create_index("ix_intake_sessions_subject_id", "intake_sessions", ["subject_id"])
    op.create_index("ix_intake_sessions_status", "intake_sessions", ["status"])
    op.create_index(
        "ix_intake_profile_gin", "intake_sessions", ["profile"], postgresql_using="gin"
    )


def downgrade() -> None:
    op.drop_index("ix_intake_profile_gin", table_name="intake_sessions")
    op.drop_index("ix_intake_sessions_status", table_name="intake_sessions")
    op.drop_index("ix_intake_sessions_subject_id", table_name="intake_sessions")
    op.drop_table("intake_sessions")
