"""IntakeSession ORM model — one row per intake conversation.

The whole aggregate lives in a single row: the profile document, the
append-only turn history, and the orchestrator metadata (archetype cache,
friction state, last asked field) are JSONB columns, so a turn is one
SELECT and one UPDATE.

``version`` is SQLAlchemy's ``version_id_col``: every UPDATE is issued as
``... WHERE id = :id AND version = :old`` and bumps the counter, so two
requests racing on the same session cannot both win.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from intake_db.models.base import Base
from intake_db.models.enums import SessionStatus


class IntakeSession(Base):
    """One row per intake session, addressed by its public ``session_id``."""

    __tablename__ = "intake_sessions"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # Short URL-safe id handed to clients
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Caller identity (X-User-ID)
    subject_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # --- Lifecycle ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.ACTIVE.value,
        index=True,
    )
    turn_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Conversation state ---
    # Path-addressed profile document (see intake_engine.models.profile)
    profile: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    # Ordered list of Turn dicts; index order is chronological
    history: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
    )
    # SessionMetadata dict ("metadata" is reserved on declarative classes)
    session_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    # --- Optimistic concurrency ---
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __mapper_args__ = {"version_id_col": version}

    # --- Table-level constraints ---
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed')",
            name="ck_status_valid",
        ),
        CheckConstraint("turn_count >= 0", name="ck_turn_count_non_negative"),
        # Completed sessions must record when they ended
        CheckConstraint(
            "status != 'completed' OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
        # GIN index for JSONB path lookups on the profile
        Index("ix_intake_profile_gin", "profile", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<IntakeSession(id={self.id!s}, session={self.session_id!r}, "
            f"subject={self.subject_id!r}, status={self.status!r}, "
            f"turns={self.turn_count}, version={self.version})>"
        )
