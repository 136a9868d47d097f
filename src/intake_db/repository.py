"""Async repository for IntakeSession rows.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries; the repository flushes but never commits.

This is the only module that knows both the ORM row and the
``intake_engine`` ``Session`` model.  Callers get and give ``Session``
objects; rows never leave this module.

Optimistic concurrency: a ``Session`` carries the ``version`` it was read
at.  With ``check_version`` on, ``save`` rejects a session whose version
no longer matches the stored row.  The row's ``version_id_col`` also
guards the read-modify-write window inside a single flush, so a
``StaleDataError`` from the ORM is reported the same way.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from intake_db.models.enums import SessionStatus
from intake_db.models.session import IntakeSession
from intake_engine.errors import (
    ConcurrentUpdateError,
    SessionCreationError,
    SessionNotFoundError,
)
from intake_engine.models.session import Session, SessionMetadata, Turn

logger = logging.getLogger(__name__)


class SessionRepository:
    """Async read/write operations on the ``intake_sessions`` table.

    Args:
        check_version: reject saves carrying a stale ``version``.  When
            off, the last write wins.
    """

    def __init__(self, *, check_version: bool = True) -> None:
        self._check_version = check_version

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, session_id: str) -> Session | None:
        """Fetch a session by its public id.  Returns None if not found."""
        row = await self._get_row(db, session_id)
        if row is None:
            return None
        return self._to_session(row)

    async def _get_row(self, db: AsyncSession, session_id: str) -> IntakeSession | None:
        stmt = select(IntakeSession).where(IntakeSession.session_id == session_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, db: AsyncSession, session: Session) -> Session:
        """Insert a new row for *session* and return it with its version.

        Raises:
            SessionCreationError: the insert failed (duplicate id, lost
                connection, constraint violation).
        """
        row = IntakeSession(session_id=session.session_id, subject_id=session.subject_id)
        self._apply(row, session)
        db.add(row)
        try:
            await db.flush()  # Populate id, version, timestamps
        except SQLAlchemyError as exc:
            logger.exception("Failed to create session %s", session.session_id)
            raise SessionCreationError(
                f"Could not persist new session {session.session_id}"
            ) from exc
        return self._to_session(row)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def save(self, db: AsyncSession, session: Session) -> Session:
        """Write *session* back to its row and return it at the new version.

        Raises:
            SessionNotFoundError: the row no longer exists.
            ConcurrentUpdateError: the row moved past ``session.version``.
        """
        row = await self._get_row(db, session.session_id)
        if row is None:
            raise SessionNotFoundError(session.session_id)
        if self._check_version and row.version != session.version:
            raise ConcurrentUpdateError(session.session_id, session.version, row.version)

        self._apply(row, session)
        row.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except StaleDataError as exc:
            raise ConcurrentUpdateError(
                session.session_id, session.version, row.version
            ) from exc
        return self._to_session(row)

    # ------------------------------------------------------------------
    # Row <-> Session conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _apply(row: IntakeSession, session: Session) -> None:
        """Copy the mutable parts of *session* onto *row*."""
        row.status = SessionStatus(session.status).value
        row.turn_count = session.turn_count
        # Fresh containers so SQLAlchemy sees the JSONB columns as changed.
        row.profile = copy.deepcopy(session.profile)
        row.history = [t.model_dump(mode="json") for t in session.history]
        row.session_metadata = session.metadata.model_dump(mode="json")
        row.completed_at = session.completed_at

    @staticmethod
    def _to_session(row: IntakeSession) -> Session:
        return Session(
            session_id=row.session_id,
            subject_id=row.subject_id,
            status=SessionStatus(row.status),
            turn_count=row.turn_count,
            profile=copy.deepcopy(row.profile or {}),
            history=[Turn.model_validate(t) for t in row.history or []],
            metadata=SessionMetadata.model_validate(row.session_metadata or {}),
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
            completed_at=row.completed_at,
        )
