"""intake_db — PostgreSQL persistence layer for intake sessions.

This package provides the ORM model and async engine factory.  The
repository (``intake_db.repository``) converts rows to and from the
``intake_engine`` session model and is imported from there directly.
"""

from intake_db.models.session import IntakeSession
from intake_db.models.enums import SessionStatus
from intake_db.engine import dispose_engine, get_engine, get_session_factory

__all__ = [
    "IntakeSession",
    "SessionStatus",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
]
