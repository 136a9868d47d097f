"""ORM models for intake_db."""

from intake_db.models.base import Base
from intake_db.models.enums import SessionStatus
from intake_db.models.session import IntakeSession

__all__ = ["Base", "SessionStatus", "IntakeSession"]
