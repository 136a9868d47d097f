"""Database-level enumerations for intake sessions."""

import enum


class SessionStatus(str, enum.Enum):
    """Lifecycle states for an intake session.

    Transitions:
        active -> completed  (explicit completion, or the model reports
                              the ``complete`` phase)

    ``completed`` is terminal; no further turns are accepted.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
