"""Exception taxonomy for the intake SDK.

Every error the orchestrator raises on purpose derives from
``IntakeError`` so the server can map the whole family in one place
(see ``intake_server.errors``).  Messages may carry session identifiers;
they are logged server-side and never forwarded to clients verbatim.

``ExternalBoundaryError`` is raised by model-boundary implementations and
recovered inside the orchestrator with a fixed fallback question, so API
callers never observe it.  ``WidgetContractWarning`` is a warning, not an
error: a malformed widget is logged and the turn proceeds.
"""


class IntakeError(Exception):
    """Base class for intake SDK errors."""


class SessionNotFoundError(IntakeError):
    """No session exists for the given identifier."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: session_id={session_id}")
        self.session_id = session_id


class InvalidSessionStateError(IntakeError):
    """Operation attempted on a session whose status does not allow it."""

    def __init__(self, session_id: str, status: str, operation: str) -> None:
        super().__init__(
            f"{operation} is only valid on active sessions, "
            f"but session {session_id} is '{status}'"
        )
        self.session_id = session_id
        self.status = status
        self.operation = operation


class SessionCreationError(IntakeError):
    """Persisting a brand-new session failed."""


class ConcurrentUpdateError(IntakeError):
    """A save was rejected because the stored session moved on.

    Raised when the version stamp carried by the in-memory session does
    not match the persisted row.
    """

    def __init__(self, session_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Stale write for session {session_id}: "
            f"expected version {expected}, found {actual}"
        )
        self.session_id = session_id
        self.expected = expected
        self.actual = actual


class ExternalBoundaryError(IntakeError):
    """The model boundary failed or returned data that does not parse."""


class WidgetContractWarning(UserWarning):
    """A proposed widget does not satisfy its declared contract."""
