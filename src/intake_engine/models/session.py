"""Session and turn models — the contract between the orchestrator and API callers.

These models are intentionally decoupled from the ORM row in ``intake_db``
so that API consumers never see database internals.  The repository is the
only place that converts between the two.

  - Session: the full aggregate the orchestrator loads, mutates, and saves
  - Turn: one append-only entry of the conversation history
  - Answer: what the respondent submits on a turn
  - StartedSession / NextQuestion / CompletionSummary: operation results
  - SessionInfo: public status view
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from intake_db.models.enums import SessionStatus
from intake_engine.constants import INITIAL_PHASE
from intake_engine.models.archetype import Archetype
from intake_engine.models.friction import FrictionState, SkipReasonCode
from intake_engine.models.widget import WidgetSpec


class Turn(BaseModel):
    """One message in the conversation.  Index order is chronological order."""

    role: Literal["asker", "respondent"]
    content: str = ""
    timestamp: str
    widget: Optional[WidgetSpec] = None
    # Respondent turns: the raw widget response and skip details.
    answer_payload: Optional[dict[str, Any]] = None
    # Asker turns: the field this question targets.
    asking_field: Optional[str] = None


class SessionMetadata(BaseModel):
    completion_percentage: int = 0
    current_phase: str = INITIAL_PHASE
    last_widget_type: Optional[str] = None
    last_asked_field: Optional[str] = None
    last_asked_category: Optional[str] = None
    archetype: Optional[Archetype] = None
    friction: FrictionState = Field(default_factory=FrictionState)


class Session(BaseModel):
    """Full session aggregate.

    ``version`` is the optimistic-concurrency stamp: the repository refuses
    to save a session whose version no longer matches the stored row.
    ``profile`` is the canonical path-addressed document.
    """

    session_id: str
    subject_id: str
    status: SessionStatus = SessionStatus.ACTIVE
    turn_count: int = Field(default=0, ge=0)
    profile: dict[str, Any]
    history: list[Turn] = Field(default_factory=list)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class Answer(BaseModel):
    """A respondent's submission for one turn.

    Any combination is allowed: free text, a widget response, an explicit
    skip, and structured ``updates`` keyed by dot path.
    """

    text: Optional[str] = None
    widget_response: Any = None
    skip: bool = False
    skip_reason: Optional[SkipReasonCode] = None
    updates: dict[str, Any] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            not (self.text and self.text.strip())
            and self.widget_response is None
            and not self.skip
            and not self.updates
        )


class NextQuestion(BaseModel):
    """What the caller renders next."""

    session_id: str
    message: str
    widget: Optional[WidgetSpec] = None
    turn_number: int
    completion_percentage: int
    phase: str
    asking_field: Optional[str] = None
    is_complete: bool = False
    fallback: bool = False


class StartedSession(BaseModel):
    session_id: str
    first_question: NextQuestion


class SessionInfo(BaseModel):
    """Public view of session state for API consumers."""

    session_id: str
    subject_id: str
    status: SessionStatus
    turn_count: int
    completion_percentage: int
    current_phase: str
    archetype: Optional[Archetype] = None
    friction_strategy: str
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CompletionSummary(BaseModel):
    session_id: str
    profile: dict[str, Any]
    completion_percentage: int
    turn_count: int
    archetype: Optional[Archetype] = None
    total_skips: int
    recovery_successes: int
