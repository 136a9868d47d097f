"""Session endpoints — start, answer, complete, and inspect a session.

All endpoints require the ``X-User-ID`` header.  A session belongs to the
subject that started it; other subjects get 404 for it.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from intake_engine.models.session import (
    Answer,
    CompletionSummary,
    NextQuestion,
    SessionInfo,
    StartedSession,
    Turn,
)
from intake_engine.orchestrator import TurnOrchestrator

from intake_server.dependencies import get_db, get_orchestrator, get_user_id

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class StartSessionRequest(BaseModel):
    """Body for POST /sessions.  Everything is optional."""

    # Already-known values keyed by dot path, e.g. {"role_overview.job_title": "Barista"}
    seed_context: dict[str, Any] = Field(default_factory=dict)
    company_id: str | None = None
    company_name: str | None = None
    user_name: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def start_session(
    body: StartSessionRequest | None = None,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> StartedSession:
    """Start a session and return its first question.  503 if it cannot be stored."""
    body = body or StartSessionRequest()
    return await orchestrator.start_session(
        db,
        subject_id=user_id,
        seed_context=body.seed_context,
        company_id=body.company_id,
        company_name=body.company_name,
        user_name=body.user_name,
    )


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> SessionInfo:
    return await orchestrator.get_session(db, session_id=session_id, subject_id=user_id)


@router.post("/sessions/{session_id}/turns")
async def submit_turn(
    session_id: str,
    answer: Answer,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> NextQuestion:
    """Submit the respondent's answer and get the next question.

    409 if the session is completed or was modified concurrently.
    """
    return await orchestrator.process_turn(
        db, session_id=session_id, answer=answer, subject_id=user_id,
    )


@router.post("/sessions/{session_id}/complete")
async def complete_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> CompletionSummary:
    """Close the session and return the final profile.  409 if already closed."""
    return await orchestrator.complete_session(
        db, session_id=session_id, subject_id=user_id,
    )


@router.get("/sessions/{session_id}/history")
async def get_history(
    session_id: str,
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> list[Turn]:
    """Return every turn so far, oldest first."""
    return await orchestrator.get_history(db, session_id=session_id, subject_id=user_id)


@router.get("/sessions/{session_id}/profile")
async def get_profile(
    session_id: str,
    compact: bool = Query(False, description="Drop empty branches and housekeeping keys"),
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    return await orchestrator.get_profile(
        db, session_id=session_id, subject_id=user_id, compact_output=compact,
    )
