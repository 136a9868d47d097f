"""TurnOrchestrator — drives one adaptive intake conversation turn by turn.

Stateless engine pattern: each call loads the session from the database,
computes the next turn, persists changes, and returns the result.  No
in-memory state is kept between calls.

The orchestrator accepts an ``AsyncSession`` from the caller so that the
caller (typically a FastAPI endpoint) controls transaction boundaries.

One ``process_turn`` call, in order:
    1. load the session; it must be active
    2. append the respondent turn and merge its structured updates
       (a widget response lands at the previously asked field)
    3. classify the turn as skip or engagement; update friction state
    4. reclassify the archetype; compute missing and skipped fields
    5. ask the model boundary for the next question (fixed fallback on
       ``ExternalBoundaryError``)
    6. merge the model's extracted updates; normalise and validate the
       proposed widget (advisory only)
    7. append the asker turn, bump ``turn_count``, refresh metadata,
       auto-complete on the ``complete`` phase, and save
"""

from __future__ import annotations

import copy
import logging
import secrets
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.models.enums import SessionStatus

from intake_engine.archetypes import classify_profile
from intake_engine.constants import (
    COMPLETE_PHASE,
    FIRST_TURN_FALLBACK_MESSAGE,
    FIRST_TURN_FALLBACK_WIDGET,
    SESSION_ID_LENGTH,
    SKIP_KEYWORD,
    TURN_FALLBACK_MESSAGE,
    TURN_FALLBACK_WIDGET,
)
from intake_engine.errors import (
    ExternalBoundaryError,
    InvalidSessionStateError,
    SessionNotFoundError,
    WidgetContractWarning,
)
from intake_engine.friction import friction_context, record_engagement, record_skip
from intake_engine.interfaces import ModelBoundary
from intake_engine.models.boundary import TurnRequest, TurnResponse
from intake_engine.models.profile import ProfileDocument
from intake_engine.models.session import (
    Answer,
    CompletionSummary,
    NextQuestion,
    Session,
    SessionInfo,
    StartedSession,
    Turn,
)
from intake_engine.models.widget import WidgetSpec
from intake_engine.prompt import PromptManager
from intake_engine.reference import ReferenceTables, load_tables
from intake_engine.relevance import missing_fields
from intake_engine.schema_merge import category_of, compact, estimate_completion, merge
from intake_engine.widgets import normalize_widget, validate_widget

if TYPE_CHECKING:
    from intake_db.repository import SessionRepository

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return secrets.token_urlsafe(SESSION_ID_LENGTH)[:SESSION_ID_LENGTH]


def is_skip(answer: Answer) -> bool:
    """An explicit skip flag, or free text equal to the skip keyword."""
    if answer.skip:
        return True
    return (answer.text or "").strip().lower() == SKIP_KEYWORD


class TurnOrchestrator:
    """Orchestrates an adaptive intake conversation.

    Args:
        boundary: the external model that writes the next question.
        prompts: renders the prompt placed on each ``TurnRequest``.
        repo: session persistence; defaults to a ``SessionRepository``.
        tables: reference tables; defaults to the packaged YAML tables.
    """

    def __init__(
        self,
        boundary: ModelBoundary,
        *,
        prompts: PromptManager | None = None,
        repo: SessionRepository | None = None,
        tables: ReferenceTables | None = None,
    ) -> None:
        self._boundary = boundary
        self._prompts = prompts or PromptManager()
        if repo is None:
            # intake_db.repository imports this package; resolve at call time.
            from intake_db.repository import SessionRepository

            repo = SessionRepository()
        self._repo = repo
        self._tables = tables or load_tables()

    @property
    def boundary(self) -> ModelBoundary:
        return self._boundary

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start_session(
        self,
        db: AsyncSession,
        *,
        subject_id: str,
        seed_context: Mapping[str, Any] | None = None,
        company_id: str | None = None,
        company_name: str | None = None,
        user_name: str | None = None,
    ) -> StartedSession:
        """Create a session and produce its first question.

        *seed_context* maps dot paths to already-known values and is merged
        into the blank profile before the first model call.

        Raises:
            SessionCreationError: if the new session cannot be persisted.
        """
        session_id = new_session_id()
        profile = ProfileDocument.blank(
            session_id,
            company_id=company_id,
            company_name=company_name,
            user_name=user_name,
        ).to_document()
        if seed_context:
            profile = merge(profile, seed_context)

        session = Session(session_id=session_id, subject_id=subject_id, profile=profile)
        session = await self._repo.create(db, session)
        logger.info("Started session %s for subject %s", session_id, subject_id)

        archetype = classify_profile(session.profile, self._tables)
        session.metadata.archetype = archetype
        missing = missing_fields(session.profile, archetype, tables=self._tables)
        upcoming = missing.relevant[0] if missing.relevant else None

        request = TurnRequest(
            session_id=session_id,
            turn_number=1,
            is_first_turn=True,
            profile=compact(session.profile) or {},
            archetype=archetype,
            missing_fields=missing.relevant,
            skipped_fields=missing.skipped,
            friction=friction_context(session.metadata.friction, upcoming, self._tables),
            completion_percentage=estimate_completion(session.profile),
        )
        response = await self._call_boundary(request)

        question = await self._finish_turn(
            db,
            session,
            response,
            fallback_message=FIRST_TURN_FALLBACK_MESSAGE,
            fallback_widget=FIRST_TURN_FALLBACK_WIDGET,
        )
        return StartedSession(session_id=session_id, first_question=question)

    async def process_turn(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        answer: Answer,
        subject_id: str | None = None,
    ) -> NextQuestion:
        """Record the respondent's *answer* and return the next question.

        Raises:
            SessionNotFoundError: no session with this id (for this subject).
            InvalidSessionStateError: the session is no longer active.
            ConcurrentUpdateError: another request saved the session first.
        """
        session = await self._load_active(db, session_id, subject_id, "process_turn")
        meta = session.metadata
        turn_number = session.turn_count
        now = _now()
        skipped = is_skip(answer)

        if not answer.is_empty():
            session.history.append(
                Turn(
                    role="respondent",
                    content=answer.text or "",
                    timestamp=now.isoformat(),
                    answer_payload=answer.model_dump(mode="json", exclude_defaults=True),
                )
            )

        updates: list[tuple[str, Any]] = []
        if not skipped and answer.widget_response is not None and meta.last_asked_field:
            updates.append((meta.last_asked_field, answer.widget_response))
        updates.extend(answer.updates.items())
        if updates:
            session.profile = merge(session.profile, updates)

        if skipped:
            meta.friction = record_skip(
                meta.friction,
                field=meta.last_asked_field,
                turn_number=turn_number,
                reason=answer.skip_reason,
                tables=self._tables,
            )
        elif not answer.is_empty():
            meta.friction = record_engagement(meta.friction, turn_number=turn_number)

        archetype = classify_profile(session.profile, self._tables)
        if archetype is not meta.archetype:
            logger.info(
                "Session %s archetype %s -> %s",
                session_id,
                meta.archetype.value if meta.archetype else None,
                archetype.value,
            )
        meta.archetype = archetype

        missing = missing_fields(
            session.profile,
            archetype,
            exclude_categories=meta.friction.deferred_categories,
            tables=self._tables,
        )
        upcoming = missing.relevant[0] if missing.relevant else None

        request = TurnRequest(
            session_id=session_id,
            turn_number=turn_number + 1,
            profile=compact(session.profile) or {},
            history=session.history,
            answer=answer,
            archetype=archetype,
            missing_fields=missing.relevant,
            skipped_fields=missing.skipped,
            friction=friction_context(meta.friction, upcoming, self._tables),
            completion_percentage=estimate_completion(session.profile),
        )
        response = await self._call_boundary(request)

        return await self._finish_turn(
            db,
            session,
            response,
            fallback_message=TURN_FALLBACK_MESSAGE,
            fallback_widget=TURN_FALLBACK_WIDGET,
        )

    async def complete_session(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        subject_id: str | None = None,
    ) -> CompletionSummary:
        """Mark the session completed and return the final profile.

        Raises:
            SessionNotFoundError: no session with this id.
            InvalidSessionStateError: the session was already completed.
        """
        session = await self._load_active(db, session_id, subject_id, "complete_session")
        self._mark_completed(session)
        session = await self._repo.save(db, session)
        logger.info("Completed session %s after %d turns", session_id, session.turn_count)
        return self._to_summary(session)

    # ==================================================================
    # Read API
    # ==================================================================

    async def get_session(
        self, db: AsyncSession, *, session_id: str, subject_id: str | None = None
    ) -> SessionInfo:
        session = await self._load(db, session_id, subject_id)
        return self._to_session_info(session)

    async def get_history(
        self, db: AsyncSession, *, session_id: str, subject_id: str | None = None
    ) -> list[Turn]:
        session = await self._load(db, session_id, subject_id)
        return list(session.history)

    async def get_profile(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        subject_id: str | None = None,
        compact_output: bool = False,
    ) -> dict[str, Any]:
        """Return the profile document, optionally compacted."""
        session = await self._load(db, session_id, subject_id)
        if compact_output:
            return compact(session.profile) or {}
        return session.profile

    # ==================================================================
    # Internals
    # ==================================================================

    async def _load(
        self, db: AsyncSession, session_id: str, subject_id: str | None
    ) -> Session:
        """Load a session or raise ``SessionNotFoundError``.

        A session owned by a different subject is reported as not found.
        """
        session = await self._repo.get(db, session_id)
        if session is None or (subject_id is not None and session.subject_id != subject_id):
            raise SessionNotFoundError(session_id)
        return session

    async def _load_active(
        self, db: AsyncSession, session_id: str, subject_id: str | None, operation: str
    ) -> Session:
        session = await self._load(db, session_id, subject_id)
        if session.status != SessionStatus.ACTIVE:
            raise InvalidSessionStateError(session_id, session.status.value, operation)
        return session

    async def _call_boundary(self, request: TurnRequest) -> TurnResponse | None:
        """Ask the model for the next turn; ``None`` means use the fallback."""
        request.prompt = self._prompts.render_turn(request)
        try:
            return await self._boundary.next_turn(request)
        except ExternalBoundaryError as exc:
            logger.warning(
                "Model boundary failed for session %s turn %d: %s",
                request.session_id,
                request.turn_number,
                exc,
            )
            return None

    def _checked_widget(self, session_id: str, widget: WidgetSpec | None) -> WidgetSpec | None:
        if widget is None:
            return None
        widget = normalize_widget(widget)
        result = validate_widget(widget)
        if not result.valid:
            logger.warning(
                "Session %s: %s",
                session_id,
                WidgetContractWarning(
                    f"widget {widget.type} violates its contract: {'; '.join(result.errors)}"
                ),
            )
        return widget

    async def _finish_turn(
        self,
        db: AsyncSession,
        session: Session,
        response: TurnResponse | None,
        *,
        fallback_message: str,
        fallback_widget: dict[str, Any],
    ) -> NextQuestion:
        """Apply the model reply (or fallback), append the asker turn, and save."""
        meta = session.metadata
        now = _now()

        if response is None:
            message = fallback_message
            widget = WidgetSpec.model_validate(copy.deepcopy(fallback_widget))
            asking_field = None
            phase = meta.current_phase
        else:
            if response.updates:
                session.profile = merge(session.profile, response.updates)
            message = response.message
            widget = self._checked_widget(session.session_id, response.widget)
            asking_field = response.currently_asking_field
            phase = response.interview_phase or meta.current_phase

        session.profile = merge(session.profile, {"updated_at": now.isoformat()})
        session.history.append(
            Turn(
                role="asker",
                content=message,
                timestamp=now.isoformat(),
                widget=widget,
                asking_field=asking_field,
            )
        )
        session.turn_count += 1

        meta.archetype = classify_profile(session.profile, self._tables)
        meta.completion_percentage = estimate_completion(session.profile)
        meta.current_phase = phase
        meta.last_widget_type = widget.type if widget else None
        meta.last_asked_field = asking_field
        meta.last_asked_category = category_of(asking_field)

        if phase == COMPLETE_PHASE:
            self._mark_completed(session)
            logger.info("Session %s auto-completed at turn %d", session.session_id, session.turn_count)

        session = await self._repo.save(db, session)

        return NextQuestion(
            session_id=session.session_id,
            message=message,
            widget=widget,
            turn_number=session.turn_count,
            completion_percentage=meta.completion_percentage,
            phase=phase,
            asking_field=asking_field,
            is_complete=session.status == SessionStatus.COMPLETED,
            fallback=response is None,
        )

    @staticmethod
    def _mark_completed(session: Session) -> None:
        now = _now()
        session.status = SessionStatus.COMPLETED
        session.completed_at = now
        session.updated_at = now

    @staticmethod
    def _to_summary(session: Session) -> CompletionSummary:
        meta = session.metadata
        return CompletionSummary(
            session_id=session.session_id,
            profile=session.profile,
            completion_percentage=estimate_completion(session.profile),
            turn_count=session.turn_count,
            archetype=meta.archetype,
            total_skips=meta.friction.total_skips,
            recovery_successes=meta.friction.recovery_successes,
        )

    @staticmethod
    def _to_session_info(session: Session) -> SessionInfo:
        meta = session.metadata
        return SessionInfo(
            session_id=session.session_id,
            subject_id=session.subject_id,
            status=session.status,
            turn_count=session.turn_count,
            completion_percentage=meta.completion_percentage,
            current_phase=meta.current_phase,
            archetype=meta.archetype,
            friction_strategy=meta.friction.current_strategy.value,
            version=session.version,
            created_at=session.created_at,
            updated_at=session.updated_at,
            completed_at=session.completed_at,
        )
