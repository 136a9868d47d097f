"""TurnOrchestrator tests with a mocked persistence layer and model boundary.

Mock strategy:
  - MockRepository keeps ``Session`` objects in a dict and implements the
    three methods the orchestrator calls (get/create/save), including the
    version-stamp check, so optimistic concurrency is exercised without a
    database.  Stored sessions are deep-copied in and out, just as the
    real repository hands back fresh objects built from rows.
  - ScriptedBoundary returns queued ``TurnResponse`` replies and records
    every ``TurnRequest`` it receives.
  - AsyncMock stands in for AsyncSession (db); it is never touched.
"""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from intake_db.models.enums import SessionStatus
from intake_engine.constants import (
    FIRST_TURN_FALLBACK_MESSAGE,
    TURN_FALLBACK_MESSAGE,
)
from intake_engine.errors import (
    ConcurrentUpdateError,
    ExternalBoundaryError,
    InvalidSessionStateError,
    SessionCreationError,
    SessionNotFoundError,
    WidgetContractWarning,
)
from intake_engine.interfaces import ModelBoundary
from intake_engine.models.archetype import Archetype
from intake_engine.models.boundary import TurnRequest, TurnResponse
from intake_engine.models.friction import FrictionStrategy
from intake_engine.models.session import Answer, Session
from intake_engine.orchestrator import TurnOrchestrator, is_skip, new_session_id


# =====================================================================
# Mock infrastructure
# =====================================================================


class MockRepository:
    """In-memory SessionRepository replacement.

    Versions start at 1 on create and increase by one per save, matching
    SQLAlchemy's ``version_id_col`` behaviour.
    """

    def __init__(self, *, check_version: bool = True, fail_create: bool = False):
        self._sessions: dict[str, Session] = {}
        self._check_version = check_version
        self._fail_create = fail_create
        self.saves = 0

    async def get(self, db, session_id):
        stored = self._sessions.get(session_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def create(self, db, session):
        if self._fail_create or session.session_id in self._sessions:
            raise SessionCreationError(f"Could not persist new session {session.session_id}")
        now = datetime.now(timezone.utc)
        stored = session.model_copy(
            deep=True, update={"version": 1, "created_at": now, "updated_at": now}
        )
        self._sessions[session.session_id] = stored
        return stored.model_copy(deep=True)

    async def save(self, db, session):
        stored = self._sessions.get(session.session_id)
        if stored is None:
            raise SessionNotFoundError(session.session_id)
        if self._check_version and stored.version != session.version:
            raise ConcurrentUpdateError(session.session_id, session.version, stored.version)
        new = session.model_copy(
            deep=True,
            update={"version": stored.version + 1, "updated_at": datetime.now(timezone.utc)},
        )
        self._sessions[session.session_id] = new
        self.saves += 1
        return new.model_copy(deep=True)

    def bump_version(self, session_id):
        """Simulate another request saving the session in the meantime."""
        stored = self._sessions[session_id]
        self._sessions[session_id] = stored.model_copy(update={"version": stored.version + 1})


def reply(message="Next question?", field=None, updates=None, widget=None, phase=None):
    """Build a TurnResponse the way a model gateway would send it."""
    data = {"message": message, "extraction": {"updates": updates or {}}}
    if field is not None:
        data["currently_asking_field"] = field
    if widget is not None:
        data["ui_tool"] = widget
    if phase is not None:
        data["interview_phase"] = phase
    return TurnResponse.model_validate(data)


class ScriptedBoundary(ModelBoundary):
    """Replays queued replies; falls back to a plain question when empty."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.requests: list[TurnRequest] = []

    async def next_turn(self, request):
        self.requests.append(request)
        if self.replies:
            item = self.replies.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return reply()


class FailingBoundary(ModelBoundary):
    async def next_turn(self, request):
        raise ExternalBoundaryError("gateway down")


class InterleavingBoundary(ScriptedBoundary):
    """Bumps the stored version mid-turn, as a concurrent request would."""

    def __init__(self, repo, replies=None):
        super().__init__(replies)
        self.repo = repo

    async def next_turn(self, request):
        if not request.is_first_turn:
            self.repo.bump_version(request.session_id)
        return await super().next_turn(request)


# =====================================================================
# Fixtures
# =====================================================================


@pytest.fixture
def mock_repo():
    """Fresh MockRepository for each test."""
    return MockRepository()


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession — flush/commit are no-ops."""
    return AsyncMock()


@pytest.fixture
def boundary():
    return ScriptedBoundary()


@pytest.fixture
def orchestrator(boundary, mock_repo):
    """TurnOrchestrator with mocked repository."""
    orch = TurnOrchestrator(boundary)
    orch._repo = mock_repo
    return orch


async def _start(orchestrator, mock_db, **kwargs):
    kwargs.setdefault("subject_id", "u1")
    started = await orchestrator.start_session(mock_db, **kwargs)
    return started.session_id, started.first_question


# =====================================================================
# Helpers
# =====================================================================


class TestHelpers:
    def test_session_id_length(self):
        sid = new_session_id()
        assert len(sid) == 12
        assert sid != new_session_id()

    def test_skip_detection(self):
        assert is_skip(Answer(skip=True))
        assert is_skip(Answer(text="  SKIP "))
        assert not is_skip(Answer(text="skip the morning shift"))
        assert not is_skip(Answer())


# =====================================================================
# start_session
# =====================================================================


class TestStartSession:
    """Session creation and the first question."""

    @pytest.mark.asyncio
    async def test_first_question_from_boundary(self, orchestrator, boundary, mock_db, mock_repo):
        boundary.replies = [
            reply(
                "Hi! What role are you hiring for?",
                field="role_overview.job_title",
                widget={"type": "tag_input", "props": {"suggestions": ["Barista"]}},
            )
        ]
        sid, question = await _start(orchestrator, mock_db)

        assert question.message == "Hi! What role are you hiring for?"
        assert question.widget.type == "tag_input"
        assert question.turn_number == 1
        assert question.asking_field == "role_overview.job_title"
        assert not question.fallback

        stored = mock_repo._sessions[sid]
        assert stored.status == SessionStatus.ACTIVE
        assert stored.turn_count == 1
        assert [t.role for t in stored.history] == ["asker"]
        assert stored.metadata.last_asked_field == "role_overview.job_title"
        assert stored.metadata.last_asked_category == "role_overview.job_title"

        request = boundary.requests[0]
        assert request.is_first_turn
        assert request.turn_number == 1
        assert request.prompt, "Prompt should be rendered before the call"

    @pytest.mark.asyncio
    async def test_seed_context_is_merged(self, orchestrator, mock_db, mock_repo):
        sid, _ = await _start(
            orchestrator,
            mock_db,
            seed_context={"role_overview.job_title": "Barista"},
            company_name="Bean Co",
        )
        profile = mock_repo._sessions[sid].profile
        assert profile["role_overview"]["job_title"] == "Barista"
        assert profile["role_overview"]["company_name"] == "Bean Co"
        assert profile["session_id"] == sid
        assert mock_repo._sessions[sid].metadata.archetype is Archetype.HOURLY_SERVICE

    @pytest.mark.asyncio
    async def test_compacted_profile_sent_to_boundary(self, orchestrator, boundary, mock_db):
        await _start(orchestrator, mock_db, seed_context={"role_overview.job_title": "Barista"})
        sent = boundary.requests[0].profile
        assert sent["role_overview"] == {"job_title": "Barista"}
        assert set(sent) == {"id", "role_overview"}
        assert "session_id" not in sent
        assert "created_at" not in sent

    @pytest.mark.asyncio
    async def test_boundary_failure_uses_first_turn_fallback(self, mock_repo, mock_db):
        orch = TurnOrchestrator(FailingBoundary())
        orch._repo = mock_repo
        sid, question = await _start(orch, mock_db)

        assert question.fallback
        assert question.message == FIRST_TURN_FALLBACK_MESSAGE
        assert question.widget.type == "smart_textarea"
        assert question.widget.props["title"] == "Tell me about the role"
        assert mock_repo._sessions[sid].turn_count == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_raises(self, boundary, mock_db):
        orch = TurnOrchestrator(boundary)
        orch._repo = MockRepository(fail_create=True)
        with pytest.raises(SessionCreationError):
            await orch.start_session(mock_db, subject_id="u1")
        assert boundary.requests == [], "Boundary must not be called when create fails"


# =====================================================================
# process_turn
# =====================================================================


class TestProcessTurn:
    """Answer handling, merging, and the next question."""

    @pytest.mark.asyncio
    async def test_unknown_session(self, orchestrator, mock_db):
        with pytest.raises(SessionNotFoundError):
            await orchestrator.process_turn(mock_db, session_id="nope", answer=Answer(text="hi"))

    @pytest.mark.asyncio
    async def test_other_subject_cannot_see_session(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db, subject_id="u1")
        with pytest.raises(SessionNotFoundError):
            await orchestrator.process_turn(
                mock_db, session_id=sid, answer=Answer(text="hi"), subject_id="u2",
            )

    @pytest.mark.asyncio
    async def test_widget_response_lands_at_asked_field(self, orchestrator, boundary, mock_db, mock_repo):
        boundary.replies = [reply("What role?", field="role_overview.job_title")]
        sid, _ = await _start(orchestrator, mock_db)

        nxt = await orchestrator.process_turn(
            mock_db, session_id=sid, answer=Answer(widget_response="Barista"),
        )

        stored = mock_repo._sessions[sid]
        assert stored.profile["role_overview"]["job_title"] == "Barista"
        assert stored.turn_count == 2
        assert [t.role for t in stored.history] == ["asker", "respondent", "asker"]
        assert nxt.turn_number == 2
        assert stored.metadata.archetype is Archetype.HOURLY_SERVICE

    @pytest.mark.asyncio
    async def test_structured_and_model_updates_are_merged(self, orchestrator, boundary, mock_db, mock_repo):
        sid, _ = await _start(orchestrator, mock_db)
        boundary.replies = [
            reply(
                "How many people on the team?",
                field="humans_and_culture.team_composition.team_size",
                updates={"financial_reality.equity.offered": True},
            )
        ]
        await orchestrator.process_turn(
            mock_db,
            session_id=sid,
            answer=Answer(
                text="Senior software engineer",
                updates={"role_overview.job_title": "Senior Software Engineer"},
            ),
        )

        stored = mock_repo._sessions[sid]
        assert stored.profile["role_overview"]["job_title"] == "Senior Software Engineer"
        assert stored.profile["financial_reality"]["equity"]["offered"] is True
        assert stored.metadata.archetype is Archetype.TECH_STARTUP
        assert stored.metadata.last_asked_category == "humans_and_culture.team_composition"

    @pytest.mark.asyncio
    async def test_request_carries_relevance_context(self, orchestrator, boundary, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        await orchestrator.process_turn(
            mock_db,
            session_id=sid,
            answer=Answer(updates={"role_overview.job_title": "Barista"}),
        )
        request = boundary.requests[-1]
        assert request.archetype is Archetype.HOURLY_SERVICE
        assert "financial_reality.equity.offered" in request.skipped_fields
        assert "financial_reality.equity.offered" not in request.missing_fields
        assert request.turn_number == 2
        assert request.answer is not None

    @pytest.mark.asyncio
    async def test_boundary_failure_mid_session(self, orchestrator, boundary, mock_db, mock_repo):
        boundary.replies = [reply("What role?", field="role_overview.job_title")]
        sid, _ = await _start(orchestrator, mock_db)
        boundary.replies = [ExternalBoundaryError("timeout")]

        nxt = await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="Barista"))

        assert nxt.fallback
        assert nxt.message == TURN_FALLBACK_MESSAGE
        assert nxt.widget.props["title"] == "Tell me more"
        stored = mock_repo._sessions[sid]
        assert stored.turn_count == 2
        assert stored.metadata.last_asked_field is None

    @pytest.mark.asyncio
    async def test_invalid_widget_logged_once_and_returned(
        self, orchestrator, boundary, mock_db, caplog, recwarn
    ):
        sid, _ = await _start(orchestrator, mock_db)
        boundary.replies = [reply("Pick perks", widget={"type": "icon_grid", "props": {}})]

        with caplog.at_level(logging.WARNING, logger="intake_engine.orchestrator"):
            nxt = await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="ok"))

        assert nxt.widget.type == "icon_grid"
        contract_logs = [r for r in caplog.records if "violates its contract" in r.getMessage()]
        assert len(contract_logs) == 1
        assert isinstance(contract_logs[0].args[1], WidgetContractWarning)
        assert not [w for w in recwarn if issubclass(w.category, WidgetContractWarning)]

    @pytest.mark.asyncio
    async def test_widget_is_normalised(self, orchestrator, boundary, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        boundary.replies = [
            reply("Pick perks", widget={"type": "icon_grid", "props": {"options": ["Free Lunch"]}})
        ]
        nxt = await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="ok"))
        assert nxt.widget.props["options"] == [
            {"id": "free-lunch", "label": "Free Lunch", "icon": "circle"}
        ]

    @pytest.mark.asyncio
    async def test_empty_answer_is_neither_skip_nor_engagement(self, orchestrator, mock_db, mock_repo):
        sid, _ = await _start(orchestrator, mock_db)
        await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer())
        stored = mock_repo._sessions[sid]
        assert stored.metadata.friction.total_skips == 0
        assert [t.role for t in stored.history] == ["asker", "asker"]


# =====================================================================
# Friction through the orchestrator
# =====================================================================


class TestFrictionFlow:
    """Skips and recovery as seen across whole turns."""

    @pytest.mark.asyncio
    async def test_sensitive_skips_then_recovery(self, orchestrator, boundary, mock_db, mock_repo):
        field = "financial_reality.base_compensation.amount_or_range"
        boundary.replies = [reply("What's the pay?", field=field)]
        sid, _ = await _start(orchestrator, mock_db)

        for _ in range(3):
            boundary.replies = [reply("Maybe a range?", field=field)]
            await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(skip=True))

        friction = mock_repo._sessions[sid].metadata.friction
        assert friction.current_strategy is FrictionStrategy.LOW_DISCLOSURE
        assert boundary.requests[-1].friction.strategy is FrictionStrategy.LOW_DISCLOSURE

        await orchestrator.process_turn(
            mock_db, session_id=sid, answer=Answer(widget_response="$18-22/hr"),
        )

        friction = mock_repo._sessions[sid].metadata.friction
        assert len(friction.skipped_fields) == 3
        assert all(r.field == field for r in friction.skipped_fields)
        assert friction.consecutive_skips == 0
        assert friction.recovery_successes == 1
        assert friction.current_strategy is FrictionStrategy.STANDARD
        profile = mock_repo._sessions[sid].profile
        assert profile["financial_reality"]["base_compensation"]["amount_or_range"] == "$18-22/hr"

    @pytest.mark.asyncio
    async def test_skip_keyword_does_not_write_the_field(self, orchestrator, boundary, mock_db, mock_repo):
        boundary.replies = [reply("Team size?", field="humans_and_culture.team_composition.team_size")]
        sid, _ = await _start(orchestrator, mock_db)

        await orchestrator.process_turn(
            mock_db, session_id=sid, answer=Answer(text="skip", widget_response=5),
        )

        stored = mock_repo._sessions[sid]
        assert stored.profile["humans_and_culture"]["team_composition"]["team_size"] is None
        assert stored.metadata.friction.total_skips == 1
        assert stored.history[1].role == "respondent"

    @pytest.mark.asyncio
    async def test_declined_topic_is_deferred(self, orchestrator, boundary, mock_db, mock_repo):
        boundary.replies = [reply("Any bonuses?", field="financial_reality.bonuses.signing_bonus")]
        sid, _ = await _start(orchestrator, mock_db)

        await orchestrator.process_turn(
            mock_db,
            session_id=sid,
            answer=Answer(skip=True, skip_reason="decline_topic"),
        )

        friction = mock_repo._sessions[sid].metadata.friction
        assert friction.current_strategy is FrictionStrategy.DEFER
        assert friction.deferred_categories == ["financial_reality.bonuses"]
        request = boundary.requests[-1]
        assert not any(f.startswith("financial_reality.bonuses") for f in request.missing_fields)
        assert "financial_reality.bonuses.signing_bonus" in request.skipped_fields


# =====================================================================
# Completion
# =====================================================================


class TestCompletion:
    @pytest.mark.asyncio
    async def test_complete_session_summary(self, orchestrator, mock_db, mock_repo):
        sid, _ = await _start(orchestrator, mock_db)
        summary = await orchestrator.complete_session(mock_db, session_id=sid)

        assert summary.session_id == sid
        assert summary.turn_count == 1
        assert summary.total_skips == 0
        assert summary.completion_percentage == 0
        stored = mock_repo._sessions[sid]
        assert stored.status == SessionStatus.COMPLETED
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_second_completion_is_rejected(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        await orchestrator.complete_session(mock_db, session_id=sid)
        with pytest.raises(InvalidSessionStateError):
            await orchestrator.complete_session(mock_db, session_id=sid)

    @pytest.mark.asyncio
    async def test_no_turns_after_completion(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        await orchestrator.complete_session(mock_db, session_id=sid)
        with pytest.raises(InvalidSessionStateError):
            await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="more"))

    @pytest.mark.asyncio
    async def test_complete_missing_session(self, orchestrator, mock_db):
        with pytest.raises(SessionNotFoundError):
            await orchestrator.complete_session(mock_db, session_id="nope")

    @pytest.mark.asyncio
    async def test_model_complete_phase_auto_completes(self, orchestrator, boundary, mock_db, mock_repo):
        sid, _ = await _start(orchestrator, mock_db)
        boundary.replies = [reply("Thanks, that's everything!", phase="complete")]

        nxt = await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="done"))

        assert nxt.is_complete
        assert nxt.phase == "complete"
        assert mock_repo._sessions[sid].status == SessionStatus.COMPLETED
        with pytest.raises(InvalidSessionStateError):
            await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="more"))


# =====================================================================
# Optimistic concurrency
# =====================================================================


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_stale_turn_is_rejected(self, mock_repo, mock_db):
        boundary = InterleavingBoundary(mock_repo)
        orch = TurnOrchestrator(boundary)
        orch._repo = mock_repo
        sid, _ = await _start(orch, mock_db)

        with pytest.raises(ConcurrentUpdateError):
            await orch.process_turn(mock_db, session_id=sid, answer=Answer(text="Barista"))

    @pytest.mark.asyncio
    async def test_last_write_wins_when_check_disabled(self, mock_db):
        repo = MockRepository(check_version=False)
        boundary = InterleavingBoundary(repo)
        orch = TurnOrchestrator(boundary)
        orch._repo = repo
        sid, _ = await _start(orch, mock_db)

        nxt = await orch.process_turn(mock_db, session_id=sid, answer=Answer(text="Barista"))
        assert nxt.turn_number == 2

    @pytest.mark.asyncio
    async def test_version_advances_per_save(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        first = await orchestrator.get_session(mock_db, session_id=sid)
        await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="hi"))
        second = await orchestrator.get_session(mock_db, session_id=sid)
        assert second.version == first.version + 1


# =====================================================================
# Read API
# =====================================================================


class TestReadAPI:
    @pytest.mark.asyncio
    async def test_get_session_info(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db, subject_id="u7")
        info = await orchestrator.get_session(mock_db, session_id=sid, subject_id="u7")
        assert info.subject_id == "u7"
        assert info.status == SessionStatus.ACTIVE
        assert info.turn_count == 1
        assert info.friction_strategy == "standard"
        assert info.current_phase == "opening"

    @pytest.mark.asyncio
    async def test_get_history_is_chronological(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db)
        await orchestrator.process_turn(mock_db, session_id=sid, answer=Answer(text="Barista"))
        history = await orchestrator.get_history(mock_db, session_id=sid)
        assert [t.role for t in history] == ["asker", "respondent", "asker"]
        assert history[1].content == "Barista"

    @pytest.mark.asyncio
    async def test_get_profile_full_and_compact(self, orchestrator, mock_db):
        sid, _ = await _start(orchestrator, mock_db, seed_context={"role_overview.job_title": "Cook"})
        full = await orchestrator.get_profile(mock_db, session_id=sid)
        small = await orchestrator.get_profile(mock_db, session_id=sid, compact_output=True)

        assert "financial_reality" in full
        assert full["financial_reality"]["equity"]["offered"] is None
        assert small["role_overview"] == {"job_title": "Cook"}
        assert "financial_reality" not in small
        assert "session_id" not in small
