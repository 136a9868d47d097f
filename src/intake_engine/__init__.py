"""intake_engine — adaptive conversational intake SDK.

Public API:
    TurnOrchestrator  — drives a session: start, process turns, complete
    ModelBoundary     — ABC for the external model that writes questions
    HttpModelBoundary — ModelBoundary over a JSON-over-HTTP gateway
    PromptManager     — Jinja2 prompt renderer for the model boundary
    ReferenceTables   — archetype, relevance, and priority-field tables

Building blocks (pure functions, usable without a database):
    classify / classify_profile     — archetype classifier
    relevance_of / partition        — field relevance filter
    missing_fields / explain_skip
    record_skip / record_engagement — friction state machine
    friction_context
    merge / estimate_completion     — schema merge engine
    compact
    validate / normalize_widget     — UI tool contract validator

Session models:
    Answer, NextQuestion, StartedSession, SessionInfo, CompletionSummary,
    Turn — see ``intake_engine.models`` for the full list.
"""

from intake_engine.models import (
    Answer,
    Archetype,
    CompletionSummary,
    FrictionState,
    FrictionStrategy,
    NextQuestion,
    ProfileDocument,
    SessionInfo,
    StartedSession,
    Turn,
    TurnRequest,
    TurnResponse,
    WidgetSpec,
)
from intake_engine.archetypes import classify, classify_profile
from intake_engine.errors import (
    ConcurrentUpdateError,
    ExternalBoundaryError,
    IntakeError,
    InvalidSessionStateError,
    SessionCreationError,
    SessionNotFoundError,
    WidgetContractWarning,
)
from intake_engine.friction import friction_context, record_engagement, record_skip
from intake_engine.http_boundary import HttpModelBoundary
from intake_engine.interfaces import ModelBoundary
from intake_engine.orchestrator import TurnOrchestrator
from intake_engine.prompt import PromptManager
from intake_engine.reference import ReferenceTables, load_tables
from intake_engine.relevance import explain_skip, missing_fields, partition, relevance_of
from intake_engine.schema_merge import compact, estimate_completion, merge
from intake_engine.widgets import normalize_widget, validate

__all__ = [
    # Orchestration
    "TurnOrchestrator",
    "ModelBoundary",
    "HttpModelBoundary",
    "PromptManager",
    "ReferenceTables",
    "load_tables",
    # Pure components
    "classify",
    "classify_profile",
    "relevance_of",
    "partition",
    "missing_fields",
    "explain_skip",
    "record_skip",
    "record_engagement",
    "friction_context",
    "merge",
    "estimate_completion",
    "compact",
    "validate",
    "normalize_widget",
    # Models
    "Answer",
    "Archetype",
    "CompletionSummary",
    "FrictionState",
    "FrictionStrategy",
    "NextQuestion",
    "ProfileDocument",
    "SessionInfo",
    "StartedSession",
    "Turn",
    "TurnRequest",
    "TurnResponse",
    "WidgetSpec",
    # Errors
    "IntakeError",
    "SessionNotFoundError",
    "InvalidSessionStateError",
    "SessionCreationError",
    "ConcurrentUpdateError",
    "ExternalBoundaryError",
    "WidgetContractWarning",
]
