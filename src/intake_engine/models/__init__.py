"""Public model re-exports for intake_engine.

Consumers should import from ``intake_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Archetypes & relevance ---
from intake_engine.models.archetype import (
    Archetype,
    ArchetypeProfile,
    ArchetypeSignals,
    MissingFields,
    PayType,
    Relevance,
    SkipReason,
)

# --- Model boundary ---
from intake_engine.models.boundary import Extraction, TurnRequest, TurnResponse

# --- Friction ---
from intake_engine.models.friction import (
    FrictionContext,
    FrictionState,
    FrictionStrategy,
    SkipReasonCode,
    SkipRecord,
)

# --- Profile ---
from intake_engine.models.profile import ProfileDocument

# --- Session ---
from intake_engine.models.session import (
    Answer,
    CompletionSummary,
    NextQuestion,
    Session,
    SessionInfo,
    SessionMetadata,
    StartedSession,
    Turn,
)

# --- Widgets ---
from intake_engine.models.widget import (
    ValidationResult,
    WidgetCategory,
    WidgetContract,
    WidgetProps,
    WidgetSpec,
    WidgetType,
    widget_mapper,
)

__all__ = [
    # Archetypes & relevance
    "Archetype",
    "ArchetypeProfile",
    "ArchetypeSignals",
    "MissingFields",
    "PayType",
    "Relevance",
    "SkipReason",
    # Model boundary
    "Extraction",
    "TurnRequest",
    "TurnResponse",
    # Friction
    "FrictionContext",
    "FrictionState",
    "FrictionStrategy",
    "SkipReasonCode",
    "SkipRecord",
    # Profile
    "ProfileDocument",
    # Session
    "Answer",
    "CompletionSummary",
    "NextQuestion",
    "Session",
    "SessionInfo",
    "SessionMetadata",
    "StartedSession",
    "Turn",
    # Widgets
    "ValidationResult",
    "WidgetCategory",
    "WidgetContract",
    "WidgetProps",
    "WidgetSpec",
    "WidgetType",
    "widget_mapper",
]
