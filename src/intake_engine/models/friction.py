"""Friction models — per-session skip tracking and the mandated strategy.

``FrictionState`` is persisted inside session metadata and mutated only by
``intake_engine.friction``.  ``FrictionContext`` is the read-only digest
handed to the model boundary each turn.
"""

import enum
from typing import Optional

from pydantic import BaseModel, Field


class FrictionStrategy(str, enum.Enum):
    """Questioning posture the asker is instructed to take.

    Transitions (see ``intake_engine.friction``):
        standard -> low_disclosure   (2nd consecutive skip, or a sensitive skip)
        standard -> education        (3rd+ consecutive skip)
        any      -> defer            (respondent declines a topic outright)
        any      -> standard         (respondent engages again)
    """

    STANDARD = "standard"
    EDUCATION = "education"
    LOW_DISCLOSURE = "low_disclosure"
    DEFER = "defer"


class SkipReasonCode(str, enum.Enum):
    """Why the respondent skipped, as reported by the widget layer."""

    UNKNOWN = "unknown"
    DONT_KNOW = "dont_know"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"
    NOT_APPLICABLE = "not_applicable"
    COME_BACK_LATER = "come_back_later"
    DECLINE_TOPIC = "decline_topic"


class SkipRecord(BaseModel):
    """One entry of the append-only skip history."""

    field: Optional[str] = None
    category: Optional[str] = None
    reason: SkipReasonCode = SkipReasonCode.UNKNOWN
    turn_number: int
    timestamp: str


class FrictionState(BaseModel):
    total_skips: int = 0
    consecutive_skips: int = 0
    skipped_fields: list[SkipRecord] = Field(default_factory=list)
    recovery_attempts: int = 0
    recovery_successes: int = 0
    last_recovery_turn: Optional[int] = None
    current_strategy: FrictionStrategy = FrictionStrategy.STANDARD
    strategy_changed_at: Optional[int] = None
    # Categories the respondent declined outright; never asked again.
    deferred_categories: list[str] = Field(default_factory=list)


class FrictionContext(BaseModel):
    """Digest of friction state for the model boundary."""

    strategy: FrictionStrategy
    directive: str
    total_skips: int
    consecutive_skips: int
    recent_skipped_fields: list[str] = []
    deferred_categories: list[str] = []
