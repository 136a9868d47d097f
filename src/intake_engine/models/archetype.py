"""Archetype and relevance models.

These models mirror the YAML tables under ``intake_engine/tables/``:

  - ArchetypeProfile: one entry of ``archetypes.yaml`` (keywords, pay type,
    relevance flags)
  - Relevance: required / optional / skip classification of a field
  - ArchetypeSignals: the inputs the classifier scores against
  - MissingFields / SkipReason: what the relevance filter reports each turn

Profiles are frozen so the process-wide tables cannot be mutated after load.
"""

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Archetype(str, enum.Enum):
    """Closed enumeration of subject archetypes.

    Declaration order is the canonical enumeration order used to break
    classification ties.
    """

    HOURLY_SERVICE = "hourly_service"
    HOURLY_SKILLED = "hourly_skilled"
    SALARIED_ENTRY = "salaried_entry"
    SALARIED_PROFESSIONAL = "salaried_professional"
    TECH_STARTUP = "tech_startup"
    EXECUTIVE = "executive"
    GIG_CONTRACT = "gig_contract"


class Relevance(str, enum.Enum):
    """How worthwhile a field is to ask about for a given archetype."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    SKIP = "skip"


class PayType(str, enum.Enum):
    HOURLY = "hourly"
    SALARY = "salary"
    VARIES = "varies"


class ArchetypeProfile(BaseModel):
    """Archetype definition from archetypes.yaml."""

    model_config = ConfigDict(frozen=True)

    id: Archetype
    label: str
    description: str
    pay_type: PayType
    remote_relevant: bool
    equity_relevant: bool
    tips_relevant: bool
    keywords: tuple[str, ...]


class ArchetypeSignals(BaseModel):
    """Signals the classifier scores.

    ``remote_allowed`` and ``equity_offered`` are tri-state: ``None`` means
    the respondent has not said.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    category_hint: str = ""
    pay_type: Optional[str] = None
    remote_allowed: Optional[bool] = None
    equity_offered: Optional[bool] = None


class SkipReason(BaseModel):
    field: str
    reason: str


class MissingFields(BaseModel):
    """Per-turn output of the relevance filter.

    ``relevant`` is ordered required-first; ``skipped`` keeps priority order.
    """

    archetype: Archetype
    relevant: list[str]
    skipped: list[str]
    skip_reasons: list[SkipReason] = []
