"""Model-boundary request/response models.

``TurnRequest`` is everything the external model needs to produce the next
question; ``TurnResponse`` is what it must send back.  The response model
keeps unknown keys so fields added on the model side survive parsing.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from intake_engine.models.archetype import Archetype
from intake_engine.models.friction import FrictionContext
from intake_engine.models.session import Answer, Turn
from intake_engine.models.widget import WidgetSpec


class TurnRequest(BaseModel):
    session_id: str
    turn_number: int
    is_first_turn: bool = False
    profile: dict[str, Any]
    history: list[Turn] = []
    answer: Optional[Answer] = None
    archetype: Archetype
    missing_fields: list[str] = []
    skipped_fields: list[str] = []
    friction: FrictionContext
    completion_percentage: int = 0
    # Rendered by PromptManager; may be empty for boundaries that build
    # their own prompt.
    prompt: str = ""


class Extraction(BaseModel):
    model_config = ConfigDict(extra="allow")

    updates: dict[str, Any] = Field(default_factory=dict)
    confidence: dict[str, Any] = Field(default_factory=dict)


class TurnResponse(BaseModel):
    """Parsed model reply.  ``ui_tool`` is the wire name of ``widget``."""

    message: str
    widget: Optional[WidgetSpec] = Field(default=None, alias="ui_tool")
    extraction: Extraction = Field(default_factory=Extraction)
    currently_asking_field: Optional[str] = None
    next_priority_fields: list[str] = Field(default_factory=list)
    completion_percentage: Optional[int] = None
    interview_phase: Optional[str] = None
    tool_reasoning: Optional[str] = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @property
    def updates(self) -> dict[str, Any]:
        return self.extraction.updates
