"""Intake constants shared across the SDK.

These values are referenced by the merge engine, friction state machine,
and turn orchestrator.  The larger static tables (archetypes, relevance,
priority fields) live as YAML under ``tables/`` and are loaded by
``intake_engine.reference``.

Several constants can be overridden via environment variables so that
deployments can tune the interview without code changes.
"""

import os

# The fixed top-level categories that count towards completion.
# Each earns full credit above COMPLETION_FULL_THRESHOLD filled leaves,
# half credit for any lower non-zero count.
SCORED_CATEGORIES: tuple[str, ...] = (
    "financial_reality",
    "time_and_life",
    "environment",
    "humans_and_culture",
    "growth_trajectory",
    "stability_signals",
    "role_reality",
    "unique_value",
)

COMPLETION_FULL_THRESHOLD = int(os.getenv("COMPLETION_FULL_THRESHOLD", "2"))

# Housekeeping keys dropped by compact() before handing the profile to
# the model boundary.
HOUSEKEEPING_KEYS: frozenset[str] = frozenset(
    {"created_at", "updated_at", "session_id"}
)

# Top-level keys that are not interview content.  Ignored when listing
# filled fields.
NON_CONTENT_KEYS: frozenset[str] = frozenset(
    {"id", "session_id", "company_id", "created_at", "updated_at", "user_context"}
)

# Length of generated session identifiers.
SESSION_ID_LENGTH = int(os.getenv("SESSION_ID_LENGTH", "12"))

# Number of recent history turns rendered into the model prompt.
# Overridable via PROMPT_HISTORY_TURNS.
PROMPT_HISTORY_TURNS = int(os.getenv("PROMPT_HISTORY_TURNS", "12"))

# How many missing fields are surfaced to the model per turn.
PROMPT_MISSING_FIELDS = int(os.getenv("PROMPT_MISSING_FIELDS", "10"))

# A respondent answer of exactly this text (case-insensitive) counts as a skip.
SKIP_KEYWORD = "skip"

# Phase tag on a new session, and the tag that ends it.
INITIAL_PHASE = "opening"
COMPLETE_PHASE = "complete"

# Fixed questions returned when the model boundary fails.
FIRST_TURN_FALLBACK_MESSAGE = (
    "Hello! I'm here to learn about your job opportunity. "
    "Let's start with something simple."
)
FIRST_TURN_FALLBACK_WIDGET: dict = {
    "type": "smart_textarea",
    "props": {
        "title": "Tell me about the role",
        "prompts": ["What position are you hiring for?"],
    },
}
TURN_FALLBACK_MESSAGE = "I had trouble processing that. Let me try asking differently..."
TURN_FALLBACK_WIDGET: dict = {
    "type": "smart_textarea",
    "props": {
        "title": "Tell me more",
        "prompts": ["What else would you like to share about this role?"],
    },
}
