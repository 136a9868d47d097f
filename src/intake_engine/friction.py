"""Friction state machine — tracks skipping and mandates a questioning strategy.

The orchestrator classifies each respondent turn as a *skip* or an
*engagement* and calls ``record_skip`` or ``record_engagement``.  Both
return a new ``FrictionState``; the input is never mutated.

On a skip the strategy is chosen by priority:

  1. reason ``decline_topic``            → defer (category is deferred)
  2. field in a sensitive category        → low_disclosure
  3. consecutive skips: 1 → standard (pivot), 2 → low_disclosure,
     3+ → education

Entering any non-standard strategy counts as a recovery attempt.  An
engagement resets the consecutive counter; if the strategy was not
standard it counts as a recovery success and the strategy reverts.

``defer`` is only reachable through an explicit decline, never by count.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from intake_engine.models.friction import (
    FrictionContext,
    FrictionState,
    FrictionStrategy,
    SkipReasonCode,
    SkipRecord,
)
from intake_engine.reference import ReferenceTables, load_tables
from intake_engine.schema_merge import category_of

logger = logging.getLogger(__name__)

# Consecutive-skip thresholds for escalation.
LOW_DISCLOSURE_AFTER = 2
EDUCATION_AFTER = 3

# How many recent skips are surfaced to the model.
RECENT_SKIPS_SHOWN = 5

_DIRECTIVES: dict[FrictionStrategy, str] = {
    FrictionStrategy.STANDARD: "Ask naturally; one topic at a time.",
    FrictionStrategy.EDUCATION: "EXPLAIN VALUE first, then soft invitation to share",
    FrictionStrategy.LOW_DISCLOSURE: "Offer RANGES or yes/no",
    FrictionStrategy.DEFER: "SKIP this topic entirely",
}
_PIVOT_DIRECTIVE = "The last question was skipped: PIVOT to an unrelated category."


def is_sensitive(field: str | None, tables: ReferenceTables | None = None) -> bool:
    """True when *field* sits under one of the sensitive prefixes."""
    if not field:
        return False
    tables = tables or load_tables()
    return any(
        field == prefix or field.startswith(prefix + ".")
        for prefix in tables.sensitive_prefixes
    )


def _escalate_by_count(consecutive: int) -> FrictionStrategy:
    if consecutive >= EDUCATION_AFTER:
        return FrictionStrategy.EDUCATION
    if consecutive >= LOW_DISCLOSURE_AFTER:
        return FrictionStrategy.LOW_DISCLOSURE
    return FrictionStrategy.STANDARD


def record_skip(
    state: FrictionState,
    *,
    field: str | None,
    turn_number: int,
    reason: SkipReasonCode | None = None,
    tables: ReferenceTables | None = None,
) -> FrictionState:
    """Return the state after the respondent skipped *field*."""
    reason = SkipReasonCode(reason) if reason else SkipReasonCode.UNKNOWN
    category = category_of(field)
    new = state.model_copy(deep=True)

    new.total_skips += 1
    new.consecutive_skips += 1
    new.skipped_fields.append(
        SkipRecord(
            field=field,
            category=category,
            reason=reason,
            turn_number=turn_number,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
    )

    if reason is SkipReasonCode.DECLINE_TOPIC:
        strategy = FrictionStrategy.DEFER
        if category and category not in new.deferred_categories:
            new.deferred_categories.append(category)
    elif is_sensitive(field, tables):
        strategy = FrictionStrategy.LOW_DISCLOSURE
    else:
        strategy = _escalate_by_count(new.consecutive_skips)

    if strategy is not new.current_strategy:
        logger.info(
            "Friction strategy %s -> %s at turn %d (consecutive=%d, field=%s)",
            new.current_strategy.value,
            strategy.value,
            turn_number,
            new.consecutive_skips,
            field,
        )
        if strategy is not FrictionStrategy.STANDARD:
            new.recovery_attempts += 1
        new.current_strategy = strategy
        new.strategy_changed_at = turn_number

    return new


def record_engagement(state: FrictionState, *, turn_number: int) -> FrictionState:
    """Return the state after the respondent gave a real answer."""
    new = state.model_copy(deep=True)
    new.consecutive_skips = 0
    if new.current_strategy is not FrictionStrategy.STANDARD:
        logger.info(
            "Friction recovered from %s at turn %d",
            new.current_strategy.value,
            turn_number,
        )
        new.recovery_successes += 1
        new.last_recovery_turn = turn_number
        new.current_strategy = FrictionStrategy.STANDARD
        new.strategy_changed_at = turn_number
    return new


def friction_context(
    state: FrictionState,
    upcoming_field: str | None = None,
    tables: ReferenceTables | None = None,
) -> FrictionContext:
    """Digest *state* into the directive handed to the model boundary.

    If *upcoming_field* is sensitive and its category was skipped before,
    the low-disclosure posture is mandated whatever the current strategy.
    """
    strategy = state.current_strategy
    directive = _DIRECTIVES[strategy]

    if strategy is FrictionStrategy.STANDARD and state.consecutive_skips == 1:
        directive = _PIVOT_DIRECTIVE

    upcoming_category = category_of(upcoming_field)
    if (
        upcoming_category
        and strategy is FrictionStrategy.STANDARD
        and is_sensitive(upcoming_field, tables)
        and any(r.category == upcoming_category for r in state.skipped_fields)
    ):
        strategy = FrictionStrategy.LOW_DISCLOSURE
        directive = _DIRECTIVES[strategy]

    recent = [r.field for r in state.skipped_fields[-RECENT_SKIPS_SHOWN:] if r.field]
    return FrictionContext(
        strategy=strategy,
        directive=directive,
        total_skips=state.total_skips,
        consecutive_skips=state.consecutive_skips,
        recent_skipped_fields=recent,
        deferred_categories=list(state.deferred_categories),
    )
