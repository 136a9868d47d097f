"""Archetype classifier — maps role signals to one archetype.

``classify`` is a pure function: the same signals always produce the same
archetype, so the orchestrator can re-run it every turn as the profile
fills in.  Scoring per archetype:

  +2  per keyword found in the title (case-insensitive substring)
  +1  per keyword found in the category hint
  +3  declared pay type is exactly ``hourly``, archetype paid hourly
  +1  any other declared pay type in the archetype's pay family
  +3  equity offered, archetype equity-relevant
  -2  equity not offered, archetype equity-relevant
  +1  remote signal agrees with the archetype's remote relevance

The strictly highest score wins.  Ties go to the archetype listed first in
``Archetype``; this tie-break is arbitrary but deterministic.
"""

from __future__ import annotations

import logging
from typing import Any

from intake_engine.models.archetype import Archetype, ArchetypeProfile, ArchetypeSignals, PayType
from intake_engine.models.profile import ProfileDocument
from intake_engine.reference import ReferenceTables, load_tables

logger = logging.getLogger(__name__)


def pay_family(pay_type: str | None, tables: ReferenceTables | None = None) -> str | None:
    """Return the pay family (hourly/salary/varies) a declared value belongs to."""
    if not pay_type:
        return None
    tables = tables or load_tables()
    value = pay_type.strip().lower()
    for family, members in tables.pay_families.items():
        if value in members:
            return family
    return None


def score(
    profile: ArchetypeProfile,
    signals: ArchetypeSignals,
    tables: ReferenceTables | None = None,
) -> int:
    """Score one archetype against the signals."""
    title = signals.title.lower()
    hint = signals.category_hint.lower()
    total = 0

    for keyword in profile.keywords:
        kw = keyword.lower()
        if kw in title:
            total += 2
        if kw in hint:
            total += 1

    if signals.pay_type:
        declared = signals.pay_type.strip().lower()
        if declared == PayType.HOURLY.value and profile.pay_type is PayType.HOURLY:
            total += 3
        elif pay_family(declared, tables) == profile.pay_type.value:
            total += 1

    if profile.equity_relevant:
        if signals.equity_offered is True:
            total += 3
        elif signals.equity_offered is False:
            total -= 2

    if signals.remote_allowed is True and profile.remote_relevant:
        total += 1
    elif signals.remote_allowed is False and not profile.remote_relevant:
        total += 1

    return total


def classify(signals: ArchetypeSignals, tables: ReferenceTables | None = None) -> Archetype:
    """Return the best-scoring archetype for *signals*."""
    tables = tables or load_tables()
    ranked = iter(tables.archetypes.items())
    best, first = next(ranked)
    best_score = score(first, signals, tables)
    for archetype, profile in ranked:
        s = score(profile, signals, tables)
        # Strict comparison keeps the earliest archetype on ties.
        if s > best_score:
            best, best_score = archetype, s
    logger.debug("Classified %s as %s (score=%d)", signals, best.value, best_score)
    return best


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value if v is not None)
    return str(value)


def _as_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def signals_from_profile(document: dict[str, Any]) -> ArchetypeSignals:
    """Collect classifier signals from a profile document.

    The document is read through its typed ``ProfileDocument`` view.  Title
    prefers the explicit job title and falls back to the detected role
    category; non-boolean remote/equity values count as unknown.
    """
    tree = ProfileDocument.from_document(document or {})
    meta = tree.extraction_metadata
    pay = tree.financial_reality.base_compensation.pay_frequency
    return ArchetypeSignals(
        title=_as_text(tree.role_overview.job_title) or _as_text(meta.role_category_detected),
        category_hint=_as_text(meta.industry_detected),
        pay_type=pay if isinstance(pay, str) and pay.strip() else None,
        remote_allowed=_as_bool(tree.time_and_life.flexibility.remote_allowed),
        equity_offered=_as_bool(tree.financial_reality.equity.offered),
    )


def classify_profile(document: dict[str, Any], tables: ReferenceTables | None = None) -> Archetype:
    """Shortcut: ``classify(signals_from_profile(document))``."""
    return classify(signals_from_profile(document), tables)


def archetype_label(archetype: Archetype | str, tables: ReferenceTables | None = None) -> str:
    tables = tables or load_tables()
    try:
        return tables.archetypes[Archetype(archetype)].label
    except ValueError:
        return "Unknown Role Type"


def list_archetypes(tables: ReferenceTables | None = None) -> list[ArchetypeProfile]:
    tables = tables or load_tables()
    return list(tables.archetypes.values())
