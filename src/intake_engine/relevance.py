"""Field relevance filter — decides which fields are worth asking about.

Relevance is looked up per (category, archetype) in the static table.  A
field path is normalised to its first two segments before lookup, so
``financial_reality.equity.offered`` is governed by the
``financial_reality.equity`` row.  Unknown categories are ``optional``.

``partition`` splits a candidate list into ``relevant`` and ``skipped``;
``relevant`` is a stable partition with required fields first, each group
keeping its input order.
"""

from __future__ import annotations

from typing import Any, Iterable

from intake_engine.archetypes import archetype_label
from intake_engine.models.archetype import (
    Archetype,
    MissingFields,
    PayType,
    Relevance,
    SkipReason,
)
from intake_engine.reference import ReferenceTables, load_tables
from intake_engine.schema_merge import category_of, get_path, is_empty_value


def relevance_of(
    field_path: str,
    archetype: Archetype,
    tables: ReferenceTables | None = None,
) -> Relevance:
    """Return required/optional/skip for *field_path* under *archetype*."""
    tables = tables or load_tables()
    row = tables.relevance.get(category_of(field_path) or "")
    if row is None:
        return Relevance.OPTIONAL
    return row.get(Archetype(archetype), Relevance.OPTIONAL)


def partition(
    fields: Iterable[str],
    archetype: Archetype,
    include_optional: bool = True,
    tables: ReferenceTables | None = None,
) -> tuple[list[str], list[str]]:
    """Split *fields* into ``(relevant, skipped)``.

    Optional fields are dropped from both lists when ``include_optional``
    is false.
    """
    tables = tables or load_tables()
    required: list[str] = []
    optional: list[str] = []
    skipped: list[str] = []
    for field in fields:
        level = relevance_of(field, archetype, tables)
        if level is Relevance.SKIP:
            skipped.append(field)
        elif level is Relevance.REQUIRED:
            required.append(field)
        elif include_optional:
            optional.append(field)
    return required + optional, skipped


def explain_skip(
    field: str,
    archetype: Archetype,
    tables: ReferenceTables | None = None,
) -> str:
    """Human-readable reason a field is not asked for this archetype."""
    tables = tables or load_tables()
    archetype = Archetype(archetype)
    profile = tables.archetypes[archetype]
    salaried = profile.pay_type is PayType.SALARY

    if "equity" in field:
        if not profile.equity_relevant:
            return "Equity is not typically offered for this role type"
    elif "tips" in field:
        if not profile.tips_relevant:
            return "Tips are not applicable for this role type"
    elif "remote" in field or "async" in field:
        if not profile.remote_relevant:
            return "This role is on-site by nature"
    elif "break_reality" in field:
        if salaried:
            return "Break policies are typically flexible for salaried roles"
    elif "career_path" in field or "learning" in field:
        if archetype is Archetype.GIG_CONTRACT:
            return "Not applicable for contract/gig work"
        if archetype is Archetype.EXECUTIVE:
            return "Executive roles have self-directed career paths"
    elif "payment_reliability" in field:
        if salaried:
            return "Payment reliability is assumed for salaried positions"

    return f"Not typically relevant for {archetype_label(archetype, tables)} positions"


def skip_reasons(
    fields: Iterable[str],
    archetype: Archetype,
    tables: ReferenceTables | None = None,
) -> list[SkipReason]:
    return [
        SkipReason(field=f, reason=explain_skip(f, archetype, tables)) for f in fields
    ]


def missing_fields(
    document: dict[str, Any],
    archetype: Archetype,
    *,
    exclude_categories: Iterable[str] = (),
    include_optional: bool = True,
    tables: ReferenceTables | None = None,
) -> MissingFields:
    """Priority fields still empty in *document*, filtered by relevance.

    Fields in ``exclude_categories`` (topics the respondent declined) are
    reported as skipped regardless of the table.
    """
    tables = tables or load_tables()
    excluded = set(exclude_categories)

    candidates: list[str] = []
    declined: list[str] = []
    for path in tables.priority_fields:
        if not is_empty_value(get_path(document, path)):
            continue
        if category_of(path) in excluded:
            declined.append(path)
        else:
            candidates.append(path)

    relevant, skipped = partition(candidates, archetype, include_optional, tables)
    reasons = skip_reasons(skipped, archetype, tables) + [
        SkipReason(field=f, reason="The respondent declined this topic") for f in declined
    ]
    return MissingFields(
        archetype=archetype,
        relevant=relevant,
        skipped=skipped + declined,
        skip_reasons=reasons,
    )
