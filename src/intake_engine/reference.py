"""Reference tables — loads the static YAML under ``tables/`` into read-only lookups.

This is the single source of truth for archetype definitions, field
relevance, the priority field list, and sensitive-field prefixes.  Tables
are parsed once per process (``functools.lru_cache``) and exposed as
``MappingProxyType`` / tuples / frozen models, so nothing downstream can
mutate them.

Usage::

    tables = load_tables()               # parsed once, cached
    tables.archetypes[Archetype.EXECUTIVE].label
    tables.relevance["financial_reality.equity"][Archetype.HOURLY_SERVICE]
    tables.priority_fields[0]

Call ``load_tables(tables_dir)`` with an explicit directory to load an
alternative table set (tests, experiments); each directory is cached
separately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from intake_engine.models.archetype import Archetype, ArchetypeProfile, Relevance

logger = logging.getLogger(__name__)

DEFAULT_TABLES_DIR = Path(__file__).parent / "tables"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@dataclass(frozen=True)
class ReferenceTables:
    """Immutable bundle of every static lookup the engine consults.

    Attributes:
        archetypes        — Archetype → ArchetypeProfile, in enumeration order
        relevance         — category path → (Archetype → Relevance)
        priority_fields   — ordered dot paths the interviewer works through
        sensitive_prefixes — path prefixes handled with low disclosure
        pay_families      — pay type → declared pay-frequency values
    """

    archetypes: Mapping[Archetype, ArchetypeProfile]
    relevance: Mapping[str, Mapping[Archetype, Relevance]]
    priority_fields: tuple[str, ...]
    sensitive_prefixes: tuple[str, ...]
    pay_families: Mapping[str, frozenset[str]]


@lru_cache(maxsize=None)
def load_tables(tables_dir: Path | str | None = None) -> ReferenceTables:
    """Parse the YAML tables under *tables_dir* (defaults to the packaged set).

    Raises ``FileNotFoundError`` if a table is missing and ``ValueError``
    if the archetype table does not cover the full enumeration in order.
    """
    base = Path(tables_dir) if tables_dir is not None else DEFAULT_TABLES_DIR

    # --- Archetypes ---
    raw_archetypes = load_yaml(base / "archetypes.yaml")
    profiles = [ArchetypeProfile.model_validate(entry) for entry in raw_archetypes]
    order = [p.id for p in profiles]
    if order != list(Archetype):
        raise ValueError(
            f"archetypes.yaml must list every archetype in canonical order, got {order}"
        )
    archetypes = MappingProxyType({p.id: p for p in profiles})

    # --- Relevance ---
    raw_relevance: dict[str, dict[str, str]] = load_yaml(base / "relevance.yaml")
    relevance: dict[str, Mapping[Archetype, Relevance]] = {}
    for category, row in raw_relevance.items():
        if len(category.split(".")) != 2:
            raise ValueError(f"Relevance keys must be two-segment paths: {category!r}")
        relevance[category] = MappingProxyType(
            {Archetype(a): Relevance(level) for a, level in row.items()}
        )

    # --- Fields ---
    raw_fields = load_yaml(base / "fields.yaml")
    pay_families = MappingProxyType(
        {
            family: frozenset(str(v).lower() for v in values)
            for family, values in raw_fields["pay_families"].items()
        }
    )

    tables = ReferenceTables(
        archetypes=archetypes,
        relevance=MappingProxyType(relevance),
        priority_fields=tuple(raw_fields["priority_fields"]),
        sensitive_prefixes=tuple(raw_fields["sensitive_prefixes"]),
        pay_families=pay_families,
    )
    logger.info(
        "Reference tables loaded from %s: %d archetypes, %d relevance rows, "
        "%d priority fields",
        base,
        len(tables.archetypes),
        len(tables.relevance),
        len(tables.priority_fields),
    )
    return tables
