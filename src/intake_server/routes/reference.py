"""Reference data endpoints — archetypes, relevance table, widget catalog.

Read-only views of the static tables loaded at startup, plus two
stateless helpers (classify signals, validate a widget).  They don't
require the ``X-User-ID`` header since nothing here is per-subject.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from intake_engine.archetypes import classify, score
from intake_engine.models.archetype import (
    Archetype,
    ArchetypeProfile,
    ArchetypeSignals,
    Relevance,
)
from intake_engine.models.widget import WidgetContract, WidgetSpec
from intake_engine.reference import ReferenceTables
from intake_engine.widgets import catalog, normalize_widget, validate_widget

from intake_server.dependencies import get_tables

router = APIRouter(prefix="/reference", tags=["reference"])


@router.get("/archetypes")
def list_archetypes(
    tables: ReferenceTables = Depends(get_tables),
) -> list[ArchetypeProfile]:
    """All archetypes in canonical (tie-break) order."""
    return list(tables.archetypes.values())


@router.post("/archetypes/classify")
def classify_signals(
    signals: ArchetypeSignals,
    tables: ReferenceTables = Depends(get_tables),
) -> dict[str, Any]:
    """Classify *signals* and show the per-archetype scores behind it."""
    archetype = classify(signals, tables)
    return {
        "archetype": archetype.value,
        "label": tables.archetypes[archetype].label,
        "scores": {
            a.value: score(profile, signals, tables)
            for a, profile in tables.archetypes.items()
        },
    }


@router.get("/relevance/{archetype}")
def relevance_for(
    archetype: Archetype,
    tables: ReferenceTables = Depends(get_tables),
) -> dict[str, Relevance]:
    """Relevance of every tabled category for one archetype."""
    return {
        category: row.get(archetype, Relevance.OPTIONAL)
        for category, row in tables.relevance.items()
    }


@router.get("/widgets")
def list_widgets() -> list[WidgetContract]:
    return catalog()


@router.post("/widgets/validate")
def validate_widget_spec(
    widget: WidgetSpec,
    normalize: bool = Query(True, description="Repair common shape mistakes first"),
) -> dict[str, Any]:
    """Check a widget against its contract; returns the (normalised) widget too."""
    if normalize:
        widget = normalize_widget(widget)
    result = validate_widget(widget)
    return {"widget": widget, "valid": result.valid, "errors": result.errors}
