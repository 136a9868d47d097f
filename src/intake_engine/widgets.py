"""UI tool contract validator and normaliser.

``validate`` checks a proposed widget against the props model registered
for its type in ``widget_mapper``.  The result is advisory: the
orchestrator logs and warns on an invalid widget but still returns it.

``normalize_widget`` repairs the shapes the external model most often gets
wrong (bare strings where objects are expected, left/right instead of
leftLabel/rightLabel) before validation runs.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from intake_engine.models.widget import (
    ValidationResult,
    WidgetContract,
    WidgetSpec,
    WidgetType,
    widget_mapper,
)

logger = logging.getLogger(__name__)

_SLUG_MAX = 50
_DEFAULT_ICON = "circle"

# Widgets whose ``options`` list holds {id, label, icon} cards.
_OPTION_CARD_TYPES = frozenset(
    {WidgetType.ICON_GRID, WidgetType.DETAILED_CARDS, WidgetType.GRADIENT_CARDS}
)


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace, cap at 50 chars."""
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")[:_SLUG_MAX]


def widget_type_of(name: str) -> WidgetType | None:
    try:
        return WidgetType(name)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate(widget_type: str, props: Mapping[str, Any] | None) -> ValidationResult:
    """Check *props* against the required props of *widget_type*.

    Unknown types yield a single "Unknown UI tool" error; otherwise one
    "Missing required prop" error per absent required prop.
    """
    wtype = widget_type_of(widget_type)
    if wtype is None:
        return ValidationResult(valid=False, errors=[f"Unknown UI tool: {widget_type}"])
    props = props or {}
    errors = [
        f"Missing required prop: {name}"
        for name in widget_mapper[wtype].required_props()
        if name not in props
    ]
    return ValidationResult(valid=not errors, errors=errors)


def validate_widget(widget: WidgetSpec) -> ValidationResult:
    return validate(widget.type, widget.props)


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def _normalize_chip_groups(groups: list[Any]) -> list[Any]:
    fixed = []
    for group in groups:
        if isinstance(group, dict) and isinstance(group.get("items"), list):
            group = {
                **group,
                "items": [
                    {"id": slugify(item), "label": item} if isinstance(item, str) else item
                    for item in group["items"]
                ],
            }
        fixed.append(group)
    return fixed


def _normalize_option_cards(options: list[Any]) -> list[Any]:
    return [
        {"id": slugify(opt), "label": opt, "icon": _DEFAULT_ICON}
        if isinstance(opt, str)
        else opt
        for opt in options
    ]


def _normalize_bipolar_items(items: list[Any]) -> list[Any]:
    fixed = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            fixed.append(item)
            continue
        item = dict(item)
        if "leftLabel" not in item and "left" in item:
            item["leftLabel"] = item.pop("left")
        if "rightLabel" not in item and "right" in item:
            item["rightLabel"] = item.pop("right")
        item.setdefault("id", f"scale-{i}")
        item.setdefault("value", 0)
        fixed.append(item)
    return fixed


def normalize_widget(widget: WidgetSpec) -> WidgetSpec:
    """Return a copy of *widget* with common shape mistakes repaired."""
    wtype = widget_type_of(widget.type)
    props = dict(widget.props or {})

    if wtype is WidgetType.CHIP_CLOUD and isinstance(props.get("groups"), list):
        props["groups"] = _normalize_chip_groups(props["groups"])
    elif wtype in _OPTION_CARD_TYPES and isinstance(props.get("options"), list):
        props["options"] = _normalize_option_cards(props["options"])
    elif wtype is WidgetType.BIPOLAR_SCALE and isinstance(props.get("items"), list):
        props["items"] = _normalize_bipolar_items(props["items"])

    return WidgetSpec(type=widget.type, props=props)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def contract_for(widget_type: WidgetType) -> WidgetContract:
    cls = widget_mapper[widget_type]
    return WidgetContract(
        type=widget_type,
        category=cls.category,
        value_type=cls.value_type,
        description=cls.description,
        required_props=cls.required_props(),
    )


def catalog() -> list[WidgetContract]:
    """Every widget contract, in catalog order."""
    return [contract_for(t) for t in WidgetType]
