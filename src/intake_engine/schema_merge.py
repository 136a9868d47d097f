"""Schema merge engine — path-addressed updates, completion, and compaction.

All functions operate on the plain nested-dict form of the profile (see
``intake_engine.models.profile`` for the typed view).  None of them mutate
their input.

Merge rules:
  - ``None`` values are ignored; a merge never unsets a field
  - intermediate segments are created as dicts, replacing any non-dict
    value found on the way
  - later updates to the same path win (call order is precedence)
  - sibling fields are never touched

Because every write is a plain assignment, ``merge`` is idempotent.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Mapping

from intake_engine.constants import (
    COMPLETION_FULL_THRESHOLD,
    HOUSEKEEPING_KEYS,
    NON_CONTENT_KEYS,
    SCORED_CATEGORIES,
)

Update = tuple[str, Any]


def _as_update_list(updates: Iterable[Update] | Mapping[str, Any]) -> list[Update]:
    if isinstance(updates, Mapping):
        return list(updates.items())
    return list(updates)


def merge(
    document: Mapping[str, Any] | None,
    updates: Iterable[Update] | Mapping[str, Any],
) -> dict[str, Any]:
    """Apply dot-path updates to a deep copy of *document* and return it.

    *updates* is an ordered sequence of ``(path, value)`` pairs; a mapping
    is accepted too and applied in insertion order.
    """
    result: dict[str, Any] = copy.deepcopy(dict(document or {}))
    for path, value in _as_update_list(updates):
        if value is None or not path:
            continue
        segments = path.split(".")
        node = result
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        node[segments[-1]] = copy.deepcopy(value)
    return result


def get_path(document: Mapping[str, Any] | None, path: str) -> Any:
    """Return the value at *path*, or ``None`` if any segment is missing."""
    node: Any = document
    for segment in path.split("."):
        if not isinstance(node, Mapping):
            return None
        node = node.get(segment)
        if node is None:
            return None
    return node


def is_empty_value(value: Any) -> bool:
    """True for values that mean "not yet collected"."""
    return value is None or value == "" or (isinstance(value, (list, dict)) and not value)


def count_filled(node: Any) -> int:
    """Count non-empty leaves under *node*.

    A dict contributes the sum of its children; a non-empty list counts
    once; any other non-null, non-empty-string value counts once.
    """
    if not isinstance(node, Mapping):
        return 0
    count = 0
    for value in node.values():
        if value is None or value == "":
            continue
        if isinstance(value, Mapping):
            count += count_filled(value)
        elif isinstance(value, list):
            if value:
                count += 1
        else:
            count += 1
    return count


def estimate_completion(
    document: Mapping[str, Any] | None,
    categories: tuple[str, ...] = SCORED_CATEGORIES,
) -> int:
    """Estimate completion as an integer percentage 0..100.

    Each category earns 1 when it has more than ``COMPLETION_FULL_THRESHOLD``
    filled leaves and 0.5 for any smaller non-zero count.
    """
    if not document or not categories:
        return 0
    credits = 0.0
    for category in categories:
        filled = count_filled(document.get(category))
        if filled > COMPLETION_FULL_THRESHOLD:
            credits += 1
        elif filled > 0:
            credits += 0.5
    # Python's round() is banker's rounding; use half-up to keep 12.5 -> 13.
    return int(100 * credits / len(categories) + 0.5)


def compact(document: Any) -> Any:
    """Prune nulls, empty containers, and housekeeping keys.

    Returns ``None`` when nothing survives.  Empty strings and explicit
    ``False``/``0`` values are kept.  Used only for the payload sent to the
    model boundary; never persisted.
    """
    if document is None:
        return None
    if isinstance(document, list):
        items = [c for c in (compact(v) for v in document) if c is not None]
        return items or None
    if isinstance(document, Mapping):
        result = {}
        for key, value in document.items():
            if key in HOUSEKEEPING_KEYS:
                continue
            pruned = compact(value)
            if pruned is not None:
                result[key] = pruned
        return result or None
    return document


def filled_paths(document: Mapping[str, Any] | None, prefix: str = "") -> list[str]:
    """List dot paths of every filled leaf, skipping housekeeping sections."""
    paths: list[str] = []
    if not isinstance(document, Mapping):
        return paths
    for key, value in document.items():
        if not prefix and key in NON_CONTENT_KEYS:
            continue
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, Mapping):
            paths.extend(filled_paths(value, path))
        elif not is_empty_value(value):
            paths.append(path)
    return paths


def category_of(path: str | None) -> str | None:
    """Two-segment category of a field path (``a.b.c`` → ``a.b``)."""
    if not path:
        return None
    return ".".join(path.split(".")[:2])
