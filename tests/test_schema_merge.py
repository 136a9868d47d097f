"""Schema merge engine tests — path-addressed merge, completion, compaction."""

import copy

from intake_engine.constants import SCORED_CATEGORIES
from intake_engine.schema_merge import (
    category_of,
    compact,
    count_filled,
    estimate_completion,
    filled_paths,
    get_path,
    merge,
)


# =====================================================================
# merge
# =====================================================================


class TestMerge:
    """Dot-path updates into nested documents."""

    def test_creates_intermediate_objects(self):
        assert merge({}, [("a.b.c", 5)]) == {"a": {"b": {"c": 5}}}

    def test_null_update_is_noop(self):
        doc = {"x": 1, "y": {"z": 2}}
        assert merge(doc, [("x", None)]) == doc
        assert merge(doc, [("y.z", None)]) == doc

    def test_input_not_mutated(self):
        doc = {"a": {"b": 1}}
        snapshot = copy.deepcopy(doc)
        merge(doc, [("a.c", 2)])
        assert doc == snapshot

    def test_siblings_preserved(self):
        doc = {"a": {"b": 1, "c": 2}}
        assert merge(doc, [("a.b", 10)]) == {"a": {"b": 10, "c": 2}}

    def test_last_write_wins(self):
        assert merge({}, [("a", 1), ("a", 2)]) == {"a": 2}

    def test_idempotent(self):
        doc = {"a": {"b": 1}, "k": [1, 2]}
        updates = [("a.c", 3), ("k", [9]), ("d.e.f", "x"), ("a.b", None)]
        once = merge(doc, updates)
        assert merge(once, updates) == once

    def test_scalar_intermediate_is_replaced(self):
        assert merge({"a": 5}, [("a.b", 1)]) == {"a": {"b": 1}}

    def test_mapping_updates_accepted(self):
        assert merge({}, {"a.b": 1, "c": False}) == {"a": {"b": 1}, "c": False}

    def test_explicit_false_and_zero_are_written(self):
        result = merge({}, [("flag", False), ("count", 0), ("text", "")])
        assert result == {"flag": False, "count": 0, "text": ""}

    def test_none_document(self):
        assert merge(None, [("a", 1)]) == {"a": 1}

    def test_stored_value_is_a_copy(self):
        value = {"nested": [1]}
        result = merge({}, [("a", value)])
        value["nested"].append(2)
        assert result["a"] == {"nested": [1]}


class TestGetPath:
    def test_found(self):
        assert get_path({"a": {"b": 3}}, "a.b") == 3

    def test_missing_segment(self):
        assert get_path({"a": {}}, "a.b.c") is None

    def test_through_scalar(self):
        assert get_path({"a": 1}, "a.b") is None


# =====================================================================
# Completion
# =====================================================================


class TestCompletion:
    def test_empty_document(self):
        assert estimate_completion({}) == 0

    def test_all_categories_full(self):
        doc = {c: {"x": 1, "y": "a", "z": [1]} for c in SCORED_CATEGORIES}
        assert estimate_completion(doc) == 100

    def test_half_credit(self):
        # One category with 1 leaf = 0.5 / 8 = 6.25% -> 6
        doc = {"financial_reality": {"base_compensation": {"amount_or_range": "$20"}}}
        assert estimate_completion(doc) == 6

    def test_half_up_rounding(self):
        # One full category = 1/8 = 12.5% -> 13
        doc = {"environment": {"a": 1, "b": 2, "c": 3}}
        assert estimate_completion(doc) == 13

    def test_threshold_is_strictly_greater_than_two(self):
        two = {"environment": {"a": 1, "b": 2}}
        three = {"environment": {"a": 1, "b": 2, "c": 3}}
        assert estimate_completion(two) == 6
        assert estimate_completion(three) == 13

    def test_unscored_categories_ignored(self):
        doc = {"role_overview": {"a": 1, "b": 2, "c": 3}}
        assert estimate_completion(doc) == 0

    def test_count_filled_rules(self):
        node = {
            "a": None,
            "b": "",
            "c": [],
            "d": [1, 2],
            "e": False,
            "f": 0,
            "g": {"h": "x", "i": None},
        }
        # d, e, f, g.h
        assert count_filled(node) == 4


# =====================================================================
# compact
# =====================================================================


class TestCompact:
    def test_prunes_nulls_and_empties(self):
        doc = {"a": None, "b": {}, "c": [], "d": {"e": None}, "f": 1}
        assert compact(doc) == {"f": 1}

    def test_keeps_false_zero_and_empty_string(self):
        doc = {"a": False, "b": 0, "c": ""}
        assert compact(doc) == doc

    def test_drops_housekeeping_keys(self):
        doc = {"session_id": "s", "created_at": "t", "updated_at": "t", "id": "x"}
        assert compact(doc) == {"id": "x"}

    def test_fully_empty_is_none(self):
        assert compact({"a": {"b": None}}) is None

    def test_lists_are_pruned_elementwise(self):
        assert compact({"a": [None, {"b": None}, 3]}) == {"a": [3]}


class TestPaths:
    def test_filled_paths_skip_housekeeping(self):
        doc = {
            "session_id": "s",
            "user_context": {"name": "Ana"},
            "role_overview": {"job_title": "Cook", "department": None},
        }
        assert filled_paths(doc) == ["role_overview.job_title"]

    def test_category_of(self):
        assert category_of("a.b.c.d") == "a.b"
        assert category_of("a") == "a"
        assert category_of(None) is None
