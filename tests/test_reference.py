"""Reference table loading tests."""

import shutil

import pydantic
import pytest
import yaml

from intake_engine.models.archetype import Archetype, Relevance
from intake_engine.reference import DEFAULT_TABLES_DIR, load_tables, load_yaml


@pytest.fixture
def tables_copy(tmp_path):
    """A writable copy of the packaged tables."""
    for name in ("archetypes.yaml", "relevance.yaml", "fields.yaml"):
        shutil.copy(DEFAULT_TABLES_DIR / name, tmp_path / name)
    return tmp_path


class TestPackagedTables:
    def test_cached(self):
        assert load_tables() is load_tables()

    def test_archetypes_in_canonical_order(self, tables):
        assert list(tables.archetypes) == list(Archetype)

    def test_relevance_rows_are_two_segment(self, tables):
        for category, row in tables.relevance.items():
            assert len(category.split(".")) == 2
            assert all(isinstance(level, Relevance) for level in row.values())

    def test_priority_fields_unique(self, tables):
        assert len(set(tables.priority_fields)) == len(tables.priority_fields)

    def test_pay_families(self, tables):
        assert "hourly" in tables.pay_families["hourly"]
        assert "annual" in tables.pay_families["salary"]


class TestImmutability:
    def test_archetype_mapping(self, tables):
        with pytest.raises(TypeError):
            tables.archetypes[Archetype.EXECUTIVE] = None

    def test_relevance_row(self, tables):
        row = tables.relevance["financial_reality.equity"]
        with pytest.raises(TypeError):
            row[Archetype.HOURLY_SERVICE] = Relevance.REQUIRED

    def test_profile_frozen(self, tables):
        with pytest.raises(pydantic.ValidationError):
            tables.archetypes[Archetype.EXECUTIVE].label = "Boss"

    def test_bundle_frozen(self, tables):
        with pytest.raises(AttributeError):
            tables.priority_fields = ()


class TestAlternativeTables:
    def test_copy_loads(self, tables_copy):
        alt = load_tables(tables_copy)
        assert alt is not load_tables()
        assert list(alt.archetypes) == list(Archetype)

    def test_missing_table(self, tables_copy):
        (tables_copy / "fields.yaml").unlink()
        with pytest.raises(FileNotFoundError):
            load_tables(tables_copy)

    def test_wrong_archetype_order(self, tables_copy):
        path = tables_copy / "archetypes.yaml"
        entries = load_yaml(path)
        path.write_text(yaml.safe_dump(list(reversed(entries))), encoding="utf-8")
        with pytest.raises(ValueError, match="canonical order"):
            load_tables(tables_copy)

    def test_three_segment_relevance_key(self, tables_copy):
        path = tables_copy / "relevance.yaml"
        rows = load_yaml(path)
        rows["financial_reality.equity.offered"] = {"executive": "required"}
        path.write_text(yaml.safe_dump(rows), encoding="utf-8")
        with pytest.raises(ValueError, match="two-segment"):
            load_tables(tables_copy)
