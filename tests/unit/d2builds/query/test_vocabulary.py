"""
Tests for d2builds/query/vocabulary.py
"""
import dataclasses

import pytest

from d2builds.query.vocabulary import (
    ACTIVITY_ALIASES,
    ACTIVITY_LABELS,
    CLASS_ALIASES,
    DEFAULT_VOCABULARY,
    ELEMENT_ALIASES,
    STAT_ALIASES,
    WEAPON_ALIASES,
    QueryVocabulary,
)

pytestmark = pytest.mark.unit


class TestTables:
    def test_phrases_are_normalized(self):
        for table in (CLASS_ALIASES, ELEMENT_ALIASES, STAT_ALIASES, WEAPON_ALIASES):
            for phrase in table:
                assert phrase == phrase.lower().strip()
                assert "  " not in phrase

    def test_canonical_classes(self):
        assert set(CLASS_ALIASES.values()) == {"titan", "hunter", "warlock"}

    def test_canonical_stats(self):
        assert set(STAT_ALIASES.values()) == {
            "mobility", "resilience", "recovery", "discipline", "intellect", "strength",
        }

    def test_every_activity_has_label(self):
        assert set(ACTIVITY_ALIASES.values()) == set(ACTIVITY_LABELS)

    def test_tables_read_only(self):
        with pytest.raises(TypeError):
            CLASS_ALIASES["paladin"] = "titan"


class TestQueryVocabulary:
    def test_default_instance_uses_module_tables(self):
        assert DEFAULT_VOCABULARY.class_aliases is CLASS_ALIASES
        assert QueryVocabulary().stat_aliases is STAT_ALIASES

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_VOCABULARY.class_aliases = {}

    def test_playstyle_hints_ordered_pairs(self):
        for prefix, style in DEFAULT_VOCABULARY.playstyle_hints:
            assert prefix
            assert style in {"aggressive", "defensive", "support"}
