"""
Tests for d2builds/build_archetypes/archetype_database.py

Tests the archetype registry and its keyword pre-filter.
"""
import pytest

from d2builds.build_archetypes.archetype_database import (
    ALL_ARCHETYPES,
    ArchetypeDatabase,
    get_archetype_database,
    list_archetypes,
)
from d2builds.build_archetypes.archetype_models import BuildArchetype

pytestmark = pytest.mark.unit

REGISTRY_ORDER = [
    "grenade_spam",
    "super_generation",
    "melee",
    "healing_support",
    "stealth",
    "auto_loading",
    "weapon_specific",
    "mobility",
    "tank",
]


class TestALLArchetypes:
    """Tests for the ALL_ARCHETYPES constant."""

    def test_registration_order(self):
        assert [a.id for a in ALL_ARCHETYPES] == REGISTRY_ORDER

    def test_unique_ids(self):
        ids = [a.id for a in ALL_ARCHETYPES]
        assert len(ids) == len(set(ids)), "Duplicate IDs found"

    def test_every_archetype_is_complete(self):
        for arch in ALL_ARCHETYPES:
            assert arch.name, f"Archetype {arch.id} has no name"
            assert arch.focus, f"Archetype {arch.id} has no focus"
            assert arch.triggers, f"Archetype {arch.id} has no keywords"
            assert arch.synergy_tags, f"Archetype {arch.id} has no synergy tags"
            assert arch.min_items >= 1
            assert arch.template.name, f"Archetype {arch.id} has no template"

    def test_triggers_are_lowercase(self):
        for arch in ALL_ARCHETYPES:
            for trigger in arch.triggers + arch.synergy_tags:
                assert trigger == trigger.lower(), f"{arch.id}: {trigger}"


class TestArchetypeDatabase:
    """Tests for ArchetypeDatabase class."""

    @pytest.fixture
    def db(self):
        return ArchetypeDatabase()

    def test_get_all(self, db):
        assert db.get_all() == ALL_ARCHETYPES
        assert len(db) == len(ALL_ARCHETYPES)

    def test_get_existing(self, db):
        arch = db.get("grenade_spam")
        assert arch is not None
        assert arch.name == "Grenade Spam"

    def test_get_missing(self, db):
        assert db.get("nonexistent_build") is None

    def test_duplicate_ids_rejected(self):
        arch = BuildArchetype(id="dup", name="Dup", focus="dup")
        with pytest.raises(ValueError):
            ArchetypeDatabase([arch, arch])

    def test_custom_registry(self):
        arch = BuildArchetype(id="solo", name="Solo", focus="solo", keywords=("solo",))
        db = ArchetypeDatabase([arch])
        assert db.get_all() == (arch,)


class TestConsideredFor:
    @pytest.fixture
    def db(self):
        return ArchetypeDatabase()

    def test_keyword(self, db):
        assert [a.id for a in db.considered_for("grenade spam titan build")] == ["grenade_spam"]

    def test_plural_matches_keyword_prefix(self, db):
        assert "super_generation" in [a.id for a in db.considered_for("frequent supers")]

    def test_phrase(self, db):
        assert "stealth" in [a.id for a in db.considered_for("void hunter")]

    def test_registry_order_preserved(self, db):
        ids = [a.id for a in db.considered_for("melee grenade")]
        assert ids == ["grenade_spam", "melee"]

    def test_nothing_for_unrelated_text(self, db):
        assert db.considered_for("xyz123") == []
        assert db.considered_for("") == []

    @pytest.mark.parametrize("text", ["Grenade Spam Titan", "invisible hunter", "healing  support", "xyz123"])
    def test_agrees_with_triggered_by(self, db, text):
        expected = [a for a in db.get_all() if a.triggered_by(" ".join(text.lower().split()))]
        assert db.considered_for(text) == expected


class TestGlobals:
    def test_singleton(self):
        assert get_archetype_database() is get_archetype_database()

    def test_list_archetypes(self):
        assert list_archetypes() == ALL_ARCHETYPES
