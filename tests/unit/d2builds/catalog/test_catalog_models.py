"""
Tests for d2builds/catalog/models.py
"""
import dataclasses

import pytest

from d2builds.catalog.models import (
    CatalogIndex,
    CatalogItem,
    ClassType,
    Element,
    IndexStats,
    ItemCategory,
    ItemSlot,
    Rarity,
)
from tests.conftest_utils import (
    ACCEPTED_HASHES,
    CATALOG_VERSION,
    GRAVITON_FORFEIT,
    GRENADE_KICKSTART,
    RADIANT_CORE_PLATE,
)

pytestmark = pytest.mark.unit


class TestCatalogItem:
    @pytest.fixture
    def item(self):
        return CatalogItem(
            hash=7,
            name="Heart of Inmost Light",
            description="Using an ability empowers the others.",
            category=ItemCategory.ARMOR,
            slot=ItemSlot.CHEST,
            class_type=ClassType.TITAN,
            rarity=Rarity.EXOTIC,
            tags=frozenset({"exotic", "armor", "ability_regen"}),
        )

    def test_variant_properties(self, item):
        assert item.is_armor
        assert item.is_exotic
        assert not item.is_weapon
        assert not item.is_mod
        assert not item.is_subclass_component

    def test_search_text_lowercases_and_sorts_tags(self, item):
        assert item.search_text == (
            "heart of inmost light using an ability empowers the others. ability_regen armor exotic"
        )

    def test_frozen(self, item):
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.name = "Other"

    def test_to_dict_is_plain(self, item):
        data = item.to_dict()
        assert data["category"] == "armor"
        assert data["slot"] == "chest"
        assert data["class_type"] == "titan"
        assert data["rarity"] == "exotic"
        assert data["tags"] == ["ability_regen", "armor", "exotic"]

    def test_defaults(self):
        item = CatalogItem(hash=1, name="Thing")
        assert item.category is ItemCategory.OTHER
        assert item.slot is ItemSlot.NONE
        assert item.class_type is ClassType.ANY
        assert item.element is Element.NONE
        assert not item.is_build_relevant


class TestIndexStats:
    def test_to_dict_rounds_duration(self):
        stats = IndexStats(seen=3, accepted=2, rejected=1, duration_ms=1.23456)
        assert stats.to_dict()["duration_ms"] == 1.23


class TestCatalogIndex:
    def test_empty_index(self):
        index = CatalogIndex(version="v0")
        assert len(index) == 0
        assert index.get(1) is None
        assert index.search("grenade") == ()
        assert index.items_in_slot(ItemSlot.CHEST) == ()

    def test_length_and_membership(self, sample_index):
        assert len(sample_index) == len(ACCEPTED_HASHES)
        assert RADIANT_CORE_PLATE in sample_index
        assert 424242 not in sample_index
        assert sample_index.version == CATALOG_VERSION

    def test_bucket_lookups(self, sample_index):
        chests = sample_index.items_in_slot(ItemSlot.CHEST)
        assert [item.hash for item in chests] == [RADIANT_CORE_PLATE]

        hunters = sample_index.items_for_class(ClassType.HUNTER)
        assert [item.hash for item in hunters] == [GRAVITON_FORFEIT]

        exotics = sample_index.items_of_rarity(Rarity.EXOTIC)
        assert [item.hash for item in exotics] == [RADIANT_CORE_PLATE, GRAVITON_FORFEIT]

    def test_buckets_sorted_by_hash(self, sample_index):
        for bucket in sample_index.by_class.values():
            hashes = [item.hash for item in bucket]
            assert hashes == sorted(hashes)

    def test_search_requires_every_token(self, sample_index):
        assert [item.hash for item in sample_index.search("grenade kickstart")] == [GRENADE_KICKSTART]
        assert sample_index.search("grenade nonexistentword") == ()

    def test_search_matches_tags(self, sample_index):
        hashes = [item.hash for item in sample_index.search("ability_regen")]
        assert hashes == [RADIANT_CORE_PLATE]

    def test_category_counts(self, sample_index):
        counts = sample_index.category_counts()
        assert counts["armor"] == 2
        assert counts["mod"] == 3
        assert counts["weapon"] == 1
        assert counts["subclass_component"] == 2
        assert counts["other"] == 0
