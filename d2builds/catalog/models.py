"""
Catalog Models.

Normalized item definitions and the immutable index built from them.
Raw manifest records never travel past the indexer; everything downstream
works on CatalogItem and CatalogIndex.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from d2builds.text_utils import tokenize


class ItemCategory(Enum):
    """Discriminant for the item variants the engine understands."""
    WEAPON = "weapon"
    ARMOR = "armor"
    MOD = "mod"
    SUBCLASS_COMPONENT = "subclass_component"
    OTHER = "other"


class ItemSlot(Enum):
    """Equipment position an item occupies."""
    KINETIC = "kinetic"
    ENERGY = "energy"
    POWER = "power"
    HELMET = "helmet"
    ARMS = "arms"
    CHEST = "chest"
    LEGS = "legs"
    CLASS_ITEM = "class_item"
    SUBCLASS = "subclass"
    NONE = "none"


WEAPON_SLOTS = (ItemSlot.KINETIC, ItemSlot.ENERGY, ItemSlot.POWER)
ARMOR_SLOTS = (ItemSlot.HELMET, ItemSlot.ARMS, ItemSlot.CHEST, ItemSlot.LEGS, ItemSlot.CLASS_ITEM)


class ClassType(Enum):
    """Guardian class restriction."""
    ANY = "any"
    TITAN = "titan"
    HUNTER = "hunter"
    WARLOCK = "warlock"


class Element(Enum):
    """Damage type / subclass element."""
    NONE = "none"
    KINETIC = "kinetic"
    ARC = "arc"
    SOLAR = "solar"
    VOID = "void"
    STASIS = "stasis"
    STRAND = "strand"


class Rarity(Enum):
    """Item tier."""
    BASIC = "basic"
    COMMON = "common"
    RARE = "rare"
    LEGENDARY = "legendary"
    EXOTIC = "exotic"


@dataclass(frozen=True)
class CatalogItem:
    """
    A validated, normalized catalog entry.

    Attributes:
        hash: Stable identifier, unique within a catalog version
        name: Display name
        description: Display description
        category: Item variant discriminant
        slot: Equipment slot (ItemSlot.NONE when not equippable)
        class_type: Class restriction (ClassType.ANY when unrestricted)
        element: Damage type (Element.NONE when not applicable)
        rarity: Tier
        type_name: Item type display name (e.g. "Hand Cannon", "Solar Aspect")
        tags: Lower-cased keywords derived at indexing time
        is_build_relevant: Exotic, subclass component, mod, aspect or fragment
        stats: Stat name -> value
    """
    hash: int
    name: str
    description: str = ""
    category: ItemCategory = ItemCategory.OTHER
    slot: ItemSlot = ItemSlot.NONE
    class_type: ClassType = ClassType.ANY
    element: Element = Element.NONE
    rarity: Rarity = Rarity.COMMON
    type_name: str = ""
    tags: FrozenSet[str] = frozenset()
    is_build_relevant: bool = False
    stats: Mapping[str, int] = field(default_factory=dict, hash=False, compare=False)

    @property
    def is_weapon(self) -> bool:
        return self.category is ItemCategory.WEAPON

    @property
    def is_armor(self) -> bool:
        return self.category is ItemCategory.ARMOR

    @property
    def is_mod(self) -> bool:
        return self.category is ItemCategory.MOD

    @property
    def is_subclass_component(self) -> bool:
        return self.category is ItemCategory.SUBCLASS_COMPONENT

    @property
    def is_exotic(self) -> bool:
        return self.rarity is Rarity.EXOTIC

    @property
    def search_text(self) -> str:
        """Lower-cased name, description and tags for synergy matching."""
        parts = [self.name, self.description, " ".join(sorted(self.tags))]
        return " ".join(p for p in parts if p).lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "slot": self.slot.value,
            "class_type": self.class_type.value,
            "element": self.element.value,
            "rarity": self.rarity.value,
            "type_name": self.type_name,
            "tags": sorted(self.tags),
            "is_build_relevant": self.is_build_relevant,
            "stats": dict(self.stats),
        }


@dataclass(frozen=True)
class IndexStats:
    """Counters collected while building an index."""
    seen: int = 0
    accepted: int = 0
    rejected: int = 0
    malformed: int = 0
    duplicates: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seen": self.seen,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "malformed": self.malformed,
            "duplicates": self.duplicates,
            "duration_ms": round(self.duration_ms, 2),
        }


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class CatalogIndex:
    """
    Immutable snapshot of one catalog version.

    Built once by CatalogIndexer, never patched. A newer catalog version
    produces a new CatalogIndex that replaces this one wholesale.
    Bucket tuples are ordered by item hash.
    """
    version: str
    items_by_hash: Mapping[int, CatalogItem] = field(default_factory=_empty_mapping)
    by_slot: Mapping[ItemSlot, Tuple[CatalogItem, ...]] = field(default_factory=_empty_mapping)
    by_class: Mapping[ClassType, Tuple[CatalogItem, ...]] = field(default_factory=_empty_mapping)
    by_element: Mapping[Element, Tuple[CatalogItem, ...]] = field(default_factory=_empty_mapping)
    by_rarity: Mapping[Rarity, Tuple[CatalogItem, ...]] = field(default_factory=_empty_mapping)
    exotics: Tuple[CatalogItem, ...] = ()
    mods: Tuple[CatalogItem, ...] = ()
    build_relevant: Tuple[CatalogItem, ...] = ()
    search_index: Mapping[str, FrozenSet[int]] = field(default_factory=_empty_mapping)
    exotic_names: Mapping[str, int] = field(default_factory=_empty_mapping)
    stats: IndexStats = field(default_factory=IndexStats)

    def __len__(self) -> int:
        return len(self.items_by_hash)

    def __contains__(self, item_hash: object) -> bool:
        return item_hash in self.items_by_hash

    def get(self, item_hash: int) -> Optional[CatalogItem]:
        return self.items_by_hash.get(item_hash)

    def items_in_slot(self, slot: ItemSlot) -> Tuple[CatalogItem, ...]:
        return self.by_slot.get(slot, ())

    def items_for_class(self, class_type: ClassType) -> Tuple[CatalogItem, ...]:
        return self.by_class.get(class_type, ())

    def items_with_element(self, element: Element) -> Tuple[CatalogItem, ...]:
        return self.by_element.get(element, ())

    def items_of_rarity(self, rarity: Rarity) -> Tuple[CatalogItem, ...]:
        return self.by_rarity.get(rarity, ())

    def search(self, text: str) -> Tuple[CatalogItem, ...]:
        """
        Return items containing every search token in text.

        An empty query, or any token absent from the index, yields no items.
        """
        tokens = tokenize(text)
        if not tokens:
            return ()

        matched: Optional[FrozenSet[int]] = None
        for token in tokens:
            hashes = self.search_index.get(token)
            if not hashes:
                return ()
            matched = hashes if matched is None else matched & hashes
            if not matched:
                return ()

        return tuple(self.items_by_hash[h] for h in sorted(matched or ()))

    def category_counts(self) -> Dict[str, int]:
        """Number of indexed items per category."""
        counts = {category.value: 0 for category in ItemCategory}
        for item in self.items_by_hash.values():
            counts[item.category.value] += 1
        return counts
