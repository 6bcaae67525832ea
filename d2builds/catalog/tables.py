"""
Indexer lookup tables.

Every constant map the indexer consults lives in one frozen IndexerTables
instance. The default instance reflects the current manifest; a different
catalog version can be indexed with its own tables by passing a replacement
to CatalogIndexer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

from d2builds import constants as c
from d2builds.catalog.models import ClassType, Element, ItemCategory, ItemSlot, Rarity


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


TYPE_CODE_TO_CATEGORY: Mapping[int, ItemCategory] = _frozen({
    c.ITEM_TYPE_WEAPON: ItemCategory.WEAPON,
    c.ITEM_TYPE_ARMOR: ItemCategory.ARMOR,
    c.ITEM_TYPE_MOD: ItemCategory.MOD,
    c.ITEM_TYPE_SUBCLASS: ItemCategory.SUBCLASS_COMPONENT,
})

BUCKET_TO_SLOT: Mapping[int, ItemSlot] = _frozen({
    c.BUCKET_KINETIC: ItemSlot.KINETIC,
    c.BUCKET_ENERGY: ItemSlot.ENERGY,
    c.BUCKET_POWER: ItemSlot.POWER,
    c.BUCKET_HELMET: ItemSlot.HELMET,
    c.BUCKET_ARMS: ItemSlot.ARMS,
    c.BUCKET_CHEST: ItemSlot.CHEST,
    c.BUCKET_LEGS: ItemSlot.LEGS,
    c.BUCKET_CLASS_ITEM: ItemSlot.CLASS_ITEM,
    c.BUCKET_SUBCLASS: ItemSlot.SUBCLASS,
})

DAMAGE_CODE_TO_ELEMENT: Mapping[int, Element] = _frozen({
    c.DAMAGE_NONE: Element.NONE,
    c.DAMAGE_KINETIC: Element.KINETIC,
    c.DAMAGE_ARC: Element.ARC,
    c.DAMAGE_SOLAR: Element.SOLAR,
    c.DAMAGE_VOID: Element.VOID,
    c.DAMAGE_STASIS: Element.STASIS,
    c.DAMAGE_STRAND: Element.STRAND,
})

TIER_CODE_TO_RARITY: Mapping[int, Rarity] = _frozen({
    c.TIER_BASIC: Rarity.BASIC,
    c.TIER_COMMON: Rarity.COMMON,
    c.TIER_RARE: Rarity.RARE,
    c.TIER_LEGENDARY: Rarity.LEGENDARY,
    c.TIER_EXOTIC: Rarity.EXOTIC,
})

CLASS_CODE_TO_CLASS: Mapping[int, ClassType] = _frozen({
    c.CLASS_TITAN: ClassType.TITAN,
    c.CLASS_HUNTER: ClassType.HUNTER,
    c.CLASS_WARLOCK: ClassType.WARLOCK,
    c.CLASS_UNKNOWN: ClassType.ANY,
})

# Ordered: earlier stats win ties when picking an armor piece's dominant stat
STAT_HASH_TO_NAME: Mapping[int, str] = _frozen({
    c.STAT_MOBILITY: "mobility",
    c.STAT_RESILIENCE: "resilience",
    c.STAT_RECOVERY: "recovery",
    c.STAT_DISCIPLINE: "discipline",
    c.STAT_INTELLECT: "intellect",
    c.STAT_STRENGTH: "strength",
})

# DestinyItemSubType codes for weapons
WEAPON_SUBTYPE_NAMES: Mapping[int, str] = _frozen({
    6: "auto_rifle",
    7: "shotgun",
    8: "machine_gun",
    9: "hand_cannon",
    10: "rocket_launcher",
    11: "fusion_rifle",
    12: "sniper_rifle",
    13: "pulse_rifle",
    14: "scout_rifle",
    17: "sidearm",
    18: "sword",
    22: "linear_fusion_rifle",
    23: "grenade_launcher",
    24: "submachine_gun",
    25: "trace_rifle",
    31: "bow",
    33: "glaive",
})

# Activity-fit tag -> substrings looked for in lower-cased name + description
ACTIVITY_FIT_TERMS: Mapping[str, Tuple[str, ...]] = _frozen({
    "pvp": ("crucible", "enemy guardian", "opponent"),
    "add_clear": ("explode", "explosion", "chain", "nearby enemies", "blast", "scorch", "jolt"),
    "boss_dps": ("boss", "champion", "powerful combatant", "damage bonus", "surge"),
    "survivability": ("damage resistance", "overshield", "heal", "restore", "cure", "restoration", "woven mail"),
    "ability_regen": ("ability energy", "grenade energy", "melee energy", "class ability energy", "cooldown"),
    "super_regen": ("super energy", "orb of power", "orbs of power"),
    "weapon_handling": ("reload", "handling", "magazine", "auto-loading", "ammo"),
    "stealth": ("invisib", "smoke", "vanish"),
    "mobility": ("movement speed", "sprint", "jump", "dodge", "airborne"),
})

# Item type display-name fragments that mark a subclass component
SUBCLASS_TYPE_MARKERS: Tuple[str, ...] = (
    "aspect",
    "fragment",
    "grenade",
    "melee",
    "super",
    "class ability",
    "movement",
    "jump",
)

# Name prefixes shared by subclass fragments
FRAGMENT_NAME_PREFIXES: Tuple[str, ...] = (
    "echo of",
    "ember of",
    "facet of",
    "spark of",
    "thread of",
    "whisper of",
)

# Name fragments that exclude an item from every index
EXCLUDED_NAME_MARKERS: Tuple[str, ...] = (
    "[redacted]",
    "[test]",
    "[deprecated]",
    "test_",
)


@dataclass(frozen=True)
class IndexerTables:
    """Lookup tables consumed by CatalogIndexer."""
    type_code_to_category: Mapping[int, ItemCategory] = field(default_factory=lambda: TYPE_CODE_TO_CATEGORY)
    bucket_to_slot: Mapping[int, ItemSlot] = field(default_factory=lambda: BUCKET_TO_SLOT)
    damage_code_to_element: Mapping[int, Element] = field(default_factory=lambda: DAMAGE_CODE_TO_ELEMENT)
    tier_code_to_rarity: Mapping[int, Rarity] = field(default_factory=lambda: TIER_CODE_TO_RARITY)
    class_code_to_class: Mapping[int, ClassType] = field(default_factory=lambda: CLASS_CODE_TO_CLASS)
    stat_hash_to_name: Mapping[int, str] = field(default_factory=lambda: STAT_HASH_TO_NAME)
    weapon_subtype_names: Mapping[int, str] = field(default_factory=lambda: WEAPON_SUBTYPE_NAMES)
    activity_fit_terms: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: ACTIVITY_FIT_TERMS)
    subclass_type_markers: Tuple[str, ...] = SUBCLASS_TYPE_MARKERS
    fragment_name_prefixes: Tuple[str, ...] = FRAGMENT_NAME_PREFIXES
    excluded_name_markers: Tuple[str, ...] = EXCLUDED_NAME_MARKERS
    mod_category_hash: int = c.ITEM_CATEGORY_MODS


DEFAULT_TABLES = IndexerTables()
