"""
Build Archetype Models.

Defines the data structures for build archetypes (static registry data) and
for the results of matching catalog items against them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from d2builds import constants
from d2builds.catalog.models import CatalogItem
from d2builds.text_utils import any_word_start

# Component buckets a match is partitioned into. "other" holds matched items
# that fit none of the named buckets and does not count toward diversity.
COMPONENT_KEYS: Tuple[str, ...] = (
    "exotic_armor",
    "exotic_weapons",
    "legendary_weapons",
    "mods",
    "aspects",
    "fragments",
    "abilities",
)
OTHER_COMPONENT = "other"


@dataclass(frozen=True)
class ScoringWeights:
    """
    Constants of the synergy score.

    score = base
          + min(synergy_hits * synergy_weight, synergy_cap)
          + min(exotic_count * exotic_weight, exotic_cap)
          + min(component_categories * diversity_weight, diversity_cap)

    clamped to [0, 100].
    """
    base: int = constants.SCORE_BASE
    synergy_weight: int = constants.SCORE_SYNERGY_WEIGHT
    synergy_cap: int = constants.SCORE_SYNERGY_CAP
    exotic_weight: int = constants.SCORE_EXOTIC_WEIGHT
    exotic_cap: int = constants.SCORE_EXOTIC_CAP
    diversity_weight: int = constants.SCORE_DIVERSITY_WEIGHT
    diversity_cap: int = constants.SCORE_DIVERSITY_CAP


@dataclass(frozen=True)
class ArchetypeTemplate:
    """
    Static guide text used wherever no matched item fills a slot.

    Attributes:
        name: Default build name
        super_ability: Suggested super
        class_ability: Suggested class ability
        movement: Suggested jump / movement ability
        melee: Suggested melee
        aspects: Suggested aspects
        fragments: Suggested fragments
        kinetic_weapon: Kinetic slot suggestion
        energy_weapon: Energy slot suggestion
        power_weapon: Power slot suggestion
        key_exotics: Exotics the build is known for
        essential_mods: Mods the build depends on
        stat_priority: Stats in priority order
        rotation: Gameplay loop, step by step
        tips: Extra advice
        playstyle: One-line playstyle summary
        activities: Where the build shines
    """
    name: str
    super_ability: str = ""
    class_ability: str = ""
    movement: str = ""
    melee: str = ""
    aspects: Tuple[str, ...] = ()
    fragments: Tuple[str, ...] = ()
    kinetic_weapon: str = ""
    energy_weapon: str = ""
    power_weapon: str = ""
    key_exotics: Tuple[str, ...] = ()
    essential_mods: Tuple[str, ...] = ()
    stat_priority: Tuple[str, ...] = ()
    rotation: Tuple[str, ...] = ()
    tips: Tuple[str, ...] = ()
    playstyle: str = ""
    activities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildArchetype:
    """
    A named build pattern.

    Attributes:
        id: Unique identifier (e.g., "grenade_spam")
        name: Display name (e.g., "Grenade Spam")
        focus: Short focus tag used in build names (e.g., "grenade")
        keywords: Single words that make the archetype considered for a query
        phrases: Multi-word phrases with the same effect
        synergy_tags: Terms whose presence in an item's text or tags makes it a match
        min_items: Matched items required before the archetype is scored
        named_items: Exotic / mod names that match regardless of synergy tags
        preferred_classes: Classes the build is usually played on (informational)
        template: Static guide text
    """
    id: str
    name: str
    focus: str
    keywords: Tuple[str, ...] = ()
    phrases: Tuple[str, ...] = ()
    synergy_tags: Tuple[str, ...] = ()
    min_items: int = 2
    named_items: Tuple[str, ...] = ()
    preferred_classes: Tuple[str, ...] = ()
    template: ArchetypeTemplate = field(default_factory=lambda: ArchetypeTemplate(name=""))

    @property
    def triggers(self) -> Tuple[str, ...]:
        """Keywords and phrases together."""
        return self.phrases + self.keywords

    def triggered_by(self, text: str) -> bool:
        """
        Whether a keyword or phrase occurs in normalized text.

        Matching is on word starts: "grenade" matches "grenades" but "arc"
        does not match "search".
        """
        return bool(text) and any_word_start(text, self.triggers)

    def names_item(self, item_name: str) -> bool:
        """Check whether item_name is one of this archetype's named items."""
        lowered = item_name.lower()
        return any(named.lower() == lowered for named in self.named_items)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Every term of one synergy score, for debugging and display."""
    base: int
    synergy_hits: int
    synergy_points: int
    exotic_count: int
    exotic_points: int
    component_categories: int
    diversity_points: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "base": self.base,
            "synergy_hits": self.synergy_hits,
            "synergy_points": self.synergy_points,
            "exotic_count": self.exotic_count,
            "exotic_points": self.exotic_points,
            "component_categories": self.component_categories,
            "diversity_points": self.diversity_points,
            "total": self.total,
        }


@dataclass(frozen=True)
class CandidateMatch:
    """
    Result of matching candidate items against one archetype.

    Attributes:
        archetype: The matched archetype
        components: Component key -> matched items (COMPONENT_KEYS plus "other")
        score: Synergy score (0-100)
        breakdown: Terms that produced the score
        order: Registry position, used to break score ties
    """
    archetype: BuildArchetype
    components: Dict[str, Tuple[CatalogItem, ...]]
    score: int
    breakdown: ScoreBreakdown
    order: int = 0

    @property
    def matched_items(self) -> Tuple[CatalogItem, ...]:
        """All matched items, bucket by bucket."""
        items = []
        for key in COMPONENT_KEYS + (OTHER_COMPONENT,):
            items.extend(self.components.get(key, ()))
        return tuple(items)

    @property
    def item_count(self) -> int:
        return sum(len(items) for items in self.components.values())

    @property
    def exotic_items(self) -> Tuple[CatalogItem, ...]:
        """Exotic armor first, then exotic weapons."""
        return tuple(self.components.get("exotic_armor", ())) + tuple(self.components.get("exotic_weapons", ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "archetype_id": self.archetype.id,
            "score": self.score,
            "breakdown": self.breakdown.to_dict(),
            "components": {
                key: [item.name for item in items] for key, items in self.components.items()
            },
        }
