"""
Build Assembler.

Turns a scored CandidateMatch into a CandidateBuild: a named build with a
fully populated guide. Real matched item names fill guide slots first; the
archetype template fills whatever is left. No slot is ever empty.

When the parsed request is passed along, it steers the guide: an exotic the
user named leads the build, requested stats lead the stat priority, and
requested activities lead the activity list.

The assembler does no scoring and no filtering. Its output holds plain
copies of item data only, so it can be serialized or stored without keeping
the catalog index alive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from d2builds.build_archetypes.archetype_models import (
    COMPONENT_KEYS,
    OTHER_COMPONENT,
    ArchetypeTemplate,
    CandidateMatch,
    ScoreBreakdown,
)
from d2builds.catalog.models import CatalogItem, ItemCategory, ItemSlot
from d2builds.query.models import ParsedQuery
from d2builds.query.vocabulary import ACTIVITY_LABELS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FocusPlaystyle:
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    best_activities: Tuple[str, ...]


# Fixed per-focus playstyle descriptors
FOCUS_PLAYSTYLES: Mapping[str, FocusPlaystyle] = MappingProxyType({
    "grenade": FocusPlaystyle(
        strengths=("Excellent add clear", "Constant area denial", "Ability uptime"),
        weaknesses=("Weaker single-target damage", "Relies on ability regeneration"),
        best_activities=("Strikes", "Lost Sectors", "Patrol"),
    ),
    "super": FocusPlaystyle(
        strengths=("Frequent super casts", "Strong burst damage", "Orb generation for the team"),
        weaknesses=("Weaker between supers", "Needs steady orb flow"),
        best_activities=("Raids", "Dungeons", "Nightfalls"),
    ),
    "melee": FocusPlaystyle(
        strengths=("High close-range damage", "Fast enemy elimination up close"),
        weaknesses=("Dangerous against ranged enemies", "Limited at long range"),
        best_activities=("Strikes", "Lost Sectors", "Patrol"),
    ),
    "healing": FocusPlaystyle(
        strengths=("Team sustain", "Strong survivability", "Buffs allies"),
        weaknesses=("Lower personal damage", "Depends on staying near the team"),
        best_activities=("Raids", "Dungeons", "Grandmaster Nightfalls"),
    ),
    "stealth": FocusPlaystyle(
        strengths=("Avoids enemy aggro", "Safe revives", "Flexible positioning"),
        weaknesses=("Lower sustained damage", "Demands careful timing"),
        best_activities=("Solo content", "Grandmaster Nightfalls", "Raids"),
    ),
    "reload": FocusPlaystyle(
        strengths=("Uninterrupted damage", "Strong DPS phases"),
        weaknesses=("Needs specific weapon perks", "Less ability focus"),
        best_activities=("Raids", "Dungeons", "Boss encounters"),
    ),
    "weapon": FocusPlaystyle(
        strengths=("Consistent weapon damage", "Works in most activities"),
        weaknesses=("Less ability synergy", "Tied to one weapon archetype"),
        best_activities=("All content types", "Crucible"),
    ),
    "movement": FocusPlaystyle(
        strengths=("High mobility", "Hard to pin down", "Fast traversal"),
        weaknesses=("Lower resilience", "Less forgiving in endgame PvE"),
        best_activities=("Crucible", "Speedruns", "Solo content"),
    ),
    "defense": FocusPlaystyle(
        strengths=("Maximum survivability", "Forgiving in hard content"),
        weaknesses=("Lower damage output", "Slower clear speed"),
        best_activities=("Grandmaster Nightfalls", "Solo content", "Endgame PvE"),
    ),
})

_GENERIC_PLAYSTYLE = FocusPlaystyle(
    strengths=("Synergistic item usage",),
    weaknesses=("May lack versatility",),
    best_activities=("General PvE",),
)


# =============================================================================
# OUTPUT MODELS
# =============================================================================

@dataclass(frozen=True)
class BuildComponent:
    """Plain copy of one matched item."""
    hash: int
    name: str
    description: str
    category: str
    slot: str
    element: str
    rarity: str
    type_name: str

    @classmethod
    def from_item(cls, item: CatalogItem) -> "BuildComponent":
        return cls(
            hash=item.hash,
            name=item.name,
            description=item.description,
            category=item.category.value,
            slot=item.slot.value,
            element=item.element.value,
            rarity=item.rarity.value,
            type_name=item.type_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "slot": self.slot,
            "element": self.element,
            "rarity": self.rarity,
            "type_name": self.type_name,
        }


@dataclass(frozen=True)
class SubclassGuide:
    super_ability: str
    class_ability: str
    movement: str
    melee: str
    aspects: Tuple[str, ...]
    fragments: Tuple[str, ...]


@dataclass(frozen=True)
class WeaponGuide:
    kinetic: str
    energy: str
    power: str
    exotic: str


@dataclass(frozen=True)
class ArmorGuide:
    exotic: str
    helmet: str
    arms: str
    chest: str
    legs: str
    class_item: str


@dataclass(frozen=True)
class ModGuide:
    essential: Tuple[str, ...]
    recommended: Tuple[str, ...]


@dataclass(frozen=True)
class GameplayGuide:
    style: str
    rotation: Tuple[str, ...]
    activities: Tuple[str, ...]
    tips: Tuple[str, ...]


@dataclass(frozen=True)
class BuildGuide:
    """Complete guide for one build. Every slot holds text or a non-empty tuple."""
    subclass: SubclassGuide
    weapons: WeaponGuide
    armor: ArmorGuide
    mods: ModGuide
    stat_priority: Tuple[str, ...]
    gameplay: GameplayGuide

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subclass": {
                "super": self.subclass.super_ability,
                "abilities": {
                    "class_ability": self.subclass.class_ability,
                    "movement": self.subclass.movement,
                    "melee": self.subclass.melee,
                },
                "aspects": list(self.subclass.aspects),
                "fragments": list(self.subclass.fragments),
            },
            "weapons": {
                "kinetic": self.weapons.kinetic,
                "energy": self.weapons.energy,
                "power": self.weapons.power,
                "exotic": self.weapons.exotic,
            },
            "armor": {
                "exotic": self.armor.exotic,
                "helmet": self.armor.helmet,
                "arms": self.armor.arms,
                "chest": self.armor.chest,
                "legs": self.armor.legs,
                "class_item": self.armor.class_item,
            },
            "mods": {
                "essential": list(self.mods.essential),
                "recommended": list(self.mods.recommended),
            },
            "stat_priority": list(self.stat_priority),
            "gameplay": {
                "style": self.gameplay.style,
                "rotation": list(self.gameplay.rotation),
                "activities": list(self.gameplay.activities),
                "tips": list(self.gameplay.tips),
            },
        }

    def empty_slots(self) -> List[str]:
        """Dotted paths of any slot left empty (always [] for assembled guides)."""
        empty: List[str] = []

        def _walk(prefix: str, value: Any) -> None:
            if isinstance(value, dict):
                for key, inner in value.items():
                    _walk(f"{prefix}.{key}" if prefix else key, inner)
            elif isinstance(value, list):
                if not value or any(not str(v).strip() for v in value):
                    empty.append(prefix)
            elif not str(value).strip():
                empty.append(prefix)

        _walk("", self.to_dict())
        return empty


@dataclass(frozen=True)
class BuildPlaystyle:
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    best_activities: Tuple[str, ...]
    key_items: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "best_activities": list(self.best_activities),
            "key_items": list(self.key_items),
        }


@dataclass(frozen=True)
class CandidateBuild:
    """
    A recommended build.

    Attributes:
        name: Display name
        description: One-sentence summary
        synergy_score: Score of the underlying match (0-100)
        focus: Focus tag of the archetype
        archetype_id: Archetype the build was assembled from
        components: Component key -> plain item copies
        build_guide: Fully populated guide
        playstyle: Strengths, weaknesses, activities and key items
        source_item_count: Number of matched items
        score_breakdown: Terms behind synergy_score
    """
    name: str
    description: str
    synergy_score: int
    focus: str
    archetype_id: str
    components: Dict[str, Tuple[BuildComponent, ...]]
    build_guide: BuildGuide
    playstyle: BuildPlaystyle
    source_item_count: int
    score_breakdown: Optional[ScoreBreakdown] = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "synergy_score": self.synergy_score,
            "focus": self.focus,
            "archetype_id": self.archetype_id,
            "components": {
                key: [component.to_dict() for component in items]
                for key, items in self.components.items()
            },
            "build_guide": self.build_guide.to_dict(),
            "playstyle": self.playstyle.to_dict(),
            "source_item_count": self.source_item_count,
            "score_breakdown": self.score_breakdown.to_dict() if self.score_breakdown else None,
        }


# =============================================================================
# ASSEMBLER
# =============================================================================

_ARMOR_SLOT_LABELS = (
    (ItemSlot.HELMET, "helmet"),
    (ItemSlot.ARMS, "arms"),
    (ItemSlot.CHEST, "chest armor"),
    (ItemSlot.LEGS, "leg armor"),
    (ItemSlot.CLASS_ITEM, "class item"),
)

_DESCRIPTION_PARTS = (
    ("exotic_armor", "exotic armor"),
    ("exotic_weapons", "exotic weapons"),
    ("mods", "synergistic mods"),
    ("aspects", "subclass aspects"),
    ("fragments", "fragments"),
)


def _first_name(items: Sequence[CatalogItem], *type_markers: str) -> Optional[str]:
    """Name of the first item whose type name contains any marker."""
    for item in items:
        type_name = item.type_name.lower()
        if any(marker in type_name for marker in type_markers):
            return item.name
    return None


def _first_in_slot(items: Sequence[CatalogItem], slot: ItemSlot) -> Optional[str]:
    for item in items:
        if item.slot is slot:
            return item.name
    return None


def _or(*candidates: Any) -> Any:
    """First candidate that is non-empty."""
    for candidate in candidates:
        if candidate:
            return candidate
    return candidates[-1]


def _leading(first: Sequence[str], rest: Sequence[str]) -> Tuple[str, ...]:
    """first followed by rest, without repeats."""
    merged: List[str] = []
    for value in list(first) + list(rest):
        if value not in merged:
            merged.append(value)
    return tuple(merged)


def _requested_first(items: Sequence[CatalogItem], requested: Sequence[str]) -> Tuple[CatalogItem, ...]:
    """Items named in the request move to the front; order is otherwise kept."""
    wanted = {name.lower() for name in requested}
    return tuple(sorted(items, key=lambda item: item.name.lower() not in wanted))


class BuildAssembler:
    """Assembles CandidateBuilds from CandidateMatches."""

    def assemble(self, match: CandidateMatch, parsed_query: Optional[ParsedQuery] = None) -> CandidateBuild:
        archetype = match.archetype
        template = archetype.template
        focus = archetype.focus
        focus_title = focus.title()

        requested = parsed_query.exotic_names if parsed_query is not None else ()
        components = dict(match.components)
        for key in ("exotic_armor", "exotic_weapons"):
            components[key] = _requested_first(components.get(key, ()), requested)

        exotics = _requested_first(match.exotic_items, requested)
        if exotics:
            name = f"{exotics[0].name} {focus_title} Build"
        else:
            name = template.name or f"{archetype.name} Build"

        guide = self._guide(components, template, focus, parsed_query)
        playstyle = self._playstyle(focus, exotics)

        build = CandidateBuild(
            name=name,
            description=self._description(components, template, focus),
            synergy_score=match.score,
            focus=focus,
            archetype_id=archetype.id,
            components={
                key: tuple(BuildComponent.from_item(item) for item in components.get(key, ()))
                for key in COMPONENT_KEYS
            },
            build_guide=guide,
            playstyle=playstyle,
            source_item_count=match.item_count,
            score_breakdown=match.breakdown,
        )
        logger.debug(f"Assembled '{build.name}' from {archetype.id} ({build.source_item_count} items)")
        return build

    @staticmethod
    def _description(
        components: Mapping[str, Sequence[CatalogItem]],
        template: ArchetypeTemplate,
        focus: str,
    ) -> str:
        parts = [label for key, label in _DESCRIPTION_PARTS if components.get(key)]
        if parts:
            return f"A {focus}-focused build using {', '.join(parts)} for optimal {focus} performance"
        return template.playstyle or f"A {focus}-focused build"

    def _guide(
        self,
        components: Mapping[str, Sequence[CatalogItem]],
        template: ArchetypeTemplate,
        focus: str,
        parsed_query: Optional[ParsedQuery],
    ) -> BuildGuide:
        focus_title = focus.title()
        focus_stats = parsed_query.focus_stats if parsed_query is not None else ()
        activities = parsed_query.activities if parsed_query is not None else ()
        abilities = components.get("abilities", ())
        legendary_weapons = components.get("legendary_weapons", ())
        exotic_weapons = components.get("exotic_weapons", ())
        exotic_armor = components.get("exotic_armor", ())
        plain_armor = [
            item for item in components.get(OTHER_COMPONENT, ())
            if item.category is ItemCategory.ARMOR
        ]
        mods = components.get("mods", ())

        stat_priority = _leading(
            focus_stats, _or(template.stat_priority, ("resilience", "recovery", "discipline"))
        )
        lead_stat = stat_priority[0].title()

        subclass = SubclassGuide(
            super_ability=_or(
                _first_name(abilities, "super"), template.super_ability, f"{focus_title}-focused super ability"
            ),
            class_ability=_or(
                _first_name(abilities, "class ability"), template.class_ability, f"{focus_title} synergy class ability"
            ),
            movement=_or(
                _first_name(abilities, "movement", "jump"), template.movement, "Optimized movement ability"
            ),
            melee=_or(_first_name(abilities, "melee"), template.melee, f"{focus_title} synergy melee ability"),
            aspects=_or(
                tuple(item.name for item in components.get("aspects", ())),
                template.aspects,
                (f"{focus_title} synergy aspects",),
            ),
            fragments=_or(
                tuple(item.name for item in components.get("fragments", ())),
                template.fragments,
                (f"{focus_title} synergy fragments",),
            ),
        )

        weapons = WeaponGuide(
            kinetic=_or(
                _first_in_slot(legendary_weapons, ItemSlot.KINETIC),
                template.kinetic_weapon,
                f"{focus_title} synergy kinetic weapon",
            ),
            energy=_or(
                _first_in_slot(legendary_weapons, ItemSlot.ENERGY),
                template.energy_weapon,
                f"{focus_title} synergy energy weapon",
            ),
            power=_or(
                _first_in_slot(legendary_weapons, ItemSlot.POWER),
                template.power_weapon,
                f"{focus_title} synergy power weapon",
            ),
            exotic=exotic_weapons[0].name if exotic_weapons else f"Exotic weapon that complements {focus} play",
        )

        armor_slots = {
            slot: _or(_first_in_slot(plain_armor, slot), f"{lead_stat}-focused {label}")
            for slot, label in _ARMOR_SLOT_LABELS
        }
        armor = ArmorGuide(
            exotic=_or(
                exotic_armor[0].name if exotic_armor else None,
                template.key_exotics[0] if template.key_exotics else None,
                f"{focus_title} exotic armor",
            ),
            helmet=armor_slots[ItemSlot.HELMET],
            arms=armor_slots[ItemSlot.ARMS],
            chest=armor_slots[ItemSlot.CHEST],
            legs=armor_slots[ItemSlot.LEGS],
            class_item=armor_slots[ItemSlot.CLASS_ITEM],
        )

        mod_guide = ModGuide(
            essential=_or(template.essential_mods, (f"{focus_title} mods",)),
            recommended=_or(
                tuple(item.name for item in mods),
                template.essential_mods,
                (f"Mods that support {focus} play",),
            ),
        )

        gameplay = GameplayGuide(
            style=_or(template.playstyle, f"{focus_title}-focused gameplay"),
            rotation=_or(template.rotation, (f"Lead with your {focus} tools", "Refill energy between fights")),
            activities=_leading(
                [ACTIVITY_LABELS.get(activity, activity.title()) for activity in activities],
                _or(template.activities, ("General PvE",)),
            ),
            tips=self._tips(template, exotic_armor, exotic_weapons, stat_priority),
        )

        return BuildGuide(
            subclass=subclass,
            weapons=weapons,
            armor=armor,
            mods=mod_guide,
            stat_priority=tuple(stat_priority),
            gameplay=gameplay,
        )

    @staticmethod
    def _tips(
        template: ArchetypeTemplate,
        exotic_armor: Sequence[CatalogItem],
        exotic_weapons: Sequence[CatalogItem],
        stat_priority: Sequence[str],
    ) -> Tuple[str, ...]:
        tips = [f"Prioritize {', '.join(s.title() for s in stat_priority)}"]
        exotics = [item.name for item in list(exotic_armor) + list(exotic_weapons)]
        if exotics:
            tips.append(f"Build around {exotics[0]}")
        elif template.key_exotics:
            tips.append(f"Use {' or '.join(template.key_exotics)} for maximum synergy")
        if template.essential_mods:
            tips.append(f"Slot {', '.join(template.essential_mods)}")
        tips.extend(template.tips)
        return tuple(tips)

    @staticmethod
    def _playstyle(focus: str, exotics: Sequence[CatalogItem]) -> BuildPlaystyle:
        base = FOCUS_PLAYSTYLES.get(focus, _GENERIC_PLAYSTYLE)
        strengths = list(base.strengths)
        if exotics:
            strengths.append(f"Exotic synergy from {exotics[0].name}")
        return BuildPlaystyle(
            strengths=tuple(strengths),
            weaknesses=base.weaknesses,
            best_activities=base.best_activities,
            key_items=tuple(item.name for item in exotics),
        )


_assembler = BuildAssembler()


def assemble_build(candidate_match: CandidateMatch, parsed_query: Optional[ParsedQuery] = None) -> CandidateBuild:
    """Assemble a CandidateBuild from a scored match, steered by the request when given."""
    return _assembler.assemble(candidate_match, parsed_query)
