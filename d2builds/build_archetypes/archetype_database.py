"""
Build Archetype Database.

Contains the registry of build archetypes the recommender knows about.
Registration order is significant: it breaks ties between equally scored
matches.

Data sourced from:
- Community build guides and loadout sharing sites
- Exotic / mod interactions described in item text
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from d2builds.build_archetypes.archetype_models import ArchetypeTemplate, BuildArchetype
from d2builds.text_utils import normalize_text


# =============================================================================
# BUILD ARCHETYPES
# =============================================================================

# --- Ability builds ---

GRENADE_SPAM = BuildArchetype(
    id="grenade_spam",
    name="Grenade Spam",
    focus="grenade",
    keywords=("grenade", "grenades", "explosive", "ordnance", "throw"),
    phrases=("constant grenades", "grenade energy", "infinite grenades", "grenade spam"),
    synergy_tags=("grenade", "ordnance", "explosive", "ability energy", "discipline", "ability_regen"),
    min_items=2,
    named_items=(
        "Armamentarium",
        "Heart of Inmost Light",
        "Contraverse Hold",
        "Grenade Kickstart",
        "Bomber",
        "Elemental Ordnance",
    ),
    template=ArchetypeTemplate(
        name="Grenade Spam Build",
        super_ability="Any super with strong add clear",
        class_ability="Class ability that returns grenade energy",
        movement="Standard jump for your subclass",
        melee="Melee that refunds ability energy",
        aspects=("Aspect that empowers or recharges grenades", "Aspect that rewards grenade kills"),
        fragments=("Fragment that grants grenade energy on kills", "Fragment that adds discipline"),
        kinetic_weapon="Primary with an ability-energy perk",
        energy_weapon="Weapon with a grenade-energy or Demolitionist perk",
        power_weapon="Any power weapon for bosses",
        key_exotics=("Armamentarium", "Heart of Inmost Light", "Contraverse Hold"),
        essential_mods=("Grenade Kickstart", "Bomber", "Elemental Ordnance"),
        stat_priority=("discipline", "resilience", "recovery"),
        rotation=(
            "Open every fight with a grenade",
            "Collect orbs and ability pickups to refund energy",
            "Use your class ability to top up grenade energy",
        ),
        tips=("Keep discipline as high as possible", "Pair the exotic with matching element grenades"),
        playstyle="Area control through constant grenade usage",
        activities=("Strikes", "Lost Sectors", "Patrol"),
    ),
)

SUPER_GENERATION = BuildArchetype(
    id="super_generation",
    name="Super Generation",
    focus="super",
    keywords=("super", "supers", "ultimate", "orbs", "intellect"),
    phrases=("fast super", "super energy", "frequent super", "orb generation"),
    synergy_tags=("super energy", "orb of power", "orbs of power", "intellect", "super_regen"),
    min_items=2,
    named_items=(
        "Geomag Stabilizers",
        "Orpheus Rig",
        "Doom Fang Pauldron",
        "Hands-On",
        "Ashes to Assets",
        "Distribution",
    ),
    template=ArchetypeTemplate(
        name="Super Generation Build",
        super_ability="Your subclass's strongest roaming or burst super",
        class_ability="Class ability that grants orbs",
        movement="Standard jump for your subclass",
        melee="Melee that creates orbs on kill",
        aspects=("Aspect that extends or refunds super energy",),
        fragments=("Fragment that creates orbs of power",),
        kinetic_weapon="Primary with an orb-generating masterwork",
        energy_weapon="Special weapon with an orb-generating masterwork",
        power_weapon="Heavy weapon for burst damage",
        key_exotics=("Geomag Stabilizers", "Orpheus Rig", "Doom Fang Pauldron"),
        essential_mods=("Hands-On", "Ashes to Assets", "Distribution"),
        stat_priority=("intellect", "resilience", "discipline"),
        rotation=(
            "Generate orbs with ability and weapon kills",
            "Cast super as soon as it is ready",
            "Chain ability kills to refund super energy",
        ),
        tips=("Collect your own orbs and your team's",),
        playstyle="Frequent super usage for maximum uptime",
        activities=("Raids", "Dungeons", "Team activities"),
    ),
)

MELEE = BuildArchetype(
    id="melee",
    name="Melee Combat",
    focus="melee",
    keywords=("melee", "punch", "fist", "martial", "strength"),
    phrases=("melee damage", "punch build", "one two punch"),
    synergy_tags=("melee", "punch", "strength", "close range"),
    min_items=2,
    named_items=(
        "Wormgod Caress",
        "Synthoceps",
        "Karnstein Armlets",
        "Melee Kickstart",
        "Heavy Handed",
        "Impact Induction",
    ),
    template=ArchetypeTemplate(
        name="Melee Combat Build",
        super_ability="Close-range roaming super",
        class_ability="Class ability that grants melee energy",
        movement="Jump that closes distance quickly",
        melee="Your subclass's charged melee",
        aspects=("Aspect that empowers melee hits",),
        fragments=("Fragment that grants melee energy",),
        kinetic_weapon="One Two Punch shotgun",
        energy_weapon="Close-range special weapon",
        power_weapon="Sword or close-range heavy",
        key_exotics=("Wormgod Caress", "Synthoceps", "Karnstein Armlets"),
        essential_mods=("Melee Kickstart", "Heavy Handed", "Impact Induction"),
        stat_priority=("strength", "resilience", "recovery"),
        rotation=("Close distance", "Melee to trigger buffs", "Refund melee with kills"),
        tips=("Stack melee damage buffs before engaging",),
        playstyle="Close-range combat with enhanced melee damage",
        activities=("Strikes", "Lost Sectors", "Patrol"),
    ),
)

HEALING_SUPPORT = BuildArchetype(
    id="healing_support",
    name="Healing Support",
    focus="healing",
    keywords=("healing", "heal", "healer", "support", "restoration", "cure", "recovery"),
    phrases=("team heal", "constant healing", "support build", "well of radiance"),
    synergy_tags=("heal", "restoration", "cure", "recovery", "survivability"),
    min_items=2,
    named_items=(
        "Phoenix Protocol",
        "Boots of the Assembler",
        "Lunafaction Boots",
        "Well of Life",
        "Recuperation",
        "Better Already",
    ),
    preferred_classes=("warlock",),
    template=ArchetypeTemplate(
        name="Support Healing Build",
        super_ability="Well of Radiance",
        class_ability="Healing Rift",
        movement="Burst Glide",
        melee="Incinerator Snap",
        aspects=("Touch of Flame", "Heat Rises"),
        fragments=("Ember of Benevolence", "Ember of Solace"),
        kinetic_weapon="Primary with an Incandescent perk",
        energy_weapon="Special weapon with a healing perk",
        power_weapon="Team DPS heavy weapon",
        key_exotics=("Phoenix Protocol", "Boots of the Assembler", "Lunafaction Boots"),
        essential_mods=("Well of Life", "Recuperation", "Better Already"),
        stat_priority=("recovery", "resilience", "intellect"),
        rotation=(
            "Place rift for the team before each fight",
            "Heal allies with abilities",
            "Save super for damage phases",
        ),
        tips=("Stay near your fireteam", "Time Well of Radiance with the damage phase"),
        playstyle="Team support through healing and buffs",
        activities=("Raids", "Dungeons", "Grandmaster Nightfalls"),
    ),
)

STEALTH = BuildArchetype(
    id="stealth",
    name="Invisibility",
    focus="stealth",
    keywords=("invisibility", "invisible", "stealth", "vanish", "cloak", "hidden"),
    phrases=("void hunter", "invisible hunter", "stealth build", "vanishing step"),
    synergy_tags=("invisib", "stealth", "smoke", "vanish"),
    min_items=2,
    named_items=(
        "Graviton Forfeit",
        "Omnioculus",
        "Gyrfalcon's Hauberk",
        "Utility Kickstart",
        "Dynamo",
        "Distribution",
    ),
    preferred_classes=("hunter",),
    template=ArchetypeTemplate(
        name="Void Invisibility Build",
        super_ability="Shadowshot: Moebius Quiver",
        class_ability="Gambler's Dodge",
        movement="Triple Jump",
        melee="Snare Bomb",
        aspects=("Stylish Executioner", "Vanishing Step"),
        fragments=("Echo of Persistence", "Echo of Starvation"),
        kinetic_weapon="Primary with a volatile or weaken perk",
        energy_weapon="Void special weapon",
        power_weapon="Team DPS heavy weapon",
        key_exotics=("Graviton Forfeit", "Omnioculus", "Gyrfalcon's Hauberk"),
        essential_mods=("Utility Kickstart", "Dynamo", "Distribution"),
        stat_priority=("mobility", "resilience", "strength"),
        rotation=("Dodge to turn invisible", "Reposition or revive while invisible", "Strike from stealth"),
        tips=("Invisibility breaks enemy aggro",),
        playstyle="Stealth-based survivability and team support",
        activities=("Solo content", "Grandmaster Nightfalls", "Raids"),
    ),
)

AUTO_LOADING = BuildArchetype(
    id="auto_loading",
    name="Auto-Loading",
    focus="reload",
    keywords=("reload", "magazine", "auto-loading", "ammunition", "ammo"),
    phrases=("never reload", "no reload", "auto loading", "infinite ammo", "continuous fire"),
    synergy_tags=("reload", "magazine", "auto-loading", "reserves", "weapon_handling"),
    min_items=2,
    named_items=(
        "Actium War Rig",
        "Lucky Pants",
        "Transversive Steps",
        "Auto-Loading Holster",
        "Backup Mag",
    ),
    template=ArchetypeTemplate(
        name="Auto-Loading Build",
        super_ability="Any super that leaves you free to shoot",
        class_ability="Rally Barricade",
        movement="Standard jump for your subclass",
        melee="Any melee",
        aspects=("Aspect that improves weapon uptime",),
        fragments=("Fragment that improves reload speed",),
        kinetic_weapon="Auto rifle with Subsistence or Feeding Frenzy",
        energy_weapon="Special weapon with Auto-Loading Holster",
        power_weapon="Machine gun with a large magazine",
        key_exotics=("Actium War Rig", "Lucky Pants", "Transversive Steps"),
        essential_mods=("Auto-Loading Holster", "Backup Mag", "Reserves mods"),
        stat_priority=("resilience", "recovery", "discipline"),
        rotation=("Stow the empty weapon", "Fire the other weapon while it reloads", "Swap back"),
        tips=("Reload perks stack with reload mods",),
        playstyle="Sustained damage without manual reloading",
        activities=("Raids", "Dungeons", "Boss encounters"),
    ),
)

WEAPON_SPECIFIC = BuildArchetype(
    id="weapon_specific",
    name="Weapon Specialist",
    focus="weapon",
    keywords=("shotgun", "sniper", "sword", "bow", "glaive", "smg", "sidearm", "scout", "pulse"),
    phrases=("hand cannon", "auto rifle", "fusion rifle", "linear fusion", "rocket launcher", "machine gun"),
    synergy_tags=(
        "hand_cannon",
        "auto_rifle",
        "fusion_rifle",
        "shotgun",
        "sniper_rifle",
        "sword",
        "bow",
        "targeting",
        "handling",
    ),
    min_items=2,
    template=ArchetypeTemplate(
        name="Weapon-Specific Build",
        super_ability="Any super that complements your weapon's range",
        class_ability="Class ability that buffs weapon damage",
        movement="Jump suited to your engagement range",
        melee="Melee that reloads or buffs weapons",
        aspects=("Aspect that empowers weapon kills",),
        fragments=("Fragment that improves weapon stats",),
        kinetic_weapon="Your chosen weapon type in kinetic",
        energy_weapon="Your chosen weapon type in energy",
        power_weapon="Heavy weapon that covers your range gap",
        key_exotics=("Exotic armor that boosts your weapon type",),
        essential_mods=("Targeting mods", "Reload mods", "Reserves mods"),
        stat_priority=("resilience", "recovery", "mobility"),
        rotation=("Engage at your weapon's optimal range", "Use abilities to reset fights"),
        tips=("Match armor mods to your weapon's element",),
        playstyle="Optimized around specific weapon types for maximum efficiency",
        activities=("All content types", "Crucible", "PvE content"),
    ),
)

MOBILITY = BuildArchetype(
    id="mobility",
    name="High Mobility",
    focus="movement",
    keywords=("mobility", "speed", "movement", "agility", "dodge", "jump", "fast"),
    phrases=("high mobility", "speed build", "movement build"),
    synergy_tags=("mobility", "movement speed", "sprint", "jump", "dodge", "airborne"),
    min_items=2,
    named_items=("St0mp-EE5", "Dragon's Shadow", "Transversive Steps", "Traction", "Powerful Friends"),
    preferred_classes=("hunter",),
    template=ArchetypeTemplate(
        name="High Mobility Build",
        super_ability="Roaming super with high movement",
        class_ability="Marksman's Dodge",
        movement="Strafe Jump",
        melee="Any ranged melee",
        aspects=("Aspect that rewards movement",),
        fragments=("Fragment that increases mobility",),
        kinetic_weapon="Hand cannon with Opening Shot",
        energy_weapon="Shotgun or fusion rifle",
        power_weapon="Rocket launcher",
        key_exotics=("St0mp-EE5", "Dragon's Shadow", "Transversive Steps"),
        essential_mods=("Traction", "Powerful Friends", "Mobility mods"),
        stat_priority=("mobility", "recovery", "resilience"),
        rotation=("Keep moving between engagements", "Dodge to reset positioning"),
        tips=("Slide and jump to break enemy aim",),
        playstyle="High-speed gameplay with enhanced movement capabilities",
        activities=("Crucible", "Speedruns", "Solo content"),
    ),
)

TANK = BuildArchetype(
    id="tank",
    name="Tank",
    focus="defense",
    keywords=("tank", "tanky", "resilience", "defense", "defensive", "survivability", "shield", "resist"),
    phrases=("tank build", "high resilience", "damage resistance"),
    synergy_tags=("resilience", "damage resistance", "overshield", "resist", "barricade", "survivability"),
    min_items=2,
    named_items=(
        "One-Eyed Mask",
        "Helm of Saint-14",
        "Precious Scars",
        "Recuperation",
        "Better Already",
    ),
    preferred_classes=("titan",),
    template=ArchetypeTemplate(
        name="Tank Defense Build",
        super_ability="Ward of Dawn",
        class_ability="Towering Barricade",
        movement="Catapult Lift",
        melee="Shield Bash",
        aspects=("Bastion", "Offensive Bulwark"),
        fragments=("Echo of Provision", "Echo of Undermining"),
        kinetic_weapon="Primary with a defensive perk",
        energy_weapon="Special weapon for emergencies",
        power_weapon="Heavy weapon with self-healing perks",
        key_exotics=("One-Eyed Mask", "Helm of Saint-14", "Precious Scars"),
        essential_mods=("Resist mods", "Recuperation", "Better Already"),
        stat_priority=("resilience", "recovery", "discipline"),
        rotation=("Cast barricade before engaging", "Fight from overshield", "Retreat behind cover to heal"),
        tips=("Resistance mods stack with high resilience",),
        playstyle="Maximum survivability through damage resistance",
        activities=("Grandmaster Nightfalls", "Solo content", "Endgame PvE"),
    ),
)


ALL_ARCHETYPES: Tuple[BuildArchetype, ...] = (
    GRENADE_SPAM,
    SUPER_GENERATION,
    MELEE,
    HEALING_SUPPORT,
    STEALTH,
    AUTO_LOADING,
    WEAPON_SPECIFIC,
    MOBILITY,
    TANK,
)


class ArchetypeDatabase:
    """
    Registry of build archetypes.

    Holds an immutable tuple in registration order and provides lookup and
    the keyword pre-filter. No ranking happens here.
    """

    def __init__(self, archetypes: Optional[Sequence[BuildArchetype]] = None):
        """Initialize with optional custom archetype list."""
        self._archetypes: Tuple[BuildArchetype, ...] = tuple(
            ALL_ARCHETYPES if archetypes is None else archetypes
        )
        self._by_id: Dict[str, BuildArchetype] = {
            arch.id: arch for arch in self._archetypes
        }
        if len(self._by_id) != len(self._archetypes):
            raise ValueError("Archetype ids must be unique")

    def __len__(self) -> int:
        return len(self._archetypes)

    def get_all(self) -> Tuple[BuildArchetype, ...]:
        """Get all archetypes in registration order."""
        return self._archetypes

    def get(self, archetype_id: str) -> Optional[BuildArchetype]:
        """Get archetype by ID."""
        return self._by_id.get(archetype_id)

    def considered_for(self, text: str) -> List[BuildArchetype]:
        """Archetypes triggered by a keyword or phrase in text, in registry order."""
        normalized = normalize_text(text)
        return [a for a in self._archetypes if a.triggered_by(normalized)]


# Global database instance
_database: Optional[ArchetypeDatabase] = None


def get_archetype_database() -> ArchetypeDatabase:
    """Get the global archetype database instance."""
    global _database
    if _database is None:
        _database = ArchetypeDatabase()
    return _database


def list_archetypes() -> Tuple[BuildArchetype, ...]:
    """All registered archetypes, in registration order."""
    return get_archetype_database().get_all()
