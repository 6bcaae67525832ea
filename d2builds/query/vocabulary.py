"""
Query vocabulary.

Phrase tables the parser resolves entities from. Every table maps a
lower-cased phrase (one or more words) to its canonical value. The default
instance can be swapped for a custom QueryVocabulary in tests or for a
catalog version that renames things.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple


def _frozen(mapping: dict) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


CLASS_ALIASES = _frozen({
    "titan": "titan",
    "titans": "titan",
    "crayon eater": "titan",
    "hunter": "hunter",
    "hunters": "hunter",
    "warlock": "warlock",
    "warlocks": "warlock",
    "space wizard": "warlock",
})

ELEMENT_ALIASES = _frozen({
    "solar": "solar",
    "fire": "solar",
    "void": "void",
    "arc": "arc",
    "lightning": "arc",
    "chain lightning": "arc",
    "electric": "arc",
    "strand": "strand",
    "stasis": "stasis",
    "ice": "stasis",
    "freeze": "stasis",
    "kinetic": "kinetic",
})

ACTIVITY_ALIASES = _frozen({
    "raid": "raid",
    "raids": "raid",
    "vault of glass": "raid",
    "deep stone crypt": "raid",
    "last wish": "raid",
    "garden of salvation": "raid",
    "nightfall": "nightfall",
    "nightfalls": "nightfall",
    "nf": "nightfall",
    "grandmaster": "nightfall",
    "gm": "nightfall",
    "ordeal": "nightfall",
    "pvp": "pvp",
    "crucible": "pvp",
    "trials": "pvp",
    "trials of osiris": "pvp",
    "comp": "pvp",
    "competitive": "pvp",
    "gambit": "gambit",
    "dungeon": "dungeon",
    "dungeons": "dungeon",
    "strike": "strike",
    "strikes": "strike",
    "patrol": "patrol",
    "open world": "patrol",
    "lost sector": "patrol",
    "lost sectors": "patrol",
})

# Canonical activity -> display label used in build guides
ACTIVITY_LABELS = _frozen({
    "raid": "Raids",
    "nightfall": "Nightfalls",
    "pvp": "Crucible",
    "gambit": "Gambit",
    "dungeon": "Dungeons",
    "strike": "Strikes",
    "patrol": "Patrol",
})

PLAYSTYLE_KEYWORDS = _frozen({
    "aggressive": "aggressive",
    "aggro": "aggressive",
    "defensive": "defensive",
    "tanky": "defensive",
    "support": "support",
    "supportive": "support",
    "balanced": "balanced",
})

# (word prefix, playstyle) pairs consulted in order when no playstyle keyword appears
PLAYSTYLE_HINTS: Tuple[Tuple[str, str], ...] = (
    ("surviv", "defensive"),
    ("tank", "defensive"),
    ("heal", "support"),
    ("team", "support"),
    ("fast", "aggressive"),
    ("rush", "aggressive"),
)

WEAPON_ALIASES = _frozen({
    "hand cannon": "hand_cannon",
    "hand cannons": "hand_cannon",
    "handcannon": "hand_cannon",
    "hc": "hand_cannon",
    "pulse rifle": "pulse_rifle",
    "pulse": "pulse_rifle",
    "scout rifle": "scout_rifle",
    "scout": "scout_rifle",
    "auto rifle": "auto_rifle",
    "auto": "auto_rifle",
    "submachine gun": "submachine_gun",
    "smg": "submachine_gun",
    "sidearm": "sidearm",
    "side arm": "sidearm",
    "bow": "bow",
    "combat bow": "bow",
    "sniper rifle": "sniper_rifle",
    "sniper": "sniper_rifle",
    "shotgun": "shotgun",
    "shotty": "shotgun",
    "fusion rifle": "fusion_rifle",
    "fusion": "fusion_rifle",
    "linear fusion": "linear_fusion_rifle",
    "linear fusion rifle": "linear_fusion_rifle",
    "lfr": "linear_fusion_rifle",
    "rocket launcher": "rocket_launcher",
    "rocket": "rocket_launcher",
    "grenade launcher": "grenade_launcher",
    "machine gun": "machine_gun",
    "lmg": "machine_gun",
    "trace rifle": "trace_rifle",
    "sword": "sword",
    "glaive": "glaive",
})

STAT_ALIASES = _frozen({
    "mobility": "mobility",
    "mob": "mobility",
    "speed": "mobility",
    "resilience": "resilience",
    "res": "resilience",
    "resil": "resilience",
    "recovery": "recovery",
    "rec": "recovery",
    "health": "recovery",
    "discipline": "discipline",
    "disc": "discipline",
    "grenade": "discipline",
    "grenades": "discipline",
    "intellect": "intellect",
    "int": "intellect",
    "super": "intellect",
    "strength": "strength",
    "str": "strength",
    "melee": "strength",
})

REQUIREMENT_PHRASES = _frozen({
    "never reload": "no_reload",
    "no reload": "no_reload",
    "infinite ammo": "no_reload",
    "auto loading": "no_reload",
    "auto-loading": "no_reload",
    "constant abilities": "constant_abilities",
    "infinite abilities": "constant_abilities",
    "ability spam": "constant_abilities",
    "cooldown reduction": "constant_abilities",
    "long range": "max_range",
    "close range": "close_range",
    "close quarters": "close_range",
    "cqc": "close_range",
    "team": "team_play",
    "fireteam": "team_play",
    "group": "team_play",
    "solo": "solo_play",
    "alone": "solo_play",
    "budget": "budget_build",
    "cheap": "budget_build",
    "meta": "meta_build",
    "optimal": "meta_build",
    "best in slot": "meta_build",
    "bis": "meta_build",
    "fun": "fun_build",
    "meme": "fun_build",
})

COMMON_BUILD_SUGGESTIONS: Tuple[str, ...] = (
    "High DPS build for raid bosses",
    "PvP hand cannon build for Crucible",
    "Add clear build with SMG",
    "Survivability build for Grandmaster Nightfalls",
    "Solar healing support build",
    "Void invisibility hunter build",
    "Arc chain lightning build",
    "Strand grapple movement build",
    "Grenade spam titan build",
    "Never reload build",
    "Fast super warlock build",
    "Close quarters shotgun build",
)


@dataclass(frozen=True)
class QueryVocabulary:
    """Phrase tables consumed by QueryParser."""
    class_aliases: Mapping[str, str] = field(default_factory=lambda: CLASS_ALIASES)
    element_aliases: Mapping[str, str] = field(default_factory=lambda: ELEMENT_ALIASES)
    activity_aliases: Mapping[str, str] = field(default_factory=lambda: ACTIVITY_ALIASES)
    playstyle_keywords: Mapping[str, str] = field(default_factory=lambda: PLAYSTYLE_KEYWORDS)
    playstyle_hints: Tuple[Tuple[str, str], ...] = PLAYSTYLE_HINTS
    weapon_aliases: Mapping[str, str] = field(default_factory=lambda: WEAPON_ALIASES)
    stat_aliases: Mapping[str, str] = field(default_factory=lambda: STAT_ALIASES)
    requirement_phrases: Mapping[str, str] = field(default_factory=lambda: REQUIREMENT_PHRASES)
    common_suggestions: Tuple[str, ...] = COMMON_BUILD_SUGGESTIONS


DEFAULT_VOCABULARY = QueryVocabulary()
