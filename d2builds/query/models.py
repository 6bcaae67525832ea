"""
Query Models.

Structured form of a free-text build request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

ANY = "any"
GENERAL = "general"
BALANCED = "balanced"


@dataclass(frozen=True)
class ParsedQuery:
    """
    Entities resolved from one query string.

    Unresolved entities carry explicit defaults ("any", "general",
    "balanced", empty tuples) so matching code never checks for None.

    Attributes:
        original_text: Text exactly as given
        normalized_text: Lower-cased, trimmed, whitespace-collapsed text
        tokens: Words used for resolution (excluded "-term" words removed)
        class_type: "titan" / "hunter" / "warlock" or "any"
        element: Element name or "any"
        activity: First activity mentioned, or "general"
        activities: Every activity mentioned, in text order
        playstyle: aggressive / defensive / support / balanced
        focus_stats: Stats mentioned or targeted, in text order
        weapon_types: Weapon sub-type names, in text order
        exotic_names: Display names of exotics named in the text
        stat_targets: Stat -> target value from "tier N stat" / "N% stat"
        requirements: Special requirements (e.g. "no_reload", "team_play")
        excluded_terms: Words given with a leading "-"
        exact_phrases: Normalized text of each "double-quoted" phrase
        confidence: 0.0 - 1.0
    """
    original_text: str
    normalized_text: str = ""
    tokens: Tuple[str, ...] = ()
    class_type: str = ANY
    element: str = ANY
    activity: str = GENERAL
    activities: Tuple[str, ...] = ()
    playstyle: str = BALANCED
    focus_stats: Tuple[str, ...] = ()
    weapon_types: Tuple[str, ...] = ()
    exotic_names: Tuple[str, ...] = ()
    stat_targets: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    requirements: Tuple[str, ...] = ()
    excluded_terms: Tuple[str, ...] = ()
    exact_phrases: Tuple[str, ...] = ()
    confidence: float = 0.0

    @property
    def has_class(self) -> bool:
        return self.class_type != ANY

    @property
    def has_element(self) -> bool:
        return self.element != ANY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_text": self.original_text,
            "normalized_text": self.normalized_text,
            "tokens": list(self.tokens),
            "class_type": self.class_type,
            "element": self.element,
            "activity": self.activity,
            "activities": list(self.activities),
            "playstyle": self.playstyle,
            "focus_stats": list(self.focus_stats),
            "weapon_types": list(self.weapon_types),
            "exotic_names": list(self.exotic_names),
            "stat_targets": dict(self.stat_targets),
            "requirements": list(self.requirements),
            "excluded_terms": list(self.excluded_terms),
            "exact_phrases": list(self.exact_phrases),
            "confidence": self.confidence,
        }


@dataclass
class BuildRequestValidation:
    """Advisory warnings about a parsed request. Never blocks a query."""
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
