"""
Build Archetypes Module.

Matches catalog items against a registry of build archetypes to answer:
"Which builds does this query describe, and which items support them?"

Components:
- archetype_models: Data structures for archetypes, templates and matches
- archetype_database: Registry of build archetypes in registration order
- archetype_matcher: Synergy matching and scoring engine

Usage:
    from d2builds.build_archetypes import list_archetypes, match_archetypes

    matches = match_archetypes(parsed_query, index.build_relevant, list_archetypes())
    for match in matches:
        print(f"{match.archetype.name}: {match.score}")
"""

from d2builds.build_archetypes.archetype_models import (
    COMPONENT_KEYS,
    OTHER_COMPONENT,
    ArchetypeTemplate,
    BuildArchetype,
    CandidateMatch,
    ScoreBreakdown,
    ScoringWeights,
)
from d2builds.build_archetypes.archetype_database import (
    ALL_ARCHETYPES,
    ArchetypeDatabase,
    get_archetype_database,
    list_archetypes,
)
from d2builds.build_archetypes.archetype_matcher import (
    SynergyMatcher,
    component_key,
    compute_score,
    match_archetypes,
)

__all__ = [
    # Models
    "COMPONENT_KEYS",
    "OTHER_COMPONENT",
    "ArchetypeTemplate",
    "BuildArchetype",
    "CandidateMatch",
    "ScoreBreakdown",
    "ScoringWeights",
    # Database
    "ALL_ARCHETYPES",
    "ArchetypeDatabase",
    "get_archetype_database",
    "list_archetypes",
    # Matcher
    "SynergyMatcher",
    "component_key",
    "compute_score",
    "match_archetypes",
]
