"""
Synergy Matcher.

Matches catalog items against build archetypes and scores each surviving
archetype with a bounded synergy score.

Pipeline per query:
1. Pre-filter: keep archetypes whose keywords/phrases appear in the query.
2. Item scan: an item matches when its text or tags contain one of the
   archetype's synergy tags, when it is an exotic/mod named by the
   archetype, or when it is an exotic named in the query.
3. Threshold: drop archetypes with fewer matched items than min_items.
4. Score and sort (score descending, registry order on ties).
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from d2builds.build_archetypes.archetype_database import get_archetype_database
from d2builds.build_archetypes.archetype_models import (
    COMPONENT_KEYS,
    OTHER_COMPONENT,
    BuildArchetype,
    CandidateMatch,
    ScoreBreakdown,
    ScoringWeights,
)
from d2builds import constants
from d2builds.catalog.models import CatalogItem, ItemCategory
from d2builds.query.models import ParsedQuery
from d2builds.text_utils import any_word_start, contains_word_start

logger = logging.getLogger(__name__)


def component_key(item: CatalogItem) -> str:
    """Component bucket an item belongs to."""
    if item.category is ItemCategory.ARMOR and item.is_exotic:
        return "exotic_armor"
    if item.category is ItemCategory.WEAPON:
        return "exotic_weapons" if item.is_exotic else "legendary_weapons"
    if item.category is ItemCategory.MOD:
        return "mods"
    if "aspect" in item.tags:
        return "aspects"
    if "fragment" in item.tags:
        return "fragments"
    if item.category is ItemCategory.SUBCLASS_COMPONENT:
        return "abilities"
    return OTHER_COMPONENT


def compute_score(
    synergy_hits: int,
    exotic_count: int,
    component_categories: int,
    weights: ScoringWeights,
) -> ScoreBreakdown:
    """Apply the synergy formula. Each term is capped, the total clamped to [0, 100]."""
    synergy_points = min(synergy_hits * weights.synergy_weight, weights.synergy_cap)
    exotic_points = min(exotic_count * weights.exotic_weight, weights.exotic_cap)
    diversity_points = min(component_categories * weights.diversity_weight, weights.diversity_cap)
    raw = weights.base + synergy_points + exotic_points + diversity_points
    total = int(max(constants.SCORE_MIN, min(constants.SCORE_MAX, raw)))
    return ScoreBreakdown(
        base=weights.base,
        synergy_hits=synergy_hits,
        synergy_points=synergy_points,
        exotic_count=exotic_count,
        exotic_points=exotic_points,
        component_categories=component_categories,
        diversity_points=diversity_points,
        total=total,
    )


# =============================================================================
# SYNERGY MATCHER
# =============================================================================

class SynergyMatcher:
    """
    Matches candidate items against build archetypes.

    Deterministic: for the same query, items and archetypes the output is
    identical, independent of the iteration order of candidate_items.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        """Initialize with optional custom scoring weights."""
        self.weights = weights or ScoringWeights()

    def match(
        self,
        parsed_query: ParsedQuery,
        candidate_items: Iterable[CatalogItem],
        archetypes: Sequence[BuildArchetype],
    ) -> List[CandidateMatch]:
        """
        Match candidate items against archetypes.

        Args:
            parsed_query: Parsed user request
            candidate_items: Items to scan (build-relevant subset or owned items)
            archetypes: Archetypes in registration order

        Returns:
            CandidateMatch list sorted by score descending, registry order on ties

        Raises:
            TypeError: If parsed_query is not a ParsedQuery or an item is not a CatalogItem.
        """
        if not isinstance(parsed_query, ParsedQuery):
            raise TypeError(f"parsed_query must be a ParsedQuery, got {type(parsed_query).__name__}")

        items = self._prepare_items(candidate_items, parsed_query.excluded_terms)
        query_text = " ".join(parsed_query.tokens)
        requested = frozenset(name.lower() for name in parsed_query.exotic_names)

        matches: List[CandidateMatch] = []
        for order, archetype in enumerate(archetypes):
            if not archetype.triggered_by(query_text):
                continue

            match = self._match_archetype(archetype, items, order, requested)
            if match is not None:
                matches.append(match)

        matches.sort(key=lambda m: (-m.score, m.order))
        logger.debug(
            f"Matched {len(matches)} archetype(s) for '{parsed_query.normalized_text}': "
            + ", ".join(f"{m.archetype.id}={m.score}" for m in matches)
        )
        return matches

    @staticmethod
    def _prepare_items(
        candidate_items: Iterable[CatalogItem],
        excluded_terms: Tuple[str, ...],
    ) -> List[Tuple[CatalogItem, str]]:
        """Type-check, drop excluded items, and fix a stable order (by hash)."""
        prepared: Dict[int, Tuple[CatalogItem, str]] = {}
        for item in candidate_items:
            if not isinstance(item, CatalogItem):
                raise TypeError(f"candidate items must be CatalogItem, got {type(item).__name__}")
            text = item.search_text
            if excluded_terms and any_word_start(text, excluded_terms):
                continue
            prepared.setdefault(item.hash, (item, text))
        return [prepared[h] for h in sorted(prepared)]

    def _match_archetype(
        self,
        archetype: BuildArchetype,
        items: List[Tuple[CatalogItem, str]],
        order: int,
        requested: FrozenSet[str] = frozenset(),
    ) -> Optional[CandidateMatch]:
        hits_by_hash: Dict[int, int] = {}
        matched: List[CatalogItem] = []

        for item, text in items:
            hits = sum(1 for tag in archetype.synergy_tags if contains_word_start(text, tag))
            named = (item.is_exotic or item.is_mod) and archetype.names_item(item.name)
            # An exotic the user asked for joins every triggered archetype
            named = named or (item.is_exotic and item.name.lower() in requested)
            if hits or named:
                matched.append(item)
                hits_by_hash[item.hash] = hits

        if len(matched) < archetype.min_items:
            logger.debug(
                f"Archetype {archetype.id} below threshold "
                f"({len(matched)} < {archetype.min_items})"
            )
            return None

        buckets: Dict[str, List[CatalogItem]] = {key: [] for key in COMPONENT_KEYS + (OTHER_COMPONENT,)}
        for item in matched:
            buckets[component_key(item)].append(item)

        components = {
            key: tuple(sorted(bucket, key=lambda i: (-hits_by_hash[i.hash], i.hash)))
            for key, bucket in buckets.items()
        }

        breakdown = compute_score(
            synergy_hits=sum(hits_by_hash.values()),
            exotic_count=sum(1 for item in matched if item.is_exotic),
            component_categories=sum(1 for key in COMPONENT_KEYS if components[key]),
            weights=self.weights,
        )

        return CandidateMatch(
            archetype=archetype,
            components=components,
            score=breakdown.total,
            breakdown=breakdown,
            order=order,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def match_archetypes(
    parsed_query: ParsedQuery,
    candidate_items: Iterable[CatalogItem],
    archetypes: Optional[Sequence[BuildArchetype]] = None,
    weights: Optional[ScoringWeights] = None,
) -> List[CandidateMatch]:
    """
    Match items against archetypes and score the survivors.

    Args:
        parsed_query: Parsed user request
        candidate_items: Items to scan
        archetypes: Archetypes to consider (registry when omitted)
        weights: Scoring constants (defaults when omitted)
    """
    if archetypes is None:
        archetypes = get_archetype_database().get_all()
    return SynergyMatcher(weights).match(parsed_query, candidate_items, archetypes)
