"""
Build Recommender.

Entry point tying the engine together: cached index -> parsed query ->
filtered candidate pool -> archetype matches -> assembled builds.

When no archetype qualifies, the result carries a short ranked list of
individually matching items plus suggestions for broadening the query.
That is a normal outcome, not an error.

Usage:
    recommender = BuildRecommender()
    result = recommender.recommend("grenade spam titan build", raw_items, "v2024.1")
    for build in result.builds:
        print(build.name, build.synergy_score)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from d2builds import constants
from d2builds.build_archetypes.archetype_database import ArchetypeDatabase, get_archetype_database
from d2builds.build_archetypes.archetype_matcher import SynergyMatcher
from d2builds.build_archetypes.archetype_models import BuildArchetype
from d2builds.build_assembler import BuildComponent, CandidateBuild, assemble_build
from d2builds.catalog.cache import IndexCache, get_index_cache
from d2builds.catalog.indexer import CatalogIndexer
from d2builds.catalog.models import CatalogIndex, CatalogItem, ClassType, Element
from d2builds.config import Config
from d2builds.query.models import ANY, ParsedQuery
from d2builds.query.parser import QueryParser, validate_build_request
from d2builds.text_utils import any_word_start, contains_word_start

logger = logging.getLogger(__name__)

# Query words too common to rank fallback items by
FALLBACK_STOPWORDS = frozenset({"a", "an", "and", "build", "builds", "for", "in", "my", "of", "the", "with"})

BROADENING_SUGGESTIONS: Tuple[str, ...] = (
    "Name a build theme such as grenade, super, melee, healing or stealth",
    "Add a class (titan, hunter, warlock) or an element (solar, arc, void, stasis, strand)",
    "Try an example like \"grenade spam titan build\"",
)


@dataclass(frozen=True)
class FallbackItem:
    """
    One individually matching item returned when no build qualified.

    Attributes:
        component: Plain copy of the item
        match_score: Relevance to the query (0-100)
        matched_terms: Query words found in the item's text
        matched_phrases: Quoted phrases found in the item's text
        reasons: Bonuses that lifted the score
    """
    component: BuildComponent
    match_score: int
    matched_terms: Tuple[str, ...] = ()
    matched_phrases: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()

    @property
    def hash(self) -> int:
        return self.component.hash

    @property
    def name(self) -> str:
        return self.component.name

    def to_dict(self) -> Dict[str, Any]:
        data = self.component.to_dict()
        data.update({
            "match_score": self.match_score,
            "matched_terms": list(self.matched_terms),
            "matched_phrases": list(self.matched_phrases),
            "reasons": list(self.reasons),
        })
        return data


@dataclass(frozen=True)
class RecommendationResult:
    """
    Outcome of one recommendation request.

    Attributes:
        query: Parsed request
        builds: Ranked builds (best first)
        fallback_items: Individually matching items when no build qualified
        suggestions: Hints for broadening or sharpening the query
        warnings: Advisory warnings about the request
        catalog_version: Version of the index that served the request
    """
    query: ParsedQuery
    builds: Tuple[CandidateBuild, ...] = ()
    fallback_items: Tuple[FallbackItem, ...] = ()
    suggestions: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    catalog_version: str = ""

    @property
    def has_builds(self) -> bool:
        return bool(self.builds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query.to_dict(),
            "builds": [build.to_dict() for build in self.builds],
            "fallback_items": [item.to_dict() for item in self.fallback_items],
            "suggestions": list(self.suggestions),
            "warnings": list(self.warnings),
            "catalog_version": self.catalog_version,
            "has_builds": self.has_builds,
        }


def _resolve_class(value: Optional[str]) -> Optional[ClassType]:
    if value is None or value == ANY:
        return None
    try:
        resolved = ClassType(value.lower())
    except ValueError:
        raise ValueError(f"Unknown class filter: {value!r}") from None
    return None if resolved is ClassType.ANY else resolved


def _resolve_element(value: Optional[str]) -> Optional[Element]:
    if value is None or value == ANY:
        return None
    try:
        resolved = Element(value.lower())
    except ValueError:
        raise ValueError(f"Unknown element filter: {value!r}") from None
    return None if resolved is Element.NONE else resolved


def filter_candidates(
    items: Iterable[CatalogItem],
    class_type: Optional[ClassType] = None,
    element: Optional[Element] = None,
) -> List[CatalogItem]:
    """
    Apply class and element filters.

    Class-agnostic items pass any class filter; items without an element
    pass any element filter.
    """
    result = []
    for item in items:
        if class_type is not None and item.class_type not in (ClassType.ANY, class_type):
            continue
        if element is not None and item.element not in (Element.NONE, element):
            continue
        result.append(item)
    return result


def _score_fallback_item(
    item: CatalogItem,
    terms: Sequence[str],
    phrases: Sequence[str],
    build_types: Sequence[BuildArchetype],
) -> Optional[Tuple[int, FallbackItem]]:
    """(raw score, entry) for an item matching the query, None otherwise."""
    text = item.search_text
    matched_terms = tuple(term for term in terms if contains_word_start(text, term))
    matched_phrases = tuple(phrase for phrase in phrases if contains_word_start(text, phrase))
    fits = next((a for a in build_types if any_word_start(text, a.synergy_tags)), None)
    if not (matched_terms or matched_phrases or fits):
        return None

    raw = (
        len(matched_phrases) * constants.FALLBACK_PHRASE_POINTS
        + len(matched_terms) * constants.FALLBACK_TERM_POINTS
    )
    reasons: List[str] = []
    if fits is not None:
        raw += constants.FALLBACK_BUILD_TYPE_POINTS
        reasons.append(f"Fits {fits.name}")
    if item.is_exotic:
        raw += constants.FALLBACK_EXOTIC_BONUS
        reasons.append("Exotic item")
    elif item.is_build_relevant:
        raw += constants.FALLBACK_ESSENTIAL_BONUS
        reasons.append("Build essential item")

    entry = FallbackItem(
        component=BuildComponent.from_item(item),
        match_score=min(raw, constants.FALLBACK_SCORE_MAX),
        matched_terms=matched_terms,
        matched_phrases=matched_phrases,
        reasons=tuple(reasons),
    )
    return raw, entry


def rank_fallback_items(
    parsed: ParsedQuery,
    items: Iterable[CatalogItem],
    limit: int,
    build_types: Sequence[BuildArchetype] = (),
) -> List[FallbackItem]:
    """
    Score items against the query, best first, ties by hash.

    An item qualifies when it contains a query word, a quoted phrase, or a
    synergy tag of one of build_types (archetypes the query mentions). Exotic
    and build-essential items then rank above plain ones. Items containing an
    excluded term never qualify.
    """
    terms = _dedupe_terms(t for t in parsed.tokens if t not in FALLBACK_STOPWORDS)
    phrases = parsed.exact_phrases
    if not (terms or phrases or build_types):
        return []

    scored = []
    for item in items:
        if parsed.excluded_terms and any_word_start(item.search_text, parsed.excluded_terms):
            continue
        result = _score_fallback_item(item, terms, phrases, build_types)
        if result is not None:
            raw, entry = result
            scored.append((-raw, item.hash, entry))
    scored.sort(key=lambda entry: (entry[0], entry[1]))
    return [entry for _, _, entry in scored[:limit]]


def _dedupe_terms(terms: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for term in terms:
        if term not in seen:
            seen.append(term)
    return seen


def coerce_owned_hashes(owned_hashes: Iterable[Any]) -> List[int]:
    """
    Sorted, de-duplicated item hashes from a caller's owned-item list.

    Digit strings (as hashes arrive from JSON object keys or form input) are
    converted to int. Anything else that is not an int is rejected rather
    than silently matching nothing.

    Raises:
        TypeError: If owned_hashes is a string or holds a non-integer value.
    """
    if isinstance(owned_hashes, (str, bytes)):
        raise TypeError("owned_hashes must be an iterable of item hashes, not a single string")

    hashes = set()
    for value in owned_hashes:
        if isinstance(value, bool):
            raise TypeError(f"owned_hashes must contain int item hashes, got {value!r}")
        if isinstance(value, int):
            hashes.add(value)
        elif isinstance(value, str) and value.strip().isdigit():
            hashes.add(int(value.strip()))
        else:
            raise TypeError(f"owned_hashes must contain int item hashes, got {value!r}")
    return sorted(hashes)


class BuildRecommender:
    """Runs a free-text query against a catalog and returns ranked builds."""

    def __init__(
        self,
        config: Optional[Config] = None,
        cache: Optional[IndexCache] = None,
        database: Optional[ArchetypeDatabase] = None,
        parser: Optional[QueryParser] = None,
    ):
        self.config = config or Config()
        indexer = CatalogIndexer(
            batch_size=self.config.index_batch_size,
            yield_every=self.config.index_yield_every,
        )
        if cache is not None:
            self.cache = cache
        elif config is not None:
            # The shared cache keeps the settings it was first built with
            self.cache = IndexCache(max_entries=self.config.cache_max_entries, indexer=indexer)
        else:
            self.cache = get_index_cache(max_entries=self.config.cache_max_entries, indexer=indexer)
        self.database = database or get_archetype_database()
        self.parser = parser or QueryParser()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def recommend(
        self,
        text: str,
        raw_items: Any,
        version: str,
        owned_hashes: Optional[Iterable[int]] = None,
        class_filter: Optional[str] = None,
        element_filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> RecommendationResult:
        """
        Recommend builds for text against the catalog raw_items@version.

        Raises:
            TypeError: If text is not a string or owned_hashes holds a non-integer value.
            ValueError: If text is blank or a filter names an unknown class/element.
        """
        self._check_text(text)
        if owned_hashes is not None:
            owned_hashes = coerce_owned_hashes(owned_hashes)
        index = self.cache.get_or_build_index(raw_items, version)
        return self.recommend_from_index(text, index, owned_hashes, class_filter, element_filter, limit)

    async def arecommend(
        self,
        text: str,
        raw_items: Any,
        version: str,
        owned_hashes: Optional[Iterable[int]] = None,
        class_filter: Optional[str] = None,
        element_filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> RecommendationResult:
        """Coroutine form of recommend; an index build yields between batches."""
        self._check_text(text)
        if owned_hashes is not None:
            owned_hashes = coerce_owned_hashes(owned_hashes)
        index = await self.cache.aget_or_build_index(raw_items, version)
        return self.recommend_from_index(text, index, owned_hashes, class_filter, element_filter, limit)

    def recommend_from_index(
        self,
        text: str,
        index: CatalogIndex,
        owned_hashes: Optional[Iterable[int]] = None,
        class_filter: Optional[str] = None,
        element_filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> RecommendationResult:
        """Recommend builds using an already built index."""
        self._check_text(text)
        owned = coerce_owned_hashes(owned_hashes) if owned_hashes is not None else None
        started = time.perf_counter()

        parsed = self.parser.parse(text, index)
        validation = validate_build_request(parsed, self.config.low_confidence_threshold)

        class_type = _resolve_class(class_filter if class_filter is not None else parsed.class_type)
        element = _resolve_element(element_filter if element_filter is not None else parsed.element)

        pool = filter_candidates(self._candidate_pool(index, owned), class_type, element)

        matcher = SynergyMatcher(self.config.scoring_weights())
        matches = matcher.match(parsed, pool, self.database.get_all())

        max_builds = max(1, int(limit)) if limit is not None else self.config.max_builds
        builds = tuple(assemble_build(match, parsed) for match in matches[:max_builds])

        fallback: Tuple[FallbackItem, ...] = ()
        suggestions: List[str] = list(validation.suggestions)
        if not builds:
            build_types = self.database.considered_for(" ".join(parsed.tokens))
            fallback = tuple(rank_fallback_items(parsed, pool, self.config.fallback_limit, build_types))
            suggestions.extend(s for s in BROADENING_SUGGESTIONS if s not in suggestions)
            if class_type is not None or element is not None or parsed.excluded_terms:
                suggestions.append("Remove class, element or excluded-term filters to widen the item pool")

        result = RecommendationResult(
            query=parsed,
            builds=builds,
            fallback_items=fallback,
            suggestions=tuple(suggestions),
            warnings=tuple(validation.warnings),
            catalog_version=index.version,
        )

        logger.info(
            "recommendation_done",
            extra={
                "catalog_version": index.version,
                "confidence": parsed.confidence,
                "pool_size": len(pool),
                "build_count": len(builds),
                "fallback_count": len(fallback),
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_text(text: Any) -> None:
        if not isinstance(text, str):
            raise TypeError(f"query text must be a str, got {type(text).__name__}")
        if not text.strip():
            raise ValueError("query text must not be empty")

    @staticmethod
    def _candidate_pool(index: CatalogIndex, owned_hashes: Optional[Sequence[int]]) -> Sequence[CatalogItem]:
        if owned_hashes is None:
            return index.build_relevant
        pool = []
        for item_hash in owned_hashes:
            item = index.get(item_hash)
            if item is not None:
                pool.append(item)
        return pool
