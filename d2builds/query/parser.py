"""
Query Parser.

Turns free text such as "grenade spam titan build" into a ParsedQuery.

Resolution works on whole words. All vocabulary phrases (and the exotic
names of the loaded catalog) compete for the query's words, longest phrase
first, so "grenade launcher" resolves to a weapon type before "grenade" can
resolve to a stat. A word claimed by one phrase is not reused.

Parsing is a pure function of (text, index exotic names, vocabulary).
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Dict, List, Optional, Sequence, Tuple

from d2builds import constants
from d2builds.catalog.models import CatalogIndex
from d2builds.query.models import ANY, BALANCED, GENERAL, BuildRequestValidation, ParsedQuery
from d2builds.query.vocabulary import DEFAULT_VOCABULARY, QueryVocabulary
from d2builds.text_utils import find_phrase, normalize_text, split_words

logger = logging.getLogger(__name__)

# Categories in tie-break order for phrases of equal length
CLASS = "class"
ELEMENT = "element"
ACTIVITY = "activity"
PLAYSTYLE = "playstyle"
WEAPON = "weapon"
STAT = "stat"
EXOTIC = "exotic"
REQUIREMENT = "requirement"
_CATEGORY_ORDER = (EXOTIC, CLASS, ELEMENT, ACTIVITY, PLAYSTYLE, WEAPON, STAT, REQUIREMENT)

_PERCENT_RE = re.compile(r"^(\d{1,3})%$")
_QUOTED_RE = re.compile(r'"([^"]+)"')

PhraseEntry = Tuple[Tuple[str, ...], str, str]  # (words, category, value)


class QueryParser:
    """
    Free-text query parser.

    Confidence starts at BASE_CONFIDENCE and gains a fixed increment for each
    entity category resolved, a small bonus for longer inputs and a penalty
    for very short ones, clamped to [0, 1].
    """

    BASE_CONFIDENCE = 0.30
    CLASS_BONUS = 0.15
    ELEMENT_BONUS = 0.10
    ACTIVITY_BONUS = 0.15
    STAT_BONUS = 0.10
    PLAYSTYLE_BONUS = 0.10
    EXOTIC_BONUS = 0.15
    LENGTH_BONUS = 0.05
    LONG_INPUT_WORDS = 4
    VERY_LONG_INPUT_WORDS = 8
    SHORT_INPUT_PENALTY = 0.20
    MIN_WORDS = 2
    MIN_CHARS = 4

    def __init__(self, vocabulary: Optional[QueryVocabulary] = None):
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY
        self._static_entries = self._build_entries()

    def _build_entries(self) -> List[PhraseEntry]:
        vocab = self.vocabulary
        tables = (
            (CLASS, vocab.class_aliases),
            (ELEMENT, vocab.element_aliases),
            (ACTIVITY, vocab.activity_aliases),
            (PLAYSTYLE, vocab.playstyle_keywords),
            (WEAPON, vocab.weapon_aliases),
            (STAT, vocab.stat_aliases),
            (REQUIREMENT, vocab.requirement_phrases),
        )
        entries: List[PhraseEntry] = []
        for category, table in tables:
            for phrase, value in table.items():
                entries.append((tuple(phrase.split(" ")), category, value))
        return entries

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, text: str, index: Optional[CatalogIndex] = None) -> ParsedQuery:
        """
        Parse a query string.

        Args:
            text: Free-text build request. Any string is accepted; blank text
                  yields a default-filled ParsedQuery.
            index: Loaded catalog whose exotic names should be recognized.

        Raises:
            TypeError: If text is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f"query text must be a str, got {type(text).__name__}")

        normalized = normalize_text(text)
        words = split_words(normalized) if normalized else []

        excluded = tuple(_dedupe(w[1:] for w in words if w.startswith("-") and len(w) > 1))
        tokens = tuple(w for w in words if not w.startswith("-"))
        # Quoted words still take part in resolution as plain tokens
        exact_phrases = tuple(_dedupe(
            phrase for phrase in (normalize_text(p) for p in _QUOTED_RE.findall(text)) if phrase
        ))

        matches = self._resolve_phrases(tokens, self._entries_for(tokens, index))

        values: Dict[str, List[str]] = {category: [] for category in _CATEGORY_ORDER}
        for _, category, value in matches:
            if value not in values[category]:
                values[category].append(value)

        stat_targets = self._extract_stat_targets(tokens)
        focus_stats = list(values[STAT])
        for stat in stat_targets:
            if stat not in focus_stats:
                focus_stats.append(stat)

        playstyle = values[PLAYSTYLE][0] if values[PLAYSTYLE] else self._infer_playstyle(tokens)

        parsed_fields = {
            "class_type": values[CLASS][0] if values[CLASS] else ANY,
            "element": values[ELEMENT][0] if values[ELEMENT] else ANY,
            "activity": values[ACTIVITY][0] if values[ACTIVITY] else GENERAL,
            "activities": tuple(values[ACTIVITY]),
            "playstyle": playstyle,
            "focus_stats": tuple(focus_stats),
            "weapon_types": tuple(values[WEAPON]),
            "exotic_names": tuple(values[EXOTIC]),
            "requirements": tuple(values[REQUIREMENT]),
        }

        confidence = self._confidence(parsed_fields, word_count=len(words), char_count=len(normalized))

        parsed = ParsedQuery(
            original_text=text,
            normalized_text=normalized,
            tokens=tokens,
            stat_targets=MappingProxyType(stat_targets),
            excluded_terms=excluded,
            exact_phrases=exact_phrases,
            confidence=confidence,
            **parsed_fields,
        )
        logger.debug(f"Parsed query '{normalized}' (confidence {confidence})")
        return parsed

    def _entries_for(self, tokens: Sequence[str], index: Optional[CatalogIndex]) -> List[PhraseEntry]:
        """Phrase entries that could match tokens, longest first."""
        token_set = set(tokens)
        entries = [e for e in self._static_entries if e[0][0] in token_set]

        if index is not None:
            for name, item_hash in index.exotic_names.items():
                words = tuple(split_words(normalize_text(name)))
                if words and words[0] in token_set:
                    item = index.get(item_hash)
                    entries.append((words, EXOTIC, item.name if item else name))

        order = {category: i for i, category in enumerate(_CATEGORY_ORDER)}
        entries.sort(key=lambda e: (-len(e[0]), order[e[1]], e[0]))
        return entries

    @staticmethod
    def _resolve_phrases(tokens: Sequence[str], entries: List[PhraseEntry]) -> List[Tuple[int, str, str]]:
        """Claim token spans for phrases; returns (position, category, value) in text order."""
        claimed = [False] * len(tokens)
        matches: List[Tuple[int, str, str]] = []

        for words, category, value in entries:
            phrase = " ".join(words)
            width = len(words)
            start = 0
            while True:
                pos = find_phrase(tokens, phrase, start)
                if pos < 0:
                    break
                if not any(claimed[pos:pos + width]):
                    for i in range(pos, pos + width):
                        claimed[i] = True
                    matches.append((pos, category, value))
                start = pos + 1

        matches.sort(key=lambda m: m[0])
        return matches

    def _stat_name(self, word: str) -> Optional[str]:
        return self.vocabulary.stat_aliases.get(word)

    def _extract_stat_targets(self, tokens: Sequence[str]) -> Dict[str, int]:
        """
        Numeric stat targets.

        "tier N <stat>" -> N * 10 for N in 1-10
        "N% <stat>"     -> N for N in 0-100
        Anything out of range is dropped.
        """
        targets: Dict[str, int] = {}
        for i, word in enumerate(tokens):
            if word == "tier" and i + 2 < len(tokens) and tokens[i + 1].isdigit():
                stat = self._stat_name(tokens[i + 2])
                tier = int(tokens[i + 1])
                if stat and constants.STAT_TIER_MIN <= tier <= constants.STAT_TIER_MAX:
                    targets[stat] = tier * 10
                continue

            percent = _PERCENT_RE.match(word)
            if percent and i + 1 < len(tokens):
                stat = self._stat_name(tokens[i + 1])
                value = int(percent.group(1))
                if stat and constants.STAT_PERCENT_MIN <= value <= constants.STAT_PERCENT_MAX:
                    targets[stat] = value
        return targets

    def _infer_playstyle(self, tokens: Sequence[str]) -> str:
        for prefix, style in self.vocabulary.playstyle_hints:
            if any(token.startswith(prefix) for token in tokens):
                return style
        return BALANCED

    def _confidence(self, fields: Dict, word_count: int, char_count: int) -> float:
        score = self.BASE_CONFIDENCE
        if fields["class_type"] != ANY:
            score += self.CLASS_BONUS
        if fields["element"] != ANY:
            score += self.ELEMENT_BONUS
        if fields["activity"] != GENERAL:
            score += self.ACTIVITY_BONUS
        if fields["focus_stats"]:
            score += self.STAT_BONUS
        if fields["playstyle"] != BALANCED:
            score += self.PLAYSTYLE_BONUS
        if fields["exotic_names"]:
            score += self.EXOTIC_BONUS

        if word_count >= self.LONG_INPUT_WORDS:
            score += self.LENGTH_BONUS
        if word_count >= self.VERY_LONG_INPUT_WORDS:
            score += self.LENGTH_BONUS
        if word_count < self.MIN_WORDS or char_count < self.MIN_CHARS:
            score -= self.SHORT_INPUT_PENALTY

        return round(max(0.0, min(1.0, score)), 2)


def _dedupe(values) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


_default_parser: Optional[QueryParser] = None


def get_query_parser() -> QueryParser:
    """Get the shared parser using the default vocabulary."""
    global _default_parser
    if _default_parser is None:
        _default_parser = QueryParser()
    return _default_parser


def parse_query(
    text: str,
    index: Optional[CatalogIndex] = None,
    vocabulary: Optional[QueryVocabulary] = None,
) -> ParsedQuery:
    """
    Parse free text into a ParsedQuery.

    Args:
        text: Query text.
        index: Optional catalog index; its exotic names become recognizable.
        vocabulary: Optional replacement phrase tables.
    """
    parser = QueryParser(vocabulary) if vocabulary is not None else get_query_parser()
    return parser.parse(text, index)


def generate_search_suggestions(
    partial: str,
    index: Optional[CatalogIndex] = None,
    vocabulary: Optional[QueryVocabulary] = None,
    limit: int = 8,
) -> List[str]:
    """
    Autocomplete suggestions for a partially typed query.

    Common build phrases containing the partial text come first, followed by
    "Build around <exotic>" for exotics in the index whose name contains it.
    """
    vocab = vocabulary or DEFAULT_VOCABULARY
    needle = normalize_text(partial)

    suggestions = [s for s in vocab.common_suggestions if needle in s.lower()]

    if index is not None and needle:
        names = sorted({item.name for item in index.exotics if needle in item.name.lower()})
        suggestions.extend(f"Build around {name}" for name in names)

    return suggestions[:limit]


def validate_build_request(
    parsed: ParsedQuery,
    low_confidence_threshold: float = constants.LOW_CONFIDENCE_THRESHOLD,
) -> BuildRequestValidation:
    """Collect advisory warnings for a parsed request."""
    validation = BuildRequestValidation()

    if "pvp" in parsed.activities and "raid" in parsed.activities:
        validation.warnings.append("PvP builds may not be optimal for raid content")
        validation.suggestions.append("Consider separate builds for PvP and raid activities")

    if parsed.confidence < low_confidence_threshold:
        validation.warnings.append("Build request may be too vague")
        validation.suggestions.append("Try naming a class, element, activity or exotic")

    if len(parsed.weapon_types) > 3:
        validation.warnings.append("Too many weapon types specified")
        validation.suggestions.append("A loadout holds three weapons at once")

    return validation
