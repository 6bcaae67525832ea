"""
Query Module.

Parses free-text build requests into structured ParsedQuery records.

Usage:
    from d2builds.query import parse_query

    parsed = parse_query("grenade spam titan build", index)
    print(parsed.class_type, parsed.focus_stats, parsed.confidence)
"""

from d2builds.query.models import BuildRequestValidation, ParsedQuery
from d2builds.query.vocabulary import DEFAULT_VOCABULARY, QueryVocabulary
from d2builds.query.parser import (
    QueryParser,
    generate_search_suggestions,
    get_query_parser,
    parse_query,
    validate_build_request,
)

__all__ = [
    "BuildRequestValidation",
    "ParsedQuery",
    "DEFAULT_VOCABULARY",
    "QueryVocabulary",
    "QueryParser",
    "generate_search_suggestions",
    "get_query_parser",
    "parse_query",
    "validate_build_request",
]
