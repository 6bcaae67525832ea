"""
Command-line interface for build recommendations.

Provides print utilities and the CLI entry point.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from d2builds.build_archetypes import list_archetypes
from d2builds.build_assembler import CandidateBuild
from d2builds.config import Config
from d2builds.logging_setup import setup_logging
from d2builds.recommender import BuildRecommender, RecommendationResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2


class CatalogLoadError(Exception):
    """The catalog file is missing or not in a supported layout."""


def load_catalog(path: Path, version: Optional[str] = None) -> Tuple[Any, str]:
    """
    Read a catalog JSON file.

    Accepted layouts:
        {"version": "...", "items": {"<hash>": {...}, ...}}
        {"<hash>": {...}, ...}   (requires version)

    Returns:
        (raw_items, version)

    Raises:
        CatalogLoadError: If the file is missing, unreadable, or has no version.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise CatalogLoadError(f"Catalog file not found: {path}") from None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CatalogLoadError(f"Could not read catalog {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogLoadError(f"Catalog {path} must contain a JSON object")

    if "items" in data and isinstance(data["items"], (dict, list)):
        raw_items = data["items"]
        version = version or data.get("version")
    else:
        raw_items = data

    if not version:
        raise CatalogLoadError(
            f"Catalog {path} has no version; pass --catalog-version"
        )
    return raw_items, str(version)


def print_build(build: CandidateBuild, rank: int) -> None:
    """Pretty-print one recommended build."""
    guide = build.build_guide
    print(f"\n{'='*60}")
    print(f" {rank}. {build.name}  [{build.synergy_score}/100]")
    print(f"{'='*60}")
    print(f"  {build.description}")

    print("\n  Subclass:")
    print(f"    Super:          {guide.subclass.super_ability}")
    print(f"    Class ability:  {guide.subclass.class_ability}")
    print(f"    Melee:          {guide.subclass.melee}")
    print(f"    Aspects:        {', '.join(guide.subclass.aspects)}")
    print(f"    Fragments:      {', '.join(guide.subclass.fragments)}")

    print("\n  Gear:")
    print(f"    Exotic armor:   {guide.armor.exotic}")
    print(f"    Exotic weapon:  {guide.weapons.exotic}")
    print(f"    Kinetic:        {guide.weapons.kinetic}")
    print(f"    Energy:         {guide.weapons.energy}")
    print(f"    Power:          {guide.weapons.power}")

    print("\n  Mods:")
    for mod in guide.mods.essential:
        print(f"    * {mod}")
    for mod in guide.mods.recommended:
        print(f"    - {mod}")

    print(f"\n  Stat priority: {' > '.join(guide.stat_priority)}")

    if guide.gameplay.tips:
        print("\n  Tips:")
        for tip in guide.gameplay.tips:
            print(f"    - {tip}")


def print_result(result: RecommendationResult) -> None:
    """Pretty-print a recommendation result."""
    query = result.query
    print(f"\nQuery: {query.original_text!r} (confidence {query.confidence:.2f}, catalog {result.catalog_version})")

    for warning in result.warnings:
        print(f"  ! {warning}")

    if result.has_builds:
        for rank, build in enumerate(result.builds, start=1):
            print_build(build, rank)
    else:
        print("\nNo build archetype matched this request.")
        if result.fallback_items:
            print("\nMatching items:")
            for item in result.fallback_items:
                component = item.component
                print(f"  - {item.name} ({component.type_name or component.category}) [{item.match_score}]")
                if item.reasons:
                    print(f"      {', '.join(item.reasons)}")

    if result.suggestions:
        print("\nSuggestions:")
        for suggestion in result.suggestions:
            print(f"  - {suggestion}")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="d2builds",
        description="Destiny 2 Build Finder - Recommend builds from a free-text request",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  d2builds "grenade spam titan build" --catalog manifest.json
  d2builds "void hunter stealth" --catalog items.json --catalog-version v2024.1
  d2builds "healing warlock" --catalog manifest.json --limit 1 --json
  d2builds --list-archetypes
        """
    )

    parser.add_argument("query", nargs="?", help="Free-text build request")
    parser.add_argument("--catalog", type=Path, metavar="PATH", help="Catalog JSON file")
    parser.add_argument("--catalog-version", metavar="VERSION",
                        help="Catalog version (required when the file has no version field)")
    parser.add_argument("--class", dest="class_filter", choices=["titan", "hunter", "warlock"],
                        help="Only use items for this class")
    parser.add_argument("--element", dest="element_filter",
                        choices=["solar", "arc", "void", "stasis", "strand", "kinetic"],
                        help="Only use items of this element")
    parser.add_argument("--owned", type=int, nargs="+", metavar="HASH",
                        help="Restrict the item pool to these item hashes")
    parser.add_argument("-n", "--limit", type=int, help="Number of builds to show")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--config", type=Path, metavar="PATH", help="Config JSON file")
    parser.add_argument("--list-archetypes", action="store_true", help="List known build archetypes")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def cli_main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for build recommendations."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    if args.list_archetypes:
        print("\nAvailable archetypes:")
        for archetype in list_archetypes():
            classes = f" ({', '.join(archetype.preferred_classes)})" if archetype.preferred_classes else ""
            print(f"  {archetype.id:20} - {archetype.name}{classes}")
        return EXIT_OK

    if not args.query or not args.query.strip():
        parser.error("a non-empty query is required")
    if args.catalog is None:
        parser.error("--catalog is required")

    try:
        raw_items, version = load_catalog(args.catalog, args.catalog_version)
    except CatalogLoadError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    recommender = BuildRecommender(config=Config(args.config) if args.config else None)
    result = recommender.recommend(
        args.query,
        raw_items,
        version,
        owned_hashes=args.owned,
        class_filter=args.class_filter,
        element_filter=args.element_filter,
        limit=args.limit,
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(cli_main())
