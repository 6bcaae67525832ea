"""
Catalog Module.

Normalizes raw manifest records into immutable, queryable indices and
caches them per catalog version.

Components:
- models: CatalogItem, CatalogIndex and the item enums
- raw_schema: pydantic models for raw manifest records
- tables: injected lookup tables for the indexer
- indexer: batch indexer (sync and cooperative async)
- cache: LRU cache of built indices keyed by version

Usage:
    from d2builds.catalog import get_index_cache

    index = get_index_cache().get_or_build_index(raw_items, "v2024.1")
    print(index.category_counts())
"""

from d2builds.catalog.models import (
    ARMOR_SLOTS,
    WEAPON_SLOTS,
    CatalogIndex,
    CatalogItem,
    ClassType,
    Element,
    IndexStats,
    ItemCategory,
    ItemSlot,
    Rarity,
)
from d2builds.catalog.tables import DEFAULT_TABLES, IndexerTables
from d2builds.catalog.indexer import (
    CatalogIndexer,
    RecordRejection,
    abuild_index,
    build_index,
)
from d2builds.catalog.cache import (
    CacheStats,
    IndexCache,
    clear_index_cache,
    get_index_cache,
    make_cache_key,
)

__all__ = [
    # Models
    "ARMOR_SLOTS",
    "WEAPON_SLOTS",
    "CatalogIndex",
    "CatalogItem",
    "ClassType",
    "Element",
    "IndexStats",
    "ItemCategory",
    "ItemSlot",
    "Rarity",
    # Tables
    "DEFAULT_TABLES",
    "IndexerTables",
    # Indexer
    "CatalogIndexer",
    "RecordRejection",
    "abuild_index",
    "build_index",
    # Cache
    "CacheStats",
    "IndexCache",
    "clear_index_cache",
    "get_index_cache",
    "make_cache_key",
]
