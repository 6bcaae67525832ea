"""
Catalog Index Cache - LRU cache of built indices keyed by catalog version.

Indexing a full manifest is the expensive step of every recommendation.
The cache keeps the last few CatalogIndex snapshots so repeated queries
against the same catalog reuse the built index.

Indices are immutable, so readers keep whatever snapshot they were handed
without locking. Only the key table itself is guarded.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Optional

from d2builds import constants
from d2builds.catalog.indexer import CatalogIndexer
from d2builds.catalog.models import CatalogIndex

logger = logging.getLogger(__name__)


def make_cache_key(version: str, raw_items: Any) -> str:
    """
    Cache key for a catalog: version plus record count.

    Raises:
        TypeError: If raw_items has no length.
    """
    try:
        count = len(raw_items)
    except TypeError:
        raise TypeError(
            f"raw_items must be a sized collection to be cached, got {type(raw_items).__name__}"
        ) from None
    return f"{version}:{count}"


@dataclass
class CacheEntry:
    """A cached index and the build sequence that produced it."""
    index: CatalogIndex
    sequence: int
    key: str


@dataclass
class CacheStats:
    """Statistics for cache performance monitoring."""
    hits: int = 0
    misses: int = 0
    builds: int = 0
    evictions: int = 0
    superseded: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    @property
    def total_requests(self) -> int:
        """Total number of cache requests."""
        return self.hits + self.misses

    def reset(self) -> None:
        """Reset all statistics."""
        self.hits = 0
        self.misses = 0
        self.builds = 0
        self.evictions = 0
        self.superseded = 0


class IndexCache:
    """
    LRU cache of CatalogIndex snapshots.

    Features:
    - Keyed by "<version>:<record count>", so a version change always misses
    - LRU eviction when max_entries is reached
    - Last-writer-wins: a build that started before the current index's
      build never replaces it
    - Thread-safe key table
    - Performance statistics

    Usage:
        cache = IndexCache(max_entries=4)
        index = cache.get_or_build_index(raw_items, "v2024.1")
    """

    DEFAULT_MAX_ENTRIES = constants.INDEX_CACHE_MAX_ENTRIES

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        indexer: Optional[CatalogIndexer] = None,
    ):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of catalog versions to keep.
            indexer: Indexer used on a miss (default tables when omitted).
        """
        self._max_entries = max(1, int(max_entries))
        self._indexer = indexer or CatalogIndexer()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()
        self._sequence = itertools.count(1)
        self._current: Optional[CacheEntry] = None

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    @property
    def size(self) -> int:
        """Current number of cached indices."""
        with self._lock:
            return len(self._entries)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def indexer(self) -> CatalogIndexer:
        return self._indexer

    @property
    def current(self) -> Optional[CatalogIndex]:
        """The most recently built index that was not superseded."""
        entry = self._current
        return entry.index if entry is not None else None

    def get(self, key: str) -> Optional[CatalogIndex]:
        """Look up an index by cache key without building."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.index

    def get_or_build_index(self, raw_items: Any, version: str) -> CatalogIndex:
        """
        Return the cached index for (version, len(raw_items)), building on a miss.

        Args:
            raw_items: Raw manifest records (mapping or sized iterable).
            version: Catalog version identifier.
        """
        key = make_cache_key(version, raw_items)
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Index cache hit for {key}")
            return cached

        sequence = self._begin_build(key)
        index = self._indexer.build(raw_items, version)
        return self._store(key, sequence, index)

    async def aget_or_build_index(self, raw_items: Any, version: str) -> CatalogIndex:
        """Coroutine form of get_or_build_index; the build yields between batches."""
        key = make_cache_key(version, raw_items)
        cached = self.get(key)
        if cached is not None:
            logger.debug(f"Index cache hit for {key}")
            return cached

        sequence = self._begin_build(key)
        index = await self._indexer.abuild(raw_items, version)
        return self._store(key, sequence, index)

    def _begin_build(self, key: str) -> int:
        sequence = next(self._sequence)
        logger.info("index_cache_miss", extra={"cache_key": key, "sequence": sequence})
        return sequence

    def _store(self, key: str, sequence: int, index: CatalogIndex) -> CatalogIndex:
        """
        Record a finished build.

        The caller always gets the index it built. Whether it also becomes
        the cached entry for key, and the current snapshot, depends on build
        order: an older build never overwrites a newer one.
        """
        with self._lock:
            self._stats.builds += 1
            entry = CacheEntry(index=index, sequence=sequence, key=key)
            superseded = False

            existing = self._entries.get(key)
            if existing is not None and existing.sequence > sequence:
                superseded = True
            else:
                if existing is None:
                    while len(self._entries) >= self._max_entries:
                        oldest_key, _ = self._entries.popitem(last=False)
                        self._stats.evictions += 1
                        logger.debug(f"Evicted index {oldest_key}")
                self._entries[key] = entry
                self._entries.move_to_end(key)

            if self._current is None or self._current.sequence < sequence:
                self._current = entry
            else:
                superseded = True

            if superseded:
                self._stats.superseded += 1
                logger.debug(f"Build {sequence} for {key} finished after a newer build")

        return index

    def invalidate(self) -> int:
        """
        Drop every cached index.

        Returns:
            Number of entries cleared.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._current = None
            logger.info(f"Cleared {count} cached indices")
            return count


# Global cache instance
_index_cache: Optional[IndexCache] = None
_index_cache_lock = threading.Lock()


def get_index_cache(
    max_entries: int = IndexCache.DEFAULT_MAX_ENTRIES,
    indexer: Optional[CatalogIndexer] = None,
) -> IndexCache:
    """
    Get or create the global index cache.

    Args:
        max_entries: Maximum entries (only used on first call).
        indexer: Indexer for cache misses (only used on first call).
    """
    global _index_cache

    with _index_cache_lock:
        if _index_cache is None:
            _index_cache = IndexCache(max_entries=max_entries, indexer=indexer)
            logger.info(f"Created index cache (max_entries={max_entries})")
        return _index_cache


def clear_index_cache() -> None:
    """Clear and reset the global cache."""
    global _index_cache

    with _index_cache_lock:
        if _index_cache is not None:
            _index_cache.invalidate()
            _index_cache.stats.reset()
        _index_cache = None
