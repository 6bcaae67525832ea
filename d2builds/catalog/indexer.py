"""
Catalog Indexer.

Turns a raw manifest record set into a CatalogIndex in one pass.

Records are processed in fixed-size batches. The synchronous build runs the
batches back to back; the coroutine yields to the event loop every few
batches so a catalog with tens of thousands of entries does not stall other
tasks sharing the loop.

Usage:
    index = build_index(manifest["DestinyInventoryItemDefinition"], "v2024.1")
    index.search("grenade energy")

    # Inside a running event loop
    index = await abuild_index(raw_items, "v2024.1")
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from pydantic import ValidationError

from d2builds import constants
from d2builds.catalog.models import (
    CatalogIndex,
    CatalogItem,
    ClassType,
    Element,
    IndexStats,
    ItemCategory,
    ItemSlot,
    Rarity,
)
from d2builds.catalog.raw_schema import RawItemRecord
from d2builds.catalog.tables import DEFAULT_TABLES, IndexerTables
from d2builds.result import Err, Ok, Result
from d2builds.text_utils import tokenize

logger = logging.getLogger(__name__)

MALFORMED = "malformed"
REJECTED = "rejected"


@dataclass(frozen=True)
class RecordRejection:
    """Why a record did not make it into the index."""
    key: str
    kind: str  # MALFORMED or REJECTED
    reason: str


RecordPair = Tuple[str, Any]


def iter_raw_records(raw_items: Any) -> List[RecordPair]:
    """
    Flatten the accepted input shapes into (key, record) pairs.

    A mapping is read as hash -> record. Any other iterable is read as a
    sequence of records, keyed by their "hash" field (or position).

    Raises:
        TypeError: If raw_items is neither a mapping nor an iterable of records.
    """
    if isinstance(raw_items, Mapping):
        return [(str(key), record) for key, record in raw_items.items()]
    if isinstance(raw_items, (str, bytes)) or not isinstance(raw_items, Iterable):
        raise TypeError(
            "raw_items must be a mapping of item hash -> record or an iterable "
            f"of records, got {type(raw_items).__name__}"
        )

    pairs: List[RecordPair] = []
    for position, record in enumerate(raw_items):
        key = record.get("hash", position) if isinstance(record, Mapping) else position
        pairs.append((str(key), record))
    return pairs


def _batches(pairs: List[RecordPair], size: int) -> Iterator[List[RecordPair]]:
    for start in range(0, len(pairs), size):
        yield pairs[start:start + size]


class _IndexAccumulator:
    """Mutable working state for one build. Frozen into a CatalogIndex at the end."""

    def __init__(self, indexer: "CatalogIndexer", version: str):
        self._indexer = indexer
        self.version = version
        self.items: Dict[int, CatalogItem] = {}
        self.seen = 0
        self.rejected = 0
        self.malformed = 0
        self.duplicates = 0
        self.started = time.perf_counter()

    def add(self, key: str, record: Any) -> None:
        self.seen += 1
        result = self._indexer.normalize_record(key, record)

        if result.is_err():
            rejection = result.error
            if rejection.kind == MALFORMED:
                self.malformed += 1
                logger.warning(f"Skipping malformed catalog record {rejection.key}: {rejection.reason}")
            else:
                self.rejected += 1
                logger.debug(f"Rejected catalog record {rejection.key}: {rejection.reason}")
            return

        item = result.unwrap()
        if item.hash in self.items:
            # First-seen record keeps the slot
            self.duplicates += 1
            logger.debug(f"Duplicate item hash {item.hash} ignored ('{item.name}')")
            return
        self.items[item.hash] = item

    def freeze(self) -> CatalogIndex:
        ordered = [self.items[h] for h in sorted(self.items)]

        by_slot: Dict[ItemSlot, List[CatalogItem]] = defaultdict(list)
        by_class: Dict[ClassType, List[CatalogItem]] = defaultdict(list)
        by_element: Dict[Element, List[CatalogItem]] = defaultdict(list)
        by_rarity: Dict[Rarity, List[CatalogItem]] = defaultdict(list)
        search_index: Dict[str, Set[int]] = defaultdict(set)
        exotic_names: Dict[str, int] = {}

        for item in ordered:
            if item.slot is not ItemSlot.NONE:
                by_slot[item.slot].append(item)
            by_class[item.class_type].append(item)
            by_element[item.element].append(item)
            by_rarity[item.rarity].append(item)

            for token in _search_tokens(item):
                search_index[token].add(item.hash)

            if item.is_exotic:
                exotic_names.setdefault(item.name.lower(), item.hash)

        duration_ms = (time.perf_counter() - self.started) * 1000.0
        stats = IndexStats(
            seen=self.seen,
            accepted=len(ordered),
            rejected=self.rejected,
            malformed=self.malformed,
            duplicates=self.duplicates,
            duration_ms=duration_ms,
        )

        return CatalogIndex(
            version=self.version,
            items_by_hash=MappingProxyType({item.hash: item for item in ordered}),
            by_slot=_freeze_buckets(by_slot),
            by_class=_freeze_buckets(by_class),
            by_element=_freeze_buckets(by_element),
            by_rarity=_freeze_buckets(by_rarity),
            exotics=tuple(item for item in ordered if item.is_exotic),
            mods=tuple(item for item in ordered if item.is_mod),
            build_relevant=tuple(item for item in ordered if item.is_build_relevant),
            search_index=MappingProxyType({token: frozenset(hashes) for token, hashes in search_index.items()}),
            exotic_names=MappingProxyType(exotic_names),
            stats=stats,
        )


def _freeze_buckets(buckets: Dict[Any, List[CatalogItem]]) -> Mapping:
    return MappingProxyType({key: tuple(items) for key, items in buckets.items()})


def _search_tokens(item: CatalogItem) -> Set[str]:
    tokens = set(tokenize(item.name))
    tokens.update(tokenize(item.description))
    for tag in item.tags:
        tokens.add(tag)
        tokens.update(tokenize(tag))
    return tokens


class CatalogIndexer:
    """
    Builds CatalogIndex snapshots from raw manifest records.

    All lookup tables come from the injected IndexerTables, so a catalog
    version with different bucket hashes or type codes only needs a
    different tables instance.
    """

    def __init__(
        self,
        tables: Optional[IndexerTables] = None,
        batch_size: int = constants.INDEX_BATCH_SIZE,
        yield_every: int = constants.INDEX_YIELD_EVERY,
    ):
        self.tables = tables or DEFAULT_TABLES
        self.batch_size = max(1, int(batch_size))
        self.yield_every = max(1, int(yield_every))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, raw_items: Any, version: str) -> CatalogIndex:
        """Index raw_items synchronously."""
        pairs = iter_raw_records(raw_items)
        acc = _IndexAccumulator(self, str(version))
        for batch in _batches(pairs, self.batch_size):
            for key, record in batch:
                acc.add(key, record)
        return self._finish(acc)

    async def abuild(self, raw_items: Any, version: str) -> CatalogIndex:
        """Index raw_items, yielding to the event loop between batches."""
        pairs = iter_raw_records(raw_items)
        acc = _IndexAccumulator(self, str(version))
        for batch_number, batch in enumerate(_batches(pairs, self.batch_size), start=1):
            for key, record in batch:
                acc.add(key, record)
            if batch_number % self.yield_every == 0:
                await asyncio.sleep(0)
        return self._finish(acc)

    def normalize_record(self, key: str, record: Any) -> Result[CatalogItem, RecordRejection]:
        """
        Validate one raw record and convert it to a CatalogItem.

        Returns:
            Ok(CatalogItem), or Err(RecordRejection) with kind "malformed"
            (shape invalid) or "rejected" (valid but excluded by name rules).
        """
        if not isinstance(record, Mapping):
            return Err(RecordRejection(key, MALFORMED, f"expected a mapping, got {type(record).__name__}"))

        try:
            raw = RawItemRecord.model_validate(record)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            return Err(RecordRejection(key, MALFORMED, f"invalid fields: {fields}"))

        rejection = self._name_rejection(raw)
        if rejection:
            return Err(RecordRejection(key, REJECTED, rejection))

        return Ok(self._to_item(raw))

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def _finish(self, acc: _IndexAccumulator) -> CatalogIndex:
        index = acc.freeze()
        logger.info(
            "catalog_index_built",
            extra={
                "version": index.version,
                "seen": index.stats.seen,
                "accepted": index.stats.accepted,
                "rejected": index.stats.rejected,
                "malformed": index.stats.malformed,
                "duplicates": index.stats.duplicates,
                "duration_ms": round(index.stats.duration_ms, 2),
            },
        )
        return index

    def _name_rejection(self, raw: RawItemRecord) -> Optional[str]:
        name = raw.name
        if not name:
            return "blank name"
        if raw.redacted or raw.blacklisted:
            return "flagged redacted"
        lowered = name.lower()
        for marker in self.tables.excluded_name_markers:
            if marker in lowered:
                return f"name contains {marker!r}"
        if lowered.startswith("deprecated"):
            return "deprecated item"
        return None

    def _classify(self, raw: RawItemRecord) -> Tuple[ItemCategory, ItemSlot]:
        tables = self.tables
        category = tables.type_code_to_category.get(raw.item_type, ItemCategory.OTHER)
        slot = tables.bucket_to_slot.get(raw.inventory.bucket_type_hash, ItemSlot.NONE)

        if slot is ItemSlot.SUBCLASS:
            return ItemCategory.SUBCLASS_COMPONENT, slot

        if category is ItemCategory.OTHER and tables.mod_category_hash in raw.item_category_hashes:
            category = ItemCategory.MOD

        type_name = raw.item_type_display_name.lower()
        is_plain_mod = category is ItemCategory.MOD and "mod" in type_name
        if category in (ItemCategory.MOD, ItemCategory.OTHER) and not is_plain_mod:
            if any(marker in type_name for marker in tables.subclass_type_markers):
                category = ItemCategory.SUBCLASS_COMPONENT

        return category, slot

    def _stats(self, raw: RawItemRecord) -> Dict[str, int]:
        names = self.tables.stat_hash_to_name
        return {names.get(stat_hash, str(stat_hash)): value for stat_hash, value in sorted(raw.stat_values().items())}

    def _dominant_stat(self, stats: Dict[str, int]) -> Optional[str]:
        best_name, best_value = None, 0
        for stat_name in self.tables.stat_hash_to_name.values():
            value = stats.get(stat_name, 0)
            if value > best_value:
                best_name, best_value = stat_name, value
        return best_name

    def _to_item(self, raw: RawItemRecord) -> CatalogItem:
        tables = self.tables
        category, slot = self._classify(raw)
        element = tables.damage_code_to_element.get(raw.default_damage_type, Element.NONE)
        rarity = tables.tier_code_to_rarity.get(raw.inventory.tier_type, Rarity.COMMON)
        class_type = tables.class_code_to_class.get(raw.class_type, ClassType.ANY)
        stats = self._stats(raw)

        name, description = raw.name, raw.description
        type_name = raw.item_type_display_name.strip()
        text = f"{name} {description}".lower()
        type_lower = type_name.lower()

        tags: Set[str] = {category.value}
        if rarity is Rarity.EXOTIC:
            tags.add("exotic")
        elif rarity is Rarity.LEGENDARY:
            tags.add("legendary")
        if element not in (Element.NONE, Element.KINETIC):
            tags.add(element.value)

        for tag, terms in tables.activity_fit_terms.items():
            if any(term in text for term in terms):
                tags.add(tag)

        if category is ItemCategory.ARMOR:
            dominant = self._dominant_stat(stats)
            if dominant:
                tags.add(f"{dominant}-focus")
        elif category is ItemCategory.WEAPON:
            subtype = tables.weapon_subtype_names.get(raw.item_sub_type)
            if subtype:
                tags.add(subtype)

        for marker in ("aspect", "fragment"):
            if marker in type_lower or marker in name.lower():
                tags.add(marker)
        if name.lower().startswith(tables.fragment_name_prefixes):
            tags.add("fragment")

        is_build_relevant = (
            rarity is Rarity.EXOTIC
            or category in (ItemCategory.SUBCLASS_COMPONENT, ItemCategory.MOD)
            or "aspect" in text
            or "fragment" in text
            or "aspect" in tags
            or "fragment" in tags
        )

        return CatalogItem(
            hash=raw.item_hash,
            name=name,
            description=description,
            category=category,
            slot=slot,
            class_type=class_type,
            element=element,
            rarity=rarity,
            type_name=type_name,
            tags=frozenset(tags),
            is_build_relevant=is_build_relevant,
            stats=MappingProxyType(stats),
        )


def build_index(
    raw_items: Any,
    catalog_version: str,
    tables: Optional[IndexerTables] = None,
) -> CatalogIndex:
    """
    Build a CatalogIndex from raw manifest records.

    Args:
        raw_items: Mapping of item hash -> raw record, or an iterable of records.
        catalog_version: Version identifier stored on the index.
        tables: Optional lookup tables for a non-default catalog layout.
    """
    return CatalogIndexer(tables=tables).build(raw_items, catalog_version)


async def abuild_index(
    raw_items: Any,
    catalog_version: str,
    tables: Optional[IndexerTables] = None,
    batch_size: int = constants.INDEX_BATCH_SIZE,
    yield_every: int = constants.INDEX_YIELD_EVERY,
) -> CatalogIndex:
    """Coroutine form of build_index with cooperative yielding."""
    indexer = CatalogIndexer(tables=tables, batch_size=batch_size, yield_every=yield_every)
    return await indexer.abuild(raw_items, catalog_version)
