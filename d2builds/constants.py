"""
Application-wide constants for the build finder.

Centralizes the platform's numeric codes (manifest enums and hashes) and the
engine's tuning values to keep magic numbers out of the logic modules.
"""

# =============================================================================
# Manifest item type codes (DestinyItemType)
# =============================================================================

ITEM_TYPE_ARMOR = 2
ITEM_TYPE_WEAPON = 3
ITEM_TYPE_SUBCLASS = 16
ITEM_TYPE_MOD = 19

# itemCategoryHashes entry shared by every modification plug
ITEM_CATEGORY_MODS = 59


# =============================================================================
# Inventory bucket hashes (equipment slots)
# =============================================================================

BUCKET_KINETIC = 1498876634
BUCKET_ENERGY = 2465295065
BUCKET_POWER = 953998645

BUCKET_HELMET = 3448274439
BUCKET_ARMS = 3551918588
BUCKET_CHEST = 14239492
BUCKET_LEGS = 20886954
BUCKET_CLASS_ITEM = 1585787867

BUCKET_SUBCLASS = 3284755031


# =============================================================================
# Tier, class and damage codes
# =============================================================================

TIER_BASIC = 2
TIER_COMMON = 3
TIER_RARE = 4
TIER_LEGENDARY = 5
TIER_EXOTIC = 6

CLASS_TITAN = 0
CLASS_HUNTER = 1
CLASS_WARLOCK = 2
CLASS_UNKNOWN = 3

DAMAGE_NONE = 0
DAMAGE_KINETIC = 1
DAMAGE_ARC = 2
DAMAGE_SOLAR = 3
DAMAGE_VOID = 4
DAMAGE_STASIS = 6
DAMAGE_STRAND = 7


# =============================================================================
# Armor stat hashes
# =============================================================================

STAT_MOBILITY = 2996146975
STAT_RESILIENCE = 392767087
STAT_RECOVERY = 1943323491
STAT_DISCIPLINE = 1735777505
STAT_INTELLECT = 144602215
STAT_STRENGTH = 4244567218


# =============================================================================
# Indexing
# =============================================================================

# Records processed per batch while building an index
INDEX_BATCH_SIZE = 100

# Batches between cooperative yields to the event loop
INDEX_YIELD_EVERY = 5


# =============================================================================
# Query parsing
# =============================================================================

# Parsed queries below this confidence are considered vague
LOW_CONFIDENCE_THRESHOLD = 0.35

# Valid ranges for numeric stat targets
STAT_TIER_MIN = 1
STAT_TIER_MAX = 10
STAT_PERCENT_MIN = 0
STAT_PERCENT_MAX = 100


# =============================================================================
# Synergy scoring
# =============================================================================

SCORE_BASE = 30
SCORE_SYNERGY_WEIGHT = 8
SCORE_SYNERGY_CAP = 40
SCORE_EXOTIC_WEIGHT = 15
SCORE_EXOTIC_CAP = 30
SCORE_DIVERSITY_WEIGHT = 5
SCORE_DIVERSITY_CAP = 25

SCORE_MIN = 0
SCORE_MAX = 100


# =============================================================================
# Results and caching
# =============================================================================

# Builds returned per query
MAX_BUILDS_DEFAULT = 5

# Individual items returned when no archetype qualifies
FALLBACK_ITEM_LIMIT = 10

# Item-level fallback scoring. Only the first three count as a query match;
# the bonuses rank items that already matched.
FALLBACK_PHRASE_POINTS = 25      # per quoted phrase found
FALLBACK_TERM_POINTS = 10        # per query word found
FALLBACK_BUILD_TYPE_POINTS = 20  # fits an archetype the query mentions
FALLBACK_ESSENTIAL_BONUS = 40    # mod, subclass piece, aspect or fragment
FALLBACK_EXOTIC_BONUS = 30
FALLBACK_SCORE_MAX = 100

# Catalog versions kept by the index cache
INDEX_CACHE_MAX_ENTRIES = 4
