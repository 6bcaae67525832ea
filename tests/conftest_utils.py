"""
Shared test data builders.

Raw manifest records in the platform's camelCase layout, plus a small
catalog that covers every item variant the indexer distinguishes.

Usage in tests:
    from tests.conftest_utils import make_record, sample_manifest_records
"""

from __future__ import annotations

from d2builds import constants as c

CATALOG_VERSION = "v-test.1"

# Item hashes used across tests
RADIANT_CORE_PLATE = 1001
GRENADE_KICKSTART = 2001
BOMBER = 2002
FIREPOWER = 2003
STEADY_HAND = 3001
GRAVITON_FORFEIT = 4001
FEED_THE_VOID = 5001
ECHO_OF_PERSISTENCE = 5002
REDACTED_ITEM = 9001
MALFORMED_ITEM = 9002

SCENARIO_HASHES = (RADIANT_CORE_PLATE, GRENADE_KICKSTART, BOMBER, FIREPOWER)
ACCEPTED_HASHES = (
    RADIANT_CORE_PLATE,
    GRENADE_KICKSTART,
    BOMBER,
    FIREPOWER,
    STEADY_HAND,
    GRAVITON_FORFEIT,
    FEED_THE_VOID,
    ECHO_OF_PERSISTENCE,
)

# 30 base + min(5 hits * 8, 40) + min(1 exotic * 15, 30) + min(2 buckets * 5, 25)
GRENADE_SCENARIO_SCORE = 95


def make_record(
    item_hash,
    name,
    description="",
    item_type=0,
    type_name="",
    bucket=0,
    tier=c.TIER_LEGENDARY,
    class_type=c.CLASS_UNKNOWN,
    damage=c.DAMAGE_NONE,
    sub_type=0,
    **extra,
):
    """Raw manifest record; extra keys are merged in as-is."""
    record = {
        "hash": item_hash,
        "displayProperties": {"name": name, "description": description},
        "itemType": item_type,
        "itemSubType": sub_type,
        "itemTypeDisplayName": type_name,
        "classType": class_type,
        "defaultDamageType": damage,
        "inventory": {"bucketTypeHash": bucket, "tierType": tier},
    }
    record.update(extra)
    return record


def make_mod_record(item_hash, name, description, type_name="Arms Armor Mod", **kwargs):
    return make_record(item_hash, name, description, item_type=c.ITEM_TYPE_MOD, type_name=type_name, **kwargs)


def grenade_scenario_records():
    """Exotic chest with ability energy text plus three grenade mods."""
    return {
        str(RADIANT_CORE_PLATE): make_record(
            RADIANT_CORE_PLATE,
            "Radiant Core Plate",
            "Using an ability grants ability energy to your other abilities.",
            item_type=c.ITEM_TYPE_ARMOR,
            type_name="Chest Armor",
            bucket=c.BUCKET_CHEST,
            tier=c.TIER_EXOTIC,
            class_type=c.CLASS_TITAN,
        ),
        str(GRENADE_KICKSTART): make_mod_record(
            GRENADE_KICKSTART,
            "Grenade Kickstart",
            "Gain a burst of power when your grenade is depleted.",
        ),
        str(BOMBER): make_mod_record(
            BOMBER,
            "Bomber",
            "Using your class ability charges your grenade.",
        ),
        str(FIREPOWER): make_mod_record(
            FIREPOWER,
            "Firepower",
            "Rapid precision final blows charge your grenade.",
        ),
    }


def sample_manifest_records():
    """Scenario items plus unrelated gear, a rejected, a malformed and a duplicate record."""
    records = grenade_scenario_records()
    records.update({
        str(STEADY_HAND): make_record(
            STEADY_HAND,
            "Steady Hand",
            "A dependable hand cannon of the City.",
            item_type=c.ITEM_TYPE_WEAPON,
            type_name="Hand Cannon",
            bucket=c.BUCKET_KINETIC,
            damage=c.DAMAGE_KINETIC,
            sub_type=9,
        ),
        str(GRAVITON_FORFEIT): make_record(
            GRAVITON_FORFEIT,
            "Graviton Forfeit",
            "Invisibility lasts longer while you are invisible.",
            item_type=c.ITEM_TYPE_ARMOR,
            type_name="Helmet",
            bucket=c.BUCKET_HELMET,
            tier=c.TIER_EXOTIC,
            class_type=c.CLASS_HUNTER,
            stats={"stats": {str(c.STAT_MOBILITY): {"value": 20}, str(c.STAT_RECOVERY): {"value": 8}}},
        ),
        str(FEED_THE_VOID): make_mod_record(
            FEED_THE_VOID,
            "Feed the Void",
            "Void ability final blows grant Devour, which restores health.",
            type_name="Void Aspect",
            class_type=c.CLASS_WARLOCK,
            damage=c.DAMAGE_VOID,
        ),
        str(ECHO_OF_PERSISTENCE): make_mod_record(
            ECHO_OF_PERSISTENCE,
            "Echo of Persistence",
            "Void buffs you apply last longer.",
            type_name="Void Fragment",
            damage=c.DAMAGE_VOID,
        ),
        str(REDACTED_ITEM): make_record(
            REDACTED_ITEM,
            "Classified Gear",
            item_type=c.ITEM_TYPE_ARMOR,
            redacted=True,
        ),
        str(MALFORMED_ITEM): {"displayProperties": "not-a-block"},
        # Same hash as the chest; the earlier record must win
        "1001-copy": make_record(
            RADIANT_CORE_PLATE,
            "Radiant Core Plate Replica",
            item_type=c.ITEM_TYPE_ARMOR,
            tier=c.TIER_EXOTIC,
        ),
    })
    return records
