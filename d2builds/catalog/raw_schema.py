"""
Pydantic models for raw manifest records.

These mirror the subset of DestinyInventoryItemDefinition the indexer reads.
Unknown keys are ignored; missing optional blocks fall back to empty defaults.
A record without a hash or display properties fails validation.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DisplayProperties(BaseModel):
    """Name, description and icon block."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: str = ""
    icon: Optional[str] = None


class InventoryBlock(BaseModel):
    """Bucket and tier information."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    bucket_type_hash: int = Field(default=0, alias="bucketTypeHash")
    tier_type: int = Field(default=0, alias="tierType")


class StatValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: int = 0


class StatsBlock(BaseModel):
    """Display stat block keyed by stat hash."""

    model_config = ConfigDict(extra="ignore")

    stats: Dict[int, StatValue] = Field(default_factory=dict)


class InvestmentStat(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    stat_type_hash: int = Field(alias="statTypeHash")
    value: int = 0


class RawItemRecord(BaseModel):
    """
    One raw catalog record.

    Field names are snake_case with the manifest's camelCase spellings as
    aliases, so both the manifest JSON and hand-written fixtures validate.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    item_hash: int = Field(alias="hash")
    display_properties: DisplayProperties = Field(alias="displayProperties")
    item_type: int = Field(default=0, alias="itemType")
    item_sub_type: int = Field(default=0, alias="itemSubType")
    item_type_display_name: str = Field(default="", alias="itemTypeDisplayName")
    class_type: int = Field(default=3, alias="classType")
    default_damage_type: int = Field(default=0, alias="defaultDamageType")
    inventory: InventoryBlock = Field(default_factory=InventoryBlock)
    redacted: bool = False
    blacklisted: bool = False
    stats: Optional[StatsBlock] = None
    investment_stats: List[InvestmentStat] = Field(default_factory=list, alias="investmentStats")
    item_category_hashes: List[int] = Field(default_factory=list, alias="itemCategoryHashes")

    @property
    def name(self) -> str:
        return self.display_properties.name.strip()

    @property
    def description(self) -> str:
        return self.display_properties.description.strip()

    def stat_values(self) -> Dict[int, int]:
        """
        Merge display stats and investment stats by stat hash.

        Display stats win when both blocks carry the same hash.
        """
        values: Dict[int, int] = {}
        for stat in self.investment_stats:
            values[stat.stat_type_hash] = stat.value
        if self.stats is not None:
            for stat_hash, stat in self.stats.stats.items():
                values[stat_hash] = stat.value
        return values
