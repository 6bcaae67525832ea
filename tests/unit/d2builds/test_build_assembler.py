"""
Tests for d2builds/build_assembler.py

Tests build naming, guide completeness and the template fallbacks.
"""
import json
from dataclasses import replace

import pytest

from d2builds.build_archetypes.archetype_database import ALL_ARCHETYPES, GRENADE_SPAM
from d2builds.build_archetypes.archetype_matcher import compute_score, match_archetypes
from d2builds.build_archetypes.archetype_models import (
    COMPONENT_KEYS,
    OTHER_COMPONENT,
    ArchetypeTemplate,
    BuildArchetype,
    CandidateMatch,
    ScoringWeights,
)
from d2builds.build_assembler import (
    FOCUS_PLAYSTYLES,
    BuildAssembler,
    BuildComponent,
    assemble_build,
)
from d2builds.catalog.models import CatalogItem, ItemCategory, ItemSlot, Rarity
from d2builds.query.parser import parse_query
from tests.conftest_utils import GRENADE_SCENARIO_SCORE, RADIANT_CORE_PLATE

pytestmark = pytest.mark.unit


def make_match(archetype, **buckets):
    components = {key: () for key in COMPONENT_KEYS + (OTHER_COMPONENT,)}
    components.update({key: tuple(items) for key, items in buckets.items()})
    breakdown = compute_score(1, 0, 1, ScoringWeights())
    return CandidateMatch(archetype=archetype, components=components, score=breakdown.total, breakdown=breakdown)


@pytest.fixture
def grenade_build(scenario_index):
    parsed = parse_query("grenade spam titan build", scenario_index)
    return assemble_build(match_archetypes(parsed, scenario_index.build_relevant)[0])


class TestScenarioBuild:
    def test_named_after_exotic(self, grenade_build):
        assert grenade_build.name == "Radiant Core Plate Grenade Build"

    def test_score_and_focus(self, grenade_build):
        assert grenade_build.synergy_score == GRENADE_SCENARIO_SCORE
        assert grenade_build.focus == "grenade"
        assert grenade_build.archetype_id == "grenade_spam"
        assert grenade_build.source_item_count == 4

    def test_components_are_plain_copies(self, grenade_build):
        exotic_armor = grenade_build.components["exotic_armor"]
        assert [c.hash for c in exotic_armor] == [RADIANT_CORE_PLATE]
        assert isinstance(exotic_armor[0], BuildComponent)
        assert set(grenade_build.components) == set(COMPONENT_KEYS)

    def test_guide_uses_matched_names(self, grenade_build):
        guide = grenade_build.build_guide
        assert guide.armor.exotic == "Radiant Core Plate"
        assert guide.mods.recommended == ("Grenade Kickstart", "Bomber", "Firepower")

    def test_essential_mods_non_empty(self, grenade_build):
        assert grenade_build.build_guide.mods.essential

    def test_guide_complete(self, grenade_build):
        assert grenade_build.build_guide.empty_slots() == []

    def test_description_lists_present_buckets(self, grenade_build):
        assert "exotic armor" in grenade_build.description
        assert "synergistic mods" in grenade_build.description

    def test_playstyle(self, grenade_build):
        playstyle = grenade_build.playstyle
        assert playstyle.key_items == ("Radiant Core Plate",)
        assert "Exotic synergy from Radiant Core Plate" in playstyle.strengths
        assert playstyle.best_activities == FOCUS_PLAYSTYLES["grenade"].best_activities

    def test_tips_mention_exotic(self, grenade_build):
        assert "Build around Radiant Core Plate" in grenade_build.build_guide.gameplay.tips

    def test_to_dict_json_serializable(self, grenade_build):
        data = json.loads(json.dumps(grenade_build.to_dict()))
        assert data["synergy_score"] == GRENADE_SCENARIO_SCORE
        assert data["build_guide"]["armor"]["exotic"] == "Radiant Core Plate"
        assert data["score_breakdown"]["total"] == GRENADE_SCENARIO_SCORE


class TestTemplateFallbacks:
    def test_template_name_without_exotics(self):
        mod = CatalogItem(hash=1, name="Bomber", category=ItemCategory.MOD)
        build = assemble_build(make_match(GRENADE_SPAM, mods=[mod]))
        assert build.name == GRENADE_SPAM.template.name
        assert build.build_guide.armor.exotic == GRENADE_SPAM.template.key_exotics[0]
        assert "Use Armamentarium or" in build.build_guide.gameplay.tips[1]

    @pytest.mark.parametrize("archetype", ALL_ARCHETYPES, ids=lambda a: a.id)
    def test_every_registered_archetype_yields_complete_guide(self, archetype):
        build = assemble_build(make_match(archetype))
        assert build.build_guide.empty_slots() == []
        assert build.playstyle.strengths

    def test_bare_archetype_gets_generic_text(self):
        bare = BuildArchetype(id="bare", name="Bare", focus="bare", template=ArchetypeTemplate(name=""))
        build = BuildAssembler().assemble(make_match(bare))

        assert build.name == "Bare Build"
        assert build.build_guide.empty_slots() == []
        assert build.build_guide.subclass.aspects == ("Bare synergy aspects",)
        assert build.playstyle.strengths == ("Synergistic item usage",)

    def test_matched_items_fill_slots(self):
        aspect = CatalogItem(
            hash=10, name="Touch of Flame", category=ItemCategory.SUBCLASS_COMPONENT,
            type_name="Solar Aspect", tags=frozenset({"aspect"}),
        )
        super_ability = CatalogItem(
            hash=11, name="Well of Radiance", category=ItemCategory.SUBCLASS_COMPONENT, type_name="Super Ability",
        )
        kinetic = CatalogItem(
            hash=12, name="Steady Hand", category=ItemCategory.WEAPON, slot=ItemSlot.KINETIC,
        )
        helmet = CatalogItem(hash=13, name="Plain Helm", category=ItemCategory.ARMOR, slot=ItemSlot.HELMET)
        exotic_gun = CatalogItem(
            hash=14, name="Sunshot", category=ItemCategory.WEAPON, slot=ItemSlot.ENERGY, rarity=Rarity.EXOTIC,
        )

        build = assemble_build(make_match(
            GRENADE_SPAM,
            aspects=[aspect],
            abilities=[super_ability],
            legendary_weapons=[kinetic],
            other=[helmet],
            exotic_weapons=[exotic_gun],
        ))
        guide = build.build_guide

        assert guide.subclass.aspects == ("Touch of Flame",)
        assert guide.subclass.super_ability == "Well of Radiance"
        assert guide.weapons.kinetic == "Steady Hand"
        assert guide.weapons.energy == GRENADE_SPAM.template.energy_weapon
        assert guide.weapons.exotic == "Sunshot"
        assert guide.armor.helmet == "Plain Helm"
        assert guide.armor.arms == "Discipline-focused arms"
        assert build.name == "Sunshot Grenade Build"
        assert "other" not in build.components


class TestRequestSteering:
    @pytest.fixture
    def exotic_chests(self):
        radiant = CatalogItem(
            hash=1, name="Radiant Core Plate", category=ItemCategory.ARMOR, slot=ItemSlot.CHEST, rarity=Rarity.EXOTIC,
        )
        heart = CatalogItem(
            hash=2, name="Heart of Inmost Light", category=ItemCategory.ARMOR, slot=ItemSlot.CHEST, rarity=Rarity.EXOTIC,
        )
        return [radiant, heart]

    def test_match_order_without_request(self, exotic_chests):
        build = assemble_build(make_match(GRENADE_SPAM, exotic_armor=exotic_chests))
        assert build.name == "Radiant Core Plate Grenade Build"
        assert build.build_guide.armor.exotic == "Radiant Core Plate"

    def test_requested_exotic_leads_build(self, exotic_chests):
        parsed = replace(parse_query("heart of inmost light grenade build"), exotic_names=("Heart of Inmost Light",))
        build = assemble_build(make_match(GRENADE_SPAM, exotic_armor=exotic_chests), parsed)

        assert build.name == "Heart of Inmost Light Grenade Build"
        assert build.build_guide.armor.exotic == "Heart of Inmost Light"
        assert [c.name for c in build.components["exotic_armor"]] == ["Heart of Inmost Light", "Radiant Core Plate"]
        assert build.playstyle.key_items[0] == "Heart of Inmost Light"
        assert "Build around Heart of Inmost Light" in build.build_guide.gameplay.tips

    def test_requested_exotic_weapon_leads_weapons(self):
        guns = [
            CatalogItem(hash=1, name="Sunshot", category=ItemCategory.WEAPON, rarity=Rarity.EXOTIC),
            CatalogItem(hash=2, name="Witherhoard", category=ItemCategory.WEAPON, rarity=Rarity.EXOTIC),
        ]
        parsed = replace(parse_query("witherhoard grenade build"), exotic_names=("Witherhoard",))
        build = assemble_build(make_match(GRENADE_SPAM, exotic_weapons=guns), parsed)

        assert build.build_guide.weapons.exotic == "Witherhoard"
        assert build.name == "Witherhoard Grenade Build"

    def test_focus_stats_lead_stat_priority(self):
        parsed = parse_query("recovery grenade build")
        build = assemble_build(make_match(GRENADE_SPAM), parsed)
        priority = build.build_guide.stat_priority

        assert priority[:2] == ("recovery", "discipline")
        assert len(priority) == len(set(priority))
        assert "resilience" in priority
        assert build.build_guide.armor.arms == "Recovery-focused arms"

    def test_stat_target_leads_stat_priority(self):
        parsed = parse_query("tier 10 mobility grenade build")
        build = assemble_build(make_match(GRENADE_SPAM), parsed)
        assert build.build_guide.stat_priority[0] == "mobility"

    def test_activities_lead_gameplay(self):
        parsed = parse_query("grenade nightfall pvp build")
        activities = assemble_build(make_match(GRENADE_SPAM), parsed).build_guide.gameplay.activities

        assert activities[:2] == ("Nightfalls", "Crucible")
        assert "Strikes" in activities

    def test_activity_already_in_template_not_repeated(self):
        parsed = parse_query("grenade patrol build")
        activities = assemble_build(make_match(GRENADE_SPAM), parsed).build_guide.gameplay.activities

        assert activities[0] == "Patrol"
        assert activities.count("Patrol") == 1

    def test_general_request_keeps_template(self):
        parsed = parse_query("grenade build")
        guide = assemble_build(make_match(GRENADE_SPAM), parsed).build_guide

        assert guide.gameplay.activities == GRENADE_SPAM.template.activities
        assert guide.stat_priority == GRENADE_SPAM.template.stat_priority


class TestFocusPlaystyles:
    def test_every_registered_focus_has_descriptor(self):
        for archetype in ALL_ARCHETYPES:
            assert archetype.focus in FOCUS_PLAYSTYLES

    def test_read_only(self):
        with pytest.raises(TypeError):
            FOCUS_PLAYSTYLES["new"] = None
