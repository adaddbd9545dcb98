"""Tests for the sheet projection."""

import pytest

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.engine.serialization import encode
from fo4_planner.engine.sheet import project
from fo4_planner.models.constants import SPECIAL_STATS, Difficulty, Gender, SpecialStat
from fo4_planner.models.perk import BonusDef, BonusKind, BonusSource, PerkDef, PerkRank


S = SpecialStat


def _catalog() -> Catalog:
    perks = [
        PerkDef("toughness", "Toughness", S.ENDURANCE,
                (PerkRank(4, 1, 2), PerkRank(4, 5, 1))),
        PerkDef("aquaboy", "Aquaboy", S.ENDURANCE,
                (PerkRank(5, 1, 1),), female_name="Aquagirl"),
        PerkDef("lead_belly", "Lead Belly", S.ENDURANCE,
                (PerkRank(2, 1, 1), PerkRank(2, 6, 1))),
        PerkDef("iron_fist", "Iron Fist", S.STRENGTH,
                (PerkRank(1, 1, 1), PerkRank(1, 9, 1))),
    ]
    bonuses = [
        BonusDef("bobblehead_endurance", "Endurance Bobblehead", BonusKind.ATTRIBUTE_BOOST,
                 BonusSource.COLLECTIBLE, attribute=S.ENDURANCE, delta=1),
        BonusDef("wasteland_survival_guide", "Wasteland Survival Guide",
                 BonusKind.UNLOCK_OVERRIDE, BonusSource.PERIODICAL,
                 perk_id="lead_belly", rank=1),
        BonusDef("gift_of_gab", "Gift of Gab", BonusKind.COMPANION_EFFECT,
                 BonusSource.COMPANION, description="Double XP for persuasion."),
    ]
    return Catalog(perks, bonuses)


@pytest.fixture
def engine():
    return BuildEngine.new_build(_catalog())


class TestAttributes:
    def test_rows_in_special_order(self, engine):
        sheet = project(engine)
        assert [row.stat for row in sheet.attributes] == list(SPECIAL_STATS)
        assert sheet.remaining_special_points == 21

    def test_bonus_column(self, engine):
        engine.set_base_attribute(S.ENDURANCE, 3)
        engine.activate_bonus("bobblehead_endurance")
        row = project(engine).attribute(S.ENDURANCE)
        assert (row.base, row.bonus, row.effective) == (3, 1, 4)
        assert row.label == "Endurance"


class TestPerkGroups:
    def test_group_order(self, engine):
        sheet = project(engine)
        assert [g.attribute for g in sheet.perk_groups] == list(SPECIAL_STATS)
        ids = [row.perk_id for row in sheet.group(S.ENDURANCE).rows]
        assert ids == ["lead_belly", "toughness", "aquaboy"]
        assert sheet.group(S.LUCK).rows == ()

    def test_ineligible_row_lists_unmet(self, engine):
        row = project(engine).perk("toughness")
        assert not row.purchased
        assert row.next_rank == 1
        assert row.next_cost == 2
        assert not row.requirement_met
        assert not row.eligible
        assert row.unmet == ("Endurance >= 4 (have 1)",)

    def test_purchased_row(self, engine):
        engine.set_base_attribute(S.ENDURANCE, 4)
        engine.purchase_perk_rank("toughness", 1)
        row = project(engine).perk("toughness")
        assert row.purchased
        assert row.current_rank == 1
        assert row.next_rank == 2
        assert row.next_required_level == 5
        assert row.eligible

    def test_maxed_row(self, engine):
        engine.set_perk_rank("iron_fist", 2)
        row = project(engine).perk("iron_fist")
        assert row.next_rank is None
        assert row.next_cost is None
        assert not row.eligible

    def test_unlocked_by_override(self, engine):
        engine.activate_bonus("wasteland_survival_guide")
        row = project(engine).perk("lead_belly")
        assert row.eligible
        assert row.unlocked_by == "wasteland_survival_guide"

    def test_unaffordable_row(self, engine):
        engine.set_level_cap(1)
        engine.set_base_attribute(S.ENDURANCE, 4)
        row = project(engine).perk("toughness")
        assert row.requirement_met
        assert not row.affordable
        assert not row.eligible

    def test_female_names(self, engine):
        engine.set_gender(Gender.FEMALE)
        assert project(engine).perk("aquaboy").name == "Aquagirl"

    def test_unknown_perk_row(self, engine):
        with pytest.raises(KeyError):
            project(engine).perk("sneak")

    def test_purchased_perks(self, engine):
        engine.purchase_perk_rank("iron_fist", 1)
        assert [row.perk_id for row in project(engine).purchased_perks()] == ["iron_fist"]


class TestBonusesAndBudget:
    def test_bonus_summaries(self, engine):
        for bonus_id in ("bobblehead_endurance", "wasteland_survival_guide", "gift_of_gab"):
            engine.activate_bonus(bonus_id)
        sheet = project(engine)
        summaries = {row.bonus_id: row.summary for row in sheet.active_bonuses}
        assert summaries == {
            "bobblehead_endurance": "+1 Endurance",
            "wasteland_survival_guide": "Unlocks Lead Belly rank 1",
            "gift_of_gab": "Double XP for persuasion.",
        }
        assert [row.bonus_id for row in sheet.bonuses_from(BonusSource.COMPANION)] == ["gift_of_gab"]

    def test_budget_fields(self, engine):
        engine.set_level_cap(12)
        engine.set_perk_rank("iron_fist", 2)
        sheet = project(engine)
        assert sheet.level_cap == 12
        assert sheet.levels_spent == 2
        assert sheet.remaining_levels == 10
        assert sheet.required_level == 9

    def test_required_level_counts_the_starting_level(self, engine):
        engine.set_base_attribute(S.ENDURANCE, 4)
        engine.purchase_perk_rank("toughness", 1)
        engine.purchase_perk_rank("iron_fist", 1)
        sheet = project(engine)
        assert sheet.levels_spent == 3
        assert sheet.required_level == 4
        assert sheet.stats.level == 4

    def test_derived_stats_use_effective_values(self, engine):
        engine.set_base_attribute(S.ENDURANCE, 3)
        engine.activate_bonus("bobblehead_endurance")
        engine.set_difficulty(Difficulty.SURVIVAL)
        stats = project(engine).stats
        assert stats.level == 1
        assert stats.base_health == 100.0
        assert stats.carry_weight == 85

    def test_metadata(self, engine):
        engine.set_name("Nora")
        sheet = project(engine)
        assert sheet.name == "Nora"
        assert sheet.gender is None


class TestPurity:
    def test_projection_does_not_mutate(self, engine):
        engine.purchase_perk_rank("iron_fist", 1)
        before = encode(engine)
        first = project(engine)
        second = project(engine)
        assert first == second
        assert encode(engine) == before

    def test_projection_tracks_changes(self, engine):
        stale = project(engine)
        engine.activate_bonus("bobblehead_endurance")
        assert stale.attribute(S.ENDURANCE).effective == 1
        assert project(engine).attribute(S.ENDURANCE).effective == 2
