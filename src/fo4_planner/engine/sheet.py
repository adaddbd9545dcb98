"""Read-only summary ("sheet") of a build for renderers.

This module intentionally contains no formatting code. ``project`` turns
the live engine into plain frozen data that any front end can display;
it is recomputed on demand and never cached across mutations.
"""

from __future__ import annotations

from dataclasses import dataclass

from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.models.constants import SPECIAL_STATS, Difficulty, Gender, SpecialStat
from fo4_planner.models.derived_stats import CharacterStats, compute_stats
from fo4_planner.models.perk import BonusDef, BonusKind, BonusSource


@dataclass(frozen=True, slots=True)
class AttributeRow:
    stat: SpecialStat
    base: int
    bonus: int
    effective: int

    @property
    def label(self) -> str:
        return self.stat.label


@dataclass(frozen=True, slots=True)
class PerkRow:
    """One catalog perk with its current rank and next-rank outlook."""

    perk_id: str
    name: str
    attribute: SpecialStat
    required_attribute: int        # rank 1 requirement, the perk's chart slot
    current_rank: int
    max_rank: int
    next_rank: int | None
    next_required_level: int | None
    next_cost: int | None
    requirement_met: bool
    affordable: bool
    eligible: bool
    unlocked_by: str | None
    unmet: tuple[str, ...] = ()

    @property
    def purchased(self) -> bool:
        return self.current_rank > 0


@dataclass(frozen=True, slots=True)
class PerkGroup:
    attribute: SpecialStat
    rows: tuple[PerkRow, ...]

    @property
    def label(self) -> str:
        return self.attribute.label


@dataclass(frozen=True, slots=True)
class BonusRow:
    bonus_id: str
    name: str
    kind: BonusKind
    source: BonusSource
    summary: str


@dataclass(frozen=True, slots=True)
class Sheet:
    """Complete snapshot of a build for display."""

    name: str | None
    gender: Gender | None
    difficulty: Difficulty | None
    attributes: tuple[AttributeRow, ...]
    remaining_special_points: int
    perk_groups: tuple[PerkGroup, ...]
    active_bonuses: tuple[BonusRow, ...]
    level_cap: int
    levels_spent: int
    remaining_levels: int
    required_level: int
    stats: CharacterStats

    def attribute(self, stat: SpecialStat) -> AttributeRow:
        return self.attributes[SPECIAL_STATS.index(stat)]

    def group(self, stat: SpecialStat) -> PerkGroup:
        return self.perk_groups[SPECIAL_STATS.index(stat)]

    def perk(self, perk_id: str) -> PerkRow:
        for group in self.perk_groups:
            for row in group.rows:
                if row.perk_id == perk_id:
                    return row
        raise KeyError(perk_id)

    def purchased_perks(self) -> list[PerkRow]:
        return [row for group in self.perk_groups for row in group.rows if row.purchased]

    def bonuses_from(self, source: BonusSource) -> list[BonusRow]:
        return [row for row in self.active_bonuses if row.source is source]


def _bonus_summary(bonus: BonusDef, engine: BuildEngine) -> str:
    if bonus.kind is BonusKind.ATTRIBUTE_BOOST and bonus.attribute is not None:
        return f"{bonus.delta:+d} {bonus.attribute.label}"
    if bonus.kind is BonusKind.UNLOCK_OVERRIDE and bonus.perk_id is not None:
        perk = engine.catalog.perk(bonus.perk_id)
        return f"Unlocks {perk.display_name(engine.gender)} rank {bonus.rank}"
    return bonus.description


def project(engine: BuildEngine) -> Sheet:
    """Derive a Sheet from the engine's current state. Pure."""
    catalog = engine.catalog
    gender = engine.gender

    attributes = tuple(
        AttributeRow(
            stat=stat,
            base=engine.base(stat),
            bonus=engine.bonus(stat),
            effective=engine.effective(stat),
        )
        for stat in SPECIAL_STATS
    )

    groups: list[PerkGroup] = []
    for stat in SPECIAL_STATS:
        rows: list[PerkRow] = []
        for perk in catalog.perks_for(stat):
            status = engine.rank_status(perk.perk_id)
            next_def = perk.rank(status.next_rank) if status.next_rank else None
            rows.append(PerkRow(
                perk_id=perk.perk_id,
                name=perk.display_name(gender),
                attribute=perk.attribute,
                required_attribute=perk.ranks[0].required_attribute,
                current_rank=status.current_rank,
                max_rank=status.max_rank,
                next_rank=status.next_rank,
                next_required_level=next_def.required_level if next_def else None,
                next_cost=next_def.cost if next_def else None,
                requirement_met=status.requirement_met,
                affordable=status.affordable,
                eligible=status.eligible,
                unlocked_by=status.unlocked_by,
                unmet=status.unmet,
            ))
        groups.append(PerkGroup(attribute=stat, rows=tuple(rows)))

    bonuses = tuple(
        BonusRow(
            bonus_id=bonus.bonus_id,
            name=bonus.name,
            kind=bonus.kind,
            source=bonus.source,
            summary=_bonus_summary(bonus, engine),
        )
        for bonus in (catalog.bonus(b) for b in engine.active_bonus_ids())
    )

    required_level = engine.required_level()
    return Sheet(
        name=engine.name,
        gender=gender,
        difficulty=engine.difficulty,
        attributes=attributes,
        remaining_special_points=engine.remaining_special_points(),
        perk_groups=tuple(groups),
        active_bonuses=bonuses,
        level_cap=engine.level_cap,
        levels_spent=engine.levels_spent(),
        remaining_levels=engine.remaining_levels(),
        required_level=required_level,
        stats=compute_stats(engine.effective_special(), required_level, engine.difficulty),
    )
