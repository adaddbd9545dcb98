"""Perk and bonus reference-data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fo4_planner.models.constants import Gender, SpecialStat


@dataclass(frozen=True, slots=True)
class PerkRank:
    """One purchasable rank of a perk.

    Examples: Iron Fist rank 2 needs Strength >= 1 and level 9, costs 1 level.
    """
    required_attribute: int   # effective attribute value needed
    required_level: int = 1   # character level needed
    cost: int = 1             # levels consumed when purchased
    description: str = ""


@dataclass(frozen=True, slots=True)
class PerkDef:
    """A perk from the catalog, tied to one S.P.E.C.I.A.L. attribute."""
    perk_id: str
    name: str
    attribute: SpecialStat
    ranks: tuple[PerkRank, ...]
    female_name: str | None = None

    @property
    def max_rank(self) -> int:
        return len(self.ranks)

    def rank(self, number: int) -> PerkRank:
        """Return rank *number* (1-based)."""
        if number < 1 or number > len(self.ranks):
            raise IndexError(f"{self.perk_id} has no rank {number}")
        return self.ranks[number - 1]

    def display_name(self, gender: Gender | None = None) -> str:
        if gender is Gender.FEMALE and self.female_name:
            return self.female_name
        return self.name

    def names(self) -> tuple[str, ...]:
        """All names the perk can be looked up by."""
        if self.female_name and self.female_name != self.name:
            return (self.name, self.female_name)
        return (self.name,)


class BonusKind(str, Enum):
    ATTRIBUTE_BOOST = "attribute_boost"
    UNLOCK_OVERRIDE = "unlock_override"
    COMPANION_EFFECT = "companion_effect"


class BonusSource(str, Enum):
    """Where a bonus comes from in the game world."""
    COLLECTIBLE = "collectible"   # bobbleheads, the S.P.E.C.I.A.L. book
    COMPANION = "companion"
    PERIODICAL = "periodical"     # magazines

    @property
    def label(self) -> str:
        return {
            BonusSource.COLLECTIBLE: "Collectibles",
            BonusSource.COMPANION: "Companions",
            BonusSource.PERIODICAL: "Periodicals",
        }[self]


@dataclass(frozen=True, slots=True)
class BonusDef:
    """A supplementary effect that boosts an attribute or unlocks a perk rank.

    Payload fields are populated according to ``kind``:
      - ATTRIBUTE_BOOST: ``attribute`` and ``delta``
      - UNLOCK_OVERRIDE: ``perk_id`` and ``rank``
      - COMPANION_EFFECT: neither; the effect is descriptive only
    """
    bonus_id: str
    name: str
    kind: BonusKind
    source: BonusSource
    attribute: SpecialStat | None = None
    delta: int = 0
    perk_id: str | None = None
    rank: int = 0
    exclusive_group: str | None = None  # at most one active bonus per group
    description: str = ""

    def boosts(self, stat: SpecialStat) -> int:
        """Attribute delta this bonus contributes to *stat*."""
        if self.kind is BonusKind.ATTRIBUTE_BOOST and self.attribute == stat:
            return self.delta
        return 0

    def unlocks(self, perk_id: str, rank: int) -> bool:
        return (
            self.kind is BonusKind.UNLOCK_OVERRIDE
            and self.perk_id == perk_id
            and self.rank == rank
        )
