"""Read-only catalog of perk and bonus definitions.

The catalog is reference data injected into the engine at startup. The
engine only stores perk and bonus ids; every definition lookup goes
through here. Construction validates rank ordering and bonus payloads so
the engine can trust what it reads.
"""

from __future__ import annotations

import difflib
from types import MappingProxyType
from typing import Iterable, Mapping

from fo4_planner.models.constants import SPECIAL_STATS, SpecialStat
from fo4_planner.models.errors import CatalogError, UnknownBonus, UnknownPerk
from fo4_planner.models.perk import BonusDef, BonusKind, BonusSource, PerkDef

# Minimum similarity for a fuzzy name lookup to be accepted.
_MATCH_CUTOFF = 0.6


def _normalise(text: str) -> str:
    return " ".join(text.lower().replace("-", " ").replace("_", " ").split())


def _similarity(query: str, name: str) -> float:
    """Blend whole-string and best per-word similarity.

    Word matching lets "fist" find "Iron Fist" while the whole-string ratio
    keeps "iron fist" ranked above "Big Leagues".
    """
    whole = difflib.SequenceMatcher(None, query, name).ratio()
    words = max(
        (
            difflib.SequenceMatcher(None, q, n).ratio()
            for q in query.split()
            for n in name.split()
        ),
        default=0.0,
    )
    return (whole + words) / 2.0


def _validate_perk(perk: PerkDef) -> None:
    if not perk.ranks:
        raise CatalogError(f"Perk {perk.perk_id!r} has no ranks")
    previous = None
    for number, rank in enumerate(perk.ranks, start=1):
        if rank.cost < 1:
            raise CatalogError(
                f"Perk {perk.perk_id!r} rank {number} must cost at least 1 level"
            )
        if rank.required_level < 1:
            raise CatalogError(
                f"Perk {perk.perk_id!r} rank {number} has required level "
                f"{rank.required_level}"
            )
        if previous is not None:
            if rank.required_attribute < previous.required_attribute:
                raise CatalogError(
                    f"Perk {perk.perk_id!r} rank {number} lowers the attribute "
                    f"requirement"
                )
            if rank.required_level <= previous.required_level:
                raise CatalogError(
                    f"Perk {perk.perk_id!r} rank {number} required level must "
                    f"exceed rank {number - 1}"
                )
        previous = rank


def _validate_bonus(bonus: BonusDef, perks: Mapping[str, PerkDef]) -> None:
    if bonus.kind is BonusKind.ATTRIBUTE_BOOST:
        if bonus.attribute is None or bonus.delta == 0:
            raise CatalogError(
                f"Bonus {bonus.bonus_id!r} needs an attribute and a non-zero delta"
            )
    elif bonus.kind is BonusKind.UNLOCK_OVERRIDE:
        perk = perks.get(bonus.perk_id or "")
        if perk is None:
            raise CatalogError(
                f"Bonus {bonus.bonus_id!r} unlocks unknown perk {bonus.perk_id!r}"
            )
        if bonus.rank < 1 or bonus.rank > perk.max_rank:
            raise CatalogError(
                f"Bonus {bonus.bonus_id!r} unlocks rank {bonus.rank} of "
                f"{bonus.perk_id!r}, which has {perk.max_rank} ranks"
            )


class Catalog:
    """Immutable lookup of perks and bonuses by id."""

    __slots__ = ("_perks", "_bonuses")

    def __init__(
        self,
        perks: Iterable[PerkDef] = (),
        bonuses: Iterable[BonusDef] = (),
    ) -> None:
        perk_map: dict[str, PerkDef] = {}
        for perk in perks:
            if perk.perk_id in perk_map:
                raise CatalogError(f"Duplicate perk id {perk.perk_id!r}")
            _validate_perk(perk)
            perk_map[perk.perk_id] = perk

        bonus_map: dict[str, BonusDef] = {}
        for bonus in bonuses:
            if bonus.bonus_id in bonus_map:
                raise CatalogError(f"Duplicate bonus id {bonus.bonus_id!r}")
            _validate_bonus(bonus, perk_map)
            bonus_map[bonus.bonus_id] = bonus

        self._perks: Mapping[str, PerkDef] = MappingProxyType(perk_map)
        self._bonuses: Mapping[str, BonusDef] = MappingProxyType(bonus_map)

    def __repr__(self) -> str:
        return f"Catalog(perks={len(self._perks)}, bonuses={len(self._bonuses)})"

    # --- Lookup --------------------------------------------------------------

    def has_perk(self, perk_id: str) -> bool:
        return perk_id in self._perks

    def has_bonus(self, bonus_id: str) -> bool:
        return bonus_id in self._bonuses

    def perk(self, perk_id: str) -> PerkDef:
        """Return a perk definition or raise UnknownPerk."""
        try:
            return self._perks[perk_id]
        except KeyError:
            raise UnknownPerk(f"Unknown perk: {perk_id}") from None

    def bonus(self, bonus_id: str) -> BonusDef:
        """Return a bonus definition or raise UnknownBonus."""
        try:
            return self._bonuses[bonus_id]
        except KeyError:
            raise UnknownBonus(f"Unknown bonus: {bonus_id}") from None

    # --- Enumeration ---------------------------------------------------------

    def perk_ids(self) -> list[str]:
        return list(self._perks)

    def bonus_ids(self) -> list[str]:
        return list(self._bonuses)

    def perks_for(self, stat: SpecialStat) -> list[PerkDef]:
        """Perks of one attribute, ordered by attribute requirement then name."""
        return sorted(
            (p for p in self._perks.values() if p.attribute == stat),
            key=lambda p: (p.ranks[0].required_attribute, p.name),
        )

    def perks_by_attribute(self) -> dict[SpecialStat, list[PerkDef]]:
        return {stat: self.perks_for(stat) for stat in SPECIAL_STATS}

    def bonuses_from(self, source: BonusSource) -> list[BonusDef]:
        return [b for b in self._bonuses.values() if b.source is source]

    # --- Fuzzy search --------------------------------------------------------

    def find_perk(self, query: str) -> PerkDef:
        """Resolve a perk by id or (approximate) display name."""
        if query in self._perks:
            return self._perks[query]
        best = self._best_match(
            query, ((p, p.names()) for p in self._perks.values())
        )
        if best is None:
            raise UnknownPerk(f"Unknown perk: {query}")
        return best

    def find_bonus(self, query: str) -> BonusDef:
        """Resolve a bonus by id or (approximate) display name."""
        if query in self._bonuses:
            return self._bonuses[query]
        best = self._best_match(
            query, ((b, (b.name, b.bonus_id)) for b in self._bonuses.values())
        )
        if best is None:
            raise UnknownBonus(f"Unknown bonus: {query}")
        return best

    @staticmethod
    def _best_match(query, candidates):
        wanted = _normalise(query)
        if not wanted:
            return None
        best = None
        best_score = 0.0
        for item, names in candidates:
            for name in names:
                normalised = _normalise(name)
                score = 1.0 if normalised == wanted else _similarity(wanted, normalised)
                if score > best_score:
                    best, best_score = item, score
        if best_score < _MATCH_CUTOFF:
            return None
        return best
