"""Active bonus bookkeeping.

The tracker only knows which bonuses are on and what they contribute.
It never looks at purchased perks; the build engine decides whether a
deactivation would strand one.
"""

from __future__ import annotations

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.models.constants import SpecialStat
from fo4_planner.models.errors import BonusConflict
from fo4_planner.models.perk import BonusDef


class BonusTracker:
    """View over a set of active bonus ids.

    The set is shared with the owning BuildState, so mutations here are
    visible to anything reading the state.
    """

    __slots__ = ("_catalog", "_active")

    def __init__(self, catalog: Catalog, active: set[str] | None = None) -> None:
        self._catalog = catalog
        self._active = active if active is not None else set()

    def activate(self, bonus_id: str) -> None:
        """Turn a bonus on. Activating an active bonus is a no-op."""
        bonus = self._catalog.bonus(bonus_id)
        if bonus_id in self._active:
            return
        if bonus.exclusive_group is not None:
            for other in self.active_bonuses():
                if other.exclusive_group == bonus.exclusive_group:
                    raise BonusConflict(
                        f"{bonus.name} conflicts with active bonus {other.name}"
                    )
        self._active.add(bonus_id)

    def deactivate(self, bonus_id: str) -> None:
        """Turn a bonus off. Deactivating an inactive bonus is a no-op."""
        self._catalog.bonus(bonus_id)
        self._active.discard(bonus_id)

    def is_active(self, bonus_id: str) -> bool:
        return bonus_id in self._active

    def active_ids(self) -> list[str]:
        return sorted(self._active)

    def active_bonuses(self) -> list[BonusDef]:
        return [self._catalog.bonus(b) for b in sorted(self._active)]

    def attribute_delta(self, stat: SpecialStat) -> int:
        """Sum of active attribute-boost deltas for *stat*."""
        return sum(bonus.boosts(stat) for bonus in self.active_bonuses())

    def unlocking_bonus(self, perk_id: str, rank: int) -> str | None:
        """Id of an active unlock override naming exactly *perk_id* / *rank*."""
        for bonus in self.active_bonuses():
            if bonus.unlocks(perk_id, rank):
                return bonus.bonus_id
        return None

    def effective_unlocks(self, perk_id: str, rank: int) -> bool:
        return self.unlocking_bonus(perk_id, rank) is not None
