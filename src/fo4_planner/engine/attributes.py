"""S.P.E.C.I.A.L. base values and their bonus-adjusted effective values."""

from __future__ import annotations

from fo4_planner.engine.bonus_tracker import BonusTracker
from fo4_planner.engine.build_config import BuildConfig
from fo4_planner.models.constants import SPECIAL_STATS, SpecialStat
from fo4_planner.models.errors import OutOfRange


def default_special(config: BuildConfig) -> dict[SpecialStat, int]:
    return {stat: config.special_default for stat in SPECIAL_STATS}


class AttributeSet:
    """View over a base S.P.E.C.I.A.L. mapping plus the active bonuses.

    Effective values are recomputed on every query, so they can never go
    stale relative to the bonus tracker.
    """

    __slots__ = ("_config", "_base", "_bonuses")

    def __init__(
        self,
        config: BuildConfig,
        base: dict[SpecialStat, int],
        bonuses: BonusTracker,
    ) -> None:
        self._config = config
        self._base = base
        self._bonuses = bonuses

    def base(self, stat: SpecialStat) -> int:
        return self._base[stat]

    def allocated(self) -> int:
        """Sum of all seven base values."""
        return sum(self._base.values())

    def remaining_points(self) -> int:
        return self._config.special_pool - self.allocated()

    def check_value(self, stat: SpecialStat, value: int) -> None:
        """Raise OutOfRange unless *value* is a legal base value for *stat*."""
        cfg = self._config
        if value < cfg.special_min or value > cfg.special_max:
            raise OutOfRange(
                f"{stat.label} = {value} is out of range "
                f"[{cfg.special_min}, {cfg.special_max}]"
            )

    def set_base(self, stat: SpecialStat, value: int) -> None:
        """Set one base value, keeping the total within the allocation pool."""
        self.check_value(stat, value)
        total = self.allocated() - self._base[stat] + value
        if total > self._config.special_pool:
            raise OutOfRange(
                f"S.P.E.C.I.A.L. pool exceeded: {total} > {self._config.special_pool}"
            )
        self._base[stat] = value

    def bonus(self, stat: SpecialStat) -> int:
        return self._bonuses.attribute_delta(stat)

    def effective(self, stat: SpecialStat) -> int:
        """Base plus every active bonus delta for *stat*."""
        return self._base[stat] + self._bonuses.attribute_delta(stat)

    def effective_all(self) -> dict[SpecialStat, int]:
        return {stat: self.effective(stat) for stat in SPECIAL_STATS}
