"""Derived stat calculator for Fallout 4 characters.

Formulas are the engine's documented base values; perk effects are not
applied, only effective S.P.E.C.I.A.L. (base + bonuses), the character
level, and difficulty.

References:
  - Fallout wiki, "Fallout 4 S.P.E.C.I.A.L." and "Critical hit" pages
"""

from dataclasses import dataclass

from fo4_planner.models.constants import Difficulty, SpecialStat


# (highest luck, hits needed) pairs, ascending by luck.
_HITS_PER_CRIT: tuple[tuple[int, int], ...] = (
    (1, 14),
    (2, 12),
    (3, 10),
    (4, 9),
    (5, 8),
    (7, 7),
    (9, 6),
    (12, 5),
    (18, 4),
    (29, 3),
    (62, 2),
)

_SURVIVAL_CARRY_BASE = 75
_CARRY_BASE = 200


@dataclass(slots=True)
class CharacterStats:
    """All computed derived stats for a build at its required level."""

    level: int
    base_health: float
    health_per_level: float
    health: float
    action_points: float
    experience_mult: float
    melee_damage_mult: float
    hits_per_crit: int
    carry_weight: int
    buy_price_mult: float
    sell_price_mult: float
    sprint_seconds: float


def health_per_level(endurance: int) -> float:
    return 2.5 + endurance * 0.5


def base_health(endurance: int) -> float:
    """Level-1 health = 80 + END * 5."""
    return 80.0 + endurance * 5.0


def action_points(agility: int) -> float:
    """AP = 60 + AGI * 10."""
    return 60.0 + agility * 10.0


def hits_per_crit(luck: int) -> int:
    """Number of hits needed to fill the critical meter."""
    for max_luck, hits in _HITS_PER_CRIT:
        if luck <= max_luck:
            return hits
    return 1


def carry_weight(strength: int, difficulty: Difficulty | None = None) -> int:
    base = _SURVIVAL_CARRY_BASE if difficulty is Difficulty.SURVIVAL else _CARRY_BASE
    return base + strength * 10


def buy_price_mult(charisma: int) -> float:
    """Vendor buy price multiplier; never better than 1.2x."""
    return max(3.5 - charisma * 0.15, 1.2)


def sell_price_mult(charisma: int) -> float:
    return min(1.0 / buy_price_mult(charisma), 0.8)


def sprint_seconds(agility: int, endurance: int) -> float:
    """Seconds of sprinting from full AP; Endurance slows the drain."""
    drain_factor = max(1.05 - 0.05 * endurance, 0.05)
    return action_points(agility) / (drain_factor * 12.0)


def compute_stats(
    effective: dict[SpecialStat, int],
    level: int,
    difficulty: Difficulty | None = None,
) -> CharacterStats:
    """Compute derived stats from effective attribute values."""
    st = effective[SpecialStat.STRENGTH]
    en = effective[SpecialStat.ENDURANCE]
    ch = effective[SpecialStat.CHARISMA]
    in_ = effective[SpecialStat.INTELLIGENCE]
    ag = effective[SpecialStat.AGILITY]
    lk = effective[SpecialStat.LUCK]

    per_level = health_per_level(en)
    base = base_health(en)
    return CharacterStats(
        level=level,
        base_health=base,
        health_per_level=per_level,
        health=base + per_level * (level - 1),
        action_points=action_points(ag),
        experience_mult=1.0 + in_ * 0.03,
        melee_damage_mult=1.0 + st * 0.1,
        hits_per_crit=hits_per_crit(lk),
        carry_weight=carry_weight(st, difficulty),
        buy_price_mult=buy_price_mult(ch),
        sell_price_mult=sell_price_mult(ch),
        sprint_seconds=sprint_seconds(ag, en),
    )
