"""Perk rank requirement evaluation.

A rank's direct requirement has two parts: the perk's attribute must be
at least ``required_attribute`` (effective value, bonuses included) and
the level cap must reach ``required_level``. An active unlock override
naming the exact perk and rank replaces the whole direct requirement.
"""

from __future__ import annotations

from fo4_planner.models.perk import PerkDef, PerkRank


def direct_requirement_met(rank: PerkRank, attribute_value: int, level_cap: int) -> bool:
    return attribute_value >= rank.required_attribute and level_cap >= rank.required_level


def describe_unmet(
    perk: PerkDef, rank: PerkRank, attribute_value: int, level_cap: int
) -> list[str]:
    """Return human-readable descriptions of unmet direct requirements."""
    unmet: list[str] = []
    if attribute_value < rank.required_attribute:
        unmet.append(
            f"{perk.attribute.label} >= {rank.required_attribute} "
            f"(have {attribute_value})"
        )
    if level_cap < rank.required_level:
        unmet.append(f"Level >= {rank.required_level} (cap is {level_cap})")
    return unmet
