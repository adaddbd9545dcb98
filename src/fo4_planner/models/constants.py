"""Fallout 4 S.P.E.C.I.A.L. attributes, genders, and difficulty levels.

Attribute order follows the in-game Pip-Boy listing and is used wherever
attributes are enumerated (sheet rows, serialized payloads).
"""

from enum import Enum, IntEnum


class SpecialStat(IntEnum):
    """The seven primary attributes."""
    STRENGTH = 0
    PERCEPTION = 1
    ENDURANCE = 2
    CHARISMA = 3
    INTELLIGENCE = 4
    AGILITY = 5
    LUCK = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def key(self) -> str:
        """Lower-case identifier used in reference data and saved builds."""
        return self.name.lower()


SPECIAL_STATS: tuple[SpecialStat, ...] = tuple(SpecialStat)

SPECIAL_BY_KEY: dict[str, SpecialStat] = {stat.key: stat for stat in SpecialStat}


class Gender(str, Enum):
    """Selects between male and female perk names."""
    MALE = "male"
    FEMALE = "female"


class Difficulty(str, Enum):
    VERY_EASY = "very_easy"
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    VERY_HARD = "very_hard"
    SURVIVAL = "survival"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


def parse_special_stat(text: str) -> SpecialStat:
    """Resolve a stat from its name or any unambiguous prefix ("end", "Luck")."""
    lowered = text.strip().lower()
    if not lowered:
        raise ValueError("Empty S.P.E.C.I.A.L. stat name")
    matches = [stat for stat in SpecialStat if stat.key.startswith(lowered)]
    if len(matches) != 1:
        raise ValueError(f"Invalid S.P.E.C.I.A.L. stat: {text}")
    return matches[0]
