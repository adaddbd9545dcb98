"""Configuration knobs for the build engine.

Defaults match vanilla Fallout 4: every attribute starts at 1 and the
player distributes 21 more points. Mods may override the pool, the
per-attribute range, or the level ceiling.
"""

from dataclasses import dataclass


@dataclass(slots=True)
class BuildConfig:
    """Tuneable rule parameters."""

    special_min: int = 1
    special_max: int = 11          # highest base value of a single stat
    special_pool: int = 28         # 7 stats x 1 + 21 assignable points
    special_default: int = 1       # base value of every stat in a new build
    max_level: int = 255           # highest selectable level cap
