"""Build engine: the consistency-maintaining aggregate for one build.

Owns a BuildState (base S.P.E.C.I.A.L., active bonuses, perk ranks, level
cap, and cosmetic metadata) and exposes every mutation the planner
supports. Each mutation is applied to a trial copy of the state; the copy
is checked against every invariant and only then committed, so a rejected
call leaves the build exactly as it was.

Invariants after every public call:
  - each base attribute lies in [special_min, special_max] and the seven
    together fit in special_pool
  - levels spent (sum of purchased rank costs) <= level cap
  - every purchased rank 1..n of every perk is legal, directly or through
    an active unlock override naming that perk and rank
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Callable, Mapping

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.engine.attributes import AttributeSet, default_special
from fo4_planner.engine.bonus_tracker import BonusTracker
from fo4_planner.engine.build_config import BuildConfig
from fo4_planner.engine.requirements import describe_unmet, direct_requirement_met
from fo4_planner.models.constants import SPECIAL_STATS, Difficulty, Gender, SpecialStat
from fo4_planner.models.errors import (
    CapBelowSpent,
    InsufficientLevels,
    InvalidCap,
    InvalidName,
    NoRankToRefund,
    OutOfRange,
    RankOutOfRange,
    RequirementUnmet,
    WouldInvalidatePerk,
)
from fo4_planner.models.perk import PerkDef


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class BuildState:
    """Serialisable snapshot of all build choices.

    ``perks`` maps perk id to the highest purchased rank; perks at rank 0
    are absent. Levels spent is derived from ``perks`` and never stored.
    """

    special: dict[SpecialStat, int] = field(default_factory=dict)
    bonuses: set[str] = field(default_factory=set)
    perks: dict[str, int] = field(default_factory=dict)
    level_cap: int = 1
    name: str | None = None
    gender: Gender | None = None
    difficulty: Difficulty | None = None


@dataclass(slots=True)
class BuildIssue:
    """A single rule violation discovered during validation."""

    category: str      # "special" | "bonus" | "perk" | "level_cap"
    message: str
    perk_id: str | None = None


@dataclass(frozen=True, slots=True)
class RankStatus:
    """Purchase outlook for the next rank of one perk."""

    perk_id: str
    current_rank: int
    max_rank: int
    next_rank: int | None          # None when already at max rank
    requirement_met: bool
    affordable: bool
    unlocked_by: str | None        # active override bonus enabling next_rank
    unmet: tuple[str, ...] = ()

    @property
    def eligible(self) -> bool:
        return self.next_rank is not None and self.requirement_met and self.affordable


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class BuildEngine:
    """Validates and applies every change to a single character build.

    Consumes a Catalog and BuildConfig without modifying either. Nothing
    derived from the state is cached; every query reads the live state.
    """

    __slots__ = ("_catalog", "_config", "_state")

    def __init__(self, catalog: Catalog, config: BuildConfig | None = None) -> None:
        self._catalog = catalog
        self._config = config or BuildConfig()
        self._state = self._empty_state()

    # --- Factories ---------------------------------------------------------

    @classmethod
    def new_build(cls, catalog: Catalog, config: BuildConfig | None = None) -> BuildEngine:
        """Create a fresh build: all stats at the default, no bonuses or perks."""
        return cls(catalog, config)

    @classmethod
    def from_state(
        cls,
        state: BuildState,
        catalog: Catalog,
        config: BuildConfig | None = None,
    ) -> BuildEngine:
        """Rebuild an engine from a BuildState by replaying it.

        Every value goes through the public mutations, so an inconsistent
        state raises the same PlannerError a user would get instead of
        being trusted.
        """
        engine = cls(catalog, config)
        missing = [stat for stat in SPECIAL_STATS if stat not in state.special]
        if missing:
            raise OutOfRange(
                "Missing S.P.E.C.I.A.L. values: "
                + ", ".join(stat.label for stat in missing)
            )
        engine.set_special(state.special)
        for bonus_id in sorted(state.bonuses):
            engine.activate_bonus(bonus_id)
        for perk_id, rank in sorted(state.perks.items()):
            engine.set_perk_rank(perk_id, rank)
        # Lowered last so level requirements and spending are checked
        # against the final cap.
        engine.set_level_cap(state.level_cap)
        engine._state.name = state.name
        engine._state.gender = state.gender
        engine._state.difficulty = state.difficulty
        return engine

    def copy(self) -> BuildEngine:
        """Deep-copy the engine for speculative exploration."""
        clone = BuildEngine.__new__(BuildEngine)
        clone._catalog = self._catalog
        clone._config = self._config
        clone._state = copy.deepcopy(self._state)
        return clone

    def _empty_state(self) -> BuildState:
        return BuildState(
            special=default_special(self._config),
            level_cap=self._config.max_level,
        )

    # --- Properties --------------------------------------------------------

    @property
    def state(self) -> BuildState:
        """Return a deep copy of the current build state for serialisation."""
        return copy.deepcopy(self._state)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def config(self) -> BuildConfig:
        return self._config

    @property
    def level_cap(self) -> int:
        return self._state.level_cap

    @property
    def name(self) -> str | None:
        return self._state.name

    @property
    def gender(self) -> Gender | None:
        return self._state.gender

    @property
    def difficulty(self) -> Difficulty | None:
        return self._state.difficulty

    # --- Views -------------------------------------------------------------

    def _tracker(self, state: BuildState) -> BonusTracker:
        return BonusTracker(self._catalog, state.bonuses)

    def _attributes(self, state: BuildState) -> AttributeSet:
        return AttributeSet(self._config, state.special, self._tracker(state))

    # --- Attribute queries -------------------------------------------------

    def base(self, stat: SpecialStat) -> int:
        return self._state.special[stat]

    def bonus(self, stat: SpecialStat) -> int:
        return self._tracker(self._state).attribute_delta(stat)

    def effective(self, stat: SpecialStat) -> int:
        return self._attributes(self._state).effective(stat)

    def effective_special(self) -> dict[SpecialStat, int]:
        return self._attributes(self._state).effective_all()

    def remaining_special_points(self) -> int:
        return self._attributes(self._state).remaining_points()

    # --- Bonus queries -----------------------------------------------------

    def is_bonus_active(self, bonus_id: str) -> bool:
        return self._tracker(self._state).is_active(bonus_id)

    def active_bonus_ids(self) -> list[str]:
        return self._tracker(self._state).active_ids()

    # --- Perk / budget queries ---------------------------------------------

    def rank_of(self, perk_id: str) -> int:
        return self._state.perks.get(perk_id, 0)

    def perk_ranks(self) -> dict[str, int]:
        return dict(self._state.perks)

    def levels_spent(self) -> int:
        return self._spent(self._state)

    def remaining_levels(self) -> int:
        return self._state.level_cap - self._spent(self._state)

    def required_level(self) -> int:
        """Lowest character level at which this build is reachable.

        One more than the levels spent, or the highest level requirement
        among purchased ranks when that is larger.
        """
        highest = 1
        for perk_id, rank in self._state.perks.items():
            perk = self._catalog.perk(perk_id)
            highest = max(highest, perk.rank(rank).required_level)
        return max(highest, 1 + self._spent(self._state))

    def rank_status(self, perk_id: str) -> RankStatus:
        """Describe whether the next rank of *perk_id* can be bought now."""
        perk = self._catalog.perk(perk_id)
        current = self.rank_of(perk_id)
        if current >= perk.max_rank:
            return RankStatus(
                perk_id=perk_id,
                current_rank=current,
                max_rank=perk.max_rank,
                next_rank=None,
                requirement_met=False,
                affordable=False,
                unlocked_by=None,
            )
        next_rank = current + 1
        rank = perk.rank(next_rank)
        value = self.effective(perk.attribute)
        direct = direct_requirement_met(rank, value, self._state.level_cap)
        override = self._tracker(self._state).unlocking_bonus(perk_id, next_rank)
        return RankStatus(
            perk_id=perk_id,
            current_rank=current,
            max_rank=perk.max_rank,
            next_rank=next_rank,
            requirement_met=direct or override is not None,
            affordable=self.remaining_levels() >= rank.cost,
            # Only credited when the override is what makes it legal.
            unlocked_by=None if direct else override,
            unmet=tuple(describe_unmet(perk, rank, value, self._state.level_cap)),
        )

    def can_purchase(self, perk_id: str) -> bool:
        return self.rank_status(perk_id).eligible

    # --- Mutation plumbing -------------------------------------------------

    def _spent(self, state: BuildState) -> int:
        total = 0
        for perk_id, rank in state.perks.items():
            perk = self._catalog.perk(perk_id)
            total += sum(r.cost for r in perk.ranks[:rank])
        return total

    def _rank_legal(self, state: BuildState, perk: PerkDef, number: int) -> bool:
        tracker = self._tracker(state)
        if tracker.effective_unlocks(perk.perk_id, number):
            return True
        value = self._attributes(state).effective(perk.attribute)
        return direct_requirement_met(perk.rank(number), value, state.level_cap)

    def _first_invalid_perk(self, state: BuildState) -> tuple[str, int] | None:
        for perk_id, rank in sorted(state.perks.items()):
            perk = self._catalog.perk(perk_id)
            for number in range(1, rank + 1):
                if not self._rank_legal(state, perk, number):
                    return perk_id, number
        return None

    def _commit(self, mutate: Callable[[BuildState], None]) -> None:
        """Apply *mutate* to a trial copy and keep it only if every perk survives."""
        trial = copy.deepcopy(self._state)
        mutate(trial)
        invalid = self._first_invalid_perk(trial)
        if invalid is not None:
            perk_id, number = invalid
            name = self._catalog.perk(perk_id).display_name(trial.gender)
            raise WouldInvalidatePerk(
                perk_id,
                f"Change would invalidate {name} rank {number}; "
                f"remove that rank first",
            )
        self._state = trial

    # --- Level cap ---------------------------------------------------------

    def set_level_cap(self, level: int) -> None:
        """Set the level budget ceiling."""
        max_level = self._config.max_level
        if level < 1 or level > max_level:
            raise InvalidCap(f"Level cap must be 1..{max_level}, got {level}")
        spent = self.levels_spent()
        if level < spent:
            raise CapBelowSpent(
                f"Level cap {level} is below the {spent} levels already spent"
            )

        def apply(state: BuildState) -> None:
            state.level_cap = level

        self._commit(apply)

    # --- Attributes --------------------------------------------------------

    def set_base_attribute(self, stat: SpecialStat, value: int) -> None:
        """Set one base S.P.E.C.I.A.L. value."""

        def apply(state: BuildState) -> None:
            self._attributes(state).set_base(stat, value)

        self._commit(apply)

    def set_special(self, special: Mapping[SpecialStat, int]) -> None:
        """Replace all seven base values in one atomic update."""
        strays = [s for s in special if not isinstance(s, SpecialStat)]
        if strays:
            raise OutOfRange(
                "S.P.E.C.I.A.L. keys must be SpecialStat members, got "
                + ", ".join(repr(s) for s in strays)
            )
        if set(special) != set(SPECIAL_STATS):
            raise OutOfRange(
                "Must provide exactly the 7 S.P.E.C.I.A.L. stats, got "
                + ", ".join(s.label for s in sorted(special))
            )
        cfg = self._config

        def apply(state: BuildState) -> None:
            attrs = self._attributes(state)
            for stat, value in special.items():
                attrs.check_value(stat, value)
            total = sum(special.values())
            if total > cfg.special_pool:
                raise OutOfRange(
                    f"S.P.E.C.I.A.L. pool exceeded: {total} > {cfg.special_pool}"
                )
            state.special = dict(special)

        self._commit(apply)

    # --- Bonuses -----------------------------------------------------------

    def activate_bonus(self, bonus_id: str) -> None:
        """Activate a bonus; a no-op when it is already active."""

        def apply(state: BuildState) -> None:
            self._tracker(state).activate(bonus_id)

        self._commit(apply)

    def deactivate_bonus(self, bonus_id: str) -> None:
        """Deactivate a bonus unless a purchased rank depends on it."""

        def apply(state: BuildState) -> None:
            self._tracker(state).deactivate(bonus_id)

        self._commit(apply)

    # --- Perks -------------------------------------------------------------

    def purchase_perk_rank(self, perk_id: str, target_rank: int) -> None:
        """Buy the next rank of a perk. Ranks are bought one at a time, in order."""
        perk = self._catalog.perk(perk_id)
        current = self.rank_of(perk_id)
        if target_rank != current + 1 or target_rank > perk.max_rank:
            raise RankOutOfRange(
                f"{perk.name}: cannot buy rank {target_rank} at rank {current} "
                f"(max {perk.max_rank}); ranks are bought one at a time"
            )
        status = self.rank_status(perk_id)
        if not status.requirement_met:
            raise RequirementUnmet(
                f"{perk.display_name(self._state.gender)} rank {target_rank} "
                f"requires: " + "; ".join(status.unmet)
            )
        cost = perk.rank(target_rank).cost
        if not status.affordable:
            raise InsufficientLevels(
                f"{perk.name} rank {target_rank} costs {cost} levels but only "
                f"{self.remaining_levels()} remain under cap {self._state.level_cap}"
            )
        self._state.perks[perk_id] = target_rank

    def refund_perk_rank(self, perk_id: str) -> None:
        """Remove the highest purchased rank of a perk, returning its cost."""
        perk = self._catalog.perk(perk_id)
        current = self.rank_of(perk_id)
        if current == 0:
            raise NoRankToRefund(f"{perk.name} has no purchased rank")
        if current == 1:
            del self._state.perks[perk_id]
        else:
            self._state.perks[perk_id] = current - 1

    def set_perk_rank(self, perk_id: str, rank: int) -> None:
        """Buy or refund ranks one at a time until *perk_id* is at *rank*.

        Atomic: if any step fails the build is left unchanged.
        """
        perk = self._catalog.perk(perk_id)
        if rank < 0 or rank > perk.max_rank:
            raise RankOutOfRange(
                f"{perk.name} has {perk.max_rank} ranks, got {rank}"
            )
        trial = self.copy()
        while trial.rank_of(perk_id) < rank:
            trial.purchase_perk_rank(perk_id, trial.rank_of(perk_id) + 1)
        while trial.rank_of(perk_id) > rank:
            trial.refund_perk_rank(perk_id)
        self._state = trial._state

    # --- Metadata ----------------------------------------------------------

    def set_name(self, name: str | None) -> None:
        if name is not None and not name.strip():
            raise InvalidName("Name cannot be empty")
        self._state.name = name.strip() if name is not None else None

    def set_gender(self, gender: Gender | None) -> None:
        """Set the character's gender (affects perk names only)."""
        self._state.gender = gender

    def set_difficulty(self, difficulty: Difficulty | None) -> None:
        self._state.difficulty = difficulty

    def reset(self) -> None:
        """Clear stats, bonuses, perks, and metadata; the level cap is kept."""
        state = self._empty_state()
        state.level_cap = self._state.level_cap
        self._state = state

    # --- Validation --------------------------------------------------------

    def validate(self) -> list[BuildIssue]:
        """Check the entire build for rule violations.

        Always empty for a build reached through the public methods; used
        as a consistency check on restored or hand-edited states.
        """
        issues: list[BuildIssue] = []
        state = self._state
        cfg = self._config

        for stat in SPECIAL_STATS:
            value = state.special.get(stat)
            if value is None:
                issues.append(BuildIssue("special", f"{stat.label} not set"))
            elif value < cfg.special_min or value > cfg.special_max:
                issues.append(BuildIssue(
                    "special",
                    f"{stat.label} = {value} out of range "
                    f"[{cfg.special_min}, {cfg.special_max}]",
                ))
        if sum(state.special.values()) > cfg.special_pool:
            issues.append(BuildIssue(
                "special",
                f"S.P.E.C.I.A.L. pool is {cfg.special_pool}, "
                f"got {sum(state.special.values())}",
            ))

        for bonus_id in sorted(state.bonuses):
            if not self._catalog.has_bonus(bonus_id):
                issues.append(BuildIssue("bonus", f"Unknown bonus {bonus_id!r}"))

        if state.level_cap < 1 or state.level_cap > cfg.max_level:
            issues.append(BuildIssue(
                "level_cap", f"Level cap {state.level_cap} outside 1..{cfg.max_level}"
            ))

        known_perks: dict[str, int] = {}
        for perk_id, rank in sorted(state.perks.items()):
            if not self._catalog.has_perk(perk_id):
                issues.append(BuildIssue("perk", f"Unknown perk {perk_id!r}", perk_id))
                continue
            perk = self._catalog.perk(perk_id)
            if rank < 1 or rank > perk.max_rank:
                issues.append(BuildIssue(
                    "perk", f"{perk.name} rank {rank} outside 1..{perk.max_rank}", perk_id
                ))
                continue
            known_perks[perk_id] = rank

        if issues:
            # Remaining checks need a structurally sound state.
            return issues

        spent = self._spent(state)
        if spent > state.level_cap:
            issues.append(BuildIssue(
                "level_cap", f"Spent {spent} levels but cap is {state.level_cap}"
            ))
        for perk_id, rank in known_perks.items():
            perk = self._catalog.perk(perk_id)
            for number in range(1, rank + 1):
                if not self._rank_legal(state, perk, number):
                    issues.append(BuildIssue(
                        "perk", f"{perk.name} rank {number} requirement unmet", perk_id
                    ))
        return issues

    def is_valid(self) -> bool:
        """True if the build has no rule violations."""
        return len(self.validate()) == 0
