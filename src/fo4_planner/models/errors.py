"""Planner error taxonomy.

Every engine mutation either succeeds or raises one of these, leaving the
build exactly as it was. They derive from ValueError so callers that only
care about "bad input" can catch that.
"""


class PlannerError(ValueError):
    """Base class for rejected planner operations."""


class CatalogError(PlannerError):
    """Reference data is missing fields or internally inconsistent."""


class OutOfRange(PlannerError):
    """An attribute value is outside the legal range or exceeds the pool."""


class InvalidCap(PlannerError):
    """A level cap below 1 or above the maximum character level."""


class CapBelowSpent(PlannerError):
    """Lowering the level cap below the levels already spent."""


class InvalidName(PlannerError):
    """A build name that is blank once stripped."""


class WouldInvalidatePerk(PlannerError):
    """The change would leave a purchased perk rank without its requirement."""

    def __init__(self, perk_id: str, message: str | None = None) -> None:
        self.perk_id = perk_id
        super().__init__(message or f"Change would invalidate perk {perk_id!r}")


class UnknownPerk(PlannerError):
    """A perk id that is not in the catalog."""


class UnknownBonus(PlannerError):
    """A bonus id that is not in the catalog."""


class BonusConflict(PlannerError):
    """Another bonus of the same exclusivity group is already active."""


class RankOutOfRange(PlannerError):
    """A rank that is not the immediate next rank, or beyond the maximum."""


class RequirementUnmet(PlannerError):
    """Neither the direct requirement nor an unlock override is satisfied."""


class InsufficientLevels(PlannerError):
    """Buying the rank would spend more levels than the level cap allows."""


class NoRankToRefund(PlannerError):
    """Refunding a perk that has no purchased rank."""


class DecodeError(PlannerError):
    """A serialized build could not be turned back into a valid build."""


class UnknownReference(DecodeError):
    """The payload names a perk, bonus, or attribute the catalog lacks."""


class MalformedData(DecodeError):
    """The payload is not structurally a build, or replaying it is illegal."""


class StoreError(PlannerError):
    """A saved build could not be located or written."""
