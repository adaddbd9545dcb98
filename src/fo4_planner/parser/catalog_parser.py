"""Parse perk/bonus reference data (JSON) into a Catalog.

Document layout:

    {
      "perks": [
        {"id": "iron_fist", "name": "Iron Fist", "attribute": "strength",
         "requires": 1,
         "ranks": [{"level": 1, "description": "..."}, {"level": 9}, ...]}
      ],
      "bonuses": [
        {"id": "bobblehead_strength", "name": "Strength Bobblehead",
         "kind": "attribute_boost", "source": "collectible",
         "attribute": "strength", "delta": 1}
      ]
    }

A rank may override the perk-level ``requires`` and carry a ``cost``
(default 1 level). ``female_name`` is optional.
"""

import json
from pathlib import Path
from typing import Any

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.models.constants import SPECIAL_BY_KEY, SpecialStat
from fo4_planner.models.errors import CatalogError
from fo4_planner.models.perk import BonusDef, BonusKind, BonusSource, PerkDef, PerkRank


DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "fo4_perks.json"


def _require(entry: dict[str, Any], key: str, where: str) -> Any:
    if key not in entry:
        raise CatalogError(f"{where}: missing {key!r}")
    return entry[key]


def _int_field(entry: dict[str, Any], key: str, where: str, default: int | None = None) -> int:
    value = entry.get(key, default)
    if value is None:
        raise CatalogError(f"{where}: missing {key!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogError(f"{where}: {key!r} must be an integer, got {value!r}")
    return value


def _parse_stat(value: Any, where: str) -> SpecialStat:
    stat = SPECIAL_BY_KEY.get(str(value).lower())
    if stat is None:
        raise CatalogError(f"{where}: unknown attribute {value!r}")
    return stat


def parse_perk(entry: dict[str, Any]) -> PerkDef:
    """Parse one perk entry."""
    if not isinstance(entry, dict):
        raise CatalogError(f"Perk entry must be an object, got {entry!r}")
    perk_id = str(_require(entry, "id", "perk"))
    where = f"perk {perk_id!r}"
    attribute = _parse_stat(_require(entry, "attribute", where), where)
    default_requires = entry.get("requires")

    raw_ranks = _require(entry, "ranks", where)
    if not isinstance(raw_ranks, list):
        raise CatalogError(f"{where}: 'ranks' must be a list")
    ranks: list[PerkRank] = []
    for number, raw in enumerate(raw_ranks, start=1):
        rank_where = f"{where} rank {number}"
        if not isinstance(raw, dict):
            raise CatalogError(f"{rank_where}: must be an object")
        ranks.append(PerkRank(
            required_attribute=_int_field(raw, "requires", rank_where, default_requires),
            required_level=_int_field(raw, "level", rank_where, 1),
            cost=_int_field(raw, "cost", rank_where, 1),
            description=str(raw.get("description", "")),
        ))

    return PerkDef(
        perk_id=perk_id,
        name=str(entry.get("name", perk_id)),
        attribute=attribute,
        ranks=tuple(ranks),
        female_name=entry.get("female_name"),
    )


def parse_bonus(entry: dict[str, Any]) -> BonusDef:
    """Parse one bonus entry."""
    if not isinstance(entry, dict):
        raise CatalogError(f"Bonus entry must be an object, got {entry!r}")
    bonus_id = str(_require(entry, "id", "bonus"))
    where = f"bonus {bonus_id!r}"
    try:
        kind = BonusKind(_require(entry, "kind", where))
        source = BonusSource(_require(entry, "source", where))
    except ValueError as exc:
        raise CatalogError(f"{where}: {exc}") from exc

    attribute = None
    delta = 0
    perk_id = None
    rank = 0
    if kind is BonusKind.ATTRIBUTE_BOOST:
        attribute = _parse_stat(_require(entry, "attribute", where), where)
        delta = _int_field(entry, "delta", where, 1)
    elif kind is BonusKind.UNLOCK_OVERRIDE:
        perk_id = str(_require(entry, "perk", where))
        rank = _int_field(entry, "rank", where, 1)

    return BonusDef(
        bonus_id=bonus_id,
        name=str(entry.get("name", bonus_id)),
        kind=kind,
        source=source,
        attribute=attribute,
        delta=delta,
        perk_id=perk_id,
        rank=rank,
        exclusive_group=entry.get("exclusive_group"),
        description=str(entry.get("description", "")),
    )


def parse_catalog(data: dict[str, Any]) -> Catalog:
    """Build a Catalog from an already-decoded JSON document."""
    if not isinstance(data, dict):
        raise CatalogError("Catalog document must be an object")
    perks = [parse_perk(e) for e in data.get("perks", [])]
    bonuses = [parse_bonus(e) for e in data.get("bonuses", [])]
    return Catalog(perks, bonuses)


def load_catalog(path: Path) -> Catalog:
    """Read and parse a catalog JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"{path}: invalid JSON ({exc})") from exc
    return parse_catalog(data)


def load_default_catalog() -> Catalog:
    """Load the bundled Fallout 4 catalog."""
    return load_catalog(DEFAULT_CATALOG_PATH)
