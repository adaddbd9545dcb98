"""Versioned byte encoding of builds.

The payload is UTF-8 JSON with sorted keys:

    {"format_version": 1,
     "special": {"strength": 3, ...},
     "bonuses": ["bobblehead_endurance"],
     "perks": {"toughness": 2},
     "level_cap": 20,
     "name": "Sole Survivor", "gender": "female", "difficulty": "survival"}

``name``, ``gender`` and ``difficulty`` are omitted when unset. Decoding
never trusts the stored invariants: the build is replayed through the
engine, so a payload that could not have been produced by legal moves
is rejected.
"""

from __future__ import annotations

import json
from typing import Any

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.engine.build_config import BuildConfig
from fo4_planner.engine.build_engine import BuildEngine, BuildState
from fo4_planner.models.constants import SPECIAL_BY_KEY, SPECIAL_STATS, Difficulty, Gender
from fo4_planner.models.errors import MalformedData, PlannerError, UnknownReference


FORMAT_VERSION = 1


def encode_state(state: BuildState) -> dict[str, Any]:
    """Return the JSON-ready payload for a BuildState."""
    payload: dict[str, Any] = {
        "format_version": FORMAT_VERSION,
        "special": {stat.key: state.special[stat] for stat in SPECIAL_STATS},
        "bonuses": sorted(state.bonuses),
        "perks": {pid: rank for pid, rank in sorted(state.perks.items()) if rank > 0},
        "level_cap": state.level_cap,
    }
    if state.name is not None:
        payload["name"] = state.name
    if state.gender is not None:
        payload["gender"] = state.gender.value
    if state.difficulty is not None:
        payload["difficulty"] = state.difficulty.value
    return payload


def encode(engine: BuildEngine) -> bytes:
    """Serialise a build to bytes."""
    payload = encode_state(engine.state)
    return (json.dumps(payload, indent=2, sort_keys=True) + "\n").encode("utf-8")


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedData(f"{where} must be an integer, got {value!r}")
    return value


def _object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedData(f"{where} must be an object")
    return value


def decode_state(payload: Any, catalog: Catalog) -> BuildState:
    """Check a decoded JSON payload's shape and references; no rule checks."""
    payload = _object(payload, "build")
    version = payload.get("format_version")
    if version != FORMAT_VERSION:
        raise MalformedData(
            f"Unsupported build format version {version!r} (expected {FORMAT_VERSION})"
        )

    special = {}
    for key, value in _object(payload.get("special"), "special").items():
        stat = SPECIAL_BY_KEY.get(key)
        if stat is None:
            raise UnknownReference(f"Unknown S.P.E.C.I.A.L. stat {key!r}")
        special[stat] = _int(value, f"special.{key}")
    missing = [stat.key for stat in SPECIAL_STATS if stat not in special]
    if missing:
        raise MalformedData(f"special is missing {', '.join(missing)}")

    raw_bonuses = payload.get("bonuses", [])
    if not isinstance(raw_bonuses, list) or not all(isinstance(b, str) for b in raw_bonuses):
        raise MalformedData("bonuses must be a list of bonus ids")
    for bonus_id in raw_bonuses:
        if not catalog.has_bonus(bonus_id):
            raise UnknownReference(f"Unknown bonus {bonus_id!r}")

    perks = {}
    for perk_id, rank in _object(payload.get("perks", {}), "perks").items():
        if not catalog.has_perk(perk_id):
            raise UnknownReference(f"Unknown perk {perk_id!r}")
        perks[perk_id] = _int(rank, f"perks.{perk_id}")

    name = payload.get("name")
    if name is not None and not isinstance(name, str):
        raise MalformedData("name must be a string")
    try:
        gender = Gender(payload["gender"]) if "gender" in payload else None
        difficulty = Difficulty(payload["difficulty"]) if "difficulty" in payload else None
    except ValueError as exc:
        raise MalformedData(str(exc)) from exc

    return BuildState(
        special=special,
        bonuses=set(raw_bonuses),
        perks=perks,
        level_cap=_int(payload.get("level_cap"), "level_cap"),
        name=name,
        gender=gender,
        difficulty=difficulty,
    )


def decode(
    data: bytes,
    catalog: Catalog,
    config: BuildConfig | None = None,
) -> BuildEngine:
    """Rebuild a BuildEngine from bytes produced by :func:`encode`.

    Raises UnknownReference when the payload names perks, bonuses or stats
    the catalog lacks, and MalformedData for anything else that is wrong.
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedData(f"Build data is not valid JSON: {exc}") from exc

    state = decode_state(payload, catalog)
    try:
        return BuildEngine.from_state(state, catalog, config)
    except PlannerError as exc:
        raise MalformedData(f"Saved build breaks the rules: {exc}") from exc
