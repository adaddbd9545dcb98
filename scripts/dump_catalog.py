"""Dump the perk catalog, grouped by attribute, and its bonuses.

Usage:
    python -m scripts.dump_catalog [--catalog PATH] [--attribute STAT]
                                   [--bonuses-only] [--perks-only]
"""

import argparse
from pathlib import Path

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.models.constants import SPECIAL_STATS, parse_special_stat
from fo4_planner.models.perk import BonusDef, BonusKind, BonusSource, PerkDef
from fo4_planner.parser.catalog_parser import DEFAULT_CATALOG_PATH, load_catalog


def format_requirements(perk: PerkDef) -> str:
    """Format every rank's requirements as a compact string."""
    parts: list[str] = []
    for number, rank in enumerate(perk.ranks, start=1):
        text = f"R{number}: {perk.attribute.label[:3].upper()} {rank.required_attribute}"
        if rank.required_level > 1:
            text += f", Level {rank.required_level}"
        if rank.cost != 1:
            text += f", cost {rank.cost}"
        parts.append(text)
    return "; ".join(parts) if parts else "None"


def format_bonus(bonus: BonusDef, catalog: Catalog) -> str:
    if bonus.kind is BonusKind.ATTRIBUTE_BOOST and bonus.attribute is not None:
        effect = f"{bonus.delta:+d} {bonus.attribute.label}"
    elif bonus.kind is BonusKind.UNLOCK_OVERRIDE and bonus.perk_id is not None:
        effect = f"unlocks {catalog.perk(bonus.perk_id).name} rank {bonus.rank}"
    else:
        effect = bonus.description or "(no mechanical effect)"
    group = f" [{bonus.exclusive_group}]" if bonus.exclusive_group else ""
    return f"  {bonus.bonus_id:<28} {bonus.name:<32} {effect}{group}"


def dump_perks(catalog: Catalog, stats=SPECIAL_STATS) -> list[str]:
    lines: list[str] = []
    for stat in stats:
        perks = catalog.perks_for(stat)
        lines.append(f"{stat.label} ({len(perks)} perks)")
        lines.append("-" * 72)
        for perk in perks:
            name = perk.name
            if perk.female_name:
                name += f" / {perk.female_name}"
            lines.append(f"  {perk.perk_id:<22} {name:<32} ranks={perk.max_rank}")
            lines.append(f"      {format_requirements(perk)}")
        lines.append("")
    return lines


def dump_bonuses(catalog: Catalog) -> list[str]:
    lines: list[str] = []
    for source in BonusSource:
        bonuses = catalog.bonuses_from(source)
        lines.append(f"{source.label} ({len(bonuses)})")
        lines.append("-" * 72)
        lines.extend(format_bonus(b, catalog) for b in bonuses)
        lines.append("")
    return lines


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Dump the planner's perk catalog")
    parser.add_argument(
        "--catalog", type=Path, default=DEFAULT_CATALOG_PATH, help="Catalog JSON file"
    )
    parser.add_argument("--attribute", type=str, default=None, help="Only this attribute's perks")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--perks-only", action="store_true", help="Skip the bonus listing")
    group.add_argument("--bonuses-only", action="store_true", help="Skip the perk listing")
    args = parser.parse_args(argv)

    catalog = load_catalog(args.catalog)
    stats = SPECIAL_STATS
    if args.attribute:
        try:
            stats = (parse_special_stat(args.attribute),)
        except ValueError as exc:
            parser.error(str(exc))

    lines: list[str] = []
    if not args.bonuses_only:
        lines.extend(dump_perks(catalog, stats))
    if not args.perks_only and not args.attribute:
        lines.extend(dump_bonuses(catalog))
    print("\n".join(lines).rstrip())
    print(
        f"\nTotal: {len(catalog.perk_ids())} perks, {len(catalog.bonus_ids())} bonuses"
    )


if __name__ == "__main__":
    main()
