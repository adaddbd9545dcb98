"""Plain-text rendering of sheets, perk charts, and bonus lists."""

from __future__ import annotations

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.engine.sheet import PerkRow, Sheet
from fo4_planner.models.constants import SPECIAL_STATS, SpecialStat
from fo4_planner.models.perk import BonusSource, PerkDef


def _points_string(sheet: Sheet, stat: SpecialStat) -> str:
    row = sheet.attribute(stat)
    if row.bonus:
        return f"{row.base} {row.bonus:+d} = {row.effective}"
    return str(row.base)


def _rank_label(row: PerkRow) -> str:
    if row.max_rank > 1:
        return f"{row.name} {row.current_rank}/{row.max_rank}"
    return row.name


def render_header(sheet: Sheet) -> list[str]:
    lines: list[str] = []
    if sheet.name:
        bars = "-" * len(sheet.name)
        lines.extend([bars, sheet.name, bars])
    if sheet.difficulty is not None:
        lines.append(sheet.difficulty.label)
    if sheet.gender is not None:
        lines.append(f"Gender: {sheet.gender.value.capitalize()}")
    lines.append(f"Required Level: {sheet.required_level}")
    lines.append(
        f"Levels: {sheet.levels_spent} spent / {sheet.level_cap} cap "
        f"({sheet.remaining_levels} remaining)"
    )
    if sheet.remaining_special_points > 0:
        lines.append(f"Remaining Points: {sheet.remaining_special_points}")
    stats = sheet.stats
    lines.append(
        f"Health: {stats.health:.0f} "
        f"({stats.base_health:.0f} + {stats.health_per_level:.1f}/lvl)"
    )
    lines.append(f"Base AP: {stats.action_points:.0f}")
    lines.append(f"{stats.experience_mult * 100:.0f}% XP")
    lines.append(f"Melee Damage: {stats.melee_damage_mult * 100:.0f}%")
    lines.append(f"Hits per Crit: {stats.hits_per_crit}")
    lines.append(f"Carry Weight: {stats.carry_weight}")
    lines.append(
        f"Buy Prices: {stats.buy_price_mult * 100:.0f}% / "
        f"Sell Prices: {stats.sell_price_mult * 100:.0f}%"
    )
    lines.append(f"Sprint Time: {stats.sprint_seconds:.1f} s")
    return lines


def render_chart(sheet: Sheet) -> list[str]:
    """Perk chart: one column per attribute, one row per requirement slot.

    Purchased perks show their rank; eligible perks are marked with ``+``
    and perks out of reach with ``.``.
    """
    columns: list[list[str]] = []
    for stat in SPECIAL_STATS:
        cells = []
        for row in sheet.group(stat).rows:
            if row.purchased:
                cells.append(f"{row.name} {row.current_rank}")
            elif row.eligible:
                cells.append(f"+{row.name}")
            else:
                cells.append(f".{row.name}")
        columns.append(cells)
    widths = [
        max([len(stat.label)] + [len(c) for c in col])
        for stat, col in zip(SPECIAL_STATS, columns)
    ]
    lines = [
        "│".join(stat.label.ljust(w) for stat, w in zip(SPECIAL_STATS, widths)),
        "┼".join("─" * w for w in widths),
    ]
    depth = max((len(col) for col in columns), default=0)
    for i in range(depth):
        lines.append("│".join(
            (col[i] if i < len(col) else "").ljust(w)
            for col, w in zip(columns, widths)
        ))
    return lines


def render_sheet(sheet: Sheet, show_chart: bool = False) -> str:
    lines = render_header(sheet)
    lines.append("")
    for stat in SPECIAL_STATS:
        lines.append(f"{stat.label:>12} {_points_string(sheet, stat)}")

    if show_chart:
        lines.append("")
        lines.extend(render_chart(sheet))

    purchased = sheet.purchased_perks()
    if purchased and not show_chart:
        lines.append("")
        last_attribute = None
        for row in purchased:
            if row.attribute != last_attribute:
                lines.append(row.attribute.label)
                last_attribute = row.attribute
            lines.append(f"  {_rank_label(row)}")

    if sheet.active_bonuses:
        lines.append("")
        for source in BonusSource:
            rows = sheet.bonuses_from(source)
            if not rows:
                continue
            lines.append(source.label)
            for row in rows:
                lines.append(f"  {row.name}: {row.summary}" if row.summary else f"  {row.name}")
    return "\n".join(lines)


def render_special(sheet: Sheet, stat: SpecialStat) -> str:
    """List one attribute's perks with their requirement slot and rank."""
    row = sheet.attribute(stat)
    lines = [f"{stat.label} ({_points_string(sheet, stat)})"]
    for perk in sheet.group(stat).rows:
        marker = "*" if perk.purchased else ("+" if perk.eligible else " ")
        rank = f" ({perk.current_rank}/{perk.max_rank})" if perk.purchased else ""
        reach = "" if row.effective >= perk.required_attribute else " [locked]"
        lines.append(f"{perk.required_attribute:>3}:{marker}{perk.name}{rank}{reach}")
    return "\n".join(lines)


def render_perk(perk: PerkDef, engine: BuildEngine) -> str:
    """Describe every rank of a perk, marking the purchased ones."""
    current = engine.rank_of(perk.perk_id)
    lines = [
        f"{perk.display_name(engine.gender)} ({current}/{perk.max_rank}) "
        f"- {perk.attribute.label} {perk.ranks[0].required_attribute}"
    ]
    for number, rank in enumerate(perk.ranks, start=1):
        owned = "x" if number <= current else " "
        cost = f", costs {rank.cost}" if rank.cost != 1 else ""
        lines.append(f"  [{owned}] Rank {number} (Level {rank.required_level}{cost})")
        if rank.description:
            lines.append(f"      {rank.description}")
    status = engine.rank_status(perk.perk_id)
    if status.next_rank is not None and not status.eligible:
        if status.requirement_met:
            reasons = ["not enough levels under the cap"]
        else:
            reasons = list(status.unmet)
        lines.append("  Next rank blocked: " + "; ".join(reasons))
    elif status.unlocked_by is not None:
        lines.append(f"  Next rank unlocked by {engine.catalog.bonus(status.unlocked_by).name}")
    return "\n".join(lines)


def render_bonuses(catalog: Catalog, engine: BuildEngine, source: BonusSource | None = None) -> str:
    """List catalog bonuses, active ones marked with ``*``."""
    lines: list[str] = []
    sources = [source] if source is not None else list(BonusSource)
    for src in sources:
        lines.append(src.label)
        for bonus in catalog.bonuses_from(src):
            marker = "*" if engine.is_bonus_active(bonus.bonus_id) else " "
            lines.append(f" {marker} {bonus.name}")
    return "\n".join(lines)
