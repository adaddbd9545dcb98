"""Interactive command shell over a single build.

Each input line is one command (``add iron fist 2``, ``set end 4``,
``activate endurance bobblehead``). Commands are parsed with argparse
sub-parsers; rejected commands print a message and the loop carries on.

Usage:
    python -m fo4_planner.cli [BUILD] [--catalog FILE] [--builds-dir DIR] [--verbose]
"""

from __future__ import annotations

import argparse
import difflib
import logging
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from fo4_planner.catalog.perk_catalog import Catalog
from fo4_planner.cli.render import render_bonuses, render_perk, render_sheet, render_special
from fo4_planner.engine.build_config import BuildConfig
from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.engine.sheet import project
from fo4_planner.models.constants import Difficulty, Gender, parse_special_stat
from fo4_planner.models.errors import NoRankToRefund, PlannerError
from fo4_planner.models.perk import BonusSource
from fo4_planner.parser.catalog_parser import load_catalog, load_default_catalog
from fo4_planner.storage.build_store import BuildStore

log = logging.getLogger(__name__)

_GENDER_WORDS = {
    "male": Gender.MALE, "man": Gender.MALE, "boy": Gender.MALE, "guy": Gender.MALE,
    "gentleman": Gender.MALE, "he": Gender.MALE,
    "female": Gender.FEMALE, "woman": Gender.FEMALE, "girl": Gender.FEMALE,
    "lady": Gender.FEMALE, "she": Gender.FEMALE,
}


class CommandError(Exception):
    """A line that does not parse as a command."""


class _CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise CommandError(message)


@dataclass(slots=True)
class CommandResult:
    message: str = ""
    output: str | None = None      # replaces the sheet for display commands
    is_error: bool = False
    exit: bool = False


def parse_gender(text: str) -> Gender:
    try:
        return _GENDER_WORDS[text.strip().lower()]
    except KeyError:
        raise ValueError(f"Invalid gender: {text}") from None


def parse_difficulty(text: str) -> Difficulty:
    wanted = text.strip().lower().replace(" ", "_").replace("-", "_")
    by_value = {d.value: d for d in Difficulty}
    if wanted in by_value:
        return by_value[wanted]
    close = difflib.get_close_matches(wanted, list(by_value), n=1, cutoff=0.6)
    if not close:
        raise ValueError(f"Invalid difficulty: {text}")
    return by_value[close[0]]


def parse_source(text: str) -> BonusSource:
    lowered = text.strip().lower()
    for source in BonusSource:
        if source.value.startswith(lowered) or source.label.lower().startswith(lowered):
            return source
    raise ValueError(f"Invalid bonus source: {text}")


def split_perk_and_rank(words: list[str]) -> tuple[str, int | None]:
    """Split ``["iron", "fist", "3"]`` into ("iron fist", 3)."""
    if len(words) > 1 and words[-1].isdigit():
        return " ".join(words[:-1]), int(words[-1])
    return " ".join(words), None


# (name, aliases, help) for every shell command, in help order.
COMMANDS: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("set", (), "Set a S.P.E.C.I.A.L. stat"),
    ("add", (), "Buy the next rank of a perk, or up to RANK"),
    ("remove", (), "Remove every rank of a perk"),
    ("refund", (), "Refund the highest rank of a perk"),
    ("perk", (), "Display a perk"),
    ("special", (), "Display the perks of one or all stats"),
    ("bonuses", (), "List bonuses (collectibles, companions, periodicals)"),
    ("activate", (), "Activate a bonus"),
    ("deactivate", (), "Deactivate a bonus"),
    ("cap", ("ll",), "Set the level cap"),
    ("name", (), "Set the build's name"),
    ("gender", (), "Set the build's gender (affects perk names)"),
    ("difficulty", ("diff",), "Set the difficulty (affects carry weight)"),
    ("reset", (), "Reset the build"),
    ("sheet", (), "Toggle the perk chart"),
    ("save", (), "Save the build"),
    ("load", (), "Load a build"),
    ("builds", (), "List saved builds"),
    ("help", (), "Show this help"),
    ("exit", ("quit",), "Exit this tool"),
)


def build_parser() -> _CommandParser:
    parser = _CommandParser(prog="", add_help=False)
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    p = {
        name: sub.add_parser(name, help=text, aliases=list(aliases), add_help=False)
        for name, aliases, text in COMMANDS
    }

    p["set"].add_argument("stat")
    p["set"].add_argument("value", type=int)
    for name in ("add", "remove", "refund", "perk", "activate", "deactivate", "name",
                 "difficulty", "load"):
        p[name].add_argument("words", nargs="+")
    p["special"].add_argument("stat", nargs="?")
    p["bonuses"].add_argument("source", nargs="?")
    p["cap"].add_argument("level", type=int)
    p["gender"].add_argument("gender")
    p["save"].add_argument("words", nargs="*")
    return parser


def help_text() -> str:
    lines = ["COMMANDS:"]
    for name, aliases, text in COMMANDS:
        label = f"{name} ({', '.join(aliases)})" if aliases else name
        lines.append(f"  {label:<18} {text}")
    return "\n".join(lines)


class Session:
    """One interactive planning session: an engine plus where to save it."""

    __slots__ = ("catalog", "config", "store", "engine", "show_chart", "_parser")

    def __init__(
        self,
        catalog: Catalog,
        store: BuildStore,
        config: BuildConfig | None = None,
        engine: BuildEngine | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or BuildConfig()
        self.store = store
        self.engine = engine or BuildEngine.new_build(catalog, self.config)
        self.show_chart = False
        self._parser = build_parser()

    def sheet_text(self) -> str:
        return render_sheet(project(self.engine), show_chart=self.show_chart)

    def execute(self, line: str) -> CommandResult:
        """Run one command line; never raises for bad input."""
        try:
            words = shlex.split(line)
        except ValueError as exc:
            return CommandResult(str(exc), is_error=True)
        if not words:
            return CommandResult('Type "help" for usage information')
        try:
            args = self._parser.parse_args(words)
        except CommandError as exc:
            return CommandResult(str(exc), is_error=True)
        if args.command is None:
            return CommandResult('Type "help" for usage information')
        handler: Callable[[argparse.Namespace], CommandResult] = getattr(
            self, "_cmd_" + _CANONICAL.get(args.command, args.command)
        )
        try:
            return handler(args)
        except (PlannerError, ValueError) as exc:
            log.debug("Command %r rejected: %s", line, exc)
            return CommandResult(str(exc), is_error=True)

    # --- Commands ----------------------------------------------------------

    def _cmd_set(self, args: argparse.Namespace) -> CommandResult:
        stat = parse_special_stat(args.stat)
        self.engine.set_base_attribute(stat, args.value)
        return CommandResult(f"Set {stat.label} to {args.value}")

    def _perk_name(self, perk) -> str:
        return perk.display_name(self.engine.gender)

    def _cmd_add(self, args: argparse.Namespace) -> CommandResult:
        query, rank = split_perk_and_rank(args.words)
        perk = self.catalog.find_perk(query)
        if rank is None:
            rank = self.engine.rank_of(perk.perk_id) + 1
            self.engine.purchase_perk_rank(perk.perk_id, rank)
        else:
            self.engine.set_perk_rank(perk.perk_id, rank)
        if rank == 0:
            return CommandResult(f"Removed {self._perk_name(perk)}")
        return CommandResult(f"Added {self._perk_name(perk)} rank {rank}")

    def _cmd_remove(self, args: argparse.Namespace) -> CommandResult:
        perk = self.catalog.find_perk(" ".join(args.words))
        if self.engine.rank_of(perk.perk_id) == 0:
            raise NoRankToRefund(f"{self._perk_name(perk)} has no purchased rank")
        self.engine.set_perk_rank(perk.perk_id, 0)
        return CommandResult(f"Removed {self._perk_name(perk)}")

    def _cmd_refund(self, args: argparse.Namespace) -> CommandResult:
        perk = self.catalog.find_perk(" ".join(args.words))
        self.engine.refund_perk_rank(perk.perk_id)
        rank = self.engine.rank_of(perk.perk_id)
        return CommandResult(f"{self._perk_name(perk)} is now rank {rank}")

    def _cmd_perk(self, args: argparse.Namespace) -> CommandResult:
        perk = self.catalog.find_perk(" ".join(args.words))
        return CommandResult(output=render_perk(perk, self.engine))

    def _cmd_special(self, args: argparse.Namespace) -> CommandResult:
        sheet = project(self.engine)
        if args.stat:
            return CommandResult(output=render_special(sheet, parse_special_stat(args.stat)))
        blocks = [render_special(sheet, row.stat) for row in sheet.attributes]
        return CommandResult(output="\n\n".join(blocks))

    def _cmd_bonuses(self, args: argparse.Namespace) -> CommandResult:
        source = parse_source(args.source) if args.source else None
        return CommandResult(output=render_bonuses(self.catalog, self.engine, source))

    def _cmd_activate(self, args: argparse.Namespace) -> CommandResult:
        bonus = self.catalog.find_bonus(" ".join(args.words))
        self.engine.activate_bonus(bonus.bonus_id)
        return CommandResult(f"Activated {bonus.name}")

    def _cmd_deactivate(self, args: argparse.Namespace) -> CommandResult:
        bonus = self.catalog.find_bonus(" ".join(args.words))
        self.engine.deactivate_bonus(bonus.bonus_id)
        return CommandResult(f"Deactivated {bonus.name}")

    def _cmd_cap(self, args: argparse.Namespace) -> CommandResult:
        self.engine.set_level_cap(args.level)
        return CommandResult(f"Level cap set to {args.level}")

    def _cmd_name(self, args: argparse.Namespace) -> CommandResult:
        name = " ".join(args.words)
        self.engine.set_name(name)
        return CommandResult(f"Build name set to {name!r}")

    def _cmd_gender(self, args: argparse.Namespace) -> CommandResult:
        gender = parse_gender(args.gender)
        self.engine.set_gender(gender)
        return CommandResult(f"Gender set to {gender.value.capitalize()}")

    def _cmd_difficulty(self, args: argparse.Namespace) -> CommandResult:
        difficulty = parse_difficulty(" ".join(args.words))
        self.engine.set_difficulty(difficulty)
        return CommandResult(f"Difficulty set to {difficulty.label}")

    def _cmd_reset(self, args: argparse.Namespace) -> CommandResult:
        self.engine.reset()
        return CommandResult("Build reset!")

    def _cmd_sheet(self, args: argparse.Namespace) -> CommandResult:
        self.show_chart = not self.show_chart
        return CommandResult()

    def _cmd_save(self, args: argparse.Namespace) -> CommandResult:
        if args.words:
            self.engine.set_name(" ".join(args.words))
        path = self.store.save(self.engine)
        return CommandResult(f"Build saved to {path}")

    def _cmd_load(self, args: argparse.Namespace) -> CommandResult:
        # Replaced only after a successful load.
        self.engine = self.store.load(" ".join(args.words), self.catalog, self.config)
        return CommandResult("Build loaded!")

    def _cmd_builds(self, args: argparse.Namespace) -> CommandResult:
        names = self.store.list_builds()
        if not names:
            return CommandResult(output=f"No saved builds in {self.store.root}")
        return CommandResult(output="\n".join(names))

    def _cmd_help(self, args: argparse.Namespace) -> CommandResult:
        return CommandResult(output=help_text())

    def _cmd_exit(self, args: argparse.Namespace) -> CommandResult:
        return CommandResult(exit=True)


_CANONICAL = {"ll": "cap", "diff": "difficulty", "quit": "exit"}


def run(session: Session, lines: Iterable[str], write: Callable[[str], None]) -> None:
    """Feed *lines* to the session, writing the sheet and messages."""
    write(session.sheet_text())
    write('Type "help" for usage information\n')
    for line in lines:
        result = session.execute(line)
        if result.exit:
            break
        write(result.output if result.output is not None else session.sheet_text())
        if result.message:
            prefix = "Error: " if result.is_error else ""
            write(f"{prefix}{result.message}\n")


def _stdin_lines() -> Iterable[str]:
    while True:
        try:
            yield input()
        except EOFError:
            return


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fallout 4 character build planner")
    parser.add_argument("path", nargs="*", help="Saved build to open (name or path).")
    parser.add_argument("--catalog", type=Path, help="Perk/bonus catalog JSON file.")
    parser.add_argument("--builds-dir", type=Path, help="Directory for saved builds.")
    parser.add_argument("--max-level", type=int, help="Highest selectable level cap.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = BuildConfig()
    if args.max_level is not None:
        config.max_level = args.max_level
    try:
        catalog = load_catalog(args.catalog) if args.catalog else load_default_catalog()
    except (OSError, PlannerError) as exc:
        print(f"Could not load catalog: {exc}", file=sys.stderr)
        return 1
    log.debug("Catalog loaded: %r", catalog)

    store = BuildStore(args.builds_dir)
    session = Session(catalog, store, config)
    if args.path:
        try:
            session.engine = store.load(" ".join(args.path), catalog, config)
        except PlannerError as exc:
            print(exc, file=sys.stderr)
            return 1

    run(session, _stdin_lines(), print)
    return 0
