"""Tests for the interactive command shell."""

import pytest

from fo4_planner.cli.shell import (
    COMMANDS,
    Session,
    main,
    parse_difficulty,
    parse_gender,
    parse_source,
    run,
    split_perk_and_rank,
)
from fo4_planner.models.constants import Difficulty, Gender, SpecialStat
from fo4_planner.models.perk import BonusSource
from fo4_planner.parser.catalog_parser import load_default_catalog
from fo4_planner.storage.build_store import BuildStore


@pytest.fixture(scope="module")
def catalog():
    return load_default_catalog()


@pytest.fixture
def session(catalog, tmp_path):
    return Session(catalog, BuildStore(tmp_path))


# --- Argument helpers ---

def test_split_perk_and_rank():
    assert split_perk_and_rank(["iron", "fist", "3"]) == ("iron fist", 3)
    assert split_perk_and_rank(["iron", "fist"]) == ("iron fist", None)
    assert split_perk_and_rank(["3"]) == ("3", None)


def test_parse_gender():
    assert parse_gender("Lady") is Gender.FEMALE
    assert parse_gender("male") is Gender.MALE
    with pytest.raises(ValueError, match="Invalid gender"):
        parse_gender("robot")


def test_parse_difficulty():
    assert parse_difficulty("very hard") is Difficulty.VERY_HARD
    assert parse_difficulty("surv") is Difficulty.SURVIVAL
    with pytest.raises(ValueError):
        parse_difficulty("xyz")


def test_parse_source():
    assert parse_source("periodicals") is BonusSource.PERIODICAL
    assert parse_source("comp") is BonusSource.COMPANION
    with pytest.raises(ValueError):
        parse_source("vendors")


# --- Commands ---

class TestAttributeCommands:
    def test_set(self, session):
        result = session.execute("set end 4")
        assert not result.is_error
        assert result.message == "Set Endurance to 4"
        assert session.engine.base(SpecialStat.ENDURANCE) == 4

    def test_set_out_of_range(self, session):
        result = session.execute("set end 12")
        assert result.is_error
        assert "out of range" in result.message

    def test_set_unknown_stat(self, session):
        result = session.execute("set wisdom 3")
        assert result.is_error
        assert "Invalid S.P.E.C.I.A.L. stat" in result.message


class TestPerkCommands:
    def test_add_next_rank(self, session):
        assert session.execute("add toughness").message == "Added Toughness rank 1"
        assert session.execute("add toughness").message == "Added Toughness rank 2"
        assert session.engine.rank_of("toughness") == 2

    def test_add_to_rank(self, session):
        result = session.execute("add iron fist 3")
        assert not result.is_error
        assert session.engine.rank_of("iron_fist") == 3
        session.execute("add iron fist 1")
        assert session.engine.rank_of("iron_fist") == 1

    def test_add_fuzzy(self, session):
        session.execute("add iron fst")
        assert session.engine.rank_of("iron_fist") == 1

    def test_add_requirement_unmet(self, session):
        result = session.execute("add big leagues")
        assert result.is_error
        assert "Strength >= 2" in result.message
        assert session.engine.rank_of("big_leagues") == 0

    def test_add_unknown(self, session):
        result = session.execute("add xyzzy qqq")
        assert result.is_error
        assert "Unknown perk" in result.message

    def test_remove(self, session):
        session.execute("add iron fist 2")
        assert session.execute("remove iron fist").message == "Removed Iron Fist"
        assert session.engine.perk_ranks() == {}

    def test_remove_unpurchased(self, session):
        result = session.execute("remove iron fist")
        assert result.is_error
        assert "no purchased rank" in result.message

    def test_refund(self, session):
        session.execute("add iron fist 2")
        assert session.execute("refund iron fist").message == "Iron Fist is now rank 1"

    def test_perk_display(self, session):
        result = session.execute("perk toughness")
        assert "Toughness (0/5)" in result.output
        assert "Rank 5 (Level 46)" in result.output

    def test_perk_display_unlocked_but_unaffordable(self, session):
        session.execute("cap 2")
        session.execute("add iron fist")
        session.execute("add pickpocket")
        session.execute("activate tumblers today")
        output = session.execute("perk locksmith").output
        assert "Next rank blocked: not enough levels under the cap" in output
        assert "Perception" not in output.split("Next rank blocked:")[1]

    def test_female_perk_names(self, session):
        session.execute("gender female")
        session.execute("set end 5")
        assert session.execute("add aquaboy").message == "Added Aquagirl rank 1"


class TestBonusCommands:
    def test_activate_and_deactivate(self, session):
        assert session.execute("activate endurance bobblehead").message == (
            "Activated Endurance Bobblehead"
        )
        assert session.engine.effective(SpecialStat.ENDURANCE) == 2
        session.execute("deactivate endurance bobblehead")
        assert session.engine.effective(SpecialStat.ENDURANCE) == 1

    def test_deactivate_blocked(self, session):
        session.execute("activate grognak the barbarian")
        session.execute("add big leagues")
        result = session.execute("deactivate grognak the barbarian")
        assert result.is_error
        assert "Big Leagues rank 1" in result.message
        assert session.engine.is_bonus_active("grognak_the_barbarian")

    def test_bonus_conflict(self, session):
        session.execute("activate special book luck")
        result = session.execute("activate special book agility")
        assert result.is_error
        assert "conflicts" in result.message

    def test_bonuses_listing(self, session):
        session.execute("activate gift of gab")
        output = session.execute("bonuses companions").output
        assert output.startswith("Companions")
        assert " * Gift of Gab" in output
        assert "Periodicals" not in output


class TestBuildCommands:
    def test_cap(self, session):
        assert session.execute("cap 10").message == "Level cap set to 10"
        assert session.execute("ll 20").message == "Level cap set to 20"
        assert session.engine.level_cap == 20

    @pytest.mark.parametrize("line", ["cap 0", "cap ten", "cap"])
    def test_bad_cap(self, session, line):
        assert session.execute(line).is_error
        assert session.engine.level_cap == 255

    def test_difficulty(self, session):
        assert session.execute("difficulty very hard").message == "Difficulty set to Very Hard"
        session.execute("diff survival")
        assert session.engine.difficulty is Difficulty.SURVIVAL

    def test_reset(self, session):
        session.execute("set str 5")
        session.execute("reset")
        assert session.engine.base(SpecialStat.STRENGTH) == 1

    def test_unknown_command(self, session):
        assert session.execute("frobnicate").is_error

    def test_blank_line(self, session):
        result = session.execute("   ")
        assert not result.is_error
        assert "help" in result.message

    def test_help(self, session):
        output = session.execute("help").output
        assert "activate" in output
        assert "cap (ll)" in output

    def test_help_lists_every_command(self, session):
        lines = session.execute("help").output.splitlines()
        assert len(lines) == len(COMMANDS) + 1
        assert any(line.split()[:3] == ["exit", "(quit)", "Exit"] for line in lines)
        for name, _, text in COMMANDS:
            assert any(line.strip().startswith(name) and line.endswith(text) for line in lines)

    def test_sheet_toggles_chart(self, session):
        assert "│" not in session.sheet_text()
        session.execute("sheet")
        assert "│" in session.sheet_text()

    def test_special_listing(self, session):
        assert "Toughness" in session.execute("special end").output
        output = session.execute("special").output
        assert "Strength" in output and "Luck" in output

    def test_exit(self, session):
        assert session.execute("exit").exit
        assert session.execute("quit").exit


class TestPersistence:
    def test_save_needs_name(self, session):
        result = session.execute("save")
        assert result.is_error
        assert "name" in result.message

    def test_save_and_load(self, session):
        session.execute("name Glass Cannon")
        session.execute("add iron fist 2")
        assert session.execute("save").message.startswith("Build saved to")
        assert session.execute("builds").output == "Glass Cannon"
        session.execute("reset")
        assert session.execute("load Glass Cannon").message == "Build loaded!"
        assert session.engine.rank_of("iron_fist") == 2
        assert session.engine.name == "Glass Cannon"

    def test_save_with_name(self, session):
        session.execute("save Tank")
        assert session.engine.name == "Tank"
        assert session.store.list_builds() == ["Tank"]

    def test_failed_load_keeps_build(self, session):
        session.execute("set str 5")
        engine = session.engine
        result = session.execute("load Nowhere")
        assert result.is_error
        assert session.engine is engine

    def test_no_builds(self, session):
        assert session.execute("builds").output.startswith("No saved builds")


# --- Loop and entry point ---

def test_run_stops_at_exit(session):
    written = []
    run(session, ["set str 5", "bogus", "exit", "set str 6"], written.append)
    text = "\n".join(written)
    assert "Set Strength to 5" in text
    assert "Error:" in text
    assert session.engine.base(SpecialStat.STRENGTH) == 5


def test_main_reads_stdin(monkeypatch, capsys, tmp_path):
    lines = iter(["set agi 6", "cap 30"])

    def fake_input(prompt=""):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr("builtins.input", fake_input)
    assert main(["--builds-dir", str(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "Set Agility to 6" in out
    assert "Level cap set to 30" in out


def test_main_missing_build(capsys, tmp_path):
    assert main(["--builds-dir", str(tmp_path), "nothing"]) == 1
    assert "Unable to find" in capsys.readouterr().err
