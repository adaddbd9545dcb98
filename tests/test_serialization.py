"""Tests for build encoding and decoding."""

import json

import pytest

from fo4_planner.engine.build_engine import BuildEngine
from fo4_planner.engine.serialization import FORMAT_VERSION, decode, encode, encode_state
from fo4_planner.models.constants import SPECIAL_STATS, Difficulty, Gender, SpecialStat
from fo4_planner.models.errors import DecodeError, MalformedData, UnknownReference
from fo4_planner.parser.catalog_parser import load_default_catalog


S = SpecialStat


@pytest.fixture(scope="module")
def catalog():
    return load_default_catalog()


def _build(catalog) -> BuildEngine:
    e = BuildEngine.new_build(catalog)
    e.set_special({
        S.STRENGTH: 3, S.PERCEPTION: 3, S.ENDURANCE: 3, S.CHARISMA: 3,
        S.INTELLIGENCE: 6, S.AGILITY: 5, S.LUCK: 5,
    })
    e.activate_bonus("bobblehead_endurance")
    e.activate_bonus("tumblers_today")
    e.set_perk_rank("toughness", 2)
    e.purchase_perk_rank("locksmith", 1)
    e.purchase_perk_rank("science", 1)
    e.set_level_cap(20)
    e.set_name("Sole Survivor")
    e.set_gender(Gender.FEMALE)
    e.set_difficulty(Difficulty.SURVIVAL)
    return e


def _payload(catalog, **overrides) -> bytes:
    payload = encode_state(_build(catalog).state)
    payload.update(overrides)
    return json.dumps(payload).encode("utf-8")


class TestEncode:
    def test_payload_shape(self, catalog):
        payload = json.loads(encode(_build(catalog)))
        assert payload["format_version"] == FORMAT_VERSION
        assert payload["special"]["intelligence"] == 6
        assert list(payload["special"]) == sorted(stat.key for stat in SPECIAL_STATS)
        assert payload["bonuses"] == ["bobblehead_endurance", "tumblers_today"]
        assert payload["perks"] == {"locksmith": 1, "science": 1, "toughness": 2}
        assert payload["level_cap"] == 20
        assert payload["gender"] == "female"
        assert payload["difficulty"] == "survival"

    def test_unset_metadata_omitted(self, catalog):
        payload = json.loads(encode(BuildEngine.new_build(catalog)))
        assert "name" not in payload
        assert "gender" not in payload
        assert "difficulty" not in payload
        assert payload["perks"] == {}

    def test_encoding_is_deterministic(self, catalog):
        assert encode(_build(catalog)) == encode(_build(catalog))


class TestRoundTrip:
    def test_round_trip(self, catalog):
        original = _build(catalog)
        restored = decode(encode(original), catalog)
        assert restored.effective_special() == original.effective_special()
        assert restored.perk_ranks() == original.perk_ranks()
        assert restored.active_bonus_ids() == original.active_bonus_ids()
        assert restored.level_cap == original.level_cap
        assert restored.name == "Sole Survivor"
        assert restored.gender is Gender.FEMALE
        assert restored.difficulty is Difficulty.SURVIVAL
        assert restored.validate() == []
        assert encode(restored) == encode(original)


class TestDecodeErrors:
    def test_unknown_perk(self, catalog):
        data = _payload(catalog, perks={"toughness": 2, "power_armor_mastery": 1})
        with pytest.raises(UnknownReference, match="power_armor_mastery"):
            decode(data, catalog)

    def test_unknown_bonus(self, catalog):
        data = _payload(catalog, bonuses=["bobblehead_endurance", "tumblers_today", "vault_boy"])
        with pytest.raises(UnknownReference, match="vault_boy"):
            decode(data, catalog)

    def test_unknown_stat(self, catalog):
        special = {stat.key: 1 for stat in SPECIAL_STATS}
        special["wisdom"] = 1
        with pytest.raises(UnknownReference):
            decode(_payload(catalog, special=special), catalog)

    def test_unknown_reference_is_a_decode_error(self):
        assert issubclass(UnknownReference, DecodeError)
        assert issubclass(MalformedData, DecodeError)

    @pytest.mark.parametrize("data", [
        b"not json",
        b"\xff\xfe\x00",
        b"[]",
        b"{}",
    ])
    def test_not_a_build(self, catalog, data):
        with pytest.raises(MalformedData):
            decode(data, catalog)

    def test_wrong_version(self, catalog):
        with pytest.raises(MalformedData, match="format version"):
            decode(_payload(catalog, format_version=99), catalog)

    def test_missing_stat(self, catalog):
        with pytest.raises(MalformedData, match="special is missing"):
            decode(_payload(catalog, special={"strength": 3}), catalog)

    def test_bool_is_not_an_integer(self, catalog):
        with pytest.raises(MalformedData, match="level_cap"):
            decode(_payload(catalog, level_cap=True), catalog)

    def test_missing_level_cap(self, catalog):
        payload = encode_state(_build(catalog).state)
        del payload["level_cap"]
        with pytest.raises(MalformedData):
            decode(json.dumps(payload).encode(), catalog)

    def test_bad_gender(self, catalog):
        with pytest.raises(MalformedData):
            decode(_payload(catalog, gender="robot"), catalog)


class TestDecodeRevalidates:
    def test_requirement_violation(self, catalog):
        data = _payload(catalog, bonuses=[])
        # Perception 3 only reaches Locksmith through Tumblers Today.
        with pytest.raises(MalformedData, match="breaks the rules"):
            decode(data, catalog)

    def test_spent_over_cap(self, catalog):
        with pytest.raises(MalformedData, match="breaks the rules"):
            decode(_payload(catalog, level_cap=2), catalog)

    def test_rank_beyond_max(self, catalog):
        with pytest.raises(MalformedData, match="breaks the rules"):
            decode(_payload(catalog, perks={"toughness": 9}), catalog)

    def test_special_over_pool(self, catalog):
        special = {stat.key: 5 for stat in SPECIAL_STATS}
        with pytest.raises(MalformedData, match="pool"):
            decode(_payload(catalog, special=special, perks={}, bonuses=[]), catalog)
