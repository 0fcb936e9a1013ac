"""Unit tests for defense allocation (rule formula, LLM parsing and fallback)."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from realpolitik.ai.defense import DefenseAI, allocation_strength, parse_defense_percentage, rule_allocation
from realpolitik.models import City, Country

SMALL_TOWN = City(id="town", country_id="beta", name="Town", population=5_000)
RICH_CITY = City(id="mint", country_id="beta", name="Mint", population=10_000, per_turn_resources={"gold": 50})


@pytest.fixture
def ai_attacker():
    return Country(id="alpha", game_id="g", name="Alpha")


@pytest.fixture
def player_attacker():
    return Country(id="alpha", game_id="g", name="Alpha", is_player_controlled=True)


def completer_returning(text):
    completer = MagicMock()
    completer.complete = AsyncMock(return_value=text)
    return completer


class TestParseDefensePercentage:
    """Tests for extracting a percentage from LLM text."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("65% - hold the line at the river", 65),
            ("I would commit 95% of forces", 90),
            ("20%", 30),
            ("Send 70 units", 70),
            ("Allocate 40 % now, maybe 80% later", 40),
            ("nothing sensible", 50),
            ("5 regiments", 50),
            ("", 50),
            ("9" * 5000 + "%", 50),
            ("Commit 1234% of everything", 50),
            ("Plan 2024: hold with 60%", 60),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_defense_percentage(text) == expected


class TestRuleAllocation:
    """Tests for the deterministic defense formula."""

    def test_equal_forces(self, make_stats, ai_attacker):
        assert rule_allocation(make_stats("beta"), SMALL_TOWN, ai_attacker, make_stats("alpha")) == 43

    def test_strong_attacker_raises_commitment(self, make_stats, ai_attacker):
        attacker_stats = make_stats("alpha", military_strength=200)
        assert rule_allocation(make_stats("beta"), SMALL_TOWN, ai_attacker, attacker_stats) == 53

    def test_weak_attacker_lowers_commitment(self, make_stats, ai_attacker):
        attacker_stats = make_stats("alpha", military_strength=40)
        assert rule_allocation(make_stats("beta"), SMALL_TOWN, ai_attacker, attacker_stats) == 33

    def test_tech_gap_adds_three_per_level(self, make_stats, ai_attacker):
        attacker_stats = make_stats("alpha", technology_level=2, military_strength=90)
        # Roughly 126 vs 120 effective, one level ahead.
        assert rule_allocation(make_stats("beta"), SMALL_TOWN, ai_attacker, attacker_stats) == 46

    def test_clamped_to_80(self, make_stats, ai_attacker):
        attacker_stats = make_stats("alpha", technology_level=5, military_strength=500)
        assert rule_allocation(make_stats("beta"), RICH_CITY, ai_attacker, attacker_stats) == 80

    def test_defenseless_defender(self, make_stats, ai_attacker):
        defender = make_stats("beta", military_strength=0)
        assert rule_allocation(defender, SMALL_TOWN, ai_attacker, make_stats("alpha")) == 53

    def test_allocation_strength(self, make_stats):
        assert allocation_strength(45, make_stats(military_strength=101)) == 45


class TestDefenseAI:
    """Tests for choosing between the LLM and the rule formula."""

    @pytest.mark.asyncio
    async def test_player_attacker_uses_llm(self, make_stats, player_attacker):
        completer = completer_returning("Commit 75% to defend the town.")
        defense = DefenseAI(completer, timeout=5, retries=0)

        percent = await defense.decide_allocation(make_stats("beta"), SMALL_TOWN, player_attacker, make_stats("alpha"))

        assert percent == 75
        prompt = completer.complete.await_args.args[0]
        assert "Town" in prompt
        assert "Alpha" in prompt

    @pytest.mark.asyncio
    async def test_llm_failure_falls_back_to_rules(self, make_stats, player_attacker):
        completer = MagicMock()
        completer.complete = AsyncMock(side_effect=RuntimeError("connection reset"))
        defense = DefenseAI(completer, timeout=5, retries=0)

        percent = await defense.decide_allocation(make_stats("beta"), SMALL_TOWN, player_attacker, make_stats("alpha"))

        assert percent == 43
        completer.complete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unparseable_reply_falls_back_to_rules(self, make_stats, player_attacker, monkeypatch):
        def refuse(text):
            raise ValueError("no percentage")

        monkeypatch.setattr("realpolitik.ai.defense.parse_defense_percentage", refuse)
        defense = DefenseAI(completer_returning("9" * 5000), timeout=5, retries=0)

        percent = await defense.decide_allocation(make_stats("beta"), SMALL_TOWN, player_attacker, make_stats("alpha"))

        assert percent == 43

    @pytest.mark.asyncio
    async def test_ai_attacker_never_calls_llm(self, make_stats, ai_attacker):
        completer = completer_returning("90%")
        percent = await DefenseAI(completer).decide_allocation(
            make_stats("beta"), SMALL_TOWN, ai_attacker, make_stats("alpha")
        )
        assert percent == 43
        completer.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_llm_uses_rules(self, make_stats, player_attacker, monkeypatch):
        monkeypatch.setenv("REALPOLITIK_LLM_ENABLED", "false")
        completer = completer_returning("90%")
        percent = await DefenseAI(completer).decide_allocation(
            make_stats("beta"), SMALL_TOWN, player_attacker, make_stats("alpha")
        )
        assert percent == 43
        completer.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_completer_uses_rules(self, make_stats, player_attacker):
        percent = await DefenseAI().decide_allocation(make_stats("beta"), SMALL_TOWN, player_attacker, make_stats("alpha"))
        assert percent == 43
