"""Integration tests for the full turn pipeline.

Tests cover:
1. Ordering: deals, non-attack actions, attacks, combat, economy
2. Combat against the rule-based DefenseAI
3. Defense decisions independent of the attacker's allocation
4. Replaying the mutation log reproduces the processed state
"""

import random

import pytest

from realpolitik.ai.defense import DefenseAI, rule_allocation
from realpolitik.ai.trade import TradePlanner
from realpolitik.engine.events import TurnEvent
from realpolitik.engine.military import CombatResolver
from realpolitik.engine.turn import TurnProcessor
from realpolitik.models import (
    ActionStatus,
    AttackAction,
    CommitmentType,
    Deal,
    DealCommitment,
    DealStatus,
    DealTerms,
    DealType,
    GameState,
    RecruitAction,
    ResearchAction,
)


class RecordingDefense:
    """Rule-based defense that records every decision it is asked for."""

    def __init__(self):
        self.calls = []
        self.percents = []

    async def decide_allocation(self, defender_stats, target_city, attacker, attacker_stats):
        self.calls.append((defender_stats, target_city, attacker, attacker_stats))
        percent = rule_allocation(defender_stats, target_city, attacker, attacker_stats)
        self.percents.append(percent)
        return percent


class StubTradePhase:
    """Trading phase that reports the pending actions it saw."""

    def __init__(self):
        self.saw_pending = None

    def run_turn(self, state):
        self.saw_pending = [a.status for a in state.data.pending_actions]
        return [TurnEvent(event_type="deal.trade.ai", turn=state.turn, country_id="gamma")]


def processor(seed=1):
    return TurnProcessor(combat_resolver=CombatResolver(random.Random(seed)))


def attack(state, percent=50, city_id="beta-port"):
    return AttackAction(
        game_id=state.game_id,
        country_id="alpha",
        turn=state.turn,
        target_city_id=city_id,
        target_country_id="beta",
        allocation_percent=percent,
    )


def research(state, country_id="alpha"):
    return ResearchAction(game_id=state.game_id, country_id=country_id, turn=state.turn)


class TestTurnOrdering:
    """Tests for the order of turn phases."""

    @pytest.mark.asyncio
    async def test_attacks_resolve_after_other_actions(self, sample_game_state):
        state = sample_game_state
        strike = attack(state)
        study = research(state)
        state.set_pending_actions([strike, study])

        result = await processor().process_turn(state, DefenseAI())

        assert [r.action.id for r in result.results] == [study.id, strike.id]
        assert result.executed_count == 2
        assert len(result.combats) == 1

    @pytest.mark.asyncio
    async def test_event_order(self, sample_game_state):
        state = sample_game_state
        deal = Deal(
            game_id=state.game_id,
            proposing_country_id="alpha",
            receiving_country_id="beta",
            deal_type=DealType.TRADE,
            deal_terms=DealTerms(
                proposer_commitments=[DealCommitment(type=CommitmentType.BUDGET_TRANSFER, amount=100)],
            ),
            status=DealStatus.ACTIVE,
            turn_created=1,
        )
        state.set_active_deals([deal])
        state.set_pending_actions([research(state)])

        result = await processor().process_turn(state, DefenseAI())

        assert [e.event_type for e in result.events] == [
            "deal.trade.tick",
            "action.executed",
            "economy.collected",
            "economy.collected",
            "economy.collected",
        ]

    @pytest.mark.asyncio
    async def test_failed_actions_reported_not_raised(self, sample_game_state):
        state = sample_game_state
        state.set_pending_actions([RecruitAction(game_id=state.game_id, country_id="gamma", turn=1, amount=100)])

        result = await processor().process_turn(state, DefenseAI())

        assert result.failed_count == 1
        assert result.events[0].event_type == "action.failed"
        assert state.data.pending_actions[0].status == ActionStatus.FAILED

    @pytest.mark.asyncio
    async def test_resolved_actions_not_reprocessed(self, sample_game_state):
        state = sample_game_state
        state.set_pending_actions([research(state).with_status(ActionStatus.EXECUTED)])
        result = await processor().process_turn(state, DefenseAI())
        assert result.results == []

    @pytest.mark.asyncio
    async def test_turn_counter_not_advanced(self, sample_game_state):
        await processor().process_turn(sample_game_state, DefenseAI())
        assert sample_game_state.turn == 1


class TestTradingPhase:
    """Tests for the optional AI trading phase."""

    @pytest.mark.asyncio
    async def test_trading_runs_after_deals_before_actions(self, sample_game_state):
        state = sample_game_state
        deal = Deal(
            game_id=state.game_id,
            proposing_country_id="alpha",
            receiving_country_id="beta",
            deal_type=DealType.TRADE,
            status=DealStatus.ACTIVE,
            turn_created=1,
        )
        state.set_active_deals([deal])
        state.set_pending_actions([research(state)])
        trading = StubTradePhase()

        result = await TurnProcessor(apply_economy=False, trade_planner=trading).process_turn(state, DefenseAI())

        assert [e.event_type for e in result.events] == ["deal.trade.tick", "deal.trade.ai", "action.executed"]
        assert trading.saw_pending == [ActionStatus.PENDING]

    @pytest.mark.asyncio
    async def test_trading_turn_replays(self, sample_game_state):
        state = sample_game_state
        state.set_pending_actions([research(state, "gamma")])
        turn_processor = TurnProcessor(combat_resolver=CombatResolver(random.Random(5)), trade_planner=TradePlanner())

        result = await turn_processor.process_turn(state, DefenseAI())

        assert any(e.event_type == "deal.black_market.ai" for e in result.events)
        replayed = GameState.replay(state.initial_snapshot, state.mutation_log)
        assert replayed.to_dict() == state.to_dict()


class TestEconomyPhase:
    """Tests for end-of-turn collection."""

    @pytest.mark.asyncio
    async def test_every_country_collects(self, sample_game_state):
        state = sample_game_state
        before = {c.id: state.stats_for(c.id).budget for c in state.countries}

        result = await processor().process_turn(state, DefenseAI())

        collected = [e for e in result.events if e.event_type == "economy.collected"]
        assert [e.country_id for e in collected] == ["alpha", "beta", "gamma"]
        for event in collected:
            assert event.data["budget_before"] == before[event.country_id]
            assert state.stats_for(event.country_id).budget == event.data["budget_after"]

    @pytest.mark.asyncio
    async def test_economy_can_be_disabled(self, sample_game_state):
        state = sample_game_state
        before = state.to_dict()["country_stats"]
        turn_processor = TurnProcessor(apply_economy=False)
        await turn_processor.process_turn(state, DefenseAI())
        assert state.to_dict()["country_stats"] == before


class TestCombatPhase:
    """Tests for queued attacks fought at turn end."""

    @pytest.mark.asyncio
    async def test_combat_clears_attack_flag(self, sample_game_state):
        state = sample_game_state
        state.set_pending_actions([attack(state, percent=60)])

        result = await processor(seed=7).process_turn(state, DefenseAI())

        report = result.combats[0]
        assert report.attacker_allocated == 60
        assert report.city_id == "beta-port"
        assert not state.get_city("beta-port").is_under_attack
        expected_owner = "alpha" if report.city_captured else "beta"
        assert state.get_city("beta-port").country_id == expected_owner

    @pytest.mark.asyncio
    async def test_defender_decides_from_totals_only(self, sample_game_state):
        defense = RecordingDefense()
        state = sample_game_state
        state.set_pending_actions([attack(state, percent=45)])

        await processor().process_turn(state, defense)

        defender_stats, city, attacker, attacker_stats = defense.calls[0]
        assert defender_stats.country_id == "beta"
        assert city.id == "beta-port"
        assert attacker.id == "alpha"
        assert attacker_stats.military_strength == 100

    @pytest.mark.asyncio
    async def test_defense_independent_of_attack_allocation(self, countries, sample_stats, cities):
        """A small and a large attack on the same city draw the same defense."""
        percents = []
        for allocation in (30, 90):
            state = GameState(game_id="g", turn=1, countries=countries, country_stats=sample_stats, cities=cities)
            state.set_pending_actions([attack(state, percent=allocation)])
            defense = RecordingDefense()
            await processor().process_turn(state, defense)
            percents.append(defense.percents[0])
        assert percents[0] == percents[1]


class TestReplay:
    """Tests for reproducing a processed turn from its mutation log."""

    @pytest.mark.asyncio
    async def test_replay_after_full_turn(self, sample_game_state):
        state = sample_game_state
        state.set_pending_actions([research(state), research(state, "beta"), attack(state, percent=40)])

        await processor(seed=3).process_turn(state, DefenseAI())
        state.advance_turn("turn complete")

        replayed = GameState.replay(state.initial_snapshot, state.mutation_log)
        assert replayed.to_dict() == state.to_dict()
