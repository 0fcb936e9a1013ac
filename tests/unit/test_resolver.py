"""Unit tests for ActionResolver.

Tests cover:
1. Research, infrastructure and recruitment (effects and cost)
2. Affordability failures returned as data
3. Player/AI parity
4. Attacks: validation, payment, queueing and live resolution
5. Diplomacy gestures
"""

import random
from typing import Literal
from unittest.mock import MagicMock

import pytest

from realpolitik.ai.defense import rule_allocation
from realpolitik.engine.military import CombatResolver
from realpolitik.engine.pricing import (
    calculate_infrastructure_pricing,
    calculate_recruitment_pricing,
    calculate_research_pricing,
)
from realpolitik.engine.resolver import ActionResolver
from realpolitik.models import (
    ActionSource,
    ActionStatus,
    AttackAction,
    BaseAction,
    DiplomacyAction,
    DiplomacyGesture,
    GameState,
    InfrastructureAction,
    RecruitAction,
    ResearchAction,
)


def attack(state, country_id="alpha", city_id="beta-port", target="beta", percent=50, **kwargs):
    return AttackAction(
        game_id=state.game_id,
        country_id=country_id,
        turn=state.turn,
        target_city_id=city_id,
        target_country_id=target,
        allocation_percent=percent,
        **kwargs,
    )


# =============================================================================
# Economic actions
# =============================================================================


class TestEconomicActions:
    """Tests for research, infrastructure and recruitment."""

    def test_research_raises_level_and_charges(self, sample_game_state):
        state = sample_game_state
        before = state.stats_for("alpha")
        expected_cost = calculate_research_pricing(before).cost

        result = ActionResolver().resolve(state, ResearchAction(game_id=state.game_id, country_id="alpha", turn=1))

        assert result.executed
        assert result.pricing.cost == expected_cost
        after = state.stats_for("alpha")
        assert after.technology_level == before.technology_level + 1
        assert after.budget == before.budget - expected_cost

    def test_infrastructure(self, sample_game_state):
        state = sample_game_state
        before = state.stats_for("beta")
        cost = calculate_infrastructure_pricing(before).cost
        result = ActionResolver().resolve(state, InfrastructureAction(game_id=state.game_id, country_id="beta", turn=1))
        assert result.executed
        assert state.stats_for("beta").infrastructure_level == before.infrastructure_level + 1
        assert state.stats_for("beta").budget == before.budget - cost

    def test_recruitment(self, sample_game_state):
        state = sample_game_state
        before = state.stats_for("alpha")
        cost = calculate_recruitment_pricing(25, before).cost
        result = ActionResolver().resolve(state, RecruitAction(game_id=state.game_id, country_id="alpha", turn=1, amount=25))
        assert result.executed
        assert state.stats_for("alpha").military_strength == before.military_strength + 25
        assert state.stats_for("alpha").budget == before.budget - cost

    def test_insufficient_budget_fails_without_changes(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("gamma", state.stats_for("gamma").updated(budget=10))
        before = state.stats_for("gamma")

        result = ActionResolver().resolve(state, ResearchAction(game_id=state.game_id, country_id="gamma", turn=1))

        assert result.status == ActionStatus.FAILED
        assert result.action.status == ActionStatus.FAILED
        assert "Insufficient budget" in result.reason
        assert state.stats_for("gamma") == before

    def test_shortage_does_not_block(self, sample_game_state):
        """Gamma has no materials but enough budget for the penalized price."""
        state = sample_game_state
        pricing = calculate_research_pricing(state.stats_for("gamma"))
        assert not pricing.resource_cost.can_afford

        result = ActionResolver().resolve(state, ResearchAction(game_id=state.game_id, country_id="gamma", turn=1))

        assert result.executed
        assert state.stats_for("gamma").budget == 2_000 - pricing.cost
        assert state.stats_for("gamma").resources == {}

    def test_pending_action_status_updated(self, sample_game_state):
        state = sample_game_state
        action = ResearchAction(game_id=state.game_id, country_id="alpha", turn=1)
        state.set_pending_actions([action])
        ActionResolver().resolve(state, action)
        assert state.data.pending_actions[0].status == ActionStatus.EXECUTED

    def test_unhandled_variant_raises(self, sample_game_state):
        class SurrenderAction(BaseAction):
            kind: Literal["surrender"] = "surrender"

        with pytest.raises(ValueError):
            ActionResolver().resolve(sample_game_state, SurrenderAction(game_id="game-1", country_id="alpha", turn=1))


class TestParity:
    """Identical player and AI actions produce identical outcomes."""

    @pytest.mark.parametrize("action_cls", [ResearchAction, InfrastructureAction, RecruitAction])
    def test_player_and_ai_match(self, countries, sample_stats, cities, action_cls):
        outcomes = []
        for source in (ActionSource.PLAYER, ActionSource.AI):
            state = GameState(game_id="g", turn=1, countries=countries, country_stats=sample_stats, cities=cities)
            action = action_cls(game_id="g", country_id="beta", turn=1, source=source)
            result = ActionResolver().resolve(state, action)
            outcomes.append((result.status, result.pricing, state.stats_for("beta")))
        assert outcomes[0] == outcomes[1]

    @pytest.mark.parametrize("action_cls", [ResearchAction, InfrastructureAction, RecruitAction])
    def test_shortage_priced_identically(self, countries, sample_stats, cities, action_cls):
        """Gamma holds no materials, so both sources pay the same penalized price."""
        outcomes = []
        for source in (ActionSource.PLAYER, ActionSource.AI):
            state = GameState(game_id="g", turn=1, countries=countries, country_stats=sample_stats, cities=cities)
            before = state.stats_for("gamma")
            action = action_cls(game_id="g", country_id="gamma", turn=1, source=source)

            result = ActionResolver().resolve(state, action)

            after = state.stats_for("gamma")
            assert result.status == ActionStatus.EXECUTED
            assert result.pricing.penalty_multiplier > 1
            assert after.resources == before.resources == {}
            assert after.budget == before.budget - result.pricing.cost
            assert after.budget < before.budget
            outcomes.append((result.pricing, after))
        assert outcomes[0] == outcomes[1]


# =============================================================================
# Attacks
# =============================================================================


class TestAttackResolution:
    """Tests for attack validation, payment and queueing."""

    def test_attack_is_paid_and_queued(self, sample_game_state):
        state = sample_game_state
        before = state.stats_for("alpha")

        result = ActionResolver().resolve(state, attack(state, percent=50))

        assert result.executed
        assert result.queued_attack is not None
        assert result.queued_attack.attacker_allocated == 50
        after = state.stats_for("alpha")
        assert after.budget == before.budget - (100 + 10 * 50)
        assert after.relation_to("beta") == before.relation_to("beta") - 10
        assert state.get_city("beta-port").is_under_attack
        assert state.stats_for("alpha").military_strength == before.military_strength

    def test_cannot_attack_own_city(self, sample_game_state):
        state = sample_game_state
        result = ActionResolver().resolve(state, attack(state, city_id="alpha-capital", target="alpha"))
        assert result.status == ActionStatus.FAILED

    def test_wrong_owner_fails(self, sample_game_state):
        state = sample_game_state
        result = ActionResolver().resolve(state, attack(state, city_id="gamma-town", target="beta"))
        assert result.status == ActionStatus.FAILED
        assert "not held" in result.reason

    def test_unknown_city_fails(self, sample_game_state):
        state = sample_game_state
        result = ActionResolver().resolve(state, attack(state, city_id="atlantis"))
        assert result.status == ActionStatus.FAILED

    def test_unaffordable_attack_fails(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(budget=500))
        result = ActionResolver().resolve(state, attack(state, percent=100))
        assert result.status == ActionStatus.FAILED
        assert state.stats_for("alpha").budget == 500
        assert not state.get_city("beta-port").is_under_attack

    def test_no_army_fails(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(military_strength=0))
        result = ActionResolver().resolve(state, attack(state))
        assert result.status == ActionStatus.FAILED

    def test_live_attack_with_allocator(self, sample_game_state):
        """Live attacks fight immediately; the allocator never sees the attack percentage."""
        state = sample_game_state
        allocator = MagicMock(side_effect=rule_allocation)
        resolver = ActionResolver(combat_resolver=CombatResolver(random.Random(3)), defense_allocator=allocator)

        result = resolver.resolve(state, attack(state, percent=40, is_live_resolution=True))

        assert result.executed
        assert result.combat is not None
        assert result.queued_attack is None
        defender_stats, city, attacker, attacker_stats = allocator.call_args.args
        assert defender_stats.country_id == "beta"
        assert city.id == "beta-port"
        assert attacker.id == "alpha"
        assert attacker_stats.country_id == "alpha"

    def test_live_attack_without_allocator_is_queued(self, sample_game_state):
        state = sample_game_state
        result = ActionResolver().resolve(state, attack(state, is_live_resolution=True))
        assert result.queued_attack is not None
        assert result.combat is None


# =============================================================================
# Diplomacy
# =============================================================================


class TestDiplomacyResolution:
    """Tests for diplomatic gestures."""

    def test_improve_relations(self, sample_game_state):
        state = sample_game_state
        action = DiplomacyAction(game_id=state.game_id, country_id="alpha", turn=1, target_country_id="beta")
        result = ActionResolver().resolve(state, action)
        assert result.executed
        assert state.stats_for("alpha").budget == 10_000 - 150
        assert state.stats_for("alpha").relation_to("beta") == 55
        assert state.stats_for("beta").relation_to("alpha") == 55

    def test_denounce_is_free(self, sample_game_state):
        state = sample_game_state
        action = DiplomacyAction(
            game_id=state.game_id,
            country_id="alpha",
            turn=1,
            target_country_id="beta",
            gesture=DiplomacyGesture.DENOUNCE,
        )
        ActionResolver().resolve(state, action)
        assert state.stats_for("alpha").budget == 10_000
        assert state.stats_for("beta").relation_to("alpha") == 40

    def test_self_target_fails(self, sample_game_state):
        state = sample_game_state
        action = DiplomacyAction(game_id=state.game_id, country_id="alpha", turn=1, target_country_id="alpha")
        assert ActionResolver().resolve(state, action).status == ActionStatus.FAILED

    def test_gesture_needs_budget(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("gamma", state.stats_for("gamma").updated(budget=100))
        action = DiplomacyAction(game_id=state.game_id, country_id="gamma", turn=1, target_country_id="beta")
        result = ActionResolver().resolve(state, action)
        assert result.status == ActionStatus.FAILED
        assert state.stats_for("beta").relation_to("gamma") == 50
