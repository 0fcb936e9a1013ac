"""Unit tests for the strategic planner, the rule advisors and AIController.

Tests cover:
1. Focus selection (rules and LLM override)
2. Economic, military and diplomacy advisors
3. Plan action cap, ban filtering and kind dedupe
4. Concurrent decisions merged in board order
"""

import pytest

from realpolitik.ai.analysis import analyze_economic_situation
from realpolitik.ai.controller import AIController
from realpolitik.ai.diplomacy import DiplomacyAI
from realpolitik.ai.economic import EconomicAI
from realpolitik.ai.military import ATTACK_ALLOCATION_PERCENT, MilitaryAI
from realpolitik.ai.personality import AIPersonality, random_personality
from realpolitik.ai.plan import PlanExecution, PlanStep, StrategicAnalysis
from realpolitik.ai.planner import StrategicIntent, StrategicPlanner
from realpolitik.engine.resolver import ResolutionResult
from realpolitik.models import (
    ActionSource,
    ActionStatus,
    AttackAction,
    DiplomacyAction,
    DiplomacyGesture,
    RecruitAction,
    ResearchAction,
)

AGGRESSIVE = AIPersonality(aggression=0.9, cooperativeness=0.1)
COOPERATIVE = AIPersonality(aggression=0.1, cooperativeness=0.9)


def weaken(state, country_id, military_strength):
    state.with_updated_stats(country_id, state.stats_for(country_id).updated(military_strength=military_strength))


def intent_for(state, country_id, focus, analysis=None):
    return StrategicIntent(
        focus=focus,
        rationale="test",
        economic=analyze_economic_situation(state, country_id),
        analysis=analysis,
    )


def executable(step_id, action_type, priority=None, **data):
    return PlanStep(
        id=step_id,
        instruction=f"Execute {step_id}",
        execution=PlanExecution(action_type=action_type, action_data=data),
        priority=priority,
    )


# =============================================================================
# Planner
# =============================================================================


class TestStrategicPlanner:
    """Tests for focus selection."""

    def test_under_defended_country_focuses_military(self, sample_game_state):
        weaken(sample_game_state, "alpha", 10)
        intent = StrategicPlanner().plan(sample_game_state, "alpha")
        assert intent.focus == "military"
        assert not intent.from_llm

    def test_low_budget_focuses_economy(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(budget=500))
        assert StrategicPlanner().plan(state, "alpha").focus == "economy"

    def test_llm_analysis_overrides_rules(self, sample_game_state):
        weaken(sample_game_state, "alpha", 10)
        analysis = StrategicAnalysis(focus="diplomacy", rationale="Make friends first", turn_analyzed=2)

        intent = StrategicPlanner().plan(sample_game_state, "alpha", analysis)

        assert intent.focus == "diplomacy"
        assert intent.rationale == "[LLM T2] Make friends first"
        assert intent.from_llm

    def test_random_personality_is_seeded(self):
        assert random_personality("s:alpha") == random_personality("s:alpha")
        assert 0.5 <= random_personality(7).honesty <= 1.0


# =============================================================================
# Advisors
# =============================================================================


class TestEconomicAI:
    def test_at_most_one_investment(self, sample_game_state):
        actions = EconomicAI().decide_actions(sample_game_state, "alpha", intent_for(sample_game_state, "alpha", "economy"))
        assert len(actions) <= 1
        assert all(a.source == ActionSource.AI for a in actions)

    def test_rich_low_tech_country_researches(self, sample_game_state):
        actions = EconomicAI().decide_actions(sample_game_state, "alpha", intent_for(sample_game_state, "alpha", "research"))
        assert len(actions) == 1
        assert isinstance(actions[0], ResearchAction)
        assert actions[0].target_level == 2

    def test_unknown_country(self, sample_game_state):
        intent = intent_for(sample_game_state, "alpha", "economy")
        assert EconomicAI().decide_actions(sample_game_state, "nobody", intent) == []


class TestMilitaryAI:
    """Tests for recruitment and attack selection."""

    def test_under_defended_recruits(self, sample_game_state):
        weaken(sample_game_state, "alpha", 10)
        actions = MilitaryAI().decide_actions(sample_game_state, "alpha", intent_for(sample_game_state, "alpha", "military"))
        recruits = [a for a in actions if isinstance(a, RecruitAction)]
        assert len(recruits) == 1
        assert recruits[0].amount % 5 == 0

    def test_aggressive_strong_country_attacks_best_city(self, sample_game_state):
        weaken(sample_game_state, "beta", 40)
        intent = intent_for(sample_game_state, "alpha", "military")

        actions = MilitaryAI(AGGRESSIVE).decide_actions(sample_game_state, "alpha", intent)

        attacks = [a for a in actions if isinstance(a, AttackAction)]
        assert len(attacks) == 1
        assert attacks[0].target_city_id == "beta-port"
        assert attacks[0].target_country_id == "beta"
        assert attacks[0].allocation_percent == ATTACK_ALLOCATION_PERCENT

    def test_city_under_attack_skipped(self, sample_game_state):
        state = sample_game_state
        weaken(state, "beta", 40)
        state.update_city(state.get_city("beta-port").model_copy(update={"is_under_attack": True}))
        actions = MilitaryAI(AGGRESSIVE).decide_actions(state, "alpha", intent_for(state, "alpha", "military"))
        assert [a.target_city_id for a in actions if isinstance(a, AttackAction)] == ["beta-mine"]

    def test_no_attack_on_comparable_neighbor(self, sample_game_state):
        actions = MilitaryAI(AGGRESSIVE).decide_actions(
            sample_game_state, "alpha", intent_for(sample_game_state, "alpha", "military")
        )
        assert not any(isinstance(a, AttackAction) for a in actions)

    def test_peaceful_leader_never_attacks(self, sample_game_state):
        weaken(sample_game_state, "beta", 40)
        actions = MilitaryAI(COOPERATIVE).decide_actions(
            sample_game_state, "alpha", intent_for(sample_game_state, "alpha", "military")
        )
        assert not any(isinstance(a, AttackAction) for a in actions)


class TestDiplomacyAI:
    """Tests for gestures and denunciations."""

    def test_cooperative_improves_weakest_relation(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(diplomatic_relations={"gamma": 20}))

        actions = DiplomacyAI(COOPERATIVE).decide_actions(state, "alpha", intent_for(state, "alpha", "balanced"))

        assert len(actions) == 1
        assert actions[0].target_country_id == "gamma"
        assert actions[0].gesture == DiplomacyGesture.IMPROVE_RELATIONS

    def test_aggressive_denounces_hostile(self, sample_game_state):
        analysis = StrategicAnalysis(focus="military", diplomatic_stance={"beta": "hostile"})
        intent = intent_for(sample_game_state, "alpha", "military", analysis)

        actions = DiplomacyAI(AGGRESSIVE).decide_actions(sample_game_state, "alpha", intent)

        assert len(actions) == 1
        assert actions[0].gesture == DiplomacyGesture.DENOUNCE
        assert actions[0].target_country_id == "beta"

    def test_poor_country_makes_no_gesture(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(budget=100))
        assert DiplomacyAI(COOPERATIVE).decide_actions(state, "alpha", intent_for(state, "alpha", "diplomacy")) == []


# =============================================================================
# Controller
# =============================================================================


@pytest.fixture
def three_step_plan():
    return StrategicAnalysis(
        focus="balanced",
        steps=(
            executable("tech", "research", priority=1, targetLevel=3),
            executable("army", "military", priority=2, subType="recruit", amount=10),
            executable("talk", "diplomacy", priority=3, targetCountryId="beta"),
        ),
        turn_analyzed=1,
    )


class TestAIController:
    """Tests for combining plan and rule actions."""

    @pytest.mark.asyncio
    async def test_plan_actions_capped_at_two(self, sample_game_state, three_step_plan):
        actions = await AIController().decide_turn_actions(sample_game_state, "alpha", three_step_plan)
        plan_ids = [a.plan_step_id for a in actions if a.plan_step_id is not None]
        assert plan_ids == ["tech", "army"]

    @pytest.mark.asyncio
    async def test_cap_from_environment(self, sample_game_state, three_step_plan, monkeypatch):
        monkeypatch.setenv("REALPOLITIK_LLM_PLAN_ACTION_CAP", "1")
        actions = await AIController().decide_turn_actions(sample_game_state, "alpha", three_step_plan)
        assert [a.plan_step_id for a in actions if a.plan_step_id is not None] == ["tech"]

    @pytest.mark.asyncio
    async def test_rule_actions_skip_kinds_the_plan_covers(self, sample_game_state, three_step_plan):
        actions = await AIController().decide_turn_actions(sample_game_state, "alpha", three_step_plan)
        kinds = [a.kind for a in actions]
        assert len(kinds) == len(set(kinds))

    @pytest.mark.asyncio
    async def test_ban_suppresses_rule_recruitment(self, sample_game_state):
        weaken(sample_game_state, "alpha", 10)
        controller = AIController()

        unplanned = await controller.decide_turn_actions(sample_game_state, "alpha")
        assert any(isinstance(a, RecruitAction) for a in unplanned)

        analysis = StrategicAnalysis(
            focus="military",
            steps=(PlanStep(id="hold", instruction="Do not recruit any military for now"),),
        )
        planned = await controller.decide_turn_actions(sample_game_state, "alpha", analysis)
        assert not any(isinstance(a, RecruitAction) for a in planned)

    @pytest.mark.asyncio
    async def test_decide_all_in_board_order(self, sample_game_state):
        decisions = await AIController().decide_all(sample_game_state)
        assert [cid for cid, _ in decisions] == ["alpha", "beta", "gamma"]
        for cid, actions in decisions:
            assert all(a.country_id == cid for a in actions)

    def test_submit_drops_resolved_actions(self, sample_game_state):
        state = sample_game_state
        done = ResearchAction(game_id=state.game_id, country_id="alpha", turn=1).with_status(ActionStatus.EXECUTED)
        waiting = ResearchAction(game_id=state.game_id, country_id="beta", turn=1)
        state.set_pending_actions([done, waiting])
        new = DiplomacyAction(game_id=state.game_id, country_id="gamma", turn=1, target_country_id="beta")

        merged = AIController.submit(state, [("gamma", [new])])

        assert [a.id for a in merged] == [waiting.id, new.id]
        assert [a.id for a in state.data.pending_actions] == [waiting.id, new.id]

    def test_record_results_marks_executed_steps(self):
        controller = AIController()
        executed = ResearchAction(game_id="g", country_id="alpha", turn=1, plan_step_id="tech")
        failed = ResearchAction(game_id="g", country_id="alpha", turn=1, plan_step_id="tech2")
        controller.record_results(
            [
                ResolutionResult(status=ActionStatus.EXECUTED, action=executed),
                ResolutionResult(status=ActionStatus.FAILED, action=failed, reason="Insufficient budget"),
            ]
        )
        assert controller.executed_steps("alpha") == {"tech"}

    def test_random_personalities_per_country(self):
        controller = AIController.with_random_personalities(["alpha", "beta"], seed=1)
        assert controller.personality_for("alpha") == random_personality("1:alpha")
        assert controller.personality_for("zeta") == controller.personality
