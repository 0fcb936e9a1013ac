"""AI turn controller: turns plans and rules into actions for AI countries.

Per country and turn:
    1. StrategicPlanner picks a focus (the LLM plan's focus when one is active)
    2. Runnable plan steps become actions, capped per turn
    3. Economic, military and diplomacy advisors add rule-based actions,
       minus anything the plan bans and any kind the plan already covered

Decisions for different countries are computed concurrently and merged into
the state sequentially, in board order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping

from realpolitik.ai.diplomacy import DiplomacyAI
from realpolitik.ai.economic import EconomicAI
from realpolitik.ai.military import MilitaryAI
from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality, random_personality
from realpolitik.ai.plan import StrategicAnalysis, bans_for, select_plan_actions
from realpolitik.ai.planner import StrategicPlanner
from realpolitik.config import get_plan_action_cap, is_plan_debug
from realpolitik.engine.resolver import ResolutionResult
from realpolitik.models.actions import GameAction
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


class AIController:
    """Decides the actions of every AI country.

    Args:
        personality: Personality for countries without their own
        personalities: Country id -> personality overrides
    """

    def __init__(
        self,
        personality: AIPersonality = DEFAULT_PERSONALITY,
        personalities: Mapping[str, AIPersonality] | None = None,
    ):
        self.personality = personality
        self.personalities: dict[str, AIPersonality] = dict(personalities or {})
        self.planner = StrategicPlanner(personality)
        self.advisors = (EconomicAI(personality), MilitaryAI(personality), DiplomacyAI(personality))
        self._executed_steps: dict[str, set[str]] = {}

    @classmethod
    def with_random_personalities(cls, country_ids: Iterable[str], seed: int | str | None = None) -> AIController:
        """Controller whose countries each get a personality drawn from ``seed``."""
        return cls(personalities={cid: random_personality(f"{seed}:{cid}") for cid in country_ids})

    def personality_for(self, country_id: str) -> AIPersonality:
        return self.personalities.get(country_id, self.personality)

    def executed_steps(self, country_id: str) -> set[str]:
        return self._executed_steps.setdefault(country_id, set())

    async def decide_turn_actions(
        self,
        state: GameState,
        country_id: str,
        analysis: StrategicAnalysis | None = None,
    ) -> list[GameAction]:
        if state.stats_for(country_id) is None:
            return []
        personality = self.personality_for(country_id)
        intent = self.planner.plan(state, country_id, analysis, personality=personality)

        plan_actions: list[GameAction] = []
        if analysis is not None:
            plan_actions = select_plan_actions(analysis, state, country_id, self.executed_steps(country_id))
            cap = get_plan_action_cap()
            if len(plan_actions) > cap:
                logger.debug(f"{country_id}: capping {len(plan_actions)} plan actions to {cap}")
                plan_actions = plan_actions[:cap]

        bans = bans_for(analysis)
        covered = {a.kind for a in plan_actions}
        rule_actions: list[GameAction] = []
        for advisor in self.advisors:
            for action in advisor.decide_actions(state, country_id, intent, personality=personality):
                if action.kind in covered:
                    continue
                if bans.blocks(action):
                    logger.debug(f"{country_id}: {action.kind} suppressed by plan ({', '.join(bans.reasons)})")
                    continue
                rule_actions.append(action)

        if is_plan_debug() and analysis is not None:
            logger.info(
                f"[LLM Plan Debug] {country_id} T{state.turn} focus={intent.focus} "
                f"plan_actions={[a.plan_step_id for a in plan_actions]} "
                f"rule_actions={[a.kind for a in rule_actions]} bans={list(bans.reasons)}"
            )

        logger.debug(f"{country_id} T{state.turn}: {intent.focus} -> {len(plan_actions) + len(rule_actions)} actions")
        return plan_actions + rule_actions

    async def decide_all(
        self,
        state: GameState,
        analyses: Mapping[str, StrategicAnalysis] | None = None,
        country_ids: list[str] | None = None,
    ) -> list[tuple[str, list[GameAction]]]:
        """Decide for all AI countries concurrently.

        Returns:
            (country id, actions) pairs in board order.
        """
        analyses = analyses or {}
        country_ids = country_ids if country_ids is not None else state.ai_country_ids()
        decisions = await asyncio.gather(
            *(self.decide_turn_actions(state, cid, analyses.get(cid)) for cid in country_ids)
        )
        return list(zip(country_ids, decisions))

    @staticmethod
    def submit(state: GameState, decisions: Iterable[tuple[str, list[GameAction]]]) -> list[GameAction]:
        """Replace resolved pending actions with still-pending ones plus the decided actions."""
        merged = [a for a in state.data.pending_actions if not a.is_terminal]
        for _, actions in decisions:
            merged.extend(actions)
        state.set_pending_actions(merged, "ai decisions")
        return merged

    def record_results(self, results: Iterable[ResolutionResult]) -> None:
        """Mark plan steps whose actions executed so one-shot steps do not repeat."""
        for result in results:
            action = result.action
            if result.executed and action.plan_step_id is not None:
                self.executed_steps(action.country_id).add(action.plan_step_id)
