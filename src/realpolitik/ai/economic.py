"""Economic advisor: research and infrastructure investment."""

from __future__ import annotations

import logging

from realpolitik.ai.analysis import (
    calculate_decision_weights,
    should_invest_in_infrastructure,
    should_invest_in_research,
)
from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality
from realpolitik.ai.planner import StrategicIntent
from realpolitik.models.actions import ActionSource, GameAction, InfrastructureAction, ResearchAction
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)

# Risk tolerance shift per focus; more tolerance means more long-term investment
FOCUS_RISK_ADJUSTMENT = {
    "economy": 0.2,
    "research": 0.3,
    "military": -0.2,
}


class EconomicAI:
    """Emits at most one investment action (research or infrastructure) per turn."""

    def __init__(self, personality: AIPersonality = DEFAULT_PERSONALITY):
        self.personality = personality

    def decide_actions(
        self,
        state: GameState,
        country_id: str,
        intent: StrategicIntent,
        personality: AIPersonality | None = None,
    ) -> list[GameAction]:
        stats = state.stats_for(country_id)
        if stats is None:
            return []
        personality = personality or self.personality
        shift = FOCUS_RISK_ADJUSTMENT.get(intent.focus, 0.0)
        if shift:
            personality = personality.adjusted(risk_tolerance=personality.risk_tolerance + shift)

        economic = intent.economic
        weights = calculate_decision_weights(economic, personality, stats.resource_profile)
        common = {"game_id": state.game_id, "country_id": country_id, "turn": state.turn, "source": ActionSource.AI}

        if should_invest_in_research(stats, economic, weights):
            logger.debug(f"{country_id}: research (ROI {economic.research_roi}, priority {weights.research_priority:.2f})")
            return [ResearchAction(target_level=stats.technology_level + 1, **common)]
        if should_invest_in_infrastructure(stats, economic, weights):
            logger.debug(
                f"{country_id}: infrastructure (ROI {economic.infrastructure_roi}, "
                f"priority {weights.infrastructure_priority:.2f})"
            )
            return [InfrastructureAction(target_level=stats.infrastructure_level + 1, **common)]
        return []
