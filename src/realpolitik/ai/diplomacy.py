"""Diplomacy advisor: relation-building gestures and denunciations."""

from __future__ import annotations

import logging

from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality
from realpolitik.ai.planner import StrategicIntent
from realpolitik.models.actions import ActionSource, DiplomacyAction, DiplomacyGesture, GameAction
from realpolitik.models.state import GameState
from realpolitik.parameters import DIPLOMACY_GESTURE_COST

logger = logging.getLogger(__name__)

GESTURE_RELATION_CEILING = 60
GESTURE_BUDGET_MULTIPLE = 3


class DiplomacyAI:
    """Emits at most one diplomacy action per turn.

    Cooperative leaders (or a diplomacy focus) improve their weakest
    relation below 60. Aggressive leaders denounce a country an LLM plan
    marked hostile.
    """

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
        common = {"game_id": state.game_id, "country_id": country_id, "turn": state.turn, "source": ActionSource.AI}
        others = [c.id for c in state.countries if c.id != country_id and state.stats_for(c.id) is not None]

        if intent.focus == "diplomacy" or personality.cooperativeness >= 0.7:
            if stats.budget >= DIPLOMACY_GESTURE_COST * GESTURE_BUDGET_MULTIPLE:
                candidates = [cid for cid in others if stats.relation_to(cid) < GESTURE_RELATION_CEILING]
                if candidates:
                    target = min(candidates, key=stats.relation_to)
                    logger.debug(f"{country_id}: improving relations with {target} ({stats.relation_to(target)})")
                    return [DiplomacyAction(target_country_id=target, **common)]

        if intent.analysis is not None and personality.aggression >= 0.7:
            for target, stance in intent.analysis.diplomatic_stance.items():
                if stance == "hostile" and target in others:
                    logger.debug(f"{country_id}: denouncing {target}")
                    return [DiplomacyAction(target_country_id=target, gesture=DiplomacyGesture.DENOUNCE, **common)]
        return []
