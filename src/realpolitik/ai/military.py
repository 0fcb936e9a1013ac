"""Military advisor: recruitment and opportunistic attacks.

Attacks are only considered when the country is safe at home and its
effective strength at least doubles the defender's. Target choice is the
most valuable city among neighboring enemies.
"""

from __future__ import annotations

import logging

from realpolitik.ai.analysis import (
    calculate_decision_weights,
    decide_military_recruitment,
    get_neighbor_ids,
)
from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality
from realpolitik.ai.planner import StrategicIntent
from realpolitik.engine.military import allocated_strength_from_percent, calculate_effective_military_strength
from realpolitik.engine.pricing import calculate_attack_pricing, can_afford_attack
from realpolitik.models.actions import ActionSource, AttackAction, GameAction, RecruitAction
from realpolitik.models.country import calculate_city_value
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)

ATTACK_ALLOCATION_PERCENT = 60
ATTACK_MIN_AGGRESSION = 0.6
ATTACK_MIN_STRENGTH_RATIO = 2.0
ATTACK_MAX_RELATION = 70


class MilitaryAI:
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
        economic = intent.economic
        weights = calculate_decision_weights(economic, personality, stats.resource_profile)
        common = {"game_id": state.game_id, "country_id": country_id, "turn": state.turn, "source": ActionSource.AI}

        actions: list[GameAction] = []
        amount = decide_military_recruitment(stats, economic, weights)
        if amount > 0:
            logger.debug(f"{country_id}: recruit {amount} (deficit {economic.military_deficit:.0f})")
            actions.append(RecruitAction(amount=amount, **common))

        if (
            intent.focus == "military"
            and personality.aggression >= ATTACK_MIN_AGGRESSION
            and not economic.is_under_defended
        ):
            attack = self._choose_attack(state, country_id, common)
            if attack is not None:
                actions.append(attack)
        return actions

    def _choose_attack(self, state: GameState, country_id: str, common: dict) -> AttackAction | None:
        stats = state.stats_for(country_id)
        allocated = allocated_strength_from_percent(stats, ATTACK_ALLOCATION_PERCENT)
        if allocated <= 0 or not can_afford_attack(calculate_attack_pricing(allocated), stats.budget):
            return None

        our_effective = calculate_effective_military_strength(stats)
        best = None
        best_value = -1
        for enemy_id in get_neighbor_ids(state, country_id):
            if stats.relation_to(enemy_id) >= ATTACK_MAX_RELATION:
                continue
            enemy_effective = calculate_effective_military_strength(state.stats_for(enemy_id))
            if our_effective < enemy_effective * ATTACK_MIN_STRENGTH_RATIO:
                continue
            for city in state.get_cities_by_country(enemy_id):
                if city.is_under_attack:
                    continue
                value = calculate_city_value(city)
                if value > best_value:
                    best, best_value = city, value

        if best is None:
            return None
        logger.info(f"{country_id}: attacking {best.name or best.id} (value {best_value})")
        return AttackAction(
            target_city_id=best.id,
            target_country_id=best.country_id,
            allocation_percent=ATTACK_ALLOCATION_PERCENT,
            **common,
        )
