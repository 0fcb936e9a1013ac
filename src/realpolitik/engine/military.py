"""Military strength calculations and combat resolution.

Formulas:
    effective = floor(strength * (1 + tech * 0.20) * profile_effectiveness)
    recruit   = floor(amount * 30 * (1 - min(0.25, tech * 0.05)) * profile_cost)

Combat:
    ratio = attacker_effective / (defender_effective * 1.2)
    P(attacker wins) = 1 / (1 + exp(-2.5 * (ratio - 1)))
        clamped to 0.95 when ratio >= 3.0 and 0.05 when ratio <= 0.33

The defender's allocation is always decided by a separate call that never
sees the attacker's allocation; CombatResolver only receives both numbers
once each side has committed.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from realpolitik.engine.profiles import get_profile_modifiers
from realpolitik.engine.relations import clamp_score
from realpolitik.models.country import City, CountryStats
from realpolitik.parameters import (
    ATTACK_DECLARATION_PENALTY,
    COMBAT_DOMINANT_RATIO,
    COMBAT_HOPELESS_RATIO,
    COMBAT_MAX_WIN_CHANCE,
    COMBAT_MIN_WIN_CHANCE,
    COMBAT_SIGMOID_STEEPNESS,
    COST_PER_STRENGTH_POINT,
    DEFEATED_DEFENDER_LOSS_RANGE,
    DEFENSE_BONUS,
    FAILED_ATTACKER_LOSS_RANGE,
    MILITARY_UPKEEP_PER_STRENGTH,
    RECRUIT_TECH_DISCOUNT_MAX,
    RECRUIT_TECH_DISCOUNT_PER_LEVEL,
    SUCCESSFUL_DEFENDER_LOSS_RANGE,
    TECH_MILITARY_BONUS_PER_LEVEL,
    WINNER_LOSS_RANGE,
)

if TYPE_CHECKING:
    from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


# =============================================================================
# STRENGTH
# =============================================================================


def get_tech_military_bonus(technology_level: int) -> float:
    return technology_level * TECH_MILITARY_BONUS_PER_LEVEL


def calculate_military_effectiveness_multiplier(stats: CountryStats) -> float:
    """Combined technology and profile multiplier on nominal strength."""
    profile = get_profile_modifiers(stats.resource_profile)
    return (1 + get_tech_military_bonus(stats.technology_level)) * profile.military_effectiveness


def calculate_effective_military_strength(stats: CountryStats, strength: int | None = None) -> int:
    """Combat-effective strength of ``strength`` units (default: all of them).

    Example:
        100 strength at tech 2 with no profile -> floor(100 * 1.4) = 140
    """
    nominal = stats.military_strength if strength is None else strength
    return math.floor(nominal * calculate_military_effectiveness_multiplier(stats))


def get_tech_cost_reduction(technology_level: int) -> float:
    return min(RECRUIT_TECH_DISCOUNT_MAX, technology_level * RECRUIT_TECH_DISCOUNT_PER_LEVEL)


def calculate_recruitment_cost(amount: int, stats: CountryStats) -> int:
    """Budget cost of recruiting ``amount`` strength before shortage penalty."""
    profile = get_profile_modifiers(stats.resource_profile)
    per_point = COST_PER_STRENGTH_POINT * (1 - get_tech_cost_reduction(stats.technology_level))
    return math.floor(amount * per_point * profile.military_cost)


def calculate_military_upkeep(military_strength: int) -> float:
    return military_strength * MILITARY_UPKEEP_PER_STRENGTH


def allocated_strength_from_percent(stats: CountryStats, percent: int) -> int:
    """Nominal strength committed by an allocation percentage (floored)."""
    percent = max(0, min(100, percent))
    return math.floor(stats.military_strength * percent / 100)


# =============================================================================
# ATTACK COST
# =============================================================================


@dataclass(frozen=True)
class AttackCost:
    """Economic and diplomatic price of declaring an attack.

    Attributes:
        economic_cost: Budget cost (100 + 10 per allocated strength)
        relation_penalty: Drop in the attacker's relation toward the defender
        relation_after: Attacker -> defender score once the penalty applies
    """

    economic_cost: int
    relation_penalty: int
    relation_after: int


def calculate_attack_cost(attacker_stats: CountryStats, target_city: City, allocated_strength: int) -> AttackCost:
    from realpolitik.engine.pricing import calculate_attack_pricing

    pricing = calculate_attack_pricing(allocated_strength)
    before = attacker_stats.relation_to(target_city.country_id)
    return AttackCost(
        economic_cost=pricing.cost,
        relation_penalty=ATTACK_DECLARATION_PENALTY,
        relation_after=clamp_score(before - ATTACK_DECLARATION_PENALTY),
    )


# =============================================================================
# COMBAT
# =============================================================================


def strength_ratio_to_win_chance(ratio: float) -> float:
    """Attacker win probability for an adjusted strength ratio."""
    if ratio >= COMBAT_DOMINANT_RATIO:
        return COMBAT_MAX_WIN_CHANCE
    if ratio <= COMBAT_HOPELESS_RATIO:
        return COMBAT_MIN_WIN_CHANCE
    return 1 / (1 + math.exp(-COMBAT_SIGMOID_STEEPNESS * (ratio - 1)))


@dataclass(frozen=True)
class CombatOutcome:
    """Result of one battle over a city.

    Attributes:
        attacker_wins: True if the city falls
        attacker_losses: Nominal strength the attacker loses
        defender_losses: Nominal strength the defender loses
        attacker_effective: Attacker's effective allocated strength
        defender_effective: Defender's effective allocated strength (no terrain bonus)
        win_probability: Attacker win chance used for the roll
    """

    attacker_wins: bool
    attacker_losses: int
    defender_losses: int
    attacker_effective: int
    defender_effective: int
    win_probability: float


class CombatResolver:
    """Resolves battles with an injectable random source.

    Args:
        rng: Random source; pass ``random.Random(seed)`` for reproducible
            outcomes. Defaults to a fresh unseeded instance.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def resolve(
        self,
        attacker_allocated: int,
        defender_allocated: int,
        attacker_stats: CountryStats,
        defender_stats: CountryStats,
    ) -> CombatOutcome:
        attacker_effective = calculate_effective_military_strength(attacker_stats, attacker_allocated)
        defender_effective = calculate_effective_military_strength(defender_stats, defender_allocated)
        adjusted_defender = defender_effective * DEFENSE_BONUS

        if adjusted_defender > 0:
            ratio = attacker_effective / adjusted_defender
        else:
            ratio = math.inf if attacker_effective > 0 else 0.0

        win_probability = strength_ratio_to_win_chance(ratio)
        attacker_wins = self.rng.random() < win_probability

        if attacker_wins:
            attacker_losses = self._losses(attacker_allocated, WINNER_LOSS_RANGE)
            defender_losses = self._losses(defender_allocated, DEFEATED_DEFENDER_LOSS_RANGE)
        else:
            attacker_losses = self._losses(attacker_allocated, FAILED_ATTACKER_LOSS_RANGE)
            defender_losses = self._losses(defender_allocated, SUCCESSFUL_DEFENDER_LOSS_RANGE)

        logger.debug(
            f"Combat: attacker {attacker_effective} vs defender {defender_effective} "
            f"(x{DEFENSE_BONUS}), ratio={ratio:.2f}, p={win_probability:.2f}, "
            f"attacker_wins={attacker_wins}"
        )
        return CombatOutcome(
            attacker_wins=attacker_wins,
            attacker_losses=attacker_losses,
            defender_losses=defender_losses,
            attacker_effective=attacker_effective,
            defender_effective=defender_effective,
            win_probability=win_probability,
        )

    def _losses(self, allocated: int, loss_range: tuple[float, float]) -> int:
        low, high = loss_range
        return math.floor(allocated * (low + self.rng.random() * (high - low)))


def apply_combat_losses(stats: CountryStats, losses: int) -> CountryStats:
    return stats.updated(military_strength=max(0, stats.military_strength - losses))


def transfer_city(state: GameState, city: City, from_id: str, to_id: str) -> City:
    """Hand a captured city and its population and yield to the victor.

    The loser's population and stockpiles drop by the city's population and
    per-turn yield (floored at zero); the victor gains the same. The city's
    under-attack flag is cleared.
    """
    reason = f"city {city.id} captured by {to_id}"

    loser = state.stats_for(from_id)
    if loser is not None:
        resources = dict(loser.resources)
        for resource_id, amount in city.per_turn_resources.items():
            resources[resource_id] = max(0, resources.get(resource_id, 0) - amount)
        state.with_updated_stats(
            from_id,
            loser.updated(population=max(0, loser.population - city.population), resources=resources),
            reason,
        )

    victor = state.stats_for(to_id)
    if victor is not None:
        resources = dict(victor.resources)
        for resource_id, amount in city.per_turn_resources.items():
            resources[resource_id] = resources.get(resource_id, 0) + amount
        state.with_updated_stats(
            to_id,
            victor.updated(population=victor.population + city.population, resources=resources),
            reason,
        )

    captured = city.model_copy(update={"country_id": to_id, "is_under_attack": False})
    state.update_city(captured, reason)
    logger.info(f"City {city.name or city.id} transferred from {from_id} to {to_id}")
    return captured
