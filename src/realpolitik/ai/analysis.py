"""Rule-based economic and military analysis for AI countries.

Everything here is deterministic and free: no LLM calls. Costs come from
the same pricing functions that resolve actions, so an AI never plans around
a price it will not actually be charged.

Key formulas:
    safety buffer     = max(500, 2 * expenses)
    infrastructure ROI = ceil(cost / (tax gain of +1 level - 25 upkeep))
    research ROI      = ceil(cost / (food value gain of +1 tech level))
    recommended army  = max(50, 0.7 * avg neighbor effective, population / 2000)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from realpolitik.ai.personality import AIPersonality
from realpolitik.engine.economy import (
    calculate_budget,
    calculate_food_consumption,
    calculate_food_production,
    calculate_tax_revenue,
    get_technology_multiplier,
)
from realpolitik.engine.military import calculate_effective_military_strength
from realpolitik.engine.pricing import calculate_infrastructure_pricing, calculate_research_pricing
from realpolitik.models.country import CountryStats
from realpolitik.models.state import GameState
from realpolitik.parameters import (
    BASE_FOOD_PER_POP,
    COST_PER_STRENGTH_POINT,
    INFRA_MAINTENANCE_PER_LEVEL,
    INFRA_MAX_LEVEL,
    MIN_RECOMMENDED_MILITARY,
    NEIGHBOR_DISTANCE,
    NEIGHBOR_STRENGTH_FACTOR,
    POPULATION_PER_RECOMMENDED_STRENGTH,
    UNDER_DEFENDED_DEFICIT,
)

FOOD_VALUE = 2
"""Rough budget value of one unit of food, used for research ROI."""


@dataclass(frozen=True)
class EconomicAnalysis:
    """Snapshot of one country's economic and military health.

    Attributes:
        current_budget: Budget at analysis time
        net_income: Revenue minus expenses per turn
        turns_until_bankrupt: Turns of runway when net income is negative
        can_afford_research: Budget above the safety buffer covers research
        research_roi: Turns for a tech level to pay for itself (inf if never)
        food_balance: Food production minus consumption per turn
        food_turns_remaining: Turns until starvation when food balance is negative
        military_deficit: Recommended minus current effective strength
        is_under_defended: Deficit above the under-defended threshold
    """

    current_budget: int
    net_income: float
    turns_until_bankrupt: int | None
    can_afford_infrastructure: bool
    can_afford_research: bool
    can_afford_military: bool
    infrastructure_roi: float
    research_roi: float
    food_balance: float
    food_turns_remaining: int | None
    has_resource_surplus: bool
    military_strength: int
    effective_military_strength: int
    military_deficit: float
    is_under_defended: bool
    average_neighbor_effective_strength: float


@dataclass(frozen=True)
class DecisionWeights:
    research_priority: float
    infrastructure_priority: float
    military_priority: float
    economic_safety_buffer: float


def get_neighbor_ids(state: GameState, country_id: str) -> list[str]:
    """Countries with stats whose capital lies within the neighbor distance."""
    country = state.country(country_id)
    if country is None:
        return []
    return [
        other.id
        for other in state.countries
        if other.id != country_id
        and state.stats_for(other.id) is not None
        and country.distance_to(other) < NEIGHBOR_DISTANCE
    ]


def calculate_infrastructure_roi(stats: CountryStats, cost: int) -> float:
    current = calculate_tax_revenue(stats, stats.infrastructure_level)
    upgraded = calculate_tax_revenue(stats, stats.infrastructure_level + 1)
    net_benefit = upgraded - current - INFRA_MAINTENANCE_PER_LEVEL
    if net_benefit <= 0:
        return math.inf
    return math.ceil(cost / net_benefit)


def calculate_research_roi(stats: CountryStats, cost: int) -> float:
    level = math.floor(stats.technology_level)
    base_production = stats.population / 10_000 * BASE_FOOD_PER_POP
    gain = get_technology_multiplier(level + 1) - get_technology_multiplier(level)
    production_increase = base_production * gain * FOOD_VALUE
    if production_increase <= 0:
        return math.inf
    return math.ceil(cost / production_increase)


def has_resource_surplus(stats: CountryStats) -> bool:
    if stats.resource("food") > calculate_food_consumption(stats) * 10:
        return True
    return stats.resource("oil") > 100 or stats.resource("gold") > 50 or stats.resource("steel") > 50


def analyze_economic_situation(state: GameState, country_id: str, stats: CountryStats | None = None) -> EconomicAnalysis:
    """Analyze a country's budget, food, investments and defense.

    Raises:
        KeyError: If the country has no stats.
    """
    stats = stats or state.stats_for(country_id)
    if stats is None:
        raise KeyError(f"No stats for country {country_id}")

    budget = calculate_budget(stats)
    food_balance = calculate_food_production(stats) - calculate_food_consumption(stats)

    research_cost = calculate_research_pricing(stats).cost
    infra_cost = calculate_infrastructure_pricing(stats).cost
    safety_buffer = max(500, budget.total_expenses * 2)
    available = stats.budget - safety_buffer

    effective = calculate_effective_military_strength(stats)
    neighbor_strengths = [
        calculate_effective_military_strength(state.stats_for(nid)) for nid in get_neighbor_ids(state, country_id)
    ]
    average_neighbor = sum(neighbor_strengths) / len(neighbor_strengths) if neighbor_strengths else effective
    recommended = max(
        MIN_RECOMMENDED_MILITARY,
        average_neighbor * NEIGHBOR_STRENGTH_FACTOR,
        stats.population / POPULATION_PER_RECOMMENDED_STRENGTH,
    )
    deficit = recommended - effective

    net = budget.net_budget
    turns_until_bankrupt = math.floor(stats.budget / abs(net)) if net < 0 else None
    food_turns = math.floor(stats.resource("food") / abs(food_balance)) if food_balance < 0 else None

    return EconomicAnalysis(
        current_budget=stats.budget,
        net_income=net,
        turns_until_bankrupt=turns_until_bankrupt,
        can_afford_infrastructure=available >= infra_cost,
        can_afford_research=available >= research_cost,
        can_afford_military=available >= COST_PER_STRENGTH_POINT,
        infrastructure_roi=calculate_infrastructure_roi(stats, infra_cost),
        research_roi=calculate_research_roi(stats, research_cost),
        food_balance=food_balance,
        food_turns_remaining=food_turns,
        has_resource_surplus=has_resource_surplus(stats),
        military_strength=stats.military_strength,
        effective_military_strength=effective,
        military_deficit=deficit,
        is_under_defended=deficit > UNDER_DEFENDED_DEFICIT,
        average_neighbor_effective_strength=average_neighbor,
    )


def calculate_decision_weights(
    analysis: EconomicAnalysis,
    personality: AIPersonality,
    resource_profile: str | None = None,
) -> DecisionWeights:
    """Priorities for research, infrastructure and military this turn.

    Crises override the base priorities (food, then bankruptcy, then
    defense, the last one winning), good ROI and wealth add to them, and the
    profile and personality nudge the result. All priorities end in 0-1.
    """
    research, infrastructure, military = 0.3, 0.3, 0.2

    if analysis.food_turns_remaining is not None and analysis.food_turns_remaining < 5:
        research, infrastructure, military = 0.2, 0.7, 0.1
    if analysis.turns_until_bankrupt is not None and analysis.turns_until_bankrupt < 3:
        research, infrastructure, military = 0.1, 0.2, 0.05
    if analysis.is_under_defended and analysis.military_deficit > 30:
        research, infrastructure, military = 0.2, 0.2, 0.6

    if analysis.research_roi < 40 and analysis.can_afford_research:
        research += 0.2
    if analysis.infrastructure_roi < 30 and analysis.can_afford_infrastructure:
        infrastructure += 0.2
    if analysis.current_budget > 10_000 and analysis.net_income > 500:
        research += 0.15
        infrastructure += 0.15

    if resource_profile in ("Agricultural Hub", "Trade Hub"):
        military += 0.1
        research += 0.1
        infrastructure -= 0.05
    elif resource_profile in ("Mining Empire", "Industrial Powerhouse"):
        infrastructure += 0.15
    elif resource_profile == "Tech Innovator":
        research += 0.2

    military += personality.aggression * 0.15
    research += personality.risk_tolerance * 0.1

    buffer = 1000.0
    if analysis.turns_until_bankrupt is not None:
        buffer = max(2000.0, analysis.current_budget * 0.3)
    if analysis.net_income > 0:
        buffer = max(500.0, analysis.net_income * 3)

    def clamp(value: float) -> float:
        return max(0.0, min(1.0, value))

    return DecisionWeights(
        research_priority=clamp(research),
        infrastructure_priority=clamp(infrastructure),
        military_priority=clamp(military),
        economic_safety_buffer=buffer,
    )


def should_invest_in_research(stats: CountryStats, analysis: EconomicAnalysis, weights: DecisionWeights) -> bool:
    if not analysis.can_afford_research:
        return False
    if analysis.turns_until_bankrupt is not None and analysis.turns_until_bankrupt < 5:
        return False
    if analysis.food_turns_remaining is not None and analysis.food_turns_remaining < 3:
        return False

    if weights.research_priority > 0.5 and analysis.research_roi < 50:
        return True
    if analysis.research_roi < 30 and analysis.current_budget > weights.economic_safety_buffer * 2:
        return True
    return stats.technology_level < 3 and analysis.current_budget > 5000


def should_invest_in_infrastructure(stats: CountryStats, analysis: EconomicAnalysis, weights: DecisionWeights) -> bool:
    if not analysis.can_afford_infrastructure:
        return False
    if analysis.turns_until_bankrupt is not None and analysis.turns_until_bankrupt < 5:
        return False
    if stats.infrastructure_level >= INFRA_MAX_LEVEL:
        return False

    if analysis.food_turns_remaining is not None and analysis.food_turns_remaining < 10:
        return True
    if weights.infrastructure_priority > 0.5 and analysis.infrastructure_roi < 40:
        return True
    if analysis.infrastructure_roi < 25 and analysis.current_budget > weights.economic_safety_buffer * 1.5:
        return True
    return stats.infrastructure_level < stats.technology_level and analysis.current_budget > 3000


def decide_military_recruitment(stats: CountryStats, analysis: EconomicAnalysis, weights: DecisionWeights) -> int:
    """Strength points to recruit this turn, a multiple of 5 (possibly 0)."""
    if not analysis.can_afford_military:
        return 0
    if analysis.turns_until_bankrupt is not None and analysis.turns_until_bankrupt < 5:
        return 0
    if analysis.food_turns_remaining is not None and analysis.food_turns_remaining < 5:
        return 0

    max_affordable = math.floor((analysis.current_budget - weights.economic_safety_buffer) / COST_PER_STRENGTH_POINT)

    deficit = analysis.military_deficit
    if deficit > 50:
        desired = min(30, deficit / 2)
    elif deficit > 20:
        desired = min(20, deficit / 2)
    elif deficit > 5:
        desired = min(10, deficit)
    else:
        desired = 0

    desired = math.floor(desired * weights.military_priority)
    amount = min(desired, max_affordable)
    return max(0, amount // 5 * 5)
