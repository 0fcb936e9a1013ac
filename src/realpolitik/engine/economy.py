"""Budget and production calculations.

Revenue comes from taxes (scaled by infrastructure and profile) and trade.
Expenses are general maintenance, military upkeep and infrastructure upkeep.
Technology scales material production, not taxes.

Formulas:
    tax       = floor(pop/10k * 22 * (1 + infra * 0.15) * overcrowding * profile)
    capacity  = 200,000 + 50,000 * infra
    expenses  = floor(budget * 0.005) + strength * 0.5 + infra * 25
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from realpolitik.engine.military import calculate_military_upkeep
from realpolitik.engine.profiles import get_profile_modifiers
from realpolitik.engine.resources import ResourceRegistry
from realpolitik.models.country import CountryStats
from realpolitik.parameters import (
    BASE_FOOD_PER_POP,
    BASE_INDUSTRIAL_OUTPUT,
    BASE_POPULATION_CAPACITY,
    BASE_TAX_PER_CITIZEN,
    CAPACITY_PER_INFRASTRUCTURE,
    FOOD_PER_10K_POPULATION,
    INFRA_MAINTENANCE_PER_LEVEL,
    INFRASTRUCTURE_TAX_EFFICIENCY,
    MAINTENANCE_COST_MULTIPLIER,
    OVERCROWDING_TAX_PENALTY,
    RESOURCE_EXTRACTION_RATE,
    TECH_PRODUCTION_LATE_STEP,
    TECH_PRODUCTION_MULTIPLIERS,
    TRADE_EFFICIENCY_PER_LEVEL,
    TRADE_INCOME_MULTIPLIER,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetBreakdown:
    tax_revenue: int
    trade_revenue: int
    maintenance_cost: int
    military_upkeep: float
    infrastructure_cost: int
    population_capacity: int
    is_overcrowded: bool

    @property
    def total_revenue(self) -> int:
        return self.tax_revenue + self.trade_revenue

    @property
    def total_expenses(self) -> float:
        return self.maintenance_cost + self.military_upkeep + self.infrastructure_cost

    @property
    def net_budget(self) -> float:
        return self.total_revenue - self.total_expenses


def calculate_population_capacity(infrastructure_level: int) -> int:
    return BASE_POPULATION_CAPACITY + infrastructure_level * CAPACITY_PER_INFRASTRUCTURE


def calculate_tax_revenue(stats: CountryStats, infrastructure_level: int | None = None) -> int:
    """Tax income at the given (default: current) infrastructure level."""
    infra = stats.infrastructure_level if infrastructure_level is None else infrastructure_level
    base_tax = stats.population / 10_000 * BASE_TAX_PER_CITIZEN
    efficiency = 1 + infra * INFRASTRUCTURE_TAX_EFFICIENCY
    crowding = OVERCROWDING_TAX_PENALTY if stats.population > calculate_population_capacity(infra) else 1.0
    profile = get_profile_modifiers(stats.resource_profile)
    return math.floor(base_tax * efficiency * crowding * profile.tax_revenue)


def calculate_trade_revenue(stats: CountryStats, active_deals_value: int) -> int:
    if not active_deals_value:
        return 0
    efficiency = 1 + stats.infrastructure_level * TRADE_EFFICIENCY_PER_LEVEL
    profile = get_profile_modifiers(stats.resource_profile)
    return math.floor(active_deals_value * efficiency * profile.trade_revenue * TRADE_INCOME_MULTIPLIER)


def calculate_budget(stats: CountryStats, active_deals_value: int = 0) -> BudgetBreakdown:
    capacity = calculate_population_capacity(stats.infrastructure_level)
    return BudgetBreakdown(
        tax_revenue=calculate_tax_revenue(stats),
        trade_revenue=calculate_trade_revenue(stats, active_deals_value),
        maintenance_cost=math.floor(stats.budget * MAINTENANCE_COST_MULTIPLIER),
        military_upkeep=calculate_military_upkeep(stats.military_strength),
        infrastructure_cost=stats.infrastructure_level * INFRA_MAINTENANCE_PER_LEVEL,
        population_capacity=capacity,
        is_overcrowded=stats.population > capacity,
    )


# =============================================================================
# PRODUCTION
# =============================================================================


def get_technology_multiplier(technology_level: int) -> float:
    """Production multiplier; logarithmic beyond level 5.

    Examples:
        >>> get_technology_multiplier(3)
        2.0
        >>> get_technology_multiplier(6)
        3.25
    """
    level = max(0, math.floor(technology_level))
    if level < len(TECH_PRODUCTION_MULTIPLIERS):
        return TECH_PRODUCTION_MULTIPLIERS[level]
    return TECH_PRODUCTION_MULTIPLIERS[-1] + math.log2(level - 4) * TECH_PRODUCTION_LATE_STEP


def calculate_food_production(stats: CountryStats) -> int:
    multiplier = get_technology_multiplier(stats.technology_level)
    return math.floor(stats.population / 10_000 * BASE_FOOD_PER_POP * multiplier)


def calculate_food_consumption(stats: CountryStats) -> float:
    return stats.population / 10_000 * FOOD_PER_10K_POPULATION


def calculate_production(stats: CountryStats) -> dict[str, int]:
    """Per-turn material output for one country."""
    m = get_technology_multiplier(stats.technology_level)
    return {
        "food": calculate_food_production(stats),
        "timber": math.floor(RESOURCE_EXTRACTION_RATE * m),
        "iron": math.floor(RESOURCE_EXTRACTION_RATE * m * 0.8),
        "oil": math.floor(RESOURCE_EXTRACTION_RATE * m * 0.5),
        "coal": math.floor(BASE_INDUSTRIAL_OUTPUT * m * 0.9),
        "steel": math.floor(BASE_INDUSTRIAL_OUTPUT * m * 0.6),
        "gold": math.floor(5 * m * 0.4),
        "copper": math.floor(8 * m * 0.4),
    }


def apply_turn_economy(
    stats: CountryStats,
    registry: ResourceRegistry,
    city_yield: dict[str, int] | None = None,
    active_deals_value: int = 0,
) -> CountryStats:
    """Collect one turn of income and production.

    Budget changes by the net budget (floored at zero). Stockpiles gain
    production and city yields, lose food consumption, then decay per the
    registry's storage decay. Quantities never go negative.
    """
    breakdown = calculate_budget(stats, active_deals_value)
    budget = max(0, math.floor(stats.budget + breakdown.net_budget))

    resources = dict(stats.resources)
    for resource_id, amount in calculate_production(stats).items():
        resources[resource_id] = resources.get(resource_id, 0) + amount
    for resource_id, amount in (city_yield or {}).items():
        resources[resource_id] = resources.get(resource_id, 0) + amount
    resources["food"] = max(0, math.floor(resources.get("food", 0) - calculate_food_consumption(stats)))

    for resource_id, amount in list(resources.items()):
        definition = registry.get(resource_id)
        if definition is not None and definition.storage_decay > 0:
            resources[resource_id] = math.floor(amount * (1 - definition.storage_decay))

    logger.debug(
        f"{stats.country_id}: budget {stats.budget} -> {budget} "
        f"(revenue {breakdown.total_revenue}, expenses {breakdown.total_expenses:.0f})"
    )
    return stats.updated(budget=budget, resources=resources)
