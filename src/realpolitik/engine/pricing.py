"""Action pricing: the single cost path for player and AI actions.

Every calculator is pure. A ``PricingResult`` carries the budget cost (already
inflated by any shortage penalty) together with the material breakdown.

Parity contract:
    - ``can_afford_action`` checks only the budget; a material shortage never
      blocks an action, it only makes it more expensive.
    - ``apply_action_cost`` always deducts the (possibly penalized) budget
      cost, and deducts materials only when they were fully available.

Player submissions and AI decisions both go through these functions, so
identical inputs give identical outcomes regardless of who acted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from realpolitik.engine.military import calculate_recruitment_cost
from realpolitik.engine.profiles import get_profile_modifiers
from realpolitik.engine.resource_cost import (
    ResourceAmount,
    ResourceCostResult,
    calculate_infrastructure_resource_cost,
    calculate_military_resource_cost,
    calculate_research_resource_cost,
    check_resource_affordability,
    deduct_resources,
)
from realpolitik.models.country import CountryStats
from realpolitik.parameters import (
    ATTACK_BASE_COST,
    ATTACK_COST_PER_STRENGTH,
    INFRA_BASE_COST,
    INFRA_COST_MULTIPLIER,
    RESEARCH_DISCOUNT_MAX,
    RESEARCH_DISCOUNT_PER_LEVEL,
    TECH_BASE_COST,
    TECH_COST_MULTIPLIER,
    TECH_LATE_COST_MULTIPLIER,
    TECH_LATE_LEVEL,
)


@dataclass(frozen=True)
class PricingResult:
    """Price of one action, recomputed at every resolution.

    Attributes:
        cost: Budget cost including the shortage penalty
        required_resources: Materials the action consumes
        resource_cost: Affordability check of those materials
    """

    cost: int
    required_resources: tuple[ResourceAmount, ...]
    resource_cost: ResourceCostResult

    @property
    def penalty_multiplier(self) -> float:
        return self.resource_cost.penalty_multiplier


@dataclass(frozen=True)
class AttackPricing:
    cost: int


def _priced(base_cost: float, required: list[ResourceAmount], stats: CountryStats) -> PricingResult:
    resource_cost = check_resource_affordability(required, stats.resources)
    return PricingResult(
        cost=math.floor(base_cost * resource_cost.penalty_multiplier),
        required_resources=tuple(required),
        resource_cost=resource_cost,
    )


def calculate_research_base_cost(technology_level: int) -> float:
    """Unpenalized, unmodified research cost curve for a level."""
    level = math.floor(technology_level)
    if level <= TECH_LATE_LEVEL:
        return TECH_BASE_COST * TECH_COST_MULTIPLIER**level
    late_start = TECH_BASE_COST * TECH_COST_MULTIPLIER**TECH_LATE_LEVEL
    return late_start * TECH_LATE_COST_MULTIPLIER ** (level - TECH_LATE_LEVEL)


def calculate_research_pricing(stats: CountryStats) -> PricingResult:
    """Price of raising technology by one level.

    Example:
        Tech 0, no profile, materials in stock: floor(500 * 1 * 1) = 500
    """
    level = math.floor(stats.technology_level)
    profile = get_profile_modifiers(stats.resource_profile)
    research_modifier = 1 - min(RESEARCH_DISCOUNT_MAX, level * RESEARCH_DISCOUNT_PER_LEVEL)
    base = calculate_research_base_cost(level) * profile.tech_cost * research_modifier
    return _priced(base, calculate_research_resource_cost(stats), stats)


def calculate_infrastructure_pricing(stats: CountryStats) -> PricingResult:
    profile = get_profile_modifiers(stats.resource_profile)
    base = INFRA_BASE_COST * INFRA_COST_MULTIPLIER**stats.infrastructure_level * profile.infra_cost
    return _priced(base, calculate_infrastructure_resource_cost(stats), stats)


def calculate_recruitment_pricing(amount: int, stats: CountryStats) -> PricingResult:
    base = calculate_recruitment_cost(amount, stats)
    return _priced(base, calculate_military_resource_cost(amount, stats), stats)


def calculate_attack_pricing(allocated_strength: int) -> AttackPricing:
    """Attack cost is affine in the allocation: 100 + 10 per strength point."""
    return AttackPricing(cost=ATTACK_BASE_COST + allocated_strength * ATTACK_COST_PER_STRENGTH)


def get_pricing_for_action(
    kind: Literal["research", "infrastructure", "military"],
    stats: CountryStats,
    military_amount: int | None = None,
) -> PricingResult:
    """Unified entry point used by UIs and AI cost previews.

    Raises:
        ValueError: For an unknown action kind.
    """
    if kind == "research":
        return calculate_research_pricing(stats)
    if kind == "infrastructure":
        return calculate_infrastructure_pricing(stats)
    if kind == "military":
        return calculate_recruitment_pricing(military_amount or 10, stats)
    raise ValueError(f"Unknown action kind: {kind}")


def can_afford_action(pricing: PricingResult, budget: int) -> bool:
    return budget >= pricing.cost


def can_afford_attack(pricing: AttackPricing, budget: int) -> bool:
    return budget >= pricing.cost


def apply_action_cost(pricing: PricingResult, stats: CountryStats) -> CountryStats:
    """Deduct an action's price from a stats record.

    Budget is always charged (floored at zero). Materials are consumed only
    when the action was fully resourced; otherwise the penalty already paid
    for them.
    """
    changes: dict = {"budget": max(0, stats.budget - pricing.cost)}
    if pricing.resource_cost.can_afford:
        changes["resources"] = deduct_resources(stats.resources, pricing.required_resources)
    return stats.updated(**changes)


def apply_attack_cost(pricing: AttackPricing, stats: CountryStats) -> CountryStats:
    return stats.updated(budget=max(0, stats.budget - pricing.cost))
