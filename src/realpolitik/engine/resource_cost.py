"""Material requirements for actions and the shortage penalty.

Every upgrade and recruitment consumes materials whose mix depends on the
country's current tier. A country short on materials may still act, but pays
a budget penalty instead:

    penalty = min(1 + 0.4 * missing_resource_types, 2.5)   if anything missing
    penalty = 1.0                                           otherwise
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from realpolitik.models.country import CountryStats
from realpolitik.parameters import SHORTAGE_PENALTY_MAX, SHORTAGE_PENALTY_PER_RESOURCE


@dataclass(frozen=True)
class ResourceAmount:
    resource_id: str
    amount: int


@dataclass(frozen=True)
class ResourceCostResult:
    """Outcome of checking requirements against a stockpile.

    Attributes:
        required: Everything the action needs
        can_afford: True when every requirement is met in full
        missing: Shortfall per resource (required - available)
        penalty_multiplier: Budget cost multiplier, >= 1
    """

    required: tuple[ResourceAmount, ...]
    can_afford: bool
    missing: tuple[ResourceAmount, ...] = field(default_factory=tuple)
    penalty_multiplier: float = 1.0

    @property
    def shortage(self) -> bool:
        return not self.can_afford


def calculate_research_resource_cost(stats: CountryStats) -> list[ResourceAmount]:
    level = math.floor(stats.technology_level)
    if level <= 1:
        return [ResourceAmount("copper", 10), ResourceAmount("coal", 8)]
    if level <= 3:
        return [ResourceAmount("copper", 8), ResourceAmount("coal", 12), ResourceAmount("steel", 6)]
    return [ResourceAmount("steel", 10), ResourceAmount("coal", 15), ResourceAmount("copper", 5)]


def calculate_infrastructure_resource_cost(stats: CountryStats) -> list[ResourceAmount]:
    level = stats.infrastructure_level
    costs = [
        ResourceAmount("timber", 20 + level * 4),
        ResourceAmount("coal", 15 + level * 3),
    ]
    if level >= 2:
        costs.append(ResourceAmount("steel", 12 + level * 2))
    if level >= 4:
        costs.append(ResourceAmount("oil", 5))
    return costs


def calculate_military_resource_cost(amount: int, stats: CountryStats) -> list[ResourceAmount]:
    """Materials for recruiting ``amount`` strength, per 10 strength by tech tier."""
    level = math.floor(stats.technology_level)
    base = amount / 10
    if level <= 1:
        mix = (("iron", 6), ("timber", 4))
    elif level <= 3:
        mix = (("iron", 3), ("steel", 4), ("oil", 2))
    else:
        mix = (("steel", 4), ("oil", 3), ("iron", 2))
    return [ResourceAmount(resource_id, math.ceil(base * per_ten)) for resource_id, per_ten in mix]


def check_resource_affordability(
    required: list[ResourceAmount],
    available: Mapping[str, int],
) -> ResourceCostResult:
    missing = []
    for requirement in required:
        have = available.get(requirement.resource_id, 0)
        if have < requirement.amount:
            missing.append(ResourceAmount(requirement.resource_id, requirement.amount - have))

    if missing:
        penalty = min(1.0 + len(missing) * SHORTAGE_PENALTY_PER_RESOURCE, SHORTAGE_PENALTY_MAX)
        return ResourceCostResult(tuple(required), False, tuple(missing), penalty)
    return ResourceCostResult(tuple(required), True)


def deduct_resources(current: Mapping[str, int], costs: tuple[ResourceAmount, ...] | list[ResourceAmount]) -> dict[str, int]:
    """Subtract costs from a stockpile, flooring each resource at zero."""
    updated = dict(current)
    for cost in costs:
        updated[cost.resource_id] = max(0, updated.get(cost.resource_id, 0) - cost.amount)
    return updated
