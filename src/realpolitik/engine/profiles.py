"""Resource profile modifiers.

A country's resource profile is a specialization tag (e.g. "Tech Innovator")
that scales its costs and revenues. Unknown or missing profiles use 1.0 for
every modifier.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileModifiers:
    """Multipliers a resource profile applies.

    Values below 1.0 on cost modifiers mean cheaper; values above 1.0 on
    revenue and effectiveness modifiers mean better.
    """

    tech_cost: float = 1.0
    infra_cost: float = 1.0
    military_cost: float = 1.0
    tax_revenue: float = 1.0
    trade_revenue: float = 1.0
    military_effectiveness: float = 1.0


NEUTRAL_MODIFIERS = ProfileModifiers()

PROFILE_MODIFIERS: dict[str, ProfileModifiers] = {
    "Tech Innovator": ProfileModifiers(
        tech_cost=0.75, infra_cost=1.10, military_cost=0.90,
        tax_revenue=1.05, trade_revenue=1.05, military_effectiveness=1.0,
    ),
    "Balanced Nation": NEUTRAL_MODIFIERS,
    "Trade Hub": ProfileModifiers(
        tech_cost=1.10, infra_cost=0.85, military_cost=1.10,
        tax_revenue=1.10, trade_revenue=1.25, military_effectiveness=0.95,
    ),
    "Oil Kingdom": ProfileModifiers(
        tech_cost=1.10, infra_cost=1.15, military_cost=0.95,
        tax_revenue=1.0, trade_revenue=1.10, military_effectiveness=1.0,
    ),
    "Agricultural Hub": ProfileModifiers(
        tech_cost=1.15, infra_cost=1.05, military_cost=1.05,
        tax_revenue=1.0, trade_revenue=0.95, military_effectiveness=0.95,
    ),
    "Mining Empire": ProfileModifiers(
        tech_cost=1.15, infra_cost=1.15, military_cost=0.90,
        tax_revenue=0.95, trade_revenue=1.0, military_effectiveness=1.05,
    ),
    "Industrial Powerhouse": ProfileModifiers(
        tech_cost=1.15, infra_cost=0.80, military_cost=0.95,
        tax_revenue=1.0, trade_revenue=1.10, military_effectiveness=1.0,
    ),
    "Military State": ProfileModifiers(
        tech_cost=1.20, infra_cost=1.20, military_cost=0.85,
        tax_revenue=0.95, trade_revenue=0.90, military_effectiveness=1.10,
    ),
}

PROFILE_NAMES = tuple(PROFILE_MODIFIERS)


def get_profile_modifiers(profile: str | None) -> ProfileModifiers:
    if not profile:
        return NEUTRAL_MODIFIERS
    return PROFILE_MODIFIERS.get(profile, NEUTRAL_MODIFIERS)
