"""Turn resolution engine for Realpolitik.

This module contains the core game logic including:
- resources / market: resource registry and scarcity pricing
- pricing / resource_cost: action prices shared by players and AI
- military: effective strength, attack cost and combat
- resolver: applying one action to the game state
- deals: per-turn deal progress and expiry
- economy: end-of-turn income and production
- turn: the ordered turn pipeline

Usage:
    from realpolitik.engine import ActionResolver, TurnProcessor

    resolver = ActionResolver()
    result = resolver.resolve(state, action)
    if not result.executed:
        print(result.reason)

    processor = TurnProcessor(combat_resolver=CombatResolver(random.Random(7)))
    turn_result = await processor.process_turn(state, defense_ai)
"""

from realpolitik.engine.deals import DealExecutor, active_trade_value
from realpolitik.engine.economy import (
    BudgetBreakdown,
    apply_turn_economy,
    calculate_budget,
    calculate_production,
    get_technology_multiplier,
)
from realpolitik.engine.events import TurnEvent
from realpolitik.engine.market import (
    MarketPrices,
    compute_market_prices,
    compute_market_snapshot,
    compute_total_stocks,
    get_black_market_prices,
)
from realpolitik.engine.military import (
    AttackCost,
    CombatOutcome,
    CombatResolver,
    calculate_attack_cost,
    calculate_effective_military_strength,
    transfer_city,
)
from realpolitik.engine.pricing import (
    AttackPricing,
    PricingResult,
    apply_action_cost,
    apply_attack_cost,
    calculate_attack_pricing,
    calculate_infrastructure_pricing,
    calculate_recruitment_pricing,
    calculate_research_pricing,
    can_afford_action,
    can_afford_attack,
    get_pricing_for_action,
)
from realpolitik.engine.resolver import ActionResolver, CombatReport, QueuedAttack, ResolutionResult
from realpolitik.engine.resources import (
    ResourceCategory,
    ResourceDefinition,
    ResourceRegistry,
    default_registry,
)
from realpolitik.engine.turn import TurnProcessor, TurnProcessResult

__all__ = [
    # Resources and market
    "ResourceCategory",
    "ResourceDefinition",
    "ResourceRegistry",
    "default_registry",
    "MarketPrices",
    "compute_total_stocks",
    "compute_market_prices",
    "compute_market_snapshot",
    "get_black_market_prices",
    # Pricing
    "PricingResult",
    "AttackPricing",
    "calculate_research_pricing",
    "calculate_infrastructure_pricing",
    "calculate_recruitment_pricing",
    "calculate_attack_pricing",
    "get_pricing_for_action",
    "can_afford_action",
    "can_afford_attack",
    "apply_action_cost",
    "apply_attack_cost",
    # Military
    "AttackCost",
    "CombatOutcome",
    "CombatResolver",
    "calculate_attack_cost",
    "calculate_effective_military_strength",
    "transfer_city",
    # Resolution
    "ActionResolver",
    "ResolutionResult",
    "QueuedAttack",
    "CombatReport",
    "DealExecutor",
    "active_trade_value",
    "TurnEvent",
    "TurnProcessor",
    "TurnProcessResult",
    # Economy
    "BudgetBreakdown",
    "calculate_budget",
    "calculate_production",
    "get_technology_multiplier",
    "apply_turn_economy",
]
