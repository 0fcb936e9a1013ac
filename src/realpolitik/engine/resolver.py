"""Action resolution: applies one submitted action to the game state.

Player and AI actions share this path. Pricing is recomputed from the
current stats at resolution time, so an action resolved after another one
for the same country sees the already-reduced budget.

Affordability failures are returned as data (``ActionStatus.FAILED`` with a
reason); they never raise. Unknown action variants do raise, since every
variant of ``GameAction`` must have a handler.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from realpolitik.engine.military import (
    CombatOutcome,
    CombatResolver,
    allocated_strength_from_percent,
    apply_combat_losses,
    calculate_attack_cost,
    transfer_city,
)
from realpolitik.engine.pricing import (
    PricingResult,
    apply_action_cost,
    apply_attack_cost,
    calculate_attack_pricing,
    calculate_infrastructure_pricing,
    calculate_recruitment_pricing,
    calculate_research_pricing,
    can_afford_action,
    can_afford_attack,
)
from realpolitik.engine.relations import (
    apply_combat_diplomatic_effects,
    apply_diplomatic_delta,
    apply_mutual_diplomatic_delta,
)
from realpolitik.models.actions import (
    ActionStatus,
    AttackAction,
    BaseAction,
    DiplomacyAction,
    DiplomacyGesture,
    InfrastructureAction,
    RecruitAction,
    ResearchAction,
    format_action_for_display,
)
from realpolitik.models.country import City, Country, CountryStats
from realpolitik.models.state import GameState
from realpolitik.parameters import DENOUNCE_DELTA, DIPLOMACY_GESTURE_COST, DIPLOMACY_GESTURE_DELTA

logger = logging.getLogger(__name__)


DefenseAllocator = Callable[[CountryStats, City, Country, CountryStats], int]
"""Synchronous defender decision: (defender stats, city, attacker, attacker stats) -> percent.

Deliberately has no parameter for the attacker's allocation.
"""


@dataclass(frozen=True)
class QueuedAttack:
    """An attack paid for during action resolution, fought at turn end.

    Attributes:
        action: The executed attack action
        attacker_allocated: Nominal strength committed when the attack was paid
        prepaid: Economic cost and declaration penalty already applied
    """

    action: AttackAction
    attacker_allocated: int
    prepaid: bool = True


@dataclass(frozen=True)
class CombatReport:
    attacker_id: str
    defender_id: str
    city_id: str
    attacker_allocated: int
    defender_allocated: int
    defender_percent: int
    outcome: CombatOutcome

    @property
    def city_captured(self) -> bool:
        return self.outcome.attacker_wins


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one action.

    Attributes:
        status: executed or failed
        action: The action in its final status
        reason: Why the action failed (None when executed)
        pricing: Price charged for research, infrastructure and recruitment
        queued_attack: Set when an attack was paid for and queued
        combat: Set when an attack was resolved live
    """

    status: ActionStatus
    action: BaseAction
    reason: str | None = None
    pricing: PricingResult | None = None
    queued_attack: QueuedAttack | None = None
    combat: CombatReport | None = None

    @property
    def executed(self) -> bool:
        return self.status == ActionStatus.EXECUTED


def execute_combat(
    state: GameState,
    attack: AttackAction,
    attacker_allocated: int,
    defender_percent: int,
    combat_resolver: CombatResolver,
) -> CombatReport | None:
    """Fight one battle over a city and apply losses, capture and fallout.

    Returns None when the battle can no longer happen (the city changed hands
    or one side has no stats); the caller decides how to report that.
    """
    city = state.get_city(attack.target_city_id)
    attacker = state.stats_for(attack.country_id)
    defender = state.stats_for(attack.target_country_id)
    if city is None or attacker is None or defender is None:
        return None
    if city.country_id != attack.target_country_id:
        return None

    # Strength may have dropped since the attack was paid for.
    attacker_allocated = min(attacker_allocated, attacker.military_strength)
    defender_allocated = allocated_strength_from_percent(defender, defender_percent)

    outcome = combat_resolver.resolve(attacker_allocated, defender_allocated, attacker, defender)

    reason = f"combat over {city.id}"
    state.with_updated_stats(attack.country_id, apply_combat_losses(attacker, outcome.attacker_losses), reason)
    state.with_updated_stats(
        attack.target_country_id, apply_combat_losses(defender, outcome.defender_losses), reason
    )

    if outcome.attacker_wins:
        transfer_city(state, city, attack.target_country_id, attack.country_id)
    elif city.is_under_attack:
        state.update_city(city.model_copy(update={"is_under_attack": False}), reason)

    apply_combat_diplomatic_effects(state, attack.country_id, attack.target_country_id, outcome.attacker_wins)

    logger.info(
        f"Combat {attack.country_id} -> {city.name or city.id}: "
        f"{attacker_allocated} vs {defender_allocated} ({defender_percent}%), "
        f"{'captured' if outcome.attacker_wins else 'repelled'}"
    )
    return CombatReport(
        attacker_id=attack.country_id,
        defender_id=attack.target_country_id,
        city_id=city.id,
        attacker_allocated=attacker_allocated,
        defender_allocated=defender_allocated,
        defender_percent=defender_percent,
        outcome=outcome,
    )


class ActionResolver:
    """Applies actions to a GameState through ActionPricing.

    Args:
        combat_resolver: Resolver for live attacks (default: unseeded)
        defense_allocator: Decides the defender's allocation for live attacks.
            Without one, live attacks are queued like ordinary attacks.
    """

    def __init__(
        self,
        combat_resolver: CombatResolver | None = None,
        defense_allocator: DefenseAllocator | None = None,
    ):
        self.combat_resolver = combat_resolver or CombatResolver()
        self.defense_allocator = defense_allocator
        self._handlers: dict[type, Callable[[GameState, BaseAction, CountryStats], ResolutionResult]] = {
            ResearchAction: self._resolve_research,
            InfrastructureAction: self._resolve_infrastructure,
            RecruitAction: self._resolve_recruit,
            AttackAction: self._resolve_attack,
            DiplomacyAction: self._resolve_diplomacy,
        }

    def resolve(self, state: GameState, action: BaseAction) -> ResolutionResult:
        """Resolve one pending action against the state.

        Raises:
            ValueError: For an action variant with no handler.
            StateInvariantError: If the action is already terminal.
        """
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ValueError(f"Unhandled action variant: {type(action).__name__}")

        stats = state.stats_for(action.country_id)
        if stats is None:
            result = self._fail(action, f"No stats for country {action.country_id}")
        else:
            result = handler(state, action, stats)

        if any(a.id == action.id for a in state.data.pending_actions):
            state.update_action(result.action, f"resolved {result.status.value}")

        label = format_action_for_display(action)
        if result.executed:
            logger.info(f"[{action.source.value}] {action.country_id}: {label} executed")
        else:
            logger.info(f"[{action.source.value}] {action.country_id}: {label} failed ({result.reason})")
        return result

    # =========================================================================
    # Handlers
    # =========================================================================

    def _resolve_research(self, state: GameState, action: ResearchAction, stats: CountryStats) -> ResolutionResult:
        pricing = calculate_research_pricing(stats)
        return self._charge(
            state, action, stats, pricing, "research", technology_level=stats.technology_level + 1
        )

    def _resolve_infrastructure(
        self, state: GameState, action: InfrastructureAction, stats: CountryStats
    ) -> ResolutionResult:
        pricing = calculate_infrastructure_pricing(stats)
        return self._charge(
            state, action, stats, pricing, "infrastructure", infrastructure_level=stats.infrastructure_level + 1
        )

    def _resolve_recruit(self, state: GameState, action: RecruitAction, stats: CountryStats) -> ResolutionResult:
        pricing = calculate_recruitment_pricing(action.amount, stats)
        return self._charge(
            state, action, stats, pricing, "recruitment", military_strength=stats.military_strength + action.amount
        )

    def _charge(
        self,
        state: GameState,
        action: BaseAction,
        stats: CountryStats,
        pricing: PricingResult,
        label: str,
        **effect,
    ) -> ResolutionResult:
        if not can_afford_action(pricing, stats.budget):
            return self._fail(action, f"Insufficient budget for {label}: need {pricing.cost}, have {stats.budget}")

        if not pricing.resource_cost.can_afford:
            short = ", ".join(r.resource_id for r in pricing.resource_cost.missing)
            logger.debug(
                f"{action.country_id}: {label} short on {short}, "
                f"cost x{pricing.penalty_multiplier:.1f}"
            )
        paid = apply_action_cost(pricing, stats)
        state.with_updated_stats(action.country_id, paid.updated(**effect), f"{label} action {action.id}")
        return ResolutionResult(ActionStatus.EXECUTED, action.with_status(ActionStatus.EXECUTED), pricing=pricing)

    def _resolve_attack(self, state: GameState, action: AttackAction, stats: CountryStats) -> ResolutionResult:
        if action.target_country_id == action.country_id:
            return self._fail(action, "Cannot attack own city")
        city = state.get_city(action.target_city_id)
        if city is None:
            return self._fail(action, f"Unknown city {action.target_city_id}")
        if city.country_id != action.target_country_id:
            return self._fail(action, f"City {city.id} is not held by {action.target_country_id}")
        defender = state.stats_for(action.target_country_id)
        if defender is None:
            return self._fail(action, f"No stats for defender {action.target_country_id}")

        allocated = allocated_strength_from_percent(stats, action.allocation_percent)
        if allocated <= 0:
            return self._fail(action, "No military strength to allocate")

        pricing = calculate_attack_pricing(allocated)
        if not can_afford_attack(pricing, stats.budget):
            return self._fail(action, f"Insufficient budget for attack: need {pricing.cost}, have {stats.budget}")

        attack_cost = calculate_attack_cost(stats, city, allocated)
        paid = apply_attack_cost(pricing, stats)
        paid = apply_diplomatic_delta(paid, action.target_country_id, -attack_cost.relation_penalty)
        state.with_updated_stats(action.country_id, paid, f"attack action {action.id}")
        executed = action.with_status(ActionStatus.EXECUTED)

        attacker_country = state.country(action.country_id)
        if action.is_live_resolution and self.defense_allocator is not None and attacker_country is not None:
            percent = self.defense_allocator(defender, city, attacker_country, paid)
            report = execute_combat(state, executed, allocated, percent, self.combat_resolver)
            return ResolutionResult(ActionStatus.EXECUTED, executed, combat=report)

        if action.is_live_resolution:
            logger.warning(f"Live attack {action.id} has no defense allocator; queued for turn end")
        state.update_city(city.model_copy(update={"is_under_attack": True}), f"attack action {action.id}")
        queued = QueuedAttack(action=executed, attacker_allocated=allocated)
        return ResolutionResult(ActionStatus.EXECUTED, executed, queued_attack=queued)

    def _resolve_diplomacy(self, state: GameState, action: DiplomacyAction, stats: CountryStats) -> ResolutionResult:
        if action.target_country_id == action.country_id:
            return self._fail(action, "Cannot target own country")
        if state.stats_for(action.target_country_id) is None:
            return self._fail(action, f"Unknown target country {action.target_country_id}")

        reason = f"diplomacy action {action.id}"
        if action.gesture == DiplomacyGesture.DENOUNCE:
            apply_mutual_diplomatic_delta(state, action.country_id, action.target_country_id, DENOUNCE_DELTA, reason)
        else:
            if stats.budget < DIPLOMACY_GESTURE_COST:
                return self._fail(
                    action, f"Insufficient budget for diplomacy: need {DIPLOMACY_GESTURE_COST}, have {stats.budget}"
                )
            state.with_updated_stats(action.country_id, stats.updated(budget=stats.budget - DIPLOMACY_GESTURE_COST), reason)
            apply_mutual_diplomatic_delta(
                state, action.country_id, action.target_country_id, DIPLOMACY_GESTURE_DELTA, reason
            )
        return ResolutionResult(ActionStatus.EXECUTED, action.with_status(ActionStatus.EXECUTED))

    @staticmethod
    def _fail(action: BaseAction, reason: str) -> ResolutionResult:
        return ResolutionResult(ActionStatus.FAILED, action.with_status(ActionStatus.FAILED), reason=reason)
