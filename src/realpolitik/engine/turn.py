"""Turn processing: the ordered pipeline that resolves one game turn.

Order of operations:
    1. Advance active deals (ticks and expiry), then let AI countries trade
       for missing materials when a trade planner is configured
    2. Resolve pending non-attack actions in submission order
    3. Pay for pending attacks and queue them
    4. Fight queued attacks; each defender decides its allocation without
       seeing the attacker's, then losses, capture and diplomatic fallout apply
    5. Collect end-of-turn income and production for every country

Every step mutates the single GameState in sequence, so each step reads the
stats left by the previous one. The turn counter is not advanced here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from realpolitik.engine.deals import DealExecutor, active_trade_value
from realpolitik.engine.economy import apply_turn_economy
from realpolitik.engine.events import TurnEvent
from realpolitik.engine.military import CombatResolver
from realpolitik.engine.resolver import (
    ActionResolver,
    CombatReport,
    QueuedAttack,
    ResolutionResult,
    execute_combat,
)
from realpolitik.engine.resources import ResourceRegistry, default_registry
from realpolitik.models.actions import AttackAction
from realpolitik.models.country import City, Country, CountryStats
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


class DefenseDecider(Protocol):
    """Anything that picks a defense allocation percentage for a city."""

    async def decide_allocation(
        self, defender_stats: CountryStats, target_city: City, attacker: Country, attacker_stats: CountryStats
    ) -> int: ...


class TradePhase(Protocol):
    """Anything that runs the AI trading phase against the state."""

    def run_turn(self, state: GameState) -> list[TurnEvent]: ...


@dataclass
class TurnProcessResult:
    """Everything that happened while processing one turn."""

    turn: int
    results: list[ResolutionResult] = field(default_factory=list)
    combats: list[CombatReport] = field(default_factory=list)
    events: list[TurnEvent] = field(default_factory=list)

    @property
    def executed_count(self) -> int:
        return sum(1 for r in self.results if r.executed)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.executed)


def _combat_event(turn: int, report: CombatReport) -> TurnEvent:
    return TurnEvent(
        event_type="combat.resolved",
        turn=turn,
        country_id=report.attacker_id,
        data={
            "defender_id": report.defender_id,
            "city_id": report.city_id,
            "attacker_allocated": report.attacker_allocated,
            "defender_allocated": report.defender_allocated,
            "defender_percent": report.defender_percent,
            "attacker_losses": report.outcome.attacker_losses,
            "defender_losses": report.outcome.defender_losses,
            "city_captured": report.city_captured,
        },
    )


class TurnProcessor:
    """Runs the turn pipeline against one GameState.

    Args:
        resolver: Action resolver (default: one sharing ``combat_resolver``)
        deal_executor: Deal executor
        combat_resolver: Battle resolver; seed its rng for reproducible turns
        registry: Resource registry used for trade values and storage decay
        apply_economy: Collect income and production at the end of the turn
        trade_planner: Optional AI trading phase run right after deals
    """

    def __init__(
        self,
        resolver: ActionResolver | None = None,
        deal_executor: DealExecutor | None = None,
        combat_resolver: CombatResolver | None = None,
        registry: ResourceRegistry | None = None,
        apply_economy: bool = True,
        trade_planner: TradePhase | None = None,
    ):
        self.combat_resolver = combat_resolver or CombatResolver()
        self.resolver = resolver or ActionResolver(combat_resolver=self.combat_resolver)
        self.deal_executor = deal_executor or DealExecutor()
        self.registry = registry or default_registry()
        self.apply_economy = apply_economy
        self.trade_planner = trade_planner

    async def process_turn(self, state: GameState, defense_ai: DefenseDecider) -> TurnProcessResult:
        turn = state.turn
        result = TurnProcessResult(turn=turn)
        logger.info(f"[{state.game_id}] Processing turn {turn}")

        result.events.extend(self.deal_executor.process_deals(state))
        if self.trade_planner is not None:
            result.events.extend(self.trade_planner.run_turn(state))

        pending = [a for a in state.data.pending_actions if not a.is_terminal]
        ordered = [a for a in pending if not isinstance(a, AttackAction)]
        ordered += [a for a in pending if isinstance(a, AttackAction)]

        queued: list[QueuedAttack] = []
        for action in ordered:
            resolution = self.resolver.resolve(state, action)
            result.results.append(resolution)
            result.events.append(
                TurnEvent(
                    event_type=f"action.{resolution.status.value}",
                    turn=turn,
                    country_id=action.country_id,
                    data={"action_id": action.id, "kind": action.kind, "reason": resolution.reason},
                )
            )
            if resolution.combat is not None:
                result.combats.append(resolution.combat)
                result.events.append(_combat_event(turn, resolution.combat))
            if resolution.queued_attack is not None:
                queued.append(resolution.queued_attack)

        for attack in queued:
            report = await self._fight(state, attack, defense_ai)
            if report is None:
                result.events.append(
                    TurnEvent(
                        event_type="combat.cancelled",
                        turn=turn,
                        country_id=attack.action.country_id,
                        data={"action_id": attack.action.id, "city_id": attack.action.target_city_id},
                    )
                )
                continue
            result.combats.append(report)
            result.events.append(_combat_event(turn, report))

        if self.apply_economy:
            self._collect_economy(state, result)

        logger.info(
            f"[{state.game_id}] Turn {turn} done: {result.executed_count} executed, "
            f"{result.failed_count} failed, {len(result.combats)} combats"
        )
        return result

    async def _fight(self, state: GameState, attack: QueuedAttack, defense_ai: DefenseDecider) -> CombatReport | None:
        action = attack.action
        city = state.get_city(action.target_city_id)
        defender = state.stats_for(action.target_country_id)
        attacker_country = state.country(action.country_id)
        attacker_stats = state.stats_for(action.country_id)
        if city is None or defender is None or attacker_country is None or attacker_stats is None:
            return None
        if city.country_id != action.target_country_id:
            logger.info(f"Attack {action.id} cancelled: {city.id} changed hands")
            return None

        percent = await defense_ai.decide_allocation(defender, city, attacker_country, attacker_stats)
        return execute_combat(state, action, attack.attacker_allocated, percent, self.combat_resolver)

    def _collect_economy(self, state: GameState, result: TurnProcessResult) -> None:
        for country in state.countries:
            stats = state.stats_for(country.id)
            if stats is None:
                continue
            city_yield: dict[str, int] = {}
            for city in state.get_cities_by_country(country.id):
                for resource_id, amount in city.per_turn_resources.items():
                    city_yield[resource_id] = city_yield.get(resource_id, 0) + amount

            trade_value = active_trade_value(state, country.id, self.registry)
            updated = apply_turn_economy(stats, self.registry, city_yield, trade_value)
            state.with_updated_stats(country.id, updated, "end of turn economy")
            result.events.append(
                TurnEvent(
                    event_type="economy.collected",
                    turn=result.turn,
                    country_id=country.id,
                    data={"budget_before": stats.budget, "budget_after": updated.budget},
                )
            )
