"""AI trading: covering material shortages through deals with other countries.

Each turn, every AI country short on the materials its next research,
infrastructure or recruitment needs looks for a partner holding them. It
offers either a barter from its own surplus or a budget payment. Terms are
valued at market prices and must land inside a fairness band:

    net        = value received - value given
    normalized = net / max(1, value given, value received)

Between AI countries the normalized net must lie within +/-0.05. Against
the player the AI accepts up to a 0.15 loss and takes at most a 0.15 gain;
an offer that is too generous to the AI is topped up with budget.

A country that finds no AI partner buys its shortfall on the black market.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass

from realpolitik.engine.events import TurnEvent
from realpolitik.engine.market import compute_market_snapshot, get_black_market_prices
from realpolitik.engine.resource_cost import (
    calculate_infrastructure_resource_cost,
    calculate_military_resource_cost,
    calculate_research_resource_cost,
)
from realpolitik.engine.resources import ResourceRegistry, default_registry
from realpolitik.models.country import Country, CountryStats
from realpolitik.models.deals import CommitmentType, Deal, DealCommitment, DealStatus, DealTerms, DealType
from realpolitik.models.state import GameState
from realpolitik.parameters import (
    BLACK_MARKET_BUDGET_SHARE,
    TRADE_AI_ADVANTAGE_CAP,
    TRADE_AI_FAIRNESS_TOLERANCE,
    TRADE_AI_SPREAD,
    TRADE_BUDGET_RESERVE,
    TRADE_DEAL_DURATION,
    TRADE_MAX_BUDGET_SPEND_RATIO,
    TRADE_MAX_PROPOSALS,
    TRADE_MIN_NOTIONAL,
    TRADE_PARTNER_LOW_STOCK,
    TRADE_PARTNER_RESERVE,
    TRADE_PLAYER_MAX_LOSS,
    TRADE_PLAYER_SPREAD,
    TRADE_PROPOSER_RESERVE,
    TRADE_SHORTAGE_RECRUIT_AMOUNT,
    TRADE_SURPLUS_THRESHOLD,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Needs and offers
# =============================================================================


@dataclass(frozen=True)
class Shortage:
    """A material the country holds less of than its next actions need."""

    resource_id: str
    needed: int
    available: int

    @property
    def deficit(self) -> int:
        return max(0, self.needed - self.available)

    @property
    def urgency(self) -> float:
        """Share of the requirement that is missing, 0..1."""
        if self.needed <= 0:
            return 0.5
        return min(1.0, self.deficit / self.needed)


@dataclass(frozen=True)
class Surplus:
    resource_id: str
    amount: int


def detect_shortages(stats: CountryStats) -> list[Shortage]:
    """Materials missing for the next research, infrastructure or recruitment.

    Requirements are merged per resource by taking the largest single need,
    since the three actions are alternatives rather than a shopping list.
    """
    requirements: dict[str, int] = {}
    needs = [
        *calculate_research_resource_cost(stats),
        *calculate_infrastructure_resource_cost(stats),
        *calculate_military_resource_cost(TRADE_SHORTAGE_RECRUIT_AMOUNT, stats),
    ]
    for need in needs:
        requirements[need.resource_id] = max(requirements.get(need.resource_id, 0), need.amount)

    shortages = []
    for resource_id, needed in requirements.items():
        available = stats.resources.get(resource_id, 0)
        if available < needed:
            shortages.append(Shortage(resource_id, needed, available))
    return shortages


def detect_surpluses(stats: CountryStats) -> list[Surplus]:
    """Half of every stock at or above the surplus threshold is tradeable."""
    return [
        Surplus(resource_id, amount // 2)
        for resource_id, amount in stats.resources.items()
        if amount >= TRADE_SURPLUS_THRESHOLD
    ]


def budget_spend_cap(stats: CountryStats) -> float:
    return max(0, stats.budget - TRADE_BUDGET_RESERVE) * TRADE_MAX_BUDGET_SPEND_RATIO


def can_afford_budget(stats: CountryStats, amount: float) -> bool:
    return amount > 0 and stats.budget - amount >= TRADE_BUDGET_RESERVE


# =============================================================================
# Valuation
# =============================================================================


@dataclass(frozen=True)
class FairnessProfile:
    """Acceptable normalized net benefit for the proposer, and its sweet spot."""

    min_net: float
    max_net: float
    target: float
    spread: float


AI_FAIRNESS = FairnessProfile(
    min_net=-TRADE_AI_FAIRNESS_TOLERANCE,
    max_net=TRADE_AI_FAIRNESS_TOLERANCE,
    target=0.0,
    spread=TRADE_AI_SPREAD,
)

PLAYER_FAIRNESS = FairnessProfile(
    min_net=-TRADE_PLAYER_MAX_LOSS,
    max_net=TRADE_AI_ADVANTAGE_CAP,
    target=TRADE_AI_ADVANTAGE_CAP * 0.6,
    spread=TRADE_PLAYER_SPREAD,
)


def fairness_profile(partner: Country) -> FairnessProfile:
    return PLAYER_FAIRNESS if partner.is_player_controlled else AI_FAIRNESS


@dataclass(frozen=True)
class TradeEvaluation:
    value_given: float
    value_received: float

    @property
    def net_benefit(self) -> float:
        return self.value_received - self.value_given

    @property
    def notional_value(self) -> float:
        return max(1.0, self.value_given, self.value_received)

    @property
    def normalized_net(self) -> float:
        return self.net_benefit / self.notional_value


class TradeValuation:
    """Prices commitments at market value.

    Resources missing from the market snapshot fall back to the registry's
    base value; budget counts at face value.
    """

    def __init__(self, market_prices: Mapping[str, int], registry: ResourceRegistry | None = None):
        self.market_prices = market_prices
        self.registry = registry or default_registry()

    def unit_price(self, resource_id: str) -> int:
        price = self.market_prices.get(resource_id)
        if price is not None and price > 0:
            return price
        definition = self.registry.get(resource_id)
        return definition.base_value if definition else 0

    def commitment_value(self, commitment: DealCommitment) -> float:
        if commitment.type == CommitmentType.BUDGET_TRANSFER:
            return commitment.amount or 0
        if commitment.type == CommitmentType.RESOURCE_TRANSFER:
            return self.unit_price(commitment.resource) * (commitment.amount or 0)
        return 0

    def evaluate(self, given: list[DealCommitment], received: list[DealCommitment]) -> TradeEvaluation:
        return TradeEvaluation(
            value_given=sum(self.commitment_value(c) for c in given),
            value_received=sum(self.commitment_value(c) for c in received),
        )

    def required_give_amount(self, give_resource: str, receive_resource: str, receive_amount: int, spread: float = 0.0) -> int:
        """Units of ``give_resource`` worth ``receive_amount`` of the other, less the spread."""
        give_price = self.unit_price(give_resource)
        receive_price = self.unit_price(receive_resource)
        if give_price <= 0 or receive_price <= 0 or receive_amount <= 0:
            return 0
        spread = min(max(spread, 0.0), 0.9)
        return max(1, math.ceil(receive_amount * receive_price / give_price * (1 - spread)))

    def receive_amount_for_give(self, receive_resource: str, give_resource: str, give_amount: int) -> int:
        give_price = self.unit_price(give_resource)
        receive_price = self.unit_price(receive_resource)
        if give_price <= 0 or receive_price <= 0 or give_amount <= 0:
            return 0
        return math.floor(give_price * give_amount / receive_price)


def budget_adjustment(evaluation: TradeEvaluation, profile: FairnessProfile) -> float:
    """Budget the proposer must add to bring an over-generous deal back in band."""
    if evaluation.normalized_net <= profile.max_net:
        return 0.0
    return (evaluation.normalized_net - profile.max_net) * evaluation.notional_value


# =============================================================================
# Proposals
# =============================================================================


@dataclass(frozen=True)
class TradeProposal:
    """A scored offer from an AI country to a partner.

    Attributes:
        proposer_id: The AI country making the offer
        receiver_id: The partner
        proposer_commitments: What the proposer gives
        receiver_commitments: What the proposer asks for
        net_benefit: Market value received minus value given, for the proposer
        confidence: 0..1 blend of urgency and closeness to the fair target
        score: Ranking key; higher is better
    """

    proposer_id: str
    receiver_id: str
    proposer_commitments: tuple[DealCommitment, ...]
    receiver_commitments: tuple[DealCommitment, ...]
    net_benefit: float
    confidence: float
    score: float

    def to_deal(self, game_id: str, turn: int) -> Deal:
        return Deal(
            game_id=game_id,
            proposing_country_id=self.proposer_id,
            receiving_country_id=self.receiver_id,
            deal_type=DealType.TRADE,
            deal_terms=DealTerms(
                proposer_commitments=list(self.proposer_commitments),
                receiver_commitments=list(self.receiver_commitments),
            ),
            status=DealStatus.ACTIVE,
            turn_created=turn,
            turn_expires=turn + TRADE_DEAL_DURATION,
        )


def _resource(resource_id: str, amount: int) -> DealCommitment:
    return DealCommitment(type=CommitmentType.RESOURCE_TRANSFER, resource=resource_id, amount=amount)


def _budget(amount: int) -> DealCommitment:
    return DealCommitment(type=CommitmentType.BUDGET_TRANSFER, amount=amount)


@dataclass(frozen=True)
class BlackMarketPurchase:
    resource_id: str
    amount: int
    cost: int


def _apply_commitments(
    commitments: tuple[DealCommitment, ...],
    giver: CountryStats,
    taker: CountryStats,
) -> tuple[CountryStats, CountryStats]:
    giver_resources, taker_resources = dict(giver.resources), dict(taker.resources)
    giver_budget, taker_budget = giver.budget, taker.budget
    for commitment in commitments:
        amount = commitment.amount or 0
        if commitment.type == CommitmentType.RESOURCE_TRANSFER:
            giver_resources[commitment.resource] = giver_resources.get(commitment.resource, 0) - amount
            taker_resources[commitment.resource] = taker_resources.get(commitment.resource, 0) + amount
        elif commitment.type == CommitmentType.BUDGET_TRANSFER:
            giver_budget -= amount
            taker_budget += amount
    return (
        giver.updated(resources=giver_resources, budget=giver_budget),
        taker.updated(resources=taker_resources, budget=taker_budget),
    )


def _shortfalls(commitments: tuple[DealCommitment, ...], stats: CountryStats) -> list[str]:
    errors = []
    for commitment in commitments:
        amount = commitment.amount or 0
        if commitment.type == CommitmentType.RESOURCE_TRANSFER:
            have = stats.resources.get(commitment.resource, 0)
            if have < amount:
                errors.append(f"insufficient {commitment.resource} (has {have}, needs {amount})")
        elif commitment.type == CommitmentType.BUDGET_TRANSFER and stats.budget < amount:
            errors.append(f"insufficient budget (has {stats.budget}, needs {amount})")
    return errors


class TradePlanner:
    """Plans and executes AI trades, falling back to the black market.

    Args:
        registry: Resource registry for price fallbacks and market snapshots
    """

    def __init__(self, registry: ResourceRegistry | None = None):
        self.registry = registry or default_registry()

    def plan_trades(self, state: GameState, country_id: str, market_prices: Mapping[str, int]) -> list[TradeProposal]:
        """Best few offers the country could make this turn, highest score first."""
        country = state.country(country_id)
        stats = state.stats_for(country_id)
        if country is None or stats is None:
            logger.error(f"Country {country_id} not found in game state")
            return []

        shortages = detect_shortages(stats)
        surpluses = detect_surpluses(stats)
        if not shortages or not surpluses:
            return []

        valuation = TradeValuation(market_prices, self.registry)
        proposals: list[TradeProposal] = []
        for partner in self._find_partners(state, country_id, shortages, surpluses):
            proposals.extend(self._proposals_for(stats, partner, state.stats_for(partner.id), shortages, surpluses, valuation))

        proposals.sort(key=lambda p: p.score, reverse=True)
        return proposals[:TRADE_MAX_PROPOSALS]

    def _find_partners(
        self,
        state: GameState,
        country_id: str,
        shortages: list[Shortage],
        surpluses: list[Surplus],
    ) -> list[Country]:
        partners = []
        for other in state.countries:
            other_stats = state.stats_for(other.id)
            if other.id == country_id or other_stats is None:
                continue
            has_what_we_need = any(other_stats.resources.get(s.resource_id, 0) >= s.needed for s in shortages)
            wants_what_we_have = any(other_stats.resources.get(s.resource_id, 0) < TRADE_PARTNER_LOW_STOCK for s in surpluses)
            if has_what_we_need or wants_what_we_have:
                partners.append(other)
        return partners

    def _proposals_for(
        self,
        stats: CountryStats,
        partner: Country,
        partner_stats: CountryStats,
        shortages: list[Shortage],
        surpluses: list[Surplus],
        valuation: TradeValuation,
    ) -> list[TradeProposal]:
        profile = fairness_profile(partner)
        proposals = []
        for shortage in shortages:
            partner_available = max(0, partner_stats.resources.get(shortage.resource_id, 0) - TRADE_PARTNER_RESERVE)
            if shortage.deficit <= 0 or partner_available <= 0:
                continue
            for surplus in surpluses:
                if surplus.resource_id == shortage.resource_id:
                    continue
                barter = self._barter(stats, partner, surplus, shortage, partner_available, profile, valuation)
                if barter is not None:
                    proposals.append(barter)
            purchase = self._purchase(stats, partner, shortage, partner_available, profile, valuation)
            if purchase is not None:
                proposals.append(purchase)
        return proposals

    def _barter(
        self,
        stats: CountryStats,
        partner: Country,
        surplus: Surplus,
        shortage: Shortage,
        partner_available: int,
        profile: FairnessProfile,
        valuation: TradeValuation,
    ) -> TradeProposal | None:
        available_give = max(0, min(surplus.amount, stats.resources.get(surplus.resource_id, 0) - TRADE_PROPOSER_RESERVE))
        if available_give <= 0:
            return None
        receive_limit = valuation.receive_amount_for_give(shortage.resource_id, surplus.resource_id, available_give)
        receive = min(shortage.deficit, partner_available, receive_limit)
        if receive <= 0:
            return None
        give = valuation.required_give_amount(surplus.resource_id, shortage.resource_id, receive, profile.spread)
        if give <= 0 or give > available_give:
            return None
        return self._build(
            stats, partner, [_resource(surplus.resource_id, give)], [_resource(shortage.resource_id, receive)],
            profile, valuation, shortage,
        )

    def _purchase(
        self,
        stats: CountryStats,
        partner: Country,
        shortage: Shortage,
        partner_available: int,
        profile: FairnessProfile,
        valuation: TradeValuation,
    ) -> TradeProposal | None:
        unit_price = valuation.unit_price(shortage.resource_id)
        spend_cap = budget_spend_cap(stats)
        if unit_price <= 0 or spend_cap < unit_price:
            return None
        receive = min(shortage.deficit, partner_available, math.floor(spend_cap / unit_price))
        if receive <= 0:
            return None
        cost = receive * unit_price
        if not can_afford_budget(stats, cost):
            return None
        return self._build(
            stats, partner, [_budget(cost)], [_resource(shortage.resource_id, receive)], profile, valuation, shortage
        )

    def _build(
        self,
        stats: CountryStats,
        partner: Country,
        given: list[DealCommitment],
        received: list[DealCommitment],
        profile: FairnessProfile,
        valuation: TradeValuation,
        shortage: Shortage,
    ) -> TradeProposal | None:
        evaluation = valuation.evaluate(given, received)
        if evaluation.normalized_net < profile.min_net:
            return None

        adjustment = budget_adjustment(evaluation, profile)
        if adjustment >= 1:
            top_up = math.ceil(adjustment)
            if not can_afford_budget(stats, top_up) or top_up > budget_spend_cap(stats):
                return None
            given = [*given, _budget(top_up)]
            evaluation = valuation.evaluate(given, received)

        if not profile.min_net <= evaluation.normalized_net <= profile.max_net:
            return None
        if evaluation.notional_value < TRADE_MIN_NOTIONAL:
            return None

        urgency = shortage.urgency
        width = max(0.01, profile.max_net - profile.min_net)
        closeness = max(0.0, 1 - abs(evaluation.normalized_net - profile.target) / width)
        confidence = max(0.0, min(1.0, 0.35 * urgency + 0.65 * closeness))
        score = evaluation.normalized_net + urgency + confidence + min(1.0, evaluation.notional_value / 200)

        return TradeProposal(
            proposer_id=stats.country_id,
            receiver_id=partner.id,
            proposer_commitments=tuple(given),
            receiver_commitments=tuple(received),
            net_benefit=evaluation.net_benefit,
            confidence=confidence,
            score=score,
        )

    def execute_trade(self, state: GameState, proposal: TradeProposal) -> Deal | None:
        """Swap the committed goods and record the trade as an active deal.

        Returns None, leaving the state untouched, when either side can no
        longer cover its commitments.
        """
        proposer = state.stats_for(proposal.proposer_id)
        receiver = state.stats_for(proposal.receiver_id)
        if proposer is None or receiver is None:
            logger.error(f"Trade {proposal.proposer_id} -> {proposal.receiver_id}: missing country stats")
            return None

        errors = _shortfalls(proposal.proposer_commitments, proposer)
        errors += _shortfalls(proposal.receiver_commitments, receiver)
        if errors:
            logger.warning(f"Trade {proposal.proposer_id} -> {proposal.receiver_id} rejected: {', '.join(errors)}")
            return None

        proposer, receiver = _apply_commitments(proposal.proposer_commitments, proposer, receiver)
        receiver, proposer = _apply_commitments(proposal.receiver_commitments, receiver, proposer)

        deal = proposal.to_deal(state.game_id, state.turn)
        state.with_updated_stats(proposer.country_id, proposer, f"trade deal {deal.id}")
        state.with_updated_stats(receiver.country_id, receiver, f"trade deal {deal.id}")
        state.add_deal(deal, f"trade {proposal.proposer_id} -> {proposal.receiver_id}")
        logger.info(f"Trade executed: {proposal.proposer_id} <-> {proposal.receiver_id}, deal {deal.id}")
        return deal

    def buy_from_black_market(
        self,
        state: GameState,
        country_id: str,
        shortages: list[Shortage],
        market_prices: Mapping[str, int],
    ) -> list[BlackMarketPurchase]:
        """Buy whole shortfalls, worst first, while keeping a budget reserve."""
        stats = state.stats_for(country_id)
        if stats is None:
            return []
        buy_prices, _ = get_black_market_prices(market_prices)

        remaining = stats.budget
        resources = dict(stats.resources)
        purchases: list[BlackMarketPurchase] = []
        for shortage in sorted(shortages, key=lambda s: s.deficit, reverse=True):
            price = buy_prices.get(shortage.resource_id, 0)
            cost = shortage.deficit * price
            if 0 < cost <= remaining * BLACK_MARKET_BUDGET_SHARE:
                resources[shortage.resource_id] = resources.get(shortage.resource_id, 0) + shortage.deficit
                remaining -= cost
                purchases.append(BlackMarketPurchase(shortage.resource_id, shortage.deficit, cost))

        if purchases:
            state.with_updated_stats(country_id, stats.updated(budget=remaining, resources=resources), "black market purchase")
        return purchases

    def run_turn(self, state: GameState, market_prices: Mapping[str, int] | None = None) -> list[TurnEvent]:
        """Trading phase: every AI country with shortages trades or buys once.

        Trades are only concluded between AI countries; offers that would
        involve the player are skipped.
        """
        if market_prices is None:
            market_prices = compute_market_snapshot(self.registry, state).market_prices
        players = {c.id for c in state.countries if c.is_player_controlled}

        events: list[TurnEvent] = []
        for country_id in state.ai_country_ids():
            shortages = detect_shortages(state.stats_for(country_id))
            if not shortages:
                continue

            proposals = [
                p for p in self.plan_trades(state, country_id, market_prices)
                if p.proposer_id not in players and p.receiver_id not in players
            ]
            if proposals:
                deal = self.execute_trade(state, proposals[0])
                if deal is not None:
                    events.append(
                        TurnEvent(
                            event_type="deal.trade.ai",
                            turn=state.turn,
                            country_id=country_id,
                            data={"deal_id": deal.id, "receiving_country_id": deal.receiving_country_id},
                        )
                    )
                    continue

            purchases = self.buy_from_black_market(state, country_id, shortages, market_prices)
            if purchases:
                logger.debug(f"{country_id} bought {len(purchases)} resources on the black market")
                events.append(
                    TurnEvent(
                        event_type="deal.black_market.ai",
                        turn=state.turn,
                        country_id=country_id,
                        data={"purchases": [asdict(p) for p in purchases]},
                    )
                )
        return events
