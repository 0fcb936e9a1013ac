"""Deal execution: advances active deals once per turn.

Commitments are not checked against current stockpiles or budgets here.
A trade tick records that the deal is in force; it does not move goods.
Expired deals complete normally and are never marked violated by this
layer.
"""

from __future__ import annotations

import logging

from realpolitik.engine.events import TurnEvent
from realpolitik.engine.resources import ResourceRegistry
from realpolitik.models.deals import CommitmentType, Deal, DealStatus, DealType
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


def _tick_event_type(deal: Deal) -> str:
    return "deal.trade.tick" if deal.deal_type == DealType.TRADE else "deal.tick"


class DealExecutor:
    """Emits per-turn progress for active deals and expires them."""

    def process_deals(self, state: GameState) -> list[TurnEvent]:
        events: list[TurnEvent] = []
        turn = state.turn

        for deal in state.data.active_deals:
            if deal.status != DealStatus.ACTIVE:
                continue

            events.append(
                TurnEvent(
                    event_type=_tick_event_type(deal),
                    turn=turn,
                    country_id=deal.proposing_country_id,
                    data={
                        "deal_id": deal.id,
                        "deal_type": deal.deal_type.value,
                        "receiving_country_id": deal.receiving_country_id,
                        "turns_active": turn - deal.turn_created,
                    },
                )
            )

            if deal.is_expired_at(turn):
                state.update_deal_status(deal.id, DealStatus.COMPLETED, f"deal {deal.id} expired")
                events.append(
                    TurnEvent(
                        event_type="deal.expired",
                        turn=turn,
                        country_id=deal.proposing_country_id,
                        data={"deal_id": deal.id, "turn_expires": deal.turn_expires},
                    )
                )
                logger.info(f"Deal {deal.id} ({deal.deal_type.value}) expired on turn {turn}")

        return events


def active_trade_value(state: GameState, country_id: str, registry: ResourceRegistry) -> int:
    """Market value a country receives from its active trade deals per turn.

    Resource transfers are valued at the registry's base value; budget
    transfers count at face value. Only the commitments of the other party
    count toward this country's value.
    """
    total = 0
    for deal in state.data.active_deals:
        if deal.status != DealStatus.ACTIVE or deal.deal_type != DealType.TRADE:
            continue
        if deal.proposing_country_id == country_id:
            incoming = deal.deal_terms.receiver_commitments
        elif deal.receiving_country_id == country_id:
            incoming = deal.deal_terms.proposer_commitments
        else:
            continue
        for commitment in incoming:
            if commitment.type == CommitmentType.RESOURCE_TRANSFER:
                total += registry.value_of(commitment.resource, commitment.amount or 0)
            elif commitment.type == CommitmentType.BUDGET_TRANSFER:
                total += commitment.amount or 0
    return total
