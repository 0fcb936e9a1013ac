"""Unit tests for deal execution and trade value."""

import pytest
from pydantic import ValidationError

from realpolitik.engine.deals import DealExecutor, active_trade_value
from realpolitik.engine.resources import default_registry
from realpolitik.models import (
    CommitmentType,
    Deal,
    DealCommitment,
    DealStatus,
    DealTerms,
    DealType,
)


def trade_deal(state, turn_expires=None, status=DealStatus.ACTIVE):
    return Deal(
        game_id=state.game_id,
        proposing_country_id="alpha",
        receiving_country_id="beta",
        deal_type=DealType.TRADE,
        deal_terms=DealTerms(
            proposer_commitments=[DealCommitment(type=CommitmentType.BUDGET_TRANSFER, amount=200)],
            receiver_commitments=[DealCommitment(type=CommitmentType.RESOURCE_TRANSFER, resource="oil", amount=10)],
        ),
        status=status,
        turn_created=1,
        turn_expires=turn_expires,
    )


class TestDealExecutor:
    """Tests for per-turn deal processing."""

    def test_active_trade_deal_ticks(self, sample_game_state):
        state = sample_game_state
        deal = trade_deal(state, turn_expires=5)
        state.set_active_deals([deal])

        events = DealExecutor().process_deals(state)

        assert [e.event_type for e in events] == ["deal.trade.tick"]
        assert events[0].data["deal_id"] == deal.id
        assert state.get_deal(deal.id).status == DealStatus.ACTIVE

    def test_non_trade_deal_ticks_generically(self, sample_game_state):
        state = sample_game_state
        deal = trade_deal(state).model_copy(update={"deal_type": DealType.ALLIANCE})
        state.set_active_deals([deal])
        events = DealExecutor().process_deals(state)
        assert [e.event_type for e in events] == ["deal.tick"]

    def test_expired_deal_completes(self, sample_game_state):
        state = sample_game_state
        deal = trade_deal(state, turn_expires=1)
        state.set_active_deals([deal])

        events = DealExecutor().process_deals(state)

        assert [e.event_type for e in events] == ["deal.trade.tick", "deal.expired"]
        assert state.get_deal(deal.id).status == DealStatus.COMPLETED

    def test_inactive_deals_ignored(self, sample_game_state):
        state = sample_game_state
        state.set_active_deals([trade_deal(state, status=DealStatus.PROPOSED)])
        assert DealExecutor().process_deals(state) == []

    def test_ticks_do_not_move_goods(self, sample_game_state):
        state = sample_game_state
        before = state.to_dict()["country_stats"]
        state.set_active_deals([trade_deal(state)])
        DealExecutor().process_deals(state)
        assert state.to_dict()["country_stats"] == before


class TestTradeValue:
    """Tests for the per-turn value of active trade deals."""

    def test_each_side_values_the_other_sides_commitments(self, sample_game_state):
        state = sample_game_state
        state.set_active_deals([trade_deal(state)])
        registry = default_registry()
        assert active_trade_value(state, "alpha", registry) == 150
        assert active_trade_value(state, "beta", registry) == 200
        assert active_trade_value(state, "gamma", registry) == 0

    def test_completed_deals_do_not_count(self, sample_game_state):
        state = sample_game_state
        state.set_active_deals([trade_deal(state, status=DealStatus.COMPLETED)])
        assert active_trade_value(state, "alpha", default_registry()) == 0


class TestDealCommitment:
    """Tests for commitment shape validation."""

    def test_resource_transfer_requires_resource(self):
        with pytest.raises(ValidationError):
            DealCommitment(type=CommitmentType.RESOURCE_TRANSFER, amount=5)

    def test_city_transfer_requires_city(self):
        with pytest.raises(ValidationError):
            DealCommitment(type=CommitmentType.CITY_TRANSFER)
