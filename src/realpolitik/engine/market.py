"""Scarcity-driven market pricing.

Formulas:
    target_stock = target_per_country * country_count
    scarcity     = clamp(1 - total_stock / target_stock, 0, 1)
    market_price = round(base_value * (1 + scarcity))

Black-market prices sit at a fixed premium (buy) or discount (sell) to the
market price and are independent of the scarcity display helpers.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from realpolitik.engine.resources import ResourceRegistry
from realpolitik.models.country import CountryStats
from realpolitik.parameters import (
    BLACK_MARKET_BUY_MULTIPLIER,
    BLACK_MARKET_SELL_MULTIPLIER,
    MARKET_TARGET_STOCK_PER_COUNTRY,
)

if TYPE_CHECKING:
    from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (not banker's rounding)."""
    return math.floor(value + 0.5)


@dataclass
class MarketPrices:
    """Market snapshot for one turn."""

    turn: int
    market_prices: dict[str, int] = field(default_factory=dict)
    black_market_buy_prices: dict[str, int] = field(default_factory=dict)
    black_market_sell_prices: dict[str, int] = field(default_factory=dict)


def compute_total_stocks(stats: Iterable[CountryStats]) -> dict[str, int]:
    """Sum every country's stockpile per resource."""
    totals: dict[str, int] = {}
    for record in stats:
        for resource_id, amount in record.resources.items():
            totals[resource_id] = totals.get(resource_id, 0) + (amount or 0)
    return totals


def compute_market_prices(
    registry: ResourceRegistry,
    total_stocks: Mapping[str, int],
    country_count: int,
    target_stocks: Mapping[str, int] = MARKET_TARGET_STOCK_PER_COUNTRY,
) -> dict[str, int]:
    """Price every tradeable resource from global scarcity.

    Resources without a target stock are skipped. A zero target (no
    countries) prices at base value.
    """
    prices: dict[str, int] = {}
    for resource in registry.tradeable():
        target_per_country = target_stocks.get(resource.id)
        if target_per_country is None:
            logger.warning(f"No target stock defined for resource {resource.id}, skipping market pricing")
            continue

        target_stock = target_per_country * country_count
        if target_stock == 0:
            logger.warning(f"Target stock is zero for resource {resource.id}, using base price")
            prices[resource.id] = resource.base_value
            continue

        total_stock = total_stocks.get(resource.id, 0)
        scarcity = max(0.0, min(1.0, 1 - total_stock / target_stock))
        prices[resource.id] = round_half_up(resource.base_value * (1 + scarcity))
    return prices


def get_black_market_prices(market_prices: Mapping[str, int]) -> tuple[dict[str, int], dict[str, int]]:
    """Return (buy_prices, sell_prices) derived from market prices."""
    buy = {rid: round_half_up(price * BLACK_MARKET_BUY_MULTIPLIER) for rid, price in market_prices.items()}
    sell = {rid: round_half_up(price * BLACK_MARKET_SELL_MULTIPLIER) for rid, price in market_prices.items()}
    return buy, sell


def compute_market_snapshot(registry: ResourceRegistry, state: GameState) -> MarketPrices:
    """Market and black-market prices for the state's current turn."""
    stats = list(state.data.country_stats.values())
    market = compute_market_prices(registry, compute_total_stocks(stats), len(state.countries))
    buy, sell = get_black_market_prices(market)
    return MarketPrices(
        turn=state.turn,
        market_prices=market,
        black_market_buy_prices=buy,
        black_market_sell_prices=sell,
    )


def scarcity_level(market_price: int, base_value: int) -> str:
    """Display bucket for a price relative to its base value.

    Returns one of "abundant", "normal", "scarce", "critical".
    """
    if base_value <= 0:
        return "normal"
    ratio = market_price / base_value
    if ratio <= 1.1:
        return "abundant"
    if ratio <= 1.4:
        return "normal"
    if ratio <= 1.7:
        return "scarce"
    return "critical"


def format_prices_for_display(registry: ResourceRegistry, prices: MarketPrices) -> str:
    lines = [f"Market prices (turn {prices.turn}):"]
    for resource_id, price in prices.market_prices.items():
        definition = registry.get(resource_id)
        name = definition.name if definition else resource_id
        level = scarcity_level(price, definition.base_value if definition else price)
        buy = prices.black_market_buy_prices.get(resource_id, price)
        sell = prices.black_market_sell_prices.get(resource_id, price)
        lines.append(f"  {name:<8} {price:>4}  [{level}]  black market buy {buy} / sell {sell}")
    return "\n".join(lines)
