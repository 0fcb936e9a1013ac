#!/usr/bin/env python3
"""
AI-only Simulation for Realpolitik

Builds a small world of AI countries and runs the full turn pipeline with
the rule-based AI and AI trading, then prints a JSON summary of where every
country ended up. No LLM is used.

Usage:
    # Four countries, 30 turns
    python scripts/run_simulation.py

    # Bigger, longer, reproducible
    python scripts/run_simulation.py --countries 6 --turns 60 --seed 11

    # Per-turn logging
    python scripts/run_simulation.py --verbose

    # Also print the final market prices to stderr
    python scripts/run_simulation.py --prices
"""

import argparse
import asyncio
import json
import logging
import math
import random
import sys
from collections import Counter

from realpolitik.ai import AIController, DefenseAI, TradePlanner
from realpolitik.engine import CombatResolver, TurnProcessor
from realpolitik.engine.market import compute_market_snapshot, format_prices_for_display
from realpolitik.engine.resources import default_registry
from realpolitik.models import City, Country, CountryStats, GameState

PROFILES = ["Agricultural Hub", "Mining Empire", "Industrial Powerhouse", "Tech Innovator", "Trade Hub", None]
CITY_RESOURCES = ["food", "timber", "iron", "oil", "gold", "copper", "steel", "coal"]


def build_world(num_countries: int, rng: random.Random) -> GameState:
    """Countries on a circle close enough to neighbor each other, two cities each."""
    game_id = f"sim-{rng.randrange(16**8):08x}"
    countries = []
    stats = {}
    cities = []
    radius = 90
    for i in range(num_countries):
        angle = 2 * math.pi * i / num_countries
        x, y = 200 + radius * math.cos(angle), 200 + radius * math.sin(angle)
        country_id = f"country-{i + 1}"
        countries.append(Country(id=country_id, game_id=game_id, name=f"Nation {i + 1}", position_x=x, position_y=y))
        stats[country_id] = CountryStats(
            country_id=country_id,
            population=rng.randint(80_000, 160_000),
            budget=rng.randint(3_000, 8_000),
            technology_level=rng.randint(0, 2),
            infrastructure_level=rng.randint(0, 2),
            military_strength=rng.randint(30, 90),
            resources={"food": rng.randint(200, 600), "iron": rng.randint(0, 40), "oil": rng.randint(0, 30)},
            resource_profile=rng.choice(PROFILES),
        )
        for j in range(2):
            cities.append(
                City(
                    id=f"{country_id}-city-{j + 1}",
                    country_id=country_id,
                    name=f"City {i + 1}.{j + 1}",
                    position_x=x + rng.uniform(-10, 10),
                    position_y=y + rng.uniform(-10, 10),
                    population=rng.randint(10_000, 60_000),
                    per_turn_resources={rng.choice(CITY_RESOURCES): rng.randint(1, 8)},
                )
            )
    return GameState(game_id=game_id, turn=1, countries=countries, country_stats=stats, cities=cities)


async def run_simulation(num_countries: int, turns: int, seed: int, show_prices: bool = False) -> dict:
    rng = random.Random(seed)
    state = build_world(num_countries, rng)
    controller = AIController.with_random_personalities(state.ai_country_ids(), seed=seed)
    processor = TurnProcessor(combat_resolver=CombatResolver(random.Random(seed)), trade_planner=TradePlanner())
    defense = DefenseAI()

    action_counts: Counter = Counter()
    trade_events: Counter = Counter()
    combats = 0
    captures = 0
    for _ in range(turns):
        decisions = await controller.decide_all(state)
        controller.submit(state, decisions)
        result = await processor.process_turn(state, defense)
        controller.record_results(result.results)
        for resolution in result.results:
            action_counts[f"{resolution.action.kind}.{resolution.status.value}"] += 1
        trade_events.update(e.event_type for e in result.events if e.event_type.endswith(".ai"))
        combats += len(result.combats)
        captures += sum(1 for c in result.combats if c.city_captured)
        state.advance_turn("simulation")

    if show_prices:
        registry = default_registry()
        print(format_prices_for_display(registry, compute_market_snapshot(registry, state)), file=sys.stderr)

    summary = {
        "seed": seed,
        "turns": turns,
        "final_turn": state.turn,
        "combats": combats,
        "cities_captured": captures,
        "actions": dict(sorted(action_counts.items())),
        "trades": dict(sorted(trade_events.items())),
        "countries": {},
    }
    for country in state.countries:
        stats = state.stats_for(country.id)
        summary["countries"][country.id] = {
            "budget": stats.budget,
            "technology_level": stats.technology_level,
            "infrastructure_level": stats.infrastructure_level,
            "military_strength": stats.military_strength,
            "cities": len(state.get_cities_by_country(country.id)),
        }
    return summary


def main():
    parser = argparse.ArgumentParser(
        description="Run an AI-only Realpolitik simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--countries", type=int, default=4, help="Number of AI countries (default: 4)")
    parser.add_argument("--turns", type=int, default=30, help="Turns to simulate (default: 30)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log turn details")
    parser.add_argument("--prices", action="store_true", help="Print final market prices to stderr")
    args = parser.parse_args()

    if args.countries < 2:
        parser.error("--countries must be at least 2")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    summary = asyncio.run(run_simulation(args.countries, args.turns, args.seed, args.prices))
    json.dump(summary, sys.stdout, indent=2)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
