"""Defense allocation: how much of its army a defender commits to a city.

The defender never sees the attacker's allocation. It decides from its own
stats, the city's worth, and the attacker's total effective strength.

Rule formula:
    percent = 40 + 3 * city_defense_value
              + 10 if attacker effective > 1.5x ours, - 10 if < 0.5x ours
              + 3 per tech level the attacker leads by (capped at +/-10)
    clamped to 30..80
"""

from __future__ import annotations

import logging
import re

from realpolitik.config import is_llm_enabled
from realpolitik.engine.military import allocated_strength_from_percent, calculate_effective_military_strength
from realpolitik.exceptions import LLMUnavailableError
from realpolitik.llm import TextCompleter, complete_with_policy
from realpolitik.models.country import City, Country, CountryStats, city_defense_value
from realpolitik.parameters import (
    LLM_DEFENSE_DEFAULT_PERCENT,
    LLM_DEFENSE_MAX_PERCENT,
    LLM_DEFENSE_MIN_PERCENT,
    RULE_DEFENSE_MAX_PERCENT,
    RULE_DEFENSE_MIN_PERCENT,
)
from realpolitik.prompts import DEFENSE_ALLOCATION_PROMPT

logger = logging.getLogger(__name__)

_PERCENT_PATTERN = re.compile(r"(?<!\d)(\d{1,3})\s*%")
_NUMBER_PATTERN = re.compile(r"(?<!\d)\d{1,3}(?!\d)")


def rule_allocation(
    defender_stats: CountryStats,
    target_city: City,
    attacker: Country,
    attacker_stats: CountryStats,
) -> int:
    """Deterministic defense percentage in 30..80.

    Usable directly as the resolver's synchronous defense allocator.
    """
    percent = 40 + city_defense_value(target_city) * 3

    ours = calculate_effective_military_strength(defender_stats)
    theirs = calculate_effective_military_strength(attacker_stats)
    ratio = theirs / ours if ours > 0 else float("inf")
    if ratio > 1.5:
        percent += 10
    elif ratio < 0.5:
        percent -= 10

    tech_gap = attacker_stats.technology_level - defender_stats.technology_level
    percent += max(-10, min(10, tech_gap * 3))

    return max(RULE_DEFENSE_MIN_PERCENT, min(RULE_DEFENSE_MAX_PERCENT, percent))


def parse_defense_percentage(text: str) -> int:
    """Pull a defense percentage out of free text, clamped to 30..90.

    The first ``NN%`` wins; otherwise the first bare number if it is a
    plausible percentage (10-100); otherwise 50. Runs of more than three
    digits are never read as a percentage.
    """
    match = _PERCENT_PATTERN.search(text or "")
    if match:
        value = int(match.group(1))
    else:
        bare = _NUMBER_PATTERN.search(text or "")
        value = int(bare.group(0)) if bare and 10 <= int(bare.group(0)) <= 100 else LLM_DEFENSE_DEFAULT_PERCENT
    return max(LLM_DEFENSE_MIN_PERCENT, min(LLM_DEFENSE_MAX_PERCENT, value))


def allocation_strength(percent: int, stats: CountryStats) -> int:
    """Nominal strength a defense percentage commits."""
    return allocated_strength_from_percent(stats, percent)


class DefenseAI:
    """Decides defense allocations, asking the LLM when a human attacks.

    AI-versus-AI battles always use the rule formula. Against the player,
    the LLM is consulted if a completer is configured and LLM use is
    enabled; any failure falls back to the rule formula.

    Args:
        completer: Text-completion collaborator, or None for rules only
        timeout: Seconds per LLM attempt (default: config)
        retries: Retries after the first attempt (default: config)
    """

    def __init__(
        self,
        completer: TextCompleter | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ):
        self.completer = completer
        self.timeout = timeout
        self.retries = retries

    async def decide_allocation(
        self,
        defender_stats: CountryStats,
        target_city: City,
        attacker: Country,
        attacker_stats: CountryStats,
    ) -> int:
        if attacker.is_player_controlled and self.completer is not None and is_llm_enabled():
            try:
                return await self._llm_allocation(defender_stats, target_city, attacker, attacker_stats)
            except (LLMUnavailableError, ValueError) as e:
                logger.warning(f"LLM defense unavailable for {target_city.id}, using rules: {e}")

        percent = rule_allocation(defender_stats, target_city, attacker, attacker_stats)
        logger.debug(f"{defender_stats.country_id} defends {target_city.id} with {percent}% (rules)")
        return percent

    async def _llm_allocation(
        self,
        defender_stats: CountryStats,
        target_city: City,
        attacker: Country,
        attacker_stats: CountryStats,
    ) -> int:
        population = defender_stats.population
        prompt = DEFENSE_ALLOCATION_PROMPT.format(
            defender_name=defender_stats.country_id,
            attacker_name=attacker.name,
            city_name=target_city.name or target_city.id,
            military_strength=defender_stats.military_strength,
            effective_strength=calculate_effective_military_strength(defender_stats),
            population=population,
            budget=defender_stats.budget,
            technology_level=defender_stats.technology_level,
            city_value=city_defense_value(target_city),
            military_ratio=defender_stats.military_strength / population * 1000 if population else 0.0,
            attacker_effective=calculate_effective_military_strength(attacker_stats),
        )
        text = await complete_with_policy(self.completer, prompt, timeout=self.timeout, retries=self.retries)
        percent = parse_defense_percentage(text)
        logger.info(f"{defender_stats.country_id} defends {target_city.id} with {percent}% (LLM)")
        return percent
